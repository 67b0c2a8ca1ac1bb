# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .record_store import (
    InMemoryRecordStore,
    RecordStore,
    RecordStoreError,
    SupabaseRecordStore,
)
from .storage_service import (
    ArtifactStore,
    InMemoryArtifactStore,
    StorageUploadError,
    SupabaseArtifactStore,
)
from .order_service import OrderService
from .prompt_service import MissingPrimeError, PrimeContext, PromptService, PromptStoreError

__all__ = [
    "InMemoryRecordStore",
    "RecordStore",
    "RecordStoreError",
    "SupabaseRecordStore",
    "ArtifactStore",
    "InMemoryArtifactStore",
    "StorageUploadError",
    "SupabaseArtifactStore",
    "OrderService",
    "MissingPrimeError",
    "PrimeContext",
    "PromptService",
    "PromptStoreError",
]
