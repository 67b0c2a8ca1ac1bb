# =============================================================================
# core/services/storage_service.py - Artifact Storage
# =============================================================================
# Stores files produced by the assistant (currently the CSV artifact of a
# created purchase order) and returns a handle the user can open.
#
# - ArtifactStore.save(path, content, content_type) -> handle
# - SupabaseArtifactStore: Supabase Storage bucket, handle is the public URL
# - InMemoryArtifactStore: keeps bytes in a dict, handle is "memory://{path}"
#
# dataframe_to_csv_bytes() is the one place a DataFrame becomes file content.
# =============================================================================

from __future__ import annotations

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from typing import Any

import pandas as pd

from app.config import settings
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv"


class StorageUploadError(ApplicationError):
    """Raised when an artifact cannot be stored."""

    status_code = 500

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            suggestion="Try again later or contact support if the issue persists",
            details={"path": path, "error": error},
        )


def dataframe_to_csv_bytes(df: pd.DataFrame) -> bytes:
    """Serialize a DataFrame as UTF-8 CSV without the index column."""
    csv_buffer = io.BytesIO()
    df.to_csv(csv_buffer, index=False, encoding="utf-8")
    return csv_buffer.getvalue()


class ArtifactStore(ABC):
    """Where generated files go."""

    @abstractmethod
    async def save(self, path: str, content: bytes, content_type: str = CSV_CONTENT_TYPE) -> str:
        """
        Store content at path, overwriting anything already there.

        Returns:
            Handle (URL or store-specific reference) for the stored file

        Raises:
            StorageUploadError: If the file cannot be stored
        """


class InMemoryArtifactStore(ArtifactStore):
    """Artifact store for tests and local runs."""

    def __init__(self) -> None:
        self.files: dict[str, dict[str, Any]] = {}

    async def save(self, path: str, content: bytes, content_type: str = CSV_CONTENT_TYPE) -> str:
        self.files[path] = {"content": content, "content_type": content_type}
        logger.debug(f"Stored artifact in memory: {path} ({len(content)} bytes)")
        return f"memory://{path}"

    def read_dataframe(self, path: str) -> pd.DataFrame:
        """Read a stored CSV artifact back into a DataFrame."""
        return pd.read_csv(io.BytesIO(self.files[path]["content"]))


class SupabaseArtifactStore(ArtifactStore):
    """Artifact store backed by a Supabase Storage bucket."""

    def __init__(self, bucket: str | None = None):
        self.bucket = bucket or settings.ARTIFACT_BUCKET

    async def save(self, path: str, content: bytes, content_type: str = CSV_CONTENT_TYPE) -> str:
        try:
            return await asyncio.to_thread(
                SupabaseClient.upload_file, self.bucket, path, content, content_type
            )
        except SupabaseClientError as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(path, e.message) from e
