# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# Tests replace the orchestrator with app.dependency_overrides.
# =============================================================================

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from agents.model_client import OpenAIModelClient
from agents.orchestrator import ChatOrchestrator
from core.services.prompt_service import PromptService
from core.services.record_store import SupabaseRecordStore
from core.services.storage_service import SupabaseArtifactStore


@lru_cache
def get_orchestrator() -> ChatOrchestrator:
    """
    Get the process-wide orchestrator.

    Built on first use so importing the app never touches the network.
    """
    return ChatOrchestrator(
        model=OpenAIModelClient(),
        store=SupabaseRecordStore(),
        artifacts=SupabaseArtifactStore(),
        prompts=PromptService(),
    )


# Type alias for dependency injection
OrchestratorDep = Annotated[ChatOrchestrator, Depends(get_orchestrator)]
