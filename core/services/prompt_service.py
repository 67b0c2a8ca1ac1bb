# =============================================================================
# core/services/prompt_service.py - Session Priming
# =============================================================================
# Builds the instructions a chat session is primed with:
#
#   latest system prompt (highest version for owner + workspace)
#   + knowledge base section (owner's knowledge documents, newest first)
#
# A session cannot start without a system prompt. MissingPrimeError is a
# configuration error: retrying will not help, an admin has to save a prompt.
# PromptStoreError means the prompts could not be read at all (503).
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError, mask_identifier

logger = logging.getLogger(__name__)

WORKSPACES = ("purchaser", "invoicer")

# (owner_id, workspace) -> rows
Loader = Callable[[str, str], list[dict[str, Any]]]


class MissingPrimeError(ApplicationError):
    """Raised when a session has no usable system instructions."""

    status_code = 409

    def __init__(self, message: str = "No system prompt configured", **kwargs: Any):
        kwargs.setdefault("code", "MISSING_PRIME")
        kwargs.setdefault("suggestion", "Save a system prompt for this workspace in the admin panel")
        super().__init__(message, **kwargs)


class PromptStoreError(ApplicationError):
    """Raised when saved prompts cannot be read; transient, unlike MissingPrimeError."""

    status_code = 503

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "PROMPT_STORE_UNAVAILABLE")
        kwargs.setdefault("suggestion", "The prompt store is unreachable; try again in a moment")
        super().__init__(message, **kwargs)


@dataclass
class PrimeContext:
    """Everything a session is primed with."""

    workspace: str
    system_prompt: str
    knowledge_context: str = ""
    documents_used: list[str] = field(default_factory=list)
    prompt_version: int | None = None
    ai_model: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def instructions(self) -> str:
        return combine_contexts(self.system_prompt, self.knowledge_context)


def build_knowledge_context(documents: list[dict[str, Any]]) -> str:
    """
    Render knowledge documents as one prompt section.

    Documents without text content are skipped.
    """
    sections = []
    for doc in documents:
        content = doc.get("content")
        if not content or not str(content).strip():
            logger.debug(f"Skipping knowledge document without content: {doc.get('name')}")
            continue
        sections.append(
            f"## Document: {doc.get('name', 'untitled')}\n"
            f"**Format:** {doc.get('original_format', 'text')}\n"
            f"**Size:** {doc.get('size', len(str(content)))} bytes\n"
            f"**Content:**\n{content}\n\n---"
        )

    if not sections:
        return ""

    body = "\n\n".join(sections)
    return (
        "# INTERNAL KNOWLEDGE BASE\n\n"
        "The following documents contain internal company knowledge, policies and "
        "procedures that should inform your answers:\n\n"
        f"{body}\n\n"
        "Use this knowledge for company-specific guidance while following your "
        "system prompt."
    )


def combine_contexts(system_prompt: str, knowledge_context: str) -> str:
    if not knowledge_context.strip():
        return system_prompt
    return (
        f"{system_prompt}\n\n{knowledge_context}\n\n"
        "IMPORTANT: Prefer information from the internal knowledge base above, "
        "keeping the tone and approach of your system prompt."
    )


def latest_prompt_version(versions: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Version row with the highest `version` that has prompt text."""
    usable = [v for v in versions if str(v.get("system_prompt") or "").strip()]
    if not usable:
        return None
    return max(usable, key=lambda v: v.get("version") or 0)


class PromptService:
    """
    Loads priming context for an owner's workspace.

    Loaders default to the Supabase tables and run in a worker thread.
    """

    def __init__(
        self,
        prompt_loader: Loader | None = None,
        knowledge_loader: Loader | None = None,
    ):
        self.prompt_loader = prompt_loader or SupabaseClient.fetch_prompt_versions
        self.knowledge_loader = knowledge_loader or SupabaseClient.fetch_knowledge_documents

    async def build_prime(self, owner_id: str, workspace: str) -> PrimeContext:
        """
        Build the priming context.

        Raises:
            MissingPrimeError: If no usable system prompt is saved
            PromptStoreError: If the saved prompts cannot be read
            ValueError: If the workspace is unknown
        """
        if workspace not in WORKSPACES:
            raise ValueError(f"Unknown workspace: {workspace}")

        try:
            versions = await asyncio.to_thread(self.prompt_loader, owner_id, workspace)
        except SupabaseClientError as e:
            logger.error(f"Loading system prompts for {mask_identifier(owner_id)}/{workspace} failed: {e.message}")
            raise PromptStoreError(
                f"Could not load system prompt: {e.message}",
                details={"workspace": workspace},
            ) from e

        latest = latest_prompt_version(versions)
        if latest is None:
            raise MissingPrimeError(
                f"No system prompt configured for workspace '{workspace}'",
                details={"workspace": workspace},
            )

        try:
            documents = await asyncio.to_thread(self.knowledge_loader, owner_id, workspace)
        except SupabaseClientError as e:
            # Knowledge is optional; the session still works without it
            logger.warning(f"Knowledge documents unavailable for {mask_identifier(owner_id)}: {e}")
            documents = []

        knowledge = build_knowledge_context(documents)
        prime = PrimeContext(
            workspace=workspace,
            system_prompt=latest["system_prompt"],
            knowledge_context=knowledge,
            documents_used=[d.get("name", "untitled") for d in documents if d.get("content")],
            prompt_version=latest.get("version"),
            ai_model=latest.get("ai_model"),
        )
        logger.info(
            f"Built prime for {mask_identifier(owner_id)}/{workspace}: "
            f"prompt v{prime.prompt_version}, {len(prime.documents_used)} knowledge documents"
        )
        return prime
