# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# One shared supabase-py client plus the handful of queries the assistant
# needs: uploaded spreadsheet rows per domain, generated records written back
# by order creation, prompt versions and knowledge documents for priming, and
# artifact uploads to Storage.
#
# Calls are blocking. Async code goes through asyncio.to_thread, as the
# record store and artifact store do.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import create_client, Client

from app.config import settings
from lib.utils import ApplicationError, mask_identifier

logger = logging.getLogger(__name__)

# Supabase returns at most this many rows per request
PAGE_SIZE = 1000


class SupabaseClientError(ApplicationError):
    """A Supabase query or upload failed; callers re-raise it as their own error."""

    status_code = 503

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)


class SupabaseClient:
    """
    Class-level access to a lazily created Supabase client.

    Expected tables:
        erp_records(owner_id, domain, batch_id, row_index, data jsonb, uploaded_at)
        <collection>(id, data jsonb)                 -- generated records
        system_prompt_versions(owner_id, workspace, version, system_prompt, ai_model)
        knowledge_documents(owner_id, workspace, name, original_format, content, size)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """Create the client on first use with the service_role key (RLS bypassed)."""
        if cls._instance is None:
            if not settings.supabase_configured:
                raise SupabaseClientError(
                    message="Supabase is not configured",
                    code="CLIENT_NOT_CONFIGURED",
                    suggestion="Set SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file",
                )
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    # -------------------------------------------------------------------------
    # Uploaded Records
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_record_rows(cls, owner_id: str, domain: str) -> list[dict[str, Any]]:
        """
        Fetch every uploaded row for an owner and domain.

        Rows come back ordered by upload time, then by batch and row index,
        so grouping them by batch_id preserves both upload order and sheet
        order. Pages through the table since Supabase caps each response.

        Args:
            owner_id: Owner of the uploads
            domain: "purchase_orders", "invoices" or "price_list"

        Returns:
            List of row dicts with keys batch_id, row_index, data, uploaded_at

        Raises:
            SupabaseClientError: If the query fails
        """
        client = cls.get_client()
        rows: list[dict[str, Any]] = []
        start = 0

        try:
            while True:
                response = (
                    client.table(settings.RECORDS_TABLE)
                    .select("batch_id, row_index, data, uploaded_at")
                    .eq("owner_id", owner_id)
                    .eq("domain", domain)
                    .order("uploaded_at")
                    .order("batch_id")
                    .order("row_index")
                    .range(start, start + PAGE_SIZE - 1)
                    .execute()
                )
                page = response.data or []
                rows.extend(page)
                if len(page) < PAGE_SIZE:
                    break
                start += PAGE_SIZE

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {domain} records: {e}",
                code="FETCH_RECORDS_FAILED",
                suggestion=f"Check that the {settings.RECORDS_TABLE} table exists and is accessible",
                details={"owner_id": mask_identifier(owner_id), "domain": domain}
            )

        logger.debug(f"Fetched {len(rows)} {domain} rows for owner {mask_identifier(owner_id)}")
        return rows

    # -------------------------------------------------------------------------
    # Generated Records
    # -------------------------------------------------------------------------

    @classmethod
    def upsert_record(cls, collection_key: str, record_id: str, record: dict[str, Any]) -> None:
        """
        Write one record, replacing any previous record with the same id.

        Raises:
            SupabaseClientError: If the write fails
        """
        client = cls.get_client()
        try:
            client.table(collection_key).upsert({"id": record_id, "data": record}).execute()
            logger.debug(f"Upserted {collection_key}/{record_id}")
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to write record {record_id}: {e}",
                code="UPSERT_FAILED",
                suggestion=f"Check that the {collection_key} table exists with columns id, data",
                details={"collection": collection_key, "record_id": record_id}
            )

    # -------------------------------------------------------------------------
    # Priming Data
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_prompt_versions(cls, owner_id: str, workspace: str) -> list[dict[str, Any]]:
        """
        Fetch all saved system prompt versions for an owner's workspace.

        Raises:
            SupabaseClientError: If the query fails
        """
        client = cls.get_client()
        try:
            response = (
                client.table("system_prompt_versions")
                .select("id, version, system_prompt, ai_model, saved_at")
                .eq("owner_id", owner_id)
                .eq("workspace", workspace)
                .execute()
            )
            return response.data or []
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch system prompts: {e}",
                code="FETCH_PROMPTS_FAILED",
                details={"owner_id": mask_identifier(owner_id), "workspace": workspace}
            )

    @classmethod
    def fetch_knowledge_documents(cls, owner_id: str, workspace: str) -> list[dict[str, Any]]:
        """
        Fetch knowledge documents (newest first) used to enrich the system prompt.

        Raises:
            SupabaseClientError: If the query fails
        """
        client = cls.get_client()
        try:
            response = (
                client.table("knowledge_documents")
                .select("id, name, original_format, content, size, uploaded_at")
                .eq("owner_id", owner_id)
                .eq("workspace", workspace)
                .order("uploaded_at", desc=True)
                .execute()
            )
            return response.data or []
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch knowledge documents: {e}",
                code="FETCH_KNOWLEDGE_FAILED",
                details={"owner_id": mask_identifier(owner_id), "workspace": workspace}
            )

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    @classmethod
    def upload_file(cls, bucket: str, path: str, content: bytes, content_type: str) -> str:
        """
        Upload a file to Supabase Storage, overwriting an existing path.

        Returns:
            Public URL of the uploaded file

        Raises:
            SupabaseClientError: If the upload fails
        """
        client = cls.get_client()
        try:
            client.storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
            url = client.storage.from_(bucket).get_public_url(path)
            logger.info(f"Uploaded file to storage: {bucket}/{path}")
            return url
        except Exception as e:
            raise SupabaseClientError(
                message=f"Storage upload failed: {e}",
                code="STORAGE_UPLOAD_FAILED",
                suggestion=f"Check that the '{bucket}' bucket exists",
                details={"path": path}
            )
