# =============================================================================
# core/services/record_store.py - Record Store Adapter
# =============================================================================
# The search services only need two things from persistent storage:
# - list_records(owner_id, domain): every upload batch for an owner
# - put_record(collection_key, record_id, record): write one generated record
#
# Two implementations:
# - SupabaseRecordStore: production, backed by lib/supabase_client.py
# - InMemoryRecordStore: tests and local development
#
# Batches are returned in upload order and are never merged or deduplicated;
# a newer upload never replaces an older one.
# =============================================================================

from __future__ import annotations

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from core.models.records import LooseRecord
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

# Record domains, one per kind of uploaded sheet
PURCHASE_ORDERS = "purchase_orders"
INVOICES = "invoices"
PRICE_LIST = "price_list"

# Where createPurchaseOrder writes its rows
GENERATED_ORDERS_COLLECTION = "generated_purchase_orders"


class RecordStoreError(ApplicationError):
    """Raised when the record store cannot be read or written."""

    status_code = 503

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "RECORD_STORE_ERROR")
        super().__init__(message, **kwargs)


class RecordStore(ABC):
    """Async access to uploaded record batches and generated records."""

    @abstractmethod
    async def list_records(self, owner_id: str, domain: str) -> list[list[LooseRecord]]:
        """Every upload batch for the owner and domain, in upload order."""

    @abstractmethod
    async def put_record(self, collection_key: str, record_id: str, record: dict[str, Any]) -> None:
        """Write one record; an existing record with the same id is replaced."""


# =============================================================================
# In-Memory Store
# =============================================================================

class InMemoryRecordStore(RecordStore):
    """
    Dict-backed store.

    Example:
        store = InMemoryRecordStore()
        store.add_batch("owner-1", PURCHASE_ORDERS, [{"Supplier Name": "TechCorp"}])
        batches = await store.list_records("owner-1", PURCHASE_ORDERS)
    """

    def __init__(self) -> None:
        self._batches: dict[tuple[str, str], list[list[LooseRecord]]] = {}
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}

    def add_batch(
        self,
        owner_id: str,
        domain: str,
        rows: Sequence[Mapping[str, Any]],
    ) -> list[LooseRecord]:
        """
        Add one upload batch. Row indexes follow the sheet: row 1 is the
        header row, so data starts at 2.
        """
        batch = [
            LooseRecord.from_mapping(row, row_index=i + 2)
            for i, row in enumerate(rows)
        ]
        self._batches.setdefault((owner_id, domain), []).append(batch)
        return batch

    async def list_records(self, owner_id: str, domain: str) -> list[list[LooseRecord]]:
        batches = self._batches.get((owner_id, domain), [])
        return [
            [LooseRecord(values=dict(r.values), row_index=r.row_index) for r in batch]
            for batch in batches
        ]

    async def put_record(self, collection_key: str, record_id: str, record: dict[str, Any]) -> None:
        self.collections.setdefault(collection_key, {})[record_id] = copy.deepcopy(record)


# =============================================================================
# Supabase Store
# =============================================================================

class SupabaseRecordStore(RecordStore):
    """
    Record store backed by Supabase.

    Uploaded rows live in one table keyed by owner, domain and batch; the
    sync client calls run in a worker thread so other sessions keep going.
    """

    async def list_records(self, owner_id: str, domain: str) -> list[list[LooseRecord]]:
        try:
            rows = await asyncio.to_thread(SupabaseClient.fetch_record_rows, owner_id, domain)
        except SupabaseClientError as e:
            raise RecordStoreError(
                e.message,
                code=e.code,
                suggestion=e.suggestion,
                details=e.details,
            ) from e

        return group_rows_by_batch(rows)

    async def put_record(self, collection_key: str, record_id: str, record: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(SupabaseClient.upsert_record, collection_key, record_id, record)
        except SupabaseClientError as e:
            raise RecordStoreError(e.message, code=e.code, details=e.details) from e


def group_rows_by_batch(rows: Sequence[Mapping[str, Any]]) -> list[list[LooseRecord]]:
    """
    Group stored rows into batches, keeping first-seen batch order.

    Rows without a data dict are skipped with a warning.
    """
    batches: dict[str, list[LooseRecord]] = {}
    for row in rows:
        data = row.get("data")
        if not isinstance(data, dict):
            logger.warning(f"Skipping stored row without data: batch={row.get('batch_id')}")
            continue
        batch_id = str(row.get("batch_id", ""))
        row_index = row.get("row_index")
        batches.setdefault(batch_id, []).append(
            LooseRecord.from_mapping(data, row_index=row_index if isinstance(row_index, int) else None)
        )
    return list(batches.values())
