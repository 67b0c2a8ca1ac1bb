# =============================================================================
# tests/test_stores.py - Record, Artifact & Prompt Store Tests
# =============================================================================
# Supabase-backed stores are tested with SupabaseClient methods patched;
# no network calls are made.
# =============================================================================

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from core.services.prompt_service import (
    MissingPrimeError,
    PromptService,
    PromptStoreError,
    build_knowledge_context,
    latest_prompt_version,
)
from core.services.record_store import (
    PURCHASE_ORDERS,
    InMemoryRecordStore,
    RecordStoreError,
    SupabaseRecordStore,
    group_rows_by_batch,
)
from core.services.storage_service import (
    SupabaseArtifactStore,
    StorageUploadError,
    dataframe_to_csv_bytes,
)
from lib.supabase_client import SupabaseClientError
from tests.conftest import OWNER_ID


# =============================================================================
# Record Store
# =============================================================================

class TestGroupRowsByBatch:

    def test_groups_in_first_seen_order(self):
        rows = [
            {"batch_id": "b2", "row_index": 2, "data": {"Supplier Name": "A"}},
            {"batch_id": "b1", "row_index": 2, "data": {"Supplier Name": "B"}},
            {"batch_id": "b2", "row_index": 3, "data": {"Supplier Name": "C"}},
        ]
        batches = group_rows_by_batch(rows)
        assert [[r.get("Supplier Name") for r in batch] for batch in batches] == [["A", "C"], ["B"]]
        assert [r.row_index for r in batches[0]] == [2, 3]

    def test_rows_without_data_are_skipped(self):
        rows = [
            {"batch_id": "b1", "row_index": 2, "data": None},
            {"batch_id": "b1", "row_index": 3, "data": "oops"},
            {"batch_id": "b1", "row_index": 4, "data": {"Tuote": "Kattotiili"}},
        ]
        [batch] = group_rows_by_batch(rows)
        assert [r.row_index for r in batch] == [4]

    def test_row_index_from_data(self):
        [batch] = group_rows_by_batch([{"batch_id": "b1", "data": {"rowIndex": 7, "Tuote": "X"}}])
        assert batch[0].row_index == 7
        assert batch[0].columns == ["Tuote"]


class TestInMemoryRecordStore:

    @pytest.mark.asyncio
    async def test_batches_are_kept_apart(self):
        store = InMemoryRecordStore()
        store.add_batch(OWNER_ID, PURCHASE_ORDERS, [{"A": 1}])
        store.add_batch(OWNER_ID, PURCHASE_ORDERS, [{"A": 2}, {"A": 3}])

        batches = await store.list_records(OWNER_ID, PURCHASE_ORDERS)

        assert [len(b) for b in batches] == [1, 2]
        assert [r.row_index for r in batches[1]] == [2, 3]

    @pytest.mark.asyncio
    async def test_list_returns_copies(self):
        store = InMemoryRecordStore()
        store.add_batch(OWNER_ID, PURCHASE_ORDERS, [{"A": 1}])

        [[record]] = await store.list_records(OWNER_ID, PURCHASE_ORDERS)
        record.values["A"] = 99

        [[again]] = await store.list_records(OWNER_ID, PURCHASE_ORDERS)
        assert again.get("A") == 1


class TestSupabaseRecordStore:

    @pytest.mark.asyncio
    async def test_list_records(self):
        rows = [{"batch_id": "b1", "row_index": 2, "data": {"Supplier Name": "TechCorp"}}]
        with patch("core.services.record_store.SupabaseClient.fetch_record_rows", return_value=rows) as fetch:
            batches = await SupabaseRecordStore().list_records(OWNER_ID, PURCHASE_ORDERS)

        fetch.assert_called_once_with(OWNER_ID, PURCHASE_ORDERS)
        assert batches[0][0].get("Supplier Name") == "TechCorp"

    @pytest.mark.asyncio
    async def test_list_records_failure(self):
        error = SupabaseClientError("Failed to fetch purchase_orders records: timeout", code="FETCH_RECORDS_FAILED")
        with patch("core.services.record_store.SupabaseClient.fetch_record_rows", side_effect=error):
            with pytest.raises(RecordStoreError) as exc_info:
                await SupabaseRecordStore().list_records(OWNER_ID, PURCHASE_ORDERS)
        assert exc_info.value.code == "FETCH_RECORDS_FAILED"

    @pytest.mark.asyncio
    async def test_put_record(self):
        with patch("core.services.record_store.SupabaseClient.upsert_record") as upsert:
            await SupabaseRecordStore().put_record("generated_purchase_orders", "PO-1_1", {"quantity": 3})
        upsert.assert_called_once_with("generated_purchase_orders", "PO-1_1", {"quantity": 3})


# =============================================================================
# Artifact Store
# =============================================================================

class TestArtifacts:

    def test_csv_has_no_index(self):
        content = dataframe_to_csv_bytes(pd.DataFrame({"Tuote": ["Kattotiili"], "Hinta": [2.15]}))
        assert content.decode("utf-8").splitlines() == ["Tuote,Hinta", "Kattotiili,2.15"]

    @pytest.mark.asyncio
    async def test_supabase_upload(self):
        with patch(
            "core.services.storage_service.SupabaseClient.upload_file",
            return_value="https://cdn.example/po.csv",
        ) as upload:
            handle = await SupabaseArtifactStore(bucket="artifacts").save("po/1.csv", b"a,b")

        assert handle == "https://cdn.example/po.csv"
        upload.assert_called_once_with("artifacts", "po/1.csv", b"a,b", "text/csv")

    @pytest.mark.asyncio
    async def test_supabase_upload_failure(self):
        error = SupabaseClientError("Storage upload failed: bucket missing")
        with patch("core.services.storage_service.SupabaseClient.upload_file", side_effect=error):
            with pytest.raises(StorageUploadError) as exc_info:
                await SupabaseArtifactStore(bucket="artifacts").save("po/1.csv", b"a,b")
        assert exc_info.value.details["path"] == "po/1.csv"


# =============================================================================
# Prompt Service
# =============================================================================

class TestPromptHelpers:

    def test_latest_version_with_text(self):
        versions = [
            {"version": 1, "system_prompt": "v1"},
            {"version": 3, "system_prompt": "  "},
            {"version": 2, "system_prompt": "v2"},
        ]
        assert latest_prompt_version(versions)["system_prompt"] == "v2"
        assert latest_prompt_version([]) is None

    def test_knowledge_context(self):
        context = build_knowledge_context([
            {"name": "Ostopolitiikka.md", "content": "Orders over 5000 need approval"},
            {"name": "empty.md", "content": ""},
        ])
        assert context.startswith("# INTERNAL KNOWLEDGE BASE")
        assert "## Document: Ostopolitiikka.md" in context
        assert "empty.md" not in context
        assert build_knowledge_context([]) == ""


class TestPromptService:

    @pytest.mark.asyncio
    async def test_build_prime(self):
        prompt_loader = MagicMock(return_value=[{"version": 4, "system_prompt": "You help buyers", "ai_model": "gpt-4o"}])
        service = PromptService(prompt_loader=prompt_loader, knowledge_loader=MagicMock(return_value=[]))

        prime = await service.build_prime(OWNER_ID, "purchaser")

        prompt_loader.assert_called_once_with(OWNER_ID, "purchaser")
        assert prime.instructions == "You help buyers"
        assert prime.prompt_version == 4
        assert prime.ai_model == "gpt-4o"

    @pytest.mark.asyncio
    async def test_unknown_workspace(self):
        service = PromptService(prompt_loader=MagicMock(), knowledge_loader=MagicMock())
        with pytest.raises(ValueError):
            await service.build_prime(OWNER_ID, "warehouse")

    @pytest.mark.asyncio
    async def test_prompt_load_failure_is_transient(self):
        service = PromptService(
            prompt_loader=MagicMock(side_effect=SupabaseClientError("Failed to fetch prompts")),
            knowledge_loader=MagicMock(return_value=[]),
        )
        with pytest.raises(PromptStoreError) as exc_info:
            await service.build_prime(OWNER_ID, "invoicer")
        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "PROMPT_STORE_UNAVAILABLE"
        assert not isinstance(exc_info.value, MissingPrimeError)

    @pytest.mark.asyncio
    async def test_no_usable_prompt(self):
        service = PromptService(
            prompt_loader=MagicMock(return_value=[{"version": 2, "system_prompt": "  "}]),
            knowledge_loader=MagicMock(return_value=[]),
        )
        with pytest.raises(MissingPrimeError) as exc_info:
            await service.build_prime(OWNER_ID, "invoicer")
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_knowledge_failure_is_not_fatal(self):
        service = PromptService(
            prompt_loader=MagicMock(return_value=[{"version": 1, "system_prompt": "You help"}]),
            knowledge_loader=MagicMock(side_effect=SupabaseClientError("Failed to fetch documents")),
        )
        prime = await service.build_prime(OWNER_ID, "purchaser")
        assert prime.instructions == "You help"
        assert prime.documents_used == []
