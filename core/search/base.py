# =============================================================================
# core/search/base.py - Search Service Base
# =============================================================================
# Shared flow for the record searches the assistant can call:
#
#   1. Load every upload batch for the owner and domain (never merged)
#   2. Build filters from the criteria (subclass)
#   3. Resolve headers per batch from its first record, run the FilterEngine
#   4. Post-process (subclass hook, e.g. price list limit)
#   5. Return a SearchResult with timing and diagnostics
#
# Subclasses only declare WHAT to filter: domain, alias table, criteria model
# and build_filters(). Store failures become SearchError; bad data never does.
# =============================================================================

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, ClassVar, Mapping

from core.models.records import LooseRecord, SearchCriteria, SearchResult
from core.search.field_resolver import FieldResolver
from core.search.filter_engine import Filter, FilterEngine
from core.services.record_store import RecordStore, RecordStoreError
from lib.utils import ApplicationError, mask_identifier, new_request_id

logger = logging.getLogger(__name__)


class SearchError(ApplicationError):
    """Raised when records cannot be loaded for a search."""

    status_code = 503

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "SEARCH_ERROR")
        super().__init__(message, **kwargs)


class SearchService(ABC):
    """
    Base class for domain searches.

    Example:
        service = PurchaseOrderSearchService(store)
        result = await service.search(owner_id, {"supplierName": "Huolto"})
        result.total_count  # 1
    """

    domain: ClassVar[str]
    label: ClassVar[str] = "records"
    aliases: ClassVar[dict[str, list[str]]] = {}
    criteria_model: ClassVar[type[SearchCriteria]] = SearchCriteria

    def __init__(self, store: RecordStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Subclass hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def build_filters(self, criteria: SearchCriteria) -> list[Filter]:
        """Filters for the criteria that are present."""

    def refusal_reason(self, criteria: SearchCriteria) -> str | None:
        """Return a reason to answer with no records without loading anything."""
        return None

    def finalize(self, records: list[LooseRecord], criteria: SearchCriteria) -> list[LooseRecord]:
        return records

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def parse_criteria(self, criteria: SearchCriteria | Mapping[str, Any] | None) -> SearchCriteria:
        """Accept a criteria model or the raw camelCase arguments of a function call."""
        if isinstance(criteria, self.criteria_model):
            return criteria
        if isinstance(criteria, SearchCriteria):
            return self.criteria_model.model_validate(criteria.model_dump())
        return self.criteria_model.model_validate(dict(criteria or {}))

    async def load_batches(self, owner_id: str) -> list[list[LooseRecord]]:
        """
        Every non-empty batch for the owner, with row indexes filled in.

        Raises:
            SearchError: If the store cannot be read
        """
        try:
            batches = await self.store.list_records(owner_id, self.domain)
        except RecordStoreError as e:
            raise SearchError(
                f"Could not load {self.label}: {e.message}",
                suggestion=e.suggestion,
                details={"domain": self.domain, **e.details},
            ) from e

        loaded = []
        for batch in batches:
            if not batch:
                continue
            for position, record in enumerate(batch):
                if not record.row_index:
                    # Sheet row numbers: row 1 holds the headers
                    record.row_index = position + 2
            loaded.append(batch)
        return loaded

    async def search(
        self,
        owner_id: str,
        criteria: SearchCriteria | Mapping[str, Any] | None = None,
    ) -> SearchResult:
        """
        Run the search.

        Args:
            owner_id: Owner whose uploads are searched
            criteria: Criteria model or raw function-call arguments

        Returns:
            SearchResult; empty when there is nothing to search

        Raises:
            SearchError: If the record store fails
            pydantic.ValidationError: If the criteria are malformed
        """
        started = time.perf_counter()
        request_id = new_request_id()
        criteria = self.parse_criteria(criteria)
        active = criteria.active_filters()

        logger.info(
            f"[{request_id}] {self.label} search for {mask_identifier(owner_id)}: {active or 'no filters'}"
        )

        refusal = self.refusal_reason(criteria)
        if refusal:
            logger.info(f"[{request_id}] {self.label} search refused: {refusal}")
            return self._result([], criteria, started, {"status": "NO_FILTERS", "reason": refusal})

        batches = await self.load_batches(owner_id)
        if not batches:
            logger.info(f"[{request_id}] No {self.label} uploaded")
            return self._result([], criteria, started, {"status": "NO_DATA"})

        filters = self.build_filters(criteria)
        matched: list[LooseRecord] = []
        batch_diagnostics = []
        for batch in batches:
            resolver = FieldResolver(aliases=self.aliases, headers=batch[0].columns)
            kept, diagnostics = FilterEngine(resolver).apply(batch, filters)
            matched.extend(kept)
            batch_diagnostics.append(diagnostics.to_dict())
            logger.debug(f"[{request_id}] Batch diagnostics: {diagnostics.to_dict()}")

        records = self.finalize(matched, criteria)
        result = self._result(
            records,
            criteria,
            started,
            {
                "status": "SUCCESS",
                "batchCount": len(batches),
                "matchedCount": len(matched),
                "batches": batch_diagnostics,
            },
        )
        logger.info(
            f"[{request_id}] {self.label} search returned {result.total_count} records "
            f"in {result.elapsed_ms:.1f}ms"
        )
        return result

    async def available_fields(self, owner_id: str) -> list[str]:
        """Column headers across the owner's batches, first seen first. Empty on failure."""
        try:
            batches = await self.load_batches(owner_id)
        except SearchError as e:
            logger.error(f"Failed to get available {self.label} fields: {e}")
            return []

        fields: list[str] = []
        for batch in batches:
            for column in batch[0].columns:
                if column not in fields:
                    fields.append(column)
        return fields

    async def sample_records(self, owner_id: str, max_rows: int = 5) -> list[LooseRecord]:
        """First rows of the owner's data, unfiltered. Empty on failure."""
        try:
            batches = await self.load_batches(owner_id)
        except SearchError as e:
            logger.error(f"Failed to get sample {self.label}: {e}")
            return []

        sample: list[LooseRecord] = []
        for batch in batches:
            sample.extend(batch[: max_rows - len(sample)])
            if len(sample) >= max_rows:
                break
        return sample

    def _result(
        self,
        records: list[LooseRecord],
        criteria: SearchCriteria,
        started: float,
        diagnostics: dict[str, Any],
    ) -> SearchResult:
        return SearchResult(
            records=records,
            criteria_echo=criteria.echo(),
            executed_at=datetime.now(timezone.utc),
            elapsed_ms=(time.perf_counter() - started) * 1000,
            diagnostics=diagnostics,
        )
