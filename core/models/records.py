# =============================================================================
# core/models/records.py - Record, Criteria & Search Result Schemas
# =============================================================================
# These models describe spreadsheet-derived records and how they are searched:
# - LooseRecord: one row of an uploaded sheet, columns vary per upload batch
# - PurchaseOrderCriteria / InvoiceCriteria / PriceListCriteria: sparse filters
# - SearchResult: filtered records plus timing and diagnostics
#
# Criteria accept the camelCase names the model uses in function calls
# ("supplierName") as well as the snake_case field names.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# A single cell value as it comes out of the upload pipeline
Scalar = Union[str, int, float, bool, None]

DEFAULT_PRICE_LIST_LIMIT = 10
MAX_PRICE_LIST_LIMIT = 100


# =============================================================================
# Loose Record
# =============================================================================

@dataclass
class LooseRecord:
    """
    One row of a formerly tabular dataset.

    Column names are whatever the uploaded sheet used, in sheet order.
    Nothing about the column set is assumed: `get()` returns None for a
    column the row does not have, so "field may be absent" is explicit.

    Example:
        record = LooseRecord({"Supplier Name": "Huolto-Karhu Oy"}, row_index=2)
        record.get("Supplier Name")   # "Huolto-Karhu Oy"
        record.get("Buyer Name")      # None
    """

    values: dict[str, Scalar] = field(default_factory=dict)
    row_index: int = 0

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any], row_index: int | None = None) -> "LooseRecord":
        """
        Build a record from a stored row dict.

        A "rowIndex" key in the row is used when no explicit index is given
        and is never kept as a data column.
        """
        values = {k: v for k, v in row.items() if k != "rowIndex"}
        if row_index is None:
            stored = row.get("rowIndex")
            row_index = stored if isinstance(stored, int) else 0
        return cls(values=values, row_index=row_index)

    def get(self, column: str) -> Scalar:
        """Value of a column, or None when the row has no such column."""
        return self.values.get(column)

    @property
    def columns(self) -> list[str]:
        return list(self.values.keys())

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the row index first, as the upload pipeline does."""
        return {"rowIndex": self.row_index, **self.values}


# =============================================================================
# Search Criteria
# =============================================================================

class SearchCriteria(BaseModel):
    """
    Base class for sparse search criteria.

    Every field is optional; an absent or blank field means "no constraint".
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def active_filters(self) -> dict[str, Any]:
        """
        Fields that actually constrain the search.

        Blank strings count as absent, matching how the model often sends "".
        """
        active = {}
        for name, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, str) and not value.strip():
                continue
            active[name] = value
        return active

    def echo(self) -> dict[str, Any]:
        """Criteria as received, in camelCase, for the result payload."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PurchaseOrderCriteria(SearchCriteria):
    """Filters for purchase order search. Dates filter the "Receive By" column."""

    supplier_name: str | None = Field(default=None, description="Supplier name or part of it")
    product_description: str | None = Field(default=None, description="Product/service description or part of it")
    date_from: str | None = Field(default=None, description="Receive-by date from (YYYY-MM-DD)")
    date_to: str | None = Field(default=None, description="Receive-by date to (YYYY-MM-DD)")
    buyer_name: str | None = Field(default=None, description="Buyer name or part of it")


class InvoiceCriteria(SearchCriteria):
    """Filters for invoice search."""

    customer_name: str | None = None
    service_description: str | None = None
    invoice_date_from: str | None = None
    invoice_date_to: str | None = None
    due_date_from: str | None = None
    due_date_to: str | None = None
    approver_name: str | None = None
    payment_status: str | None = None
    invoice_number: str | None = None
    amount_from: float | None = None
    amount_to: float | None = None


class PriceListCriteria(SearchCriteria):
    """
    Filters for price list search.

    `limit` only caps the result size; it is not a filter. A search with no
    filter at all returns nothing rather than dumping the whole price list.
    """

    product_name: str | None = None
    price_list_name: str | None = None
    price_list_supplier: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    limit: int = DEFAULT_PRICE_LIST_LIMIT

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, value: Any) -> int:
        """Out-of-range limits are clamped to 1..100; 0 or junk means the default."""
        try:
            limit = int(value)
        except (TypeError, ValueError, OverflowError):
            return DEFAULT_PRICE_LIST_LIMIT
        if limit <= 0:
            return DEFAULT_PRICE_LIST_LIMIT
        return min(limit, MAX_PRICE_LIST_LIMIT)

    def active_filters(self) -> dict[str, Any]:
        active = super().active_filters()
        active.pop("limit", None)
        return active


# =============================================================================
# Search Result
# =============================================================================

@dataclass
class SearchResult:
    """
    Result of one search call.

    Invariant: total_count == len(records), and records is a subset of the
    records that were loaded for the owner.
    """

    records: list[LooseRecord]
    criteria_echo: dict[str, Any]
    executed_at: datetime
    elapsed_ms: float
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def total_count(self) -> int:
        return len(self.records)

    def to_payload(self, max_records: int | None = None) -> dict[str, Any]:
        """
        Serialize for a function response.

        When max_records cuts the list, `truncated` is set and `totalCount`
        still reports the full match count.
        """
        records = self.records
        truncated = max_records is not None and len(records) > max_records
        if truncated:
            records = records[:max_records]

        payload: dict[str, Any] = {
            "records": [r.to_dict() for r in records],
            "totalCount": self.total_count,
            "searchCriteria": self.criteria_echo,
            "executedAt": self.executed_at.isoformat(),
            "processingTimeMs": round(self.elapsed_ms, 2),
        }
        if truncated:
            payload["truncated"] = True
            payload["returnedCount"] = len(records)
        return payload
