# =============================================================================
# core/models/orders.py - Purchase Order Creation Schemas
# =============================================================================
# Models for the createPurchaseOrder function:
# - PurchaseOrderHeader: order-level fields the model must supply
# - OrderRow: one product/service line, validated row by row
# - CreateOrderResult: what the dialogue gets back (never an exception)
# =============================================================================

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PurchaseOrderHeader(_CamelModel):
    """
    Order-level fields.

    Example:
        {
            "orderNumber": "PO-2024-001",
            "supplierName": "Huolto-Karhu Oy",
            "buyerName": "Erika Sundström",
            "orderDate": "2024-06-18",
            "receiveByDate": "2024-07-01"
        }
    """

    order_number: str = Field(..., min_length=1, max_length=100)
    supplier_name: str = Field(..., min_length=1)
    buyer_name: str = Field(..., min_length=1)
    order_date: str = Field(..., min_length=1, description="YYYY-MM-DD")
    receive_by_date: str | None = Field(default=None, description="YYYY-MM-DD")


class OrderRow(_CamelModel):
    """One line of a purchase order. Quantity and unit price must be positive."""

    product_description: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., gt=0)
    notes: str | None = None

    @property
    def row_total(self) -> float:
        return self.quantity * self.unit_price


class RejectedRow(_CamelModel):
    """A row that failed validation, with the reason."""

    row_number: int
    reason: str


class CreateOrderResult(_CamelModel):
    """
    Outcome of createPurchaseOrder.

    Failures are reported with success=False and a message; the caller is a
    dialogue turn that always needs something to say.
    """

    success: bool
    message: str
    order_number: str | None = None
    rows_added: int = 0
    total_value: float = 0.0
    artifact_handle: str | None = None
    file_name: str | None = None
    rejected_rows: list[RejectedRow] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
