# =============================================================================
# core/services/order_service.py - Purchase Order Creation
# =============================================================================
# Backs the createPurchaseOrder function:
#
#   1. Validate the header (order number, supplier, buyer, dates)
#   2. Validate rows one by one; bad rows are rejected and reported, the
#      rest go through
#   3. Write the order as a CSV artifact (pandas)
#   4. Store each row as its own record, id "{orderNumber}_{rowIndex}"
#
# The caller is a dialogue turn that must always have something to say, so
# every failure comes back as CreateOrderResult(success=False, message=...).
# =============================================================================

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Mapping

import pandas as pd
from pydantic import ValidationError

from core.models.orders import CreateOrderResult, OrderRow, PurchaseOrderHeader, RejectedRow
from core.services.record_store import GENERATED_ORDERS_COLLECTION, RecordStore
from core.services.storage_service import CSV_CONTENT_TYPE, ArtifactStore, dataframe_to_csv_bytes
from lib.utils import mask_identifier

logger = logging.getLogger(__name__)

# Artifact columns use the same headers as uploaded purchase order sheets
ARTIFACT_COLUMNS = [
    "Order Number",
    "Supplier Name",
    "Buyer Name",
    "Order Date",
    "Receive By",
    "Row",
    "Description",
    "Quantity",
    "Unit Price",
    "Row Total",
    "Notes",
]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _validation_reason(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "; ".join(parts)


def validate_rows(raw_rows: Any) -> tuple[list[tuple[int, OrderRow]], list[RejectedRow]]:
    """
    Split raw rows into valid (row number, row) pairs and rejections.

    Row numbers are 1-based positions in the request.
    """
    accepted: list[tuple[int, OrderRow]] = []
    rejected: list[RejectedRow] = []

    for row_number, raw in enumerate(raw_rows or [], start=1):
        if not isinstance(raw, Mapping):
            rejected.append(RejectedRow(row_number=row_number, reason="Row is not an object"))
            continue
        try:
            accepted.append((row_number, OrderRow.model_validate(raw)))
        except ValidationError as e:
            rejected.append(RejectedRow(row_number=row_number, reason=_validation_reason(e)))

    return accepted, rejected


def build_order_dataframe(header: PurchaseOrderHeader, rows: list[tuple[int, OrderRow]]) -> pd.DataFrame:
    """One line per accepted row, header fields repeated on each."""
    data = [
        {
            "Order Number": header.order_number,
            "Supplier Name": header.supplier_name,
            "Buyer Name": header.buyer_name,
            "Order Date": header.order_date,
            "Receive By": header.receive_by_date or "",
            "Row": row_number,
            "Description": row.product_description,
            "Quantity": row.quantity,
            "Unit Price": row.unit_price,
            "Row Total": round(row.row_total, 2),
            "Notes": row.notes or "",
        }
        for row_number, row in rows
    ]
    return pd.DataFrame(data, columns=ARTIFACT_COLUMNS)


class OrderService:
    """
    Creates purchase orders from function-call arguments.

    Example:
        service = OrderService(store, artifacts)
        result = await service.create_purchase_order(owner_id, {
            "orderNumber": "PO-2024-001",
            "supplierName": "Huolto-Karhu Oy",
            "buyerName": "Erika",
            "orderDate": "2024-06-18",
            "rows": [{"productDescription": "LED", "quantity": 3, "unitPrice": 10}],
        })
        result.total_value  # 30.0
    """

    def __init__(
        self,
        store: RecordStore,
        artifacts: ArtifactStore,
        collection_key: str = GENERATED_ORDERS_COLLECTION,
    ):
        self.store = store
        self.artifacts = artifacts
        self.collection_key = collection_key

    async def create_purchase_order(self, owner_id: str, payload: Mapping[str, Any]) -> CreateOrderResult:
        """
        Validate, serialize and persist a purchase order. Never raises.
        """
        try:
            header = PurchaseOrderHeader.model_validate(dict(payload))
        except ValidationError as e:
            reason = _validation_reason(e)
            logger.warning(f"Rejected purchase order header: {reason}")
            return CreateOrderResult(success=False, message=f"Invalid purchase order: {reason}")

        raw_rows = payload.get("rows")
        if not isinstance(raw_rows, list) or not raw_rows:
            return CreateOrderResult(
                success=False,
                order_number=header.order_number,
                message="A purchase order needs at least one product row",
            )

        accepted, rejected = validate_rows(raw_rows)
        if rejected:
            logger.warning(f"Order {header.order_number}: rejected {len(rejected)} of {len(raw_rows)} rows")
        if not accepted:
            return CreateOrderResult(
                success=False,
                order_number=header.order_number,
                rejected_rows=rejected,
                message="None of the rows were valid; no purchase order was created",
            )

        total_value = round(sum(row.row_total for _, row in accepted), 2)
        file_name = f"purchase_order_{_UNSAFE_FILENAME_CHARS.sub('_', header.order_number)}.csv"
        path = f"purchase_orders/{owner_id}/{file_name}"

        try:
            content = dataframe_to_csv_bytes(build_order_dataframe(header, accepted))
            handle = await self.artifacts.save(path, content, CSV_CONTENT_TYPE)

            created_at = datetime.now(timezone.utc).isoformat()
            for row_number, row in accepted:
                await self.store.put_record(
                    self.collection_key,
                    f"{header.order_number}_{row_number}",
                    self._row_record(owner_id, header, row_number, row, created_at),
                )
        except Exception as e:
            logger.exception(f"Failed to create purchase order {header.order_number}: {e}")
            return CreateOrderResult(
                success=False,
                order_number=header.order_number,
                rejected_rows=rejected,
                message=f"Could not save purchase order {header.order_number}: {e}",
            )

        logger.info(
            f"Created purchase order {header.order_number} for {mask_identifier(owner_id)}: "
            f"{len(accepted)} rows, total {total_value}"
        )

        message = f"Purchase order {header.order_number} created with {len(accepted)} rows, total {total_value:.2f}"
        if rejected:
            message += f"; {len(rejected)} row(s) rejected"

        return CreateOrderResult(
            success=True,
            message=message,
            order_number=header.order_number,
            rows_added=len(accepted),
            total_value=total_value,
            artifact_handle=handle,
            file_name=file_name,
            rejected_rows=rejected,
        )

    @staticmethod
    def _row_record(
        owner_id: str,
        header: PurchaseOrderHeader,
        row_number: int,
        row: OrderRow,
        created_at: str,
    ) -> dict[str, Any]:
        return {
            "ownerId": owner_id,
            "orderNumber": header.order_number,
            "supplierName": header.supplier_name,
            "buyerName": header.buyer_name,
            "orderDate": header.order_date,
            "receiveByDate": header.receive_by_date,
            "rowIndex": row_number,
            "productDescription": row.product_description,
            "quantity": row.quantity,
            "unitPrice": row.unit_price,
            "rowTotal": round(row.row_total, 2),
            "notes": row.notes,
            "createdAt": created_at,
        }
