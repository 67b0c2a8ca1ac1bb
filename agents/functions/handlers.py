# =============================================================================
# agents/functions/handlers.py - Function Handlers
# =============================================================================
# One handler per declared function. Handlers translate the model's raw
# arguments into service calls and shape the result for the model, adding a
# short instruction on how to present it.
# =============================================================================

from __future__ import annotations

from typing import Any

from agents.functions.declarations import (
    CREATE_PURCHASE_ORDER,
    SEARCH_INVOICES,
    SEARCH_PRICE_LIST,
    SEARCH_PURCHASE_ORDERS,
)
from agents.functions.registry import FunctionContext, register
from core.models.records import SearchResult

PRESENT_RECORDS = (
    "Present these records to the user clearly, with the specific values from "
    "each record (names, products, amounts, dates). Do not just say you are "
    "checking; show what was found. If nothing was found, say so."
)
PRESENT_ORDER = (
    "Tell the user whether the purchase order was created. On success show "
    "the order number, supplier, total value and the download link."
)


def _search_payload(result: SearchResult, max_records: int | None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": True,
        "instruction": PRESENT_RECORDS,
        **result.to_payload(max_records=max_records),
    }

    diagnostics = result.diagnostics
    if diagnostics.get("reason"):
        payload["message"] = diagnostics["reason"]

    skipped = [
        s for batch in diagnostics.get("batches", []) for s in batch.get("skippedFilters", [])
    ]
    if skipped:
        payload["skippedFilters"] = skipped
    return payload


@register(SEARCH_PURCHASE_ORDERS)
async def search_purchase_orders(ctx: FunctionContext, args: dict[str, Any]) -> dict[str, Any]:
    result = await ctx.purchase_orders.search(ctx.owner_id, args)
    return _search_payload(result, ctx.max_records)


@register(SEARCH_INVOICES)
async def search_invoices(ctx: FunctionContext, args: dict[str, Any]) -> dict[str, Any]:
    result = await ctx.invoices.search(ctx.owner_id, args)
    return _search_payload(result, ctx.max_records)


@register(SEARCH_PRICE_LIST)
async def search_price_list(ctx: FunctionContext, args: dict[str, Any]) -> dict[str, Any]:
    result = await ctx.price_list.search(ctx.owner_id, args)
    return _search_payload(result, ctx.max_records)


@register(CREATE_PURCHASE_ORDER)
async def create_purchase_order(ctx: FunctionContext, args: dict[str, Any]) -> dict[str, Any]:
    result = await ctx.orders.create_purchase_order(ctx.owner_id, args)
    return {"instruction": PRESENT_ORDER, **result.to_payload()}
