# =============================================================================
# core/search/purchase_orders.py - Purchase Order Search
# =============================================================================
# Searches the owner's uploaded purchase order sheets.
#
# Criteria (all optional, AND-combined):
#   supplierName, productDescription, buyerName  -> substring, ignore case
#   dateFrom, dateTo                             -> "Receive By" date range
# =============================================================================

from __future__ import annotations

from core.models.records import PurchaseOrderCriteria
from core.search.base import SearchService
from core.search.filter_engine import DateRangeFilter, Filter, SubstringFilter
from core.services.record_store import PURCHASE_ORDERS

PURCHASE_ORDER_ALIASES: dict[str, list[str]] = {
    "supplier": ["Supplier Name"],
    "description": ["Description"],
    "receive_by": ["Receive By"],
    "buyer": ["Buyer Name"],
}


class PurchaseOrderSearchService(SearchService):
    """Search over purchase order rows."""

    domain = PURCHASE_ORDERS
    label = "purchase orders"
    aliases = PURCHASE_ORDER_ALIASES
    criteria_model = PurchaseOrderCriteria

    def build_filters(self, criteria: PurchaseOrderCriteria) -> list[Filter]:
        active = criteria.active_filters()
        filters: list[Filter] = []

        if "supplier_name" in active:
            filters.append(SubstringFilter("supplierName", "supplier", active["supplier_name"]))
        if "product_description" in active:
            filters.append(SubstringFilter("productDescription", "description", active["product_description"]))
        if "date_from" in active or "date_to" in active:
            filters.append(DateRangeFilter(
                "receiveByDate",
                "receive_by",
                date_from=active.get("date_from"),
                date_to=active.get("date_to"),
            ))
        if "buyer_name" in active:
            filters.append(SubstringFilter("buyerName", "buyer", active["buyer_name"]))

        return filters
