# =============================================================================
# core/search/price_list.py - Price List Search
# =============================================================================
# Searches the owner's price lists (Finnish or English headers).
#
# Unlike the other searches, a price list search with no filter returns no
# records: price lists run to thousands of rows and the model asking for
# "everything" is never useful. `limit` caps the result and does not count
# as a filter.
# =============================================================================

from __future__ import annotations

from core.models.records import LooseRecord, PriceListCriteria
from core.search.base import SearchService
from core.search.filter_engine import Filter, NumberRangeFilter, SubstringFilter
from core.services.record_store import PRICE_LIST

PRICE_LIST_ALIASES: dict[str, list[str]] = {
    "product": ["Product Name", "Product", "Tuote", "Tuotenimi"],
    "price_list": ["Price List Name", "Price List", "Hinnasto"],
    "supplier": ["Price List Supplier", "Supplier", "Toimittaja"],
    "price": ["Sales Price", "Price", "Myyntihinta"],
}


class PriceListSearchService(SearchService):
    """Search over price list rows, capped at `limit` results."""

    domain = PRICE_LIST
    label = "price list"
    aliases = PRICE_LIST_ALIASES
    criteria_model = PriceListCriteria

    def refusal_reason(self, criteria: PriceListCriteria) -> str | None:
        if not criteria.active_filters():
            return "price list search needs at least one filter besides limit"
        return None

    def build_filters(self, criteria: PriceListCriteria) -> list[Filter]:
        active = criteria.active_filters()
        filters: list[Filter] = []

        if "product_name" in active:
            filters.append(SubstringFilter("productName", "product", active["product_name"]))
        if "price_list_name" in active:
            filters.append(SubstringFilter("priceListName", "price_list", active["price_list_name"]))
        if "price_list_supplier" in active:
            filters.append(SubstringFilter("priceListSupplier", "supplier", active["price_list_supplier"]))
        if "min_price" in active or "max_price" in active:
            filters.append(NumberRangeFilter(
                "price",
                "price",
                minimum=active.get("min_price"),
                maximum=active.get("max_price"),
            ))

        return filters

    def finalize(self, records: list[LooseRecord], criteria: PriceListCriteria) -> list[LooseRecord]:
        return records[: criteria.limit]
