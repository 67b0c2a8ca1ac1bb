# =============================================================================
# core/search/ - Heuristic Tabular Search
# =============================================================================
# Schema-agnostic filtering over spreadsheet-derived records:
# - date_parser.py: textual layouts and spreadsheet serial dates
# - field_resolver.py: logical field -> header via ordered aliases
# - filter_engine.py: AND-combined substring/date/number filters
# - base.py: SearchService flow shared by the domain searches
# - purchase_orders.py, invoices.py, price_list.py: domain searches
# =============================================================================

from core.search.base import SearchError, SearchService
from core.search.invoices import InvoiceSearchService
from core.search.price_list import PriceListSearchService
from core.search.purchase_orders import PurchaseOrderSearchService

__all__ = [
    "SearchError",
    "SearchService",
    "PurchaseOrderSearchService",
    "InvoiceSearchService",
    "PriceListSearchService",
]
