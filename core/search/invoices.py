# =============================================================================
# core/search/invoices.py - Invoice Search
# =============================================================================
# Searches the owner's uploaded sales invoice sheets. Invoice exports vary
# more than purchase orders, so most fields have several header aliases.
# =============================================================================

from __future__ import annotations

from core.models.records import InvoiceCriteria
from core.search.base import SearchService
from core.search.filter_engine import DateRangeFilter, Filter, NumberRangeFilter, SubstringFilter
from core.services.record_store import INVOICES

INVOICE_ALIASES: dict[str, list[str]] = {
    "customer": ["Customer Name", "Client Name"],
    "service": ["Service Description", "Description", "Service"],
    "invoice_date": ["Invoice Date", "Date"],
    "due_date": ["Due Date", "Payment Due"],
    "approver": ["Approver Name", "Approved By", "Approver"],
    "status": ["Payment Status", "Status"],
    "invoice_number": ["Invoice Number", "Invoice #", "Number"],
    "amount": ["Amount", "Invoice Amount", "Total"],
}

# (criteria field, function argument name, logical field)
_TEXT_FILTERS = [
    ("customer_name", "customerName", "customer"),
    ("service_description", "serviceDescription", "service"),
    ("approver_name", "approverName", "approver"),
    ("payment_status", "paymentStatus", "status"),
    ("invoice_number", "invoiceNumber", "invoice_number"),
]


class InvoiceSearchService(SearchService):
    """Search over sales invoice rows."""

    domain = INVOICES
    label = "invoices"
    aliases = INVOICE_ALIASES
    criteria_model = InvoiceCriteria

    def build_filters(self, criteria: InvoiceCriteria) -> list[Filter]:
        active = criteria.active_filters()
        filters: list[Filter] = []

        for key, name, logical_field in _TEXT_FILTERS:
            if key in active:
                filters.append(SubstringFilter(name, logical_field, str(active[key])))

        if "invoice_date_from" in active or "invoice_date_to" in active:
            filters.append(DateRangeFilter(
                "invoiceDate",
                "invoice_date",
                date_from=active.get("invoice_date_from"),
                date_to=active.get("invoice_date_to"),
            ))
        if "due_date_from" in active or "due_date_to" in active:
            filters.append(DateRangeFilter(
                "dueDate",
                "due_date",
                date_from=active.get("due_date_from"),
                date_to=active.get("due_date_to"),
            ))
        if "amount_from" in active or "amount_to" in active:
            filters.append(NumberRangeFilter(
                "amount",
                "amount",
                minimum=active.get("amount_from"),
                maximum=active.get("amount_to"),
            ))

        return filters
