# =============================================================================
# agents/functions/declarations.py - Function Declarations
# =============================================================================
# What the model is told it can call. Names are camelCase because that is
# what the model sees and echoes back; handlers are dispatched on the exact
# name (see registry.py).
#
# Parameter schemas are plain JSON schema dicts. Argument names match the
# camelCase aliases of the criteria models in core/models/.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SEARCH_PURCHASE_ORDERS = "searchPurchaseOrders"
SEARCH_INVOICES = "searchInvoices"
SEARCH_PRICE_LIST = "searchPriceList"
CREATE_PURCHASE_ORDER = "createPurchaseOrder"


@dataclass(frozen=True)
class FunctionDeclaration:
    """A function the model may call."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_openai_tool(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def _string(description: str) -> dict[str, str]:
    return {"type": "string", "description": description}


def _number(description: str) -> dict[str, str]:
    return {"type": "number", "description": description}


SEARCH_PURCHASE_ORDERS_DECLARATION = FunctionDeclaration(
    name=SEARCH_PURCHASE_ORDERS,
    description=(
        "Search the user's uploaded purchase orders and show the matching rows. "
        "All parameters are optional and combine with AND; text matches are "
        "case-insensitive partial matches. Present the actual records found "
        "(supplier, product, price, dates), not just a summary."
    ),
    parameters={
        "type": "object",
        "properties": {
            "supplierName": _string("Supplier or contractor name, or part of it (e.g. 'Huolto-Karhu')"),
            "productDescription": _string("Product or service description, or part of it (e.g. 'Kattoremontti')"),
            "dateFrom": _string("Earliest 'Receive By' date, YYYY-MM-DD"),
            "dateTo": _string("Latest 'Receive By' date, YYYY-MM-DD (inclusive)"),
            "buyerName": _string("Name of the person who placed the order, or part of it"),
        },
    },
)

SEARCH_INVOICES_DECLARATION = FunctionDeclaration(
    name=SEARCH_INVOICES,
    description=(
        "Search the user's uploaded invoices and show the matching rows. All "
        "parameters are optional and combine with AND. Show amounts, due dates, "
        "payment status and invoice numbers from the results."
    ),
    parameters={
        "type": "object",
        "properties": {
            "customerName": _string("Customer name or part of it"),
            "serviceDescription": _string("Service or product description or part of it"),
            "invoiceDateFrom": _string("Earliest invoice date, YYYY-MM-DD"),
            "invoiceDateTo": _string("Latest invoice date, YYYY-MM-DD (inclusive)"),
            "dueDateFrom": _string("Earliest due date, YYYY-MM-DD"),
            "dueDateTo": _string("Latest due date, YYYY-MM-DD (inclusive)"),
            "approverName": _string("Name of the approver or part of it"),
            "paymentStatus": _string("Payment status, e.g. 'Paid', 'Pending', 'Overdue'"),
            "invoiceNumber": _string("Invoice number or part of it"),
            "amountFrom": _number("Minimum invoice amount"),
            "amountTo": _number("Maximum invoice amount"),
        },
    },
)

SEARCH_PRICE_LIST_DECLARATION = FunctionDeclaration(
    name=SEARCH_PRICE_LIST,
    description=(
        "Look up products and prices in the user's price lists. At least one "
        "filter besides limit is required; a search without filters returns "
        "nothing."
    ),
    parameters={
        "type": "object",
        "properties": {
            "productName": _string("Product name or part of it (e.g. 'LED')"),
            "priceListName": _string("Price list name or part of it"),
            "priceListSupplier": _string("Supplier of the price list or part of it"),
            "minPrice": _number("Minimum sales price"),
            "maxPrice": _number("Maximum sales price"),
            "limit": {
                "type": "integer",
                "description": "Maximum number of rows to return (default 10, max 100)",
                "minimum": 1,
                "maximum": 100,
            },
        },
    },
)

CREATE_PURCHASE_ORDER_DECLARATION = FunctionDeclaration(
    name=CREATE_PURCHASE_ORDER,
    description=(
        "Create a purchase order with one or more product rows and produce a "
        "downloadable file. Use when the user asks to create, write or "
        "generate a purchase order."
    ),
    parameters={
        "type": "object",
        "properties": {
            "orderNumber": _string("Unique order number, e.g. 'PO-2024-001'"),
            "supplierName": _string("Supplier name"),
            "buyerName": _string("Person responsible for the order"),
            "orderDate": _string("Order date, YYYY-MM-DD"),
            "receiveByDate": _string("Expected delivery date, YYYY-MM-DD (optional)"),
            "rows": {
                "type": "array",
                "description": "Product or service rows",
                "items": {
                    "type": "object",
                    "properties": {
                        "productDescription": _string("Product or service description"),
                        "quantity": _number("Quantity, greater than zero"),
                        "unitPrice": _number("Price per unit in euros, greater than zero"),
                        "notes": _string("Additional notes for this row (optional)"),
                    },
                    "required": ["productDescription", "quantity", "unitPrice"],
                },
            },
        },
        "required": ["orderNumber", "supplierName", "buyerName", "orderDate", "rows"],
    },
)

DECLARATIONS: dict[str, FunctionDeclaration] = {
    d.name: d
    for d in (
        SEARCH_PURCHASE_ORDERS_DECLARATION,
        SEARCH_INVOICES_DECLARATION,
        SEARCH_PRICE_LIST_DECLARATION,
        CREATE_PURCHASE_ORDER_DECLARATION,
    )
}

# Functions offered in each workspace
WORKSPACE_FUNCTIONS: dict[str, list[str]] = {
    "purchaser": [SEARCH_PURCHASE_ORDERS, SEARCH_PRICE_LIST, CREATE_PURCHASE_ORDER],
    "invoicer": [SEARCH_PURCHASE_ORDERS, SEARCH_INVOICES],
}


def declarations_for_workspace(workspace: str) -> list[FunctionDeclaration]:
    """
    Declarations for a workspace, in a stable order.

    Raises:
        KeyError: If the workspace is unknown
    """
    return [DECLARATIONS[name] for name in WORKSPACE_FUNCTIONS[workspace]]
