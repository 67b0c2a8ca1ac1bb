# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains the schemas shared by services and the API:
# - records.py: loose records, search criteria, search results
# - orders.py: purchase order creation input and result
# - session.py: chat session lifecycle and API schemas
# - chat.py: chat request/reply schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Record Models - spreadsheet rows and searches
# -----------------------------------------------------------------------------
from .records import (
    InvoiceCriteria,
    LooseRecord,
    PriceListCriteria,
    PurchaseOrderCriteria,
    SearchCriteria,
    SearchResult,
)

# -----------------------------------------------------------------------------
# Order Models - createPurchaseOrder
# -----------------------------------------------------------------------------
from .orders import (
    CreateOrderResult,
    OrderRow,
    PurchaseOrderHeader,
    RejectedRow,
)

# -----------------------------------------------------------------------------
# Session Models - chat session lifecycle
# -----------------------------------------------------------------------------
from .session import (
    SessionCreate,
    SessionResponse,
    SessionState,
)

# -----------------------------------------------------------------------------
# Chat Models - conversational interface
# -----------------------------------------------------------------------------
from .chat import (
    ChatReply,
    ChatRequest,
)

__all__ = [
    # Records
    "InvoiceCriteria",
    "LooseRecord",
    "PriceListCriteria",
    "PurchaseOrderCriteria",
    "SearchCriteria",
    "SearchResult",
    # Orders
    "CreateOrderResult",
    "OrderRow",
    "PurchaseOrderHeader",
    "RejectedRow",
    # Session
    "SessionCreate",
    "SessionResponse",
    "SessionState",
    # Chat
    "ChatReply",
    "ChatRequest",
]
