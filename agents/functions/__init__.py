# =============================================================================
# agents/functions/ - Model-Callable Functions
# =============================================================================
# - declarations.py: names, descriptions and JSON schemas shown to the model
# - registry.py: name -> handler registry and the per-session dispatcher
# - handlers.py: the handlers themselves (imported here to register them)
#
# Usage:
#   from agents.functions import FunctionRegistry, FunctionContext
#   registry = FunctionRegistry(context, allowed=WORKSPACE_FUNCTIONS["purchaser"])
#   payload = await registry.execute(call)
# =============================================================================

from agents.functions.declarations import (
    CREATE_PURCHASE_ORDER,
    DECLARATIONS,
    SEARCH_INVOICES,
    SEARCH_PRICE_LIST,
    SEARCH_PURCHASE_ORDERS,
    WORKSPACE_FUNCTIONS,
    FunctionDeclaration,
    declarations_for_workspace,
)
from agents.functions.registry import (
    REGISTRY,
    UNKNOWN_FUNCTION,
    FunctionContext,
    FunctionRegistry,
    get_handler,
    list_functions,
    register,
)

# Import handlers to register them
from agents.functions import handlers

__all__ = [
    "CREATE_PURCHASE_ORDER",
    "DECLARATIONS",
    "SEARCH_INVOICES",
    "SEARCH_PRICE_LIST",
    "SEARCH_PURCHASE_ORDERS",
    "WORKSPACE_FUNCTIONS",
    "FunctionDeclaration",
    "declarations_for_workspace",
    "REGISTRY",
    "UNKNOWN_FUNCTION",
    "FunctionContext",
    "FunctionRegistry",
    "get_handler",
    "list_functions",
    "register",
    "handlers",
]
