# =============================================================================
# agents/functions/registry.py - Function Registry
# =============================================================================
# Maps function names (as the model sends them) to async handlers.
#
# Each handler takes (context, args) and returns a JSON-serializable dict that
# goes back to the model as the function response. Handlers are registered
# with the @register decorator.
#
# Example:
#   @register(SEARCH_INVOICES)
#   async def search_invoices(ctx: FunctionContext, args: dict) -> dict:
#       result = await ctx.invoices.search(ctx.owner_id, args)
#       return {"success": True, **result.to_payload()}
#
# FunctionRegistry.execute() never raises: an unknown name or a failing
# handler becomes {"success": False, "error": ...} so the dialogue continues.
# =============================================================================

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, TYPE_CHECKING

from lib.memory import FunctionCall, FunctionResponse
from lib.utils import ApplicationError

if TYPE_CHECKING:
    from core.search import InvoiceSearchService, PriceListSearchService, PurchaseOrderSearchService
    from core.services.order_service import OrderService

logger = logging.getLogger(__name__)

UNKNOWN_FUNCTION = "Unknown function"


@dataclass
class FunctionContext:
    """What a handler needs for one owner's session."""

    owner_id: str
    purchase_orders: "PurchaseOrderSearchService"
    invoices: "InvoiceSearchService"
    price_list: "PriceListSearchService"
    orders: "OrderService"
    max_records: int | None = None


# Type alias for handler functions
FunctionHandler = Callable[[FunctionContext, dict[str, Any]], Awaitable[dict[str, Any]]]

# Global registry mapping function name -> handler
REGISTRY: dict[str, FunctionHandler] = {}


def register(name: str):
    """
    Decorator to register a function handler.

    Usage:
        @register("searchPurchaseOrders")
        async def search_purchase_orders(ctx, args):
            ...
            return {"success": True, ...}
    """
    def decorator(func: FunctionHandler) -> FunctionHandler:
        REGISTRY[name] = func
        return func
    return decorator


def get_handler(name: str) -> FunctionHandler | None:
    """Handler for an exact function name, or None."""
    return REGISTRY.get(name)


def list_functions() -> list[str]:
    """List all registered function names."""
    return sorted(REGISTRY)


class FunctionRegistry:
    """
    Dispatches a session's function calls.

    Only the names in `allowed` are callable; anything else is answered as
    an unknown function, same as a name nobody registered.
    """

    def __init__(self, context: FunctionContext, allowed: Iterable[str] | None = None):
        self.context = context
        self.allowed = set(allowed) if allowed is not None else set(REGISTRY)

    def lookup(self, name: str) -> FunctionHandler | None:
        if name not in self.allowed:
            return None
        return get_handler(name)

    async def execute(self, call: FunctionCall) -> dict[str, Any]:
        """Run one call; always returns a response dict."""
        handler = self.lookup(call.name)
        if handler is None:
            logger.error(f"Unknown function called: {call.name}")
            return {"success": False, "error": UNKNOWN_FUNCTION}

        started = time.perf_counter()
        logger.info(f"Executing function {call.describe()}")
        try:
            result = await handler(self.context, dict(call.args))
        except ApplicationError as e:
            logger.warning(f"Function {call.name} failed: {e}")
            return {"success": False, "error": e.message}
        except Exception as e:
            logger.exception(f"Function {call.name} raised: {e}")
            return {"success": False, "error": str(e) or type(e).__name__}

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"Function {call.name} finished in {elapsed_ms:.1f}ms")
        return result

    async def execute_all(self, calls: Iterable[FunctionCall]) -> list[FunctionResponse]:
        """Run calls in order, one response per call."""
        responses = []
        for call in calls:
            payload = await self.execute(call)
            responses.append(FunctionResponse(id=call.id, name=call.name, response=payload))
        return responses
