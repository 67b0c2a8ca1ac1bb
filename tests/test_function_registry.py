# =============================================================================
# tests/test_function_registry.py - Function Dispatch Tests
# =============================================================================
# Tests for the function registry, handlers and declarations.
# =============================================================================

import pytest

from agents.functions import (
    CREATE_PURCHASE_ORDER,
    SEARCH_INVOICES,
    SEARCH_PRICE_LIST,
    SEARCH_PURCHASE_ORDERS,
    UNKNOWN_FUNCTION,
    FunctionContext,
    FunctionRegistry,
    declarations_for_workspace,
    list_functions,
)
from core.search import (
    InvoiceSearchService,
    PriceListSearchService,
    PurchaseOrderSearchService,
    SearchError,
)
from core.services.order_service import OrderService
from lib.memory import FunctionCall
from tests.conftest import OWNER_ID


def make_context(store, artifacts, max_records=None):
    return FunctionContext(
        owner_id=OWNER_ID,
        purchase_orders=PurchaseOrderSearchService(store),
        invoices=InvoiceSearchService(store),
        price_list=PriceListSearchService(store),
        orders=OrderService(store, artifacts),
        max_records=max_records,
    )


@pytest.fixture
def registry(record_store, artifact_store):
    return FunctionRegistry(make_context(record_store, artifact_store))


def call(name, **args):
    return FunctionCall(id="call_1", name=name, args=args)


class TestRegistration:

    def test_all_declared_functions_have_handlers(self):
        assert list_functions() == sorted([
            CREATE_PURCHASE_ORDER,
            SEARCH_INVOICES,
            SEARCH_PRICE_LIST,
            SEARCH_PURCHASE_ORDERS,
        ])

    def test_workspace_declarations(self):
        assert [d.name for d in declarations_for_workspace("invoicer")] == [
            SEARCH_PURCHASE_ORDERS,
            SEARCH_INVOICES,
        ]
        with pytest.raises(KeyError):
            declarations_for_workspace("warehouse")

    def test_openai_tool_shape(self):
        tool = declarations_for_workspace("purchaser")[0].to_openai_tool()
        assert tool["type"] == "function"
        assert tool["function"]["name"] == SEARCH_PURCHASE_ORDERS
        assert tool["function"]["parameters"]["type"] == "object"


class TestExecute:

    @pytest.mark.asyncio
    async def test_unknown_function(self, registry):
        result = await registry.execute(call("deleteEverything"))
        assert result == {"success": False, "error": UNKNOWN_FUNCTION}

    @pytest.mark.asyncio
    async def test_names_are_case_sensitive(self, registry):
        result = await registry.execute(call("SearchPurchaseOrders"))
        assert result == {"success": False, "error": "Unknown function"}

    @pytest.mark.asyncio
    async def test_disallowed_function_is_unknown(self, record_store, artifact_store):
        registry = FunctionRegistry(
            make_context(record_store, artifact_store),
            allowed=[SEARCH_PURCHASE_ORDERS],
        )
        result = await registry.execute(call(SEARCH_INVOICES, customerName="Oy"))
        assert result == {"success": False, "error": UNKNOWN_FUNCTION}

    @pytest.mark.asyncio
    async def test_search_purchase_orders(self, registry):
        result = await registry.execute(call(SEARCH_PURCHASE_ORDERS, supplierName="Huolto", dateTo="2024-06-30"))

        assert result["success"] is True
        assert result["totalCount"] == 1
        assert result["records"][0]["Supplier Name"] == "Huolto-Karhu Oy"
        assert "instruction" in result

    @pytest.mark.asyncio
    async def test_price_list_refusal_message(self, registry):
        result = await registry.execute(call(SEARCH_PRICE_LIST, limit=5))
        assert result["success"] is True
        assert result["records"] == []
        assert "at least one filter" in result["message"]

    @pytest.mark.asyncio
    async def test_search_invoices(self, registry):
        result = await registry.execute(call(SEARCH_INVOICES, customerName="Oy", approverName="Erika"))
        assert result["success"] is True
        assert [r["Invoice #"] for r in result["records"]] == ["INV-1001"]
        assert "skippedFilters" not in result

    @pytest.mark.asyncio
    async def test_max_records(self, record_store, artifact_store):
        registry = FunctionRegistry(make_context(record_store, artifact_store, max_records=1))
        result = await registry.execute(call(SEARCH_PURCHASE_ORDERS))
        assert len(result["records"]) == 1
        assert result["totalCount"] == 4
        assert result["truncated"] is True

    @pytest.mark.asyncio
    async def test_create_purchase_order(self, registry, record_store):
        result = await registry.execute(call(
            CREATE_PURCHASE_ORDER,
            orderNumber="PO-9",
            supplierName="TechCorp",
            buyerName="Erika",
            orderDate="2024-06-18",
            rows=[
                {"productDescription": "LED", "quantity": 3, "unitPrice": 10},
                {"productDescription": "Asennus", "quantity": 1, "unitPrice": 25},
            ],
        ))
        assert result["success"] is True
        assert result["totalValue"] == 55.0
        assert result["rowsAdded"] == 2
        assert "instruction" in result

    @pytest.mark.asyncio
    async def test_application_error_becomes_response(self, registry, monkeypatch):
        async def failing_search(owner_id, criteria=None):
            raise SearchError("Could not load invoices: timeout")

        monkeypatch.setattr(registry.context.invoices, "search", failing_search)
        result = await registry.execute(call(SEARCH_INVOICES))
        assert result == {"success": False, "error": "Could not load invoices: timeout"}

    @pytest.mark.asyncio
    async def test_invalid_arguments_become_response(self, registry):
        result = await registry.execute(call(SEARCH_PRICE_LIST, productName="led", limit=500))
        assert result["success"] is False
        assert result["error"]

    @pytest.mark.asyncio
    async def test_execute_all_keeps_ids_and_order(self, registry):
        calls = [
            FunctionCall(id="a", name=SEARCH_PURCHASE_ORDERS, args={"buyerName": "Mikael"}),
            FunctionCall(id="b", name="nope", args={}),
        ]
        responses = await registry.execute_all(calls)

        assert [(r.id, r.name) for r in responses] == [("a", SEARCH_PURCHASE_ORDERS), ("b", "nope")]
        assert responses[0].response["totalCount"] == 2
        assert responses[1].response["error"] == UNKNOWN_FUNCTION
