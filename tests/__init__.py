# =============================================================================
# tests/ - Test Suite
# =============================================================================
# Unit and API tests for the procurement assistant:
# - test_date_parser.py, test_filter_engine.py: search primitives
# - test_search_services.py: purchase order, invoice and price list searches
# - test_order_service.py, test_stores.py: order creation and storage adapters
# - test_memory.py, test_retry.py, test_response_policy.py: turn building blocks
# - test_function_registry.py, test_orchestrator.py: the function-calling loop
# - test_model_client.py, test_session_registry.py: model channel and sessions
# - test_chat_api.py: HTTP endpoints through FastAPI's TestClient
#
# Run tests with: pytest
# =============================================================================
