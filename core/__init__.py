# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas and record types
# - search/: heuristic search over uploaded spreadsheet records
# - services/: record/artifact stores, order creation, session priming
#
# Code in this package should NOT import from FastAPI or the agents package.
# This keeps the logic testable and reusable.
# =============================================================================
