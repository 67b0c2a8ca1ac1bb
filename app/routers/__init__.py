# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - chat.py: Chat session and message endpoints
# - records.py: Preview of uploaded fields and sample rows
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import chat
from . import records

__all__ = [
    "health",
    "chat",
    "records",
]
