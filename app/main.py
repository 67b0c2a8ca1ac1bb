# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# Wires the chat and health routers, CORS, and the error handlers that turn
# ApplicationError subclasses into {detail, code, suggestion} bodies.
#
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    application_exception_handler,
    validation_exception_handler,
)
from app.routers import chat, health, records
from lib.utils import ApplicationError

API_NAME = "Procurement Assistant API"
API_VERSION = "1.0.0"

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Sessions are held in memory; a restart ends every conversation
    logger.info(f"{API_NAME} starting ({settings.ENVIRONMENT}, model {settings.OPENAI_MODEL})")
    if not settings.supabase_configured:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_KEY missing; searches and order creation will fail")

    yield

    logger.info(f"{API_NAME} stopped")


app = FastAPI(
    title=API_NAME,
    description="""
## Conversational Assistant for Purchasing and Invoicing Data

Ask about uploaded purchase orders, invoices and price lists in plain
language. The assistant searches your records through function calls and
can create purchase orders.

```bash
# Open a session in the purchaser workspace
curl -X POST http://localhost:8000/api/v1/chat/sessions \\
  -H "Content-Type: application/json" \\
  -d '{"owner_id": "user-123", "workspace": "purchaser"}'

# Ask something
curl -X POST http://localhost:8000/api/v1/chat/sessions/{key}/messages \\
  -H "Content-Type: application/json" \\
  -d '{"message": "Show purchase orders from Huolto-Karhu"}'
```
""",
    version=API_VERSION,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Chat", "description": "Sessions, messages, clear and reset"},
        {"name": "Records", "description": "Uploaded fields and sample rows"},
        {"name": "Health", "description": "Liveness and dependency readiness"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(ApplicationError)
async def handle_application_error(request: Request, exc: ApplicationError):
    return await application_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(chat.router, prefix="/api/v1/chat", tags=["Chat"])
app.include_router(records.router, prefix="/api/v1/records", tags=["Records"])


@app.get("/", tags=["Root"])
async def root():
    return {
        "name": API_NAME,
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
