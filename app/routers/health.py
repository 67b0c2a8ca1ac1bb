# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health        process is up, which model it talks to
# /health/ready  record table, artifact bucket and model key are usable
# =============================================================================

import asyncio
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from app.dependencies import OrchestratorDep
from lib.supabase_client import SupabaseClient

router = APIRouter()

HEALTHY = "healthy"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str
    model: str


class ReadinessResponse(BaseModel):
    """Readiness check response; `checks` maps each dependency to its status."""
    status: str
    checks: dict[str, str]
    active_sessions: int
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _probe_records_table() -> None:
    SupabaseClient.get_client().table(settings.RECORDS_TABLE).select("batch_id").limit(1).execute()


def _probe_artifact_bucket() -> None:
    SupabaseClient.get_client().storage.get_bucket(settings.ARTIFACT_BUCKET)


async def _check(probe: Callable[[], None]) -> str:
    try:
        await asyncio.to_thread(probe)
        return HEALTHY
    except Exception as e:
        return f"unhealthy: {str(e)[:50]}"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness for load balancers; touches no dependency."""
    return HealthResponse(
        status=HEALTHY,
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version="1.0.0",
        model=settings.OPENAI_MODEL,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(orchestrator: OrchestratorDep):
    """
    Readiness check endpoint.

    Reports "degraded" when any dependency check fails; sessions already
    running keep working for whatever does not need that dependency.
    """
    checks = {
        "records": await _check(_probe_records_table),
        "artifacts": await _check(_probe_artifact_bucket),
        "model": HEALTHY if settings.OPENAI_API_KEY else "unhealthy: OPENAI_API_KEY not set",
    }

    return ReadinessResponse(
        status="ready" if all(v == HEALTHY for v in checks.values()) else "degraded",
        checks=checks,
        active_sessions=len(orchestrator.sessions),
        timestamp=_now(),
    )
