# =============================================================================
# app/routers/records.py - Uploaded Data Preview Endpoints
# =============================================================================
# Lets an admin check what the assistant will see before chatting:
#
#   GET /records/{domain}/fields   column headers across the owner's uploads
#   GET /records/{domain}/sample   first rows, unfiltered
#
# Both degrade to empty lists when the store cannot be read.
# =============================================================================

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel

from app.dependencies import OrchestratorDep
from core.search import SearchService

router = APIRouter()

Domain = Literal["purchase_orders", "invoices", "price_list"]
OwnerId = Annotated[str, Query(..., min_length=1, description="Owner of the uploaded data")]


class FieldsResponse(BaseModel):
    domain: str
    fields: list[str]


class SampleResponse(BaseModel):
    domain: str
    records: list[dict[str, Any]]


def _service(orchestrator, domain: str) -> SearchService:
    return {
        "purchase_orders": orchestrator.purchase_orders,
        "invoices": orchestrator.invoices,
        "price_list": orchestrator.price_list,
    }[domain]


@router.get("/{domain}/fields", response_model=FieldsResponse)
async def available_fields(domain: Domain, owner_id: OwnerId, orchestrator: OrchestratorDep):
    fields = await _service(orchestrator, domain).available_fields(owner_id)
    return FieldsResponse(domain=domain, fields=fields)


@router.get("/{domain}/sample", response_model=SampleResponse)
async def sample_records(
    domain: Domain,
    owner_id: OwnerId,
    orchestrator: OrchestratorDep,
    max_rows: Annotated[int, Query(ge=1, le=50)] = 5,
):
    """First `max_rows` records across upload batches, in upload order."""
    records = await _service(orchestrator, domain).sample_records(owner_id, max_rows)
    return SampleResponse(domain=domain, records=[r.to_dict() for r in records])
