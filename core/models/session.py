# =============================================================================
# core/models/session.py - Chat Session Schemas
# =============================================================================
# These models define the API contract for chat session operations:
# - SessionState: lifecycle of one conversation
# - SessionCreate: input for starting a session
# - SessionResponse: what clients get back about a session
#
# Lifecycle: uninitialized -> primed -> active -> cleared
# "cleared" is terminal; a reset creates a new session under a new key.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """
    Possible states for a chat session.

    - uninitialized: created, no instructions yet
    - primed: system instructions supplied
    - active: accepting user turns
    - cleared: closed for good, every further turn is refused
    """
    UNINITIALIZED = "uninitialized"
    PRIMED = "primed"
    ACTIVE = "active"
    CLEARED = "cleared"


Workspace = Literal["purchaser", "invoicer"]


class SessionCreate(BaseModel):
    """
    Schema for starting a chat session.

    Example:
        {
            "owner_id": "user-123",
            "workspace": "purchaser"
        }
    """

    owner_id: str = Field(..., min_length=1, description="Owner whose data the assistant searches")
    workspace: Workspace = Field(default="purchaser", description="Which set of functions to offer")


class SessionResponse(BaseModel):
    """
    Schema for returning session data to clients.

    Example:
        {
            "session_key": "chat_9f2c1a7b3d",
            "state": "active",
            "workspace": "purchaser",
            "functions": ["searchPurchaseOrders", "searchPriceList", "createPurchaseOrder"],
            "prompt_version": 4,
            "documents_used": ["Ostopolitiikka.md"],
            "turn_count": 0,
            "created_at": "2024-06-18T09:30:00Z"
        }
    """

    session_key: str
    state: SessionState
    workspace: Workspace
    functions: list[str] = Field(default_factory=list)
    prompt_version: int | None = None
    documents_used: list[str] = Field(default_factory=list)
    turn_count: int = 0
    created_at: datetime
