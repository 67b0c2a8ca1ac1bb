# =============================================================================
# core/models/chat.py - Chat Message Schemas
# =============================================================================
# These models define the API contract for one conversational turn:
# - ChatRequest: the user's message
# - ChatReply: the assistant's answer plus what happened to produce it
#
# Flow:
# 1. Client sends ChatRequest to POST /chat/sessions/{key}/messages
# 2. The orchestrator runs the model and any function calls
# 3. Client receives ChatReply with the final text
# =============================================================================

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """
    Schema for sending a chat message.

    Example:
        {
            "message": "Show purchase orders from Huolto-Karhu delivered in June"
        }
    """

    message: str = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="Natural language question or instruction"
    )


class ChatReply(BaseModel):
    """
    The assistant's answer to one user message.

    Example:
        {
            "text": "Found 2 purchase orders from Huolto-Karhu Oy ...",
            "function_calls": ["searchPurchaseOrders({\\"supplierName\\": \\"Huolto-Karhu\\"})"],
            "followup_retries": 0,
            "truncated": false,
            "created_at": "2024-06-18T09:31:02Z"
        }
    """

    text: str
    function_calls: list[str] = Field(
        default_factory=list,
        description="Functions the model ran for this answer"
    )
    followup_retries: int = Field(
        default=0,
        description="Extra model calls needed because a follow-up came back empty"
    )
    truncated: bool = Field(
        default=False,
        description="True when a continuation hint was appended"
    )
    fallback: bool = Field(
        default=False,
        description="True when the text is a fixed fallback, not model output"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
