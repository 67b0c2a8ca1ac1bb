# =============================================================================
# app/routers/chat.py - Chat Session Endpoints
# =============================================================================
# Thin HTTP surface over ChatOrchestrator.
#
#   POST   /chat/sessions                 start a primed, active session
#   POST   /chat/sessions/{key}/messages  send one message, get the reply
#   DELETE /chat/sessions/{key}           clear the session
#   POST   /chat/sessions/{key}/reset     clear it and start a fresh one
#
# Errors are ApplicationErrors rendered by app/exceptions.py.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, status

from app.dependencies import OrchestratorDep
from core.models.chat import ChatReply, ChatRequest
from core.models.session import SessionCreate, SessionResponse


router = APIRouter()

SessionKey = Annotated[str, Path(..., min_length=1, description="Session key from POST /chat/sessions")]


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(request: SessionCreate, orchestrator: OrchestratorDep):
    """
    Start a chat session for an owner's workspace.

    The session is primed with the owner's latest system prompt and
    knowledge documents. Fails with MISSING_PRIME if no prompt is saved.
    """
    session = await orchestrator.create_session(request.owner_id, request.workspace)
    return session.to_response()


@router.post("/sessions/{session_key}/messages", response_model=ChatReply)
async def send_message(session_key: SessionKey, request: ChatRequest, orchestrator: OrchestratorDep):
    """
    Send a message and wait for the assistant's reply.

    The reply lists any functions the model ran to answer it.
    """
    return await orchestrator.send_message(session_key, request.message)


@router.delete("/sessions/{session_key}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_session(session_key: SessionKey, orchestrator: OrchestratorDep):
    """Clear a session. It cannot be used again."""
    orchestrator.clear_session(session_key)


@router.post("/sessions/{session_key}/reset", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def reset_session(session_key: SessionKey, orchestrator: OrchestratorDep):
    """
    Clear a session and start a new one for the same owner and workspace.

    The new session has a new key; the old key stops working.
    """
    session = await orchestrator.reset_session(session_key)
    return session.to_response()
