# =============================================================================
# agents/ - Conversational Assistant
# =============================================================================
# This package contains the function-calling chat assistant:
# - orchestrator.py: ChatSession turn loop and ChatOrchestrator wiring
# - session_registry.py: live sessions by key
# - model_client.py: the language model channel (OpenAI tool calling)
# - response_policy.py: truncation hint and fallback texts
# - functions/: declarations, registry and handlers the model can call
#
# Flow: user message -> ChatSession -> model -> (function calls ->
# FunctionRegistry -> search/order services) -> model -> reply
# =============================================================================

from agents.orchestrator import (
    ChatOrchestrator,
    ChatSession,
    ModelServiceError,
    ModelUnavailableError,
    SessionClearedError,
    SessionStateError,
    TurnLimits,
)
from agents.session_registry import SessionNotFoundError, SessionRegistry
from agents.model_client import ModelClient, ModelResponse, OpenAIModelClient

__all__ = [
    # Orchestrator
    "ChatOrchestrator",
    "ChatSession",
    "ModelServiceError",
    "ModelUnavailableError",
    "SessionClearedError",
    "SessionStateError",
    "TurnLimits",
    # Registry
    "SessionNotFoundError",
    "SessionRegistry",
    # Model
    "ModelClient",
    "ModelResponse",
    "OpenAIModelClient",
]
