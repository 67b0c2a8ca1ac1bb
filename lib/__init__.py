# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database and storage
# - memory.py: Conversation history with call/response pairing
# - retry.py: Retry-with-backoff combinator for the model channel
# - utils.py: Shared utilities (error base class, log helpers)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.memory import (
    ConversationHistory,
    ConversationProtocolError,
    ConversationTurn,
    FunctionCall,
    FunctionResponse,
    TextPart,
)
from lib.retry import RetryOutcome, exponential_delay, fixed_delay, retry_async
from lib.utils import ApplicationError, mask_identifier, new_request_id

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Conversation
    "ConversationHistory",
    "ConversationProtocolError",
    "ConversationTurn",
    "FunctionCall",
    "FunctionResponse",
    "TextPart",
    # Retry
    "RetryOutcome",
    "exponential_delay",
    "fixed_delay",
    "retry_async",
    # Utils
    "ApplicationError",
    "mask_identifier",
    "new_request_id",
]
