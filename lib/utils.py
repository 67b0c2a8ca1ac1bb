# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application:
# - ApplicationError: base error with code/message/suggestion/details
# - Short request ids and identifier masking for log lines
# =============================================================================

import uuid
from typing import Any


# =============================================================================
# Logging Helpers
# =============================================================================

def new_request_id() -> str:
    """
    Create a short id that ties together the log lines of one operation.

    Example:
        request_id = new_request_id()  # "3f9a1c"
    """
    return uuid.uuid4().hex[:6]


def mask_identifier(value: str | None, visible: int = 8) -> str:
    """
    Shorten an owner/user identifier for logging.

    Example:
        mask_identifier("user-1234567890")  # "user-123..."
    """
    if not value:
        return "<none>"
    if len(value) <= visible:
        return value
    return f"{value[:visible]}..."


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base class for errors that reach the caller with a fix attached.

    Subclasses set `status_code` and pass a stable `code`; the API layer
    renders `message`, `code`, `suggestion` and `details` without knowing
    which service raised it.

    Example:
        class RecordStoreError(ApplicationError):
            status_code = 503
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        if self.suggestion:
            return f"[{self.code}] {self.message} ({self.suggestion})"
        return f"[{self.code}] {self.message}"
