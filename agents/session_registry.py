# =============================================================================
# agents/session_registry.py - Live Session Registry
# =============================================================================
# The one piece of shared mutable state: session key -> ChatSession.
# Guarded by a threading.Lock so it is safe from any thread; the sessions
# themselves serialize their own turns.
# =============================================================================

from __future__ import annotations

import threading
import time
import uuid
from typing import TYPE_CHECKING

from lib.utils import ApplicationError

if TYPE_CHECKING:
    from agents.orchestrator import ChatSession


class SessionNotFoundError(ApplicationError):
    """Raised when a session key is not registered."""

    status_code = 404

    def __init__(self, session_key: str):
        super().__init__(
            message=f"Session not found: {session_key}",
            code="SESSION_NOT_FOUND",
            suggestion="Start a new session with POST /chat/sessions",
            details={"session_key": session_key},
        )


def new_session_key() -> str:
    """
    Create a unique session key.

    Example:
        new_session_key()  # "chat_1718703000123_9f2c1a7b"
    """
    return f"chat_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class SessionRegistry:
    """Thread-safe map of live sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, "ChatSession"] = {}
        self._lock = threading.Lock()

    def add(self, session: "ChatSession") -> None:
        with self._lock:
            if session.key in self._sessions:
                raise ValueError(f"Session key already registered: {session.key}")
            self._sessions[session.key] = session

    def get(self, session_key: str) -> "ChatSession":
        with self._lock:
            session = self._sessions.get(session_key)
        if session is None:
            raise SessionNotFoundError(session_key)
        return session

    def remove(self, session_key: str) -> "ChatSession":
        with self._lock:
            session = self._sessions.pop(session_key, None)
        if session is None:
            raise SessionNotFoundError(session_key)
        return session

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __contains__(self, session_key: object) -> bool:
        with self._lock:
            return session_key in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
