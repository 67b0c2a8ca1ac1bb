# =============================================================================
# lib/memory.py - Conversation History
# =============================================================================
# This module keeps the turn-by-turn history of one chat session and formats
# it for the model.
#
# A turn has a role ("user" or "model") and a list of parts. A part is one of:
# - TextPart: free text
# - FunctionCall: the model asks for a function to run
# - FunctionResponse: the result of a function call, sent back as a user turn
#
# Protocol: once the model has requested function calls, every one of them
# must be answered (by call id) before any other turn is added. Violations
# raise ConversationProtocolError instead of producing a history the model
# API would reject later.
#
# Usage:
#   from lib.memory import ConversationHistory
#   history = ConversationHistory()
#   history.add_user_text("Show orders from Huolto")
#   messages = history.to_openai_messages(instructions)
# =============================================================================

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Sequence, Union

from lib.utils import ApplicationError

# Set up logging for this module
logger = logging.getLogger(__name__)

Role = Literal["user", "model"]


# =============================================================================
# Parts
# =============================================================================

@dataclass
class TextPart:
    text: str


@dataclass
class FunctionCall:
    """A function call requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        """Compact form for logs and the reply: name({"arg": ...})."""
        return f"{self.name}({json.dumps(self.args, ensure_ascii=False, default=str)})"


@dataclass
class FunctionResponse:
    """The result of one function call, matched to it by id."""

    id: str
    name: str
    response: dict[str, Any]


Part = Union[TextPart, FunctionCall, FunctionResponse]


@dataclass
class ConversationTurn:
    role: Role
    parts: list[Part]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def text(self) -> str:
        return "\n\n".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def function_calls(self) -> list[FunctionCall]:
        return [p for p in self.parts if isinstance(p, FunctionCall)]

    @property
    def function_responses(self) -> list[FunctionResponse]:
        return [p for p in self.parts if isinstance(p, FunctionResponse)]


class ConversationProtocolError(ApplicationError):
    """Raised when a turn would break call/response pairing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code="CONVERSATION_PROTOCOL_ERROR",
            suggestion="Answer every pending function call before adding other turns",
            details=details,
        )


# =============================================================================
# History
# =============================================================================

class ConversationHistory:
    """
    Ordered turns of one conversation.

    Example:
        history = ConversationHistory()
        history.add_user_text("Find invoices for Acme")
        history.add_model_turn("", [FunctionCall("call_1", "searchInvoices", {...})])
        history.pending_calls  # ["call_1"]
        history.add_function_responses([FunctionResponse("call_1", "searchInvoices", {...})])
        history.add_model_turn("Found 2 invoices ...")
    """

    def __init__(self) -> None:
        self.turns: list[ConversationTurn] = []
        self._pending: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self.turns)

    @property
    def pending_calls(self) -> list[str]:
        return list(self._pending)

    def _require_no_pending(self, action: str) -> None:
        if self._pending:
            raise ConversationProtocolError(
                f"Cannot {action}: {len(self._pending)} function call(s) still unanswered",
                details={"pending": dict(self._pending)},
            )

    def add_user_text(self, text: str) -> ConversationTurn:
        self._require_no_pending("add user text")
        turn = ConversationTurn(role="user", parts=[TextPart(text)])
        self.turns.append(turn)
        return turn

    def add_model_turn(
        self,
        text: str | None,
        function_calls: Sequence[FunctionCall] = (),
    ) -> ConversationTurn:
        """Record a model reply; its function calls become pending."""
        self._require_no_pending("add a model turn")

        parts: list[Part] = []
        if text:
            parts.append(TextPart(text))
        parts.extend(function_calls)

        turn = ConversationTurn(role="model", parts=parts)
        self.turns.append(turn)
        for call in function_calls:
            self._pending[call.id] = call.name
        return turn

    def add_function_responses(self, responses: Sequence[FunctionResponse]) -> ConversationTurn:
        """
        Answer the pending calls in one user turn.

        Every pending call must be answered exactly once, and nothing else.
        """
        answered = [r.id for r in responses]
        if sorted(answered) != sorted(self._pending) or len(set(answered)) != len(answered):
            raise ConversationProtocolError(
                "Function responses do not match the pending calls",
                details={"pending": list(self._pending), "answered": answered},
            )

        turn = ConversationTurn(role="user", parts=list(responses))
        self.turns.append(turn)
        self._pending.clear()
        return turn

    def rollback(self, length: int) -> None:
        """
        Drop every turn after the first `length` turns.

        Used when a turn fails half-way so the session stays usable. Only
        roll back to a point where no call was pending (before a user turn).
        """
        removed = len(self.turns) - length
        if removed > 0:
            del self.turns[length:]
            logger.warning(f"Rolled back {removed} turn(s) of a failed exchange")
        self._pending.clear()

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def to_openai_messages(self, instructions: str | None = None) -> list[dict[str, Any]]:
        """
        Format for OpenAI's chat completions messages array.

        Model turns become assistant messages (with tool_calls), function
        responses become one tool message per call.
        """
        messages: list[dict[str, Any]] = []
        if instructions:
            messages.append({"role": "system", "content": instructions})

        for turn in self.turns:
            if turn.role == "model":
                messages.append(_assistant_message(turn))
                continue

            text = turn.text
            if text:
                messages.append({"role": "user", "content": text})
            for response in turn.function_responses:
                messages.append({
                    "role": "tool",
                    "tool_call_id": response.id,
                    "content": json.dumps(response.response, ensure_ascii=False, default=str),
                })

        return messages


def _assistant_message(turn: ConversationTurn) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": turn.text or None}
    calls = turn.function_calls
    if calls:
        message["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.name,
                    "arguments": json.dumps(call.args, ensure_ascii=False, default=str),
                },
            }
            for call in calls
        ]
    return message
