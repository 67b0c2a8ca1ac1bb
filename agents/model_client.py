# =============================================================================
# agents/model_client.py - Generative Model Channel
# =============================================================================
# The orchestrator talks to the language model through ModelClient:
#
#   generate(instructions, history, declarations) -> ModelResponse | None
#
# None means the channel answered with nothing usable (no candidate at all);
# the orchestrator retries that. Transport/API errors are raised as-is and
# the orchestrator turns them into ModelServiceError.
#
# OpenAIModelClient uses chat completions with tool calling.
# =============================================================================

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Sequence

from openai import AsyncOpenAI

from agents.functions.declarations import FunctionDeclaration
from app.config import settings
from lib.memory import ConversationHistory, FunctionCall

logger = logging.getLogger(__name__)


@dataclass
class ModelResponse:
    """One model reply: free text, function calls, or both."""

    text: str = ""
    function_calls: list[FunctionCall] = field(default_factory=list)
    finish_reason: str | None = None

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())


class ModelClient(ABC):
    """Anything that can produce the next model turn."""

    @abstractmethod
    async def generate(
        self,
        instructions: str,
        history: ConversationHistory,
        declarations: Sequence[FunctionDeclaration],
    ) -> ModelResponse | None:
        """Next model turn for the history, or None if the model gave nothing."""


class OpenAIModelClient(ModelClient):
    """
    ModelClient backed by OpenAI chat completions.

    Attributes:
        model: OpenAI model ID
        temperature: Generation temperature (low, answers are factual)
        max_tokens: Output token cap
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.client = client or AsyncOpenAI(api_key=api_key or settings.OPENAI_API_KEY)
        self.model = model or settings.OPENAI_MODEL
        self.temperature = temperature if temperature is not None else settings.MODEL_TEMPERATURE
        self.max_tokens = max_tokens or settings.MODEL_MAX_OUTPUT_TOKENS

        logger.info(f"OpenAIModelClient initialized with model={self.model}, temp={self.temperature}")

    async def generate(
        self,
        instructions: str,
        history: ConversationHistory,
        declarations: Sequence[FunctionDeclaration],
    ) -> ModelResponse | None:
        messages = history.to_openai_messages(instructions)
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if declarations:
            kwargs["tools"] = [d.to_openai_tool() for d in declarations]

        logger.debug(f"Calling {self.model} with {len(messages)} messages, {len(declarations)} tools")
        response = await self.client.chat.completions.create(**kwargs)

        if not response.choices:
            logger.warning("Model returned no choices")
            return None

        choice = response.choices[0]
        message = choice.message
        calls = [_to_function_call(tc) for tc in (message.tool_calls or [])]

        return ModelResponse(
            text=message.content or "",
            function_calls=calls,
            finish_reason=choice.finish_reason,
        )


def _to_function_call(tool_call: Any) -> FunctionCall:
    raw = tool_call.function.arguments or "{}"
    try:
        args = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Could not parse arguments for {tool_call.function.name}: {raw[:200]}")
        args = {}
    if not isinstance(args, dict):
        args = {}
    return FunctionCall(id=tool_call.id, name=tool_call.function.name, args=args)
