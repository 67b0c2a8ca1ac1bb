# =============================================================================
# tests/test_model_client.py - OpenAI Model Client Tests
# =============================================================================
# The AsyncOpenAI client is replaced with a MagicMock; no network calls.
# =============================================================================

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from agents.functions import declarations_for_workspace
from agents.model_client import OpenAIModelClient
from lib.memory import ConversationHistory


def completion(content=None, tool_calls=None, finish_reason="stop"):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


def tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def history():
    history = ConversationHistory()
    history.add_user_text("Orders from Huolto?")
    return history


def make_model(openai_client):
    return OpenAIModelClient(model="gpt-4o-mini", temperature=0.2, max_tokens=512, client=openai_client)


class TestOpenAIModelClient:

    @pytest.mark.asyncio
    async def test_request_shape(self, openai_client, history):
        openai_client.chat.completions.create.return_value = completion("Hi")
        declarations = declarations_for_workspace("purchaser")

        await make_model(openai_client).generate("Be helpful", history, declarations)

        kwargs = openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 512
        assert kwargs["messages"][0] == {"role": "system", "content": "Be helpful"}
        assert [t["function"]["name"] for t in kwargs["tools"]] == [d.name for d in declarations]

    @pytest.mark.asyncio
    async def test_no_tools_without_declarations(self, openai_client, history):
        openai_client.chat.completions.create.return_value = completion("Hi")
        await make_model(openai_client).generate("Be helpful", history, [])
        assert "tools" not in openai_client.chat.completions.create.await_args.kwargs

    @pytest.mark.asyncio
    async def test_text_response(self, openai_client, history):
        openai_client.chat.completions.create.return_value = completion("Found one order.")
        response = await make_model(openai_client).generate("", history, [])
        assert response.text == "Found one order."
        assert response.function_calls == []
        assert response.finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_tool_calls(self, openai_client, history):
        openai_client.chat.completions.create.return_value = completion(
            tool_calls=[
                tool_call("call_a", "searchPurchaseOrders", '{"supplierName": "Huolto"}'),
                tool_call("call_b", "searchPriceList", "not json"),
                tool_call("call_c", "searchPriceList", "[1, 2]"),
            ],
            finish_reason="tool_calls",
        )

        response = await make_model(openai_client).generate("", history, [])

        assert response.text == ""
        assert [(c.id, c.name, c.args) for c in response.function_calls] == [
            ("call_a", "searchPurchaseOrders", {"supplierName": "Huolto"}),
            ("call_b", "searchPriceList", {}),
            ("call_c", "searchPriceList", {}),
        ]

    @pytest.mark.asyncio
    async def test_no_choices_is_none(self, openai_client, history):
        openai_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        assert await make_model(openai_client).generate("", history, []) is None

    @pytest.mark.asyncio
    async def test_errors_propagate(self, openai_client, history):
        openai_client.chat.completions.create.side_effect = RuntimeError("rate limited")
        with pytest.raises(RuntimeError):
            await make_model(openai_client).generate("", history, [])
