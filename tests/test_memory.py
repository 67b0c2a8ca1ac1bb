# =============================================================================
# tests/test_memory.py - Conversation History Tests
# =============================================================================
# This module contains tests for:
# - Function call / response pairing rules
# - Rollback of a failed exchange
# - Message formatting for OpenAI
# =============================================================================

from __future__ import annotations

import json

import pytest

from lib.memory import (
    ConversationHistory,
    ConversationProtocolError,
    FunctionCall,
    FunctionResponse,
)


def search_call(call_id="call_1", **args):
    return FunctionCall(id=call_id, name="searchPurchaseOrders", args=args)


def answer(call, **response):
    return FunctionResponse(id=call.id, name=call.name, response=response)


# =============================================================================
# Pairing Protocol
# =============================================================================

class TestPairing:
    """Every function call must be answered before the conversation moves on."""

    def test_calls_become_pending(self):
        history = ConversationHistory()
        history.add_user_text("Show Huolto orders")
        history.add_model_turn("", [search_call("a"), search_call("b")])
        assert history.pending_calls == ["a", "b"]

    def test_user_text_with_pending_calls_raises(self):
        history = ConversationHistory()
        history.add_model_turn(None, [search_call()])
        with pytest.raises(ConversationProtocolError) as exc_info:
            history.add_user_text("hello?")
        assert exc_info.value.code == "CONVERSATION_PROTOCOL_ERROR"

    def test_model_turn_with_pending_calls_raises(self):
        history = ConversationHistory()
        history.add_model_turn(None, [search_call()])
        with pytest.raises(ConversationProtocolError):
            history.add_model_turn("done")

    def test_responses_clear_pending(self):
        history = ConversationHistory()
        call = search_call(supplierName="Huolto")
        history.add_model_turn(None, [call])
        history.add_function_responses([answer(call, success=True)])
        assert history.pending_calls == []
        history.add_model_turn("Found one order")
        assert len(history) == 3

    def test_responses_in_any_order(self):
        history = ConversationHistory()
        first, second = search_call("a"), search_call("b")
        history.add_model_turn(None, [first, second])
        history.add_function_responses([answer(second), answer(first)])
        assert history.pending_calls == []

    @pytest.mark.parametrize("answered_ids", [["a"], ["a", "b", "c"], ["a", "a"], ["x", "b"]])
    def test_mismatched_responses_raise(self, answered_ids):
        history = ConversationHistory()
        history.add_model_turn(None, [search_call("a"), search_call("b")])
        responses = [FunctionResponse(id=i, name="searchPurchaseOrders", response={}) for i in answered_ids]
        with pytest.raises(ConversationProtocolError):
            history.add_function_responses(responses)
        assert history.pending_calls == ["a", "b"]

    def test_turn_accessors(self):
        history = ConversationHistory()
        call = search_call()
        turn = history.add_model_turn("Let me check", [call])
        assert turn.text == "Let me check"
        assert turn.function_calls == [call]
        assert turn.function_responses == []


class TestRollback:

    def test_rollback_restores_length_and_clears_pending(self):
        history = ConversationHistory()
        history.add_user_text("first")
        history.add_model_turn("answer")
        checkpoint = len(history)

        history.add_user_text("second")
        history.add_model_turn(None, [search_call()])
        history.rollback(checkpoint)

        assert len(history) == checkpoint
        assert history.pending_calls == []
        history.add_user_text("second, again")

    def test_rollback_past_end_is_noop(self):
        history = ConversationHistory()
        history.add_user_text("only")
        history.rollback(5)
        assert len(history) == 1


# =============================================================================
# OpenAI Formatting
# =============================================================================

class TestOpenAIMessages:

    def test_system_message_first(self):
        history = ConversationHistory()
        history.add_user_text("Hi")
        messages = history.to_openai_messages("You are a purchasing assistant")
        assert messages[0] == {"role": "system", "content": "You are a purchasing assistant"}
        assert messages[1] == {"role": "user", "content": "Hi"}

    def test_no_instructions_no_system_message(self):
        history = ConversationHistory()
        history.add_user_text("Hi")
        assert history.to_openai_messages()[0]["role"] == "user"

    def test_function_exchange(self):
        history = ConversationHistory()
        history.add_user_text("Orders from Huolto")
        call = search_call("call_9", supplierName="Huolto")
        history.add_model_turn(None, [call])
        history.add_function_responses([answer(call, success=True, totalCount=1)])
        history.add_model_turn("One order found.")

        messages = history.to_openai_messages()

        assistant = messages[1]
        assert assistant["role"] == "assistant"
        assert assistant["content"] is None
        tool_call = assistant["tool_calls"][0]
        assert tool_call["id"] == "call_9"
        assert tool_call["function"]["name"] == "searchPurchaseOrders"
        assert json.loads(tool_call["function"]["arguments"]) == {"supplierName": "Huolto"}

        tool = messages[2]
        assert tool["role"] == "tool"
        assert tool["tool_call_id"] == "call_9"
        assert json.loads(tool["content"]) == {"success": True, "totalCount": 1}

        assert messages[3] == {"role": "assistant", "content": "One order found."}

    def test_non_ascii_is_kept(self):
        history = ConversationHistory()
        call = search_call(buyerName="Erika Sundström")
        history.add_model_turn(None, [call])
        args = history.to_openai_messages()[0]["tool_calls"][0]["function"]["arguments"]
        assert "Sundström" in args

    def test_describe(self):
        assert search_call(supplierName="Huolto").describe() == 'searchPurchaseOrders({"supplierName": "Huolto"})'
