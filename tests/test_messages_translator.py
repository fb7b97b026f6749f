"""Tests for OpenAI Chat Completions <-> Anthropic Messages translator."""

import pytest

from chatbridge.core.exceptions import ValidationError
from chatbridge.messages.models import ModelMap
from chatbridge.messages.translator import (
    DEFAULT_MAX_TOKENS,
    chat_completions_to_messages,
    is_stream_request,
    map_stop_reason,
    messages_to_chat_completion,
)


def _request(**overrides):
    payload = {
        "model": "claude-3-5-sonnet-20241022",
        "messages": [{"role": "user", "content": "Hello"}],
    }
    payload.update(overrides)
    return payload


# =============================================================================
# chat_completions_to_messages() tests
# =============================================================================

class TestChatCompletionsToMessages:
    """Tests for translating OpenAI chat requests to Anthropic Messages requests."""

    def test_simple_text_message(self):
        """Test simple single-turn conversion."""
        result = chat_completions_to_messages(_request())

        assert result == {
            "model": "claude-3-5-sonnet-20241022",
            "max_tokens": DEFAULT_MAX_TOKENS,
            "messages": [{"role": "user", "content": "Hello"}],
        }

    def test_system_message_extracted(self):
        """Test system message moves to the top-level system field."""
        result = chat_completions_to_messages(_request(messages=[
            {"role": "system", "content": "You are helpful."},
            {"role": "user", "content": "Hi"},
        ]))

        assert result["system"] == "You are helpful."
        assert result["messages"] == [{"role": "user", "content": "Hi"}]

    def test_multiple_system_messages_concatenated(self):
        """Test system messages are trimmed and joined by one blank line, in order."""
        result = chat_completions_to_messages(_request(messages=[
            {"role": "system", "content": "  First rule.  "},
            {"role": "user", "content": "Hi"},
            {"role": "system", "content": "\nSecond rule.\n"},
            {"role": "assistant", "content": "Hello"},
            {"role": "system", "content": "Third rule."},
        ]))

        assert result["system"] == "First rule.\n\nSecond rule.\n\nThird rule."
        assert [m["role"] for m in result["messages"]] == ["user", "assistant"]

    def test_blank_system_messages_skipped(self):
        """Test blank system messages add no separator, wherever they appear."""
        result = chat_completions_to_messages(_request(messages=[
            {"role": "system", "content": "   "},
            {"role": "system", "content": "A"},
            {"role": "system", "content": ""},
            {"role": "system", "content": "B"},
            {"role": "system", "content": "\n"},
            {"role": "user", "content": "hi"},
        ]))
        assert result["system"] == "A\n\nB"

    def test_only_blank_system_messages(self):
        result = chat_completions_to_messages(_request(messages=[
            {"role": "system", "content": "  "},
            {"role": "user", "content": "hi"},
        ]))
        assert "system" not in result

    def test_no_system_field_without_system_messages(self):
        """Test system is absent when the request has no system message."""
        result = chat_completions_to_messages(_request())
        assert "system" not in result

    def test_turns_are_trimmed(self):
        """Test user/assistant contents are trimmed."""
        result = chat_completions_to_messages(_request(messages=[
            {"role": "user", "content": "  What is 2+2?\n"},
            {"role": "assistant", "content": "\t4 "},
        ]))

        assert result["messages"] == [
            {"role": "user", "content": "What is 2+2?"},
            {"role": "assistant", "content": "4"},
        ]

    def test_blank_turns_dropped(self):
        """Test turns that are empty after trimming never reach the backend."""
        result = chat_completions_to_messages(_request(messages=[
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "   "},
            {"role": "user", "content": ""},
            {"role": "user", "content": "Still there?"},
        ]))

        assert result["messages"] == [
            {"role": "user", "content": "Hello"},
            {"role": "user", "content": "Still there?"},
        ]
        assert all(m["content"].strip() for m in result["messages"])

    def test_conversation_order_preserved(self):
        """Test turn order follows message order."""
        contents = ["one", "two", "three", "four"]
        roles = ["user", "assistant", "user", "assistant"]
        result = chat_completions_to_messages(_request(messages=[
            {"role": role, "content": content} for role, content in zip(roles, contents)
        ]))

        assert [m["content"] for m in result["messages"]] == contents

    def test_model_passed_through_unchanged(self):
        """Test the model name is not renamed without a model map."""
        result = chat_completions_to_messages(_request(model="gpt-4o"))
        assert result["model"] == "gpt-4o"

    def test_model_map_applied(self):
        """Test a model map resolves the model before it is sent."""
        model_map = ModelMap(aliases={"gpt-4o": "claude-sonnet-4-20250514"}, default_model="claude-3-5-haiku-20241022")

        assert chat_completions_to_messages(_request(model="gpt-4o"), model_map)["model"] == "claude-sonnet-4-20250514"
        assert chat_completions_to_messages(_request(model="unknown"), model_map)["model"] == "claude-3-5-haiku-20241022"
        assert chat_completions_to_messages(_request(model="claude-3-opus-20240229"), model_map)["model"] == "claude-3-opus-20240229"

    def test_max_tokens_passed_through(self):
        """Test explicit max_tokens is kept."""
        result = chat_completions_to_messages(_request(max_tokens=256))
        assert result["max_tokens"] == 256

    def test_max_tokens_default(self):
        """Test max_tokens defaults to 4096."""
        result = chat_completions_to_messages(_request(max_tokens=None))
        assert result["max_tokens"] == 4096

    @pytest.mark.parametrize(
        "value,expected",
        [(1.5, 1.0), (-0.2, 0.0), (0.4, 0.4), (0, 0.0), (1, 1.0)],
    )
    def test_temperature_clamped(self, value, expected):
        """Test temperature is clamped into [0, 1]."""
        result = chat_completions_to_messages(_request(temperature=value))
        assert result["temperature"] == expected

    @pytest.mark.parametrize("value,expected", [(2.0, 1.0), (-1, 0.0), (0.9, 0.9)])
    def test_top_p_clamped(self, value, expected):
        """Test top_p is clamped into [0, 1]."""
        result = chat_completions_to_messages(_request(top_p=value))
        assert result["top_p"] == expected

    def test_sampling_params_absent_when_not_given(self):
        """Test temperature/top_p are not invented."""
        result = chat_completions_to_messages(_request())
        assert "temperature" not in result
        assert "top_p" not in result

    def test_stop_string_normalized(self):
        """Test a single stop string becomes a one-element list."""
        result = chat_completions_to_messages(_request(stop="END"))
        assert result["stop_sequences"] == ["END"]

    def test_stop_list_kept(self):
        """Test a stop list is copied as-is."""
        stop = ["A", "B"]
        result = chat_completions_to_messages(_request(stop=stop))
        assert result["stop_sequences"] == ["A", "B"]
        assert result["stop_sequences"] is not stop

    def test_stop_absent(self):
        """Test stop_sequences is absent when stop is absent."""
        result = chat_completions_to_messages(_request())
        assert "stop_sequences" not in result

    def test_stream_flag_never_copied(self):
        """Test stream stays out-of-band."""
        payload = _request(stream=True)
        result = chat_completions_to_messages(payload)

        assert "stream" not in result
        assert is_stream_request(payload) is True
        assert is_stream_request(_request()) is False

    def test_unsupported_openai_params_ignored(self):
        """Test OpenAI-only parameters are not forwarded."""
        result = chat_completions_to_messages(_request(frequency_penalty=0.5, presence_penalty=0.1))
        assert "frequency_penalty" not in result
        assert "presence_penalty" not in result

    def test_input_not_mutated(self):
        """Test translation leaves the request untouched."""
        payload = _request(stop=["X"], messages=[{"role": "user", "content": "  hi  "}])
        snapshot = {
            "model": payload["model"],
            "stop": list(payload["stop"]),
            "messages": [dict(m) for m in payload["messages"]],
        }

        chat_completions_to_messages(payload)

        assert payload["messages"] == snapshot["messages"]
        assert payload["stop"] == snapshot["stop"]

    def test_idempotent(self):
        """Test translating the same request twice gives equal results."""
        payload = _request(
            messages=[
                {"role": "system", "content": "sys"},
                {"role": "user", "content": "hi"},
            ],
            temperature=3,
            stop="x",
        )
        assert chat_completions_to_messages(payload) == chat_completions_to_messages(payload)


class TestRequestValidation:
    """Tests for request validation errors."""

    @pytest.mark.parametrize("messages", [[], None, "hello", {"role": "user"}])
    def test_invalid_messages(self, messages):
        """Test empty or non-list messages are rejected."""
        payload = _request()
        payload["messages"] = messages
        with pytest.raises(ValidationError, match="messages must be a non-empty array"):
            chat_completions_to_messages(payload)

    def test_missing_messages(self):
        """Test missing messages is rejected."""
        with pytest.raises(ValidationError, match="messages must be a non-empty array"):
            chat_completions_to_messages({"model": "claude-3-5-sonnet-20241022"})

    @pytest.mark.parametrize("model", [None, "", 42])
    def test_invalid_model(self, model):
        """Test missing or empty model is rejected."""
        payload = _request(model=model)
        with pytest.raises(ValidationError, match="model must be a non-empty string"):
            chat_completions_to_messages(payload)

    def test_missing_model(self):
        """Test absent model key is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            chat_completions_to_messages({"messages": [{"role": "user", "content": "Hi"}]})
        assert exc_info.value.code == "missing_parameter"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("temperature", "hot"),
            ("temperature", True),
            ("temperature", [0.5]),
            ("top_p", [1]),
            ("top_p", {"p": 1}),
        ],
    )
    def test_non_numeric_sampling_rejected(self, field, value):
        """Test temperature/top_p must be numbers."""
        with pytest.raises(ValidationError, match=f"{field} must be a number") as exc_info:
            chat_completions_to_messages(_request(**{field: value}))
        assert exc_info.value.code == "invalid_parameter"

    @pytest.mark.parametrize("stop", [5, True, {"a": "b"}, ["ok", 3], [None]])
    def test_invalid_stop_rejected(self, stop):
        """Test stop must be a string or a list of strings."""
        with pytest.raises(ValidationError, match="stop must be") as exc_info:
            chat_completions_to_messages(_request(stop=stop))
        assert exc_info.value.code == "invalid_parameter"

    @pytest.mark.parametrize("stop", ["", []])
    def test_empty_stop_absent(self, stop):
        result = chat_completions_to_messages(_request(stop=stop))
        assert "stop_sequences" not in result


# =============================================================================
# map_stop_reason() tests
# =============================================================================

class TestMapStopReason:
    """Tests for stop reason mapping."""

    @pytest.mark.parametrize(
        "stop_reason,expected",
        [
            ("end_turn", "stop"),
            ("max_tokens", "length"),
            ("stop_sequence", "stop"),
            (None, "stop"),
            ("unknown_future_value", "stop"),
            ("tool_use", "stop"),
        ],
    )
    def test_mapping(self, stop_reason, expected):
        """Test the mapping is total with "stop" as the default."""
        assert map_stop_reason(stop_reason) == expected


# =============================================================================
# messages_to_chat_completion() tests
# =============================================================================

class TestMessagesToChatCompletion:
    """Tests for translating Anthropic responses to OpenAI chat completions."""

    def test_simple_response(self):
        """Test basic response envelope."""
        payload = {
            "id": "msg_123",
            "type": "message",
            "role": "assistant",
            "model": "claude-3-5-sonnet-20241022",
            "content": [{"type": "text", "text": "Hello!"}],
            "stop_reason": "end_turn",
            "usage": {"input_tokens": 10, "output_tokens": 5},
        }

        result = messages_to_chat_completion(payload, "my-model", created=1700000000)

        assert result == {
            "id": "msg_123",
            "object": "chat.completion",
            "created": 1700000000,
            "model": "my-model",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": "Hello!"},
                    "finish_reason": "stop",
                }
            ],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
        }

    def test_requested_model_echoed(self):
        """Test the caller's model name wins over the backend's."""
        payload = {"id": "msg_1", "model": "claude-backend-name", "content": [], "usage": {}}
        result = messages_to_chat_completion(payload, "gpt-4o")
        assert result["model"] == "gpt-4o"

    def test_created_defaults_to_now(self, monkeypatch):
        """Test created is stamped at translation time."""
        monkeypatch.setattr("chatbridge.messages.translator.time.time", lambda: 1234.9)
        result = messages_to_chat_completion({"id": "msg_1", "content": []}, "m")
        assert result["created"] == 1234

    def test_text_blocks_concatenated_and_trimmed(self):
        """Test text blocks join with no separator, trimmed once at the end."""
        payload = {
            "id": "msg_1",
            "content": [
                {"type": "text", "text": "  Hello"},
                {"type": "text", "text": ", "},
                {"type": "text", "text": "world!\n"},
            ],
        }
        result = messages_to_chat_completion(payload, "m")
        assert result["choices"][0]["message"]["content"] == "Hello, world!"

    def test_non_text_blocks_dropped(self):
        """Test tool_use, thinking and malformed blocks are filtered out."""
        payload = {
            "id": "msg_1",
            "content": [
                {"type": "thinking", "thinking": "hmm"},
                {"type": "text", "text": "Answer"},
                {"type": "tool_use", "id": "toolu_1", "name": "f", "input": {}},
                {"type": "text"},
                "garbage",
                {"type": "text", "text": " here"},
            ],
        }
        result = messages_to_chat_completion(payload, "m")
        assert result["choices"][0]["message"]["content"] == "Answer here"

    def test_total_tokens_computed(self):
        """Test total_tokens is the sum, ignoring any vendor total."""
        payload = {
            "id": "msg_1",
            "content": [],
            "usage": {"input_tokens": 10, "output_tokens": 5, "total_tokens": 999},
        }
        usage = messages_to_chat_completion(payload, "m")["usage"]
        assert usage == {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}

    def test_missing_usage(self):
        """Test missing usage reads as zero."""
        usage = messages_to_chat_completion({"id": "msg_1", "content": []}, "m")["usage"]
        assert usage == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    def test_max_tokens_finish_reason(self):
        """Test max_tokens maps to length."""
        payload = {"id": "msg_1", "content": [], "stop_reason": "max_tokens"}
        result = messages_to_chat_completion(payload, "m")
        assert result["choices"][0]["finish_reason"] == "length"

    def test_empty_content(self):
        """Test an empty content list gives an empty string."""
        result = messages_to_chat_completion({"id": "msg_1", "content": []}, "m")
        assert result["choices"][0]["message"] == {"role": "assistant", "content": ""}
