"""
TEST DOC: OpenAI Wire Translation

WHAT: Tests for request building and response decoding in openai_wire.
WHY: Every success and failure shape of the provider must map to one typed result.
HOW: Feed dialogs, options, tool lists and raw bodies to the pure helpers.

CASES:
- Hidden rows are excluded from wire messages
- Image rows become content part lists
- Only supplied options reach the payload
- Tool descriptors are validated
- Success bodies decode into rows with tokens and diagnostics
- tool_calls and legacy function_call normalize to FunctionCalls

EDGE CASES:
- Missing choices / message / usage / content
- Non-JSON bodies
- Malformed argument JSON
- Unknown role values fall back to user
"""

import json

import pytest

from nova.entities import Dialog, Role, Row, TokenUsage
from nova.llm import InvalidRequestError, ServiceError
from nova.llm.drivers.openai_wire import (
    ARGUMENT_PARSE_ERROR,
    build_request,
    completion_to_row,
    decode_completion,
    dialog_to_messages,
    parse_arguments,
    validate_tools,
    wire_role,
)
from nova.llm.options import ChatOptions


class TestMessages:
    """Tests for dialog -> wire messages."""

    def test_hidden_rows_excluded(self):
        """Only the visible row is sent."""
        dialog = Dialog.new().add_system("steer quietly", hidden=True).add_user("hello")

        assert dialog_to_messages(dialog) == [{"role": "user", "content": "hello"}]

    def test_order_and_roles(self, mixed_dialog):
        """Visible rows keep their order and role names."""
        messages = dialog_to_messages(mixed_dialog)

        assert [m["role"] for m in messages] == [
            "system",
            "user",
            "assistant",
            "user",
            "assistant",
        ]
        assert "be brief" not in [m["content"] for m in messages]

    def test_images(self):
        """Rows with images send a text part followed by image parts."""
        dialog = Dialog.new().add(Role.USER, "compare", images=["https://a/1.png", "https://a/2.png"])

        assert dialog_to_messages(dialog) == [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "compare"},
                    {"type": "image_url", "image_url": {"url": "https://a/1.png"}},
                    {"type": "image_url", "image_url": {"url": "https://a/2.png"}},
                ],
            }
        ]

    @pytest.mark.parametrize(
        "role,expected",
        [(Role.SYSTEM, "system"), ("assistant", "assistant"), ("tool", "user"), (None, "user")],
    )
    def test_wire_role(self, role, expected):
        """Unrecognized roles are sent as user."""
        assert wire_role(role) == expected

    def test_unvalidated_row_role_falls_back(self):
        """A row built without validation still translates."""
        row = Row.model_construct(text="odd", role="narrator", metadata=None, images=None)
        dialog = Dialog.model_construct(rows=(row,))
        assert dialog_to_messages(dialog) == [{"role": "user", "content": "odd"}]


class TestBuildRequest:
    """Tests for request assembly."""

    def test_minimal_payload(self):
        """Unsupplied options are not sent."""
        request = build_request(Dialog.new().add_user("hi"), ChatOptions(), "gpt-4o")

        assert request.to_payload() == {
            "model": "gpt-4o",
            "messages": [{"role": "user", "content": "hi"}],
            "stream": False,
        }

    def test_supplied_options(self):
        """Supplied options are sent; credentials and endpoints are not."""
        options = ChatOptions(
            model="gpt-4o-mini",
            temperature=0.2,
            max_tokens=50,
            top_p=0.9,
            presence_penalty=0.5,
            frequency_penalty=-0.5,
            stop=["\n"],
            response_format={"type": "json_object"},
            api_key="sk-should-not-appear-in-body",
            base_url="http://localhost:8000/v1",
        )
        payload = build_request(Dialog.new().add_user("hi"), options, "gpt-4o").to_payload()

        assert payload["model"] == "gpt-4o-mini"
        assert payload["temperature"] == 0.2
        assert payload["max_tokens"] == 50
        assert payload["top_p"] == 0.9
        assert payload["presence_penalty"] == 0.5
        assert payload["frequency_penalty"] == -0.5
        assert payload["stop"] == ["\n"]
        assert payload["response_format"] == {"type": "json_object"}
        assert "api_key" not in payload
        assert "base_url" not in payload

    def test_tools_and_tool_choice(self, weather_tool):
        """Tools are sent verbatim with the tool choice."""
        payload = build_request(
            Dialog.new().add_user("weather?"),
            ChatOptions(tool_choice="auto"),
            "gpt-4o",
            tools=[weather_tool],
        ).to_payload()

        assert payload["tools"] == [weather_tool]
        assert payload["tool_choice"] == "auto"

    def test_tool_choice_dropped_without_tools(self):
        """tool_choice is meaningless without tools and is not sent."""
        payload = build_request(
            Dialog.new().add_user("hi"), ChatOptions(tool_choice="auto"), "gpt-4o", tools=[]
        ).to_payload()

        assert "tools" not in payload
        assert "tool_choice" not in payload


class TestValidateTools:
    """Tests for local tool validation."""

    def test_valid(self, weather_tool):
        """Well-formed function tools pass."""
        assert validate_tools([weather_tool]) == [weather_tool]

    @pytest.mark.parametrize("tools", [None, [], ()])
    def test_no_tools(self, tools):
        """None and empty sequences validate to an empty list."""
        assert validate_tools(tools) == []

    @pytest.mark.parametrize(
        "tool,message",
        [
            ("get_weather", "must be a mapping"),
            ({"function": {"name": "x"}}, "missing 'type'"),
            ({"type": "retrieval"}, "unsupported type"),
            ({"type": "function"}, "'function' mapping"),
            ({"type": "function", "function": "x"}, "'function' mapping"),
            ({"type": "function", "function": {"name": ""}}, "non-empty 'name'"),
            ({"type": "function", "function": {"description": "no name"}}, "non-empty 'name'"),
        ],
    )
    def test_invalid(self, weather_tool, tool, message):
        """Malformed tools are rejected, naming the offending index."""
        with pytest.raises(InvalidRequestError, match=message) as exc_info:
            validate_tools([weather_tool, tool])
        assert "Tool 1" in str(exc_info.value)


class TestDecodeCompletion:
    """Tests for success-body decoding."""

    def test_success(self, completion_body):
        """Text, tokens and diagnostics are extracted."""
        completion = decode_completion(json.dumps(completion_body("Hi!")))
        row = completion_to_row(completion)

        assert row.role == Role.ASSISTANT
        assert row.text == "Hi!"
        assert row.metadata.tokens == TokenUsage(prompt=12, completion=5, total=17)
        assert row.metadata.extra == {
            "model": "gpt-4o-2024-08-06",
            "completion_id": "chatcmpl-123",
            "finish_reason": "stop",
        }
        assert row.metadata.function_calls is None

    def test_missing_usage_defaults_to_zero(self, completion_body):
        """Absent counters become zero."""
        body = completion_body("Hi!")
        del body["usage"]
        completion = decode_completion(json.dumps(body))
        assert completion.tokens == TokenUsage()

    def test_partial_usage(self, completion_body):
        """Individually missing counters become zero."""
        body = completion_body("Hi!", usage={"prompt_tokens": 3})
        completion = decode_completion(json.dumps(body))
        assert completion.tokens == TokenUsage(prompt=3)

    def test_missing_content(self, completion_body):
        """A null or absent content becomes empty text."""
        body = completion_body(None)
        assert completion_to_row(decode_completion(json.dumps(body))).text == ""

    def test_no_choices(self, completion_body):
        """An empty choices list is a service error."""
        body = completion_body()
        body["choices"] = []
        with pytest.raises(ServiceError, match="no choices"):
            decode_completion(json.dumps(body))

    def test_no_message(self, completion_body):
        """A choice without a message is a service error."""
        body = completion_body()
        del body["choices"][0]["message"]
        with pytest.raises(ServiceError, match="no message"):
            decode_completion(json.dumps(body))

    def test_not_json(self):
        """A body that is not JSON is a service error."""
        with pytest.raises(ServiceError, match="as JSON"):
            decode_completion(b"<html>Bad Gateway</html>")

    def test_wrong_shape(self):
        """A JSON body of the wrong shape is a service error."""
        with pytest.raises(ServiceError, match="Malformed response body"):
            decode_completion(json.dumps({"choices": "none"}))


class TestFunctionCalls:
    """Tests for tool call normalization."""

    def test_tool_calls(self, completion_body):
        """Each tool call becomes a FunctionCall."""
        body = completion_body(
            None,
            finish_reason="tool_calls",
            tool_calls=[
                {
                    "id": "call_1",
                    "type": "function",
                    "function": {"name": "get_weather", "arguments": '{"location": "Tokyo"}'},
                },
                {
                    "id": "call_2",
                    "type": "function",
                    "function": {"name": "get_time", "arguments": '{"tz": "JST"}'},
                },
            ],
        )
        row = completion_to_row(decode_completion(json.dumps(body)), with_tools=True)

        assert row.text == ""
        calls = row.metadata.function_calls
        assert [c.function_name for c in calls] == ["get_weather", "get_time"]
        assert calls[0].parameters == {"location": "Tokyo"}
        assert calls[0].completion_id == "chatcmpl-123"
        assert calls[0].finish_reason == "tool_calls"
        assert calls[0].result is None

    def test_legacy_function_call(self, completion_body):
        """A single legacy function_call is normalized the same way."""
        body = completion_body(
            None,
            finish_reason="function_call",
            function_call={"name": "get_weather", "arguments": '{"location": "Paris"}'},
        )
        row = completion_to_row(decode_completion(json.dumps(body)), with_tools=True)

        assert len(row.metadata.function_calls) == 1
        assert row.metadata.function_calls[0].parameters == {"location": "Paris"}

    def test_bad_arguments_do_not_void_response(self, completion_body):
        """Malformed argument JSON is replaced by a placeholder."""
        body = completion_body(
            None,
            tool_calls=[
                {"id": "a", "type": "function", "function": {"name": "f", "arguments": "{oops"}},
                {"id": "b", "type": "function", "function": {"name": "g", "arguments": "{}"}},
            ],
        )
        row = completion_to_row(decode_completion(json.dumps(body)), with_tools=True)

        first, second = row.metadata.function_calls
        assert first.parameters == {"error": ARGUMENT_PARSE_ERROR, "raw": "{oops"}
        assert second.parameters == {}

    def test_non_string_arguments_do_not_void_response(self, completion_body):
        """Arguments that are neither text nor an object get the placeholder."""
        body = completion_body(
            None,
            tool_calls=[
                {"id": "a", "type": "function", "function": {"name": "ok", "arguments": '{"x": 1}'}},
                {"id": "b", "type": "function", "function": {"name": "bad", "arguments": 123}},
            ],
        )
        row = completion_to_row(decode_completion(json.dumps(body)), with_tools=True)

        good, bad = row.metadata.function_calls
        assert good.function_name == "ok"
        assert good.parameters == {"x": 1}
        assert bad.function_name == "bad"
        assert bad.parameters == {"error": ARGUMENT_PARSE_ERROR, "raw": 123}

    def test_plain_mode_ignores_tool_calls(self, completion_body):
        """Plain chat rows never carry function calls."""
        body = completion_body(
            "text",
            tool_calls=[{"id": "a", "type": "function", "function": {"name": "f"}}],
        )
        row = completion_to_row(decode_completion(json.dumps(body)))
        assert row.metadata.function_calls is None

    @pytest.mark.parametrize(
        "arguments,expected",
        [
            (None, {}),
            ("", {}),
            ('{"a": 1}', {"a": 1}),
            ({"a": 1}, {"a": 1}),
            ("[1, 2]", {"error": ARGUMENT_PARSE_ERROR, "raw": "[1, 2]"}),
            ("not json", {"error": ARGUMENT_PARSE_ERROR, "raw": "not json"}),
            (123, {"error": ARGUMENT_PARSE_ERROR, "raw": 123}),
            ([1, 2], {"error": ARGUMENT_PARSE_ERROR, "raw": [1, 2]}),
        ],
    )
    def test_parse_arguments(self, arguments, expected):
        """Arguments decode to a mapping or a diagnostic placeholder."""
        assert parse_arguments(arguments) == expected
