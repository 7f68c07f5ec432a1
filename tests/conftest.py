"""
conftest.py

Shared pytest fixtures for nova tests.
"""

from typing import Any

import pytest

from nova.entities import Dialog
from nova.llm.drivers import MockDriver

# Long enough to pass the plausibility check
TEST_API_KEY = "sk-test-0123456789abcdefghijklmnop"


@pytest.fixture
def mock_driver() -> MockDriver:
    """A fresh mock driver per test."""
    return MockDriver()


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Put a plausible API key in the environment."""
    monkeypatch.setenv("OPENAI_API_KEY", TEST_API_KEY)
    return TEST_API_KEY


@pytest.fixture
def no_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no API key can be found in the environment."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("NOVA_LLM_OPENAI_API_KEY", raising=False)


@pytest.fixture
def mixed_dialog() -> Dialog:
    """A dialog with rows from every role."""
    return (
        Dialog.new("You are a helpful assistant.")
        .add_user("first question")
        .add_assistant("first answer")
        .add_user("second question")
        .add_system("be brief", hidden=True)
        .add_assistant("second answer")
    )


@pytest.fixture
def weather_tool() -> dict[str, Any]:
    """A function tool descriptor as the provider expects it."""
    return {
        "type": "function",
        "function": {
            "name": "get_weather",
            "description": "Get the current weather in a location",
            "parameters": {
                "type": "object",
                "properties": {
                    "location": {
                        "type": "string",
                        "description": "The city and state, e.g. San Francisco, CA",
                    }
                },
                "required": ["location"],
            },
        },
    }


def _completion_body(
    content: str | None = "Hello, world!",
    *,
    tool_calls: list[dict[str, Any]] | None = None,
    function_call: dict[str, Any] | None = None,
    finish_reason: str = "stop",
    usage: dict[str, int] | None = None,
) -> dict[str, Any]:
    """Build a chat-completions success body."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    if function_call is not None:
        message["function_call"] = function_call
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "model": "gpt-4o-2024-08-06",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
        "usage": usage
        if usage is not None
        else {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


@pytest.fixture
def completion_body():
    """Factory for chat-completions success bodies."""
    return _completion_body
