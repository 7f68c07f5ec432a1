"""
mock.py

PURPOSE: Deterministic, network-free LLM driver for tests.
DEPENDENCIES: None beyond the dialog entities

ARCHITECTURE NOTES:
By default the mock answers "f(x)" where x is the text of the most recent
user message. For controlled tests, a response can be preset for the next
call of each kind:

    driver = MockDriver()
    driver.chat("hello")                 # "f(hello)"
    driver.set_next_response("custom")
    driver.chat("hello")                 # "custom"
    driver.chat("hello again")           # "f(hello again)"

Each preset is consumed by exactly one call, after which the driver reverts
to its default behavior. Presets live on the instance, so tests running in
parallel each use their own MockDriver and cannot see each other's state.

The mock never raises: error paths belong to the live driver's tests.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from nova.entities.dialog import Dialog, FunctionCall, Role, Row, RowMetadata, TokenUsage
from nova.llm.driver import Driver

logger = logging.getLogger(__name__)

EMPTY_PROMPT = "empty prompt"

# Fixed token counts for tool-call rows; text rows derive theirs from length
TOOL_CALL_TOKENS = TokenUsage(prompt=10, completion=20, total=30)
PROMPT_TOKENS = 10


@dataclass(frozen=True)
class ToolResponse:
    """A preset reply for the next tools-enabled call."""

    kind: Literal["text", "function_call"]
    value: str | FunctionCall


class MockDriver(Driver):
    """
    Deterministic driver with one-shot preset responses.

    Use reset_mock() between tests that share an instance.
    """

    def __init__(self) -> None:
        self._next_response: str | None = None
        self._next_structured_response: dict[str, Any] | None = None
        self._next_tool_response: ToolResponse | None = None

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    def set_next_response(self, response: str) -> None:
        """Set the text returned by the next chat_dialog/chat call."""
        self._next_response = response

    def set_next_structured_response(self, response: dict[str, Any]) -> None:
        """Set the data returned by the next chat_dialog_structured call."""
        self._next_structured_response = response

    def set_next_tool_text_response(self, response: str) -> None:
        """Make the next chat_dialog_with_tools call reply with plain text."""
        self._next_tool_response = ToolResponse(kind="text", value=response)

    def set_next_tool_function_call(self, function_call: FunctionCall | Mapping[str, Any]) -> None:
        """Make the next chat_dialog_with_tools call return this function call."""
        if not isinstance(function_call, FunctionCall):
            function_call = FunctionCall.model_validate(dict(function_call))
        self._next_tool_response = ToolResponse(kind="function_call", value=function_call)

    def reset_mock(self) -> None:
        """Clear every preset response."""
        self._next_response = None
        self._next_structured_response = None
        self._next_tool_response = None

    # ------------------------------------------------------------------
    # Driver contract
    # ------------------------------------------------------------------

    def chat_dialog(self, dialog: Dialog, **options: Any) -> Row:  # noqa: ARG002
        response, self._next_response = self._next_response, None
        if response is not None:
            logger.debug("Mock returning preset response")
            return _assistant_row(response)
        return _assistant_row(_default_reply(dialog))

    def chat_dialog_structured(
        self,
        dialog: Dialog,
        schema: Any,
        **options: Any,  # noqa: ARG002
    ) -> dict[str, Any]:
        response, self._next_structured_response = self._next_structured_response, None
        if response is not None:
            logger.debug("Mock returning preset structured response")
            return response

        reply = _default_reply(dialog)
        if isinstance(schema, Mapping):
            return {key: f"{reply}.{key}" for key in schema}
        return {"result": reply}

    def chat_dialog_with_tools(
        self,
        dialog: Dialog,
        tools: Sequence[Mapping[str, Any]] | None,
        **options: Any,  # noqa: ARG002
    ) -> Row:
        preset, self._next_tool_response = self._next_tool_response, None
        if preset is not None:
            logger.debug(f"Mock returning preset tool response ({preset.kind})")
            if preset.kind == "function_call":
                return _function_call_row(preset.value)
            return _assistant_row(preset.value)

        reply = _default_reply(dialog)
        if not tools:
            return _assistant_row(reply)

        call = FunctionCall(
            function_name=_tool_name(tools[0]),
            parameters={"input": reply},
        )
        return _function_call_row(call)


def _default_reply(dialog: Dialog) -> str:
    """f(x) for the text x of the most recent user message."""
    for row in reversed(dialog.rows):
        if row.role == Role.USER:
            return f"f({row.text})"
    return f"f({EMPTY_PROMPT})"


def _tool_name(tool: Mapping[str, Any]) -> str:
    function = tool.get("function")
    if isinstance(function, Mapping) and function.get("name"):
        return str(function["name"])
    return str(tool.get("name") or "unknown_tool")


def _assistant_row(text: str) -> Row:
    tokens = TokenUsage(
        prompt=PROMPT_TOKENS,
        completion=len(text),
        total=len(text) + PROMPT_TOKENS,
    )
    return Row(role=Role.ASSISTANT, text=text, metadata=RowMetadata(tokens=tokens))


def _function_call_row(call: FunctionCall) -> Row:
    metadata = RowMetadata(function_calls=(call,), tokens=TOOL_CALL_TOKENS)
    return Row(role=Role.ASSISTANT, text="", metadata=metadata)
