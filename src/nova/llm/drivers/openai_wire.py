"""
openai_wire.py

PURPOSE: Typed request/response shapes for OpenAI-compatible chat completions.
DEPENDENCIES: pydantic

ARCHITECTURE NOTES:
Outgoing: a Dialog plus ChatOptions becomes a ChatCompletionRequest, which
serializes with exclude_none so options the caller never supplied are not
sent at all.

Incoming: the raw body is decoded through ChatCompletionResponse. Decoding
has three outcomes, each a named branch:
- well-formed success -> Completion
- valid JSON missing a required part (no choices, no message) -> ServiceError
- malformed body (not JSON, wrong shapes) -> ServiceError
Absent usage counters default to zero and absent content to "".
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, ValidationError

from nova.entities.dialog import Dialog, FunctionCall, Role, Row, RowMetadata, TokenUsage
from nova.llm.errors import InvalidRequestError, ServiceError
from nova.llm.options import ChatOptions

ARGUMENT_PARSE_ERROR = "Failed to parse function arguments"


# ============================================================================
# Request
# ============================================================================


class ChatCompletionRequest(BaseModel):
    """Body of a POST to /chat/completions."""

    model: str
    messages: list[dict[str, Any]]
    stream: Literal[False] = False
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    stop: str | list[str] | None = None
    response_format: dict[str, Any] | None = None
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def wire_role(role: Any) -> str:
    """Role name sent to the provider; unrecognized values fall back to user."""
    try:
        return Role(role).value
    except ValueError:
        return Role.USER.value


def row_to_message(row: Row) -> dict[str, Any]:
    """Translate one visible row into a wire message."""
    content: str | list[dict[str, Any]] = row.text
    if row.images:
        content = [{"type": "text", "text": row.text}]
        content.extend({"type": "image_url", "image_url": {"url": url}} for url in row.images)
    return {"role": wire_role(row.role), "content": content}


def dialog_to_messages(dialog: Dialog) -> list[dict[str, Any]]:
    """Wire messages for every row that is not hidden, in dialog order."""
    return [row_to_message(row) for row in dialog.rows if not row.is_hidden]


def validate_tools(tools: Sequence[Any] | None) -> list[dict[str, Any]]:
    """
    Check tool descriptors before anything is sent.

    Each tool must be a mapping with a "type". Function tools must carry a
    "function" mapping with a non-empty "name". Only "function" tools are
    supported. None is treated as an empty list.

    Raises:
        InvalidRequestError: On the first malformed descriptor.
    """
    validated = []
    for index, tool in enumerate(tools or ()):
        if not isinstance(tool, Mapping):
            raise InvalidRequestError(f"Tool {index} must be a mapping, got {type(tool).__name__}")
        if "type" not in tool:
            raise InvalidRequestError(f"Tool {index} is missing 'type'")
        if tool["type"] != "function":
            raise InvalidRequestError(f"Tool {index} has unsupported type {tool['type']!r}")
        function = tool.get("function")
        if not isinstance(function, Mapping):
            raise InvalidRequestError(f"Tool {index} must have a 'function' mapping")
        name = function.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidRequestError(f"Tool {index} function must have a non-empty 'name'")
        validated.append(dict(tool))
    return validated


def build_request(
    dialog: Dialog,
    options: ChatOptions,
    default_model: str,
    tools: list[dict[str, Any]] | None = None,
) -> ChatCompletionRequest:
    """Assemble the request for a dialog; only supplied options are set."""
    return ChatCompletionRequest(
        model=options.model or default_model,
        messages=dialog_to_messages(dialog),
        temperature=options.temperature,
        max_tokens=options.max_tokens,
        top_p=options.top_p,
        presence_penalty=options.presence_penalty,
        frequency_penalty=options.frequency_penalty,
        stop=options.stop,
        response_format=options.response_format,
        tools=tools or None,
        tool_choice=options.tool_choice if tools else None,
    )


# ============================================================================
# Response
# ============================================================================


class WireFunction(BaseModel):
    """A function invocation as sent by the provider."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    # Any shape; parse_arguments decides what is usable
    arguments: Any = None


class WireToolCall(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    type: str = "function"
    function: WireFunction


class WireMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str | None = None
    content: str | None = None
    tool_calls: list[WireToolCall] | None = None
    function_call: WireFunction | None = None


class WireChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: WireMessage | None = None
    finish_reason: str | None = None


class WireUsage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: NonNegativeInt | None = None
    completion_tokens: NonNegativeInt | None = None
    total_tokens: NonNegativeInt | None = None


class ChatCompletionResponse(BaseModel):
    """Success body of /chat/completions, as leniently as it can be read."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    model: str | None = None
    choices: list[WireChoice] = Field(default_factory=list)
    usage: WireUsage | None = None


class Completion(BaseModel):
    """A decoded success body with every required part present."""

    id: str | None
    model: str | None
    message: WireMessage
    finish_reason: str | None
    tokens: TokenUsage

    @property
    def text(self) -> str:
        return self.message.content or ""

    @property
    def extra(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "completion_id": self.id,
            "finish_reason": self.finish_reason,
        }


def decode_completion(body: str | bytes) -> Completion:
    """
    Decode a 2xx response body.

    Raises:
        ServiceError: If the body is malformed or misses choices/message.
    """
    try:
        raw = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ServiceError(f"Failed to parse response body as JSON: {e}") from e

    try:
        parsed = ChatCompletionResponse.model_validate(raw)
    except ValidationError as e:
        raise ServiceError(f"Malformed response body: {e.error_count()} validation error(s)") from e

    if not parsed.choices:
        raise ServiceError("Response contained no choices")

    choice = parsed.choices[0]
    if choice.message is None:
        raise ServiceError("Response choice contained no message")

    usage = parsed.usage or WireUsage()
    tokens = TokenUsage(
        prompt=usage.prompt_tokens or 0,
        completion=usage.completion_tokens or 0,
        total=usage.total_tokens or 0,
    )
    return Completion(
        id=parsed.id,
        model=parsed.model,
        message=choice.message,
        finish_reason=choice.finish_reason,
        tokens=tokens,
    )


def parse_arguments(arguments: Any) -> dict[str, Any]:
    """Decode serialized function arguments, substituting a placeholder on failure."""
    if arguments is None or arguments == "":
        return {}
    if isinstance(arguments, dict):
        return arguments
    if not isinstance(arguments, str):
        return {"error": ARGUMENT_PARSE_ERROR, "raw": arguments}
    try:
        decoded = json.loads(arguments)
    except json.JSONDecodeError:
        return {"error": ARGUMENT_PARSE_ERROR, "raw": arguments}
    if not isinstance(decoded, dict):
        return {"error": ARGUMENT_PARSE_ERROR, "raw": arguments}
    return decoded


def extract_function_calls(completion: Completion) -> tuple[FunctionCall, ...] | None:
    """Normalize tool_calls or a legacy function_call into FunctionCalls."""
    message = completion.message
    functions: list[WireFunction] = []
    if message.tool_calls:
        functions = [tool_call.function for tool_call in message.tool_calls]
    elif message.function_call is not None:
        functions = [message.function_call]

    if not functions:
        return None

    return tuple(
        FunctionCall(
            function_name=function.name,
            parameters=parse_arguments(function.arguments),
            completion_id=completion.id,
            finish_reason=completion.finish_reason,
        )
        for function in functions
    )


def completion_to_row(completion: Completion, with_tools: bool = False) -> Row:
    """Build the assistant row for a decoded completion."""
    function_calls = extract_function_calls(completion) if with_tools else None
    metadata = RowMetadata(
        function_calls=function_calls,
        tokens=completion.tokens,
        extra=completion.extra,
    )
    return Row(role=Role.ASSISTANT, text=completion.text, metadata=metadata)
