"""
openai.py

PURPOSE: LLM driver for OpenAI-compatible chat-completions endpoints.
DEPENDENCIES: httpx, pydantic

ARCHITECTURE NOTES:
Each call is self-contained: options are validated, the credential is
resolved from the environment (or an explicit api_key option), a request
is built from the visible dialog rows, and one POST is issued with a fresh
httpx.Client. Nothing is shared between calls and nothing is retried.

Failures are classified before touching the network where possible
(bad options, malformed tools, missing or implausible credential). After
the call, error statuses map to the DriverError kinds and transport
failures surface as TransportError.

Supports:
- Plain chat completions
- Structured JSON output (hidden schema instruction + JSON-schema response format)
- Tool calling (tool_calls and legacy function_call replies)
- Endpoint/credential overrides for compatible deployments
- OpenTelemetry tracing (when enabled)
"""

import json
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from nova.config import LLMSettings, get_settings
from nova.entities.dialog import Dialog, Row
from nova.llm.driver import Driver
from nova.llm.drivers.openai_wire import (
    build_request,
    completion_to_row,
    decode_completion,
    validate_tools,
)
from nova.llm.errors import (
    AuthenticationError,
    InvalidRequestError,
    ServiceError,
    StructuredOutputError,
    TransportError,
    error_for_status,
)
from nova.llm.options import ChatOptions, format_validation_errors, normalize_options
from nova.llm.schema import describe_schema, to_json_schema, validate_structured
from nova.observability import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

# Real keys are far longer; anything shorter is a placeholder or a typo
MIN_API_KEY_LENGTH = 20

# Longest slice of an error body kept on the raised error
ERROR_BODY_LIMIT = 500

STRUCTURED_RESPONSE_NAME = "structured_response"


class OpenAIDriver(Driver):
    """
    Driver for OpenAI's chat-completions API and compatible deployments.

    Settings are read from the environment on every call unless an
    LLMSettings instance is injected.
    """

    def __init__(self, settings: LLMSettings | None = None):
        """
        Initialize the driver.

        Args:
            settings: Fixed settings to use. If None, settings are loaded from
                the environment at call time.
        """
        self._settings = settings

    def chat_dialog(self, dialog: Dialog, **options: Any) -> Row:
        """
        Send the visible rows of a dialog and return the assistant's reply.

        Args:
            dialog: The conversation history.
            **options: model, temperature, max_tokens, top_p, presence_penalty,
                frequency_penalty, stop, response_format, api_key, base_url, timeout.

        Returns:
            The assistant Row with token usage and provider diagnostics.
        """
        return self._complete(dialog, normalize_options(options))

    def chat_dialog_structured(
        self,
        dialog: Dialog,
        schema: Any,
        **options: Any,
    ) -> dict[str, Any]:
        """
        Request a reply as JSON shaped like `schema`.

        A hidden system row describing the schema is added to the dialog and
        the response format is forced to JSON-schema mode.

        Raises:
            StructuredOutputError: If the reply is not JSON or does not match the schema.
        """
        opts = normalize_options(options)
        enhanced = dialog.add_system(describe_schema(schema), hidden=True)
        json_opts = opts.model_copy(
            update={
                "response_format": {
                    "type": "json_schema",
                    "json_schema": {
                        "name": STRUCTURED_RESPONSE_NAME,
                        "schema": to_json_schema(schema),
                    },
                }
            }
        )

        row = self._complete(enhanced, json_opts)

        try:
            data = json.loads(row.text)
        except json.JSONDecodeError as e:
            raise StructuredOutputError(f"Failed to parse JSON response: {e}") from e

        return validate_structured(data, schema)

    def chat_dialog_with_tools(
        self,
        dialog: Dialog,
        tools: Sequence[Mapping[str, Any]] | None,
        **options: Any,
    ) -> Row:
        """
        Send a dialog along with tools the model may call.

        Tools are validated before anything is sent. An empty (or None)
        tool list behaves like chat_dialog.

        Args:
            dialog: The conversation history.
            tools: Function tool descriptors, sent verbatim.
            **options: As for chat_dialog, plus tool_choice.

        Returns:
            The assistant Row; `metadata.function_calls` is set when the model
            called a tool.

        Raises:
            InvalidRequestError: If a tool descriptor is malformed.
        """
        opts = normalize_options(options)
        validated = validate_tools(tools)
        return self._complete(dialog, opts, tools=validated, with_tools=True)

    def _current_settings(self) -> LLMSettings:
        if self._settings is not None:
            return self._settings
        try:
            return get_settings().llm
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid settings: {format_validation_errors(e)}") from e

    @staticmethod
    def _resolve_api_key(options: ChatOptions, settings: LLMSettings) -> str:
        api_key = options.api_key if options.api_key is not None else settings.openai_api_key
        api_key = api_key.strip()
        if not api_key:
            raise AuthenticationError("No API key configured (set OPENAI_API_KEY)")
        if len(api_key) < MIN_API_KEY_LENGTH:
            raise AuthenticationError("API key is too short to be valid")
        return api_key

    def _complete(
        self,
        dialog: Dialog,
        options: ChatOptions,
        tools: list[dict[str, Any]] | None = None,
        with_tools: bool = False,
    ) -> Row:
        """Issue one chat-completions request and translate the reply."""
        settings = self._current_settings()
        api_key = self._resolve_api_key(options, settings)

        request = build_request(dialog, options, settings.model, tools)
        base_url = (options.base_url or settings.base_url).rstrip("/")
        url = f"{base_url}/chat/completions"
        timeout = options.timeout or settings.timeout
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        with tracer.start_as_current_span("llm.chat_completion") as span:
            span.set_attribute("llm.model", request.model)
            span.set_attribute("llm.message_count", len(request.messages))
            span.set_attribute("llm.tool_count", len(tools or []))
            if request.temperature is not None:
                span.set_attribute("llm.temperature", request.temperature)

            logger.debug(f"Sending {len(request.messages)} messages to {request.model} at {url}")
            start_time = time.perf_counter()

            try:
                with httpx.Client(timeout=timeout) as client:
                    response = client.post(url, json=request.to_payload(), headers=headers)
            except httpx.InvalidURL as e:
                span.record_exception(e)
                raise InvalidRequestError(f"Invalid endpoint URL {url!r}: {e}") from e
            except httpx.TransportError as e:
                span.record_exception(e)
                logger.warning(f"Request to {url} failed: {type(e).__name__}: {e}")
                raise TransportError(f"Request to {url} failed: {e}") from e

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            span.set_attribute("llm.status_code", response.status_code)
            span.set_attribute("llm.latency_ms", elapsed_ms)

            if not response.is_success:
                error = error_for_status(response.status_code, response.text[:ERROR_BODY_LIMIT])
                logger.warning(f"{request.model} returned HTTP {response.status_code}")
                span.record_exception(error)
                raise error

            try:
                completion = decode_completion(response.content)
            except ServiceError as e:
                span.record_exception(e)
                logger.warning(f"Unusable response from {request.model}: {e.message}")
                raise

            span.set_attribute("llm.prompt_tokens", completion.tokens.prompt)
            span.set_attribute("llm.completion_tokens", completion.tokens.completion)
            span.set_attribute("llm.finish_reason", completion.finish_reason or "unknown")

            logger.debug(
                f"Response: {completion.tokens.prompt} in, {completion.tokens.completion} out "
                f"in {elapsed_ms:.0f}ms"
            )

            return completion_to_row(completion, with_tools=with_tools)


def create_openai_driver(settings: LLMSettings | None = None) -> OpenAIDriver:
    """
    Factory function to create an OpenAI driver.

    Args:
        settings: Optional fixed settings (environment is read per call if omitted)

    Returns:
        Configured OpenAIDriver
    """
    return OpenAIDriver(settings=settings)
