"""
options.py

PURPOSE: Normalize the open-ended driver options into a typed structure.
DEPENDENCIES: pydantic

ARCHITECTURE NOTES:
Callers hand drivers a loose set of keyword options. The HTTP driver
validates them into ChatOptions immediately, before building a request,
so bad values are reported as InvalidRequestError without touching the
network. Unknown keys are dropped, not rejected.

Every field defaults to None, meaning "not supplied": such options are
never sent, leaving the provider's own defaults in effect.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nova.llm.errors import InvalidRequestError


class ChatOptions(BaseModel):
    """Options recognized by the HTTP driver."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    model: str | None = Field(default=None, min_length=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    stop: str | list[str] | None = None
    response_format: dict[str, Any] | None = None
    tool_choice: str | dict[str, Any] | None = None

    # Endpoint and credential overrides
    api_key: str | None = None
    base_url: str | None = None
    timeout: float | None = Field(default=None, gt=0)


def format_validation_errors(error: ValidationError) -> str:
    """One line listing each failing field and why."""
    return "; ".join(
        f"{'.'.join(str(x) for x in item['loc'])}: {item['msg']}" for item in error.errors()
    )


def normalize_options(options: dict[str, Any]) -> ChatOptions:
    """
    Validate caller options.

    Raises:
        InvalidRequestError: If a recognized option has an invalid value.
    """
    try:
        return ChatOptions.model_validate(options)
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid options: {format_validation_errors(e)}") from e
