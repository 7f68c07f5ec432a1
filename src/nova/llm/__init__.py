"""LLM driver contract and errors."""

from nova.llm.driver import Driver
from nova.llm.errors import (
    AuthenticationError,
    DriverError,
    InvalidRequestError,
    RateLimitError,
    ServiceError,
    StructuredOutputError,
    TransportError,
)
from nova.llm.options import ChatOptions

__all__ = [
    "AuthenticationError",
    "ChatOptions",
    "Driver",
    "DriverError",
    "InvalidRequestError",
    "RateLimitError",
    "ServiceError",
    "StructuredOutputError",
    "TransportError",
]
