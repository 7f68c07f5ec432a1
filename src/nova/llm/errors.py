"""
errors.py

PURPOSE: Error taxonomy shared by every LLM driver.
DEPENDENCIES: None (pure Python)

ARCHITECTURE NOTES:
Drivers return a value on success and raise one of these on failure.
Callers can catch DriverError for "anything went wrong" or a specific
subclass to react to one kind (e.g. back off on RateLimitError).
No httpx, json or pydantic exception is allowed to escape a driver raw.
"""


class DriverError(Exception):
    """Base class for every failure reported by a driver."""

    kind = "driver"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class InvalidRequestError(DriverError):
    """Malformed input: rejected by the service, or caught locally before sending."""

    kind = "invalid_request"


class RateLimitError(DriverError):
    """The service rejected the call because of quota or throughput limits."""

    kind = "rate_limited"


class AuthenticationError(DriverError):
    """Missing, implausible or rejected credential."""

    kind = "authentication"


class ServiceError(DriverError):
    """Any other error status, or a success body that cannot be used."""

    kind = "service"


class StructuredOutputError(ServiceError):
    """A structured reply that is not JSON or does not match the requested schema."""

    kind = "structured_output"


class TransportError(DriverError):
    """The network call itself could not complete."""

    kind = "transport"


# Error statuses with a dedicated kind; everything else is a ServiceError.
STATUS_ERRORS: dict[int, type[DriverError]] = {
    400: InvalidRequestError,
    401: AuthenticationError,
    403: AuthenticationError,
    422: InvalidRequestError,
    429: RateLimitError,
}


def error_for_status(status_code: int, body: str) -> DriverError:
    """Build the error matching an HTTP error status."""
    error_class = STATUS_ERRORS.get(status_code, ServiceError)
    labels = {
        InvalidRequestError: "Bad request",
        AuthenticationError: "Authentication failed",
        RateLimitError: "Rate limit exceeded",
    }
    label = labels.get(error_class, "API error")
    return error_class(
        f"{label} ({status_code}): {body}",
        status_code=status_code,
        body=body,
    )
