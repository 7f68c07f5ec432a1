"""
telemetry.py

PURPOSE: OpenTelemetry initialization and tracer lookup.
DEPENDENCIES: opentelemetry-api, opentelemetry-sdk, opentelemetry-exporter-otlp (all optional)

ARCHITECTURE NOTES:
Driver modules call get_tracer(__name__) at import time. The returned
_DeferredTracer resolves to the real OpenTelemetry tracer only once
init_telemetry() has installed a provider; until then (or when the
packages are missing) spans are _NullSpan instances that ignore every call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nova.config import OpenTelemetrySettings

logger = logging.getLogger(__name__)

_initialized = False
_provider: Any = None


class _NullSpan:
    """Span stand-in used while tracing is off."""

    def __enter__(self) -> _NullSpan:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def set_attribute(self, key: str, value: object) -> None:  # noqa: ARG002
        return None

    def record_exception(self, exception: BaseException) -> None:  # noqa: ARG002
        return None


class _DeferredTracer:
    """Looks up the real tracer at span creation, not at import."""

    def __init__(self, name: str) -> None:
        self._name = name

    def start_as_current_span(self, name: str, **kwargs: Any) -> Any:
        if _provider is None:
            return _NullSpan()
        try:
            from opentelemetry import trace
        except ImportError:
            return _NullSpan()
        return trace.get_tracer(self._name).start_as_current_span(name, **kwargs)


def init_telemetry(settings: OpenTelemetrySettings) -> bool:
    """
    Install a tracer provider if tracing is enabled.

    Safe to call when the optional packages are not installed, and only
    the first call has any effect.

    Args:
        settings: Tracing settings.

    Returns:
        True if real spans will now be recorded.
    """
    global _initialized, _provider

    if _initialized:
        return _provider is not None
    _initialized = True

    if not settings.enabled:
        logger.debug("Tracing disabled")
        return False

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    except ImportError:
        logger.warning("OpenTelemetry not installed; install nova-llm[observability] for tracing")
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": settings.service_name}))

    if settings.endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError:
            logger.warning("OTLP exporter not available, exporting spans to console")
            provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        else:
            provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.endpoint))
            )
            logger.info(f"Exporting spans to {settings.endpoint}")
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _provider = provider
    logger.info(f"Tracing enabled for service {settings.service_name}")
    return True


def get_tracer(name: str) -> _DeferredTracer:
    """Get a tracer for a module (typically called with __name__)."""
    return _DeferredTracer(name)


def shutdown_telemetry() -> None:
    """Flush pending spans and forget the provider. Safe if never initialized."""
    global _initialized, _provider

    if _provider is not None:
        _provider.shutdown()
        logger.debug("Tracing shut down")

    _provider = None
    _initialized = False
