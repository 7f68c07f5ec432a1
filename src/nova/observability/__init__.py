"""
observability/__init__.py

PURPOSE: Opt-in OpenTelemetry tracing for drivers.
DEPENDENCIES: opentelemetry-api, opentelemetry-sdk (optional extra)

Without the optional packages, or before init_telemetry() is called,
every span is a no-op.
"""

from nova.observability.telemetry import get_tracer, init_telemetry, shutdown_telemetry

__all__ = ["get_tracer", "init_telemetry", "shutdown_telemetry"]
