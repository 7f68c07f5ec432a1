"""
config.py

PURPOSE: Configuration loading and settings management.
DEPENDENCIES: pydantic, pydantic-settings

ARCHITECTURE NOTES:
Configuration comes from (in priority order):
1. Per-call driver options (api_key, base_url, model, timeout)
2. Environment variables (OPENAI_API_KEY, NOVA_LLM_*, NOVA_OTEL_*)
3. Defaults

get_settings() reads the environment every time it is called. The HTTP
driver calls it per request, so credentials can change between calls.
"""

import os

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMSettings(BaseSettings):
    """Settings for the OpenAI-compatible HTTP driver."""

    openai_api_key: str = Field(
        default="",
        description="API key (or set OPENAI_API_KEY env var)",
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the chat-completions API",
    )
    model: str = Field(
        default="gpt-4o",
        min_length=1,
        description="Default model name/ID",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = {"env_prefix": "NOVA_LLM_"}


class OpenTelemetrySettings(BaseSettings):
    """Settings for opt-in tracing."""

    enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    service_name: str = Field(default="nova", description="Reported service name")
    endpoint: str | None = Field(
        default=None,
        description="OTLP gRPC endpoint; console export only when unset",
    )

    model_config = {"env_prefix": "NOVA_OTEL_"}


class Settings(BaseSettings):
    """Main library settings."""

    llm: LLMSettings = Field(
        default_factory=LLMSettings,
        description="LLM driver settings",
    )
    otel: OpenTelemetrySettings = Field(
        default_factory=OpenTelemetrySettings,
        description="Tracing settings",
    )

    model_config = {"env_prefix": "NOVA_"}


def get_settings() -> Settings:
    """Get settings, loading from the environment."""
    # The standard OpenAI variable wins over NOVA_LLM_OPENAI_API_KEY
    api_key = os.environ.get("OPENAI_API_KEY", "")

    llm_settings = LLMSettings(openai_api_key=api_key) if api_key else LLMSettings()

    return Settings(llm=llm_settings, otel=OpenTelemetrySettings())
