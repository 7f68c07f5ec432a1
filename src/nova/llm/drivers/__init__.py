"""Concrete LLM drivers."""

from nova.llm.drivers.mock import MockDriver
from nova.llm.drivers.openai import OpenAIDriver, create_openai_driver

__all__ = [
    "MockDriver",
    "OpenAIDriver",
    "create_openai_driver",
]
