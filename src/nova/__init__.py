"""
Nova - Integrate LLMs into business workflows.

This package provides:
- A Dialog model for conversation history
- A uniform Driver contract for turning a dialog into one model turn
- A deterministic mock driver and an OpenAI-compatible HTTP driver
"""

__version__ = "0.1.0"


def version() -> str:
    """Return the current version of Nova."""
    return __version__
