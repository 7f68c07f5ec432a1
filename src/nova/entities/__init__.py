"""Conversation entities shared by every driver."""

from nova.entities.dialog import Dialog, FunctionCall, Role, Row, RowMetadata, TokenUsage

__all__ = [
    "Dialog",
    "FunctionCall",
    "Role",
    "Row",
    "RowMetadata",
    "TokenUsage",
]
