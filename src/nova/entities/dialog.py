"""
dialog.py

PURPOSE: Pydantic models for a conversation between a user and an LLM.
DEPENDENCIES: pydantic

ARCHITECTURE NOTES:
A Dialog is an ordered tuple of Rows. Every model here is frozen: adding a
row returns a NEW Dialog and leaves the original untouched, so a dialog can
be shared freely between drivers and callers without copying.

Rows carry optional RowMetadata (function calls, token usage, the hidden
flag and provider diagnostics). Drivers consume a Dialog and produce a Row;
callers append that Row to their Dialog.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Who produced a message."""

    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"


class FunctionCall(BaseModel):
    """
    One tool/function invocation attributed to the assistant.

    Drivers fill in everything except `result`, which is only set by the
    caller after it actually executes the function.
    """

    model_config = ConfigDict(frozen=True)

    function_name: str = Field(..., min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    completion_id: str | None = None
    finish_reason: str | None = None

    def with_result(self, result: Any) -> "FunctionCall":
        """Return a copy of this call with its outcome recorded."""
        return self.model_copy(update={"result": result})


class TokenUsage(BaseModel):
    """Token counters reported for one completion."""

    model_config = ConfigDict(frozen=True)

    prompt: NonNegativeInt = 0
    completion: NonNegativeInt = 0
    total: NonNegativeInt = 0


class RowMetadata(BaseModel):
    """
    Optional companion data for a dialog row.

    Only present on rows with function calls, token usage, provider
    diagnostics, or rows that must not be sent to a model (hidden).
    """

    model_config = ConfigDict(frozen=True)

    function_calls: tuple[FunctionCall, ...] | None = None
    hidden: bool | None = None
    tokens: TokenUsage | None = None
    extra: dict[str, Any] | None = None


class Row(BaseModel):
    """One message in a dialog."""

    model_config = ConfigDict(frozen=True)

    text: str
    role: Role
    timestamp: datetime = Field(default_factory=_utc_now)
    metadata: RowMetadata | None = None
    images: tuple[str, ...] | None = Field(
        default=None,
        description="Image references (URLs) attached to this message",
    )
    processed: bool = True

    @property
    def is_hidden(self) -> bool:
        """Whether this row must be kept out of what is sent to a model."""
        return self.metadata is not None and bool(self.metadata.hidden)


class Dialog(BaseModel):
    """
    A conversation between a user and an LLM.

    Rows are kept in insertion (chronological) order and are never mutated;
    every `add*` method returns a new Dialog.
    """

    model_config = ConfigDict(frozen=True)

    rows: tuple[Row, ...] = ()

    @classmethod
    def new(cls, initial_text: str | None = None, role: Role = Role.SYSTEM) -> "Dialog":
        """
        Create a dialog, optionally seeded with one message.

        Args:
            initial_text: Text of the first message. If None, the dialog is empty.
            role: Who sent the initial message.

        Returns:
            A new Dialog with zero or one rows.
        """
        dialog = cls()
        if initial_text is not None:
            return dialog.add(role, initial_text)
        return dialog

    def add(
        self,
        role: Role | str,
        text: str,
        metadata: RowMetadata | None = None,
        images: str | list[str] | tuple[str, ...] | None = None,
    ) -> "Dialog":
        """
        Append a message.

        Args:
            role: Who is sending the message.
            text: Text content of the message.
            metadata: Optional metadata for the message.
            images: Optional image references attached to the message. A single
                reference may be passed as a plain string.

        Returns:
            A new Dialog with the message appended.
        """
        if isinstance(images, str):
            images = (images,)
        row = Row(
            text=text,
            role=role,
            metadata=metadata,
            images=tuple(images) if images is not None else None,
        )
        return self.model_copy(update={"rows": (*self.rows, row)})

    def add_user(self, text: str) -> "Dialog":
        return self.add(Role.USER, text)

    def add_assistant(self, text: str) -> "Dialog":
        return self.add(Role.ASSISTANT, text)

    def add_system(self, text: str, hidden: bool = False) -> "Dialog":
        """Append a system message, optionally hidden from what is sent to a model."""
        metadata = RowMetadata(hidden=True) if hidden else None
        return self.add(Role.SYSTEM, text, metadata)

    def last_text(self) -> str:
        """Text of the final row, or an empty string for an empty dialog."""
        if not self.rows:
            return ""
        return self.rows[-1].text

    def get_messages(
        self, role: Role | str | None = None
    ) -> list[tuple[Role, str, tuple[str, ...] | None]]:
        """
        List `(role, text, images)` for each row, optionally filtered by role.

        Args:
            role: Only include rows from this role. None includes every row.

        Returns:
            Matching rows in their original order.
        """
        wanted = Role(role) if role is not None else None
        return [
            (row.role, row.text, row.images)
            for row in self.rows
            if wanted is None or row.role == wanted
        ]

    def __len__(self) -> int:
        return len(self.rows)
