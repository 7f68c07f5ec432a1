"""
driver.py

PURPOSE: Abstract LLM driver interface.
DEPENDENCIES: None (pure Python + typing)

ARCHITECTURE NOTES:
A driver turns a Dialog (the conversation so far) into exactly one new
assistant Row. Structured output and tool calling are variations on that
same primitive, so a deterministic test double can honor the identical
contract as a live provider and dependent code never has to know which
one it was handed.

Options are passed as keyword arguments. Each driver picks out the keys it
recognizes and ignores the rest.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from nova.entities.dialog import Dialog, Row


class Driver(ABC):
    """Abstract base class for LLM drivers."""

    @abstractmethod
    def chat_dialog(self, dialog: Dialog, **options: Any) -> Row:
        """
        Generate the model's reply to a conversation.

        Args:
            dialog: The conversation history.
            **options: Driver tunables (model, temperature, max_tokens, ...).

        Returns:
            A new assistant Row, with token usage in its metadata.

        Raises:
            DriverError: If the reply could not be produced.
        """
        ...

    @abstractmethod
    def chat_dialog_structured(
        self,
        dialog: Dialog,
        schema: Any,
        **options: Any,
    ) -> dict[str, Any]:
        """
        Generate a reply coerced into data shaped like `schema`.

        Args:
            dialog: The conversation history.
            schema: Expected structure, e.g. a mapping of field name to type hint.
            **options: Driver tunables.

        Returns:
            The decoded structured reply.

        Raises:
            DriverError: If the reply could not be produced or decoded.
        """
        ...

    @abstractmethod
    def chat_dialog_with_tools(
        self,
        dialog: Dialog,
        tools: Sequence[Mapping[str, Any]] | None,
        **options: Any,
    ) -> Row:
        """
        Generate a reply, letting the model call one of `tools` instead of answering.

        Args:
            dialog: The conversation history.
            tools: Tool descriptors (name, description, parameter schema). Empty
                or None means no tools.
            **options: Driver tunables.

        Returns:
            An assistant Row. When the model called a tool, its text is empty
            and `metadata.function_calls` lists the calls; otherwise
            `function_calls` is None and the text is the reply.

        Raises:
            DriverError: If the reply could not be produced.
        """
        ...

    def chat(self, prompt: str, **options: Any) -> str:
        """
        Send a single prompt and return the reply text.

        Errors raised by `chat_dialog` propagate unchanged.
        """
        dialog = Dialog.new().add_user(prompt)
        return self.chat_dialog(dialog, **options).text
