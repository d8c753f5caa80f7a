"""Prompt primitives for multi-step conversations.

A pending prompt is either a free-text/option :class:`Prompt` or a yes/no
:class:`Confirmation`. Both expose ``validate(answer)`` and ``render()`` so the
orchestrator never needs to check which one it holds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from projectbot.conversation.formatting import format_prompt

__all__ = ["Prompt", "Confirmation", "PendingPrompt", "PromptValidationError"]


class PromptValidationError(ValueError):
    """Raised when an answer does not fit the prompt's expected shape."""

    def __init__(self, message: str, answer: str = ""):
        super().__init__(message)
        self.answer = answer


@dataclass(frozen=True)
class Prompt:
    message: str
    options: tuple[str, ...] = field(default_factory=tuple)
    default: str = ""

    def render(self) -> str:
        lines = [format_prompt(self.message)]
        if self.options:
            lines.append("")
            lines.append("Options:")
            for idx, option in enumerate(self.options, start=1):
                suffix = " (default)" if option == self.default else ""
                lines.append(f"{idx}. {option}{suffix}")
        return "\n".join(lines)

    def validate(self, answer: str) -> str:
        """Return the canonical answer or raise :class:`PromptValidationError`."""
        trimmed = (answer or "").strip()
        if not trimmed and self.default:
            return self.default
        if self.options:
            for option in self.options:
                if trimmed.lower() == option.lower():
                    return option
            raise PromptValidationError(f"invalid option: {answer}", answer)
        if not trimmed:
            raise PromptValidationError("a response is required", answer)
        return trimmed


@dataclass(frozen=True)
class Confirmation:
    message: str
    default: bool = True

    def render(self) -> str:
        hint = "(Y/n)" if self.default else "(y/N)"
        return f"{format_prompt(self.message)}\n\n{hint}"

    def validate(self, answer: str) -> bool:
        normalized = (answer or "").strip().lower()
        if not normalized:
            return self.default
        if normalized in {"y", "yes"}:
            return True
        if normalized in {"n", "no"}:
            return False
        raise PromptValidationError(f"invalid response: {normalized}", answer)


PendingPrompt = Union[Prompt, Confirmation]
