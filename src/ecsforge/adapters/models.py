"""Conversation messages sent through an LLMClient."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class MessageRole(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """One turn of a conversation.

    Synthesis and planning send exactly two: the contract as a system turn
    and the rendered request as a user turn.
    """

    role: MessageRole
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(MessageRole.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(MessageRole.USER, content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(MessageRole.ASSISTANT, content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def as_payload(messages: Iterable[Message]) -> list[dict[str, str]]:
    """Chat-completions ``messages`` list, order preserved."""
    return [m.to_dict() for m in messages]
