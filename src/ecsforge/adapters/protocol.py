"""LLMClient protocol: the one model call synthesis and planning make.

Both ``LLMSynthesizer`` and ``CognitivePlanner`` await a single structured
completion per request, so the protocol is a single async method. Tests
substitute an ``AsyncMock``; deployments use ``InstructorAdapter``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from ecsforge.adapters.models import Message

T = TypeVar("T")


@runtime_checkable
class LLMClient(Protocol):
    """Structured-output completion.

    Usage:
        proposal = await client.call_async(
            [Message.system(prompt), Message.user(intent)],
            response_model=RawProposal,
            model=request.model,  # None keeps the client's configured model
        )
    """

    async def call_async(
        self,
        messages: Sequence[Message],
        response_model: type[T],
        *,
        model: str | None = None,
        **options: Any,
    ) -> T:
        """Complete the conversation and parse the answer into ``response_model``.

        Args:
            messages: Conversation, system prompt first.
            response_model: Pydantic model the answer must validate against.
            model: Model for this call only.
            **options: Sampling overrides (``temperature``, ``max_tokens``) or
                provider-specific parameters.
        """
        ...
