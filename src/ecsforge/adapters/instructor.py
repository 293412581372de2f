"""Instructor-backed LLMClient.

Every factory patches an async provider client, since synthesis and
planning only ever await. When no client is passed, one is built from
``LLMSettings`` (api_key, base_url, timeout).

Usage:
    from ecsforge.adapters.instructor import InstructorAdapter
    from ecsforge.config import LLMSettings

    client = InstructorAdapter.from_openai(LLMSettings(model="gpt-4o-mini"))
    client = InstructorAdapter.from_anthropic(LLMSettings(model="claude-sonnet-4-5"))
    client = InstructorAdapter.from_litellm(LLMSettings(model="openai/gpt-4o"))

    synthesizer = LLMSynthesizer(client)
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, TypeVar, cast

from ecsforge.adapters.models import Message, as_payload
from ecsforge.config import LLMSettings

if TYPE_CHECKING:
    import instructor

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EXTRA_HINT = "Install with: pip install ecsforge[llm]"


def _require(module: str) -> Any:
    """Import an optional provider module or explain which extra provides it."""
    try:
        return importlib.import_module(module)
    except ImportError as e:
        raise ImportError(f"{module} is required for InstructorAdapter. {_EXTRA_HINT}") from e


class InstructorAdapter:
    """LLMClient over an instructor-patched async client.

    Args:
        client: ``instructor.AsyncInstructor`` (use a factory).
        settings: Default model, sampling and retry settings.
    """

    def __init__(
        self,
        client: instructor.AsyncInstructor,
        settings: LLMSettings | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or LLMSettings()

    @property
    def settings(self) -> LLMSettings:
        return self._settings

    # Factories

    @classmethod
    def from_openai(
        cls,
        settings: LLMSettings | None = None,
        client: Any | None = None,
        mode: Any | None = None,
    ) -> InstructorAdapter:
        """Patch an ``openai.AsyncOpenAI`` client (default mode: TOOLS)."""
        settings = settings or LLMSettings()
        instructor = _require("instructor")
        if client is None:
            openai = _require("openai")
            client = openai.AsyncOpenAI(
                api_key=settings.api_key, base_url=settings.base_url, timeout=settings.timeout
            )
        patched = instructor.from_openai(client, mode=mode or instructor.Mode.TOOLS)
        return cls(patched, settings)

    @classmethod
    def from_anthropic(
        cls,
        settings: LLMSettings | None = None,
        client: Any | None = None,
        mode: Any | None = None,
    ) -> InstructorAdapter:
        """Patch an ``anthropic.AsyncAnthropic`` client (default mode: ANTHROPIC_TOOLS)."""
        settings = settings or LLMSettings()
        instructor = _require("instructor")
        if client is None:
            anthropic = _require("anthropic")
            client = anthropic.AsyncAnthropic(
                api_key=settings.api_key, base_url=settings.base_url, timeout=settings.timeout
            )
        patched = instructor.from_anthropic(client, mode=mode or instructor.Mode.ANTHROPIC_TOOLS)
        return cls(patched, settings)

    @classmethod
    def from_litellm(
        cls, settings: LLMSettings | None = None, mode: Any | None = None
    ) -> InstructorAdapter:
        """Route through ``litellm.acompletion``; ``settings.model`` is provider/model."""
        instructor = _require("instructor")
        try:
            import litellm  # type: ignore[import-not-found]
        except ImportError as e:
            raise ImportError(
                "litellm is required for from_litellm. Install with: pip install litellm"
            ) from e
        patched = instructor.from_litellm(litellm.acompletion, mode=mode or instructor.Mode.TOOLS)
        return cls(patched, settings)

    # LLMClient

    def _request(
        self,
        messages: Sequence[Message],
        response_model: type[Any],
        model: str | None,
        options: dict[str, Any],
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": model or self._settings.model,
            "messages": as_payload(messages),
            "response_model": response_model,
            "temperature": options.pop("temperature", self._settings.temperature),
            "max_retries": options.pop("max_retries", self._settings.max_retries),
        }
        max_tokens = options.pop("max_tokens", self._settings.max_tokens)
        if max_tokens is not None:
            request["max_tokens"] = max_tokens
        request.update(options)
        return request

    async def call_async(
        self,
        messages: Sequence[Message],
        response_model: type[T],
        *,
        model: str | None = None,
        **options: Any,
    ) -> T:
        """Await one structured completion.

        ``model=None`` falls back to ``settings.model``; sampling options not
        given fall back to the settings too.
        """
        request = self._request(messages, response_model, model, options)
        logger.debug("Completion with %s -> %s", request["model"], response_model.__name__)
        return cast(T, await self._client.chat.completions.create(**request))
