"""Typed settings for the LLM adapter, the execution engine and the cognitive loop.

Each class reads its own environment prefix and a local .env file; explicit
constructor arguments win over both.

Usage:
    from ecsforge.config import EngineSettings, LLMSettings, LoopSettings

    engine_settings = EngineSettings()  # ENGINE_STEP_LIMIT etc.
    loop_settings = LoopSettings(max_repair_attempts=3, model="gpt-4o")
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):  # type: ignore[misc]
    """Defaults for ``InstructorAdapter`` completions.

    ``model`` is only the fallback: a model forced on ``LoopSettings`` or an
    ``IntentRequest`` is passed per call and wins. ``api_key``, ``base_url``
    and ``timeout`` are used when a factory builds the provider client itself.

    Environment Variables:
        LLM_MODEL, LLM_TEMPERATURE, LLM_MAX_TOKENS, LLM_MAX_RETRIES
        LLM_API_KEY, LLM_BASE_URL, LLM_TIMEOUT
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.2, ge=0, le=2)
    max_tokens: int | None = Field(default=None, gt=0)
    # Instructor re-asks on responses that fail response_model validation
    max_retries: int = Field(default=3, ge=0)
    api_key: str | None = None
    base_url: str | None = None
    timeout: float = Field(default=60.0, gt=0)


class EngineSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the execution engine and its sandbox.

    Attributes:
        step_limit: Loop iterations a single tick may perform before it faults.
        excerpt_context: Lines of logic shown around a faulting line.
        history_size: Execution records kept in the default in-memory history.

    Environment Variables:
        ENGINE_STEP_LIMIT
        ENGINE_EXCERPT_CONTEXT
        ENGINE_HISTORY_SIZE
    """

    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    step_limit: int = Field(default=100_000, gt=0)
    excerpt_context: int = Field(default=0, ge=0)
    history_size: int = Field(default=1000, ge=0)


class LoopSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the cognitive loop and synthesis gateway.

    Attributes:
        max_repair_attempts: Repair rounds allowed per request.
        synthesis_timeout: Seconds to wait for one synthesis call.
        synthesis_retries: Extra attempts after a synthesis timeout.
        synthesis_retry_delay: Base delay in seconds between timed-out attempts
            (exponential backoff; 0 retries immediately).
        model: Forced model for synthesis calls (None uses the adapter default).

    Environment Variables:
        LOOP_MAX_REPAIR_ATTEMPTS
        LOOP_SYNTHESIS_TIMEOUT
        LOOP_SYNTHESIS_RETRIES
        LOOP_SYNTHESIS_RETRY_DELAY
        LOOP_MODEL
    """

    model_config = SettingsConfigDict(
        env_prefix="LOOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_repair_attempts: int = Field(default=2, ge=0)
    synthesis_timeout: float = Field(default=120.0, gt=0)
    synthesis_retries: int = Field(default=1, ge=0)
    synthesis_retry_delay: float = Field(default=0.0, ge=0)
    model: str | None = None
