"""Configuration module using Pydantic Settings.

Usage:
    from ecsforge.config import EngineSettings, LLMSettings, LoopSettings

    engine = EngineSettings(step_limit=10_000)
    llm = LLMSettings(model="gpt-4o", temperature=0.0)
"""

from ecsforge.config.settings import EngineSettings, LLMSettings, LoopSettings

__all__ = [
    "LLMSettings",
    "EngineSettings",
    "LoopSettings",
]
