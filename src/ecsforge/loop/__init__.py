"""Cognitive loop: the serialized intent-to-execution pipeline.

Usage:
    from ecsforge.loop import CognitiveLoop, IntentRequest

    loop = CognitiveLoop(registry, world, gateway)
    report = await loop.handle(IntentRequest("add gravity", ticks=5))
"""

from ecsforge.loop.core import CognitiveLoop
from ecsforge.loop.models import IntentRequest, LoopPhase, LoopReport, LoopState, LoopStatus

__all__ = [
    "CognitiveLoop",
    "IntentRequest",
    "LoopPhase",
    "LoopReport",
    "LoopState",
    "LoopStatus",
]
