"""Falling particles: synthesize a tiny physics world, break it, let it repair.

Usage:
    python examples/falling_particles.py          # Scripted synthesizer, no network
    python examples/falling_particles.py --llm    # Claude via instructor (needs ANTHROPIC_API_KEY)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

from ecsforge import CognitiveLoop, IntentRequest, SchemaRegistry, SynthesisGateway, World
from ecsforge.config import LoopSettings
from ecsforge.synthesis import LLMSynthesizer, Synthesizer

# First answer divides by each particle's height, which faults once one lands.
SCRIPT = [
    {
        "components": [
            {
                "name": "Position",
                "properties": [{"name": "x", "type": "number"}, {"name": "y", "type": "number"}],
            },
            {"name": "Velocity", "properties": [{"name": "dy", "type": "number"}]},
        ],
        "systems": [
            {
                "name": "Gravity",
                "requiredComponents": ["Position", "Velocity"],
                "code": (
                    "for eid in entities:\n"
                    "    Velocity.dy[eid] -= 1 + 1 / Position.y[eid]\n"
                    "    Position.y[eid] = max(0, Position.y[eid] + Velocity.dy[eid])"
                ),
            }
        ],
    },
    {
        "systems": [
            {
                "name": "Gravity",
                "requiredComponents": ["Position", "Velocity"],
                "code": (
                    "for eid in entities:\n"
                    "    if Position.y[eid] > 0:\n"
                    "        Velocity.dy[eid] -= 1\n"
                    "        Position.y[eid] = max(0, Position.y[eid] + Velocity.dy[eid])"
                ),
            }
        ]
    },
]


class ScriptedSynthesizer:
    """Replays SCRIPT, one answer per call."""

    def __init__(self) -> None:
        self._answers = list(SCRIPT)

    async def synthesize(self, request):
        return self._answers.pop(0) if self._answers else {}


def build_llm_synthesizer() -> Synthesizer:
    """Claude-backed synthesizer through the instructor adapter."""
    from ecsforge.adapters.instructor import InstructorAdapter
    from ecsforge.config import LLMSettings

    key = os.getenv("ANTHROPIC_API_KEY")
    if not key:
        raise ValueError("No ANTHROPIC_API_KEY found. Set the environment variable to use Claude.")
    settings = LLMSettings(api_key=key, model=os.getenv("LLM_MODEL", "claude-sonnet-4-5"))
    client = InstructorAdapter.from_anthropic(settings)
    return LLMSynthesizer(client)


async def main(use_llm: bool) -> None:
    registry = SchemaRegistry()
    world = World(registry)
    synthesizer = build_llm_synthesizer() if use_llm else ScriptedSynthesizer()
    gateway = SynthesisGateway(synthesizer, LoopSettings(max_repair_attempts=2))
    loop = CognitiveLoop(registry, world, gateway)

    report = await loop.handle(
        IntentRequest("Particles with a height and a vertical speed that fall under gravity")
    )
    print(f"Registered: {report.commit.registered if report.commit else []}")
    if "Position" not in registry or "Velocity" not in registry:
        print("Synthesis did not produce Position and Velocity; stopping.")
        return

    for height in (3, 6, 12):
        world.spawn({"Position": {"y": height}, "Velocity": {}})

    report = await loop.handle(IntentRequest(ticks=4, skip_synthesis=True))
    for commit in report.repairs:
        print(f"Repaired: {commit.replaced}")
    if report.unresolved:
        print(f"Still broken: {', '.join(report.unresolved)}")
    print(f"Status: {report.status.value}, phases: {[p.value for p in report.phases]}")
    print(json.dumps(world.snapshot(), indent=2))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--llm", action="store_true", help="Use Claude instead of the script")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main(args.llm))
