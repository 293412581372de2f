"""Tests for the cognitive loop.

Critical Invariants:
- Phases run in order; the report lists every phase visited
- Repair is bounded by max_repair_attempts and scoped to one system
- A repaired system resumes the ticks it still owed
- Exhausted repairs and aborted synthesis are reported, never raised
- Requests on one loop never overlap
"""

import asyncio

import pytest

from ecsforge import (
    CognitiveLoop,
    IntentRequest,
    LoopPhase,
    LoopStatus,
    RawProposal,
    SchemaRegistry,
    SynthesisGateway,
    World,
)
from ecsforge.cognition import Goal
from ecsforge.config import LoopSettings

P = LoopPhase

FLAKY = {
    "name": "Flaky",
    "requiredComponents": ["Position"],
    "logic": (
        "for eid in entities:\n"
        "    Position.x[eid] += 1\n"
        "    if Position.x[eid] == 2:\n"
        "        raise RuntimeError('second tick')"
    ),
}
FIXED = {
    "name": "Flaky",
    "requiredComponents": ["Position"],
    "logic": "for eid in entities:\n    Position.x[eid] += 1",
}
STILL_BROKEN = {"name": "Flaky", "requiredComponents": ["Position"], "logic": "x = 1 / 0"}


class ScriptedSynthesizer:
    """Canned responses in order; a float hangs for that many seconds."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.active = 0
        self.max_active = 0

    async def synthesize(self, request):
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            response = self.responses.pop(0) if self.responses else {}
            if isinstance(response, float):
                await asyncio.sleep(response)
                return RawProposal()
            await asyncio.sleep(0)
            return response
        finally:
            self.active -= 1


def _loop(registry, world, *responses, **settings):
    settings.setdefault("synthesis_timeout", 1.0)
    synthesizer = ScriptedSynthesizer(*responses)
    gateway = SynthesisGateway(synthesizer, LoopSettings(**settings))
    return CognitiveLoop(registry, world, gateway), synthesizer


@pytest.mark.asyncio
async def test_intent_registers_and_runs(registry, world):
    e = world.spawn({"Position": {}})
    loop, _ = _loop(registry, world, {"systems": [FIXED]})

    report = await loop.handle(IntentRequest("drift right", ticks=3))

    assert report.status is LoopStatus.OK
    assert report.phases == [P.RECEIVE_INTENT, P.SYNTHESIZE, P.REGISTER, P.EXECUTE, P.REPORT]
    assert report.commit.systems == ["Flaky"]
    assert len(report.ticks) == 3
    assert world.get_component_value(e, "Position", "x") == 3


@pytest.mark.asyncio
async def test_repaired_system_resumes_remaining_ticks(registry, world):
    e = world.spawn({"Position": {}})
    loop, synthesizer = _loop(registry, world, {"systems": [FLAKY]}, {"systems": [FIXED]})

    report = await loop.handle(IntentRequest("count up", ticks=5))

    assert report.status is LoopStatus.OK
    assert report.repair_attempts == 1
    assert report.unresolved == {}
    assert report.phases == [
        P.RECEIVE_INTENT,
        P.SYNTHESIZE,
        P.REGISTER,
        P.EXECUTE,
        P.DIAGNOSE,
        P.REPAIR,
        P.EXECUTE,
        P.DIAGNOSE,
        P.REPORT,
    ]
    # Tick 2 wrote before faulting, then four replayed ticks
    assert world.get_component_value(e, "Position", "x") == 6
    assert registry.get_system("Flaky").run_count == 5

    focus = synthesizer.requests[1].focus
    assert focus.system == "Flaky"
    assert focus.error.tick == 2
    assert "second tick" in focus.error.message
    assert focus.logic == FLAKY["logic"]


@pytest.mark.asyncio
async def test_repair_exhaustion_reports_unresolved(registry, world):
    world.spawn({"Position": {}})
    loop, synthesizer = _loop(
        registry,
        world,
        {"systems": [FLAKY]},
        {"systems": [STILL_BROKEN]},
        {"systems": [STILL_BROKEN]},
        max_repair_attempts=2,
    )

    report = await loop.handle(IntentRequest("count up", ticks=5))

    assert report.status is LoopStatus.PARTIAL
    assert report.repair_attempts == 2
    assert len(synthesizer.requests) == 3
    assert [r.focus.attempt for r in synthesizer.requests[1:]] == [1, 2]
    assert report.unresolved["Flaky"].message.startswith("ZeroDivisionError")
    assert report.diagnostics.system("Flaky").last_error is not None


@pytest.mark.asyncio
async def test_repair_without_replacement_counts_as_attempt(registry, world):
    world.spawn({"Position": {}})
    loop, _ = _loop(registry, world, {"systems": [FLAKY]}, {}, max_repair_attempts=1)

    report = await loop.handle(IntentRequest("count up", ticks=3))

    assert report.repair_attempts == 1
    assert report.repairs[0].replaced == []
    assert "Flaky" in report.unresolved


@pytest.mark.asyncio
async def test_zero_repair_budget_skips_repair(registry, world):
    world.spawn({"Position": {}})
    loop, synthesizer = _loop(registry, world, {"systems": [FLAKY]}, max_repair_attempts=0)

    report = await loop.handle(IntentRequest("count up", ticks=3))

    assert P.REPAIR not in report.phases
    assert len(synthesizer.requests) == 1
    assert report.status is LoopStatus.PARTIAL


@pytest.mark.asyncio
async def test_synthesis_timeout_fails_request(registry, world):
    loop, synthesizer = _loop(registry, world, 0.5, synthesis_timeout=0.01, synthesis_retries=0)

    report = await loop.handle(IntentRequest("slow", ticks=3))

    assert report.status is LoopStatus.FAILED
    assert report.phases == [P.RECEIVE_INTENT, P.SYNTHESIZE, P.REPORT]
    assert "timed out" in report.errors[0]
    assert report.ticks == []


@pytest.mark.asyncio
async def test_rejections_make_report_partial(registry, world):
    bad = {"name": "Bad", "requiredComponents": ["Ghost"], "logic": "pass"}
    loop, _ = _loop(registry, world, {"systems": [bad]})

    report = await loop.handle(IntentRequest("haunt"))

    assert report.status is LoopStatus.PARTIAL
    assert [r.name for r in report.rejections] == ["Bad"]
    assert P.DIAGNOSE in report.phases
    assert "Bad" not in registry.list_systems()


@pytest.mark.asyncio
async def test_skip_synthesis_executes_and_diagnoses(registry, world, move_system):
    registry.register_system(move_system)
    e = world.spawn({"Position": {}})
    loop, synthesizer = _loop(registry, world)

    report = await loop.handle(IntentRequest(ticks=2, skip_synthesis=True, diagnose=True))

    assert synthesizer.requests == []
    assert report.phases == [P.RECEIVE_INTENT, P.EXECUTE, P.DIAGNOSE, P.REPORT]
    assert report.diagnostics.system("Move").warnings == ()
    assert world.get_component_value(e, "Position", "x") == 2


@pytest.mark.asyncio
async def test_named_systems_only(registry, world, move_system):
    registry.register_system(move_system)
    loop, _ = _loop(registry, world, {"systems": [FIXED]})
    world.spawn({"Position": {}})

    report = await loop.handle(IntentRequest("drift", ticks=1, systems=("Move",)))

    assert [t.system for t in report.ticks] == ["Move"]


@pytest.mark.asyncio
async def test_unknown_named_system_fails(registry, world):
    loop, _ = _loop(registry, world)

    report = await loop.handle(IntentRequest(ticks=1, systems=("Ghost",), skip_synthesis=True))

    assert report.status is LoopStatus.FAILED
    assert report.errors == ["Systems not found: Ghost"]


@pytest.mark.asyncio
async def test_model_override_threaded_through(registry, world):
    loop, synthesizer = _loop(registry, world, {}, {}, model="loop-model")

    await loop.handle(IntentRequest("a"))
    await loop.handle(IntentRequest("b", model="request-model"))

    assert [r.model for r in synthesizer.requests] == ["loop-model", "request-model"]


@pytest.mark.asyncio
async def test_requests_are_serialized(registry, world):
    loop, synthesizer = _loop(registry, world, {}, {}, {})

    await asyncio.gather(*(loop.handle(IntentRequest(f"intent {i}")) for i in range(3)))

    assert len(synthesizer.requests) == 3
    assert synthesizer.max_active == 1


@pytest.mark.asyncio
async def test_pursue_sends_most_pressing_goal(registry, world):
    loop, synthesizer = _loop(registry, world, {})
    goals = [
        Goal(id="g1", description="Add fish", priority=1),
        Goal(id="g2", description="Add water", priority=9),
    ]

    report = await loop.pursue(goals, ticks=0)

    assert report.intent == "Add water"
    assert synthesizer.requests[0].intent == "Add water"
    assert await loop.pursue([]) is None


def test_handle_sync(registry, world, move_system):
    registry.register_system(move_system)
    loop, _ = _loop(registry, world)

    report = loop.handle_sync(IntentRequest(ticks=1, skip_synthesis=True))

    assert report.status is LoopStatus.OK
    assert report.to_dict()["phases"] == ["receive_intent", "execute", "report"]


def test_request_validation():
    with pytest.raises(ValueError):
        IntentRequest("x", ticks=-1)
    with pytest.raises(ValueError, match="intent is required"):
        IntentRequest("  ")


def test_loop_requires_shared_registry(registry):
    gateway = SynthesisGateway(ScriptedSynthesizer())
    with pytest.raises(ValueError, match="different registry"):
        CognitiveLoop(registry, World(SchemaRegistry()), gateway)
