"""Cognitive loop: intent in, registered and exercised systems out.

One pass walks RECEIVE_INTENT, SYNTHESIZE, REGISTER, EXECUTE, DIAGNOSE,
REPAIR and REPORT. Repair is bounded by ``LoopSettings.max_repair_attempts``
and a repaired system resumes the ticks it still owed.

Usage:
    loop = CognitiveLoop(registry, world, gateway, engine)

    report = await loop.handle(IntentRequest("particles drift right", ticks=3))
    report.status        # LoopStatus.OK
    report.commit        # what registered
    report.unresolved    # {} unless repair ran out of attempts

    # Execute and diagnose without synthesis
    loop.handle_sync(IntentRequest(ticks=1, skip_synthesis=True, diagnose=True))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from ecsforge.cognition import CognitivePlanner, Goal, Plan
from ecsforge.config import LoopSettings
from ecsforge.core.errors import SchemaError, SynthesisTimeoutError
from ecsforge.diagnostics import diagnose
from ecsforge.execution import ExecutionEngine
from ecsforge.loop.models import IntentRequest, LoopPhase, LoopReport, LoopState, LoopStatus
from ecsforge.registry import SchemaRegistry
from ecsforge.synthesis import RepairFocus, SynthesisGateway, SynthesisRequest
from ecsforge.world import World

logger = logging.getLogger(__name__)


class CognitiveLoop:
    """Serializes intent requests against one world.

    Args:
        registry: Schema registry shared by the world and the engine.
        world: World the executed systems act on.
        gateway: Synthesis gateway used for both synthesis and repair.
        engine: Execution engine (default: a new one over ``registry``).
        settings: Repair budget and forced model (default: the gateway's).

    Raises:
        ValueError: If the world or engine is bound to a different registry.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        world: World,
        gateway: SynthesisGateway,
        engine: ExecutionEngine | None = None,
        settings: LoopSettings | None = None,
    ):
        if world.registry is not registry:
            raise ValueError("World is bound to a different registry")
        engine = engine or ExecutionEngine(registry)
        if engine.registry is not registry:
            raise ValueError("Engine is bound to a different registry")
        self._registry = registry
        self._world = world
        self._gateway = gateway
        self._engine = engine
        self._settings = settings or gateway.settings
        self._lock = asyncio.Lock()

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def world(self) -> World:
        return self._world

    @property
    def engine(self) -> ExecutionEngine:
        return self._engine

    def _enter(self, report: LoopReport, phase: LoopPhase) -> None:
        report.enter(phase)
        logger.info("Loop phase %s", phase.value)

    def _model_for(self, request: IntentRequest) -> str | None:
        return request.model or self._settings.model

    # Entry points

    async def handle(self, request: IntentRequest) -> LoopReport:
        """Process one request. Concurrent calls run one at a time.

        Synthesis failures, rejections and faults are reported, never raised.
        """
        async with self._lock:
            return await self._handle(request)

    def handle_sync(self, request: IntentRequest) -> LoopReport:
        """Blocking wrapper around ``handle`` for callers without an event loop."""
        return asyncio.run(self.handle(request))

    async def pursue(
        self, goals: Sequence[Goal], plan: Plan | None = None, **options: Any
    ) -> LoopReport | None:
        """Handle the intent ``CognitivePlanner.next_intent`` picks.

        Args:
            goals: Current goals.
            plan: Active plan, whose next open step takes precedence.
            **options: Further IntentRequest fields (ticks, diagnose, ...).

        Returns:
            The report, or None when no goal or step is pending.
        """
        intent = CognitivePlanner.next_intent(goals, plan)
        if intent is None:
            logger.info("No pending goal or plan step")
            return None
        return await self.handle(IntentRequest(intent, **options))

    # Phases

    async def _handle(self, request: IntentRequest) -> LoopReport:
        report = LoopReport(intent=request.intent)
        state = LoopState(max_attempts=self._settings.max_repair_attempts)
        self._enter(report, LoopPhase.RECEIVE_INTENT)

        registered: list[str] = []
        if not request.skip_synthesis:
            self._enter(report, LoopPhase.SYNTHESIZE)
            synthesis = SynthesisRequest(
                request.intent, self._registry.snapshot(), model=self._model_for(request)
            )
            try:
                proposal = await self._gateway.propose(synthesis)
            except (SynthesisTimeoutError, SchemaError) as e:
                logger.warning("Synthesis aborted: %s", e.message)
                report.errors.append(e.message)
                return self._finish(report, state, failed=True)

            self._enter(report, LoopPhase.REGISTER)
            report.commit = self._gateway.commit(proposal, self._registry)
            registered = report.commit.systems

        targets = list(request.systems) or registered or self._registry.list_systems()
        unknown = [name for name in targets if self._registry.get_system(name) is None]
        if unknown:
            report.errors.append(f"Systems not found: {', '.join(unknown)}")
            return self._finish(report, state, failed=True)

        if request.ticks > 0 and targets:
            self._enter(report, LoopPhase.EXECUTE)
            self._execute(targets, request.ticks, state, report)

        if request.diagnose or state.remaining or report.rejections:
            self._diagnose(targets, report)

        while state.remaining and state.can_repair:
            await self._repair(request, state, report)
            self._diagnose(targets, report)

        return self._finish(report, state)

    def _execute(
        self, systems: Sequence[str], ticks: int, state: LoopState, report: LoopReport
    ) -> None:
        # Systems interleave tick by tick; a faulting system drops out and owes
        # the faulted tick plus the rest.
        active = list(systems)
        for tick in range(ticks):
            for name in list(active):
                result = self._engine.execute(name, self._world)
                report.ticks.append(result)
                if not result.ok:
                    active.remove(name)
                    state.stop(name, ticks - tick, result.fault)

    def _resume(self, name: str, state: LoopState, report: LoopReport) -> None:
        batch = self._engine.execute_batch(name, self._world, state.remaining[name])
        report.ticks.extend(batch.results)
        if batch.fault is None:
            state.resolve(name)
        else:
            state.stop(name, batch.remaining + 1, batch.fault)

    def _diagnose(self, systems: Sequence[str], report: LoopReport) -> None:
        self._enter(report, LoopPhase.DIAGNOSE)
        report.diagnostics = diagnose(self._registry, systems)

    async def _repair(self, request: IntentRequest, state: LoopState, report: LoopReport) -> None:
        name = state.next_broken()
        if name is None:
            return
        state.attempts += 1
        report.repair_attempts = state.attempts
        self._enter(report, LoopPhase.REPAIR)

        defn = self._registry.require_system(name)
        diagnosis = report.diagnostics.system(name) if report.diagnostics else None
        focus = RepairFocus(
            system=name,
            logic=defn.logic,
            required_components=defn.required_components,
            error=state.faults.get(name) or defn.last_error,
            warnings=diagnosis.warnings if diagnosis else (),
            attempt=state.attempts,
        )
        logger.info("Repairing %s (attempt %d of %d)", name, state.attempts, state.max_attempts)

        synthesis = SynthesisRequest(
            request.intent, self._registry.snapshot(), focus, self._model_for(request)
        )
        try:
            proposal = await self._gateway.propose(synthesis)
        except (SynthesisTimeoutError, SchemaError) as e:
            logger.warning("Repair synthesis for %s aborted: %s", name, e.message)
            report.errors.append(f"Repair of {name}: {e.message}")
            return

        commit = self._gateway.commit(proposal, self._registry)
        report.repairs.append(commit)
        if name not in commit.replaced:
            logger.warning("Repair of %s produced no replacement", name)
            return

        self._engine.invalidate(name)
        self._enter(report, LoopPhase.EXECUTE)
        self._resume(name, state, report)

    def _finish(self, report: LoopReport, state: LoopState, failed: bool = False) -> LoopReport:
        self._enter(report, LoopPhase.REPORT)
        report.unresolved = dict(state.faults)
        for name in state.remaining:
            if name not in report.unresolved:
                defn = self._registry.get_system(name)
                if defn is not None and defn.last_error is not None:
                    report.unresolved[name] = defn.last_error
        if failed:
            report.status = LoopStatus.FAILED
        elif report.unresolved or report.rejections:
            report.status = LoopStatus.PARTIAL
        else:
            report.status = LoopStatus.OK
        logger.info(
            "Request finished: %s (%d ticks, %d repair attempts)",
            report.status.value,
            len(report.ticks),
            report.repair_attempts,
        )
        return report
