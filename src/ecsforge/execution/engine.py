"""Execution engine: runs registered systems against a world.

A system tick is sandboxed: faults never propagate out of ``execute``.
They are turned into a FaultRecord, stored on the system through the
registry, and returned as a failed TickResult.

Usage:
    engine = ExecutionEngine(registry, EngineSettings(step_limit=10_000))

    result = engine.execute("Move", world)
    if not result.ok:
        print(result.fault.message, result.fault.excerpt)

    batch = engine.execute_batch("Move", world, 5)   # fail-fast
    results = engine.tick(world)                      # every system once
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from types import CodeType

from ecsforge.config import EngineSettings
from ecsforge.core.errors import (
    AccessError,
    LogicRejectedError,
    NotFoundError,
    SchemaError,
    StepLimitExceeded,
)
from ecsforge.core.system import FaultKind, FaultRecord, SystemDefinition
from ecsforge.execution.models import BatchResult, TickResult
from ecsforge.execution.sandbox import (
    StepBudget,
    build_namespace,
    compile_logic,
    excerpt,
    fault_line,
)
from ecsforge.registry import SchemaRegistry
from ecsforge.tracing import ExecutionRecord, HistoryStore, InMemoryHistory
from ecsforge.world import ScopedAccess, World

logger = logging.getLogger(__name__)


def classify(error: BaseException) -> FaultKind:
    """Map an exception raised during a tick to a fault category."""
    if isinstance(error, LogicRejectedError):
        return FaultKind.COMPILE
    if isinstance(error, StepLimitExceeded):
        return FaultKind.STEP_LIMIT
    if isinstance(error, AccessError):
        return FaultKind.ACCESS
    if isinstance(error, SchemaError):
        return FaultKind.SCHEMA
    return FaultKind.RUNTIME


class ExecutionEngine:
    """Runs system logic in the sandbox and records outcomes on the registry.

    Compiled logic is cached per system and recompiled when the logic text
    changes (e.g. after a repair replaced it).

    Args:
        registry: Registry holding the systems to run.
        settings: Engine settings (defaults from ENGINE_* env vars).
        history: Store receiving one ExecutionRecord per tick. When omitted an
            InMemoryHistory of ``settings.history_size`` records is used;
            a size of 0 disables history.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        settings: EngineSettings | None = None,
        history: HistoryStore | None = None,
    ):
        self._registry = registry
        self._settings = settings or EngineSettings()
        if history is None and self._settings.history_size > 0:
            history = InMemoryHistory(max_records=self._settings.history_size)
        self._history = history
        self._compiled: dict[str, tuple[str, CodeType]] = {}

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def history(self) -> HistoryStore | None:
        return self._history

    def _code_for(self, defn: SystemDefinition) -> CodeType:
        cached = self._compiled.get(defn.name)
        if cached is not None and cached[0] == defn.logic:
            return cached[1]
        code = compile_logic(defn.name, defn.logic)
        self._compiled[defn.name] = (defn.logic, code)
        return code

    def invalidate(self, system_name: str | None = None) -> None:
        """Drop cached compiled logic for one system, or all."""
        if system_name is None:
            self._compiled.clear()
        else:
            self._compiled.pop(system_name, None)

    def _fault(self, defn: SystemDefinition, error: Exception, tick: int) -> FaultRecord:
        if isinstance(error, LogicRejectedError):
            line = error.line
            message = error.message
        else:
            line = fault_line(error.__traceback__, defn.name)
            message = f"{type(error).__name__}: {error}"
        return FaultRecord(
            message=message,
            kind=classify(error),
            excerpt=excerpt(defn.logic, line, self._settings.excerpt_context),
            line=line,
            tick=tick,
        )

    def execute(self, system_name: str, world: World) -> TickResult:
        """Run one tick of a system.

        Args:
            system_name: Registered system name.
            world: World the system reads and writes.

        Returns:
            TickResult; on fault, the same FaultRecord is stored as the
            system's last_error.

        Raises:
            NotFoundError: If the system is not registered.
        """
        defn = self._registry.require_system(system_name)
        tick = defn.run_count + 1
        started_at = time.time()
        start = time.perf_counter()
        fault: FaultRecord | None = None

        try:
            code = self._code_for(defn)
            budget = StepBudget(self._settings.step_limit)
            namespace = build_namespace(ScopedAccess(world, defn), budget)
            exec(code, namespace)
        except Exception as e:
            fault = self._fault(defn, e, tick)

        duration_ms = (time.perf_counter() - start) * 1000
        if fault is None:
            self._registry.record_success(defn.name)
            logger.debug("System %s tick %d ok (%.2f ms)", defn.name, tick, duration_ms)
        else:
            self._registry.record_error(defn.name, fault)

        if self._history is not None:
            self._history.record(
                ExecutionRecord(
                    system=defn.name,
                    tick=tick,
                    timestamp=started_at,
                    ok=fault is None,
                    duration_ms=duration_ms,
                    fault=fault.to_dict() if fault else None,
                )
            )
        return TickResult(defn.name, tick, fault is None, fault, duration_ms)

    def execute_batch(self, system_name: str, world: World, n: int) -> BatchResult:
        """Run up to ``n`` consecutive ticks, stopping at the first fault.

        Raises:
            ValueError: If ``n`` is negative.
            NotFoundError: If the system is not registered.
        """
        if n < 0:
            raise ValueError(f"Tick count must be non-negative, got {n}")
        self._registry.require_system(system_name)
        batch = BatchResult(system=system_name, requested=n)
        for _ in range(n):
            result = self.execute(system_name, world)
            batch.results.append(result)
            if not result.ok:
                logger.info(
                    "Batch of %s stopped at tick %d of %d", system_name, len(batch.results), n
                )
                break
        return batch

    def tick(self, world: World, systems: Sequence[str] | None = None) -> list[TickResult]:
        """Run each system once, in registration order (or the given order).

        Faults are isolated: a faulting system does not stop the others.

        Raises:
            NotFoundError: If a named system is not registered. Nothing runs.
        """
        names = list(systems) if systems is not None else self._registry.list_systems()
        unknown = [name for name in names if self._registry.get_system(name) is None]
        if unknown:
            raise NotFoundError(f"Systems not found: {', '.join(unknown)}", unknown[0])
        return [self.execute(name, world) for name in names]
