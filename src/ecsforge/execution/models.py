"""Execution result models."""

from __future__ import annotations

from dataclasses import dataclass, field

from ecsforge.core.errors import RuntimeFault
from ecsforge.core.system import FaultRecord
from ecsforge.core.types import JSONDict


@dataclass(frozen=True, slots=True)
class TickResult:
    """Outcome of running one system once.

    Attributes:
        system: System name.
        tick: Run number attempted (run_count + 1 before the tick).
        ok: True if the logic completed.
        fault: Structured error when ``ok`` is False.
        duration_ms: Wall time spent in the logic.
    """

    system: str
    tick: int
    ok: bool
    fault: FaultRecord | None = None
    duration_ms: float = 0.0

    def raise_for_fault(self) -> None:
        """Raise the tick's fault as an exception.

        Raises:
            RuntimeFault: If the tick failed; carries the FaultRecord.
        """
        if not self.ok and self.fault is not None:
            raise RuntimeFault(self.fault, self.system)

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {
            "system": self.system,
            "tick": self.tick,
            "ok": self.ok,
            "fault": self.fault.to_dict() if self.fault else None,
            "durationMs": self.duration_ms,
        }


@dataclass(slots=True)
class BatchResult:
    """Outcome of up to ``requested`` consecutive ticks of one system.

    Batches are fail-fast: the first faulting tick ends the batch, and the
    effects of the ticks before it are kept.
    """

    system: str
    requested: int
    results: list[TickResult] = field(default_factory=list)

    @property
    def completed(self) -> int:
        """Number of ticks that finished without a fault."""
        return sum(1 for r in self.results if r.ok)

    @property
    def ok(self) -> bool:
        return self.completed == self.requested

    @property
    def remaining(self) -> int:
        """Ticks not run because the batch stopped early."""
        return self.requested - len(self.results)

    @property
    def fault(self) -> FaultRecord | None:
        """The fault that stopped the batch, if any."""
        if self.results and not self.results[-1].ok:
            return self.results[-1].fault
        return None

    def raise_for_fault(self) -> None:
        """Raise the fault that stopped the batch, if any."""
        if self.results:
            self.results[-1].raise_for_fault()

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {
            "system": self.system,
            "requested": self.requested,
            "completed": self.completed,
            "ok": self.ok,
            "fault": self.fault.to_dict() if self.fault else None,
        }
