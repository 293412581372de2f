"""Cognitive loop request, state and report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ecsforge.core.system import FaultRecord
from ecsforge.core.types import JSONDict
from ecsforge.diagnostics import DiagnosticReport
from ecsforge.execution import TickResult
from ecsforge.synthesis import CommitResult, Rejection


class LoopPhase(Enum):
    """Phases of one cognitive loop pass, in visiting order."""

    RECEIVE_INTENT = "receive_intent"
    SYNTHESIZE = "synthesize"
    REGISTER = "register"
    EXECUTE = "execute"
    DIAGNOSE = "diagnose"
    REPAIR = "repair"
    REPORT = "report"


class LoopStatus(Enum):
    """Overall outcome of a request.

    OK: everything proposed registered and every requested tick ran.
    PARTIAL: some entries were rejected or some systems stayed broken.
    FAILED: synthesis aborted or the request named unknown systems.
    """

    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class IntentRequest:
    """One request to the cognitive loop.

    Attributes:
        intent: Natural-language request for synthesis.
        ticks: Ticks to run after registration (0 skips execution).
        systems: Systems to execute (default: those registered by this
            request, or every system when none were).
        diagnose: Run diagnostics even when nothing went wrong.
        skip_synthesis: Execute and/or diagnose only.
        model: Forced model for this request's synthesis calls.
    """

    intent: str = ""
    ticks: int = 0
    systems: tuple[str, ...] = ()
    diagnose: bool = False
    skip_synthesis: bool = False
    model: str | None = None

    def __post_init__(self) -> None:
        if self.ticks < 0:
            raise ValueError(f"Tick count must be non-negative, got {self.ticks}")
        if not self.skip_synthesis and not self.intent.strip():
            raise ValueError("An intent is required unless skip_synthesis is set")


@dataclass(slots=True)
class LoopState:
    """Per-request bookkeeping.

    The repair budget is an explicit counter: ``attempts`` never exceeds
    ``max_attempts``. ``remaining`` holds, per stopped system, the ticks it
    still owes; ``faults`` the fault that stopped it.
    """

    max_attempts: int
    attempts: int = 0
    remaining: dict[str, int] = field(default_factory=dict)
    faults: dict[str, FaultRecord] = field(default_factory=dict)

    @property
    def can_repair(self) -> bool:
        return self.attempts < self.max_attempts

    def stop(self, system: str, remaining: int, fault: FaultRecord | None) -> None:
        self.remaining[system] = remaining
        if fault is not None:
            self.faults[system] = fault

    def resolve(self, system: str) -> None:
        self.remaining.pop(system, None)
        self.faults.pop(system, None)

    def next_broken(self) -> str | None:
        """Oldest stopped system, or None."""
        return next(iter(self.remaining), None)


@dataclass(slots=True)
class LoopReport:
    """Everything one request did, for the caller and for tracing.

    Attributes:
        phases: Phases visited, in order (repair rounds repeat phases).
        commit: Registration outcome of the initial synthesis.
        repairs: Registration outcome of each repair round.
        ticks: Every tick result, in execution order.
        diagnostics: Latest diagnostic report, if diagnostics ran.
        unresolved: Systems still broken at the end, with their faults.
        errors: Request-level failures (timeouts, unknown systems).
    """

    intent: str
    phases: list[LoopPhase] = field(default_factory=list)
    commit: CommitResult | None = None
    repairs: list[CommitResult] = field(default_factory=list)
    ticks: list[TickResult] = field(default_factory=list)
    diagnostics: DiagnosticReport | None = None
    unresolved: dict[str, FaultRecord] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    repair_attempts: int = 0
    status: LoopStatus = LoopStatus.OK

    def enter(self, phase: LoopPhase) -> None:
        self.phases.append(phase)

    @property
    def rejections(self) -> list[Rejection]:
        """Rejections from the initial commit and every repair."""
        commits = [self.commit, *self.repairs] if self.commit else self.repairs
        return [r for c in commits for r in c.rejections]

    def ticks_for(self, system: str) -> list[TickResult]:
        return [t for t in self.ticks if t.system == system]

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {
            "intent": self.intent,
            "status": self.status.value,
            "phases": [p.value for p in self.phases],
            "commit": self.commit.to_dict() if self.commit else None,
            "repairs": [r.to_dict() for r in self.repairs],
            "ticks": [t.to_dict() for t in self.ticks],
            "diagnostics": self.diagnostics.to_dict() if self.diagnostics else None,
            "unresolved": {name: f.to_dict() for name, f in self.unresolved.items()},
            "errors": list(self.errors),
            "repairAttempts": self.repair_attempts,
        }
