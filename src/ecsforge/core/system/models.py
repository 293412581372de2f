"""System models: definitions and structured fault records."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ecsforge.core.types import JSONDict


class FaultKind(Enum):
    """Where in a tick a fault originated."""

    COMPILE = "compile"  # Logic failed to parse or validate
    ACCESS = "access"  # Out-of-bounds or undeclared component access
    SCHEMA = "schema"  # Value rejected by a component schema
    STEP_LIMIT = "step_limit"  # Loop budget exhausted
    RUNTIME = "runtime"  # Any other exception raised by the logic


@dataclass(frozen=True, slots=True)
class FaultRecord:
    """Structured error attached to a system after a faulting tick.

    Attributes:
        message: Human-readable cause (exception type and message).
        kind: Fault category.
        excerpt: Offending line(s) of logic, when determinable.
        line: 1-based line number in the logic text, when determinable.
        tick: Run number that faulted (run_count + 1 at the time).
        timestamp: Unix timestamp of the fault.
    """

    message: str
    kind: FaultKind = FaultKind.RUNTIME
    excerpt: str | None = None
    line: int | None = None
    tick: int | None = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {
            "message": self.message,
            "kind": self.kind.value,
            "excerpt": self.excerpt,
            "line": self.line,
            "tick": self.tick,
            "timestamp": self.timestamp,
        }


@dataclass(slots=True)
class SystemDefinition:
    """Registered system: named logic over entities holding a component set.

    Identity fields (name, requirements, logic) are fixed for the life of a
    registration; replacing logic goes through SchemaRegistry.replace_system.
    ``last_error`` and ``run_count`` are runtime bookkeeping owned by the
    registry.
    """

    name: str
    logic: str
    required_components: tuple[str, ...] = ()
    description: str = ""
    last_error: FaultRecord | None = None
    run_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Ordered set semantics: keep first occurrence
        self.required_components = tuple(dict.fromkeys(self.required_components))

    @property
    def is_broken(self) -> bool:
        return self.last_error is not None

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {
            "name": self.name,
            "description": self.description,
            "requiredComponents": list(self.required_components),
            "logic": self.logic,
            "lastError": self.last_error.to_dict() if self.last_error else None,
            "runCount": self.run_count,
        }
