"""Data models for execution tracing.

Records are storage-agnostic and serialize to plain JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ExecutionRecord:
    """Record of one system tick.

    Attributes:
        system: Name of the system that ran.
        tick: The system's run number for this tick (run_count + 1 at start).
        timestamp: Unix timestamp when the tick started.
        ok: Whether the tick completed without a fault.
        duration_ms: Wall time spent in the logic.
        fault: Serialized FaultRecord when the tick faulted.
        metadata: Optional arbitrary annotations (batch index, request id, ...).

    Example:
        record = ExecutionRecord(
            system="Move",
            tick=3,
            timestamp=1704067200.0,
            ok=False,
            duration_ms=0.4,
            fault={"message": "ZeroDivisionError: division by zero", ...},
        )
    """

    system: str
    tick: int
    timestamp: float
    ok: bool
    duration_ms: float = 0.0
    fault: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "system": self.system,
            "tick": self.tick,
            "timestamp": self.timestamp,
            "ok": self.ok,
            "duration_ms": self.duration_ms,
        }
        if self.fault is not None:
            result["fault"] = self.fault
        if self.metadata:
            result["metadata"] = self.metadata
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionRecord:
        """Create from dictionary (for deserialization)."""
        return cls(
            system=data["system"],
            tick=data["tick"],
            timestamp=data["timestamp"],
            ok=data["ok"],
            duration_ms=data.get("duration_ms", 0.0),
            fault=data.get("fault"),
            metadata=data.get("metadata", {}),
        )
