"""Protocol for execution history backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ecsforge.tracing.models import ExecutionRecord


@runtime_checkable
class HistoryStore(Protocol):
    """Protocol for storing and retrieving execution history.

    The execution engine records one ExecutionRecord per tick when a store
    is configured. Front ends and diagnostics read it back.

    Usage:
        history = InMemoryHistory(max_records=1000)
        engine = ExecutionEngine(registry, history=history)
        ...
        history.records("Move")   # oldest first
        history.latest("Move")
    """

    def record(self, record: ExecutionRecord) -> None:
        """Store a record. Bounded implementations may evict the oldest."""
        ...

    def records(self, system: str | None = None) -> list[ExecutionRecord]:
        """Stored records, oldest first, optionally for one system."""
        ...

    def latest(self, system: str) -> ExecutionRecord | None:
        """Most recent record for a system, if any."""
        ...

    def clear(self) -> None:
        """Clear all stored history."""
        ...

    @property
    def record_count(self) -> int:
        """Number of records currently stored."""
        ...
