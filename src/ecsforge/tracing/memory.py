"""Bounded in-memory history store."""

from __future__ import annotations

from collections import deque

from ecsforge.tracing.models import ExecutionRecord


class InMemoryHistory:
    """HistoryStore backed by a bounded deque.

    Args:
        max_records: Records kept before the oldest is evicted (0 keeps none).
    """

    def __init__(self, max_records: int = 1000) -> None:
        self._records: deque[ExecutionRecord] = deque(maxlen=max_records)

    def record(self, record: ExecutionRecord) -> None:
        self._records.append(record)

    def records(self, system: str | None = None) -> list[ExecutionRecord]:
        if system is None:
            return list(self._records)
        return [r for r in self._records if r.system == system]

    def latest(self, system: str) -> ExecutionRecord | None:
        for record in reversed(self._records):
            if record.system == system:
                return record
        return None

    def clear(self) -> None:
        self._records.clear()

    @property
    def record_count(self) -> int:
        return len(self._records)
