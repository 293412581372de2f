"""Tests for in-memory execution history.

Critical Invariants:
- Capacity is bounded; the oldest records are dropped first
- Per-system filtering preserves insertion order
"""

from ecsforge.tracing import ExecutionRecord, HistoryStore, InMemoryHistory


def _record(system, tick, ok=True):
    return ExecutionRecord(system=system, tick=tick, timestamp=1704067200.0 + tick, ok=ok)


def test_satisfies_protocol():
    assert isinstance(InMemoryHistory(), HistoryStore)


def test_bounded_capacity_drops_oldest():
    history = InMemoryHistory(max_records=3)
    for tick in range(1, 6):
        history.record(_record("Move", tick))

    assert history.record_count == 3
    assert [r.tick for r in history.records()] == [3, 4, 5]


def test_filter_and_latest():
    history = InMemoryHistory()
    history.record(_record("Move", 1))
    history.record(_record("Fall", 1, ok=False))
    history.record(_record("Move", 2))

    assert [r.tick for r in history.records("Move")] == [1, 2]
    assert history.latest("Fall").ok is False
    assert history.latest("Ghost") is None

    history.clear()
    assert history.record_count == 0
