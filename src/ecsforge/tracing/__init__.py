"""Tracing infrastructure for recording system execution.

Usage:
    from ecsforge.tracing import ExecutionRecord, HistoryStore, InMemoryHistory

    history = InMemoryHistory(max_records=500)
    engine = ExecutionEngine(registry, history=history)
"""

from ecsforge.tracing.memory import InMemoryHistory
from ecsforge.tracing.models import ExecutionRecord
from ecsforge.tracing.protocol import HistoryStore

__all__ = [
    "HistoryStore",
    "ExecutionRecord",
    "InMemoryHistory",
]
