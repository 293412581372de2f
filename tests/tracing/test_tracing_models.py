"""Tests for execution records.

Critical Invariants:
- Optional fields are omitted from the serialized form when empty
"""

from ecsforge.tracing import ExecutionRecord


def test_to_dict_omits_empty_optionals():
    record = ExecutionRecord(system="Move", tick=1, timestamp=1.0, ok=True)

    assert record.to_dict() == {
        "system": "Move",
        "tick": 1,
        "timestamp": 1.0,
        "ok": True,
        "duration_ms": 0.0,
    }


def test_from_dict_restores_fault_and_metadata():
    data = {
        "system": "Fall",
        "tick": 4,
        "timestamp": 2.0,
        "ok": False,
        "duration_ms": 0.3,
        "fault": {"message": "ZeroDivisionError: division by zero", "kind": "runtime"},
        "metadata": {"request": "gravity"},
    }

    record = ExecutionRecord.from_dict(data)

    assert record.fault["kind"] == "runtime"
    assert record.metadata == {"request": "gravity"}
    assert record.to_dict() == data
