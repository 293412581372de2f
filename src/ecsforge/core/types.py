"""Core type definitions for ecsforge."""

from __future__ import annotations

from typing import Any, Final, Literal, TypeAlias, TypeVar

T = TypeVar("T")

Copy: TypeAlias = T
"""Type alias indicating a value is a copy that won't auto-persist.

When you see `Copy[T]` in a return type, the returned value is a fresh copy.
Mutations to this copy do NOT affect world state. To persist changes,
explicitly write back via `world.set_component_value(...)`.
"""

JSONDict: TypeAlias = dict[str, Any]
"""JSON-serializable mapping returned by snapshot and report methods."""


class _Absent:
    """Explicit absence signal for component reads.

    Returned instead of raising when an entity never had the component attached.
    Falsy, so `if value:` style checks read naturally.
    """

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()
