"""Query models for entity selection by component name.

Usage:
    # All entities holding Position and Velocity
    Query("Position", "Velocity")

    # Exclusions
    Query("Position").excluding("Frozen")

    # Extend an existing query
    Query("Position").having("Player")
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class Query:
    """Declarative entity query over component names.

    Immutable - each method returns a new Query instance. Required names keep
    their declaration order with duplicates dropped.
    """

    required: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()

    def __init__(self, *required: str):
        object.__setattr__(self, "required", tuple(dict.fromkeys(required)))
        object.__setattr__(self, "excluded", ())

    def having(self, *names: str) -> Query:
        """Entities must also hold these components."""
        new = Query(*self.required, *names)
        object.__setattr__(new, "excluded", self.excluded)
        return new

    def excluding(self, *names: str) -> Query:
        """Entities must NOT hold these components."""
        new = Query(*self.required)
        object.__setattr__(new, "excluded", tuple(dict.fromkeys(self.excluded + names)))
        return new

    def __iter__(self) -> Iterator[str]:
        """Allow Query to be used where a tuple of names is expected."""
        return iter(self.required)

    def __contains__(self, item: str) -> bool:
        return item in self.required

    def names(self) -> frozenset[str]:
        """All component names this query touches (required and excluded)."""
        return frozenset(self.required) | frozenset(self.excluded)

    def matches(self, has: frozenset[str]) -> bool:
        """Check if an entity's component set matches this query."""
        return all(n in has for n in self.required) and all(n not in has for n in self.excluded)
