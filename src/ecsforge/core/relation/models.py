"""Relation models: typed, directed associations between entities.

Relations are stored as sparse ``(type, source, target)`` triples, independent
of component columns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from ecsforge.core.identity import EntityId
from ecsforge.core.types import JSONDict


@dataclass(frozen=True, slots=True)
class RelationDefinition:
    """Registered relation type.

    Attributes:
        name: Unique relation name.
        exclusive: If True, a source holds at most one target; adding a new
            target replaces the previous one.
        description: What the relation represents.
    """

    name: str
    exclusive: bool = False
    description: str = ""

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {"name": self.name, "exclusive": self.exclusive, "description": self.description}


class Relation(NamedTuple):
    """One relation triple."""

    type: str
    source: EntityId
    target: EntityId


def relation(name: str, exclusive: bool = False, description: str = "") -> RelationDefinition:
    """Build a RelationDefinition (not yet registered)."""
    return RelationDefinition(name=name, exclusive=exclusive, description=description)
