"""Component models: property types and schema definitions.

A component is a named, schema-typed data slot. Its definition is immutable
once registered; storage keeps one column per property.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ecsforge.core.types import JSONDict


class PropertyType(Enum):
    """Semantic type of a component property."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    ENTITY = "entity"  # Reference to another entity id, or None

    @classmethod
    def parse(cls, value: str | PropertyType) -> PropertyType:
        """Parse a type name, accepting common aliases used by synthesized payloads.

        Args:
            value: Type name ("number", "float", "eid", ...) or PropertyType.

        Returns:
            Matching PropertyType.

        Raises:
            ValueError: If the name is not a known property type.
        """
        if isinstance(value, PropertyType):
            return value
        key = value.strip().lower()
        resolved = _TYPE_ALIASES.get(key)
        if resolved is None:
            raise ValueError(
                f"Unknown property type {value!r}; expected one of "
                f"{', '.join(t.value for t in PropertyType)}"
            )
        return resolved


_TYPE_ALIASES: dict[str, PropertyType] = {
    "number": PropertyType.NUMBER,
    "float": PropertyType.NUMBER,
    "int": PropertyType.NUMBER,
    "integer": PropertyType.NUMBER,
    "string": PropertyType.STRING,
    "str": PropertyType.STRING,
    "text": PropertyType.STRING,
    "boolean": PropertyType.BOOLEAN,
    "bool": PropertyType.BOOLEAN,
    "entity": PropertyType.ENTITY,
    "eid": PropertyType.ENTITY,
    "entity-reference": PropertyType.ENTITY,
    "entity_reference": PropertyType.ENTITY,
    "ref": PropertyType.ENTITY,
}

_DEFAULTS: dict[PropertyType, Any] = {
    PropertyType.NUMBER: 0,
    PropertyType.STRING: "",
    PropertyType.BOOLEAN: False,
    PropertyType.ENTITY: None,
}


def default_for(ptype: PropertyType) -> Any:
    """Zero value for a property type."""
    return _DEFAULTS[ptype]


def conforms(ptype: PropertyType, value: Any) -> bool:
    """Check whether a value is acceptable for a property type.

    Booleans are not numbers here even though Python says otherwise.

    Args:
        ptype: Declared property type.
        value: Candidate value.

    Returns:
        True if value may be stored in a column of this type.
    """
    if ptype is PropertyType.NUMBER:
        return isinstance(value, int | float) and not isinstance(value, bool)
    if ptype is PropertyType.STRING:
        return isinstance(value, str)
    if ptype is PropertyType.BOOLEAN:
        return isinstance(value, bool)
    if value is None:
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


_UNSET: Any = object()


@dataclass(frozen=True, slots=True)
class PropertyDefinition:
    """One typed column of a component."""

    name: str
    type: PropertyType
    description: str = ""
    default: Any = _UNSET

    def __post_init__(self) -> None:
        if self.default is _UNSET:
            object.__setattr__(self, "default", default_for(self.type))

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "default": self.default,
        }


@dataclass(frozen=True, slots=True)
class ComponentDefinition:
    """Registered component schema.

    Attributes:
        name: Unique component name.
        properties: Ordered property definitions, one storage column each.
        description: What the component represents.
    """

    name: str
    properties: tuple[PropertyDefinition, ...]
    description: str = ""
    _by_name: dict[str, PropertyDefinition] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", tuple(self.properties))
        object.__setattr__(self, "_by_name", {p.name: p for p in self.properties})

    @property
    def property_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.properties)

    def get_property(self, name: str) -> PropertyDefinition | None:
        """Look up a property definition by name."""
        return self._by_name.get(name)

    def defaults(self) -> dict[str, Any]:
        """Default value for every property, in declaration order."""
        return {p.name: p.default for p in self.properties}

    def to_dict(self) -> JSONDict:
        """Convert to JSON-serializable dictionary."""
        return {
            "name": self.name,
            "description": self.description,
            "properties": [p.to_dict() for p in self.properties],
        }
