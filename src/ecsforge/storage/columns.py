"""Column-oriented component storage.

Each component gets a ComponentTable holding one sparse column per property,
indexed by entity id. An entity holds a component exactly when the table has
a slot for it.

Usage:
    storage = ColumnStorage()
    e = storage.create_entity()
    storage.attach(e, position_def, {"x": 0, "y": 0})
    storage.column("Position", "x")[e] += 1
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from ecsforge.core.component import ComponentDefinition
from ecsforge.core.identity import EntityId
from ecsforge.storage.allocator import EntityAllocator


class ComponentTable:
    """Column storage for one component type.

    Structure:
        _columns[property_name][entity] = value

    All columns share the same key set; membership is tracked separately so
    the invariant is cheap to check.
    """

    __slots__ = ("definition", "_columns", "_members")

    def __init__(self, definition: ComponentDefinition) -> None:
        self.definition = definition
        self._columns: dict[str, dict[EntityId, Any]] = {
            name: {} for name in definition.property_names
        }
        self._members: set[EntityId] = set()

    @property
    def name(self) -> str:
        return self.definition.name

    def __contains__(self, entity: object) -> bool:
        return entity in self._members

    def __len__(self) -> int:
        return len(self._members)

    def entities(self) -> list[EntityId]:
        """Member entity ids in ascending order."""
        return sorted(self._members)

    def insert(self, entity: EntityId, values: Mapping[str, Any]) -> None:
        """Create or overwrite the slot for an entity. Values must be complete and checked."""
        for name, column in self._columns.items():
            column[entity] = values[name]
        self._members.add(entity)

    def update(self, entity: EntityId, values: Mapping[str, Any]) -> None:
        """Overwrite some values of an existing slot."""
        for name, value in values.items():
            self._columns[name][entity] = value

    def remove(self, entity: EntityId) -> bool:
        """Free the slot for an entity. Returns True if it existed."""
        if entity not in self._members:
            return False
        for column in self._columns.values():
            column.pop(entity, None)
        self._members.discard(entity)
        return True

    def get(self, entity: EntityId, prop: str) -> Any:
        return self._columns[prop][entity]

    def set(self, entity: EntityId, prop: str, value: Any) -> None:
        self._columns[prop][entity] = value

    def row(self, entity: EntityId) -> dict[str, Any]:
        """Copy of all values for an entity, in property order."""
        return {name: column[entity] for name, column in self._columns.items()}

    def column(self, prop: str) -> dict[EntityId, Any]:
        """Raw column mapping (no copy)."""
        return self._columns[prop]


class ColumnStorage:
    """In-memory storage: entity allocator plus one ComponentTable per component.

    Performs no schema validation; that is the World's job. Tables are
    created lazily the first time a component is attached.
    """

    def __init__(self, allocator: EntityAllocator | None = None) -> None:
        self._allocator = allocator or EntityAllocator()
        self._tables: dict[str, ComponentTable] = {}

    def create_entity(self) -> EntityId:
        """Allocate a new entity."""
        return self._allocator.allocate()

    def destroy_entity(self, entity: EntityId) -> list[str]:
        """Remove an entity and free all its column slots.

        Returns:
            Names of components the entity held.
        """
        held = [name for name, table in self._tables.items() if table.remove(entity)]
        self._allocator.deallocate(entity)
        return held

    def entity_exists(self, entity: EntityId) -> bool:
        return self._allocator.is_alive(entity)

    def all_entities(self) -> Iterator[EntityId]:
        """Iterate alive entities in ascending order."""
        yield from self._allocator.alive()

    def entity_count(self) -> int:
        return len(self._allocator)

    def table(self, name: str) -> ComponentTable | None:
        return self._tables.get(name)

    def ensure_table(self, definition: ComponentDefinition) -> ComponentTable:
        """Get or create the table for a component definition."""
        table = self._tables.get(definition.name)
        if table is None or table.definition != definition:
            table = ComponentTable(definition)
            self._tables[definition.name] = table
        return table

    def drop_table(self, name: str) -> list[EntityId]:
        """Drop a component's columns entirely.

        Returns:
            Entities that held the component.
        """
        table = self._tables.pop(name, None)
        return table.entities() if table is not None else []

    def has_component(self, entity: EntityId, name: str) -> bool:
        table = self._tables.get(name)
        return table is not None and entity in table

    def component_names(self, entity: EntityId) -> frozenset[str]:
        """Names of all components an entity holds."""
        return frozenset(name for name, table in self._tables.items() if entity in table)

    def query(
        self, required: tuple[str, ...], excluded: tuple[str, ...] = ()
    ) -> Iterator[EntityId]:
        """Scan for entities holding every required component and none of the excluded.

        Lazy and restartable: each call performs a fresh scan. Ids are yielded
        in ascending order. Entities removed from a table mid-iteration are
        skipped.

        Args:
            required: Component names every match must hold.
            excluded: Component names no match may hold.

        Yields:
            Matching entity ids.
        """
        if required:
            tables = [self._tables.get(name) for name in required]
            if any(t is None for t in tables):
                return
            present = sorted((t for t in tables if t is not None), key=len)
            candidates = present[0].entities()
        else:
            present = []
            candidates = self._allocator.alive()

        for entity in candidates:
            if not all(entity in t for t in present):
                continue
            if any(self.has_component(entity, name) for name in excluded):
                continue
            if not self._allocator.is_alive(entity):
                continue
            yield entity
