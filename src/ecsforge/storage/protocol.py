"""Storage protocol for swappable component backends.

The storage layer abstracts column storage, enabling:
- Local in-memory columns (default)
- Persistent or shared-memory columns (future)

Usage:
    storage = ColumnStorage()
    world = World(registry, storage=storage)
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from ecsforge.core.component import ComponentDefinition
from ecsforge.core.identity import EntityId
from ecsforge.storage.columns import ComponentTable


class Storage(Protocol):
    """Abstract column storage interface. Implementations hold the actual data."""

    def create_entity(self) -> EntityId:
        """Allocate new entity."""
        ...

    def destroy_entity(self, entity: EntityId) -> list[str]:
        """Remove entity and free all its column slots. Returns held component names."""
        ...

    def entity_exists(self, entity: EntityId) -> bool:
        """Check if entity is alive."""
        ...

    def all_entities(self) -> Iterator[EntityId]:
        """Iterate all living entities, ascending."""
        ...

    def entity_count(self) -> int:
        """Number of living entities."""
        ...

    def table(self, name: str) -> ComponentTable | None:
        """Column table for a component, if any entity ever held it."""
        ...

    def ensure_table(self, definition: ComponentDefinition) -> ComponentTable:
        """Get or create the column table for a component."""
        ...

    def drop_table(self, name: str) -> list[EntityId]:
        """Drop a component's columns. Returns entities that held it."""
        ...

    def has_component(self, entity: EntityId, name: str) -> bool:
        """Check if entity holds a component."""
        ...

    def component_names(self, entity: EntityId) -> frozenset[str]:
        """Names of all components held by entity."""
        ...

    def query(
        self, required: tuple[str, ...], excluded: tuple[str, ...] = ()
    ) -> Iterator[EntityId]:
        """Find entities holding all required and none of the excluded components."""
        ...
