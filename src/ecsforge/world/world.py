"""World: entity, component and relation store bound to a schema registry.

Usage:
    registry = SchemaRegistry()
    registry.register_component(component("Position", x="number", y="number"))
    world = World(registry)

    entity = world.create_entity()
    world.attach_component(entity, "Position", {"x": 0, "y": 0})
    world.set_component_value(entity, "Position", "x", 3)

    for e in world.query_entities("Position"):
        ...

    world.get_component_value(other, "Position", "x")  # ABSENT if never attached
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from ecsforge.core.component import ComponentDefinition, check_value, check_values
from ecsforge.core.errors import AccessError, NotFoundError, SchemaError
from ecsforge.core.identity import EntityId
from ecsforge.core.query import Query
from ecsforge.core.relation import Relation, RelationDefinition
from ecsforge.core.types import ABSENT, Copy, JSONDict
from ecsforge.registry import SchemaRegistry
from ecsforge.storage.columns import ColumnStorage, ComponentTable
from ecsforge.storage.protocol import Storage
from ecsforge.storage.relations import RelationStore

logger = logging.getLogger(__name__)


class World:
    """Central world state: entities, component columns and relation triples.

    Owns its storage; validates every write against the registry. System
    logic never sees the World directly, only a ScopedAccess restricted to
    its declared components.
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        storage: Storage | None = None,
        relations: RelationStore | None = None,
    ):
        self._registry = registry if registry is not None else SchemaRegistry()
        self._storage = storage or ColumnStorage()
        self._relations = relations or RelationStore()
        self._registry.add_unregister_listener(self._drop_unregistered)

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    # Entities

    def create_entity(self) -> EntityId:
        """Create an entity with no components."""
        return self._storage.create_entity()

    def spawn(self, components: Mapping[str, Mapping[str, Any]] | None = None) -> EntityId:
        """Create an entity and attach components in one step.

        Atomic: if any component fails validation the entity is destroyed and
        the error re-raised.

        Args:
            components: Mapping of component name to property values.

        Returns:
            The new entity id.
        """
        entity = self.create_entity()
        try:
            for name, values in (components or {}).items():
                self.attach_component(entity, name, values)
        except Exception:
            self.destroy_entity(entity)
            raise
        return entity

    def destroy_entity(self, entity: EntityId) -> None:
        """Destroy an entity: free its column slots and drop every relation touching it.

        Raises:
            AccessError: If the entity does not exist.
        """
        self._require_alive(entity)
        removed = self._relations.remove_entity(entity)
        self._storage.destroy_entity(entity)
        logger.debug("Destroyed entity %s (%d relations removed)", entity, removed)

    def entity_exists(self, entity: EntityId) -> bool:
        return self._storage.entity_exists(entity)

    def entities(self) -> Iterator[EntityId]:
        """Iterate alive entities in ascending order."""
        return self._storage.all_entities()

    @property
    def entity_count(self) -> int:
        return self._storage.entity_count()

    def _require_alive(self, entity: EntityId) -> None:
        if not self._storage.entity_exists(entity):
            raise AccessError(f"Entity {entity} does not exist", str(entity))

    # Components

    def _definition(self, name: str) -> ComponentDefinition:
        defn = self._registry.get_component(name)
        if defn is None:
            raise SchemaError(f"Component {name} is not registered", name)
        return defn

    def _table(self, name: str) -> ComponentTable:
        return self._storage.ensure_table(self._definition(name))

    def attach_component(
        self,
        entity: EntityId,
        name: str,
        values: Mapping[str, Any] | None = None,
    ) -> None:
        """Attach a component to an entity, or overwrite values if already attached.

        Missing properties take their defaults on first attach.

        Raises:
            AccessError: If the entity does not exist.
            SchemaError: If the component is unregistered or values violate its schema.
        """
        self._require_alive(entity)
        defn = self._definition(name)
        values = dict(values or {})
        table = self._table(name)
        if entity in table:
            for prop_name, value in values.items():
                check_value(defn, prop_name, value)
            table.update(entity, values)
        else:
            table.insert(entity, check_values(defn, values))

    def detach_component(self, entity: EntityId, name: str) -> bool:
        """Remove a component from an entity. Returns True if it was attached."""
        self._require_alive(entity)
        table = self._storage.table(name)
        return table is not None and table.remove(entity)

    def has_component(self, entity: EntityId, name: str) -> bool:
        return self._storage.has_component(entity, name)

    def component_names(self, entity: EntityId) -> frozenset[str]:
        """Names of components an entity currently holds."""
        self._require_alive(entity)
        return self._storage.component_names(entity)

    def get_component_value(self, entity: EntityId, name: str, prop: str) -> Any:
        """Read one property value.

        Returns:
            The stored value, or ABSENT if the entity never had the component.

        Raises:
            AccessError: If the entity does not exist.
            SchemaError: If the component or property is unknown.
        """
        self._require_alive(entity)
        defn = self._definition(name)
        if defn.get_property(prop) is None:
            raise SchemaError(f"Component {name} has no property {prop!r}", name)
        table = self._storage.table(name)
        if table is None or entity not in table:
            return ABSENT
        return table.get(entity, prop)

    def set_component_value(self, entity: EntityId, name: str, prop: str, value: Any) -> None:
        """Write one property value (type-checked).

        Raises:
            AccessError: If the entity does not exist or does not hold the component.
            SchemaError: If the component/property is unknown or the value has the wrong type.
        """
        self._require_alive(entity)
        defn = self._definition(name)
        check_value(defn, prop, value)
        table = self._storage.table(name)
        if table is None or entity not in table:
            raise AccessError(f"Entity {entity} does not hold component {name}", name)
        table.set(entity, prop, value)

    def get_component(self, entity: EntityId, name: str) -> Copy[dict[str, Any]] | Any:
        """Copy of all values of a component on an entity, or ABSENT."""
        self._require_alive(entity)
        self._definition(name)
        table = self._storage.table(name)
        if table is None or entity not in table:
            return ABSENT
        return table.row(entity)

    def column(self, name: str) -> ComponentTable:
        """Column table for a registered component (created if needed)."""
        return self._table(name)

    def query_entities(
        self, *required: str | Query, excluding: tuple[str, ...] = ()
    ) -> Iterator[EntityId]:
        """Entities holding every required component, in ascending id order.

        Lazy, finite and restartable: each call starts a fresh scan.

        Args:
            *required: Component names, or a single Query.
            excluding: Component names matches must not hold.

        Raises:
            SchemaError: If any named component is not registered.
        """
        if len(required) == 1 and isinstance(required[0], Query):
            query = required[0].excluding(*excluding)
        else:
            query = Query(*(str(r) for r in required)).excluding(*excluding)
        for name in query.names():
            self._definition(name)
        return self._storage.query(query.required, query.excluded)

    # Relations

    def _relation_definition(self, rtype: str) -> RelationDefinition:
        defn = self._registry.get_relation(rtype)
        if defn is None:
            raise SchemaError(f"Relation {rtype} is not registered", rtype)
        return defn

    def add_relation(self, rtype: str, source: EntityId, target: EntityId) -> bool:
        """Add a relation triple, enforcing the relation's exclusivity.

        Returns:
            True if the triple is new.

        Raises:
            SchemaError: If the relation type is not registered.
            AccessError: If either entity does not exist.
        """
        defn = self._relation_definition(rtype)
        self._require_alive(source)
        self._require_alive(target)
        return self._relations.add(rtype, source, target, exclusive=defn.exclusive)

    def remove_relation(self, rtype: str, source: EntityId, target: EntityId) -> bool:
        """Remove a relation triple. Returns True if it existed."""
        self._relation_definition(rtype)
        return self._relations.remove(rtype, source, target)

    def has_relation(self, rtype: str, source: EntityId, target: EntityId) -> bool:
        return self._relations.has(rtype, source, target)

    def targets(self, rtype: str, source: EntityId) -> list[EntityId]:
        """Targets of ``source`` under a relation, ascending."""
        self._relation_definition(rtype)
        return self._relations.targets(rtype, source)

    def sources(self, rtype: str, target: EntityId) -> list[EntityId]:
        """Sources pointing at ``target`` under a relation, ascending."""
        self._relation_definition(rtype)
        return self._relations.sources(rtype, target)

    def relations(self, entity: EntityId | None = None) -> list[Relation]:
        """All relation triples, or only those touching ``entity``."""
        if entity is None:
            return list(self._relations.triples())
        return self._relations.involving(entity)

    # Schema changes

    def unregister_component(
        self,
        name: str,
        force: bool = False,
        cascade_relations: bool = True,
    ) -> list[EntityId]:
        """Unregister a component and drop its columns from this world.

        Args:
            name: Component name.
            force: Passed to SchemaRegistry.unregister.
            cascade_relations: Also remove every relation triple touching an
                entity that held the component.

        Returns:
            Entities that held the component.

        Raises:
            NotFoundError: If the component is not registered.
            InUseError: If systems still require it and force is False.
        """
        if self._registry.kind_of(name) != "component":
            raise NotFoundError(f"Component {name} not found", name)
        table = self._storage.table(name)
        holders = table.entities() if table is not None else []
        self._registry.unregister(name, force=force)
        if cascade_relations:
            for entity in holders:
                self._relations.remove_entity(entity)
        return holders

    def unregister_relation(self, rtype: str) -> int:
        """Unregister a relation type and drop its triples. Returns triples removed."""
        if self._registry.kind_of(rtype) != "relation":
            raise NotFoundError(f"Relation {rtype} not found", rtype)
        removed = sum(1 for r in self._relations.triples() if r.type == rtype)
        self._registry.unregister(rtype)
        return removed

    def _drop_unregistered(self, kind: str, name: str) -> None:
        # Registry unregister hook; stale columns must not resurface on re-register
        if kind == "component":
            holders = self._storage.drop_table(name)
            logger.debug("Dropped %s columns for %d entities", name, len(holders))
        elif kind == "relation":
            removed = self._relations.remove_type(name)
            logger.debug("Dropped %d %s triples", removed, name)

    # Export

    def snapshot(self) -> JSONDict:
        """JSON-serializable view of world state for read-only consumers.

        Returns:
            ``{"entities": {id: {component: values}}, "relations": [[type, s, t], ...]}``
        """
        entities: dict[str, dict[str, Any]] = {}
        for entity in self._storage.all_entities():
            row: dict[str, Any] = {}
            for name in self._registry.list_components():
                table = self._storage.table(name)
                if table is not None and entity in table:
                    row[name] = table.row(entity)
            entities[str(entity)] = row
        return {
            "entities": entities,
            "relations": [list(r) for r in self._relations.triples()],
        }
