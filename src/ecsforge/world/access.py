"""Scoped world access handed to system logic.

System logic never holds the World. It gets a ScopedAccess restricted to the
components the system declared, plus column views for column-style reads and
writes.

Usage:
    # Column style, one view per declared component
    for eid in entities:
        Position.x[eid] += Velocity.dx[eid]

    # Call style
    x = get(eid, "Position", "x")
    set(eid, "Position", "x", x + 1)

    # Dict style on the access object
    row = world[eid, "Position"]          # {"x": ..., "y": ...}
    world[eid, "Position"] = {"x": 0}      # attach / overwrite
    del world[eid, "Position"]             # detach
    if (eid, "Position") in world:
        ...

    # Entity handle for repeated access
    e = world.entity(eid)
    e["Position"] = {"x": 1}
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from ecsforge.core.errors import AccessError, AccessViolationError
from ecsforge.core.identity import EntityId
from ecsforge.core.system import SystemDefinition
from ecsforge.core.types import ABSENT, Copy

if TYPE_CHECKING:
    from ecsforge.world.world import World


class PropertyColumn:
    """One property column of a component: ``Position.x[eid]``.

    Reading a slot of an entity that does not hold the component raises
    AccessError instead of returning ABSENT; logic should guard with
    ``has_component`` first.
    """

    __slots__ = ("_access", "_component", "_prop")

    def __init__(self, access: ScopedAccess, component: str, prop: str):
        self._access = access
        self._component = component
        self._prop = prop

    def __getitem__(self, entity: EntityId) -> Any:
        value = self._access.get(entity, self._component, self._prop)
        if value is ABSENT:
            raise AccessError(
                f"Entity {entity} does not hold component {self._component}", self._component
            )
        return value

    def __setitem__(self, entity: EntityId, value: Any) -> None:
        self._access.set(entity, self._component, self._prop, value)

    def __contains__(self, entity: object) -> bool:
        return isinstance(entity, int) and self._access.has_component(
            EntityId(entity), self._component
        )

    def __repr__(self) -> str:
        return f"<column {self._component}.{self._prop}>"


class ComponentView:
    """Per-component namespace exposing property columns as attributes.

    ``Position.x`` is a PropertyColumn; ``Position[eid]`` is a copy of the
    whole row; ``eid in Position`` checks membership.
    """

    __slots__ = ("_access", "_name", "_columns")

    def __init__(self, access: ScopedAccess, name: str, properties: tuple[str, ...]):
        self._access = access
        self._name = name
        self._columns = {prop: PropertyColumn(access, name, prop) for prop in properties}

    def __getattr__(self, prop: str) -> PropertyColumn:
        try:
            return self._columns[prop]
        except KeyError:
            raise AttributeError(f"Component {self._name} has no property {prop!r}") from None

    def __getitem__(self, entity: EntityId) -> Copy[dict[str, Any]]:
        row = self._access.get(entity, self._name)
        if row is ABSENT:
            raise AccessError(f"Entity {entity} does not hold component {self._name}", self._name)
        return row

    def __contains__(self, entity: object) -> bool:
        return isinstance(entity, int) and self._access.has_component(EntityId(entity), self._name)

    def __iter__(self) -> Iterator[EntityId]:
        return self._access.query(self._name)

    def __repr__(self) -> str:
        return f"<component {self._name}>"


class UndeclaredView:
    """Stand-in bound under a registered component the system did not declare.

    Any use goes through ScopedAccess.view and so raises AccessViolationError.
    """

    __slots__ = ("_access", "_name")

    def __init__(self, access: ScopedAccess, name: str):
        self._access = access
        self._name = name

    def __getattr__(self, prop: str) -> PropertyColumn:
        return getattr(self._access.view(self._name), prop)

    def __getitem__(self, entity: EntityId) -> Copy[dict[str, Any]]:
        return self._access.view(self._name)[entity]

    def __contains__(self, entity: object) -> bool:
        return entity in self._access.view(self._name)

    def __iter__(self) -> Iterator[EntityId]:
        return iter(self._access.view(self._name))

    def __repr__(self) -> str:
        return f"<undeclared component {self._name}>"


class EntityHandle:
    """Convenient wrapper for repeated single-entity operations.

    ``e["Position"]`` returns a row copy or ABSENT, ``e["Position"] = {...}``
    attaches, ``del e["Position"]`` detaches, ``"Position" in e`` checks.
    """

    def __init__(self, access: ScopedAccess, entity: EntityId):
        self._access = access
        self._entity = entity

    @property
    def id(self) -> EntityId:
        return self._entity

    def __getitem__(self, component: str) -> Any:
        return self._access.get(self._entity, component)

    def __setitem__(self, component: str, values: Mapping[str, Any]) -> None:
        self._access.attach(self._entity, component, values)

    def __delitem__(self, component: str) -> None:
        self._access.detach(self._entity, component)

    def __contains__(self, component: str) -> bool:
        return self._access.has_component(self._entity, component)


class ScopedAccess:
    """World access scoped to a system's declared components.

    Component reads, writes and queries are checked against
    ``system.required_components``; anything else raises
    AccessViolationError. Relation operations and entity lifecycle are not
    component-scoped.

    Writes go straight to the World. A faulting tick keeps writes made before
    the fault.
    """

    def __init__(self, world: World, system: SystemDefinition):
        self._world = world
        self._system = system
        self._declared = frozenset(system.required_components)
        self._logger = logging.getLogger(f"ecsforge.systems.{system.name}")

    @property
    def system_name(self) -> str:
        return self._system.name

    @property
    def declared(self) -> frozenset[str]:
        return self._declared

    def _check_declared(self, *names: str) -> None:
        for name in names:
            if name not in self._declared:
                raise AccessViolationError(
                    f"System '{self._system.name}' cannot access {name}: "
                    "not in required components",
                    name,
                )

    # Magic methods

    def __getitem__(self, key: tuple[EntityId, str]) -> Any:
        """``world[eid, "Position"]`` -> row copy or ABSENT."""
        entity, component = key
        return self.get(entity, component)

    def __setitem__(self, key: tuple[EntityId, str], values: Mapping[str, Any]) -> None:
        """``world[eid, "Position"] = {"x": 1}`` attaches or overwrites."""
        entity, component = key
        self.attach(entity, component, values)

    def __delitem__(self, key: tuple[EntityId, str]) -> None:
        entity, component = key
        self.detach(entity, component)

    def __contains__(self, key: tuple[EntityId, str]) -> bool:
        entity, component = key
        return self.has_component(entity, component)

    def __call__(self, *components: str, excluding: tuple[str, ...] = ()) -> Iterator[EntityId]:
        """``world("Position", "Velocity")`` queries entities."""
        return self.query(*components, excluding=excluding)

    def __iter__(self) -> Iterator[EntityId]:
        return self.entities()

    # Components

    def get(self, entity: EntityId, component: str, prop: str | None = None) -> Any:
        """Read a property value, or a row copy when ``prop`` is omitted.

        Returns ABSENT if the entity does not hold the component.
        """
        self._check_declared(component)
        if prop is None:
            return self._world.get_component(entity, component)
        return self._world.get_component_value(entity, component, prop)

    def set(self, entity: EntityId, component: str, prop: str, value: Any) -> None:
        """Write a property value (type-checked)."""
        self._check_declared(component)
        self._world.set_component_value(entity, component, prop, value)

    def has_component(self, entity: EntityId, component: str) -> bool:
        self._check_declared(component)
        return self._world.has_component(entity, component)

    def attach(
        self, entity: EntityId, component: str, values: Mapping[str, Any] | None = None
    ) -> None:
        self._check_declared(component)
        self._world.attach_component(entity, component, values)

    def detach(self, entity: EntityId, component: str) -> bool:
        self._check_declared(component)
        return self._world.detach_component(entity, component)

    def query(self, *components: str, excluding: tuple[str, ...] = ()) -> Iterator[EntityId]:
        """Entities holding every named component (default: all declared ones)."""
        names = components or tuple(self._system.required_components)
        self._check_declared(*names, *excluding)
        return self._world.query_entities(*names, excluding=excluding)

    def entities(self) -> Iterator[EntityId]:
        """Entities holding every declared component, ascending."""
        return self._world.query_entities(*self._system.required_components)

    def view(self, component: str) -> ComponentView:
        """Column view for a declared component."""
        self._check_declared(component)
        defn = self._world.registry.get_component(component)
        if defn is None:
            raise AccessError(f"Component {component} is not registered", component)
        return ComponentView(self, component, defn.property_names)

    def undeclared_components(self) -> list[str]:
        """Registered components outside this system's declaration."""
        return [
            name for name in self._world.registry.list_components() if name not in self._declared
        ]

    def entity(self, entity: EntityId) -> EntityHandle:
        return EntityHandle(self, entity)

    # Entity lifecycle

    def spawn(self, components: Mapping[str, Mapping[str, Any]] | None = None) -> EntityId:
        """Create an entity with declared components attached."""
        components = components or {}
        self._check_declared(*components)
        return self._world.spawn(components)

    def destroy(self, entity: EntityId) -> None:
        self._world.destroy_entity(entity)

    def exists(self, entity: EntityId) -> bool:
        return self._world.entity_exists(entity)

    # Relations

    def relate(self, rtype: str, source: EntityId, target: EntityId) -> bool:
        return self._world.add_relation(rtype, source, target)

    def unrelate(self, rtype: str, source: EntityId, target: EntityId) -> bool:
        return self._world.remove_relation(rtype, source, target)

    def targets(self, rtype: str, source: EntityId) -> list[EntityId]:
        return self._world.targets(rtype, source)

    def sources(self, rtype: str, target: EntityId) -> list[EntityId]:
        return self._world.sources(rtype, target)

    # Diagnostics

    def log(self, message: str, *args: Any) -> None:
        """Emit an info log line attributed to the running system."""
        self._logger.info(message, *args)
