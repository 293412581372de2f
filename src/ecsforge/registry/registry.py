"""Schema registry: catalog of component, system and relation definitions.

The registry is the single source of truth for what exists. It enforces name
uniqueness and system dependencies, and keeps broken systems registered (with
their ``last_error``) so they can be repaired later.

Usage:
    registry = SchemaRegistry()
    registry.register_component(component("Position", x="number", y="number"))
    registry.register_system(system("Move", "...", requires=("Position",)))

    registry.list_systems()        # ["Move"]
    registry.unregister("Position")  # InUseError: Move still requires it
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable
from typing import Literal

from ecsforge.core.component import ComponentDefinition, is_valid_name, validate_component
from ecsforge.core.errors import (
    DuplicateNameError,
    InUseError,
    InvalidSchemaError,
    MissingDependencyError,
    NotFoundError,
)
from ecsforge.core.relation import RelationDefinition
from ecsforge.core.system import FaultRecord, SystemDefinition
from ecsforge.core.types import JSONDict

logger = logging.getLogger(__name__)

DefinitionKind = Literal["component", "system", "relation"]
UnregisterListener = Callable[[DefinitionKind, str], None]


class SchemaRegistry:
    """Per-world catalog of definitions.

    Component, system and relation names share one namespace, so a name
    identifies exactly one definition. Listing order is registration order.
    Instances hold no global state; independent worlds use independent
    registries.
    """

    def __init__(self) -> None:
        self._components: dict[str, ComponentDefinition] = {}
        self._systems: dict[str, SystemDefinition] = {}
        self._relations: dict[str, RelationDefinition] = {}
        self._listeners: list[weakref.WeakMethod[UnregisterListener]] = []

    def add_unregister_listener(self, listener: UnregisterListener) -> None:
        """Call a bound method with ``(kind, name)`` after every unregister.

        Held weakly; listeners whose owner is collected are dropped.
        """
        self._listeners.append(weakref.WeakMethod(listener))

    # Registration

    def _check_new_name(self, name: str, kind: DefinitionKind) -> None:
        if not is_valid_name(name):
            raise InvalidSchemaError(f"Invalid {kind} name {name!r}", name)
        existing = self.kind_of(name)
        if existing is not None:
            raise DuplicateNameError(f"{existing.capitalize()} {name} already exists", name)

    def register_component(self, defn: ComponentDefinition) -> ComponentDefinition:
        """Register a component schema.

        Args:
            defn: Component definition.

        Returns:
            The stored definition.

        Raises:
            DuplicateNameError: If the name is taken.
            InvalidSchemaError: If the schema is empty or malformed.
        """
        self._check_new_name(defn.name, "component")
        validate_component(defn)
        self._components[defn.name] = defn
        logger.info("Registered component %s (%s)", defn.name, ", ".join(defn.property_names))
        return defn

    def _check_requirements(self, defn: SystemDefinition) -> None:
        for name in defn.required_components:
            if not isinstance(name, str):
                raise InvalidSchemaError(
                    f"System {defn.name} has non-string required component {name!r}", defn.name
                )
        missing = [name for name in defn.required_components if name not in self._components]
        if missing:
            raise MissingDependencyError(defn.name, missing)

    def register_system(self, defn: SystemDefinition) -> SystemDefinition:
        """Register a system. Atomic: on any failure nothing is stored.

        Args:
            defn: System definition. Its run_count and last_error are reset.

        Returns:
            The stored definition.

        Raises:
            DuplicateNameError: If the name is taken.
            InvalidSchemaError: If the name or logic is malformed.
            MissingDependencyError: If any required component is not registered.
        """
        self._check_new_name(defn.name, "system")
        if not isinstance(defn.logic, str) or not defn.logic.strip():
            raise InvalidSchemaError(f"System {defn.name} has no logic", defn.name)
        self._check_requirements(defn)

        defn.last_error = None
        defn.run_count = 0
        self._systems[defn.name] = defn
        logger.info(
            "Registered system %s requiring [%s]", defn.name, ", ".join(defn.required_components)
        )
        return defn

    def replace_system(self, defn: SystemDefinition) -> SystemDefinition:
        """Swap in new logic for an existing system (used by repair).

        Requirements are re-validated. The error is cleared and the run count
        carries over from the previous definition.

        Raises:
            NotFoundError: If no system with that name exists.
            InvalidSchemaError: If the new logic is empty.
            MissingDependencyError: If the new requirements are not all registered.
        """
        previous = self._systems.get(defn.name)
        if previous is None:
            raise NotFoundError(f"System {defn.name} not found", defn.name)
        if not isinstance(defn.logic, str) or not defn.logic.strip():
            raise InvalidSchemaError(f"System {defn.name} has no logic", defn.name)
        self._check_requirements(defn)

        defn.last_error = None
        defn.run_count = previous.run_count
        self._systems[defn.name] = defn
        logger.info("Replaced system %s", defn.name)
        return defn

    def register_relation(self, defn: RelationDefinition) -> RelationDefinition:
        """Register a relation type.

        Raises:
            DuplicateNameError: If the name is taken.
            InvalidSchemaError: If the name is not an identifier.
        """
        self._check_new_name(defn.name, "relation")
        self._relations[defn.name] = defn
        logger.info("Registered relation %s (exclusive=%s)", defn.name, defn.exclusive)
        return defn

    # Lookup

    def list_components(self) -> list[str]:
        """Component names in registration order."""
        return list(self._components)

    def list_systems(self) -> list[str]:
        """System names in registration order."""
        return list(self._systems)

    def list_relations(self) -> list[str]:
        """Relation names in registration order."""
        return list(self._relations)

    def get_component(self, name: str) -> ComponentDefinition | None:
        return self._components.get(name)

    def get_system(self, name: str) -> SystemDefinition | None:
        return self._systems.get(name)

    def get_relation(self, name: str) -> RelationDefinition | None:
        return self._relations.get(name)

    def require_system(self, name: str) -> SystemDefinition:
        """Get a system or raise NotFoundError."""
        defn = self._systems.get(name)
        if defn is None:
            raise NotFoundError(f"System {name} not found", name)
        return defn

    def kind_of(self, name: str) -> DefinitionKind | None:
        """Which kind of definition a name refers to, if any."""
        if name in self._components:
            return "component"
        if name in self._systems:
            return "system"
        if name in self._relations:
            return "relation"
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.kind_of(name) is not None

    def dependents(self, component_name: str) -> list[str]:
        """Systems that require a component, in registration order."""
        return [
            name
            for name, defn in self._systems.items()
            if component_name in defn.required_components
        ]

    def broken_systems(self) -> list[str]:
        """Systems currently carrying a last_error."""
        return [name for name, defn in self._systems.items() if defn.last_error is not None]

    # Runtime bookkeeping

    def record_error(self, system_name: str, error: FaultRecord) -> None:
        """Attach a structured error to a system without removing it.

        Raises:
            NotFoundError: If the system does not exist.
        """
        defn = self.require_system(system_name)
        defn.last_error = error
        logger.warning("System %s faulted: %s", system_name, error.message)

    def record_success(self, system_name: str) -> int:
        """Count a successful run and clear any previous error.

        Returns:
            The new run count.
        """
        defn = self.require_system(system_name)
        defn.run_count += 1
        defn.last_error = None
        return defn.run_count

    # Removal

    def unregister(self, name: str, force: bool = False) -> DefinitionKind:
        """Remove a component, system or relation.

        Args:
            name: Definition name.
            force: Remove a component even if systems still require it. Those
                systems stay registered and show up as missing a dependency in
                diagnostics.

        Returns:
            The kind of definition removed.

        Raises:
            NotFoundError: If nothing is registered under that name.
            InUseError: If a component is still required and force is False.
        """
        kind = self.kind_of(name)
        if kind is None:
            raise NotFoundError(f"Nothing registered under {name!r}", name)

        if kind == "component":
            dependents = self.dependents(name)
            if dependents and not force:
                raise InUseError(name, dependents)
            del self._components[name]
            if dependents:
                logger.warning(
                    "Force-unregistered component %s still required by %s",
                    name,
                    ", ".join(dependents),
                )
        elif kind == "system":
            del self._systems[name]
        else:
            del self._relations[name]

        logger.info("Unregistered %s %s", kind, name)
        live = [ref for ref in self._listeners if ref() is not None]
        self._listeners = live
        for ref in live:
            listener = ref()
            if listener is not None:
                listener(kind, name)
        return kind

    # Export

    def snapshot(self) -> JSONDict:
        """JSON-serializable catalogue of every definition.

        Used as synthesis context and by read-only front ends.
        """
        return {
            "components": [c.to_dict() for c in self._components.values()],
            "systems": [s.to_dict() for s in self._systems.values()],
            "relations": [r.to_dict() for r in self._relations.values()],
        }
