"""Component builder and schema validation.

Usage:
    Position = component("Position", x="number", y="number")

    # Full property control:
    Health = component(
        "Health",
        PropertyDefinition("current", PropertyType.NUMBER, "Hit points", 100),
        description="Entity vitality",
    )
"""

from __future__ import annotations

import keyword
import re
from collections import Counter
from collections.abc import Mapping
from typing import Any

from ecsforge.core.component.models import (
    ComponentDefinition,
    PropertyDefinition,
    PropertyType,
    conforms,
)
from ecsforge.core.errors import InvalidSchemaError, SchemaError

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_valid_name(name: str) -> bool:
    """Check that a name can be used as a component/system/property identifier.

    Names become variables inside sandboxed system logic, so they must be
    plain identifiers and not Python keywords or private/dunder names.
    """
    return (
        isinstance(name, str)
        and bool(_NAME_RE.match(name))
        and not keyword.iskeyword(name)
        and not name.startswith("__")
    )


def duplicate_property_names(properties: tuple[PropertyDefinition, ...]) -> list[str]:
    """Property names that appear more than once, in first-seen order."""
    counts = Counter(p.name for p in properties)
    return [name for name, count in counts.items() if count > 1]


def validate_component(defn: ComponentDefinition) -> None:
    """Validate a component definition's structure.

    Args:
        defn: Definition to check.

    Raises:
        InvalidSchemaError: If the name is invalid, the property list is empty,
            a property name is invalid or duplicated, or a default does not
            conform to its property type.
    """
    if not is_valid_name(defn.name):
        raise InvalidSchemaError(f"Invalid component name {defn.name!r}", defn.name)
    if not defn.properties:
        raise InvalidSchemaError(f"Component {defn.name} has no properties", defn.name)

    dupes = duplicate_property_names(defn.properties)
    if dupes:
        raise InvalidSchemaError(
            f"Component {defn.name} has duplicate properties: {', '.join(dupes)}", defn.name
        )

    for prop in defn.properties:
        if not is_valid_name(prop.name):
            raise InvalidSchemaError(
                f"Component {defn.name} has invalid property name {prop.name!r}", defn.name
            )
        if not conforms(prop.type, prop.default):
            raise InvalidSchemaError(
                f"Default {prop.default!r} of {defn.name}.{prop.name} "
                f"is not a valid {prop.type.value}",
                defn.name,
            )


def check_value(defn: ComponentDefinition, prop_name: str, value: Any) -> PropertyDefinition:
    """Type-check a single value against a component property.

    Args:
        defn: Component schema.
        prop_name: Property to write.
        value: Candidate value.

    Returns:
        The property definition that was checked against.

    Raises:
        SchemaError: If the property does not exist or the value has the wrong type.
    """
    prop = defn.get_property(prop_name)
    if prop is None:
        raise SchemaError(f"Component {defn.name} has no property {prop_name!r}", defn.name)
    if not conforms(prop.type, value):
        raise SchemaError(
            f"{defn.name}.{prop_name} expects {prop.type.value}, got {type(value).__name__} "
            f"{value!r}",
            defn.name,
        )
    return prop


def check_values(defn: ComponentDefinition, values: Mapping[str, Any]) -> dict[str, Any]:
    """Type-check a partial value mapping and fill in defaults.

    Returns:
        Complete mapping of every property to its value.

    Raises:
        SchemaError: On unknown properties or type mismatches.
    """
    for prop_name, value in values.items():
        check_value(defn, prop_name, value)
    return {**defn.defaults(), **values}


def _as_property(name: str, spec: Any) -> PropertyDefinition:
    if isinstance(spec, PropertyDefinition):
        return spec
    if isinstance(spec, str | PropertyType):
        return PropertyDefinition(name=name, type=PropertyType.parse(spec))
    if isinstance(spec, Mapping):
        fields = dict(spec)
        ptype = PropertyType.parse(fields.pop("type"))
        return PropertyDefinition(name=name, type=ptype, **fields)
    raise TypeError(f"Cannot build property {name!r} from {spec!r}")


def component(
    name: str,
    /,
    *properties: PropertyDefinition | Mapping[str, Any],
    description: str = "",
    **typed_properties: str | PropertyType | Mapping[str, Any],
) -> ComponentDefinition:
    """Build a ComponentDefinition.

    Positional properties come first, then keyword properties in call order.
    A positional mapping declares properties by name, which is how a property
    called ``description`` is spelled. The result is not registered; pass it
    to SchemaRegistry.register_component.

    Args:
        name: Component name.
        *properties: Explicit property definitions, or mappings of property
            name to shorthand spec.
        description: What the component represents.
        **typed_properties: Shorthand ``prop="number"`` or
            ``prop={"type": "number", "default": 1}``.

    Returns:
        New component definition.
    """
    props: list[PropertyDefinition] = []
    for entry in properties:
        if isinstance(entry, Mapping):
            props.extend(_as_property(prop_name, spec) for prop_name, spec in entry.items())
        else:
            props.append(entry)
    props.extend(_as_property(prop_name, spec) for prop_name, spec in typed_properties.items())
    return ComponentDefinition(name=name, properties=tuple(props), description=description)
