"""Component functionality: schema models, builder and validation."""

from ecsforge.core.component.core import (
    check_value,
    check_values,
    component,
    duplicate_property_names,
    is_valid_name,
    validate_component,
)
from ecsforge.core.component.models import (
    ComponentDefinition,
    PropertyDefinition,
    PropertyType,
    conforms,
    default_for,
)

__all__ = [
    # Models
    "ComponentDefinition",
    "PropertyDefinition",
    "PropertyType",
    "conforms",
    "default_for",
    # Core
    "component",
    "check_value",
    "check_values",
    "duplicate_property_names",
    "is_valid_name",
    "validate_component",
]
