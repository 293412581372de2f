"""World state and scoped access.

Architecture Note:
    world/ is a stateful service layer over storage/ that validates every
    write against the registry. Unlike core/ (stateless definitions), world/
    holds entities, component columns and relation triples for one session.
"""

from ecsforge.core.errors import AccessViolationError
from ecsforge.world.access import (
    ComponentView,
    EntityHandle,
    PropertyColumn,
    ScopedAccess,
    UndeclaredView,
)
from ecsforge.world.world import World

__all__ = [
    "World",
    "ScopedAccess",
    "ComponentView",
    "PropertyColumn",
    "EntityHandle",
    "UndeclaredView",
    "AccessViolationError",
]
