"""Entity identity functionality: lightweight integer ids."""

from ecsforge.core.identity.models import FIRST_ENTITY_ID, EntityId

__all__ = [
    "EntityId",
    "FIRST_ENTITY_ID",
]
