"""Entity allocation service.

EntityAllocator is a stateful service that manages entity id lifecycle.
"""

from __future__ import annotations

from ecsforge.core.identity import FIRST_ENTITY_ID, EntityId


class EntityAllocator:
    """Allocates monotonically increasing entity ids.

    Ids are never recycled: a destroyed id stays dead for the life of the
    allocator, so stale references can always be detected.

    Args:
        start: First id to hand out.
    """

    def __init__(self, start: int = FIRST_ENTITY_ID):
        self._next = start
        self._alive: set[EntityId] = set()

    def allocate(self) -> EntityId:
        """Allocate the next entity id.

        Returns:
            Newly allocated EntityId, greater than every id allocated before.
        """
        entity = EntityId(self._next)
        self._next += 1
        self._alive.add(entity)
        return entity

    def deallocate(self, entity: EntityId) -> bool:
        """Mark an id as dead.

        Returns:
            True if the id was alive.
        """
        if entity in self._alive:
            self._alive.remove(entity)
            return True
        return False

    def is_alive(self, entity: EntityId) -> bool:
        """Check if an entity id is allocated and not destroyed."""
        return entity in self._alive

    def alive(self) -> list[EntityId]:
        """Alive ids in ascending order."""
        return sorted(self._alive)

    def __len__(self) -> int:
        return len(self._alive)

    @property
    def next_id(self) -> int:
        return self._next
