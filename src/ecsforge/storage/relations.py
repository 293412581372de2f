"""Sparse relation triple storage.

Triples are indexed both ways so lookups from either end are O(1):

    _by_source[(type, source)] -> {target, ...}
    _by_target[(type, target)] -> {source, ...}

A third index, ``_involved[entity] -> {type, ...}``, lets entity destruction
cascade without scanning every relation type.

Usage:
    store = RelationStore()
    store.add("Contains", box, apple, exclusive=False)
    store.targets("Contains", box)   # [apple]
    store.remove_entity(apple)       # drops every triple touching apple
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator

from ecsforge.core.identity import EntityId
from ecsforge.core.relation import Relation


class RelationStore:
    """Bidirectionally indexed ``(type, source, target)`` triples."""

    def __init__(self) -> None:
        self._by_source: dict[tuple[str, EntityId], set[EntityId]] = defaultdict(set)
        self._by_target: dict[tuple[str, EntityId], set[EntityId]] = defaultdict(set)
        self._involved: dict[EntityId, set[str]] = defaultdict(set)

    def add(self, rtype: str, source: EntityId, target: EntityId, exclusive: bool = False) -> bool:
        """Add a triple.

        For exclusive relations any existing target of ``source`` is replaced.

        Args:
            rtype: Relation type name.
            source: Source entity.
            target: Target entity.
            exclusive: Enforce one target per source.

        Returns:
            True if the triple was newly added, False if it already existed.
        """
        current = self._by_source.get((rtype, source))
        if current and target in current:
            return False
        if exclusive and current:
            for old in list(current):
                self.remove(rtype, source, old)

        self._by_source[(rtype, source)].add(target)
        self._by_target[(rtype, target)].add(source)
        self._involved[source].add(rtype)
        self._involved[target].add(rtype)
        return True

    def remove(self, rtype: str, source: EntityId, target: EntityId) -> bool:
        """Remove a triple. Returns True if it existed."""
        targets = self._by_source.get((rtype, source))
        if not targets or target not in targets:
            return False
        targets.discard(target)
        if not targets:
            del self._by_source[(rtype, source)]

        sources = self._by_target[(rtype, target)]
        sources.discard(source)
        if not sources:
            del self._by_target[(rtype, target)]

        self._forget(source, rtype)
        self._forget(target, rtype)
        return True

    def _forget(self, entity: EntityId, rtype: str) -> None:
        """Drop rtype from an entity's involvement index if no triple remains."""
        if (rtype, entity) in self._by_source or (rtype, entity) in self._by_target:
            return
        types = self._involved.get(entity)
        if types is None:
            return
        types.discard(rtype)
        if not types:
            del self._involved[entity]

    def has(self, rtype: str, source: EntityId, target: EntityId) -> bool:
        return target in self._by_source.get((rtype, source), ())

    def targets(self, rtype: str, source: EntityId) -> list[EntityId]:
        """Targets of ``source`` under ``rtype``, ascending."""
        return sorted(self._by_source.get((rtype, source), ()))

    def sources(self, rtype: str, target: EntityId) -> list[EntityId]:
        """Sources pointing at ``target`` under ``rtype``, ascending."""
        return sorted(self._by_target.get((rtype, target), ()))

    def remove_entity(self, entity: EntityId) -> int:
        """Remove every triple where ``entity`` is source or target.

        Returns:
            Number of triples removed.
        """
        removed = 0
        for rtype in list(self._involved.get(entity, ())):
            for target in self.targets(rtype, entity):
                removed += self.remove(rtype, entity, target)
            for source in self.sources(rtype, entity):
                removed += self.remove(rtype, source, entity)
        return removed

    def remove_type(self, rtype: str) -> int:
        """Remove every triple of a relation type. Returns number removed."""
        doomed = [r for r in self.triples() if r.type == rtype]
        for r in doomed:
            self.remove(r.type, r.source, r.target)
        return len(doomed)

    def involving(self, entity: EntityId) -> list[Relation]:
        """All triples touching an entity, sorted."""
        found: set[Relation] = set()
        for rtype in self._involved.get(entity, ()):
            key = (rtype, entity)
            found.update(Relation(rtype, entity, t) for t in self._by_source.get(key, ()))
            found.update(Relation(rtype, s, entity) for s in self._by_target.get(key, ()))
        return sorted(found)

    def triples(self) -> Iterator[Relation]:
        """Iterate every stored triple in sorted order."""
        for (rtype, source), targets in sorted(self._by_source.items()):
            for target in sorted(targets):
                yield Relation(rtype, source, target)

    def __len__(self) -> int:
        return sum(len(targets) for targets in self._by_source.values())
