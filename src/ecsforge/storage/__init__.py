"""Storage backends: entity allocation, component columns and relation triples."""

from ecsforge.storage.allocator import EntityAllocator
from ecsforge.storage.columns import ColumnStorage, ComponentTable
from ecsforge.storage.protocol import Storage
from ecsforge.storage.relations import RelationStore

__all__ = [
    "Storage",
    "ColumnStorage",
    "ComponentTable",
    "EntityAllocator",
    "RelationStore",
]
