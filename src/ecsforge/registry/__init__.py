"""Schema registry: the catalog of live component, system and relation definitions."""

from ecsforge.registry.registry import DefinitionKind, SchemaRegistry

__all__ = [
    "SchemaRegistry",
    "DefinitionKind",
]
