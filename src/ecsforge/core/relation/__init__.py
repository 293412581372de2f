"""Relation functionality: relation types and triples."""

from ecsforge.core.relation.models import Relation, RelationDefinition, relation

__all__ = [
    "Relation",
    "RelationDefinition",
    "relation",
]
