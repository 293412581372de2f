"""Core functionalities: stateless models, builders and validation.

Architecture Note:
    core/ contains pure, stateless building blocks: identity, component and
    system definitions, relations, queries and the error hierarchy.
    For stateful services, see storage/, world/, registry/ and execution/.
"""

from ecsforge.core.component import (
    ComponentDefinition,
    PropertyDefinition,
    PropertyType,
    check_value,
    check_values,
    component,
    is_valid_name,
    validate_component,
)
from ecsforge.core.errors import (
    AccessError,
    AccessViolationError,
    DuplicateNameError,
    EcsForgeError,
    InUseError,
    InvalidSchemaError,
    LogicRejectedError,
    MissingDependencyError,
    NotFoundError,
    RuntimeFault,
    SchemaError,
    StepLimitExceeded,
    SynthesisTimeoutError,
)
from ecsforge.core.identity import EntityId
from ecsforge.core.query import Query
from ecsforge.core.relation import Relation, RelationDefinition, relation
from ecsforge.core.system import FaultKind, FaultRecord, SystemDefinition, system
from ecsforge.core.types import ABSENT, Copy, JSONDict

__all__ = [
    # Types
    "ABSENT",
    "Copy",
    "JSONDict",
    # Identity
    "EntityId",
    # Component
    "component",
    "ComponentDefinition",
    "PropertyDefinition",
    "PropertyType",
    "check_value",
    "check_values",
    "is_valid_name",
    "validate_component",
    # System
    "system",
    "SystemDefinition",
    "FaultRecord",
    "FaultKind",
    # Relation
    "relation",
    "Relation",
    "RelationDefinition",
    # Query
    "Query",
    # Errors
    "EcsForgeError",
    "SchemaError",
    "InvalidSchemaError",
    "LogicRejectedError",
    "DuplicateNameError",
    "MissingDependencyError",
    "InUseError",
    "NotFoundError",
    "AccessError",
    "AccessViolationError",
    "RuntimeFault",
    "StepLimitExceeded",
    "SynthesisTimeoutError",
]
