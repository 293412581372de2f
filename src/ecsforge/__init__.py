"""ecsforge: a self-extending entity-component-system simulation kernel.

Components and systems are data. Systems are synthesized from
natural-language intent, validated, registered at runtime, executed in a
sandbox against scoped world access, diagnosed, and repaired.

Usage:
    from ecsforge import ExecutionEngine, SchemaRegistry, World, component, system

    registry = SchemaRegistry()
    registry.register_component(component("Position", x="number", y="number"))
    registry.register_system(
        system(
            "Move",
            "for eid in entities:\\n    Position.x[eid] += 1",
            requires=["Position"],
        )
    )

    world = World(registry)
    world.spawn({"Position": {"x": 0, "y": 0}})
    ExecutionEngine(registry).execute_batch("Move", world, 3)
"""

__version__ = "0.1.0"

# Core primitives
from ecsforge.core import (
    ABSENT,
    AccessError,
    AccessViolationError,
    ComponentDefinition,
    DuplicateNameError,
    EcsForgeError,
    EntityId,
    FaultKind,
    FaultRecord,
    InUseError,
    InvalidSchemaError,
    LogicRejectedError,
    MissingDependencyError,
    NotFoundError,
    PropertyDefinition,
    PropertyType,
    Query,
    RelationDefinition,
    RuntimeFault,
    SchemaError,
    StepLimitExceeded,
    SynthesisTimeoutError,
    SystemDefinition,
    component,
    relation,
    system,
)

# Diagnostics
from ecsforge.diagnostics import DiagnosticReport, diagnose

# Execution
from ecsforge.execution import BatchResult, ExecutionEngine, TickResult

# Cognitive loop
from ecsforge.loop import CognitiveLoop, IntentRequest, LoopPhase, LoopReport, LoopStatus

# Registry
from ecsforge.registry import SchemaRegistry

# Synthesis
from ecsforge.synthesis import (
    CommitResult,
    Proposal,
    RawProposal,
    SynthesisGateway,
    SynthesisRequest,
    Synthesizer,
)

# World and access
from ecsforge.world import ScopedAccess, World

__all__ = [
    # Version
    "__version__",
    # Core
    "ABSENT",
    "EntityId",
    "component",
    "system",
    "relation",
    "ComponentDefinition",
    "PropertyDefinition",
    "PropertyType",
    "SystemDefinition",
    "RelationDefinition",
    "FaultRecord",
    "FaultKind",
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
    # Registry
    "SchemaRegistry",
    # World
    "World",
    "ScopedAccess",
    # Execution
    "ExecutionEngine",
    "TickResult",
    "BatchResult",
    # Diagnostics
    "diagnose",
    "DiagnosticReport",
    # Synthesis
    "SynthesisGateway",
    "Synthesizer",
    "SynthesisRequest",
    "RawProposal",
    "Proposal",
    "CommitResult",
    # Loop
    "CognitiveLoop",
    "IntentRequest",
    "LoopPhase",
    "LoopReport",
    "LoopStatus",
]
