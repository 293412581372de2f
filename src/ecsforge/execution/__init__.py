"""System execution: sandboxed logic and the engine that runs it.

Usage:
    from ecsforge.execution import ExecutionEngine

    engine = ExecutionEngine(registry)
    engine.execute_batch("Move", world, 3)
"""

from ecsforge.execution.engine import ExecutionEngine, classify
from ecsforge.execution.models import BatchResult, TickResult
from ecsforge.execution.sandbox import (
    PRIMITIVE_NAMES,
    SAFE_BUILTINS,
    StepBudget,
    compile_logic,
    parse_logic,
    validate_logic,
)

__all__ = [
    # Engine
    "ExecutionEngine",
    "classify",
    # Results
    "TickResult",
    "BatchResult",
    # Sandbox
    "compile_logic",
    "parse_logic",
    "validate_logic",
    "StepBudget",
    "SAFE_BUILTINS",
    "PRIMITIVE_NAMES",
]
