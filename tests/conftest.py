"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from ecsforge import ExecutionEngine, SchemaRegistry, World, component, system
from ecsforge.config import EngineSettings


@pytest.fixture
def registry():
    """Registry holding Position{x, y} and Velocity{dx, dy}."""
    reg = SchemaRegistry()
    reg.register_component(component("Position", x="number", y="number"))
    reg.register_component(component("Velocity", dx="number", dy="number"))
    return reg


@pytest.fixture
def world(registry):
    """Fresh World bound to the fixture registry."""
    return World(registry)


@pytest.fixture
def engine(registry):
    """Engine with a small step budget so runaway logic faults fast."""
    return ExecutionEngine(registry, EngineSettings(step_limit=10_000))


@pytest.fixture
def move_system():
    return system(
        "Move",
        """
        for eid in entities:
            Position.x[eid] += 1
        """,
        requires=["Position"],
    )
