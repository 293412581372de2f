"""Tests for scoped access.

Critical Invariants:
- A system can only touch the components it declared
- Column reads on entities without the component raise AccessError
- Relation and entity lifecycle operations are not component-scoped
"""

import pytest

from ecsforge import ABSENT, AccessError, relation, system
from ecsforge.world import AccessViolationError, ScopedAccess


@pytest.fixture
def access(world):
    defn = system("Mover", "pass", requires=["Position"])
    return ScopedAccess(world, defn)


def test_undeclared_component_is_violation(world, access):
    e = world.spawn({"Velocity": {"dx": 1}})

    with pytest.raises(AccessViolationError, match="Velocity"):
        access.get(e, "Velocity", "dx")
    with pytest.raises(AccessViolationError):
        access.query("Position", "Velocity")
    with pytest.raises(AccessViolationError):
        access.spawn({"Velocity": {}})


def test_violation_is_access_error(access, world):
    with pytest.raises(AccessError):
        access.view("Velocity")


def test_column_view_reads_and_writes(world, access):
    e = world.spawn({"Position": {"x": 1, "y": 0}})
    position = access.view("Position")

    position.x[e] += 2

    assert world.get_component_value(e, "Position", "x") == 3
    assert position[e] == {"x": 3, "y": 0}
    assert e in position
    assert list(position) == [e]


def test_column_read_without_component_raises(world, access):
    e = world.create_entity()
    position = access.view("Position")

    assert e not in position
    assert access.get(e, "Position", "x") is ABSENT
    with pytest.raises(AccessError, match="does not hold"):
        position.x[e]


def test_unknown_property_is_attribute_error(access):
    with pytest.raises(AttributeError, match="no property 'z'"):
        access.view("Position").z


def test_dict_style_access(world, access):
    e = world.create_entity()

    access[e, "Position"] = {"x": 4}
    assert access[e, "Position"] == {"x": 4, "y": 0}
    assert (e, "Position") in access

    del access[e, "Position"]
    assert (e, "Position") not in access


def test_entity_handle(world, access):
    handle = access.entity(world.create_entity())

    handle["Position"] = {"y": 9}

    assert "Position" in handle
    assert handle["Position"]["y"] == 9
    del handle["Position"]
    assert handle["Position"] is ABSENT


def test_default_query_uses_declared_components(world, access):
    a = world.spawn({"Position": {}})
    world.spawn({"Velocity": {}})

    assert list(access()) == [a]
    assert list(access.entities()) == [a]


def test_relations_are_not_component_scoped(world, access):
    world.registry.register_relation(relation("Follows"))
    a = world.spawn({"Velocity": {}})
    b = world.create_entity()

    assert access.relate("Follows", a, b)
    assert access.targets("Follows", a) == [b]
    assert access.sources("Follows", b) == [a]

    access.destroy(a)
    assert not access.exists(a)
    assert world.relations() == []
