"""Tests for World.

Critical Invariants:
- Every write is validated against the registered schema
- Reading a never-attached component returns ABSENT, never raises
- destroy_entity removes every relation triple touching the entity
- Entities holding an unregistered component lose it and, by default,
  their relations
- Unregistering through the registry drops the columns or triples from
  the World, so re-registering starts empty
"""

import pytest

from ecsforge import (
    ABSENT,
    AccessError,
    InUseError,
    NotFoundError,
    SchemaError,
    World,
    component,
    relation,
)
from ecsforge.core.query import Query
from ecsforge.core.relation import Relation


@pytest.fixture
def linked_world(world):
    world.registry.register_relation(relation("Contains"))
    world.registry.register_relation(relation("ParentOf", exclusive=True))
    return world


def test_attach_fills_defaults(world):
    e = world.create_entity()
    world.attach_component(e, "Position", {"x": 2})

    assert world.get_component(e, "Position") == {"x": 2, "y": 0}
    assert world.component_names(e) == frozenset({"Position"})


def test_attach_existing_overwrites_only_given_values(world):
    e = world.spawn({"Position": {"x": 1, "y": 1}})
    world.attach_component(e, "Position", {"y": 5})

    assert world.get_component(e, "Position") == {"x": 1, "y": 5}


def test_writes_are_type_checked(world):
    e = world.spawn({"Position": {"x": 0, "y": 0}})

    with pytest.raises(SchemaError, match="expects number"):
        world.set_component_value(e, "Position", "x", "far")
    with pytest.raises(SchemaError, match="not registered"):
        world.attach_component(e, "Ghost", {})

    assert world.get_component_value(e, "Position", "x") == 0


def test_absent_component_reads_absent(world):
    e = world.create_entity()

    assert world.get_component_value(e, "Position", "x") is ABSENT
    assert world.get_component(e, "Position") is ABSENT
    with pytest.raises(SchemaError):
        world.get_component_value(e, "Position", "z")


def test_set_on_unattached_component_is_access_error(world):
    e = world.create_entity()
    with pytest.raises(AccessError, match="does not hold"):
        world.set_component_value(e, "Position", "x", 1)


def test_spawn_is_atomic(world):
    with pytest.raises(SchemaError):
        world.spawn({"Position": {"x": 0}, "Velocity": {"dx": "fast"}})

    assert world.entity_count == 0
    assert list(world.query_entities("Position")) == []


def test_dead_entity_access_raises(world):
    e = world.spawn({"Position": {}})
    world.destroy_entity(e)

    with pytest.raises(AccessError, match="does not exist"):
        world.get_component_value(e, "Position", "x")
    with pytest.raises(AccessError):
        world.destroy_entity(e)


def test_query_entities_by_names_and_query(world):
    a = world.spawn({"Position": {}, "Velocity": {}})
    b = world.spawn({"Position": {}})

    assert list(world.query_entities("Position")) == [a, b]
    assert list(world.query_entities("Position", "Velocity")) == [a]
    assert list(world.query_entities(Query("Position").excluding("Velocity"))) == [b]
    with pytest.raises(SchemaError):
        list(world.query_entities("Ghost"))


def test_destroy_removes_every_relation(linked_world):
    world = linked_world
    box, apple, pear = (world.spawn({"Position": {}}) for _ in range(3))
    world.add_relation("Contains", box, apple)
    world.add_relation("Contains", apple, pear)
    world.add_relation("ParentOf", pear, apple)

    world.destroy_entity(apple)

    assert world.relations() == []
    assert world.targets("Contains", box) == []
    assert apple not in list(world.query_entities("Position"))


def test_exclusive_relation_replaces_target(linked_world):
    world = linked_world
    parent, first, second = (world.create_entity() for _ in range(3))

    world.add_relation("ParentOf", parent, first)
    world.add_relation("ParentOf", parent, second)

    assert world.targets("ParentOf", parent) == [second]
    assert world.sources("ParentOf", first) == []


def test_relation_requires_registered_type_and_live_entities(linked_world):
    world = linked_world
    a = world.create_entity()
    b = world.create_entity()
    world.destroy_entity(b)

    with pytest.raises(SchemaError):
        world.add_relation("Owns", a, a)
    with pytest.raises(AccessError):
        world.add_relation("Contains", a, b)


def test_unregister_component_cascades_relations(linked_world, move_system):
    world = linked_world
    a = world.spawn({"Position": {}})
    b = world.spawn({"Velocity": {}})
    world.add_relation("Contains", a, b)
    world.registry.register_system(move_system)

    with pytest.raises(InUseError):
        world.unregister_component("Position")

    holders = world.unregister_component("Position", force=True)

    assert holders == [a]
    assert world.relations() == []
    assert world.entity_exists(a)
    assert world.component_names(a) == frozenset()


def test_unregister_component_without_cascade(linked_world):
    world = linked_world
    a = world.spawn({"Velocity": {}})
    b = world.create_entity()
    world.add_relation("Contains", a, b)

    world.unregister_component("Velocity", cascade_relations=False)

    assert world.has_relation("Contains", a, b)


def test_registry_unregister_drops_world_columns(world):
    registry = world.registry
    registry.register_component(component("Tag", v="integer"))
    e = world.spawn({"Tag": {"v": 7}})

    registry.unregister("Tag")

    assert not world.has_component(e, "Tag")
    assert world.component_names(e) == frozenset()

    registry.register_component(component("Tag", v="integer"))

    assert world.get_component(e, "Tag") is ABSENT
    assert list(world.query_entities("Tag")) == []


def test_registry_unregister_drops_relation_triples(linked_world):
    world = linked_world
    a, b = world.create_entity(), world.create_entity()
    world.add_relation("Contains", a, b)

    world.registry.unregister("Contains")
    world.registry.register_relation(relation("Contains"))

    assert not world.has_relation("Contains", a, b)
    assert world.relations() == []


def test_unregister_relation_counts_triples(linked_world):
    world = linked_world
    a, b, c = (world.create_entity() for _ in range(3))
    world.add_relation("Contains", a, b)
    world.add_relation("Contains", a, c)
    world.add_relation("ParentOf", a, b)

    assert world.unregister_relation("Contains") == 2
    assert world.relations() == [Relation("ParentOf", a, b)]


def test_unregister_absent_component_raises_not_found(world):
    with pytest.raises(NotFoundError):
        world.unregister_component("Ghost")


def test_independent_worlds_share_nothing():
    first, second = World(), World()
    first.create_entity()

    assert first.registry is not second.registry
    assert second.entity_count == 0


def test_snapshot(linked_world):
    world = linked_world
    a = world.spawn({"Position": {"x": 1, "y": 2}})
    b = world.create_entity()
    world.add_relation("Contains", a, b)

    snap = world.snapshot()

    assert snap["entities"] == {str(a): {"Position": {"x": 1, "y": 2}}, str(b): {}}
    assert snap["relations"] == [["Contains", a, b]]
