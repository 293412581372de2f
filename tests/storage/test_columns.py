"""Tests for column storage.

Critical Invariants:
- An entity holds a component exactly when its table has a slot
- Queries yield ascending ids, are restartable, and honour exclusions
- Destroying an entity frees every slot it held
"""

from ecsforge.core.component import component
from ecsforge.storage import ColumnStorage

POSITION = component("Position", x="number", y="number")
FROZEN = component("Frozen", since="number")


def _attach(storage, entity, defn, values):
    storage.ensure_table(defn).insert(entity, values)


def test_query_is_ascending_and_restartable():
    storage = ColumnStorage()
    entities = [storage.create_entity() for _ in range(3)]
    for e in reversed(entities):
        _attach(storage, e, POSITION, {"x": 0, "y": 0})

    matches = storage.query(("Position",))
    assert list(matches) == entities
    assert list(storage.query(("Position",))) == entities


def test_query_excludes_components():
    storage = ColumnStorage()
    a, b = storage.create_entity(), storage.create_entity()
    _attach(storage, a, POSITION, {"x": 0, "y": 0})
    _attach(storage, b, POSITION, {"x": 1, "y": 1})
    _attach(storage, b, FROZEN, {"since": 3})

    assert list(storage.query(("Position",), ("Frozen",))) == [a]


def test_query_for_never_attached_component_is_empty():
    storage = ColumnStorage()
    storage.create_entity()
    assert list(storage.query(("Position",))) == []


def test_empty_query_matches_every_alive_entity():
    storage = ColumnStorage()
    a, b = storage.create_entity(), storage.create_entity()
    storage.destroy_entity(a)
    assert list(storage.query(())) == [b]


def test_destroy_frees_slots():
    storage = ColumnStorage()
    e = storage.create_entity()
    _attach(storage, e, POSITION, {"x": 0, "y": 0})
    _attach(storage, e, FROZEN, {"since": 1})

    held = storage.destroy_entity(e)

    assert sorted(held) == ["Frozen", "Position"]
    assert not storage.has_component(e, "Position")
    assert e not in storage.table("Position")
    assert list(storage.query(("Position",))) == []


def test_table_rows_are_copies():
    storage = ColumnStorage()
    e = storage.create_entity()
    _attach(storage, e, POSITION, {"x": 1, "y": 2})
    table = storage.table("Position")

    row = table.row(e)
    row["x"] = 99

    assert table.get(e, "x") == 1


def test_drop_table_returns_holders():
    storage = ColumnStorage()
    a, b = storage.create_entity(), storage.create_entity()
    _attach(storage, b, POSITION, {"x": 0, "y": 0})
    _attach(storage, a, POSITION, {"x": 0, "y": 0})

    assert storage.drop_table("Position") == [a, b]
    assert storage.table("Position") is None
    assert storage.drop_table("Position") == []
