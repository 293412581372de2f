"""Tests for the logic sandbox.

Critical Invariants:
- Only whitelisted constructs compile; imports, private names and
  attribute assignment are rejected with the offending line
- Every loop, comprehension, helper call, iterating builtin and
  size-growing operator draws from one step budget
- Logic sees primitives, safe builtins and its declared component views only
"""

import pytest

from ecsforge import LogicRejectedError, StepLimitExceeded, system
from ecsforge.execution.sandbox import (
    SAFE_BUILTINS,
    StepBudget,
    build_namespace,
    compile_logic,
    excerpt,
    validate_logic,
)
from ecsforge.world import AccessViolationError, ScopedAccess


@pytest.mark.parametrize(
    "logic,reason",
    [
        ("import os", "import"),
        ("from math import pi", "import"),
        ("x = (1).__class__", "attribute: __class__"),
        ("open('f')", "name: open"),
        ("f = lambda: 1", "lambda"),
        ("try:\n    pass\nexcept Exception:\n    pass", "try"),
        ("class A:\n    pass", "class"),
        ("Position.x = 3", "attribute assignment"),
        ("_hidden = 1", "name: _hidden"),
        ("'{0.x}'.format(1)", "attribute: format"),
        ("del entities", "del of a name"),
    ],
)
def test_rejected_constructs(logic, reason):
    with pytest.raises(LogicRejectedError, match=reason):
        validate_logic(logic, "Bad")


def test_rejection_carries_line():
    with pytest.raises(LogicRejectedError) as exc_info:
        validate_logic("x = 1\ny = 2\nimport os", "Bad")

    assert exc_info.value.line == 3
    assert exc_info.value.subject == "Bad"


def test_syntax_error_is_rejection():
    with pytest.raises(LogicRejectedError, match="SyntaxError") as exc_info:
        validate_logic("for eid in entities\n    pass", "Broken")
    assert exc_info.value.line == 1


def test_allowed_constructs_compile():
    logic = """
def clamp(v, lo, hi):
    return max(lo, min(hi, v))

total = sum(v for v in [1, 2, 3])
squares = {k: k * k for k in range(3)}
for eid in entities:
    if has_component(eid, "Position"):
        Position.x[eid] = clamp(Position.x[eid] + 1, 0, 10)
    else:
        log("skipping %s", eid)
_ = f"{total}"
"""
    compile_logic("Fine", logic)


def test_step_budget_counts_iterations():
    budget = StepBudget(3)
    assert list(budget.iterate("abc")) == ["a", "b", "c"]

    with pytest.raises(StepLimitExceeded):
        budget.step()


def test_budgeted_range_rejects_huge_spans():
    budget = StepBudget(100)
    assert len(budget.range(100)) == 100
    with pytest.raises(StepLimitExceeded, match="exceeds step limit"):
        budget.range(10**9)


def _run(world, logic, requires=("Position",), limit=1000):
    defn = system("Scratch", logic, requires=requires)
    namespace = build_namespace(ScopedAccess(world, defn), StepBudget(limit))
    exec(compile_logic(defn.name, defn.logic), namespace)
    return namespace


def test_infinite_loop_hits_step_limit(world):
    with pytest.raises(StepLimitExceeded):
        _run(world, "while True:\n    pass")


def test_unbounded_recursion_hits_step_limit(world):
    logic = "def down(n):\n    return down(n + 1)\ndown(0)"
    with pytest.raises(StepLimitExceeded):
        _run(world, logic, limit=200)


def test_namespace_binds_declared_views_only(world):
    namespace = _run(world, "pass")

    assert "Position" in namespace
    assert repr(namespace["Velocity"]) == "<undeclared component Velocity>"
    assert "set" not in SAFE_BUILTINS
    assert namespace["__builtins__"]["range"].__self__.limit == 1000


def test_logic_writes_through_views(world):
    e = world.spawn({"Position": {"x": 1, "y": 1}, "Velocity": {"dx": 2, "dy": 0}})
    logic = """
for eid in entities:
    Position.x[eid] += Velocity.dx[eid]
    set(eid, "Position", "y", get(eid, "Position", "y") * 10)
"""
    _run(world, logic, requires=("Position", "Velocity"))

    assert world.get_component(e, "Position") == {"x": 3, "y": 10}


def test_entities_is_restartable(world):
    world.spawn({"Position": {}})
    world.spawn({"Position": {}})

    namespace = _run(world, "first = len(entities)\nsecond = len([e for e in entities])")

    assert namespace["first"] == namespace["second"] == 2


def test_excerpt_bounds():
    logic = "a = 1\nb = 2\nc = 3"
    assert excerpt(logic, 2) == "b = 2"
    assert excerpt(logic, 2, context=1) == logic
    assert excerpt(logic, 9) is None
    assert excerpt(logic, None) is None


def test_undeclared_view_raises_violation(world):
    world.spawn({"Position": {}, "Velocity": {}})
    with pytest.raises(AccessViolationError, match="Velocity"):
        _run(world, "for eid in entities:\n    Velocity.dx[eid] = 1")


def test_iterating_builtins_spend_budget(world):
    logic = "xs = list(range(50))\ntotal = sum(map(abs, xs))"

    assert _run(world, logic, limit=200)["total"] == sum(range(50))
    with pytest.raises(StepLimitExceeded):
        _run(world, logic, limit=60)


@pytest.mark.parametrize(
    "logic",
    [
        "total = sum(map(abs, [1] * 5_000_000))",
        "row = 'ab' * 10_000",
        "n = 2 ** 10_000_000",
        "n = pow(7, 10_000_000)",
        "n = 1 << 10_000_000",
        "n = 3\nn **= 10_000_000",
    ],
)
def test_oversized_results_refused_before_allocation(world, logic):
    with pytest.raises(StepLimitExceeded):
        _run(world, logic, limit=1000)


def test_metered_builtins_keep_semantics(world):
    logic = """
a = sorted([3, 1, 2])
b = max(4, 9)
c = min([5, 2])
d = list(zip([1, 2], "ab"))
e = list(enumerate("xy", 1))
f = any(v > 2 for v in a)
g = pow(2, 5, 3)
h = list(reversed(a))
i = isinstance(a, list)
j = [0] * 3
"""
    ns = _run(world, logic)

    assert ns["a"] == [1, 2, 3]
    assert (ns["b"], ns["c"], ns["g"]) == (9, 2, 2)
    assert ns["d"] == [(1, "a"), (2, "b")]
    assert ns["e"] == [(1, "x"), (2, "y")]
    assert ns["f"] is True
    assert ns["h"] == [3, 2, 1]
    assert ns["i"] is True
    assert ns["j"] == [0, 0, 0]


def test_augmented_multiply_writes_through_views(world):
    e = world.spawn({"Position": {"x": 2}})

    _run(world, "for eid in entities:\n    Position.x[eid] *= 3\n    Position.y[eid] += 1")

    assert world.get_component(e, "Position") == {"x": 6, "y": 1}
