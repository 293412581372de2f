"""Tests for cognitive contracts.

Critical Invariants:
- Contracts accept camelCase keys from generators
- A plan's next step is its first open step by order
- Plan edits renumber steps and match tasks by description
"""

import pytest
from pydantic import ValidationError

from ecsforge.cognition import (
    Goal,
    GoalStatus,
    GoalType,
    Plan,
    PlanModification,
    StepStatus,
)


def _plan():
    return Plan.model_validate(
        {
            "id": "p1",
            "description": "Build a pond",
            "goalId": "g1",
            "steps": [
                {"id": "s2", "description": "Add fish", "order": 1},
                {"id": "s1", "description": "Add water", "order": 0, "expectedOutcome": "wet"},
                {"id": "s3", "description": "Add frogs", "order": 2},
            ],
        }
    )


def test_goal_accepts_camel_case():
    goal = Goal.model_validate(
        {
            "id": "g1",
            "description": "Simulate a pond",
            "type": "long_term",
            "successCriteria": ["fish swim"],
            "createdAt": 10.0,
        }
    )

    assert goal.type is GoalType.LONG_TERM
    assert goal.status is GoalStatus.ACTIVE
    assert goal.success_criteria == ["fish swim"]
    assert goal.created_at == 10.0


def test_goal_progress_bounded():
    with pytest.raises(ValidationError):
        Goal(id="g", description="d", progress=150)


def test_next_step_follows_order():
    plan = _plan()

    assert plan.next_step().id == "s1"
    assert plan.next_step().expected_outcome == "wet"

    plan = plan.with_step_status("s1", StepStatus.COMPLETED)
    assert plan.next_step().id == "s2"
    assert plan.status is GoalStatus.ACTIVE


def test_plan_settles_when_steps_do():
    plan = _plan()
    for step_id in ("s1", "s2", "s3"):
        plan = plan.with_step_status(step_id, StepStatus.COMPLETED)

    assert plan.next_step() is None
    assert plan.status is GoalStatus.COMPLETED

    failed = _plan().with_step_status("s2", StepStatus.FAILED)
    assert failed.status is GoalStatus.FAILED


def test_with_step_status_unknown_step():
    with pytest.raises(KeyError):
        _plan().with_step_status("nope", StepStatus.COMPLETED)


def test_modification_applies_removals_insertions_and_moves():
    modification = PlanModification.model_validate(
        {
            "shouldModify": True,
            "tasksToRemove": [{"description": "Add frogs", "reason": "too noisy"}],
            "newTasks": [
                {"description": "Add plants", "reason": "oxygen", "insertAfter": "Add water"},
                {"description": "Add rocks", "reason": "cover"},
            ],
            "tasksToReorder": [{"description": "Add fish", "moveAfter": "Add rocks"}],
        }
    )

    plan = modification.apply(_plan())

    assert [s.description for s in plan.ordered_steps()] == [
        "Add water",
        "Add plants",
        "Add rocks",
        "Add fish",
    ]
    assert [s.order for s in plan.ordered_steps()] == [0, 1, 2, 3]


def test_modification_without_should_modify_is_noop():
    plan = _plan()
    modification = PlanModification(tasks_to_remove=[{"description": "Add fish"}])

    assert modification.apply(plan) is plan
