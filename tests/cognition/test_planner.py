"""Tests for the cognitive planner.

Critical Invariants:
- Every planner call goes through LLMClient.call_async with the matching
  response model and the forced model, if any
- next_intent is deterministic: plan step first, then the most pressing goal
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ecsforge.adapters import MessageRole
from ecsforge.cognition import (
    CognitivePlanner,
    Goal,
    GoalProgress,
    GoalSet,
    GoalStatus,
    GoalType,
    Plan,
    PlanModification,
    PlanStep,
    Reflection,
    StepStatus,
    TaskEvaluation,
)


def _client(response):
    client = MagicMock()
    client.call_async = AsyncMock(return_value=response)
    return client


def _goal(goal_id, priority=0, goal_type=GoalType.SHORT_TERM, created_at=0.0, **kwargs):
    return Goal(
        id=goal_id,
        description=f"goal {goal_id}",
        priority=priority,
        type=goal_type,
        created_at=created_at,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_generate_goals_unwraps_goal_set():
    client = _client(GoalSet(goals=[_goal("g1")]))
    planner = CognitivePlanner(client, model="planner-model")

    goals = await planner.generate_goals("An empty pond", current_goals=[_goal("g0")])

    assert [g.id for g in goals] == ["g1"]
    args, kwargs = client.call_async.call_args
    assert kwargs["response_model"] is GoalSet
    assert kwargs["model"] == "planner-model"
    assert args[0][0].role is MessageRole.SYSTEM
    assert "An empty pond" in args[0][1].content
    assert '"g0"' in args[0][1].content


@pytest.mark.parametrize(
    "method,args,response_model",
    [
        ("generate_plan", (_goal("g1"),), Plan),
        (
            "evaluate_plan",
            (Plan(id="p", description="d", goal_id="g1"), ["fish died"]),
            PlanModification,
        ),
        ("evaluate_task", (PlanStep(id="s", description="Add water"), []), TaskEvaluation),
        ("evaluate_goal", (_goal("g1"), ["water added"]), GoalProgress),
        ("reflect", (["tick 1 ok"],), Reflection),
    ],
)
@pytest.mark.asyncio
async def test_contract_calls_use_matching_response_model(method, args, response_model):
    sentinel = object()
    client = _client(sentinel)

    result = await getattr(CognitivePlanner(client), method)(*args)

    assert result is sentinel
    assert client.call_async.call_args.kwargs["response_model"] is response_model
    assert client.call_async.call_args.kwargs["model"] is None


@pytest.mark.asyncio
async def test_evaluate_task_sends_step_as_context():
    client = _client(TaskEvaluation())

    await CognitivePlanner(client).evaluate_task(
        PlanStep(id="s1", description="Add water"), ["pond dry"]
    )

    prompt = client.call_async.call_args.args[0][1].content
    assert prompt.startswith("Is this task complete?")
    assert "task:" in prompt
    assert "Add water" in prompt
    assert "pond dry" in prompt


def test_next_intent_prefers_open_plan_step():
    plan = Plan(
        id="p",
        description="d",
        goal_id="g1",
        steps=[
            PlanStep(id="s1", description="Add water", order=0, status=StepStatus.COMPLETED),
            PlanStep(id="s2", description="Add fish", order=1, expected_outcome="fish swim"),
        ],
    )

    assert CognitivePlanner.next_intent([_goal("g1")], plan) == "Add fish (expected: fish swim)"


def test_next_intent_falls_back_to_goal_when_plan_done():
    plan = Plan(id="p", description="d", goal_id="g1", status=GoalStatus.COMPLETED)

    assert CognitivePlanner.next_intent([_goal("g1")], plan) == "goal g1"


def test_next_intent_goal_ordering():
    goals = [
        _goal("low", priority=1),
        _goal("later", priority=5, goal_type=GoalType.LONG_TERM),
        _goal("urgent", priority=5, goal_type=GoalType.IMMEDIATE, created_at=9.0),
        _goal("urgent-old", priority=5, goal_type=GoalType.IMMEDIATE, created_at=1.0),
        _goal("done", priority=10, status=GoalStatus.COMPLETED),
    ]

    assert CognitivePlanner.next_intent(goals) == "goal urgent-old"


def test_next_intent_none_when_nothing_active():
    assert CognitivePlanner.next_intent([]) is None
    assert CognitivePlanner.next_intent([_goal("g", status=GoalStatus.SUSPENDED)]) is None
