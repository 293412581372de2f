"""Cognitive planner: prompt collaborators behind the LLMClient protocol.

The planner never touches the registry or world. Its output only decides
which intent the cognitive loop sends next.

Usage:
    planner = CognitivePlanner(adapter)
    goals = await planner.generate_goals("A pond ecosystem")
    plan = await planner.generate_plan(goals[0])

    intent = CognitivePlanner.next_intent(goals, plan)
    report = await loop.handle(IntentRequest(intent, ticks=10))
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from ecsforge.adapters import LLMClient, Message
from ecsforge.cognition.models import (
    Goal,
    GoalProgress,
    GoalSet,
    GoalStatus,
    GoalType,
    Plan,
    PlanModification,
    PlanStep,
    Reflection,
    TaskEvaluation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_URGENCY = {GoalType.IMMEDIATE: 0, GoalType.SHORT_TERM: 1, GoalType.LONG_TERM: 2}

SYSTEM_PROMPT = (
    "You direct the evolution of an entity-component simulation. "
    "Answer only with the requested JSON structure."
)


def _dump(value: Any) -> str:
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2)
    if isinstance(value, list | tuple):
        return json.dumps(
            [v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value],
            indent=2,
            default=str,
        )
    return json.dumps(value, indent=2, default=str)


class CognitivePlanner:
    """Goal, plan, evaluation and reflection calls over an LLMClient.

    Args:
        client: Structured-output LLM client.
        model: Forced model for every call (None uses the client default).
        system_prompt: Shared system message.
    """

    def __init__(
        self,
        client: LLMClient,
        model: str | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self._client = client
        self._model = model
        self._system_prompt = system_prompt

    async def _ask(self, instruction: str, response_model: type[T], **context: Any) -> T:
        lines = [instruction]
        lines += [f"{key}:\n{_dump(value)}" for key, value in context.items()]
        messages = [Message.system(self._system_prompt), Message.user("\n\n".join(lines))]
        logger.debug("Planner call %s", response_model.__name__)
        return await self._client.call_async(
            messages, response_model=response_model, model=self._model
        )

    async def generate_goals(
        self, situation: str, current_goals: Sequence[Goal] = ()
    ) -> list[Goal]:
        """Propose goals for the current situation."""
        result = await self._ask(
            "Propose goals for the simulation.",
            GoalSet,
            situation=situation,
            current_goals=list(current_goals),
        )
        return result.goals

    async def generate_plan(self, goal: Goal, tools: Sequence[str] = ()) -> Plan:
        """Break a goal into ordered steps."""
        return await self._ask(
            f"Write a plan for goal {goal.id}.", Plan, goal=goal, available_tools=list(tools)
        )

    async def evaluate_plan(self, plan: Plan, experiences: Sequence[Any] = ()) -> PlanModification:
        """Decide whether recent experiences call for plan edits."""
        return await self._ask(
            "Should this plan change?",
            PlanModification,
            plan=plan,
            recent_experiences=list(experiences),
        )

    async def evaluate_task(
        self, step: PlanStep, experiences: Sequence[Any] = ()
    ) -> TaskEvaluation:
        """Judge whether a plan step is complete or has failed."""
        return await self._ask(
            "Is this task complete?",
            TaskEvaluation,
            task=step,
            recent_experiences=list(experiences),
        )

    async def evaluate_goal(self, goal: Goal, experiences: Sequence[Any] = ()) -> GoalProgress:
        """Measure progress against a goal's success criteria."""
        return await self._ask(
            "How far along is this goal?",
            GoalProgress,
            goal=goal,
            recent_experiences=list(experiences),
        )

    async def reflect(self, experiences: Sequence[Any]) -> Reflection:
        """Summarize recent experiences into insights and adjustments."""
        return await self._ask(
            "Reflect on these experiences.", Reflection, recent_experiences=list(experiences)
        )

    @staticmethod
    def next_intent(goals: Sequence[Goal], plan: Plan | None = None) -> str | None:
        """Deterministically choose the next intent to send to synthesis.

        The active plan's next open step wins. Otherwise the most pressing
        active goal: highest priority, then most immediate type, then oldest,
        then id.

        Returns:
            Intent text, or None when nothing is pending.
        """
        if plan is not None and plan.status is GoalStatus.ACTIVE:
            step = plan.next_step()
            if step is not None:
                if step.expected_outcome:
                    return f"{step.description} (expected: {step.expected_outcome})"
                return step.description

        active = [g for g in goals if g.status is GoalStatus.ACTIVE]
        if not active:
            return None
        best = min(active, key=lambda g: (-g.priority, _URGENCY[g.type], g.created_at, g.id))
        return best.description
