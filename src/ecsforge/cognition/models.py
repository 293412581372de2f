"""Cognitive contracts: goals, plans and the evaluations that steer them.

These are the JSON shapes exchanged with prompt collaborators. Keys are
accepted in either snake_case or the camelCase some generators emit
(``expectedOutcome``, ``goalId``, ...).
"""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


class GoalType(Enum):
    LONG_TERM = "long_term"
    SHORT_TERM = "short_term"
    IMMEDIATE = "immediate"


class GoalStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    SUSPENDED = "suspended"


class StepStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Goal(BaseModel):
    """Something the agent is trying to bring about in the simulation.

    Attributes:
        priority: Higher runs first.
        progress: Percent complete, 0-100.
    """

    model_config = _CONFIG

    id: str
    description: str
    type: GoalType = GoalType.SHORT_TERM
    priority: float = 0
    status: GoalStatus = GoalStatus.ACTIVE
    progress: float = Field(default=0, ge=0, le=100)
    success_criteria: list[str] = Field(default_factory=list, alias="successCriteria")
    progress_indicators: list[str] = Field(default_factory=list, alias="progressIndicators")
    created_at: float = Field(default_factory=time.time, alias="createdAt")


class GoalSet(BaseModel):
    """Response wrapper for goal generation."""

    model_config = _CONFIG

    goals: list[Goal] = Field(default_factory=list)


class PlanStep(BaseModel):
    model_config = _CONFIG

    id: str
    description: str
    order: int = 0
    status: StepStatus = StepStatus.PENDING
    expected_outcome: str = Field(default="", alias="expectedOutcome")
    required_tools: list[str] = Field(default_factory=list, alias="requiredTools")

    @property
    def is_open(self) -> bool:
        return self.status in (StepStatus.PENDING, StepStatus.IN_PROGRESS)


class Plan(BaseModel):
    """Ordered steps toward one goal."""

    model_config = _CONFIG

    id: str
    description: str
    goal_id: str = Field(alias="goalId")
    steps: list[PlanStep] = Field(default_factory=list)
    status: GoalStatus = GoalStatus.ACTIVE
    priority: float = 0
    created_at: float = Field(default_factory=time.time, alias="createdAt")
    updated_at: float = Field(default_factory=time.time, alias="updatedAt")

    def ordered_steps(self) -> list[PlanStep]:
        return sorted(self.steps, key=lambda s: (s.order, s.id))

    def next_step(self) -> PlanStep | None:
        """First open step in order, or None when every step is settled."""
        for step in self.ordered_steps():
            if step.is_open:
                return step
        return None

    def with_step_status(self, step_id: str, status: StepStatus) -> Plan:
        """Copy with one step's status changed; the plan settles when all steps do.

        Raises:
            KeyError: If no step has that id.
        """
        if not any(s.id == step_id for s in self.steps):
            raise KeyError(step_id)
        steps = [
            s.model_copy(update={"status": status}) if s.id == step_id else s for s in self.steps
        ]
        plan_status = self.status
        if any(s.status is StepStatus.FAILED for s in steps):
            plan_status = GoalStatus.FAILED
        elif all(s.status is StepStatus.COMPLETED for s in steps):
            plan_status = GoalStatus.COMPLETED
        return self.model_copy(
            update={"steps": steps, "status": plan_status, "updated_at": time.time()}
        )


class NewTask(BaseModel):
    model_config = _CONFIG

    description: str
    reason: str = ""
    insert_after: str | None = Field(default=None, alias="insertAfter")


class RemovedTask(BaseModel):
    model_config = _CONFIG

    description: str
    reason: str = ""


class ReorderedTask(BaseModel):
    model_config = _CONFIG

    description: str
    move_after: str = Field(alias="moveAfter")
    reason: str = ""


class PlanModification(BaseModel):
    """Suggested edits to a plan after new experiences."""

    model_config = _CONFIG

    should_modify: bool = Field(default=False, alias="shouldModify")
    new_tasks: list[NewTask] = Field(default_factory=list, alias="newTasks")
    tasks_to_remove: list[RemovedTask] = Field(default_factory=list, alias="tasksToRemove")
    tasks_to_reorder: list[ReorderedTask] = Field(default_factory=list, alias="tasksToReorder")

    def apply(self, plan: Plan) -> Plan:
        """Return the plan with removals, insertions and moves applied.

        Tasks are matched by description. Unmatched anchors append to the
        end. Steps are renumbered 0..n-1 afterwards.
        """
        if not self.should_modify:
            return plan

        removed = {t.description for t in self.tasks_to_remove}
        steps = [s for s in plan.ordered_steps() if s.description not in removed]

        def index_of(description: str | None) -> int | None:
            for i, step in enumerate(steps):
                if step.description == description:
                    return i
            return None

        for n, task in enumerate(self.new_tasks):
            step = PlanStep(id=f"{plan.id}-new-{n}", description=task.description)
            anchor = index_of(task.insert_after)
            steps.insert(len(steps) if anchor is None else anchor + 1, step)

        for move in self.tasks_to_reorder:
            current = index_of(move.description)
            if current is None:
                continue
            step = steps.pop(current)
            anchor = index_of(move.move_after)
            steps.insert(len(steps) if anchor is None else anchor + 1, step)

        renumbered = [s.model_copy(update={"order": i}) for i, s in enumerate(steps)]
        return plan.model_copy(update={"steps": renumbered, "updated_at": time.time()})


class TaskEvaluation(BaseModel):
    model_config = _CONFIG

    complete: bool = False
    failed: bool = False
    reason: str = ""


class GoalProgress(BaseModel):
    model_config = _CONFIG

    complete: bool = False
    progress: float = Field(default=0, ge=0, le=100)
    criteria_met: list[str] = Field(default_factory=list)
    criteria_partial: list[str] = Field(default_factory=list)
    criteria_blocked: list[str] = Field(default_factory=list)
    recent_advancements: list[str] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


class Reflection(BaseModel):
    """Periodic self-assessment over recent experiences."""

    model_config = _CONFIG

    summary: str
    insights: list[str] = Field(default_factory=list)
    adjustments: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0, le=1)
