"""Cognitive contracts and planner.

Usage:
    from ecsforge.cognition import CognitivePlanner, Goal

    goals = [Goal(id="g1", description="Add gravity", priority=5)]
    CognitivePlanner.next_intent(goals)  # "Add gravity"
"""

from ecsforge.cognition.models import (
    Goal,
    GoalProgress,
    GoalSet,
    GoalStatus,
    GoalType,
    NewTask,
    Plan,
    PlanModification,
    PlanStep,
    Reflection,
    RemovedTask,
    ReorderedTask,
    StepStatus,
    TaskEvaluation,
)
from ecsforge.cognition.planner import CognitivePlanner

__all__ = [
    # Planner
    "CognitivePlanner",
    # Goals
    "Goal",
    "GoalSet",
    "GoalType",
    "GoalStatus",
    "GoalProgress",
    # Plans
    "Plan",
    "PlanStep",
    "StepStatus",
    "PlanModification",
    "NewTask",
    "RemovedTask",
    "ReorderedTask",
    # Evaluations
    "TaskEvaluation",
    "Reflection",
]
