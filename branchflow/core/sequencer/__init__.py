from .models import CommandPlan, CommandStep, PlanRunResult, StepResult
from .planner import (
    ACTIONS,
    plan_commit,
    plan_deploy,
    plan_finish,
    plan_open_pr,
    plan_publish,
    plan_start,
    plan_sync,
    plan_verify,
)
from .runner import PlanRunner

__all__ = [
    "ACTIONS",
    "CommandPlan",
    "CommandStep",
    "PlanRunResult",
    "PlanRunner",
    "StepResult",
    "plan_commit",
    "plan_deploy",
    "plan_finish",
    "plan_open_pr",
    "plan_publish",
    "plan_start",
    "plan_sync",
    "plan_verify",
]
