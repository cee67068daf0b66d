from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable

from prometheus_client import Counter as PromCounter

from branchflow.core.policy.engine import worst_status
from branchflow.core.policy.models import PolicyResult

# Named counters (custom)
_NAMED = Counter()

POLICY_EVALUATIONS_TOTAL = PromCounter(
    "branchflow_policy_evaluations_total",
    "Policy evaluations by kind and worst status",
    ["kind", "status"],
)

PLAN_RUNS_TOTAL = PromCounter(
    "branchflow_plan_runs_total",
    "Command plan runs by action and outcome",
    ["action", "outcome"],
)


def reset_metrics() -> None:
    """
    Test helper: clears named counters to avoid cross-test leakage.
    Prometheus counters are process-global and are not reset.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)


def record_evaluation(kind: str, results: Iterable[PolicyResult]) -> str:
    status = worst_status(results).value
    POLICY_EVALUATIONS_TOTAL.labels(kind=kind, status=status).inc()
    inc_named(f"policy_{kind}_{status.lower()}")
    return status


def record_plan_run(action: str, outcome: str) -> None:
    PLAN_RUNS_TOTAL.labels(action=action, outcome=outcome).inc()
    inc_named(f"plan_{action}_{outcome}")
