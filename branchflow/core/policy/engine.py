from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .models import PolicyResult, PolicyStatus, status_rank

log = logging.getLogger("branchflow.policy")

# A policy returns nothing (pass), one result, or several.
PolicyOutput = Union[None, PolicyResult, List[PolicyResult]]
PolicyFn = Callable[[Dict[str, Any]], PolicyOutput]


class PolicyEngine:
    def __init__(self, policies: List[PolicyFn]):
        self._policies = policies

    def evaluate(self, context: Dict[str, Any]) -> List[PolicyResult]:
        results: List[PolicyResult] = []
        for fn in self._policies:
            r = fn(context)
            if r is None:
                continue
            if isinstance(r, PolicyResult):
                results.append(r)
            else:
                results.extend(r)
        if results:
            log.debug("policy results: %s", [x.code for x in results])
        return results

    @staticmethod
    def is_blocking(results: Iterable[PolicyResult]) -> bool:
        return any(r.status == PolicyStatus.FAIL for r in results)


def worst_status(results: Iterable[PolicyResult]) -> PolicyStatus:
    worst = PolicyStatus.PASS
    for r in results:
        if status_rank(r.status) > status_rank(worst):
            worst = r.status
    return worst


def summarize(results: List[PolicyResult], extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "ok": not PolicyEngine.is_blocking(results),
        "status": worst_status(results).value,
        "results": [r.to_dict() for r in results],
    }
    if extra:
        out.update(extra)
    return out
