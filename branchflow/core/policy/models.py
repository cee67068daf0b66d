from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class PolicyStatus(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


_RANK = {PolicyStatus.PASS: 0, PolicyStatus.WARN: 1, PolicyStatus.FAIL: 2}


def status_rank(status: PolicyStatus) -> int:
    return _RANK[status]


@dataclass(frozen=True)
class PolicyResult:
    status: PolicyStatus
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "code": self.code,
            "message": self.message,
            "details": dict(self.details or {}),
        }


def fail(code: str, message: str, **details: Any) -> PolicyResult:
    return PolicyResult(PolicyStatus.FAIL, code, message, details or None)


def warn(code: str, message: str, **details: Any) -> PolicyResult:
    return PolicyResult(PolicyStatus.WARN, code, message, details or None)
