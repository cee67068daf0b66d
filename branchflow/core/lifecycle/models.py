from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class BranchState(str, Enum):
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    PUBLISHED = "PUBLISHED"
    PR_OPEN = "PR_OPEN"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    APPROVED = "APPROVED"
    MERGED = "MERGED"
    CLOSED = "CLOSED"


@dataclass
class LifecycleEvent:
    ts: str
    state: BranchState
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BranchRecord:
    name: str
    branch_type: str
    base_branch: str
    target_branch: str
    state: BranchState
    created_ts: str
    updated_ts: str

    issue: Optional[int] = None
    actor: Optional[str] = None
    pr_number: Optional[int] = None

    events: List[LifecycleEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "branch_type": self.branch_type,
            "base_branch": self.base_branch,
            "target_branch": self.target_branch,
            "state": self.state.value,
            "created_ts": self.created_ts,
            "updated_ts": self.updated_ts,
            "issue": self.issue,
            "actor": self.actor,
            "pr_number": self.pr_number,
            "events": [
                {
                    "ts": e.ts,
                    "state": e.state.value,
                    "message": e.message,
                    "data": e.data,
                }
                for e in self.events
            ],
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "BranchRecord":
        evs: List[LifecycleEvent] = []
        for e in d.get("events", []) or []:
            evs.append(
                LifecycleEvent(
                    ts=e["ts"],
                    state=BranchState(e["state"]),
                    message=e.get("message", ""),
                    data=e.get("data", {}) or {},
                )
            )

        return BranchRecord(
            name=d["name"],
            branch_type=d["branch_type"],
            base_branch=d["base_branch"],
            target_branch=d["target_branch"],
            state=BranchState(d["state"]),
            created_ts=d.get("created_ts") or _utc_now_iso(),
            updated_ts=d.get("updated_ts") or _utc_now_iso(),
            issue=d.get("issue"),
            actor=d.get("actor"),
            pr_number=d.get("pr_number"),
            events=evs,
        )
