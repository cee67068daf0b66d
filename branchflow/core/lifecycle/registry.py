from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from branchflow.core.config import WorkflowConfig
from branchflow.core.errors import PolicyViolationError
from branchflow.core.naming.branch_policy import (
    allowed_targets,
    base_branch_for,
    check_branch_name,
)
from branchflow.core.policy.engine import PolicyEngine

from .models import BranchRecord, BranchState, LifecycleEvent, _utc_now_iso
from .state_machine import ensure_transition

log = logging.getLogger("branchflow.lifecycle")


def _branches_dir(workspace_dir: Path) -> Path:
    d = workspace_dir / ".branchflow" / "branches"
    d.mkdir(parents=True, exist_ok=True)
    return d


def _branch_path(workspace_dir: Path, name: str) -> Path:
    return _branches_dir(workspace_dir) / f"{name.replace('/', '__')}.json"


class BranchRegistry:
    """File-backed branch lifecycle registry.

    Path: <workspace>/.branchflow/branches/{type}__{slug}.json
    """

    def __init__(self, *, workspace_dir: Path):
        self.workspace_dir = workspace_dir

    def get(self, name: str) -> Optional[BranchRecord]:
        p = _branch_path(self.workspace_dir, name)
        if not p.exists():
            return None
        obj = json.loads(p.read_text(encoding="utf-8"))
        return BranchRecord.from_dict(obj)

    def upsert(self, rec: BranchRecord) -> None:
        p = _branch_path(self.workspace_dir, rec.name)
        p.write_text(json.dumps(rec.to_dict(), indent=2, sort_keys=True), encoding="utf-8")

    def list(self, *, include_terminal: bool = True) -> List[BranchRecord]:
        out: List[BranchRecord] = []
        for p in sorted(_branches_dir(self.workspace_dir).glob("*.json")):
            rec = BranchRecord.from_dict(json.loads(p.read_text(encoding="utf-8")))
            if include_terminal or rec.state not in (BranchState.MERGED, BranchState.CLOSED):
                out.append(rec)
        return out

    def register(
        self,
        name: str,
        config: WorkflowConfig,
        *,
        issue: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> BranchRecord:
        parsed, results = check_branch_name(name, config)
        if parsed is None or PolicyEngine.is_blocking(results):
            raise PolicyViolationError(f"Cannot register branch '{name}'", results)

        existing = self.get(parsed.raw)
        if existing is not None:
            return existing

        now = _utc_now_iso()
        rec = BranchRecord(
            name=parsed.raw,
            branch_type=parsed.type,
            base_branch=base_branch_for(parsed.type, config),
            target_branch=sorted(allowed_targets(parsed.type, config))[0],
            state=BranchState.CREATED,
            created_ts=now,
            updated_ts=now,
            issue=issue if issue is not None else parsed.issue,
            actor=actor,
            events=[
                LifecycleEvent(
                    ts=now,
                    state=BranchState.CREATED,
                    message="registered",
                    data={"warnings": [r.code for r in results]},
                )
            ],
        )
        self.upsert(rec)
        log.info("registered branch %s base=%s target=%s", rec.name, rec.base_branch, rec.target_branch)
        return rec

    def transition(
        self,
        *,
        name: str,
        dst: BranchState,
        message: str = "",
        data: Optional[Dict[str, Any]] = None,
    ) -> BranchRecord:
        rec = self.get(name)
        if rec is None:
            raise FileNotFoundError(f"branch not registered: {name}")

        ensure_transition(rec.state, dst)
        if rec.state == dst:
            return rec

        now = _utc_now_iso()
        src = rec.state
        rec.state = dst
        rec.updated_ts = now
        payload = dict(data or {})
        if dst == BranchState.PR_OPEN and payload.get("pr_number") is not None:
            rec.pr_number = int(payload["pr_number"])
        rec.events.append(
            LifecycleEvent(
                ts=now,
                state=dst,
                message=message,
                data=payload,
            )
        )
        self.upsert(rec)
        log.info("branch %s: %s -> %s", name, src.value, dst.value)
        return rec

    def history(self, name: str) -> List[Dict[str, Any]]:
        rec = self.get(name)
        if rec is None:
            return []
        return [e.__dict__ | {"state": e.state.value} for e in rec.events]
