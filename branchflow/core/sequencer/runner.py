from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Optional

from branchflow.core.observability.audit import audit_event
from branchflow.core.observability.metrics import record_plan_run

from .models import CommandPlan, CommandStep, PlanRunResult, StepResult

log = logging.getLogger("branchflow.runner")

_OUTPUT_LIMIT = 20000


def _clip(text: str) -> str:
    text = (text or "").strip()
    if len(text) > _OUTPUT_LIMIT:
        return text[:_OUTPUT_LIMIT] + "\n... (truncated) ..."
    return text


class PlanRunner:
    """Runs a CommandPlan step by step inside a repository.

    Dry runs (the default) report every step as skipped. A real run stops at
    the first step that exits non-zero; later steps are reported as skipped.
    """

    def __init__(
        self,
        repo_path: Path,
        *,
        dry_run: bool = True,
        workspace_dir: Optional[Path] = None,
        timeout_seconds: int = 600,
    ):
        self.repo_path = Path(repo_path)
        self.dry_run = dry_run
        if workspace_dir is None:
            # keep the audit log out of the working tree
            git_dir = self.repo_path / ".git"
            workspace_dir = git_dir if git_dir.is_dir() else self.repo_path
        self.workspace_dir = Path(workspace_dir)
        self.timeout_seconds = timeout_seconds

    def _exec(self, step: CommandStep) -> StepResult:
        start = time.time()
        try:
            p = subprocess.run(
                step.argv,
                cwd=str(self.repo_path),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env={**os.environ, "GIT_PAGER": "cat", "PAGER": "cat", "GH_PROMPT_DISABLED": "1"},
                timeout=self.timeout_seconds,
            )
            rc, out, err = p.returncode, p.stdout, p.stderr
        except FileNotFoundError:
            rc, out, err = 127, "", f"{step.tool}: command not found"
        except subprocess.TimeoutExpired:
            rc, out, err = 124, "", f"timed out after {self.timeout_seconds}s"

        return StepResult(
            shell=step.as_shell(),
            status="ok" if rc == 0 else "failed",
            returncode=rc,
            stdout=_clip(out),
            stderr=_clip(err),
            duration_ms=int((time.time() - start) * 1000),
        )

    def run(self, plan: CommandPlan, actor: Optional[str] = None, request_id: Optional[str] = None) -> PlanRunResult:
        result = PlanRunResult(action=plan.action, branch=plan.branch, dry_run=self.dry_run)
        halted = False

        for step in plan.steps:
            if self.dry_run or halted:
                result.steps.append(StepResult(shell=step.as_shell(), status="skipped"))
                continue

            log.info("run step action=%s cmd=%s", plan.action, step.as_shell())
            sr = self._exec(step)
            result.steps.append(sr)
            if sr.status == "failed":
                log.warning(
                    "step failed action=%s rc=%s cmd=%s err=%s",
                    plan.action,
                    sr.returncode,
                    sr.shell,
                    sr.stderr,
                )
                halted = True

        outcome = "dry_run" if self.dry_run else ("ok" if result.ok else "failed")
        record_plan_run(plan.action, outcome)
        audit_event(
            self.workspace_dir,
            "plan_run",
            {
                "action": plan.action,
                "branch": plan.branch,
                "repo": str(self.repo_path),
                "outcome": outcome,
                "steps": [{"shell": s.shell, "status": s.status, "rc": s.returncode} for s in result.steps],
            },
            actor=actor,
            request_id=request_id,
        )
        return result
