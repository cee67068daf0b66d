from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from branchflow.core.commits.commit_policy import validate_commit_message
from branchflow.core.config import WorkflowConfig
from branchflow.core.naming.branch_policy import base_branch_for, check_branch_name
from branchflow.core.observability.metrics import record_evaluation
from branchflow.core.policy.engine import PolicyEngine, worst_status
from branchflow.core.policy.models import PolicyResult, fail, warn

from .repo_manager import branch_exists, commit_messages, git_status, is_ancestor, merge_base, ref_exists


@dataclass
class CommitReport:
    sha: str
    header: str
    results: List[PolicyResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sha": self.sha,
            "header": self.header,
            "status": worst_status(self.results).value,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class BranchReport:
    branch: Optional[str]
    base_ref: Optional[str]
    merge_base: Optional[str]
    dirty: bool
    branch_results: List[PolicyResult] = field(default_factory=list)
    commits: List[CommitReport] = field(default_factory=list)

    @property
    def all_results(self) -> List[PolicyResult]:
        out = list(self.branch_results)
        for c in self.commits:
            out.extend(c.results)
        return out

    @property
    def blocking(self) -> bool:
        return PolicyEngine.is_blocking(self.all_results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch": self.branch,
            "base_ref": self.base_ref,
            "merge_base": self.merge_base,
            "dirty": self.dirty,
            "blocking": self.blocking,
            "status": worst_status(self.all_results).value,
            "branch_results": [r.to_dict() for r in self.branch_results],
            "commits": [c.to_dict() for c in self.commits],
        }


def resolve_base_ref(repo_path: Path, base: str, config: WorkflowConfig) -> Optional[str]:
    """Prefer the remote-tracking ref so unpushed local base commits are not skipped."""
    if branch_exists(repo_path, base, remote=config.remote):
        return f"{config.remote}/{base}"
    if branch_exists(repo_path, base):
        return base
    if ref_exists(repo_path, base):
        return base
    return None


def inspect_branch(
    repo_path: Path,
    config: WorkflowConfig,
    base: Optional[str] = None,
    allow_fixup: bool = True,
) -> BranchReport:
    st = git_status(repo_path)
    branch = None if st["detached"] else st["branch"]

    if branch is None:
        report = BranchReport(
            branch=None,
            base_ref=None,
            merge_base=None,
            dirty=st["dirty"],
            branch_results=[fail("BRANCH_DETACHED", "HEAD is detached. Check out a working branch.")],
        )
        record_evaluation("inspect", report.all_results)
        return report

    parsed, branch_results = check_branch_name(branch, config)
    if base is None:
        base = base_branch_for(parsed.type, config) if parsed is not None else config.develop_branch

    base_ref = resolve_base_ref(repo_path, base, config)
    report = BranchReport(
        branch=branch,
        base_ref=base_ref,
        merge_base=None,
        dirty=st["dirty"],
        branch_results=branch_results,
    )

    if base_ref is None:
        report.branch_results.append(
            fail("BASE_REF_MISSING", f"Base branch '{base}' not found locally or on {config.remote}.", base=base)
        )
        record_evaluation("inspect", report.all_results)
        return report

    report.merge_base = merge_base(repo_path, base_ref, "HEAD")
    if not is_ancestor(repo_path, base_ref, "HEAD"):
        report.branch_results.append(
            warn(
                "BRANCH_BEHIND_BASE",
                f"{base_ref} has commits that {branch} does not. Sync (rebase) before opening or merging a PR.",
                base_ref=base_ref,
            )
        )

    for item in commit_messages(repo_path, base_ref, "HEAD"):
        message = item["message"]
        report.commits.append(
            CommitReport(
                sha=item["sha"],
                header=(message.splitlines() or [""])[0],
                results=validate_commit_message(message, config, branch=branch, allow_fixup=allow_fixup),
            )
        )

    record_evaluation("inspect", report.all_results)
    return report
