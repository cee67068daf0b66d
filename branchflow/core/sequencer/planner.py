"""
Command plans for the branch workflow.

Every plan is validated before it is built: FAIL results raise
PolicyViolationError, WARN results travel with the plan as `warnings`.
Plans only describe commands; PlanRunner executes them.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from branchflow.core.commits.commit_policy import validate_commit_message
from branchflow.core.commits.parser import format_commit_message, format_footers, format_header
from branchflow.core.config import WorkflowConfig
from branchflow.core.errors import ConfigError, PolicyViolationError
from branchflow.core.naming.branch_policy import (
    allowed_targets,
    base_branch_for,
    check_branch_name,
    is_protected,
    suggest_branch_name,
)
from branchflow.core.naming.models import BranchName, BranchType
from branchflow.core.observability.metrics import record_evaluation
from branchflow.core.policy.engine import PolicyEngine
from branchflow.core.policy.models import PolicyResult, PolicyStatus, fail
from branchflow.core.pull_requests.pr_policy import PullRequest, validate_pull_request

from .models import CommandPlan


ACTIONS = ("start", "commit", "sync", "publish", "open-pr", "finish", "verify", "deploy")


def _guard(kind: str, results: List[PolicyResult], what: str) -> List[dict]:
    record_evaluation(kind, results)
    if PolicyEngine.is_blocking(results):
        raise PolicyViolationError(what, results)
    return [r.to_dict() for r in results if r.status == PolicyStatus.WARN]


def _working_branch(branch: str, config: WorkflowConfig, action: str) -> Tuple[BranchName, List[dict]]:
    if is_protected(branch, config):
        raise PolicyViolationError(
            f"Refusing to {action} on protected branch '{branch}'",
            [fail("BRANCH_PROTECTED", f"'{branch}' is protected; use a working branch.", branch=branch)],
        )
    parsed, results = check_branch_name(branch, config)
    warnings = _guard("branch", results, f"Invalid branch name '{branch}'")
    if parsed is None:
        raise PolicyViolationError(
            f"Invalid branch name '{branch}'",
            [fail("BRANCH_FORMAT_INVALID", "Branch name could not be parsed.", branch=branch)],
        )
    return parsed, warnings


def _bench_target(config: WorkflowConfig, site: Optional[str], app: Optional[str]) -> Tuple[str, str]:
    site = (site or config.bench_site or "").strip()
    app = (app or config.bench_app or "").strip()
    if not site or not app:
        raise ConfigError("bench plans need a site and an app (arguments or bench_site/bench_app in config)")
    return site, app


def plan_start(
    config: WorkflowConfig,
    branch_type: str,
    description: str = "",
    issue: Optional[int] = None,
    name: Optional[str] = None,
) -> CommandPlan:
    branch = name or suggest_branch_name(branch_type, description, issue=issue, config=config)
    parsed, warnings = _working_branch(branch, config, "start")
    base = base_branch_for(parsed.type, config)
    remote = config.remote

    plan = CommandPlan(action="start", branch=branch, warnings=warnings, meta={"base": base})
    plan.add("git", "fetch", remote, description="Refresh remote refs", mutating=False)
    plan.add("git", "checkout", base, description=f"Switch to {base}")
    plan.add("git", "pull", "--ff-only", remote, base, description=f"Fast-forward {base}")
    plan.add("git", "checkout", "-b", branch, description="Create the working branch")
    return plan


def plan_commit(
    config: WorkflowConfig,
    type_: str,
    subject: str,
    scope: Optional[str] = None,
    body: Optional[str] = None,
    breaking: bool = False,
    issues: Iterable[int] = (),
    branch: Optional[str] = None,
    breaking_note: Optional[str] = None,
) -> CommandPlan:
    issues = list(issues)
    warnings: List[dict] = []
    if branch:
        _, warnings = _working_branch(branch, config, "commit")

    message = format_commit_message(
        type_, subject, scope=scope, body=body, breaking=breaking, issues=issues, breaking_note=breaking_note
    )
    warnings += _guard(
        "commit",
        validate_commit_message(message, config, branch=branch),
        "Commit message violates the commit convention",
    )

    plan = CommandPlan(action="commit", branch=branch, warnings=warnings, meta={"message": message})
    plan.add("git", "add", "-A", description="Stage all changes")
    args = ["commit", "-m", format_header(type_, subject, scope, breaking or bool(breaking_note))]
    if body and body.strip():
        args += ["-m", body.strip()]
    footers = format_footers(issues, breaking_note)
    if footers:
        args += ["-m", "\n".join(footers)]
    plan.add("git", *args, description="Commit")
    return plan


def plan_sync(config: WorkflowConfig, branch: str) -> CommandPlan:
    parsed, warnings = _working_branch(branch, config, "sync")
    base = base_branch_for(parsed.type, config)
    remote = config.remote

    plan = CommandPlan(action="sync", branch=branch, warnings=warnings, meta={"base": base})
    plan.add("git", "fetch", remote, description="Refresh remote refs", mutating=False)
    plan.add("git", "checkout", branch)
    plan.add("git", "rebase", f"{remote}/{base}", description=f"Replay {branch} on top of {remote}/{base}")
    return plan


def plan_publish(config: WorkflowConfig, branch: str, force: bool = False) -> CommandPlan:
    _, warnings = _working_branch(branch, config, "publish")
    args = ["push"]
    if force:
        args.append("--force-with-lease")
    args += ["-u", config.remote, branch]

    plan = CommandPlan(action="publish", branch=branch, warnings=warnings)
    plan.add("git", *args, description=f"Push {branch} to {config.remote}")
    return plan


def plan_open_pr(config: WorkflowConfig, pr: PullRequest) -> CommandPlan:
    warnings = _guard("pull_request", validate_pull_request(pr, config), "Pull request violates the PR convention")

    args = ["pr", "create", "--base", pr.base, "--head", pr.head, "--title", pr.title, "--body", pr.body]
    if pr.draft:
        args.append("--draft")

    plan = CommandPlan(action="open-pr", branch=pr.head, warnings=warnings, meta={"base": pr.base})
    plan.add("gh", *args, description=f"Open a pull request {pr.head} -> {pr.base}")
    return plan


def plan_finish(config: WorkflowConfig, branch: str) -> CommandPlan:
    parsed, warnings = _working_branch(branch, config, "finish")
    target = sorted(allowed_targets(parsed.type, config))[0]
    remote = config.remote

    plan = CommandPlan(action="finish", branch=branch, warnings=warnings, meta={"target": target})
    plan.add("gh", "pr", "merge", branch, "--squash", "--delete-branch", description="Squash-merge the pull request")
    plan.add("git", "checkout", target)
    plan.add("git", "pull", "--ff-only", remote, target, description=f"Fast-forward {target}")

    if parsed.type in (BranchType.HOTFIX.value, BranchType.RELEASE.value) and target != config.develop_branch:
        develop = config.develop_branch
        plan.add("git", "checkout", develop)
        plan.add("git", "pull", "--ff-only", remote, develop)
        plan.add(
            "git",
            "merge",
            "--no-ff",
            target,
            "-m",
            f"chore: merge {target} into {develop} after {branch}",
            description=f"Back-merge {target} into {develop}",
        )
        plan.add("git", "push", remote, develop)
    return plan


def plan_verify(config: WorkflowConfig, site: Optional[str] = None, app: Optional[str] = None) -> CommandPlan:
    site, app = _bench_target(config, site, app)
    plan = CommandPlan(action="verify", branch=None, meta={"site": site, "app": app})
    plan.add("bench", "--site", site, "run-tests", "--app", app, description="Run the app test suite", mutating=False)
    return plan


def plan_deploy(config: WorkflowConfig, site: Optional[str] = None, app: Optional[str] = None) -> CommandPlan:
    site, app = _bench_target(config, site, app)
    plan = CommandPlan(action="deploy", branch=None, meta={"site": site, "app": app})
    plan.add("bench", "--site", site, "migrate", description="Apply DocType and patch changes")
    plan.add("bench", "build", "--app", app, description="Rebuild client assets")
    plan.add("bench", "--site", site, "clear-cache")
    plan.add("bench", "restart", description="Restart workers and web")
    return plan
