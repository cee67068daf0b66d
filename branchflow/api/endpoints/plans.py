from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from branchflow.api.errors import to_http
from branchflow.api.schemas.requests import PlanRequest
from branchflow.api.settings import get_config, resolve_repo, workspace_root
from branchflow.core.config import WorkflowConfig
from branchflow.core.pull_requests.pr_policy import PullRequest
from branchflow.core.sequencer import (
    ACTIONS,
    CommandPlan,
    PlanRunner,
    plan_commit,
    plan_deploy,
    plan_finish,
    plan_open_pr,
    plan_publish,
    plan_start,
    plan_sync,
    plan_verify,
)

router = APIRouter(prefix="/api/v1/plans", tags=["plans"])


def _require(value, field: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"'{field}' is required for this action")
    return value


def build_plan(action: str, req: PlanRequest, config: WorkflowConfig) -> CommandPlan:
    if action == "start":
        if not req.name:
            _require(req.type, "type")
            _require(req.description, "description")
        return plan_start(config, req.type or "", req.description, issue=req.issue, name=req.name)
    if action == "commit":
        return plan_commit(
            config,
            _require(req.type, "type"),
            _require(req.subject, "subject"),
            scope=req.scope,
            body=req.body,
            breaking=req.breaking,
            issues=req.issues,
            branch=req.branch,
            breaking_note=req.breaking_note,
        )
    if action == "sync":
        return plan_sync(config, _require(req.branch, "branch"))
    if action == "publish":
        return plan_publish(config, _require(req.branch, "branch"), force=req.force)
    if action == "open-pr":
        pr = PullRequest(
            title=_require(req.title, "title"),
            head=_require(req.head or req.branch, "head"),
            base=_require(req.base, "base"),
            body=req.pr_body,
            draft=req.draft,
        )
        return plan_open_pr(config, pr)
    if action == "finish":
        return plan_finish(config, _require(req.branch, "branch"))
    if action == "verify":
        return plan_verify(config, site=req.site, app=req.app)
    if action == "deploy":
        return plan_deploy(config, site=req.site, app=req.app)
    raise KeyError(f"unknown action: {action}")


@router.get("")
def list_actions():
    return {"actions": list(ACTIONS)}


@router.post("/{action}")
def create_plan(action: str, req: PlanRequest, request: Request):
    if action not in ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown action '{action}'. Allowed: {', '.join(ACTIONS)}")
    try:
        config = get_config()
        plan = build_plan(action, req, config)

        out = {"plan": plan.to_dict(), "run": None}
        if req.execute:
            repo_dir = resolve_repo(_require(req.repo, "repo"))
            runner = PlanRunner(repo_dir, dry_run=req.dry_run, workspace_dir=workspace_root())
            run = runner.run(
                plan,
                actor=getattr(request.state, "actor", None),
                request_id=getattr(request.state, "request_id", None),
            )
            out["run"] = run.to_dict()
        return out
    except Exception as e:
        raise to_http(e)
