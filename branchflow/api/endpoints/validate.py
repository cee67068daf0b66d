from __future__ import annotations

from fastapi import APIRouter, HTTPException

from branchflow.api.errors import to_http
from branchflow.api.schemas.requests import BranchCheckRequest, CommitCheckRequest, SuggestRequest
from branchflow.api.settings import get_config
from branchflow.core.commits.commit_policy import validate_commit_message
from branchflow.core.errors import BranchNameError, ConfigError
from branchflow.core.naming.branch_policy import (
    allowed_targets,
    base_branch_for,
    check_branch_name,
    suggest_branch_name,
)
from branchflow.core.observability.metrics import record_evaluation
from branchflow.core.policy.engine import summarize
from branchflow.core.pull_requests.pr_policy import PullRequest, validate_pull_request

router = APIRouter(prefix="/api/v1", tags=["validate"])


@router.post("/validate/branch")
def validate_branch(req: BranchCheckRequest):
    try:
        config = get_config()
    except ConfigError as e:
        raise to_http(e)

    parsed, results = check_branch_name(req.name, config)
    record_evaluation("branch", results)
    extra = {"branch": req.name, "parsed": None}
    if parsed is not None:
        extra["parsed"] = {
            "type": parsed.type,
            "issue": parsed.issue,
            "slug": parsed.slug,
            "version": parsed.version,
            "base": base_branch_for(parsed.type, config),
            "targets": sorted(allowed_targets(parsed.type, config)),
        }
    return summarize(results, extra)


@router.post("/validate/commit")
def validate_commit(req: CommitCheckRequest):
    try:
        config = get_config()
    except ConfigError as e:
        raise to_http(e)

    results = validate_commit_message(req.message, config, branch=req.branch, allow_fixup=req.allow_fixup)
    record_evaluation("commit", results)
    return summarize(results)


@router.post("/validate/pull-request")
def validate_pr(pr: PullRequest):
    try:
        config = get_config()
    except ConfigError as e:
        raise to_http(e)

    results = validate_pull_request(pr, config)
    record_evaluation("pull_request", results)
    return summarize(results, {"head": pr.head, "base": pr.base})


@router.post("/branches/suggest")
def suggest_branch(req: SuggestRequest):
    try:
        config = get_config()
        name = suggest_branch_name(req.type, req.description, issue=req.issue, config=config)
    except (BranchNameError, ConfigError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"name": name}
