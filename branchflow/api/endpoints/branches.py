from __future__ import annotations

from fastapi import APIRouter, Query, Request

from branchflow.api.errors import to_http
from branchflow.api.schemas.requests import RegisterBranchRequest, TransitionRequest
from branchflow.api.settings import get_config, workspace_root
from branchflow.core.lifecycle import BranchRegistry, allowed_next
from branchflow.core.observability.audit import audit_event

router = APIRouter(prefix="/api/v1/branches", tags=["branches"])


def _registry() -> BranchRegistry:
    return BranchRegistry(workspace_dir=workspace_root())


def _view(rec):
    d = rec.to_dict()
    d["allowed_next"] = sorted(allowed_next(rec.state).keys())
    return d


@router.post("")
def register_branch(req: RegisterBranchRequest, request: Request):
    try:
        actor = getattr(request.state, "actor", None)
        rec = _registry().register(req.name, get_config(), issue=req.issue, actor=actor)
        audit_event(
            workspace_root(),
            "branch_registered",
            {"branch": rec.name, "state": rec.state.value},
            actor=actor,
            request_id=getattr(request.state, "request_id", None),
        )
        return _view(rec)
    except Exception as e:
        raise to_http(e)


@router.get("")
def list_branches(active_only: bool = Query(False)):
    recs = _registry().list(include_terminal=not active_only)
    return {"branches": [_view(r) for r in recs]}


@router.post("/{name:path}/transition")
def transition_branch(name: str, req: TransitionRequest, request: Request):
    try:
        data = {}
        if req.pr_number is not None:
            data["pr_number"] = req.pr_number
        rec = _registry().transition(name=name, dst=req.state, message=req.message, data=data)
        audit_event(
            workspace_root(),
            "branch_transition",
            {"branch": name, "state": rec.state.value},
            actor=getattr(request.state, "actor", None),
            request_id=getattr(request.state, "request_id", None),
        )
        return _view(rec)
    except Exception as e:
        raise to_http(e)


@router.get("/{name:path}")
def get_branch(name: str):
    rec = _registry().get(name)
    if rec is None:
        raise to_http(FileNotFoundError(f"branch not registered: {name}"))
    return _view(rec)
