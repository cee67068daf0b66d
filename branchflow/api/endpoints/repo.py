from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from branchflow.api.errors import to_http
from branchflow.api.settings import resolve_repo
from branchflow.core.config import load_config
from branchflow.core.git_ops.inspector import inspect_branch
from branchflow.core.git_ops.repo_manager import git_status, is_git_repo

router = APIRouter(prefix="/api/v1/repo", tags=["repo"])


@router.get("/status")
def repo_status(repo: str = Query(...)):
    try:
        repo_dir = resolve_repo(repo)
        if not is_git_repo(repo_dir):
            raise ValueError(f"not a git repository: {repo}")
        return {"repo": repo, "status": git_status(repo_dir)}
    except Exception as e:
        raise to_http(e)


@router.get("/inspect")
def repo_inspect(
    repo: str = Query(...),
    base: Optional[str] = Query(None, description="Base branch; defaults to the branch type's base"),
    allow_fixup: bool = Query(True),
):
    """
    Validate the checked-out branch name and every commit between the base
    branch and HEAD. The repo's own .branchflow.yml is honoured.
    """
    try:
        repo_dir = resolve_repo(repo)
        if not is_git_repo(repo_dir):
            raise ValueError(f"not a git repository: {repo}")
        config = load_config(repo_path=repo_dir)
        report = inspect_branch(repo_dir, config, base=base, allow_fixup=allow_fixup)
        return {"repo": repo, **report.to_dict()}
    except Exception as e:
        raise to_http(e)
