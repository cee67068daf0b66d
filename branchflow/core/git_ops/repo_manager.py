# branchflow/core/git_ops/repo_manager.py

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from branchflow.core.errors import GitCommandError


# ---------------------------------------------------------------------
# Core git runner (deterministic, no pager, strict semantics)
# ---------------------------------------------------------------------

def _git_env() -> Dict[str, str]:
    return {**os.environ, "GIT_PAGER": "cat", "PAGER": "cat", "LC_ALL": "C"}


def _run_git(repo_path: Path, args: List[str]) -> Tuple[int, str, str]:
    p = subprocess.run(
        ["git", "--no-pager", *args],
        cwd=str(repo_path),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        env=_git_env(),
    )
    return p.returncode, (p.stdout or "").strip(), (p.stderr or "").strip()


def _git_checked(repo_path: Path, args: List[str]) -> str:
    rc, out, err = _run_git(repo_path, args)
    if rc != 0:
        raise GitCommandError(args, rc, err or out)
    return out


# ---------------------------------------------------------------------
# Basic state
# ---------------------------------------------------------------------

def is_git_repo(repo_path: Path) -> bool:
    if not repo_path.is_dir():
        return False
    rc, out, _ = _run_git(repo_path, ["rev-parse", "--is-inside-work-tree"])
    return rc == 0 and out == "true"


def current_branch(repo_path: Path) -> Optional[str]:
    """Checked-out branch name, or None on a detached HEAD."""
    rc, out, _ = _run_git(repo_path, ["symbolic-ref", "--quiet", "--short", "HEAD"])
    if rc != 0:
        return None
    return out or None


def git_status(repo_path: Path) -> Dict[str, Any]:
    branch = current_branch(repo_path)

    rc, status, err = _run_git(repo_path, ["status", "--porcelain"])
    if rc != 0:
        raise GitCommandError(["status", "--porcelain"], rc, err)

    return {
        "branch": branch or "(detached)",
        "detached": branch is None,
        "dirty": bool(status),
        "porcelain": status.splitlines() if status else [],
    }


def ref_exists(repo_path: Path, ref: str) -> bool:
    rc, _, _ = _run_git(repo_path, ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
    return rc == 0


def branch_exists(repo_path: Path, name: str, remote: Optional[str] = None) -> bool:
    ref = f"refs/remotes/{remote}/{name}" if remote else f"refs/heads/{name}"
    rc, _, _ = _run_git(repo_path, ["show-ref", "--verify", "--quiet", ref])
    return rc == 0


# ---------------------------------------------------------------------
# Merge-base / history
# ---------------------------------------------------------------------

def merge_base(repo_path: Path, left_ref: str, right_ref: str) -> Optional[str]:
    rc, out, _ = _run_git(repo_path, ["merge-base", left_ref, right_ref])
    if rc != 0:
        return None
    return out.strip() or None


def is_ancestor(repo_path: Path, ancestor_ref: str, descendant_ref: str) -> bool:
    rc, _, _ = _run_git(repo_path, ["merge-base", "--is-ancestor", ancestor_ref, descendant_ref])
    return rc == 0


def commit_messages(repo_path: Path, base_ref: str, head_ref: str = "HEAD") -> List[Dict[str, str]]:
    """
    Full messages of commits reachable from head_ref but not base_ref,
    oldest first. Records are NUL-separated so bodies may hold anything.
    """
    out = _git_checked(repo_path, ["log", "--reverse", "--format=%H%n%B%x00", f"{base_ref}..{head_ref}"])

    items: List[Dict[str, str]] = []
    for chunk in out.split("\x00"):
        chunk = chunk.strip("\n")
        if not chunk.strip():
            continue
        sha, _, message = chunk.partition("\n")
        items.append({"sha": sha.strip(), "message": message.strip("\n")})
    return items
