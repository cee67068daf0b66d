from .inspector import BranchReport, CommitReport, inspect_branch, resolve_base_ref
from .repo_manager import (
    branch_exists,
    commit_messages,
    current_branch,
    git_status,
    is_ancestor,
    is_git_repo,
    merge_base,
    ref_exists,
)

__all__ = [
    "BranchReport",
    "CommitReport",
    "branch_exists",
    "commit_messages",
    "current_branch",
    "git_status",
    "inspect_branch",
    "is_ancestor",
    "is_git_repo",
    "merge_base",
    "ref_exists",
    "resolve_base_ref",
]
