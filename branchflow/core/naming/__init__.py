from .branch_policy import (
    allowed_targets,
    base_branch_for,
    check_branch_name,
    expected_commit_types,
    is_allowed_target,
    is_protected,
    parse_branch_name,
    slugify,
    suggest_branch_name,
    validate_branch_name,
)
from .models import BranchName, BranchType

__all__ = [
    "BranchName",
    "BranchType",
    "allowed_targets",
    "base_branch_for",
    "check_branch_name",
    "expected_commit_types",
    "is_allowed_target",
    "is_protected",
    "parse_branch_name",
    "slugify",
    "suggest_branch_name",
    "validate_branch_name",
]
