from __future__ import annotations

import fnmatch
import re
import unicodedata
from typing import FrozenSet, List, Optional, Set, Tuple

from branchflow.core.config import WorkflowConfig
from branchflow.core.errors import BranchNameError
from branchflow.core.policy.models import PolicyResult, PolicyStatus, fail, warn

from .models import BranchName, BranchType


_WORK_RE = re.compile(r"^(?:(?P<issue>\d+)-)?(?P<slug>[a-z0-9]+(?:-[a-z0-9]+)*)$")
_RELEASE_RE = re.compile(r"^v?(?P<version>\d+\.\d+(?:\.\d+)?)$")
_VERSION_HOTFIX_PATTERN = "version-*-hotfix"

_ISSUE_EXPECTED = {BranchType.FIX.value, BranchType.HOTFIX.value}

_COMMIT_TYPES_BY_BRANCH = {
    BranchType.FEATURE.value: frozenset({"feat"}),
    BranchType.FIX.value: frozenset({"fix"}),
    BranchType.HOTFIX.value: frozenset({"fix"}),
    BranchType.REFACTOR.value: frozenset({"refactor"}),
    BranchType.DOCS.value: frozenset({"docs"}),
    BranchType.CHORE.value: frozenset({"chore", "build", "ci"}),
    BranchType.TEST.value: frozenset({"test"}),
    BranchType.RELEASE.value: frozenset({"chore"}),
}

# Types every branch may carry alongside its main one.
_ALWAYS_OK_COMMIT_TYPES = frozenset({"test", "docs", "style", "revert"})


def is_protected(name: str, config: WorkflowConfig) -> bool:
    n = (name or "").strip()
    if n in (config.main_branch, config.develop_branch):
        return True
    return any(fnmatch.fnmatchcase(n, pat) for pat in config.protected_patterns)


def check_branch_name(name: str, config: WorkflowConfig) -> Tuple[Optional[BranchName], List[PolicyResult]]:
    results: List[PolicyResult] = []
    n = (name or "").strip()

    if not n:
        return None, [fail("BRANCH_EMPTY", "Branch name is empty.")]

    if is_protected(n, config):
        return None, [
            fail(
                "BRANCH_PROTECTED",
                f"'{n}' is a protected branch. Create a working branch instead.",
                branch=n,
            )
        ]

    if len(n) > config.max_branch_length:
        results.append(
            fail(
                "BRANCH_TOO_LONG",
                f"Branch name is {len(n)} characters (max {config.max_branch_length}).",
                length=len(n),
                max_length=config.max_branch_length,
            )
        )

    if "/" not in n:
        results.append(
            fail(
                "BRANCH_FORMAT_INVALID",
                "Expected <type>/<slug> or <type>/<issue>-<slug>.",
                branch=n,
            )
        )
        return None, results

    btype, rest = n.split("/", 1)
    if btype not in config.branch_types:
        results.append(
            fail(
                "BRANCH_TYPE_UNKNOWN",
                f"Unknown branch type '{btype}'. Allowed: {', '.join(config.branch_types)}.",
                type=btype,
                allowed=list(config.branch_types),
            )
        )
        return None, results

    if btype == BranchType.RELEASE.value:
        m = _RELEASE_RE.match(rest)
        if not m:
            results.append(
                fail(
                    "RELEASE_VERSION_INVALID",
                    "Release branches are named release/v<major>.<minor>[.<patch>].",
                    branch=n,
                )
            )
            return None, results
        return BranchName(raw=n, type=btype, slug=rest, version=m.group("version")), results

    m = _WORK_RE.match(rest)
    if not m:
        results.append(
            fail(
                "BRANCH_FORMAT_INVALID",
                "Slug must be lowercase kebab-case (a-z, 0-9, single dashes).",
                branch=n,
                slug=rest,
            )
        )
        return None, results

    issue = int(m.group("issue")) if m.group("issue") else None
    slug = m.group("slug")
    if issue is None and slug.isdigit():
        # fix/1234 names the issue only
        issue, slug = int(slug), ""

    parsed = BranchName(raw=n, type=btype, slug=slug, issue=issue)
    if btype in _ISSUE_EXPECTED and issue is None:
        results.append(
            warn(
                "BRANCH_ISSUE_MISSING",
                f"{btype} branches should reference an issue: {btype}/<issue>-<slug>.",
                branch=n,
            )
        )
    return parsed, results


def validate_branch_name(name: str, config: WorkflowConfig) -> List[PolicyResult]:
    _, results = check_branch_name(name, config)
    return results


def parse_branch_name(name: str, config: WorkflowConfig) -> BranchName:
    parsed, results = check_branch_name(name, config)
    failures = [r for r in results if r.status == PolicyStatus.FAIL]
    if parsed is None or failures:
        msg = failures[0].message if failures else f"Invalid branch name: {name!r}"
        raise BranchNameError(msg)
    return parsed


def slugify(text: str) -> str:
    folded = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    folded = folded.lower()
    return re.sub(r"[^a-z0-9]+", "-", folded).strip("-")


def _fit_slug(slug: str, budget: int) -> str:
    if len(slug) <= budget:
        return slug
    out = ""
    for word in slug.split("-"):
        candidate = f"{out}-{word}" if out else word
        if len(candidate) > budget:
            break
        out = candidate
    return out or slug[:budget].rstrip("-")


def suggest_branch_name(
    branch_type: str,
    description: str,
    issue: Optional[int] = None,
    config: Optional[WorkflowConfig] = None,
) -> str:
    config = config or WorkflowConfig()
    btype = (branch_type or "").strip().lower()
    if btype not in config.branch_types:
        raise BranchNameError(f"Unknown branch type '{branch_type}'.")

    if btype == BranchType.RELEASE.value:
        m = _RELEASE_RE.match((description or "").strip())
        if not m:
            raise BranchNameError("Release branches need a version like 15.2 or v15.2.1.")
        return f"release/v{m.group('version')}"

    prefix = f"{btype}/" + (f"{int(issue)}-" if issue is not None else "")
    slug = _fit_slug(slugify(description), config.max_branch_length - len(prefix))
    if not slug:
        raise BranchNameError("Description does not contain any usable characters.")
    return prefix + slug


def base_branch_for(branch_type: str, config: WorkflowConfig) -> str:
    if branch_type == BranchType.HOTFIX.value:
        return config.main_branch
    return config.develop_branch


def allowed_targets(branch_type: str, config: WorkflowConfig) -> Set[str]:
    if branch_type in (BranchType.HOTFIX.value, BranchType.RELEASE.value):
        return {config.main_branch}
    return {config.develop_branch}


def is_allowed_target(branch_type: str, base: str, config: WorkflowConfig) -> bool:
    if base in allowed_targets(branch_type, config):
        return True
    # backports land on version-N-hotfix
    if branch_type in (BranchType.FIX.value, BranchType.HOTFIX.value):
        return fnmatch.fnmatchcase(base, _VERSION_HOTFIX_PATTERN)
    return False


def expected_commit_types(branch_type: str) -> Optional[FrozenSet[str]]:
    """Commit types that fit a branch type; None when the type has no mapping."""
    main = _COMMIT_TYPES_BY_BRANCH.get(branch_type)
    if main is None:
        return None
    return main | _ALWAYS_OK_COMMIT_TYPES
