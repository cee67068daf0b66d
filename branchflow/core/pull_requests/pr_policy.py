from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from branchflow.core.commits.commit_policy import validate_header
from branchflow.core.commits.parser import parse_commit_message
from branchflow.core.config import WorkflowConfig
from branchflow.core.errors import CommitMessageError
from branchflow.core.naming.branch_policy import (
    allowed_targets,
    check_branch_name,
    is_allowed_target,
    is_protected,
)
from branchflow.core.naming.models import BranchType
from branchflow.core.policy.models import PolicyResult, PolicyStatus, fail, warn


_ISSUE_REF_RE = re.compile(r"(?<![\w&])#(\d+)\b")
TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"


class PullRequest(BaseModel):
    title: str
    head: str
    base: str
    body: str = ""
    draft: bool = False


def _section_headings(body: str) -> List[str]:
    out: List[str] = []
    for line in (body or "").splitlines():
        m = re.match(r"^\s{0,3}#{2,6}\s+(.*?)\s*#*\s*$", line)
        if m:
            out.append(m.group(1).strip().lower())
    return out


def linked_issues(*texts: str) -> List[int]:
    seen: List[int] = []
    for t in texts:
        for m in _ISSUE_REF_RE.finditer(t or ""):
            n = int(m.group(1))
            if n not in seen:
                seen.append(n)
    return seen


def validate_pull_request(pr: PullRequest, config: WorkflowConfig) -> List[PolicyResult]:
    results: List[PolicyResult] = []

    head = (pr.head or "").strip()
    base = (pr.base or "").strip()

    parsed = None
    if is_protected(head, config):
        results.append(
            fail(
                "PR_HEAD_PROTECTED",
                f"Pull requests must come from a working branch, not '{head}'.",
                head=head,
            )
        )
    else:
        parsed, branch_results = check_branch_name(head, config)
        results.extend(branch_results)

    branch_type = parsed.type if parsed is not None else None

    try:
        title_msg = parse_commit_message(pr.title or "", cleanup=False)
    except CommitMessageError:
        results.append(fail("PR_TITLE_INVALID", "Pull request title is empty."))
    else:
        results.extend(validate_header(title_msg, config, code_prefix="PR_TITLE", branch_type=branch_type))

    if branch_type is not None and not is_allowed_target(branch_type, base, config):
        results.append(
            fail(
                "PR_BASE_INVALID",
                f"{branch_type} branches merge into {', '.join(sorted(allowed_targets(branch_type, config)))}, not '{base}'.",
                head=head,
                base=base,
            )
        )

    headings = _section_headings(pr.body)
    for section in config.pr_required_sections:
        if section.strip().lower() not in headings:
            status = PolicyStatus.WARN if pr.draft else PolicyStatus.FAIL
            results.append(
                PolicyResult(
                    status=status,
                    code="PR_SECTION_MISSING",
                    message=f"Pull request body is missing a '## {section}' section.",
                    details={"section": section},
                )
            )

    has_issue = bool(linked_issues(pr.title, pr.body)) or (parsed is not None and parsed.issue is not None)
    if not has_issue:
        if config.require_linked_issue:
            results.append(fail("PR_ISSUE_MISSING", "Link the issue this pull request resolves (e.g. 'Closes #123')."))
        elif branch_type in (BranchType.FIX.value, BranchType.HOTFIX.value):
            results.append(warn("PR_ISSUE_MISSING", "Bug fixes should link the issue they resolve."))

    return results


def _template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=()),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_pr_body(
    summary: str,
    testing: str,
    issues: Iterable[int] = (),
    extra_sections: Optional[Dict[str, str]] = None,
    config: Optional[WorkflowConfig] = None,
) -> str:
    """Body with Summary, Testing, every configured required section, then extras."""
    config = config or WorkflowConfig()
    provided: Dict[str, str] = {"summary": summary.strip(), "testing": testing.strip()}
    for k, v in (extra_sections or {}).items():
        provided[k.strip().lower()] = (v or "").strip()

    titles: List[str] = []
    for t in ["Summary", "Testing", *config.pr_required_sections, *(extra_sections or {})]:
        if t.strip().lower() not in [x.lower() for x in titles]:
            titles.append(t.strip())

    template = _template_env().get_template("pr_body.md.j2")
    rendered = template.render(
        sections=[{"title": t, "text": provided.get(t.lower(), "")} for t in titles],
        issues=[int(i) for i in issues],
    )
    return rendered.strip() + "\n"
