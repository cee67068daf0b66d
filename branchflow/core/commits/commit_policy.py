from __future__ import annotations

from typing import List, Optional

from branchflow.core.config import WorkflowConfig
from branchflow.core.errors import BranchNameError, CommitMessageError
from branchflow.core.naming.branch_policy import expected_commit_types, parse_branch_name
from branchflow.core.policy.models import PolicyResult, fail, warn

from .models import CommitMessage
from .parser import parse_commit_message


# Words ending in -ed / -ing that are already imperative.
_MOOD_ALLOWLIST = {
    "bleed", "breed", "embed", "exceed", "feed", "need", "proceed", "seed",
    "shed", "speed", "succeed", "bring", "ping", "ring", "sing", "string",
}


def _mood_suspicious(subject: str) -> bool:
    words = subject.split()
    if not words:
        return False
    first = words[0].lower().strip(",.:;")
    if first in _MOOD_ALLOWLIST:
        return False
    return len(first) > 4 and (first.endswith("ed") or first.endswith("ing"))


def validate_header(
    msg: CommitMessage,
    config: WorkflowConfig,
    *,
    code_prefix: str = "COMMIT",
    branch_type: Optional[str] = None,
) -> List[PolicyResult]:
    """Header checks shared by commit messages and pull request titles."""
    results: List[PolicyResult] = []
    p = code_prefix

    if len(msg.header) > config.max_header_length:
        results.append(
            fail(
                f"{p}_HEADER_TOO_LONG" if p == "COMMIT" else f"{p}_TOO_LONG",
                f"Header is {len(msg.header)} characters (max {config.max_header_length}).",
                length=len(msg.header),
                max_length=config.max_header_length,
            )
        )

    if not msg.header_valid:
        results.append(
            fail(
                f"{p}_HEADER_INVALID" if p == "COMMIT" else f"{p}_INVALID",
                "Expected '<type>(<scope>): <subject>', e.g. 'fix(sales invoice): round grand total'.",
                header=msg.header,
            )
        )
        return results

    if msg.type not in config.commit_types:
        results.append(
            fail(
                f"{p}_TYPE_UNKNOWN",
                f"Unknown type '{msg.type}'. Allowed: {', '.join(config.commit_types)}.",
                type=msg.type,
                allowed=list(config.commit_types),
            )
        )

    if config.require_scope and not msg.scope:
        results.append(fail(f"{p}_SCOPE_REQUIRED", "A scope is required, e.g. the DocType or module name."))

    subject = msg.subject
    if not subject:
        results.append(fail(f"{p}_SUBJECT_EMPTY", "Subject is empty."))
        return results

    if subject.endswith("."):
        results.append(warn(f"{p}_SUBJECT_PERIOD", "Subject should not end with a period."))
    if subject[0].isupper():
        results.append(warn(f"{p}_SUBJECT_CASE", "Subject should start with a lowercase letter."))
    if _mood_suspicious(subject):
        results.append(
            warn(
                f"{p}_SUBJECT_MOOD",
                "Use the imperative mood ('add', not 'added' or 'adding').",
                word=subject.split()[0],
            )
        )

    if branch_type and msg.type in config.commit_types:
        expected = expected_commit_types(branch_type)
        if expected is not None and msg.type not in expected:
            results.append(
                warn(
                    f"{p}_TYPE_BRANCH_MISMATCH",
                    f"'{msg.type}' is unusual on a {branch_type} branch (expected {', '.join(sorted(expected))}).",
                    type=msg.type,
                    branch_type=branch_type,
                )
            )
    return results


def _branch_type(branch: Optional[str], config: WorkflowConfig) -> Optional[str]:
    if not branch:
        return None
    try:
        return parse_branch_name(branch, config).type
    except BranchNameError:
        return None


def validate_commit_message(
    text: str,
    config: WorkflowConfig,
    branch: Optional[str] = None,
    allow_fixup: bool = True,
) -> List[PolicyResult]:
    try:
        msg = parse_commit_message(text)
    except CommitMessageError as e:
        return [fail("COMMIT_EMPTY", str(e))]

    if msg.is_merge or msg.is_revert:
        return []
    if msg.is_fixup:
        if allow_fixup:
            return []
        return [
            fail(
                "COMMIT_FIXUP",
                "fixup!/squash! commits must be squashed before merging (git rebase -i --autosquash).",
                header=msg.header,
            )
        ]

    results: List[PolicyResult] = []
    if not msg.body_separated:
        results.append(fail("COMMIT_BODY_SEPARATOR", "Leave a blank line between the header and the body."))

    results.extend(validate_header(msg, config, branch_type=_branch_type(branch, config)))

    for lineno, line in enumerate(msg.body.splitlines(), start=msg.body_start):
        if len(line) > config.max_body_line_length and "://" not in line:
            results.append(
                warn(
                    "COMMIT_BODY_LINE_TOO_LONG",
                    f"Body line {lineno} is {len(line)} characters (max {config.max_body_line_length}).",
                    line=lineno,
                    length=len(line),
                )
            )
    return results
