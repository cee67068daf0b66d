from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from branchflow.core.errors import CommitMessageError

from .models import CommitMessage


SCISSORS = "# ------------------------ >8 ------------------------"

HEADER_RE = re.compile(
    r"^(?P<type>[A-Za-z]+)"
    r"(?:\((?P<scope>[^()\s][^()]*)\))?"
    r"(?P<breaking>!)?"
    r":(?: (?P<subject>.*))?$"
)
FOOTER_RE = re.compile(
    r"^(?P<token>BREAKING CHANGE|BREAKING-CHANGE|[A-Za-z][A-Za-z0-9-]*)(?::[ ]|[ ]#)(?P<value>.*)$"
)

_FIXUP_PREFIXES = ("fixup! ", "squash! ", "amend! ")


def strip_comments(text: str) -> str:
    """Drop what git adds to the commit template: comment lines and the scissors section."""
    lines: List[str] = []
    for line in (text or "").splitlines():
        if line.rstrip() == SCISSORS:
            break
        if line.startswith("#"):
            continue
        lines.append(line.rstrip())
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)


def _paragraphs(lines: List[str]) -> List[Tuple[int, List[str]]]:
    """Split into (index of first line, lines) runs separated by blank lines."""
    out: List[Tuple[int, List[str]]] = []
    cur: List[str] = []
    start = 0
    for i, line in enumerate(lines):
        if line.strip():
            if not cur:
                start = i
            cur.append(line)
        elif cur:
            out.append((start, cur))
            cur = []
    if cur:
        out.append((start, cur))
    return out


def _parse_footers(paragraph: List[str]) -> Optional[List[Tuple[str, str]]]:
    # a line that is not a new token continues the previous footer's value
    footers: List[Tuple[str, str]] = []
    for line in paragraph:
        m = FOOTER_RE.match(line)
        if m:
            footers.append((m.group("token"), m.group("value").strip()))
        elif footers:
            token, value = footers[-1]
            footers[-1] = (token, f"{value}\n{line.strip()}")
        else:
            return None
    return footers


def parse_commit_message(text: str, *, cleanup: bool = True) -> CommitMessage:
    cleaned = strip_comments(text) if cleanup else (text or "").strip()
    if not cleaned.strip():
        raise CommitMessageError("Commit message is empty.")

    lines = cleaned.split("\n")
    header = lines[0].strip()
    rest = lines[1:]
    body_separated = not rest or not rest[0].strip()

    is_merge = header.startswith("Merge ")
    is_revert = header.startswith('Revert "')
    is_fixup = header.startswith(_FIXUP_PREFIXES)

    paragraphs = _paragraphs(rest)
    footers: List[Tuple[str, str]] = []
    if paragraphs:
        parsed = _parse_footers(paragraphs[-1][1])
        if parsed is not None:
            footers = parsed
            paragraphs = paragraphs[:-1]

    body = ""
    body_start = 0
    if paragraphs:
        first, (last, last_lines) = paragraphs[0][0], paragraphs[-1]
        body = "\n".join(rest[first : last + len(last_lines)])
        # line numbers are 1-based and the header is line 1
        body_start = first + 2

    m = HEADER_RE.match(header)
    breaking_footer = any(t in ("BREAKING CHANGE", "BREAKING-CHANGE") for t, _ in footers)
    if not m:
        return CommitMessage(
            raw=text,
            header=header,
            body=body,
            body_start=body_start,
            footers=footers,
            breaking=breaking_footer,
            header_valid=False,
            body_separated=body_separated,
            is_merge=is_merge,
            is_revert=is_revert,
            is_fixup=is_fixup,
        )

    return CommitMessage(
        raw=text,
        header=header,
        type=m.group("type"),
        scope=(m.group("scope") or "").strip() or None,
        breaking=bool(m.group("breaking")) or breaking_footer,
        subject=(m.group("subject") or "").strip(),
        body=body,
        body_start=body_start,
        footers=footers,
        header_valid=True,
        body_separated=body_separated,
        is_merge=is_merge,
        is_revert=is_revert,
        is_fixup=is_fixup,
    )


def format_header(type_: str, subject: str, scope: Optional[str] = None, breaking: bool = False) -> str:
    scope_part = f"({scope.strip()})" if scope and scope.strip() else ""
    bang = "!" if breaking else ""
    return f"{type_.strip().lower()}{scope_part}{bang}: {subject.strip()}"


def format_footers(issues: Iterable[int] = (), breaking_note: Optional[str] = None) -> List[str]:
    footers = [f"Closes #{int(i)}" for i in issues]
    if breaking_note:
        footers.append(f"BREAKING CHANGE: {breaking_note.strip()}")
    return footers


def format_commit_message(
    type_: str,
    subject: str,
    scope: Optional[str] = None,
    body: Optional[str] = None,
    breaking: bool = False,
    issues: Iterable[int] = (),
    breaking_note: Optional[str] = None,
) -> str:
    parts = [format_header(type_, subject, scope, breaking or bool(breaking_note))]
    if body and body.strip():
        parts.append(body.strip())
    footers = format_footers(issues, breaking_note)
    if footers:
        parts.append("\n".join(footers))
    return "\n\n".join(parts) + "\n"
