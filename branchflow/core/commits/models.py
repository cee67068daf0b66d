from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class CommitMessage:
    raw: str
    header: str
    type: Optional[str] = None
    scope: Optional[str] = None
    breaking: bool = False
    subject: str = ""
    body: str = ""
    # line of the cleaned message the body starts on, 0 without a body
    body_start: int = 0
    footers: List[Tuple[str, str]] = field(default_factory=list)

    header_valid: bool = False
    body_separated: bool = True

    is_merge: bool = False
    is_revert: bool = False
    is_fixup: bool = False

    @property
    def issues(self) -> List[int]:
        out: List[int] = []
        for token, value in self.footers:
            if token.lower() in ("closes", "fixes", "resolves", "refs", "ref"):
                for part in value.replace(",", " ").split():
                    p = part.lstrip("#")
                    if p.isdigit() and int(p) not in out:
                        out.append(int(p))
        return out
