from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BranchType(str, Enum):
    FEATURE = "feature"
    FIX = "fix"
    HOTFIX = "hotfix"
    REFACTOR = "refactor"
    DOCS = "docs"
    CHORE = "chore"
    TEST = "test"
    RELEASE = "release"


@dataclass(frozen=True)
class BranchName:
    raw: str
    type: str
    slug: str
    issue: Optional[int] = None
    version: Optional[str] = None

    @property
    def is_release(self) -> bool:
        return self.type == BranchType.RELEASE.value
