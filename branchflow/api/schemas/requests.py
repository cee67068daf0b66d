from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from branchflow.core.lifecycle.models import BranchState


class BranchCheckRequest(BaseModel):
    name: str


class CommitCheckRequest(BaseModel):
    message: str
    branch: Optional[str] = None
    allow_fixup: bool = True


class SuggestRequest(BaseModel):
    type: str
    description: str
    issue: Optional[int] = Field(default=None, ge=1)


class RegisterBranchRequest(BaseModel):
    name: str
    issue: Optional[int] = Field(default=None, ge=1)


class TransitionRequest(BaseModel):
    state: BranchState
    message: str = ""
    pr_number: Optional[int] = Field(default=None, ge=1)


class PlanRequest(BaseModel):
    # start
    type: Optional[str] = None
    description: str = ""
    issue: Optional[int] = Field(default=None, ge=1)
    name: Optional[str] = None

    # commit / sync / publish / finish
    branch: Optional[str] = None
    subject: Optional[str] = None
    scope: Optional[str] = None
    body: Optional[str] = None
    breaking: bool = False
    breaking_note: Optional[str] = None
    issues: List[int] = Field(default_factory=list)
    force: bool = False

    # open-pr
    title: Optional[str] = None
    head: Optional[str] = None
    base: Optional[str] = None
    pr_body: str = ""
    draft: bool = False

    # verify / deploy
    site: Optional[str] = None
    app: Optional[str] = None

    # execution (optional)
    repo: Optional[str] = None
    execute: bool = False
    dry_run: bool = True
