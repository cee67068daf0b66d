from __future__ import annotations

from typing import Dict, Set, Tuple

from branchflow.core.errors import IllegalTransitionError

from .models import BranchState


_ALLOWED: Set[Tuple[BranchState, BranchState]] = {
    (BranchState.CREATED, BranchState.IN_PROGRESS),
    (BranchState.IN_PROGRESS, BranchState.PUBLISHED),
    (BranchState.PUBLISHED, BranchState.IN_PROGRESS),
    (BranchState.PUBLISHED, BranchState.PR_OPEN),

    # review loop
    (BranchState.PR_OPEN, BranchState.CHANGES_REQUESTED),
    (BranchState.CHANGES_REQUESTED, BranchState.PR_OPEN),
    (BranchState.PR_OPEN, BranchState.APPROVED),
    (BranchState.APPROVED, BranchState.CHANGES_REQUESTED),

    (BranchState.APPROVED, BranchState.MERGED),

    # abandon from any active state
    (BranchState.CREATED, BranchState.CLOSED),
    (BranchState.IN_PROGRESS, BranchState.CLOSED),
    (BranchState.PUBLISHED, BranchState.CLOSED),
    (BranchState.PR_OPEN, BranchState.CLOSED),
    (BranchState.CHANGES_REQUESTED, BranchState.CLOSED),
    (BranchState.APPROVED, BranchState.CLOSED),
}

_TERMINAL: Set[BranchState] = {
    BranchState.MERGED,
    BranchState.CLOSED,
}


def is_terminal(state: BranchState) -> bool:
    return state in _TERMINAL


def can_transition(src: BranchState, dst: BranchState) -> bool:
    if src == dst:
        return True
    if src in _TERMINAL:
        return False
    return (src, dst) in _ALLOWED


def ensure_transition(src: BranchState, dst: BranchState) -> None:
    if not can_transition(src, dst):
        raise IllegalTransitionError(f"Illegal transition: {src.value} -> {dst.value}")


def allowed_next(src: BranchState) -> Dict[str, bool]:
    out: Dict[str, bool] = {}
    for a, b in _ALLOWED:
        if a == src:
            out[b.value] = True
    return out
