from .models import BranchRecord, BranchState, LifecycleEvent
from .registry import BranchRegistry
from .state_machine import allowed_next, can_transition, ensure_transition, is_terminal

__all__ = [
    "BranchRecord",
    "BranchRegistry",
    "BranchState",
    "LifecycleEvent",
    "allowed_next",
    "can_transition",
    "ensure_transition",
    "is_terminal",
]
