from .engine import PolicyEngine, PolicyFn, summarize, worst_status
from .models import PolicyResult, PolicyStatus, fail, warn

__all__ = [
    "PolicyEngine",
    "PolicyFn",
    "PolicyResult",
    "PolicyStatus",
    "fail",
    "summarize",
    "warn",
    "worst_status",
]
