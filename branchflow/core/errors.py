from __future__ import annotations

from typing import Any, List, Optional


class BranchflowError(Exception):
    pass


class ConfigError(BranchflowError):
    pass


class BranchNameError(BranchflowError, ValueError):
    pass


class CommitMessageError(BranchflowError, ValueError):
    pass


class IllegalTransitionError(BranchflowError, ValueError):
    pass


class GitCommandError(BranchflowError, RuntimeError):
    def __init__(self, args: List[str], returncode: int, stderr: str = ""):
        self.git_args = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git {' '.join(args)} failed ({returncode}): {stderr}".rstrip(": "))


class PolicyViolationError(BranchflowError, ValueError):
    """Raised when an operation is refused because a policy check FAILed.

    ``results`` holds every PolicyResult produced by the check, not only the
    failing ones, so callers can report warnings alongside the failure.
    """

    def __init__(self, message: str, results: Optional[List[Any]] = None):
        super().__init__(message)
        self.results = list(results or [])
