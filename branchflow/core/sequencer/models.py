from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CommandStep:
    tool: str
    args: List[str]
    description: str = ""
    mutating: bool = True

    @property
    def argv(self) -> List[str]:
        return [self.tool, *self.args]

    def as_shell(self) -> str:
        return shlex.join(self.argv)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool": self.tool,
            "args": list(self.args),
            "description": self.description,
            "mutating": self.mutating,
            "shell": self.as_shell(),
        }


@dataclass
class CommandPlan:
    action: str
    branch: Optional[str]
    steps: List[CommandStep] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    def add(self, tool: str, *args: str, description: str = "", mutating: bool = True) -> "CommandPlan":
        self.steps.append(CommandStep(tool=tool, args=list(args), description=description, mutating=mutating))
        return self

    def as_shell(self) -> List[str]:
        return [s.as_shell() for s in self.steps]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "branch": self.branch,
            "steps": [s.to_dict() for s in self.steps],
            "shell": self.as_shell(),
            "warnings": list(self.warnings),
            "meta": dict(self.meta),
        }


@dataclass
class StepResult:
    shell: str
    status: str  # ok | failed | skipped
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class PlanRunResult:
    action: str
    branch: Optional[str]
    dry_run: bool
    steps: List[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(s.status != "failed" for s in self.steps)

    @property
    def failed_step(self) -> Optional[StepResult]:
        for s in self.steps:
            if s.status == "failed":
                return s
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "branch": self.branch,
            "dry_run": self.dry_run,
            "ok": self.ok,
            "steps": [s.to_dict() for s in self.steps],
        }
