from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from branchflow.core.errors import ConfigError

log = logging.getLogger("branchflow.config")

CONFIG_FILENAME = ".branchflow.yml"

DEFAULT_BRANCH_TYPES = ["feature", "fix", "hotfix", "refactor", "docs", "chore", "test", "release"]
DEFAULT_COMMIT_TYPES = ["feat", "fix", "docs", "style", "refactor", "perf", "test", "build", "ci", "chore", "revert"]

# env var -> config field
_ENV_OVERRIDES = {
    "BRANCHFLOW_MAIN_BRANCH": "main_branch",
    "BRANCHFLOW_DEVELOP_BRANCH": "develop_branch",
    "BRANCHFLOW_REMOTE": "remote",
    "BRANCHFLOW_BENCH_SITE": "bench_site",
    "BRANCHFLOW_BENCH_APP": "bench_app",
}


class WorkflowConfig(BaseModel):
    main_branch: str = "main"
    develop_branch: str = "develop"
    remote: str = "origin"
    protected_patterns: List[str] = Field(
        default_factory=lambda: ["main", "develop", "version-*", "version-*-hotfix"]
    )
    branch_types: List[str] = Field(default_factory=lambda: list(DEFAULT_BRANCH_TYPES))
    max_branch_length: int = Field(default=60, ge=10, le=255)

    commit_types: List[str] = Field(default_factory=lambda: list(DEFAULT_COMMIT_TYPES))
    max_header_length: int = Field(default=72, ge=20, le=200)
    max_body_line_length: int = Field(default=100, ge=20, le=500)
    require_scope: bool = False

    pr_required_sections: List[str] = Field(default_factory=lambda: ["Summary", "Testing"])
    require_linked_issue: bool = False

    bench_site: Optional[str] = None
    bench_app: Optional[str] = None

    @field_validator("main_branch", "develop_branch", "remote")
    @classmethod
    def _non_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("branch_types", "commit_types")
    @classmethod
    def _lower_unique(cls, v: List[str]) -> List[str]:
        out: List[str] = []
        for item in v:
            s = str(item).strip().lower()
            if s and s not in out:
                out.append(s)
        if not out:
            raise ValueError("must list at least one type")
        return out


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    # tolerate a top-level "branchflow:" section
    if isinstance(raw.get("branchflow"), dict):
        raw = raw["branchflow"]
    return raw


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for env_key, field_name in _ENV_OVERRIDES.items():
        val = (os.getenv(env_key) or "").strip()
        if val:
            out[field_name] = val
    return out


def load_config(repo_path: Optional[Path] = None, path: Optional[Path] = None) -> WorkflowConfig:
    """
    Resolution order (later wins):
      defaults -> YAML file -> BRANCHFLOW_* env overrides

    The YAML file is `path`, else $BRANCHFLOW_CONFIG, else
    <repo_path>/.branchflow.yml. A missing file is not an error.
    """
    if path is None:
        env_path = (os.getenv("BRANCHFLOW_CONFIG") or "").strip()
        if env_path:
            path = Path(env_path)
        elif repo_path is not None:
            path = Path(repo_path) / CONFIG_FILENAME

    data: Dict[str, Any] = {}
    if path is not None and path.exists():
        data = _read_yaml(path)
        log.debug("loaded workflow config from %s", path)

    data.update(_env_overrides())

    try:
        return WorkflowConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid workflow config: {e}") from e
