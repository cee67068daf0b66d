from __future__ import annotations

import os
from pathlib import Path

from branchflow.core.config import WorkflowConfig, load_config


def workspace_root() -> Path:
    return Path((os.getenv("BRANCHFLOW_WORKSPACE") or "workspace").strip())


def get_config() -> WorkflowConfig:
    return load_config()


def resolve_repo(name: str) -> Path:
    """Map a repo name to a directory under the workspace root; reject traversal."""
    name = (name or "").strip()
    if not name:
        raise ValueError("repo is required")
    root = workspace_root().resolve()
    p = (root / name).resolve()
    if p != root and root not in p.parents:
        raise ValueError("repo must live under the workspace root")
    if not p.exists():
        raise FileNotFoundError(f"Workspace repo not found: {name}")
    return p
