import os
import subprocess
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from branchflow.api.main import app
from branchflow.core.config import WorkflowConfig


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch):
    # Keep config and workspace resolution deterministic per test
    for key in list(os.environ):
        if key.startswith("BRANCHFLOW_"):
            monkeypatch.delenv(key, raising=False)
    ws = tmp_path / "workspace"
    ws.mkdir()
    monkeypatch.setenv("BRANCHFLOW_WORKSPACE", str(ws))
    return ws


@pytest.fixture()
def workspace(_isolated_env) -> Path:
    return _isolated_env


@pytest.fixture()
def config() -> WorkflowConfig:
    return WorkflowConfig()


@pytest.fixture()
def client():
    return TestClient(app)


def _git(repo: Path, *args: str) -> str:
    p = subprocess.run(["git", *args], cwd=str(repo), check=True, capture_output=True, text=True)
    return p.stdout.strip()


def _commit_file(repo: Path, name: str, content: str, message: str) -> str:
    (repo / name).write_text(content, encoding="utf-8")
    _git(repo, "add", name)
    _git(repo, "commit", "-q", "-m", message)
    return _git(repo, "rev-parse", "HEAD")


@pytest.fixture()
def tmp_repo(workspace: Path) -> Path:
    """
    A git repo under the workspace: one commit on `main`, `develop` checked out.
    """
    repo = workspace / "repo"
    repo.mkdir(parents=True, exist_ok=True)
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(repo, "config", "user.email", "dev@example.com")
    _git(repo, "config", "user.name", "Dev")
    _git(repo, "config", "commit.gpgsign", "false")
    _commit_file(repo, "README.md", "x", "chore: initial commit")
    _git(repo, "checkout", "-q", "-b", "develop")
    return repo


@pytest.fixture()
def git():
    return _git


@pytest.fixture()
def commit_file():
    return _commit_file
