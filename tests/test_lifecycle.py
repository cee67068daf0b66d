import json

import pytest

from branchflow.core.errors import IllegalTransitionError, PolicyViolationError
from branchflow.core.lifecycle import (
    BranchRegistry,
    BranchState,
    allowed_next,
    can_transition,
    ensure_transition,
    is_terminal,
)


def test_state_machine_happy_path():
    path = [
        BranchState.CREATED,
        BranchState.IN_PROGRESS,
        BranchState.PUBLISHED,
        BranchState.PR_OPEN,
        BranchState.CHANGES_REQUESTED,
        BranchState.PR_OPEN,
        BranchState.APPROVED,
        BranchState.MERGED,
    ]
    for src, dst in zip(path, path[1:]):
        ensure_transition(src, dst)


def test_state_machine_rejects_shortcuts():
    assert not can_transition(BranchState.CREATED, BranchState.MERGED)
    assert not can_transition(BranchState.PR_OPEN, BranchState.MERGED)
    with pytest.raises(IllegalTransitionError):
        ensure_transition(BranchState.IN_PROGRESS, BranchState.APPROVED)


def test_terminal_states_are_final():
    assert is_terminal(BranchState.MERGED)
    assert is_terminal(BranchState.CLOSED)
    assert not can_transition(BranchState.CLOSED, BranchState.IN_PROGRESS)
    assert allowed_next(BranchState.MERGED) == {}
    # a no-op is always fine
    assert can_transition(BranchState.MERGED, BranchState.MERGED)


def test_every_active_state_can_close():
    for state in BranchState:
        if not is_terminal(state):
            assert can_transition(state, BranchState.CLOSED)


def test_register_and_persist(workspace, config):
    reg = BranchRegistry(workspace_dir=workspace)
    rec = reg.register("feature/1234-batch-report", config, actor="dev")

    assert rec.state == BranchState.CREATED
    assert rec.branch_type == "feature"
    assert rec.base_branch == "develop"
    assert rec.target_branch == "develop"
    assert rec.issue == 1234

    p = workspace / ".branchflow" / "branches" / "feature__1234-batch-report.json"
    assert json.loads(p.read_text(encoding="utf-8"))["state"] == "CREATED"

    again = reg.register("feature/1234-batch-report", config)
    assert again.created_ts == rec.created_ts
    assert len(reg.list()) == 1


def test_register_hotfix_targets_main(workspace, config):
    rec = BranchRegistry(workspace_dir=workspace).register("hotfix/77-gl-rounding", config)
    assert rec.base_branch == "main"
    assert rec.target_branch == "main"


def test_register_keeps_warnings(workspace, config):
    rec = BranchRegistry(workspace_dir=workspace).register("fix/gl-rounding", config)
    assert rec.events[0].data["warnings"] == ["BRANCH_ISSUE_MISSING"]


def test_register_rejects_invalid(workspace, config):
    reg = BranchRegistry(workspace_dir=workspace)
    with pytest.raises(PolicyViolationError) as ei:
        reg.register("develop", config)
    assert ei.value.results[0].code == "BRANCH_PROTECTED"
    assert reg.list() == []


def test_transitions_record_events(workspace, config):
    reg = BranchRegistry(workspace_dir=workspace)
    reg.register("feature/batch-report", config)
    reg.transition(name="feature/batch-report", dst=BranchState.IN_PROGRESS)
    reg.transition(name="feature/batch-report", dst=BranchState.PUBLISHED, message="pushed")
    rec = reg.transition(name="feature/batch-report", dst=BranchState.PR_OPEN, data={"pr_number": 42})

    assert rec.pr_number == 42
    assert [e["state"] for e in reg.history("feature/batch-report")] == [
        "CREATED",
        "IN_PROGRESS",
        "PUBLISHED",
        "PR_OPEN",
    ]

    # repeating the current state adds nothing
    rec = reg.transition(name="feature/batch-report", dst=BranchState.PR_OPEN)
    assert len(rec.events) == 4


def test_illegal_transition_leaves_record_untouched(workspace, config):
    reg = BranchRegistry(workspace_dir=workspace)
    reg.register("feature/batch-report", config)
    with pytest.raises(IllegalTransitionError):
        reg.transition(name="feature/batch-report", dst=BranchState.MERGED)
    assert reg.get("feature/batch-report").state == BranchState.CREATED


def test_unknown_branch(workspace):
    reg = BranchRegistry(workspace_dir=workspace)
    with pytest.raises(FileNotFoundError):
        reg.transition(name="feature/nope", dst=BranchState.IN_PROGRESS)
    assert reg.get("feature/nope") is None
    assert reg.history("feature/nope") == []


def test_list_can_hide_finished_branches(workspace, config):
    reg = BranchRegistry(workspace_dir=workspace)
    reg.register("feature/a-thing", config)
    reg.register("chore/old-thing", config)
    reg.transition(name="chore/old-thing", dst=BranchState.CLOSED, message="abandoned")

    assert {r.name for r in reg.list()} == {"feature/a-thing", "chore/old-thing"}
    assert [r.name for r in reg.list(include_terminal=False)] == ["feature/a-thing"]
