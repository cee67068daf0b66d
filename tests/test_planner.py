import pytest

from branchflow.core.config import WorkflowConfig
from branchflow.core.errors import ConfigError, PolicyViolationError
from branchflow.core.pull_requests import PullRequest, render_pr_body
from branchflow.core.sequencer import (
    plan_commit,
    plan_deploy,
    plan_finish,
    plan_open_pr,
    plan_publish,
    plan_start,
    plan_sync,
    plan_verify,
)
from branchflow.core.sequencer import planner


def test_start_feature_from_develop(config):
    plan = plan_start(config, "feature", "Batch-wise balance report", issue=88)
    assert plan.branch == "feature/88-batch-wise-balance-report"
    assert plan.meta["base"] == "develop"
    assert plan.as_shell() == [
        "git fetch origin",
        "git checkout develop",
        "git pull --ff-only origin develop",
        "git checkout -b feature/88-batch-wise-balance-report",
    ]
    assert plan.steps[0].mutating is False


def test_start_hotfix_from_main(config):
    plan = plan_start(config, "hotfix", name="hotfix/12-gl-rounding")
    assert plan.as_shell()[1] == "git checkout main"


def test_start_carries_warnings(config):
    plan = plan_start(config, "fix", "gl rounding")
    assert [w["code"] for w in plan.warnings] == ["BRANCH_ISSUE_MISSING"]


def test_start_refuses_protected_and_invalid(config):
    with pytest.raises(PolicyViolationError) as ei:
        plan_start(config, "feature", name="develop")
    assert ei.value.results[0].code == "BRANCH_PROTECTED"
    with pytest.raises(PolicyViolationError):
        plan_start(config, "feature", name="feature/Not_Valid")


def test_commit_plan(config):
    plan = plan_commit(
        config,
        "fix",
        "round grand total",
        scope="sales invoice",
        body="Use the currency precision.",
        issues=[1234],
        branch="fix/1234-sales-invoice-rounding",
    )
    assert plan.meta["message"] == (
        "fix(sales invoice): round grand total\n\nUse the currency precision.\n\nCloses #1234\n"
    )
    assert plan.steps[1].argv == [
        "git",
        "commit",
        "-m",
        "fix(sales invoice): round grand total",
        "-m",
        "Use the currency precision.",
        "-m",
        "Closes #1234",
    ]
    assert plan.warnings == []


def test_commit_plan_refuses_bad_message_and_protected_branch(config):
    with pytest.raises(PolicyViolationError):
        plan_commit(config, "feature", "add thing")
    with pytest.raises(PolicyViolationError):
        plan_commit(config, "fix", "a thing", branch="main")


def test_commit_plan_warns_on_mismatch(config):
    plan = plan_commit(config, "feat", "add thing", branch="fix/12-thing")
    assert [w["code"] for w in plan.warnings] == ["COMMIT_TYPE_BRANCH_MISMATCH"]


def test_sync_rebases_on_remote_base(config):
    assert plan_sync(config, "hotfix/12-gl-rounding").as_shell() == [
        "git fetch origin",
        "git checkout hotfix/12-gl-rounding",
        "git rebase origin/main",
    ]


def test_publish(config):
    assert plan_publish(config, "feature/x-report").as_shell() == ["git push -u origin feature/x-report"]
    assert plan_publish(config, "feature/x-report", force=True).as_shell() == [
        "git push --force-with-lease -u origin feature/x-report"
    ]
    with pytest.raises(PolicyViolationError):
        plan_publish(config, "version-15-hotfix")


def test_open_pr(config):
    body = render_pr_body("Report.", "Unit tests.")
    pr = PullRequest(title="feat(stock): add report", head="feature/x-report", base="develop", body=body, draft=True)
    plan = plan_open_pr(config, pr)
    assert plan.steps[0].argv == [
        "gh", "pr", "create",
        "--base", "develop",
        "--head", "feature/x-report",
        "--title", "feat(stock): add report",
        "--body", body,
        "--draft",
    ]


def test_open_pr_refuses_wrong_base(config):
    pr = PullRequest(
        title="feat: add report", head="feature/x-report", base="main", body=render_pr_body("a", "b")
    )
    with pytest.raises(PolicyViolationError) as ei:
        plan_open_pr(config, pr)
    assert "PR_BASE_INVALID" in [r.code for r in ei.value.results]


def test_finish_feature(config):
    plan = plan_finish(config, "feature/x-report")
    assert plan.meta["target"] == "develop"
    assert plan.as_shell() == [
        "gh pr merge feature/x-report --squash --delete-branch",
        "git checkout develop",
        "git pull --ff-only origin develop",
    ]


def test_finish_hotfix_back_merges_into_develop(config):
    plan = plan_finish(config, "hotfix/12-gl-rounding")
    assert plan.meta["target"] == "main"
    assert plan.as_shell()[3:] == [
        "git checkout develop",
        "git pull --ff-only origin develop",
        "git merge --no-ff main -m 'chore: merge main into develop after hotfix/12-gl-rounding'",
        "git push origin develop",
    ]


def test_finish_release_back_merges_main_into_develop(config):
    plan = plan_finish(config, "release/v15.2")
    assert plan.meta["target"] == "main"
    assert plan.as_shell() == [
        "gh pr merge release/v15.2 --squash --delete-branch",
        "git checkout main",
        "git pull --ff-only origin main",
        "git checkout develop",
        "git pull --ff-only origin develop",
        "git merge --no-ff main -m 'chore: merge main into develop after release/v15.2'",
        "git push origin develop",
    ]


def test_unparsable_branch_is_a_policy_violation(config, monkeypatch):
    monkeypatch.setattr(planner, "check_branch_name", lambda name, cfg: (None, []))
    with pytest.raises(PolicyViolationError) as ei:
        plan_sync(config, "feature/x-report")
    assert ei.value.results[0].code == "BRANCH_FORMAT_INVALID"


def test_bench_plans():
    cfg = WorkflowConfig(bench_site="erp.localhost", bench_app="custom_app")
    assert plan_verify(cfg).as_shell() == ["bench --site erp.localhost run-tests --app custom_app"]
    assert plan_deploy(cfg, app="other_app").as_shell() == [
        "bench --site erp.localhost migrate",
        "bench build --app other_app",
        "bench --site erp.localhost clear-cache",
        "bench restart",
    ]


def test_bench_plans_need_site_and_app(config):
    with pytest.raises(ConfigError):
        plan_verify(config)
    with pytest.raises(ConfigError):
        plan_deploy(config, site="erp.localhost")
