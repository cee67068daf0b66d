from branchflow.core.git_ops import inspect_branch
from branchflow.core.git_ops.repo_manager import (
    branch_exists,
    commit_messages,
    current_branch,
    git_status,
    is_git_repo,
)


def test_repo_basics(tmp_repo, workspace):
    assert is_git_repo(tmp_repo)
    assert not is_git_repo(workspace)
    assert current_branch(tmp_repo) == "develop"
    assert branch_exists(tmp_repo, "main")
    assert not branch_exists(tmp_repo, "main", remote="origin")

    (tmp_repo / "scratch.txt").write_text("x", encoding="utf-8")
    st = git_status(tmp_repo)
    assert st["dirty"]
    assert st["porcelain"] == ["?? scratch.txt"]


def test_commit_messages_keep_bodies(tmp_repo, git, commit_file):
    git(tmp_repo, "checkout", "-q", "-b", "feature/x-report")
    commit_file(tmp_repo, "a.txt", "a", "feat: add a\n\nline one\n\nline two")
    commit_file(tmp_repo, "b.txt", "b", "test: cover a")

    items = commit_messages(tmp_repo, "develop")
    assert [i["message"] for i in items] == ["feat: add a\n\nline one\n\nline two", "test: cover a"]
    assert all(len(i["sha"]) == 40 for i in items)


def test_inspect_branch_reports_bad_commits(tmp_repo, config, git, commit_file):
    git(tmp_repo, "checkout", "-q", "-b", "feature/x-report")
    commit_file(tmp_repo, "a.txt", "a", "feat(stock): add report")
    commit_file(tmp_repo, "b.txt", "b", "Added more stuff")

    report = inspect_branch(tmp_repo, config)
    assert report.branch == "feature/x-report"
    assert report.base_ref == "develop"
    assert report.branch_results == []
    assert [c.header for c in report.commits] == ["feat(stock): add report", "Added more stuff"]
    assert report.commits[0].results == []
    assert [r.code for r in report.commits[1].results] == ["COMMIT_HEADER_INVALID"]
    assert report.blocking
    assert report.to_dict()["status"] == "FAIL"


def test_inspect_clean_hotfix_uses_main(tmp_repo, config, git, commit_file):
    git(tmp_repo, "checkout", "-q", "main")
    git(tmp_repo, "checkout", "-q", "-b", "hotfix/12-gl-rounding")
    commit_file(tmp_repo, "gl.txt", "g", "fix(gl): round to precision")

    report = inspect_branch(tmp_repo, config)
    assert report.base_ref == "main"
    assert len(report.commits) == 1
    assert not report.blocking


def test_inspect_fixup_policy(tmp_repo, config, git, commit_file):
    git(tmp_repo, "checkout", "-q", "-b", "feature/x-report")
    commit_file(tmp_repo, "a.txt", "a", "fixup! feat: add report")
    assert not inspect_branch(tmp_repo, config).blocking
    assert inspect_branch(tmp_repo, config, allow_fixup=False).blocking


def test_inspect_detached_head(tmp_repo, config, git):
    git(tmp_repo, "checkout", "-q", "--detach")
    report = inspect_branch(tmp_repo, config)
    assert report.branch is None
    assert [r.code for r in report.branch_results] == ["BRANCH_DETACHED"]


def test_inspect_missing_base(tmp_repo, config, git):
    git(tmp_repo, "checkout", "-q", "-b", "feature/x-report")
    report = inspect_branch(tmp_repo, config, base="version-15-hotfix")
    assert [r.code for r in report.branch_results] == ["BASE_REF_MISSING"]
    assert report.commits == []


def test_inspect_warns_when_base_moved_on(tmp_repo, config, git, commit_file):
    git(tmp_repo, "checkout", "-q", "-b", "feature/x-report")
    commit_file(tmp_repo, "a.txt", "a", "feat: add report")
    git(tmp_repo, "checkout", "-q", "develop")
    commit_file(tmp_repo, "b.txt", "b", "chore: bump version")
    fork_point = git(tmp_repo, "rev-parse", "develop~1")
    git(tmp_repo, "checkout", "-q", "feature/x-report")

    report = inspect_branch(tmp_repo, config)
    assert [r.code for r in report.branch_results] == ["BRANCH_BEHIND_BASE"]
    assert report.merge_base == fork_point
    assert len(report.commits) == 1
    assert not report.blocking
