import pytest

from branchflow.core.config import WorkflowConfig
from branchflow.core.policy import PolicyEngine, PolicyStatus
from branchflow.core.pull_requests import PullRequest, linked_issues, render_pr_body, validate_pull_request

BODY = "## Summary\n\nKeep the cart.\n\n## Testing\n\nManual POS run.\n\nCloses #1234\n"


def codes(results):
    return [r.code for r in results]


def make_pr(**kw):
    data = {"title": "fix(pos): keep cart on reload", "head": "fix/1234-pos-cart", "base": "develop", "body": BODY}
    data.update(kw)
    return PullRequest(**data)


def test_clean_pull_request(config):
    assert validate_pull_request(make_pr(), config) == []


def test_head_protected(config):
    results = validate_pull_request(make_pr(head="develop", base="main"), config)
    assert codes(results)[0] == "PR_HEAD_PROTECTED"
    assert PolicyEngine.is_blocking(results)


def test_bad_head_name_reports_branch_codes(config):
    results = validate_pull_request(make_pr(head="Fix_Cart"), config)
    assert "BRANCH_FORMAT_INVALID" in codes(results)


def test_title_checks(config):
    assert "PR_TITLE_INVALID" in codes(validate_pull_request(make_pr(title="Fix the cart"), config))
    assert "PR_TITLE_TOO_LONG" in codes(validate_pull_request(make_pr(title="fix: " + "y" * 90), config))
    results = validate_pull_request(make_pr(title="feat(pos): keep cart"), config)
    assert codes(results) == ["PR_TITLE_TYPE_BRANCH_MISMATCH"]
    assert results[0].status == PolicyStatus.WARN


def test_title_starting_with_hash_is_not_dropped(config):
    assert "PR_TITLE_INVALID" in codes(validate_pull_request(make_pr(title="#1234 cart"), config))


@pytest.mark.parametrize(
    "head,base,ok",
    [
        ("fix/1234-pos-cart", "develop", True),
        ("fix/1234-pos-cart", "version-15-hotfix", True),
        ("fix/1234-pos-cart", "main", False),
        ("hotfix/1234-pos-cart", "main", True),
        ("feature/1234-pos-cart", "main", False),
        ("release/v15.2", "main", True),
    ],
)
def test_base_rules(config, head, base, ok):
    results = validate_pull_request(make_pr(head=head, base=base, title="chore: prepare"), config)
    assert ("PR_BASE_INVALID" not in codes(results)) is ok


def test_missing_sections_fail_unless_draft(config):
    body = "## Summary\n\nthing\n\nCloses #1234"
    results = validate_pull_request(make_pr(body=body), config)
    missing = [r for r in results if r.code == "PR_SECTION_MISSING"]
    assert [r.details["section"] for r in missing] == ["Testing"]
    assert missing[0].status == PolicyStatus.FAIL

    draft = validate_pull_request(make_pr(body=body, draft=True), config)
    assert [r.status for r in draft if r.code == "PR_SECTION_MISSING"] == [PolicyStatus.WARN]


def test_issue_link_rules(config):
    body = "## Summary\n\nx\n\n## Testing\n\ny\n"
    results = validate_pull_request(make_pr(head="fix/pos-cart", body=body), config)
    assert "PR_ISSUE_MISSING" in codes(results)
    assert all(r.status == PolicyStatus.WARN for r in results)

    feature = validate_pull_request(
        make_pr(head="feature/pos-cart", title="feat(pos): keep cart", body=body), config
    )
    assert feature == []

    strict = WorkflowConfig(require_linked_issue=True)
    results = validate_pull_request(make_pr(head="feature/pos-cart", title="feat(pos): keep cart", body=body), strict)
    assert [(r.code, r.status) for r in results] == [("PR_ISSUE_MISSING", PolicyStatus.FAIL)]


def test_issue_number_in_branch_counts_as_link(config):
    body = "## Summary\n\nx\n\n## Testing\n\ny\n"
    assert validate_pull_request(make_pr(body=body), config) == []


def test_linked_issues():
    assert linked_issues("Closes #12", "refs #12 and #7, not &#39;") == [12, 7]


def test_render_pr_body(config):
    body = render_pr_body("Keep the cart.", "Manual POS run.", issues=[1234])
    assert body == BODY
    assert validate_pull_request(make_pr(body=body), config) == []


def test_render_pr_body_fills_required_sections():
    cfg = WorkflowConfig(pr_required_sections=["Summary", "Testing", "Screenshots"])
    body = render_pr_body("s", "", extra_sections={"Notes": "n"}, config=cfg)
    assert body == "## Summary\n\ns\n\n## Testing\n\n_n/a_\n\n## Screenshots\n\n_n/a_\n\n## Notes\n\nn\n"
