from branchflow.core.commits import validate_commit_message
from branchflow.core.config import WorkflowConfig
from branchflow.core.policy import PolicyEngine, PolicyStatus


def codes(results):
    return [r.code for r in results]


def test_good_message_has_no_results(config):
    assert validate_commit_message("fix(pos): keep cart on reload", config) == []


def test_header_invalid(config):
    results = validate_commit_message("Added a thing", config)
    assert codes(results) == ["COMMIT_HEADER_INVALID"]
    assert PolicyEngine.is_blocking(results)


def test_unknown_type(config):
    assert "COMMIT_TYPE_UNKNOWN" in codes(validate_commit_message("feature: add x", config))


def test_header_too_long(config):
    results = validate_commit_message("feat: " + "x" * 80, config)
    assert "COMMIT_HEADER_TOO_LONG" in codes(results)


def test_body_separator(config):
    results = validate_commit_message("fix: a thing\nno blank line", config)
    assert "COMMIT_BODY_SEPARATOR" in codes(results)


def test_style_warnings(config):
    results = validate_commit_message("fix: Fixed the rounding.", config)
    assert set(codes(results)) == {"COMMIT_SUBJECT_PERIOD", "COMMIT_SUBJECT_CASE", "COMMIT_SUBJECT_MOOD"}
    assert all(r.status == PolicyStatus.WARN for r in results)
    assert not PolicyEngine.is_blocking(results)


def test_mood_allowlist(config):
    assert validate_commit_message("feat: embed report in dashboard", config) == []


def test_body_line_length_ignores_urls(config):
    long_url = "https://github.com/frappe/erpnext/issues/" + "1" * 100
    text = f"fix: a\n\n{'y' * 120}\n{long_url}"
    results = validate_commit_message(text, config)
    assert codes(results) == ["COMMIT_BODY_LINE_TOO_LONG"]


def test_scope_required():
    cfg = WorkflowConfig(require_scope=True)
    assert codes(validate_commit_message("fix: a", cfg)) == ["COMMIT_SCOPE_REQUIRED"]
    assert validate_commit_message("fix(item): a", cfg) == []


def test_subject_empty(config):
    assert "COMMIT_SUBJECT_EMPTY" in codes(validate_commit_message("fix(item):", config))


def test_merge_and_revert_skip_checks(config):
    assert validate_commit_message("Merge pull request #1 from x/y", config) == []
    assert validate_commit_message('Revert "feat: x"', config) == []


def test_fixup_allowed_or_blocked(config):
    assert validate_commit_message("fixup! feat: x", config) == []
    results = validate_commit_message("squash! feat: x", config, allow_fixup=False)
    assert codes(results) == ["COMMIT_FIXUP"]


def test_empty(config):
    assert codes(validate_commit_message("", config)) == ["COMMIT_EMPTY"]


def test_type_branch_mismatch(config):
    results = validate_commit_message("feat: add x", config, branch="fix/12-broken-x")
    assert codes(results) == ["COMMIT_TYPE_BRANCH_MISMATCH"]
    assert validate_commit_message("test: cover x", config, branch="fix/12-broken-x") == []
    # unparseable branch names skip the check
    assert validate_commit_message("feat: add x", config, branch="main") == []


def test_body_line_numbers_follow_the_message(config):
    long_line = "y" * 120
    results = validate_commit_message(f"fix: a thing\nno blank line\n{long_line}", config)
    assert codes(results) == ["COMMIT_BODY_SEPARATOR", "COMMIT_BODY_LINE_TOO_LONG"]
    assert results[1].details["line"] == 3

    results = validate_commit_message(f"fix: a\n\nshort\n\n{long_line}\n\nCloses #7", config)
    assert results[0].details["line"] == 5
