from .pr_policy import PullRequest, linked_issues, render_pr_body, validate_pull_request

__all__ = ["PullRequest", "linked_issues", "render_pr_body", "validate_pull_request"]
