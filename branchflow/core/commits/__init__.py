from .commit_policy import validate_commit_message, validate_header
from .models import CommitMessage
from .parser import format_commit_message, parse_commit_message, strip_comments

__all__ = [
    "CommitMessage",
    "format_commit_message",
    "parse_commit_message",
    "strip_comments",
    "validate_commit_message",
    "validate_header",
]
