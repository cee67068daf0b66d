#!/usr/bin/env python3
"""
git commit-msg hook: reject commit messages that break the commit convention.

Install:
    ln -s ../../tools/commit_msg_hook.py .git/hooks/commit-msg
"""

from __future__ import annotations

from pathlib import Path
import sys

# ---- sys.path bootstrap (run from a checkout without installing) ----
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
# ----------------------------------------------------------------------

from branchflow.cli import main as cli_main  # noqa: E402


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print("usage: commit_msg_hook.py <commit-msg-file>", file=sys.stderr)
        return 2
    rc = cli_main(["check-commit", argv[1]])
    if rc == 1:
        print("\nCommit rejected. Expected '<type>(<scope>): <subject>', e.g. 'fix(sales invoice): round grand total'.")
    return rc


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
