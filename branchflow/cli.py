from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from branchflow.core.commits.commit_policy import validate_commit_message
from branchflow.core.config import WorkflowConfig, load_config
from branchflow.core.errors import BranchflowError, PolicyViolationError
from branchflow.core.git_ops.inspector import inspect_branch
from branchflow.core.git_ops.repo_manager import current_branch, is_git_repo
from branchflow.core.naming.branch_policy import suggest_branch_name, validate_branch_name
from branchflow.core.observability.metrics import record_evaluation
from branchflow.core.policy.engine import PolicyEngine, summarize
from branchflow.core.policy.models import PolicyResult
from branchflow.core.pull_requests.pr_policy import PullRequest, validate_pull_request
from branchflow.core.sequencer import (
    ACTIONS,
    CommandPlan,
    PlanRunner,
    plan_commit,
    plan_deploy,
    plan_finish,
    plan_open_pr,
    plan_publish,
    plan_start,
    plan_sync,
    plan_verify,
)

log = logging.getLogger("branchflow.cli")

EXIT_OK = 0
EXIT_POLICY = 1
EXIT_USAGE = 2


def _setup_logging() -> None:
    level = (os.getenv("BRANCHFLOW_LOG_LEVEL") or "WARNING").strip().upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format="%(levelname)s %(name)s: %(message)s")


def _print_results(results: List[PolicyResult], as_json: bool, extra: Optional[dict] = None) -> int:
    if as_json:
        print(json.dumps(summarize(results, extra), indent=2))
    else:
        for r in results:
            print(f"{r.status.value} {r.code}: {r.message}")
        if not results:
            print("OK")
    return EXIT_POLICY if PolicyEngine.is_blocking(results) else EXIT_OK


def _repo(args) -> Path:
    return Path(args.repo).resolve()


def _config(args) -> WorkflowConfig:
    cfg_path = Path(args.config) if getattr(args, "config", None) else None
    return load_config(repo_path=_repo(args), path=cfg_path)


def cmd_check_branch(args) -> int:
    config = _config(args)
    name = args.name
    if not name:
        if not is_git_repo(_repo(args)):
            print("not a git repository; pass a branch name", file=sys.stderr)
            return EXIT_USAGE
        name = current_branch(_repo(args)) or ""
    results = validate_branch_name(name, config)
    record_evaluation("branch", results)
    return _print_results(results, args.json, {"branch": name})


def cmd_check_commit(args) -> int:
    config = _config(args)
    if args.file == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.file).read_text(encoding="utf-8")

    branch = args.branch
    if branch is None and is_git_repo(_repo(args)):
        branch = current_branch(_repo(args))
    results = validate_commit_message(text, config, branch=branch, allow_fixup=not args.no_fixup)
    record_evaluation("commit", results)
    return _print_results(results, args.json)


def cmd_check_pr(args) -> int:
    config = _config(args)
    body = Path(args.body_file).read_text(encoding="utf-8") if args.body_file else ""
    pr = PullRequest(title=args.title, head=args.head, base=args.base, body=body, draft=args.draft)
    results = validate_pull_request(pr, config)
    record_evaluation("pull_request", results)
    return _print_results(results, args.json)


def cmd_suggest(args) -> int:
    config = _config(args)
    print(suggest_branch_name(args.type, " ".join(args.description), issue=args.issue, config=config))
    return EXIT_OK


def _build_plan(args, config: WorkflowConfig) -> CommandPlan:
    a = args.action
    branch = args.branch
    if branch is None and a in ("commit", "sync", "publish", "finish", "open-pr") and is_git_repo(_repo(args)):
        branch = current_branch(_repo(args))

    if a == "start":
        if not args.name and not (args.type and args.description):
            raise ValueError("start needs --type and --description (or --name)")
        return plan_start(config, args.type or "", args.description or "", issue=args.issue, name=args.name)
    if a == "commit":
        if not args.type or not args.subject:
            raise ValueError("commit needs --type and --subject")
        return plan_commit(
            config,
            args.type,
            args.subject,
            scope=args.scope,
            body=args.body,
            breaking=args.breaking,
            issues=args.closes or [],
            branch=branch,
            breaking_note=args.breaking_note,
        )
    if a in ("sync", "publish", "finish") and not branch:
        raise ValueError(f"{a} needs --branch")
    if a == "sync":
        return plan_sync(config, branch)
    if a == "publish":
        return plan_publish(config, branch, force=args.force)
    if a == "finish":
        return plan_finish(config, branch)
    if a == "open-pr":
        if not args.title or not args.base or not branch:
            raise ValueError("open-pr needs --title, --base and --branch")
        body = Path(args.body_file).read_text(encoding="utf-8") if args.body_file else ""
        return plan_open_pr(config, PullRequest(title=args.title, head=branch, base=args.base, body=body, draft=args.draft))
    if a == "verify":
        return plan_verify(config, site=args.site, app=args.app)
    return plan_deploy(config, site=args.site, app=args.app)


def cmd_plan(args) -> int:
    config = _config(args)
    try:
        plan = _build_plan(args, config)
    except PolicyViolationError as e:
        print(f"refused: {e}", file=sys.stderr)
        _print_results(e.results, args.json)
        return EXIT_POLICY

    if args.json and not args.run:
        print(json.dumps(plan.to_dict(), indent=2))
        return EXIT_OK

    for w in plan.warnings:
        print(f"# WARN {w['code']}: {w['message']}")
    if not args.run:
        for line in plan.as_shell():
            print(line)
        return EXIT_OK

    result = PlanRunner(_repo(args), dry_run=False).run(plan, actor=os.getenv("USER"))
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        for s in result.steps:
            print(f"[{s.status}] {s.shell}")
            if s.status == "failed" and s.stderr:
                print(s.stderr, file=sys.stderr)
    return EXIT_OK if result.ok else EXIT_POLICY


def cmd_inspect(args) -> int:
    repo = _repo(args)
    if not is_git_repo(repo):
        print(f"not a git repository: {repo}", file=sys.stderr)
        return EXIT_USAGE
    report = inspect_branch(repo, _config(args), base=args.base, allow_fixup=not args.no_fixup)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(f"branch: {report.branch or '(detached)'}  base: {report.base_ref or '-'}  dirty: {report.dirty}")
        for r in report.branch_results:
            print(f"  {r.status.value} {r.code}: {r.message}")
        for c in report.commits:
            for r in c.results:
                print(f"  {c.sha[:10]} {r.status.value} {r.code}: {r.message}")
        print("BLOCKED" if report.blocking else "OK")
    return EXIT_POLICY if report.blocking else EXIT_OK


def cmd_serve(args) -> int:
    import uvicorn

    from branchflow.api.main import app

    uvicorn.run(app, host=args.host, port=args.port)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="branchflow", description="Branch, commit and PR workflow checks")
    ap.add_argument("--repo", default=".", help="Repository root (default: current directory)")
    ap.add_argument("--config", default=None, help="Path to a .branchflow.yml")
    ap.add_argument("--json", action="store_true", help="Machine-readable output")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("check-branch", help="Validate a branch name (default: current branch)")
    p.add_argument("name", nargs="?")
    p.set_defaults(func=cmd_check_branch)

    p = sub.add_parser("check-commit", help="Validate a commit message file ('-' for stdin)")
    p.add_argument("file")
    p.add_argument("--branch", default=None)
    p.add_argument("--no-fixup", action="store_true", help="Reject fixup!/squash! commits")
    p.set_defaults(func=cmd_check_commit)

    p = sub.add_parser("check-pr", help="Validate a pull request title, branches and body")
    p.add_argument("--title", required=True)
    p.add_argument("--head", required=True)
    p.add_argument("--base", required=True)
    p.add_argument("--body-file", default=None)
    p.add_argument("--draft", action="store_true")
    p.set_defaults(func=cmd_check_pr)

    p = sub.add_parser("suggest", help="Suggest a branch name")
    p.add_argument("type")
    p.add_argument("description", nargs="+")
    p.add_argument("--issue", type=int, default=None)
    p.set_defaults(func=cmd_suggest)

    p = sub.add_parser("plan", help="Print (or --run) the commands for a workflow step")
    p.add_argument("action", choices=ACTIONS)
    p.add_argument("--type", default=None)
    p.add_argument("--description", default=None)
    p.add_argument("--issue", type=int, default=None)
    p.add_argument("--name", default=None)
    p.add_argument("--branch", default=None)
    p.add_argument("--subject", default=None)
    p.add_argument("--scope", default=None)
    p.add_argument("--body", default=None)
    p.add_argument("--breaking", action="store_true")
    p.add_argument("--breaking-note", default=None)
    p.add_argument("--closes", type=int, action="append")
    p.add_argument("--force", action="store_true")
    p.add_argument("--title", default=None)
    p.add_argument("--base", default=None)
    p.add_argument("--body-file", default=None)
    p.add_argument("--draft", action="store_true")
    p.add_argument("--site", default=None)
    p.add_argument("--app", default=None)
    p.add_argument("--run", action="store_true", help="Execute the plan instead of printing it")
    p.set_defaults(func=cmd_plan)

    p = sub.add_parser("inspect", help="Validate the current branch and its commits")
    p.add_argument("--base", default=None)
    p.add_argument("--no-fixup", action="store_true")
    p.set_defaults(func=cmd_inspect)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default=os.getenv("BRANCHFLOW_HOST", "127.0.0.1"))
    p.add_argument("--port", type=int, default=int(os.getenv("BRANCHFLOW_PORT", "8001")))
    p.set_defaults(func=cmd_serve)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    _setup_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (BranchflowError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
