from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from branchflow.core.errors import GitCommandError
from branchflow.core.observability.metrics import inc_named

log = logging.getLogger("branchflow.errors")


def _error_body(request: Request, detail: str) -> Dict[str, Any]:
    body: Dict[str, Any] = {"detail": detail}
    rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    if rid:
        body["request_id"] = rid
    return body


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for exceptions the endpoints did not map.

    A failing git invocation becomes 502 with git's exit code (stderr stays in
    the server log, it can contain local paths). Anything else becomes a bare
    500. Tracebacks never reach the client.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except GitCommandError as e:
            inc_named("errors_git")
            log.warning("git failed path=%s args=%s rc=%s: %s", request.url.path, e.git_args, e.returncode, e.stderr)
            body = _error_body(request, "git command failed")
            body["returncode"] = e.returncode
            return JSONResponse(status_code=502, content=body)
        except Exception:
            inc_named("errors_unhandled")
            log.exception("unhandled error path=%s", request.url.path)
            return JSONResponse(status_code=500, content=_error_body(request, "Internal Server Error"))
