from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from branchflow.api.observability.metrics import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION_SECONDS,
    normalize_path,
)

log = logging.getLogger("branchflow.request")

REQUEST_ID_HEADER = "X-Request-Id"
ACTOR_HEADER = "X-Actor"


def _actor(request: Request) -> Optional[str]:
    # free text, recorded in the audit log only
    return (request.headers.get(ACTOR_HEADER) or "").strip()[:128] or None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Sets request.state.request_id and request.state.actor, echoes the request
    id back, and records one metrics sample and one log line per API call.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = rid
        request.state.actor = _actor(request)

        started = time.perf_counter()
        resp = await call_next(request)
        elapsed = time.perf_counter() - started
        resp.headers[REQUEST_ID_HEADER] = rid

        path = normalize_path(request.url.path)
        method = request.method.upper()
        HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status=str(resp.status_code)).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path=path).observe(elapsed)

        if request.url.path.startswith("/api/"):
            log.info(
                "%s",
                {
                    "event": "request",
                    "request_id": rid,
                    "method": method,
                    "path": request.url.path,
                    "status_code": resp.status_code,
                    "duration_ms": int(elapsed * 1000),
                    "actor": request.state.actor,
                },
            )
        return resp
