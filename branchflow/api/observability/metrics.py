from __future__ import annotations

import re
from prometheus_client import Counter, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"

    # branch names are free-form
    if p.startswith("/api/v1/branches/") and p != "/api/v1/branches/suggest":
        suffix = "/transition" if p.endswith("/transition") else ""
        return "/api/v1/branches/:name" + suffix
    # ints
    p = re.sub(r"/\d+", "/:id", p)

    return p


HTTP_REQUESTS_TOTAL = Counter(
    "branchflow_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "branchflow_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
