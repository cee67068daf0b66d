from __future__ import annotations

import os

from fastapi import FastAPI

from branchflow import __version__
from branchflow.api.endpoints import audit, branches, health, metrics_export, plans, repo, validate
from branchflow.api.middleware.error_shaping import SafeErrorMiddleware
from branchflow.api.middleware.request_context import RequestContextMiddleware

from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(
    title="Branchflow API",
    version=__version__,
)

# ------------------------------------------------------------
# Middleware stack (ORDER MATTERS)
# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
# Runtime order (outermost -> innermost):
#   SafeErrorMiddleware -> CORSMiddleware -> RequestContext -> handler
# ------------------------------------------------------------

app.add_middleware(RequestContextMiddleware)

_cors_origins_raw = os.getenv("BRANCHFLOW_CORS_ORIGINS", "").strip()
_cors_origins = [o.strip() for o in _cors_origins_raw.split(",") if o.strip()] if _cors_origins_raw else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SafeErrorMiddleware)


app.include_router(health.router)
app.include_router(metrics_export.router)
app.include_router(validate.router)
app.include_router(plans.router)
app.include_router(branches.router)
app.include_router(repo.router)
app.include_router(audit.router)
