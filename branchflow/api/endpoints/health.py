from __future__ import annotations

from fastapi import APIRouter
from starlette.responses import JSONResponse

from branchflow.api.settings import get_config, workspace_root
from branchflow.core.errors import ConfigError
from branchflow.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
async def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/api/v1/health/live")
def liveness():
    inc_named("health_live")
    return {"status": "alive"}


@router.get("/api/v1/health/ready")
def readiness():
    """
    Ready when the workflow config parses and the workspace root is writable.
    """
    inc_named("health_ready")
    problems: list[str] = []

    try:
        get_config()
    except ConfigError as e:
        problems.append(f"config_invalid:{e}")

    root = workspace_root()
    try:
        root.mkdir(parents=True, exist_ok=True)
        probe = root / ".branchflow_ready_check.tmp"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
    except OSError:
        problems.append("workspace_not_writable")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready"}
