from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from branchflow.api.settings import workspace_root
from branchflow.core.observability.audit import read_audit

router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


@router.get("")
def audit_log(
    limit: int = Query(100, ge=1, le=1000),
    type: Optional[str] = Query(None, description="Only entries of this event type, e.g. plan_run"),
) -> Dict[str, Any]:
    return {"entries": read_audit(workspace_root(), limit=limit, event_type=type)}
