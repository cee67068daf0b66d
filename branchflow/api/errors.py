from __future__ import annotations

from fastapi import HTTPException

from branchflow.core.errors import ConfigError, PolicyViolationError


def to_http(e: Exception) -> HTTPException:
    if isinstance(e, PolicyViolationError):
        return HTTPException(
            status_code=422,
            detail={"message": str(e), "results": [r.to_dict() for r in e.results]},
        )
    if isinstance(e, (FileNotFoundError, KeyError)):
        return HTTPException(status_code=404, detail=str(e).strip("'\""))
    if isinstance(e, (ValueError, ConfigError)):
        return HTTPException(status_code=400, detail=str(e))
    raise e
