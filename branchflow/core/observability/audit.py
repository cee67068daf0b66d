from __future__ import annotations

import json
import logging
import logging.handlers
import time
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

AUDIT_RELATIVE_PATH = Path(".branchflow") / "audit.log"

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5

# one rotating handler per audit file for the life of the process
_handlers: Dict[str, logging.handlers.RotatingFileHandler] = {}


class AuditLog:
    """
    Append-only JSON-lines log of workflow actions (branch registrations,
    lifecycle transitions, plan runs) under <workspace>/.branchflow/.
    """

    def __init__(self, workspace_dir: Path):
        self.path = Path(workspace_dir) / AUDIT_RELATIVE_PATH

    def _handler(self) -> logging.handlers.RotatingFileHandler:
        key = str(self.path.resolve())
        h = _handlers.get(key)
        if h is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            h = logging.handlers.RotatingFileHandler(
                str(self.path), maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
            )
            h.setFormatter(logging.Formatter("%(message)s"))
            _handlers[key] = h
        return h

    def append(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        actor: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "ts_ms": int(time.time() * 1000),
            "type": event_type,
            "actor": actor,
            "request_id": request_id,
        }
        if data:
            entry["data"] = data

        h = self._handler()
        h.emit(
            logging.LogRecord(
                name="branchflow.audit",
                level=logging.INFO,
                pathname=__file__,
                lineno=0,
                msg=json.dumps(entry, separators=(",", ":"), ensure_ascii=False, default=str),
                args=(),
                exc_info=None,
            )
        )
        h.flush()
        return entry

    def tail(self, limit: int = 100, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Last `limit` entries, oldest first; unreadable lines are skipped."""
        if not self.path.exists() or limit <= 0:
            return []
        out: Deque[Dict[str, Any]] = deque(maxlen=limit)
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    row = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(row, dict) and (event_type is None or row.get("type") == event_type):
                    out.append(row)
        return list(out)


def audit_event(
    workspace_dir: Path,
    event_type: str,
    payload: Optional[Dict[str, Any]] = None,
    actor: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    return AuditLog(workspace_dir).append(event_type, payload, actor=actor, request_id=request_id)


def read_audit(workspace_dir: Path, limit: int = 100, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
    return AuditLog(workspace_dir).tail(limit, event_type=event_type)
