"""
modules/observability/logger.py
-------------------------------
Append-only JSONL event log, one file per trip session.

    events = StructuredLogger()
    events.log("trip_abc123", "ROUTE_OPTIMIZED", {"total_days": 3, "assigned": 12})
    events.events("trip_abc123", "ROUTE_OPTIMIZED")   # read back

Records land in <config.LOGS_DIR>/<session_id>.jsonl as
    {"timestamp", "session_id", "event_type", "payload"}
Non-JSON payload values (dates, enums) are written with str().
STRUCTURED_LOGGING=false turns the file output off; log() becomes a no-op.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Optional

from trip_optimizer import config


class StructuredLogger:
    """Thread-safe JSONL writer; file handles stay open per session until close()."""

    def __init__(
        self,
        logs_dir: Path | str | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.logs_dir = Path(logs_dir or config.LOGS_DIR)
        self.enabled = config.STRUCTURED_LOGGING if enabled is None else enabled
        self._lock = threading.Lock()
        self._handles: dict[str, IO[str]] = {}

    def __enter__(self) -> "StructuredLogger":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def path_for(self, session_id: str) -> Path:
        return self.logs_dir / f"{session_id}.jsonl"

    # ── Write side ────────────────────────────────────────────────────────────

    def log(self, session_id: str, event_type: str, payload: dict[str, Any]) -> None:
        if not self.enabled:
            return
        line = json.dumps(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "session_id": session_id,
                "event_type": event_type,
                "payload": payload,
            },
            default=str,
            ensure_ascii=False,
        )
        with self._lock:
            fh = self._handle_for(session_id)
            fh.write(line + "\n")
            fh.flush()

    def close(self, session_id: Optional[str] = None) -> None:
        """Close one session's file, or every open file when session_id is None."""
        with self._lock:
            ids = [session_id] if session_id else list(self._handles)
            for sid in ids:
                fh = self._handles.pop(sid, None)
                if fh is not None:
                    fh.close()

    def _handle_for(self, session_id: str) -> IO[str]:
        fh = self._handles.get(session_id)
        if fh is None:
            os.makedirs(self.logs_dir, exist_ok=True)
            fh = open(self.path_for(session_id), "a", encoding="utf-8")  # noqa: SIM115
            self._handles[session_id] = fh
        return fh

    # ── Read side ─────────────────────────────────────────────────────────────

    def events(self, session_id: str, event_type: Optional[str] = None) -> list[dict[str, Any]]:
        """Records of one session in write order, optionally of one event type."""
        path = self.path_for(session_id)
        if not path.exists():
            return []
        with self._lock, open(path, encoding="utf-8") as fh:
            records = [json.loads(line) for line in fh if line.strip()]
        if event_type is None:
            return records
        return [r for r in records if r["event_type"] == event_type]
