"""AuditLogger — JSONL record of guard findings.

One logger per session. Writes one JSONL line per finding plus a session
summary as the final line. All entries include schema version and session ID.
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path

import toolguard

logger = logging.getLogger(__name__)

_SCHEMA_VERSION = "1.0.0"


@dataclass
class AuditEntry:
    """One guarded piece of text."""

    source: str  # e.g. "tool_response:<id>" or a file path
    action: str  # "sanitized", "truncated", "flagged"
    codepoints_removed: int
    hidden_payload: str
    original_chars: int
    result_chars: int
    message_id: str | None = None


class AuditLogger:
    """Writes JSONL audit records for a single session."""

    def __init__(self, output_dir: Path, session_id: str):
        self._output_dir = Path(output_dir)
        self._session_id = session_id
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._output_dir / f"{session_id}.jsonl"
        self._count = 0

    @property
    def file_path(self) -> Path:
        return self._file_path

    @property
    def entry_count(self) -> int:
        return self._count

    def log_finding(self, entry: AuditEntry) -> None:
        record = asdict(entry)
        record["schema_version"] = _SCHEMA_VERSION
        record["session_id"] = self._session_id
        record["timestamp"] = datetime.now(timezone.utc).isoformat()
        self._append(record)
        self._count += 1

    def finalize_session(self, extra: dict | None = None) -> None:
        record = {
            "schema_version": _SCHEMA_VERSION,
            "record_type": "session_summary",
            "session_id": self._session_id,
            "findings": self._count,
            "guard_version": toolguard.__version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if extra:
            record.update(extra)
        self._append(record)

    def _append(self, record: dict) -> None:
        try:
            with open(self._file_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, default=str) + "\n")
        except OSError as exc:
            # audit failures never break the display path
            logger.warning("Audit write to %s failed: %s", self._file_path, exc)
