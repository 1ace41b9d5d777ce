"""Tests for AuditLogger — JSONL finding log."""

import json

import pytest

import toolguard
from toolguard.core.audit import AuditEntry, AuditLogger


@pytest.fixture
def audit(tmp_output):
    return AuditLogger(output_dir=tmp_output, session_id="test-session-001")


def _make_entry(action: str = "sanitized") -> AuditEntry:
    return AuditEntry(
        source="tool_response:call-1",
        action=action,
        codepoints_removed=3,
        hidden_payload="ABC",
        original_chars=13,
        result_chars=10,
        message_id="msg_1",
    )


class TestAuditLogger:
    def test_creates_output_dir(self, audit, tmp_output):
        assert tmp_output.is_dir()
        assert audit.file_path == tmp_output / "test-session-001.jsonl"

    def test_log_finding_writes_valid_jsonl(self, audit):
        audit.log_finding(_make_entry())
        audit.log_finding(_make_entry("truncated"))
        lines = audit.file_path.read_text().strip().split("\n")
        assert len(lines) == 2
        for line in lines:
            parsed = json.loads(line)
            assert parsed["schema_version"]
            assert parsed["session_id"] == "test-session-001"
            assert "timestamp" in parsed
        assert audit.entry_count == 2

    def test_entry_fields(self, audit):
        audit.log_finding(_make_entry())
        parsed = json.loads(audit.file_path.read_text())
        assert parsed["hidden_payload"] == "ABC"
        assert parsed["codepoints_removed"] == 3
        assert parsed["message_id"] == "msg_1"

    def test_finalize_appends_summary(self, audit):
        audit.log_finding(_make_entry())
        audit.finalize_session({"command": "scan"})
        lines = audit.file_path.read_text().strip().split("\n")
        summary = json.loads(lines[-1])
        assert summary["record_type"] == "session_summary"
        assert summary["findings"] == 1
        assert summary["command"] == "scan"
        assert summary["guard_version"] == toolguard.__version__

    def test_write_failure_is_logged_not_raised(self, audit, caplog):
        audit.file_path.mkdir()  # a directory where the file should be
        audit.log_finding(_make_entry())
        assert "Audit write" in caplog.text
