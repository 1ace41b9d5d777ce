"""Shared test fixtures for toolguard."""

import pytest

from toolguard.conversation.message import (
    CallToolResult,
    Message,
    Role,
    text_content,
    tool_response,
)


@pytest.fixture
def tmp_output(tmp_path):
    """Provide a temporary output directory for audit logs."""
    return tmp_path / "output"


def make_tool_message(*texts: str, tool_id: str = "test-id") -> Message:
    """Assistant message holding one successful tool response."""
    resp = tool_response(
        tool_id,
        CallToolResult.success([text_content(t) for t in texts]),
    )
    return Message.new(Role.ASSISTANT, 0, [resp])
