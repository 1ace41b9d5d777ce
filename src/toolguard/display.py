"""Display projection — a user-facing copy of a message with long tool output cut.

The agent keeps reasoning over the full message; only the projection is shown.
When nothing needs cutting the original Message object itself is returned, so
callers can test ``projected is message`` to skip a re-render.
"""

from __future__ import annotations

from dataclasses import replace

from toolguard.conversation.message import (
    CallToolResult,
    Content,
    Message,
    MessageContent,
    ToolResponse,
    as_text,
    text_content,
)
from toolguard.core.truncation import truncate_tool_text_for_display


def _truncate_blocks(blocks: tuple[Content, ...]) -> tuple[Content, ...] | None:
    """Return new blocks if any text block was truncated, else None."""
    changed = False
    new_blocks = []
    for block in blocks:
        text = as_text(block)
        if text is not None:
            truncated = truncate_tool_text_for_display(text.text)
            if truncated is not None:
                changed = True
                new_blocks.append(text_content(truncated))
                continue
        new_blocks.append(block)
    if not changed:
        return None
    return tuple(new_blocks)


def _truncate_item(item: MessageContent) -> MessageContent:
    # Only successful tool responses are candidates; errors pass through
    if not isinstance(item, ToolResponse):
        return item
    result = item.tool_result
    if not isinstance(result, CallToolResult):
        return item

    new_blocks = _truncate_blocks(result.content)
    if new_blocks is None:
        return item
    return ToolResponse(
        id=item.id,
        tool_result=replace(result, content=new_blocks),
        metadata=item.metadata,
    )


def truncate_message_for_display(message: Message) -> Message:
    """Return a copy of ``message`` with tool response text truncated for display.

    Only text blocks of successful tool responses are touched. Item order and
    count are preserved and untouched items are shared with the original.
    Returns ``message`` itself if nothing was truncated.
    """
    any_changed = False
    new_content = []
    for item in message.content:
        new_item = _truncate_item(item)
        if new_item is not item:
            any_changed = True
        new_content.append(new_item)

    if not any_changed:
        return message
    return replace(message, content=tuple(new_content))
