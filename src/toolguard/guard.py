"""ToolOutputGuard — sanitize tool output, then project it for display.

Pipeline per message:
    tool output text -> strip disallowed code points (optional) -> display projection

The guard never raises on message content. Findings are logged as warnings
and, when an AuditLogger is attached, written to the audit JSONL. A message
with nothing to clean comes back as the same object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from toolguard.config import GuardConfig
from toolguard.conversation.message import (
    CallToolResult,
    Message,
    MessageContent,
    ResourceContent,
    TextContent,
    TextItem,
    ToolResponse,
)
from toolguard.core.audit import AuditEntry, AuditLogger
from toolguard.core.cancellation import CancellationToken, is_token_cancelled
from toolguard.core.unicode_tags import (
    contains_codepoints,
    decode_tag_payload,
    strip_codepoints,
)
from toolguard.display import truncate_message_for_display

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardFinding:
    """What the guard saw in one piece of raw text."""

    flagged: bool
    hidden_payload: str
    removed: int
    char_count: int


class ToolOutputGuard:
    """Applies the configured sanitization and display policy to messages."""

    def __init__(
        self,
        config: GuardConfig | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        self._config = config or GuardConfig()
        self._audit = audit

    @property
    def config(self) -> GuardConfig:
        return self._config

    def inspect_text(self, text: str) -> GuardFinding:
        ranges = self._config.disallowed_ranges
        if not contains_codepoints(text, ranges):
            return GuardFinding(False, "", 0, len(text))
        removed = sum(1 for c in text if any(c in r for r in ranges))
        return GuardFinding(
            flagged=True,
            hidden_payload=decode_tag_payload(text),
            removed=removed,
            char_count=len(text),
        )

    def sanitize_text(
        self, text: str, source: str = "text", message_id: str | None = None
    ) -> str:
        """Strip disallowed code points. Clean text is returned untouched."""
        finding = self.inspect_text(text)
        if not finding.flagged:
            return text
        cleaned = strip_codepoints(text, self._config.disallowed_ranges)
        self._report(
            AuditEntry(
                source=source,
                action="sanitized",
                codepoints_removed=finding.removed,
                hidden_payload=finding.hidden_payload,
                original_chars=finding.char_count,
                result_chars=len(cleaned),
                message_id=message_id,
            )
        )
        return cleaned

    def sanitize_message(self, message: Message) -> Message:
        """Return ``message`` with disallowed code points stripped from its text.

        Covers text blocks of successful tool responses and, when
        ``sanitize_text_items`` is set, plain text items. Returns the same
        object when nothing was flagged.
        """
        any_changed = False
        new_content = []
        for item in message.content:
            new_item = self._sanitize_item(item, message.id)
            if new_item is not item:
                any_changed = True
            new_content.append(new_item)
        if not any_changed:
            return message
        return replace(message, content=tuple(new_content))

    def prepare_for_display(
        self,
        message: Message,
        cancellation_token: CancellationToken | None = None,
    ) -> Message:
        """Sanitize (if configured) and truncate a message for display.

        A cancelled token short-circuits and hands back the input.
        """
        if is_token_cancelled(cancellation_token):
            logger.debug("Display preparation cancelled for %s", message.id)
            return message

        cleaned = message
        if self._config.sanitize_tool_output or self._config.sanitize_text_items:
            cleaned = self.sanitize_message(message)

        projected = truncate_message_for_display(cleaned)
        if projected is not cleaned:
            self._report_truncations(cleaned, projected)
        return projected

    # ------------------------------------------------------------------

    def _sanitize_item(self, item: MessageContent, message_id: str | None) -> MessageContent:
        if isinstance(item, TextItem):
            if not self._config.sanitize_text_items:
                return item
            cleaned = self.sanitize_text(item.text, "text", message_id)
            if cleaned is item.text:
                return item
            return TextItem(text=cleaned)

        if not isinstance(item, ToolResponse) or not self._config.sanitize_tool_output:
            return item
        result = item.tool_result
        if not isinstance(result, CallToolResult):
            return item

        changed = False
        blocks = []
        source = f"tool_response:{item.id}"
        for block in result.content:
            # embedded resource text reaches the user just like plain text
            if isinstance(block, (TextContent, ResourceContent)) and block.text is not None:
                cleaned = self.sanitize_text(block.text, source, message_id)
                if cleaned is not block.text:
                    changed = True
                    blocks.append(replace(block, text=cleaned))
                    continue
            blocks.append(block)
        if not changed:
            return item
        return replace(item, tool_result=replace(result, content=tuple(blocks)))

    def _report_truncations(self, original: Message, projected: Message) -> None:
        for before, after in zip(original.content, projected.content):
            if before is after or not isinstance(before, ToolResponse):
                continue
            original_chars = sum(
                len(b.text) for b in before.tool_result.content
                if isinstance(b, TextContent)
            )
            result_chars = sum(
                len(b.text) for b in after.tool_result.content
                if isinstance(b, TextContent)
            )
            self._report(
                AuditEntry(
                    source=f"tool_response:{before.id}",
                    action="truncated",
                    codepoints_removed=0,
                    hidden_payload="",
                    original_chars=original_chars,
                    result_chars=result_chars,
                    message_id=original.id,
                )
            )

    def _report(self, entry: AuditEntry) -> None:
        if self._config.log_findings and entry.action == "sanitized":
            logger.warning(
                "Removed %d hidden code point(s) from %s (payload=%r)",
                entry.codepoints_removed,
                entry.source,
                entry.hidden_payload,
            )
        if self._audit is not None:
            self._audit.log_finding(entry)
