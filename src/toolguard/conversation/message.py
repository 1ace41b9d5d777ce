"""Conversation message model.

Only the parts of a conversation the guard touches are modelled: a message is
an ordered tuple of content items, and a tool response carries either a
CallToolResult (success) or a ToolError. All types are frozen so a projection
can share untouched items with the original message.

Usage:
    msg = Message.new(Role.ASSISTANT, 0, [text_item("Hello")])
    msg.as_concat_text()   # "Hello"
    Message.from_dict(msg.to_dict()) == msg
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Union

import jsonschema

from toolguard.conversation.schemas import load_message_schema


class MessageFormatError(ValueError):
    """Raised when a serialized message does not match the message schema."""

    def __init__(self, details: str, path: str = ""):
        self.details = details
        self.path = path
        where = f" at {path}" if path else ""
        super().__init__(f"invalid message{where}: {details}")


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


# ── Content blocks (tool output) ────────────────────────────────────


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class ImageContent:
    data: str  # base64
    mime_type: str


@dataclass(frozen=True)
class ResourceContent:
    uri: str
    mime_type: str | None = None
    text: str | None = None


Content = Union[TextContent, ImageContent, ResourceContent]


def text_content(text: str) -> TextContent:
    return TextContent(text=text)


def as_text(block: Content) -> TextContent | None:
    """Return the block if it carries text, else None."""
    if isinstance(block, TextContent):
        return block
    return None


# ── Tool results ────────────────────────────────────────────────────


@dataclass(frozen=True)
class CallToolResult:
    """Successful tool call output."""

    content: tuple[Content, ...]
    structured_content: dict | None = None
    is_error: bool = False

    @classmethod
    def success(cls, content: Iterable[Content]) -> CallToolResult:
        return cls(content=tuple(content), is_error=False)

    @classmethod
    def error(cls, content: Iterable[Content]) -> CallToolResult:
        """A result the tool itself flagged as failed (still the Ok branch)."""
        return cls(content=tuple(content), is_error=True)


@dataclass(frozen=True)
class ToolError:
    """The tool could not be invoked or did not produce a result."""

    message: str
    kind: str = "execution_error"


ToolResult = Union[CallToolResult, ToolError]


# ── Message content items ───────────────────────────────────────────


@dataclass(frozen=True)
class TextItem:
    text: str


@dataclass(frozen=True)
class ToolRequest:
    id: str
    tool_name: str
    arguments: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResponse:
    id: str
    tool_result: ToolResult
    metadata: dict | None = None


MessageContent = Union[TextItem, ToolRequest, ToolResponse]


def text_item(text: str) -> TextItem:
    return TextItem(text=text)


def tool_response(
    id: str, tool_result: ToolResult, metadata: dict | None = None
) -> ToolResponse:
    return ToolResponse(id=id, tool_result=tool_result, metadata=metadata)


@dataclass(frozen=True)
class MessageMetadata:
    """Who gets to see the message."""

    user_visible: bool = True
    agent_visible: bool = True


@dataclass(frozen=True)
class Message:
    role: Role
    created: int
    content: tuple[MessageContent, ...]
    id: str | None = None
    metadata: MessageMetadata = field(default_factory=MessageMetadata)

    @classmethod
    def new(
        cls, role: Role, created: int | None, content: Iterable[MessageContent]
    ) -> Message:
        if created is None:
            created = int(time.time())
        return cls(
            role=role,
            created=created,
            content=tuple(content),
            id=f"msg_{uuid.uuid4().hex[:12]}",
        )

    def as_concat_text(self) -> str:
        """Join the text of all plain text items."""
        return "\n".join(c.text for c in self.content if isinstance(c, TextItem))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "created": self.created,
            "metadata": {
                "user_visible": self.metadata.user_visible,
                "agent_visible": self.metadata.agent_visible,
            },
            "content": [_item_to_dict(c) for c in self.content],
        }

    @classmethod
    def from_dict(cls, record: dict) -> Message:
        """Build a Message from its JSON form. Raises MessageFormatError."""
        try:
            jsonschema.validate(record, load_message_schema())
        except jsonschema.ValidationError as e:
            path = "/".join(str(p) for p in e.absolute_path)
            raise MessageFormatError(e.message, path) from e

        meta = record.get("metadata", {})
        return cls(
            role=Role(record["role"]),
            created=record["created"],
            content=tuple(_item_from_dict(c) for c in record["content"]),
            id=record.get("id"),
            metadata=MessageMetadata(
                user_visible=meta.get("user_visible", True),
                agent_visible=meta.get("agent_visible", True),
            ),
        )


def load_messages(path: str | Path) -> list[Message]:
    """Read a JSONL conversation file, one message per line."""
    path = Path(path)
    messages = []
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise MessageFormatError(f"line {line_no}: {e}") from e
            messages.append(Message.from_dict(record))
    return messages


def dump_messages(messages: Iterable[Message], path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for msg in messages:
            f.write(json.dumps(msg.to_dict(), ensure_ascii=False) + "\n")


# ── JSON helpers ────────────────────────────────────────────────────


def _block_to_dict(block: Content) -> dict:
    if isinstance(block, TextContent):
        return {"type": "text", "text": block.text}
    if isinstance(block, ImageContent):
        return {"type": "image", "data": block.data, "mime_type": block.mime_type}
    return {
        "type": "resource",
        "uri": block.uri,
        "mime_type": block.mime_type,
        "text": block.text,
    }


def _block_from_dict(record: dict) -> Content:
    kind = record["type"]
    if kind == "text":
        return TextContent(text=record["text"])
    if kind == "image":
        return ImageContent(data=record["data"], mime_type=record["mime_type"])
    return ResourceContent(
        uri=record["uri"],
        mime_type=record.get("mime_type"),
        text=record.get("text"),
    )


def _result_to_dict(result: ToolResult) -> dict:
    if isinstance(result, ToolError):
        return {
            "status": "error",
            "error": {"message": result.message, "kind": result.kind},
        }
    return {
        "status": "success",
        "value": {
            "content": [_block_to_dict(b) for b in result.content],
            "structured_content": result.structured_content,
            "is_error": result.is_error,
        },
    }


def _result_from_dict(record: dict) -> ToolResult:
    if record["status"] == "error":
        err = record["error"]
        return ToolError(message=err["message"], kind=err.get("kind", "execution_error"))
    value = record["value"]
    return CallToolResult(
        content=tuple(_block_from_dict(b) for b in value["content"]),
        structured_content=value.get("structured_content"),
        is_error=value.get("is_error", False),
    )


def _item_to_dict(item: MessageContent) -> dict:
    if isinstance(item, TextItem):
        return {"type": "text", "text": item.text}
    if isinstance(item, ToolRequest):
        return {
            "type": "tool_request",
            "id": item.id,
            "tool_name": item.tool_name,
            "arguments": item.arguments,
        }
    return {
        "type": "tool_response",
        "id": item.id,
        "tool_result": _result_to_dict(item.tool_result),
        "metadata": item.metadata,
    }


def _item_from_dict(record: dict) -> MessageContent:
    kind = record["type"]
    if kind == "text":
        return TextItem(text=record["text"])
    if kind == "tool_request":
        return ToolRequest(
            id=record["id"],
            tool_name=record["tool_name"],
            arguments=record.get("arguments", {}),
        )
    return ToolResponse(
        id=record["id"],
        tool_result=_result_from_dict(record["tool_result"]),
        metadata=record.get("metadata"),
    )
