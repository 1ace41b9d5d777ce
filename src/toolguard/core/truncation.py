"""Character-safe truncation for tool output.

Python strings index by code point, so slicing here can never split a
multi-byte UTF-8 sequence. Both functions count with ``len`` and cut with
slices; neither touches the caller's string.
"""

# Maximum number of characters of tool output shown in user-facing displays
MAX_TOOL_OUTPUT_DISPLAY_CHARS = 10_000

_ELLIPSIS = "..."


def safe_truncate(text: str, max_chars: int) -> str:
    """Truncate to at most ``max_chars`` characters, appending "..." when cut.

    The marker counts against the budget, so the kept prefix is
    ``max_chars - 3`` characters (never negative).
    """
    if len(text) <= max(max_chars, 0):
        return text
    keep = max(max_chars - len(_ELLIPSIS), 0)
    return text[:keep] + _ELLIPSIS


def truncate_tool_text_for_display(text: str) -> str | None:
    """Truncate tool output for display. Returns None if no truncation is needed.

    The caller keeps the original string for agent processing; only the
    returned copy is meant to be shown.
    """
    char_count = len(text)
    if char_count <= MAX_TOOL_OUTPUT_DISPLAY_CHARS:
        return None
    truncated = text[:MAX_TOOL_OUTPUT_DISPLAY_CHARS]
    return (
        f"{truncated}\n\n... [output truncated: showing "
        f"{MAX_TOOL_OUTPUT_DISPLAY_CHARS} of {char_count} characters]"
    )
