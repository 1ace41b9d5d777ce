"""Unicode Tags Block detection and removal.

Tag characters (U+E0000-U+E007F) render as nothing in most UIs but are still
read by language models, which makes them a side channel for smuggling
instructions into otherwise innocent text. Detection looks at the raw text as
received. Sanitization normalizes to NFC first and filters afterwards, so the
filter always sees the canonical form.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Iterable

TAG_RANGE_START = 0xE0000
TAG_RANGE_END = 0xE007F

# Tags U+E0020..U+E007E shadow printable ASCII 0x20..0x7E
_TAG_ASCII_OFFSET = 0xE0000


@dataclass(frozen=True)
class CodepointRange:
    """Closed range of code points [start, end]."""

    start: int
    end: int
    name: str = ""

    def __contains__(self, char: object) -> bool:
        if not isinstance(char, str) or len(char) != 1:
            return False
        return self.start <= ord(char) <= self.end


UNICODE_TAGS = CodepointRange(TAG_RANGE_START, TAG_RANGE_END, "tags")


@dataclass(frozen=True)
class TagHit:
    """One tag character found in raw text."""

    index: int  # code point offset into the text
    codepoint: int


def is_in_unicode_tag_range(char: str) -> bool:
    return TAG_RANGE_START <= ord(char) <= TAG_RANGE_END


def contains_unicode_tags(text: str) -> bool:
    """Return True if the raw text holds any Tags Block character."""
    return any(is_in_unicode_tag_range(c) for c in text)


def sanitize_unicode_tags(text: str) -> str:
    """NFC-normalize, then strip every Tags Block character.

    Everything else, including other invisible format characters, CJK and
    emoji, is kept in its original order.
    """
    normalized = unicodedata.normalize("NFC", text)
    return "".join(c for c in normalized if not is_in_unicode_tag_range(c))


def contains_codepoints(text: str, ranges: Iterable[CodepointRange]) -> bool:
    """Generalized detector: True if any character falls in one of ``ranges``."""
    ranges = tuple(ranges)
    return any(c in r for c in text for r in ranges)


def strip_codepoints(text: str, ranges: Iterable[CodepointRange]) -> str:
    """Generalized sanitizer: NFC-normalize, then drop characters in ``ranges``."""
    ranges = tuple(ranges)
    normalized = unicodedata.normalize("NFC", text)
    return "".join(c for c in normalized if not any(c in r for r in ranges))


def find_unicode_tags(text: str) -> list[TagHit]:
    """Locate every tag character in the raw text."""
    return [
        TagHit(index=i, codepoint=ord(c))
        for i, c in enumerate(text)
        if is_in_unicode_tag_range(c)
    ]


def decode_tag_payload(text: str) -> str:
    """Reveal the ASCII a run of tag characters spells out.

    Tags outside the printable shadow range (the BEGIN/CANCEL markers and
    U+E0001 LANGUAGE TAG) carry no payload and are skipped. Intended for
    audit output only.
    """
    chars = []
    for c in text:
        cp = ord(c)
        if TAG_RANGE_START + 0x20 <= cp <= TAG_RANGE_START + 0x7E:
            chars.append(chr(cp - _TAG_ASCII_OFFSET))
    return "".join(chars)
