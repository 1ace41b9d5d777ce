"""Guard configuration loader."""

import yaml
from dataclasses import dataclass, field
from pathlib import Path

from toolguard.core.unicode_tags import UNICODE_TAGS, CodepointRange

_MAX_CODEPOINT = 0x10FFFF


class ConfigError(Exception):
    """Raised when a guard config file is malformed."""

    def __init__(self, path: Path | None, details: str):
        self.path = path
        self.details = details
        where = f"{path}: " if path else ""
        super().__init__(f"{where}{details}")


@dataclass
class AuditConfig:
    output_dir: Path | None = None


@dataclass
class GuardConfig:
    sanitize_tool_output: bool = True
    sanitize_text_items: bool = False  # plain text items (user/assistant prose)
    log_findings: bool = True
    disallowed_ranges: tuple[CodepointRange, ...] = (UNICODE_TAGS,)
    audit: AuditConfig = field(default_factory=AuditConfig)


def _parse_codepoint(value, path: Path | None) -> int:
    # YAML reads 0xE0000 as an int; "U+E0000" strings are accepted too
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip().upper()
        if text.startswith("U+"):
            text = text[2:]
        elif text.startswith("0X"):
            text = text[2:]
        try:
            return int(text, 16)
        except ValueError:
            pass
    raise ConfigError(path, f"invalid code point: {value!r}")


def _parse_ranges(raw: list, path: Path | None) -> tuple[CodepointRange, ...]:
    ranges = []
    for i, r in enumerate(raw):
        if "start" not in r or "end" not in r:
            raise ConfigError(path, f"disallowed_ranges[{i}] needs start and end")
        start = _parse_codepoint(r["start"], path)
        end = _parse_codepoint(r["end"], path)
        if not 0 <= start <= end <= _MAX_CODEPOINT:
            raise ConfigError(
                path, f"disallowed_ranges[{i}]: bad range {start:#x}-{end:#x}"
            )
        ranges.append(CodepointRange(start, end, r.get("name", f"range{i}")))
    return tuple(ranges)


def parse_config(raw: dict | None, path: Path | None = None) -> GuardConfig:
    """Build a GuardConfig from an already-parsed YAML mapping."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError(path, "top level must be a mapping")

    g = raw.get("guard") or {}
    audit = raw.get("audit") or {}

    ranges = (UNICODE_TAGS,)
    if raw.get("disallowed_ranges"):
        ranges = _parse_ranges(raw["disallowed_ranges"], path)

    output_dir = audit.get("output_dir")
    return GuardConfig(
        sanitize_tool_output=g.get("sanitize_tool_output", True),
        sanitize_text_items=g.get("sanitize_text_items", False),
        log_findings=g.get("log_findings", True),
        disallowed_ranges=ranges,
        audit=AuditConfig(
            output_dir=Path(output_dir) if output_dir else None,
        ),
    )


def load_config(path: Path) -> GuardConfig:
    """Load guard config from YAML file."""
    path = Path(path)
    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(path, f"invalid YAML: {e}") from e
    return parse_config(raw, path)
