"""CLI entry point: python -m toolguard {scan,sanitize,display} ..."""

import argparse
import json
import logging
import os
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from toolguard.config import ConfigError, GuardConfig, load_config
from toolguard.conversation.message import (
    MessageFormatError,
    dump_messages,
    load_messages,
)
from toolguard.core.audit import AuditLogger
from toolguard.core.truncation import safe_truncate
from toolguard.guard import ToolOutputGuard

logger = logging.getLogger("toolguard")

# Width of the payload column in the scan report
_PAYLOAD_PREVIEW_CHARS = 60


def _resolve_config(path: Path | None) -> GuardConfig:
    if path is None:
        env_path = os.environ.get("TOOLGUARD_CONFIG")
        if not env_path:
            return GuardConfig()
        path = Path(env_path)
    return load_config(path)


def _open_audit(args, config: GuardConfig) -> AuditLogger | None:
    audit_dir = args.audit_dir or config.audit.output_dir
    if audit_dir is None:
        return None
    session_id = f"{args.command}-{uuid.uuid4().hex[:8]}"
    return AuditLogger(output_dir=audit_dir, session_id=session_id)


def _cmd_scan(args, guard: ToolOutputGuard, console: Console) -> int:
    table = Table(title="Hidden code point scan")
    table.add_column("File")
    table.add_column("Flagged")
    table.add_column("Code points", justify="right")
    table.add_column("Hidden payload")

    flagged = 0
    for path in args.files:
        text = path.read_text(encoding="utf-8")
        finding = guard.inspect_text(text)
        if finding.flagged:
            flagged += 1
        table.add_row(
            escape(str(path)),
            "[bold red]yes[/bold red]" if finding.flagged else "no",
            str(finding.removed),
            # payload is attacker-controlled; show it literally
            escape(safe_truncate(finding.hidden_payload, _PAYLOAD_PREVIEW_CHARS)),
        )
    # report goes to stdout; status messages stay on stderr
    Console().print(table)
    return 1 if flagged else 0


def _cmd_sanitize(args, guard: ToolOutputGuard, console: Console) -> int:
    text = args.file.read_text(encoding="utf-8")
    cleaned = guard.sanitize_text(text, source=str(args.file))
    if args.output:
        args.output.write_text(cleaned, encoding="utf-8")
        console.print(f"Wrote {escape(str(args.output))} ({len(text) - len(cleaned)} removed)")
    else:
        sys.stdout.write(cleaned)
    return 0


def _cmd_display(args, guard: ToolOutputGuard, console: Console) -> int:
    messages = load_messages(args.conversation)
    projected = [guard.prepare_for_display(m) for m in messages]
    changed = sum(1 for before, after in zip(messages, projected) if before is not after)
    if args.output:
        dump_messages(projected, args.output)
        console.print(f"Wrote {escape(str(args.output))} ({changed} of {len(messages)} messages changed)")
    else:
        for msg in projected:
            sys.stdout.write(json.dumps(msg.to_dict(), ensure_ascii=False) + "\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolguard",
        description="Hidden-character and display filters for agent tool output",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to guard YAML config (default: $TOOLGUARD_CONFIG)",
    )
    parser.add_argument(
        "--audit-dir",
        type=Path,
        default=None,
        help="Write a JSONL audit log to this directory",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Report files containing hidden tag characters")
    scan.add_argument("files", type=Path, nargs="+")

    sanitize = sub.add_parser("sanitize", help="Strip hidden characters from a file")
    sanitize.add_argument("file", type=Path)
    sanitize.add_argument("-o", "--output", type=Path, default=None)

    display = sub.add_parser(
        "display", help="Project a JSONL conversation for user display",
    )
    display.add_argument("conversation", type=Path)
    display.add_argument("-o", "--output", type=Path, default=None)
    return parser


_COMMANDS = {
    "scan": _cmd_scan,
    "sanitize": _cmd_sanitize,
    "display": _cmd_display,
}


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    console = Console(stderr=True)

    try:
        config = _resolve_config(args.config)
    except (ConfigError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] config: {escape(str(e))}")
        return 2

    audit = _open_audit(args, config)
    guard = ToolOutputGuard(config, audit=audit)
    try:
        status = _COMMANDS[args.command](args, guard, console)
    except (MessageFormatError, OSError, UnicodeDecodeError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        return 2
    finally:
        if audit is not None:
            audit.finalize_session({"command": args.command})
            logger.debug("Audit log: %s", audit.file_path)
    return status


if __name__ == "__main__":
    sys.exit(main())
