"""Schema loading utility."""

import json
from functools import lru_cache
from pathlib import Path

MESSAGE_SCHEMA_PATH = Path(__file__).resolve().parent / "message.schema.json"


def load_schema(path: Path) -> dict:
    """Load a JSON Schema file and return as dict."""
    with open(path) as f:
        return json.load(f)


@lru_cache(maxsize=1)
def load_message_schema() -> dict:
    return load_schema(MESSAGE_SCHEMA_PATH)
