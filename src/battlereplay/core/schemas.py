"""Schema loading and validation utility."""

import json
from pathlib import Path

import jsonschema

SESSION_SCHEMA_PATH = Path(__file__).parent / "session.schema.json"


def load_schema(path: Path) -> dict:
    """Load a JSON Schema file and return as dict."""
    with open(path) as f:
        return json.load(f)


def validate_session(data: dict, schema: dict | None = None) -> str | None:
    """Validate one game's JSON. Returns an error message, or None if valid."""
    try:
        jsonschema.validate(data, schema or load_schema(SESSION_SCHEMA_PATH))
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        return f"{location}: {e.message}"
    return None
