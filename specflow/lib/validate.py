"""
JSON Schema checks for the backlog state file.

Schemas live in specflow/schemas/<name>.schema.json. The store validates on
every load and before every write; a failing document is never written.
"""

import json
from pathlib import Path

import jsonschema

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"


class ValidationError(Exception):
    """A document does not match its schema (or is not JSON at all)."""

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(f"[{schema_name}] {message}{location}")


_schemas: dict[str, dict] = {}


def load_schema(schema_name: str) -> dict:
    if schema_name not in _schemas:
        schema_file = SCHEMAS_DIR / f"{schema_name}.schema.json"
        if not schema_file.is_file():
            raise ValidationError(schema_name, f"Schema file not found: {schema_file}")
        _schemas[schema_name] = json.loads(schema_file.read_text(encoding="utf-8"))
    return _schemas[schema_name]


def validate(data: dict, schema_name: str) -> None:
    """Raise ValidationError naming the first offending field, if any."""
    try:
        jsonschema.validate(instance=data, schema=load_schema(schema_name))
    except jsonschema.ValidationError as e:
        field_path = ".".join(str(p) for p in e.absolute_path) or "(root)"
        raise ValidationError(schema_name, e.message, field_path) from None


def validate_before_write(data: dict, schema_name: str, filepath: Path) -> None:
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(schema_name, f"Refusing to write invalid data to {filepath}: {e}") from None
