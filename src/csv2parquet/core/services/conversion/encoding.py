"""
Row encoding: raw CSV cells -> sparse typed rows for the Parquet writer.

A cell that is missing (short row) or blank after trimming is left out of the
encoded row entirely; the writer stores it as null in an optional column.
"""
import json
from typing import Any, Dict, List

from .inference import try_parse_float, try_parse_int
from .models import FieldType, TableSchema

EncodedRow = Dict[str, Any]


def escape_text(value: str) -> str:
    """Escape backslashes and double quotes for embedding in a quoted string."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def encode_value(field_type: FieldType, value: str):
    """
    Convert one trimmed, non-empty cell according to its column type.

    Returns ``(present, converted)``; numeric cells that no longer parse are
    reported as absent.
    """
    if field_type == FieldType.INT64:
        return try_parse_int(value)
    if field_type == FieldType.FLOAT64:
        return try_parse_float(value)
    if field_type == FieldType.BOOL:
        token = value.lower()
        if token == "true":
            return True, True
        if token == "false":
            return True, False
        # Not a boolean literal: passed through so the writer rejects the row
        return True, token
    return True, value


def encode_row(schema: TableSchema, row: List[str]) -> EncodedRow:
    """Encode one CSV row into an ordered mapping of the fields that have a value."""
    encoded: EncodedRow = {}
    for i, column in enumerate(schema):
        if i >= len(row):
            break
        value = row[i].strip()
        if not value:
            continue
        present, converted = encode_value(column.field_type, value)
        if present:
            encoded[column.name] = converted
    return encoded


def serialize_row(encoded: EncodedRow) -> str:
    """Serialized object form of an encoded row, e.g. ``{"a":1,"b":"x"}``."""
    parts = []
    for name, value in encoded.items():
        if isinstance(value, bool):
            rendered = "true" if value else "false"
        elif isinstance(value, (int, float)):
            # shortest round-trip form
            rendered = json.dumps(value)
        else:
            rendered = f'"{escape_text(str(value))}"'
        parts.append(f'"{escape_text(name)}":{rendered}')
    return "{" + ",".join(parts) + "}"
