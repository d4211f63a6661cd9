"""
Schema detection for delimited text files.

Every column starts as INT64 and is widened by each non-empty value seen in the
first ``sample_rows`` data rows. Widening is a join over the lattice

    INT64 + FLOAT64 -> FLOAT64
    BOOL  + BOOL    -> BOOL
    BOOL  + number  -> STRING
    STRING + any    -> STRING

so the final decision does not depend on the order rows are sampled in.
Classification never relies on exceptions: each parser returns ``(ok, value)``.
"""
import csv
import logging
import math
import re
from pathlib import Path
from typing import IO, List, Optional, Tuple, Union

from ....setup.logging import get_logger
from ...constants import (
    BOOL_LITERALS,
    DATE_PATTERNS,
    HEADER_PLACEHOLDER,
    HEADER_REPLACED_CHARS,
    INT64_MAX,
    INT64_MIN,
    UTF8_BOM,
)
from .models import FieldType, SchemaDetectionError, TableSchema
from .reader import make_csv_reader, open_csv

logger = get_logger(__name__)

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")
_SPECIAL_FLOAT_RE = re.compile(r"^[+-]?(?:inf|infinity|nan)$", re.IGNORECASE)

# UTF-8 BOM as it shows up when a file is decoded as latin-1
_LATIN1_BOM = "\xef\xbb\xbf"

_NUMERIC = (FieldType.INT64, FieldType.FLOAT64)


def widen_type(current: FieldType, new: FieldType) -> FieldType:
    """Least upper bound of two types (STRING is the widest)."""
    if current == new:
        return current
    if current in _NUMERIC and new in _NUMERIC:
        return FieldType.FLOAT64
    return FieldType.STRING


def try_parse_bool(value: str) -> Tuple[bool, Optional[bool]]:
    """Case-insensitive ``true``/``false``."""
    parsed = BOOL_LITERALS.get(value.lower())
    return (parsed is not None), parsed


def try_parse_int(value: str) -> Tuple[bool, Optional[int]]:
    """Base-10 integer with optional sign that fits in a signed 64-bit int."""
    if not _INT_RE.match(value):
        return False, None
    parsed = int(value)
    if parsed < INT64_MIN or parsed > INT64_MAX:
        return False, None
    return True, parsed


def try_parse_float(value: str) -> Tuple[bool, Optional[float]]:
    """Decimal or scientific notation, or an inf/nan token. Overflow is a failure."""
    if _SPECIAL_FLOAT_RE.match(value):
        return True, float(value)
    if not _FLOAT_RE.match(value):
        return False, None
    parsed = float(value)
    if math.isinf(parsed):
        return False, None
    return True, parsed


def is_date_like(value: str) -> bool:
    return any(pattern.match(value) for _, pattern in DATE_PATTERNS)


def infer_type(value: str) -> FieldType:
    """Classify a single cell value."""
    value = value.strip()
    if not value:
        return FieldType.STRING

    if try_parse_bool(value)[0]:
        return FieldType.BOOL
    if try_parse_int(value)[0]:
        return FieldType.INT64
    if try_parse_float(value)[0]:
        return FieldType.FLOAT64

    # Dates are kept as text so every reader can consume them
    if is_date_like(value):
        return FieldType.STRING

    return FieldType.STRING


def normalize_header(name: str, position: int) -> str:
    """
    Clean a raw header cell.

    Strips a byte-order mark and surrounding whitespace, replaces spaces and
    dots with underscores, and names empty headers after their zero-based
    position (``column_2``). Uniqueness is not enforced here.
    """
    for bom in (UTF8_BOM, _LATIN1_BOM):
        if name.startswith(bom):
            name = name[len(bom):]
            break
    name = name.strip()
    for char in HEADER_REPLACED_CHARS:
        name = name.replace(char, "_")
    if not name:
        name = HEADER_PLACEHOLDER.format(position=position)
    return name


def normalize_headers(raw_headers: List[str]) -> List[str]:
    return [normalize_header(name, i) for i, name in enumerate(raw_headers)]


def detect_schema(
    handle: IO[str],
    delimiter: str,
    sample_rows: int,
    log: Optional[logging.Logger] = None,
) -> TableSchema:
    """
    Read the header and up to ``sample_rows`` rows from ``handle`` and infer column types.

    A malformed row still uses up one sampling attempt. Blank lines are skipped
    without counting. Empty cells never change a column's type.

    Raises:
        SchemaDetectionError: If the header row cannot be read.
    """
    log = log or logger
    reader = make_csv_reader(handle, delimiter)

    raw_headers: List[str] = []
    try:
        while not raw_headers:
            raw_headers = next(reader)
    except StopIteration:
        raise SchemaDetectionError("reading headers: file has no header row") from None
    except csv.Error as e:
        raise SchemaDetectionError(f"reading headers: {e}") from e

    headers = normalize_headers(raw_headers)
    types = [FieldType.INT64] * len(headers)

    attempts = 0
    sampled = 0
    while attempts < sample_rows:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            attempts += 1
            log.debug(f"Skipping malformed sample row {attempts}: {e}")
            continue

        if not row:
            continue
        attempts += 1
        sampled += 1

        for i, value in enumerate(row[:len(types)]):
            if not value.strip():
                continue
            types[i] = widen_type(types[i], infer_type(value))

    log.debug(f"Sampled {sampled} rows ({attempts} attempts) for {len(headers)} columns")
    return TableSchema.from_pairs(headers, types)


def detect_file_schema(
    path: Union[str, Path],
    delimiter: str,
    sample_rows: int,
    encoding: str = "utf-8",
    log: Optional[logging.Logger] = None,
) -> TableSchema:
    """Open ``path`` and run :func:`detect_schema` on it; the file is always closed."""
    with open_csv(path, encoding=encoding) as handle:
        return detect_schema(handle, delimiter, sample_rows, log=log)
