from typing import Optional, List, Tuple, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from enum import Enum

import pyarrow as pa


class FieldType(Enum):
    """Column types a CSV column can be inferred as. STRING is the widest."""
    STRING = "string"
    INT64 = "int64"
    FLOAT64 = "float64"
    BOOL = "bool"

    @property
    def arrow_type(self) -> pa.DataType:
        return _ARROW_TYPES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_ARROW_TYPES = {
    FieldType.STRING: pa.string(),
    FieldType.INT64: pa.int64(),
    FieldType.FLOAT64: pa.float64(),
    FieldType.BOOL: pa.bool_(),
}


_LABELS = {
    FieldType.STRING: "UTF8",
    FieldType.INT64: "INT64",
    FieldType.FLOAT64: "DOUBLE",
    FieldType.BOOL: "BOOLEAN",
}


@dataclass(frozen=True)
class SourceFile:
    """A CSV file found by the path resolver, with its size at discovery time."""
    path: Path
    size: int

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    field_type: FieldType


@dataclass(frozen=True)
class TableSchema:
    """Ordered column names and types, aligned with the CSV header."""
    columns: Tuple[ColumnSpec, ...]

    @classmethod
    def from_pairs(cls, names: List[str], types: List[FieldType]) -> "TableSchema":
        if len(names) != len(types):
            raise ValueError(f"{len(names)} column names for {len(types)} types")
        return cls(tuple(ColumnSpec(n, t) for n, t in zip(names, types)))

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self.columns)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def types(self) -> List[FieldType]:
        return [c.field_type for c in self.columns]

    def describe(self) -> str:
        """Human readable form, e.g. ``a:INT64, b:UTF8``."""
        return ", ".join(f"{c.name}:{c.field_type.label}" for c in self.columns)

    def duplicate_names(self) -> List[str]:
        seen, duplicates = set(), []
        for name in self.names:
            if name in seen and name not in duplicates:
                duplicates.append(name)
            seen.add(name)
        return duplicates

    def with_unique_names(self) -> "TableSchema":
        """
        Copy of the schema where repeated names get ``_1``, ``_2``, ... suffixes.

        The first occurrence keeps its name; a suffix already used by another
        column is skipped.
        """
        if not self.duplicate_names():
            return self

        taken = set(self.names)
        seen = set()
        columns = []
        for column in self.columns:
            name = column.name
            if name in seen:
                suffix = 1
                while f"{column.name}_{suffix}" in taken:
                    suffix += 1
                name = f"{column.name}_{suffix}"
                taken.add(name)
            seen.add(name)
            columns.append(ColumnSpec(name, column.field_type))
        return TableSchema(tuple(columns))

    def to_arrow(self) -> pa.Schema:
        """Arrow schema with every field nullable (absent cells are nulls)."""
        return pa.schema(
            [pa.field(c.name, c.field_type.arrow_type, nullable=True) for c in self.columns]
        )


class ConversionStage(Enum):
    """States a file goes through in the conversion orchestrator."""
    STAT_INPUT = "stat_input"
    DETECT_SCHEMA = "detect_schema"
    PREPARE_OUTPUT = "prepare_output"
    STREAM_WRITE = "stream_write"
    VERIFY_OUTPUT = "verify_output"
    DELETE_SOURCE = "delete_source"
    DONE = "done"


@dataclass(frozen=True)
class ConversionResult:
    """Result of converting one file."""
    input_path: Path
    output_path: Optional[Path] = None
    input_size: int = 0
    output_size: int = 0
    error: Optional[BaseException] = None
    rows_written: int = 0
    rows_skipped: int = 0
    failed_stage: Optional[ConversionStage] = None
    processing_time: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ConversionSummary:
    """Totals over a batch of conversion results."""
    converted: int = 0
    failed: int = 0
    input_bytes: int = 0
    output_bytes: int = 0
    failures: List[ConversionResult] = field(default_factory=list)

    @property
    def saved_bytes(self) -> int:
        return self.input_bytes - self.output_bytes

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


class SourceResolutionError(Exception):
    """The input path could not be stat'ed or listed."""

    def __init__(self, path, kind: str, reason: BaseException):
        self.path = path
        self.kind = kind
        self.reason = reason
        super().__init__(f"{kind} {path}: {reason}")


class SchemaDetectionError(Exception):
    """The header row of a CSV file could not be read."""


class WriterFinalizeError(Exception):
    """The Parquet writer failed to flush or close the output file."""


class OutputVerificationError(Exception):
    """The output file is missing or empty after a successful write."""
