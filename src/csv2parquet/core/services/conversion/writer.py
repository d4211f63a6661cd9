"""
Parquet writer adapter.

Drives ``pyarrow.parquet.ParquetWriter`` one encoded row at a time:
rows are buffered column-wise, sealed into record batches every
``batch_size`` rows and written out as a row group once the sealed batches
reach ``row_group_bytes``.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import pyarrow as pa
import pyarrow.parquet as pq

from ....setup.logging import get_logger
from ...constants import DEFAULT_ROW_GROUP_BYTES, INT64_MAX, INT64_MIN
from .encoding import EncodedRow, serialize_row
from .models import FieldType, TableSchema, WriterFinalizeError

logger = get_logger(__name__)


def _accepts(field_type: FieldType, value) -> bool:
    if isinstance(value, bool):
        return field_type == FieldType.BOOL
    if field_type == FieldType.INT64:
        return isinstance(value, int) and INT64_MIN <= value <= INT64_MAX
    if field_type == FieldType.FLOAT64:
        return isinstance(value, (int, float))
    if field_type == FieldType.STRING:
        return isinstance(value, str)
    return False


class ParquetRowWriter:
    """
    Row-at-a-time Parquet writer for a detected table schema.

    Every column is declared nullable; a field missing from an encoded row is
    written as null. A row whose values do not match the column types is
    logged and skipped. ``close()`` must succeed for the file to be usable and
    raises :class:`WriterFinalizeError` otherwise.

    Usage:
        with ParquetRowWriter(path, schema) as writer:
            for row in rows:
                writer.write(row)
    """

    def __init__(
        self,
        output_path: Union[str, Path],
        schema: TableSchema,
        row_group_bytes: int = DEFAULT_ROW_GROUP_BYTES,
        batch_size: int = 10000,
        compression: Optional[str] = "snappy",
        log: Optional[logging.Logger] = None,
    ):
        duplicates = schema.duplicate_names()
        if duplicates:
            raise ValueError(f"column names must be unique, repeated: {', '.join(duplicates)}")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.output_path = Path(output_path)
        self.schema = schema
        self.arrow_schema = schema.to_arrow()
        self.row_group_bytes = row_group_bytes
        self.batch_size = batch_size
        self.logger = log or logger

        self._types: Dict[str, FieldType] = {c.name: c.field_type for c in schema}
        self._columns: Dict[str, list] = {name: [] for name in schema.names}
        self._buffered_rows = 0
        self._pending: List[pa.RecordBatch] = []
        self._pending_bytes = 0
        self._closed = False

        self.rows_written = 0
        self.rows_rejected = 0
        self.row_groups_written = 0

        self._writer = pq.ParquetWriter(
            str(self.output_path),
            self.arrow_schema,
            compression=compression or "none",
        )

    def __enter__(self) -> "ParquetRowWriter":
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self.abort()
        return False

    def write(self, row: EncodedRow, row_number: Optional[int] = None) -> bool:
        """
        Buffer one encoded row.

        Returns:
            bool: False if the row was rejected (logged and skipped).
        """
        problem = self._check_row(row)
        if problem:
            self.rows_rejected += 1
            number = row_number if row_number is not None else self.rows_written + self.rows_rejected
            self.logger.warning(f"Error writing row {number}: {problem}")
            self.logger.debug(f"Rejected row {number}: {serialize_row(row)}")
            return False

        for name, values in self._columns.items():
            values.append(row.get(name))
        self._buffered_rows += 1
        self.rows_written += 1

        if self._buffered_rows >= self.batch_size:
            self._seal_batch()
        if self.rows_written % self.batch_size == 0:
            self._report_progress()
        return True

    def close(self):
        """Write every buffered row and finalize the file footer."""
        if self._closed:
            return
        self._closed = True

        try:
            if self._buffered_rows:
                self._seal_batch(allow_flush=False)
            self._flush_row_group()
        except (pa.ArrowException, OSError) as e:
            self._close_quietly()
            raise WriterFinalizeError(f"finalizing parquet: {e}") from e

        try:
            self._writer.close()
        except (pa.ArrowException, OSError) as e:
            raise WriterFinalizeError(f"finalizing parquet: {e}") from e

        self.logger.debug(
            f"Finalized {self.output_path} with {self.rows_written} rows "
            f"in {self.row_groups_written} row groups"
        )

    def abort(self):
        """Close the underlying file without flushing buffered rows."""
        if self._closed:
            return
        self._closed = True
        self._close_quietly()

    def _close_quietly(self):
        try:
            self._writer.close()
        except (pa.ArrowException, OSError) as e:
            self.logger.debug(f"Ignoring close error on {self.output_path}: {e}")

    def _check_row(self, row: EncodedRow) -> Optional[str]:
        for name, value in row.items():
            field_type = self._types.get(name)
            if field_type is None:
                return f"unknown column '{name}'"
            if not _accepts(field_type, value):
                return f"value {value!r} is not valid for {field_type.label} column '{name}'"
        return None

    def _seal_batch(self, allow_flush: bool = True):
        """Turn the column buffers into a record batch."""
        arrays = [
            pa.array(self._columns[field.name], type=field.type)
            for field in self.arrow_schema
        ]
        batch = pa.RecordBatch.from_arrays(arrays, schema=self.arrow_schema)
        self._pending.append(batch)
        self._pending_bytes += batch.nbytes

        self._columns = {name: [] for name in self.schema.names}
        self._buffered_rows = 0

        if allow_flush and self._pending_bytes >= self.row_group_bytes:
            self._flush_row_group()

    def _flush_row_group(self):
        if not self._pending:
            return
        table = pa.Table.from_batches(self._pending, schema=self.arrow_schema)
        if table.num_rows:
            self._writer.write_table(table, row_group_size=table.num_rows)
            self.row_groups_written += 1
        self._pending = []
        self._pending_bytes = 0

    def _report_progress(self):
        self.logger.debug(f"Processed {self.rows_written} rows")
