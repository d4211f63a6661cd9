"""
Per-file conversion: CSV in, Parquet out.

Each file goes through a fixed sequence of stages and stops at the first
failure:

    STAT_INPUT -> DETECT_SCHEMA -> PREPARE_OUTPUT -> STREAM_WRITE
               -> VERIFY_OUTPUT -> DELETE_SOURCE -> DONE

Failures are reported in the returned ConversionResult, never raised, so one
bad file cannot stop a batch. The input is read twice: once to sample the
schema and once to stream every row into the writer.
"""
import csv
import logging
import time
from pathlib import Path
from typing import Optional, Tuple, Union

import pyarrow as pa

from ....setup.config.models import ConverterConfig
from ....setup.logging import get_logger
from ....utils.misc import get_file_size, makedir, to_megabytes
from ...constants import PARQUET_EXTENSION
from .encoding import encode_row
from .inference import detect_file_schema
from .models import (
    ConversionResult,
    ConversionStage,
    OutputVerificationError,
    SchemaDetectionError,
    SourceFile,
    TableSchema,
    WriterFinalizeError,
)
from .reader import make_csv_reader, open_csv
from .writer import ParquetRowWriter

logger = get_logger(__name__)

STREAM_ERRORS = (OSError, csv.Error, pa.ArrowException, SchemaDetectionError, WriterFinalizeError, ValueError)


def output_path_for(input_path: Union[str, Path], output_dir: Optional[Union[str, Path]] = None) -> Path:
    """``<name>.parquet`` next to the input, or inside ``output_dir`` when one is set."""
    input_path = Path(input_path)
    directory = Path(output_dir) if output_dir else input_path.parent
    return directory / f"{input_path.stem}{PARQUET_EXTENSION}"


def _remove_partial_output(output_path: Path, log: logging.Logger):
    try:
        if output_path.exists():
            output_path.unlink()
            log.debug(f"Removed partial output {output_path}")
    except OSError as e:
        log.warning(f"Failed to remove partial output {output_path}: {e}")


def _skip_header(reader):
    row = []
    while not row:
        try:
            row = next(reader)
        except StopIteration:
            raise SchemaDetectionError("reading headers: file has no header row") from None


def stream_csv_to_parquet(
    input_path: Path,
    output_path: Path,
    schema: TableSchema,
    config: ConverterConfig,
    log: Optional[logging.Logger] = None,
) -> Tuple[int, int]:
    """
    Second pass over the input: encode every data row and write it to Parquet.

    Malformed rows and rows rejected by the writer are logged and skipped.

    Returns:
        (rows_written, rows_skipped)
    """
    log = log or logger
    malformed = 0

    with open_csv(input_path, encoding=config.encoding) as handle:
        reader = make_csv_reader(handle, config.delimiter)
        _skip_header(reader)

        with ParquetRowWriter(
            output_path,
            schema,
            row_group_bytes=config.row_group_size,
            batch_size=config.batch_size,
            compression=config.compression_codec,
            log=log,
        ) as writer:
            while True:
                try:
                    row = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    malformed += 1
                    log.warning(f"Skipping malformed row at line {reader.line_num}: {e}")
                    continue

                if not row:
                    continue
                writer.write(encode_row(schema, row), row_number=reader.line_num)

    log.info(f"Wrote {writer.rows_written} rows to {output_path}")
    return writer.rows_written, writer.rows_rejected + malformed


def convert_file(
    source: Union[SourceFile, str, Path],
    config: ConverterConfig,
    log: Optional[logging.Logger] = None,
) -> ConversionResult:
    """Convert one CSV file to Parquet and report what happened."""
    log = log or logger
    input_path = source.path if isinstance(source, SourceFile) else Path(source)
    started = time.perf_counter()

    def finish(stage=None, error=None, **fields) -> ConversionResult:
        return ConversionResult(
            input_path=input_path,
            error=error,
            failed_stage=stage if error is not None else None,
            processing_time=time.perf_counter() - started,
            **fields,
        )

    log.info(f"Converting {input_path}")

    # STAT_INPUT
    try:
        input_size = get_file_size(input_path)
    except OSError as e:
        return finish(ConversionStage.STAT_INPUT, e)

    # DETECT_SCHEMA
    try:
        detected = detect_file_schema(
            input_path,
            config.delimiter,
            config.sample_rows,
            encoding=config.encoding,
            log=log,
        )
    except (SchemaDetectionError, OSError, LookupError) as e:
        return finish(ConversionStage.DETECT_SCHEMA, e, input_size=input_size)

    log.debug(f"Detected schema: {detected.describe()}")
    schema = detected.with_unique_names()
    if schema is not detected:
        log.warning(
            f"Duplicate column names in {input_path} renamed with numeric suffixes: "
            f"{', '.join(detected.duplicate_names())}"
        )

    # PREPARE_OUTPUT
    output_path = output_path_for(input_path, config.output_dir)
    if config.output_dir:
        try:
            makedir(config.output_dir)
        except OSError as e:
            return finish(ConversionStage.PREPARE_OUTPUT, e, input_size=input_size, output_path=output_path)

    # STREAM_WRITE
    try:
        rows_written, rows_skipped = stream_csv_to_parquet(input_path, output_path, schema, config, log=log)
    except STREAM_ERRORS as e:
        _remove_partial_output(output_path, log)
        return finish(ConversionStage.STREAM_WRITE, e, input_size=input_size, output_path=output_path)

    counts = {"rows_written": rows_written, "rows_skipped": rows_skipped}

    # VERIFY_OUTPUT
    try:
        output_size = get_file_size(output_path)
    except OSError:
        output_size = 0
    if output_size == 0:
        error = OutputVerificationError(f"output verification failed: {output_path} is missing or empty")
        return finish(
            ConversionStage.VERIFY_OUTPUT, error, input_size=input_size, output_path=output_path, **counts
        )

    # DELETE_SOURCE
    if config.delete_original:
        try:
            input_path.unlink()
            log.info(f"Deleted original {input_path}")
        except OSError as e:
            log.warning(f"Failed to delete original {input_path}: {e}")

    log.info(
        f"Converted {input_path} -> {output_path} "
        f"({to_megabytes(input_size):.1f} MB -> {to_megabytes(output_size):.1f} MB)"
    )
    return finish(
        input_size=input_size,
        output_path=output_path,
        output_size=output_size,
        **counts,
    )
