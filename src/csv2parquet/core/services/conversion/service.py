"""
Batch conversion: run the per-file converter for every resolved CSV file with
a bounded number of files in flight at once.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial
from typing import Callable, List, Optional, Sequence

import psutil
from rich.progress import (
    Progress, SpinnerColumn, BarColumn, TextColumn,
    TimeElapsedColumn, MofNCompleteColumn,
)

from ....setup.config.models import ConverterConfig
from ....setup.logging import get_logger
from ...constants import MAX_CONCURRENT_CONVERSIONS
from ..discovery.service import resolve_source_files
from .converters import convert_file
from .models import (
    ConversionResult,
    ConversionStage,
    ConversionSummary,
    SourceFile,
    SourceResolutionError,
)

logger = get_logger(__name__)

ConvertFn = Callable[[SourceFile], ConversionResult]


def _log_system_memory(log: logging.Logger):
    try:
        memory = psutil.virtual_memory()
    except (OSError, RuntimeError) as e:
        log.debug(f"Could not read system memory: {e}")
        return
    log.info(f"System Memory: {memory.total/(1024**3):.2f}GB total, "
             f"{memory.available/(1024**3):.2f}GB available")


def run_batch(
    files: Sequence[SourceFile],
    convert: ConvertFn,
    max_workers: int = MAX_CONCURRENT_CONVERSIONS,
    show_progress: bool = False,
    log: Optional[logging.Logger] = None,
) -> List[ConversionResult]:
    """
    Convert ``files`` with at most ``max_workers`` conversions running at a time.

    Files are admitted in list order. Results come back in the same order as
    ``files`` whatever order the conversions finish in. An exception escaping
    ``convert`` becomes that file's failed result; the other files carry on.
    """
    log = log or logger
    if max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    results: List[Optional[ConversionResult]] = [None] * len(files)
    if not files:
        return []

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="convert") as executor:
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold green]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            disable=not show_progress,
        ) as progress:
            main_task = progress.add_task("Converting files", total=len(files))
            futures = {executor.submit(convert, source): idx for idx, source in enumerate(files)}

            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except Exception as e:
                    log.error(f"Exception while converting '{files[idx].path}': {e}")
                    results[idx] = ConversionResult(
                        input_path=files[idx].path,
                        input_size=files[idx].size,
                        error=e,
                    )
                progress.advance(main_task)

    return results


def convert_all(config: ConverterConfig, log: Optional[logging.Logger] = None) -> List[ConversionResult]:
    """
    Resolve the configured input path and convert every CSV file found.

    A path that cannot be resolved yields a single failed result; a directory
    without CSV files yields an empty list and a warning.
    """
    log = log or logger

    try:
        files = resolve_source_files(config.input_path)
    except SourceResolutionError as e:
        return [ConversionResult(
            input_path=config.input_path,
            error=e,
            failed_stage=ConversionStage.STAT_INPUT,
        )]

    if not files:
        log.warning("No CSV files found")
        return []

    total_mb = sum(f.size for f in files) / (1024 * 1024)
    log.info(f"Starting conversion of {len(files)} files ({total_mb:.1f} MB) "
             f"with {config.workers} workers")
    _log_system_memory(log)

    return run_batch(
        files,
        partial(convert_file, config=config, log=log),
        max_workers=config.workers,
        show_progress=config.show_progress,
        log=log,
    )


def summarize_results(results: Sequence[ConversionResult]) -> ConversionSummary:
    """Tally successes, failures and byte totals of successful conversions."""
    summary = ConversionSummary()
    for result in results:
        if result.succeeded:
            summary.converted += 1
            summary.input_bytes += result.input_size
            summary.output_bytes += result.output_size
        else:
            summary.failed += 1
            summary.failures.append(result)
    return summary
