# Project: csv2parquet
# Objective: Convert delimited text files into typed Parquet files
import argparse
import sys
from typing import List, Optional

from .setup.config import ConfigError, get_config
from .setup.logging import configure_logging, logger
from .core.services.conversion.service import convert_all, summarize_results
from .utils.misc import to_megabytes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csv2parquet",
        description="Convert CSV files to Parquet with per-column type detection.",
        epilog="""
Examples:
  %(prog)s --input data/orders.csv
    Convert one file; the Parquet file is written next to it

  %(prog)s --input data/ --output parquet/ --keep
    Convert every *.csv in data/ into parquet/ and keep the originals

  %(prog)s --config config.yaml --delimiter ";" --sample-rows 1000
    Use a config file, overriding some of its settings
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--config", default=None, help="Path to YAML config file (default: config.yaml if present)")
    parser.add_argument("--input", dest="input_path", help="Input CSV file or directory")
    parser.add_argument("--output", dest="output_dir", help="Output directory (default: same as input)")
    parser.add_argument(
        "--keep", action="store_true", help="Keep original CSV files after conversion"
    )
    parser.add_argument("--log-level", help="Log level (debug, info, warn, error)")
    parser.add_argument("--batch-size", type=int, help="Rows per write batch and progress log")
    parser.add_argument("--delimiter", help="CSV delimiter character")
    parser.add_argument("--sample-rows", type=int, help="Number of rows to sample for type detection")

    tuning = parser.add_argument_group('Tuning')
    tuning.add_argument("--workers", type=int, help="Files converted concurrently (default: 4)")
    tuning.add_argument("--row-group-size", help='Parquet row group size, e.g. "128M"')
    tuning.add_argument("--compression", help="Parquet compression (snappy, gzip, zstd, lz4, brotli, none)")
    tuning.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict:
    """CLI flags that were given; unset flags leave lower-precedence values alone."""
    overrides = {
        "input_path": args.input_path,
        "output_dir": args.output_dir,
        "log_level": args.log_level,
        "batch_size": args.batch_size if args.batch_size and args.batch_size > 0 else None,
        "delimiter": args.delimiter or None,
        "sample_rows": args.sample_rows if args.sample_rows and args.sample_rows > 0 else None,
        "workers": args.workers,
        "row_group_size": args.row_group_size,
        "compression": args.compression,
    }
    if args.keep:
        overrides["delete_original"] = False
    if args.no_progress:
        overrides["show_progress"] = False
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_config(overrides=_overrides_from_args(args), config_path=args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(
        environment=config.environment.value,
        level=config.log_level,
        log_dir=str(config.log_dir) if config.log_dir else "",
    )
    logger.info(f"csv2parquet starting - input: {config.input_path}")

    results = convert_all(config)
    summary = summarize_results(results)

    for failure in summary.failures:
        logger.error(f"FAILED {failure.input_path}: {failure.error}")

    logger.info(f"Done: {summary.converted} converted, {summary.failed} failed")
    if summary.converted > 0:
        logger.info(
            f"Space: {to_megabytes(summary.input_bytes):.1f} MB input -> "
            f"{to_megabytes(summary.output_bytes):.1f} MB parquet "
            f"({to_megabytes(summary.saved_bytes):.1f} MB saved)"
        )

    return 1 if summary.has_failures else 0


if __name__ == "__main__":
    sys.exit(main())
