"""
Shared fixtures: CSV files on disk and converter configurations.
"""
import csv
from pathlib import Path
from typing import List, Optional

import pytest

from csv2parquet.setup.config.models import ConverterConfig


def write_csv(path: Path, lines: List[str]) -> Path:
    """Write raw CSV lines (already delimited) to ``path``."""
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def csv_file_factory(tmp_path):
    """Create CSV files under a temporary directory."""
    def _create(name: str, lines: List[str], directory: Optional[Path] = None) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        return write_csv(target_dir / name, lines)

    return _create


@pytest.fixture
def make_config():
    """ConverterConfig with test-friendly defaults (keep sources, no progress bar, no log files)."""
    def _make(input_path, **overrides) -> ConverterConfig:
        values = {
            "input_path": input_path,
            "delete_original": False,
            "show_progress": False,
            "log_dir": None,
            "environment": "testing",
        }
        values.update(overrides)
        return ConverterConfig(**values)

    return _make


@pytest.fixture
def small_field_limit():
    """Make any CSV field longer than 20 characters a malformed row."""
    previous = csv.field_size_limit(20)
    yield 20
    csv.field_size_limit(previous)
