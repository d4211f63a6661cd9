"""
Pydantic configuration models with validation.

ConverterConfig holds everything the conversion core reads: where the input
lives, where outputs go, how the delimited text is parsed and how the Parquet
writer is sized. The loader fills it from defaults, a YAML file, environment
variables and command-line flags, in that order of precedence.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
from typing import Literal, Optional
from pathlib import Path

from ...core.constants import DEFAULT_ROW_GROUP_BYTES
from ...utils.misc import convert_to_bytes

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class ConverterConfig(BaseModel):
    """CSV to Parquet conversion configuration."""

    model_config = ConfigDict(validate_assignment=True)

    input_path: Path = Field(description="Input CSV file or directory")
    output_dir: Optional[Path] = Field(
        default=None,
        description="Output directory (default: same directory as each input)"
    )
    delete_original: bool = Field(
        default=True,
        description="Delete each source file after a successful conversion"
    )
    log_level: str = Field(default="info", description="Log level (debug, info, warning, error)")
    batch_size: int = Field(
        default=10000,
        ge=1,
        description="Rows per record batch; also the progress logging granularity"
    )
    delimiter: str = Field(default=",", description="CSV delimiter character")
    sample_rows: int = Field(
        default=100,
        ge=1,
        description="Number of rows to sample for type detection"
    )
    workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Maximum number of files converted concurrently"
    )
    row_group_size: int = Field(
        default=DEFAULT_ROW_GROUP_BYTES,
        ge=1024,
        description="Parquet row group size threshold in bytes"
    )
    compression: Literal["snappy", "gzip", "zstd", "lz4", "brotli", "none"] = Field(
        default="snappy",
        description="Parquet compression algorithm"
    )
    encoding: str = Field(default="utf-8", description="Text encoding of the input files")
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    log_dir: Optional[Path] = Field(
        default=Path("logs"),
        description="Directory for JSON log files; empty disables file logging"
    )
    show_progress: bool = Field(default=True, description="Show a progress bar while converting")

    @field_validator('delimiter', mode='before')
    @classmethod
    def validate_delimiter(cls, v):
        if isinstance(v, str) and v.lower() in ("\\t", "tab"):
            v = "\t"
        if not isinstance(v, str) or len(v) != 1:
            raise ValueError('Delimiter must be a single character')
        if v in ('"', "\r", "\n"):
            raise ValueError('Delimiter cannot be a quote or line break character')
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        level = str(v).strip().lower()
        if level == "warn":
            level = "warning"
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @field_validator('row_group_size', mode='before')
    @classmethod
    def validate_row_group_size(cls, v):
        size = convert_to_bytes(v) if isinstance(v, (str, int)) else None
        if size is None:
            raise ValueError('Row group size must be a byte count or a size like "128M"')
        return size

    @field_validator('log_dir', mode='before')
    @classmethod
    def validate_log_dir(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator('output_dir', mode='before')
    @classmethod
    def validate_output_dir(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def compression_codec(self) -> Optional[str]:
        """Codec name as pyarrow expects it."""
        return None if self.compression == "none" else self.compression
