import re

CSV_EXTENSION = ".csv"
PARQUET_EXTENSION = ".parquet"

# Default upper bound on files converted at the same time
MAX_CONCURRENT_CONVERSIONS = 4

UTF8_BOM = "\ufeff"
HEADER_PLACEHOLDER = "column_{position}"
HEADER_REPLACED_CHARS = (" ", ".")

BOOL_LITERALS = {"true": True, "false": False}

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# Date/time shapes recognised during sampling. Values matching them are
# still stored as text.
DATE_PATTERNS = (
    ("date", re.compile(r"^\d{4}-\d{2}-\d{2}$")),
    ("day_month_year", re.compile(r"^(0[1-9]|[12]\d|3[01])/(0[1-9]|1[0-2])/\d{4}$")),
    ("month_day_year", re.compile(r"^(0[1-9]|1[0-2])/(0[1-9]|[12]\d|3[01])/\d{4}$")),
    ("iso_datetime", re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}$")),
    ("datetime", re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")),
    (
        "rfc3339",
        re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"),
    ),
)

# Parquet row group threshold in bytes
DEFAULT_ROW_GROUP_BYTES = 128 * 1024 * 1024
