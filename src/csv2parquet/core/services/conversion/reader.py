"""
Lenient delimited-text reading shared by the schema detector and the streaming pass.
"""
import csv
import sys
from pathlib import Path
from typing import IO, Iterator, List, Union


def _raise_field_size_limit():
    """Lift csv's 128 KiB per-field cap so long text cells are read, not rejected."""
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return
        except OverflowError:
            # C long is narrower than sys.maxsize on some platforms
            limit = int(limit / 10)


_raise_field_size_limit()


def make_csv_reader(handle: IO[str], delimiter: str) -> Iterator[List[str]]:
    """
    csv.reader over an open text handle.

    Quoting is non-strict: a stray quote inside an unquoted field is kept as
    data instead of failing the row. A row that still cannot be parsed makes
    ``next()`` raise ``csv.Error``; the reader stays usable for the rows after it.
    """
    return csv.reader(handle, delimiter=delimiter, quotechar='"', doublequote=True, strict=False)


def open_csv(path: Union[str, Path], encoding: str = "utf-8") -> IO[str]:
    """Open a CSV file for reading; undecodable bytes are replaced rather than fatal."""
    return open(path, "r", encoding=encoding, errors="replace", newline="")
