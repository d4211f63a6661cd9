"""
csv2parquet - convert delimited text tables into Parquet files.

Column types are inferred per file from a bounded sample of rows, then the
whole file is streamed through that schema into a columnar output.
"""

__version__ = "0.1.0"
