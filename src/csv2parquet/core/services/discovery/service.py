"""
Source discovery: turn the configured input path into the list of CSV files to convert.
"""
from pathlib import Path
from typing import List, Union

from ...constants import CSV_EXTENSION
from ..conversion.models import SourceFile, SourceResolutionError


def resolve_source_files(input_path: Union[str, Path], extension: str = CSV_EXTENSION) -> List[SourceFile]:
    """
    Expand ``input_path`` into the ordered list of files to convert.

    A directory yields every regular file directly inside it whose name ends
    with ``extension`` (no recursion), sorted by name. Any other existing path
    yields a single-element list.

    Raises:
        SourceResolutionError: If the path cannot be stat'ed or the directory cannot be listed.
    """
    path = Path(input_path)
    try:
        info = path.stat()
    except OSError as e:
        raise SourceResolutionError(path, "stat input", e) from e

    if not path.is_dir():
        return [SourceFile(path=path, size=info.st_size)]

    try:
        matches = sorted(path.glob(f"*{extension}"))
        files = [
            SourceFile(path=match, size=match.stat().st_size)
            for match in matches
            if match.is_file()
        ]
    except OSError as e:
        raise SourceResolutionError(path, "glob", e) from e

    return files
