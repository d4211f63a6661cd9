"""
File system helpers shared by the logging setup and the conversion service.
"""
from os import remove, scandir, path, stat, makedirs
from shutil import rmtree
from typing import Optional, Union

BYTES_PER_MB = 1024 * 1024


def get_file_size(file_path) -> int:
    """
    This function retrieves the size of a file in bytes.

    Args:
        file_path (str | Path): The path to the file.

    Returns:
        int: The size of the file in bytes.

    Raises:
        OSError: If the file does not exist or cannot be accessed.
    """
    try:
        return stat(file_path).st_size
    except OSError as e:
        raise OSError(f"Error accessing file: {file_path}. Reason: {e}") from e


def makedir(folder_name) -> bool:
    """
    Creates a folder (and its parents) if it does not exist yet.

    Args:
        folder_name (str | Path): The folder to create.

    Returns:
        bool: True if the folder was created, False if it already existed.
    """
    if path.isdir(folder_name):
        return False

    makedirs(folder_name, exist_ok=True)
    return True


def convert_to_bytes(size: Union[str, int]) -> Optional[int]:
    """
    This function converts a size string (e.g., "22K", "128M", "1G") into bytes.

    Plain integers and digit-only strings are taken as a byte count.

    Args:
        size (str | int): The size to convert.

    Returns:
        int: The size in bytes, or None if the format is invalid.
    """
    if isinstance(size, int):
        return size

    size_str = size.strip().upper()
    if size_str.endswith("B"):
        size_str = size_str[:-1]
    if size_str.isdigit():
        return int(size_str)
    if not size_str:
        return None

    unit_multiplier = {"K": 1024, "M": 1024 * 1024, "G": 1024 * 1024 * 1024}
    size_unit = size_str[-1]
    if size_unit not in unit_multiplier:
        return None

    try:
        size_value = float(size_str[:-1])
    except ValueError:
        return None

    return int(size_value * unit_multiplier[size_unit])


def to_megabytes(size_bytes: int) -> float:
    """Bytes to (binary) megabytes, for log messages."""
    return size_bytes / BYTES_PER_MB


def clear_latest_items(dir_path: str, n_to_keep: int) -> None:
    """
    Clears items (files or folders) in the specified directory, keeping only
    the `n_to_keep` most recent ones.

    Items are sorted by modification time (oldest first) and removed from the
    front of that list until only `n_to_keep` items remain.

    Args:
        dir_path (str): The path to the directory containing the items.
        n_to_keep (int): The number of most recent items to keep.

    Raises:
        FileNotFoundError: If the specified `dir_path` is not found.
        OSError: If the directory cannot be scanned.
    """
    if not path.exists(dir_path):
        raise FileNotFoundError(f"Path not found: {dir_path}")

    try:
        all_items = sorted(scandir(dir_path), key=lambda entry: entry.stat().st_mtime)
    except OSError as e:
        raise OSError(f"Error scanning directory {dir_path}: {e}") from e

    num_items_to_delete = len(all_items) - n_to_keep

    for item_to_delete in all_items[:max(num_items_to_delete, 0)]:
        try:
            if item_to_delete.is_file() or item_to_delete.is_symlink():
                remove(item_to_delete.path)
            elif item_to_delete.is_dir():
                rmtree(item_to_delete.path)
        except OSError as e:
            # Logging is not configured yet at this point
            print(f"Error deleting item {item_to_delete.path}: {e}")
