"""
This module contains helper functions for formatting data into human-readable strings.
These functions are used by the descriptors, the comparison report and the logs to
present bit rates, file sizes and elapsed times in a clear and consistent way.

All functions are pure. Negative or NaN input is the caller's responsibility.
"""

from datetime import timedelta
from pathlib import Path
from typing import Iterable, Optional


def format_bit_rate(bits_per_second: Optional[float]) -> str:
    """
    Converts a bit rate in bits per second to a decimal-unit string.

    Args:
        bits_per_second: The raw rate, or None when the probe did not report one.

    Returns:
        "" for None, "2.50 Mb/s" from one million upwards, "1.50 Kb/s" from one
        thousand upwards, otherwise the integer value, e.g. "999 b/s".
    """
    if bits_per_second is None:
        return ""
    if bits_per_second >= 1_000_000:
        return f"{bits_per_second / 1_000_000:.2f} Mb/s"
    if bits_per_second >= 1_000:
        return f"{bits_per_second / 1_000:.2f} Kb/s"
    return f"{int(bits_per_second)} b/s"


def formatted_size(size_bytes: float) -> str:
    """
    Converts a size in bytes to a human-readable string using binary units.

    Args:
        size_bytes: The size of the file in bytes.

    Returns:
        A formatted string with the appropriate unit.
        For example, 512 becomes "512 Bytes", 1536 becomes "1.50 KB", and
        2097152 becomes "2.00 MB". Sizes beyond petabytes stay in PB.
    """
    if size_bytes < 1024:
        return f"{int(size_bytes)} Bytes"

    units = ["KB", "MB", "GB", "TB", "PB"]
    size = size_bytes / 1024.0
    # Iterate through units until the size is less than the next factor of 1024.
    for unit in units[:-1]:
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} {units[-1]}"


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta object into a "HH:MM:SS" string.

    Returns "00:00:00" if the input is not a valid timedelta object.
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    total_seconds = int(td_object.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def format_percent(value: Optional[float]) -> str:
    """Formats a signed percentage, e.g. -25.0 -> "-25.00 %". None -> ""."""
    if value is None:
        return ""
    return f"{value:+.2f} %"


def contains_any_extensions(file_path_obj: Path, extensions_to_check: Iterable[str]) -> bool:
    """
    Checks if a file's extension is present in a given list (case-insensitive).

    Args:
        file_path_obj: A `pathlib.Path` object for the file to check.
        extensions_to_check: File extensions, with or without the leading dot.

    Returns:
        True if the file's extension is in the list, False otherwise.
    """
    normalized_extensions = {
        ext.lower() if ext.startswith(".") else f".{ext.lower()}"
        for ext in extensions_to_check
    }
    if not normalized_extensions:
        return False
    return file_path_obj.suffix.lower() in normalized_extensions
