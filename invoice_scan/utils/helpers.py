"""
Helper Utilities Module.

Small generic helpers shared across the pipeline.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - generate_scan_id: Fresh identifier for a pipeline run
    - elapsed_ms: Milliseconds since a perf_counter start mark
    - clamp: Bound a value to a closed interval
"""

import time
import uuid
from pathlib import Path
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it and its parents if needed.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the lowercase file extension, including the dot.

    Example:
        >>> get_file_extension("receipt.JPG")
        ".jpg"
        >>> get_file_extension("noextension")
        ""
    """
    return Path(filepath).suffix.lower()


def generate_scan_id() -> str:
    """Generate a fresh scan identifier."""
    return str(uuid.uuid4())


def elapsed_ms(start: float) -> int:
    """
    Milliseconds elapsed since ``start``.

    Args:
        start: A value previously returned by time.perf_counter().
    """
    return int((time.perf_counter() - start) * 1000)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value to the closed interval [low, high]."""
    return max(low, min(high, value))
