"""
Formatting and path utilities for Launcher Sync.
"""

from pathlib import Path
from typing import Union


# ============================================================================
# Cross-platform path utilities
# ============================================================================

def to_posix(path: Union[str, Path]) -> str:
    """
    Convert a path to a posix-style string (forward slashes).

    Works consistently across platforms - use this instead of str(path)
    when storing or comparing paths.
    """
    if isinstance(path, Path):
        return path.as_posix()
    return path.replace("\\", "/")


def relative_posix(path: Path, base: Path) -> str:
    """
    Get the relative path as a posix-style string.

    Raises ValueError if path is not under base.
    """
    return to_posix(path.relative_to(base))


# ============================================================================
# Size and duration formatting
# ============================================================================

def format_size(size_bytes: float) -> str:
    """Format bytes as human readable string."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} PB"


def format_speed(bytes_per_second: float) -> str:
    """Format a transfer rate, e.g. '1.5 MB/s'."""
    return f"{format_size(bytes_per_second)}/s"


def format_duration(seconds: float) -> str:
    """Format seconds as human readable duration."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    else:
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"
