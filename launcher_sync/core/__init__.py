"""
Core utilities shared by the manifest and sync packages.
"""

from .errors import (
    SyncError,
    FileIOError,
    NetworkError,
    IntegrityError,
    FormatError,
    ConfigError,
    SyncCancelled,
)
from .files import is_excluded, iter_files, collect_files, hash_file
from .formatting import to_posix, relative_posix, format_size, format_speed, format_duration
from .locks import ReadWriteLock
from .progress import (
    ProgressEvent,
    ManifestScanProgress,
    FileCheckProgress,
    FileCheckCompleted,
    DownloadProgress,
    DownloadComplete,
    AtomicCounter,
    ProgressChannel,
    ProgressPump,
)

__all__ = [
    # Errors
    "SyncError",
    "FileIOError",
    "NetworkError",
    "IntegrityError",
    "FormatError",
    "ConfigError",
    "SyncCancelled",
    # Files
    "is_excluded",
    "iter_files",
    "collect_files",
    "hash_file",
    # Formatting
    "to_posix",
    "relative_posix",
    "format_size",
    "format_speed",
    "format_duration",
    # Concurrency
    "ReadWriteLock",
    "AtomicCounter",
    # Progress
    "ProgressEvent",
    "ManifestScanProgress",
    "FileCheckProgress",
    "FileCheckCompleted",
    "DownloadProgress",
    "DownloadComplete",
    "ProgressChannel",
    "ProgressPump",
]
