"""
Exception types for Launcher Sync.

Every error carries a message naming the failing file, path or URL.
Cache load problems are never raised; they are logged and the cache starts empty.
"""


class SyncError(Exception):
    """Base class for all synchronization errors."""


class FileIOError(SyncError):
    """Local filesystem open/read/write/create failure."""


class NetworkError(SyncError):
    """Request failure, non-success HTTP status or interrupted stream."""


class IntegrityError(SyncError):
    """Downloaded content does not hash to the manifest value."""

    def __init__(self, path: str, expected: str, actual: str):
        super().__init__(f"Hash mismatch for file: {path} (expected {expected}, got {actual})")
        self.path = path
        self.expected = expected
        self.actual = actual


class FormatError(SyncError):
    """Manifest or cache document is malformed."""


class ConfigError(SyncError):
    """A required setting (endpoint URL, installation path) is unset."""


class SyncCancelled(SyncError):
    """Raised when a session is cancelled mid-operation."""
