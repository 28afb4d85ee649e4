"""
Sync operations module.

Handles the hash cache, download planning and downloading.
"""

from .cache import HashCache, CacheEntry, mtime_of
from .download_planner import (
    DownloadPlan,
    plan_downloads,
    check_update_required,
    check_file,
    REASON_MISSING,
    REASON_UNREADABLE,
    REASON_SIZE_MISMATCH,
    REASON_HASH_MISMATCH,
)
from .downloader import FileDownloader, transfer_speed

__all__ = [
    # Cache
    "HashCache",
    "CacheEntry",
    "mtime_of",
    # Download planning
    "DownloadPlan",
    "plan_downloads",
    "check_update_required",
    "check_file",
    "REASON_MISSING",
    "REASON_UNREADABLE",
    "REASON_SIZE_MISMATCH",
    "REASON_HASH_MISMATCH",
    # Downloader
    "FileDownloader",
    "transfer_speed",
]
