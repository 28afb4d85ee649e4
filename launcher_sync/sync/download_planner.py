"""
Download planning for Launcher Sync.

Determines which files need to be downloaded by comparing the remote
manifest to the local installation, using the hash cache to skip
re-hashing files that haven't changed.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.constants import CHECK_REPORT_EVERY, DEFAULT_IGNORED_PATHS
from ..core.errors import FileIOError, FormatError
from ..core.files import hash_file, is_excluded
from ..core.formatting import format_duration, format_size
from ..core.progress import (
    AtomicCounter,
    FileCheckCompleted,
    FileCheckProgress,
    ProgressChannel,
    emit,
)
from ..manifest.manifest import FileRecord
from .cache import HashCache, mtime_of

logger = logging.getLogger(__name__)

# Why a file was put in the plan
REASON_MISSING = "missing"
REASON_UNREADABLE = "unreadable"
REASON_SIZE_MISMATCH = "size_mismatch"
REASON_HASH_MISMATCH = "hash_mismatch"


@dataclass(frozen=True)
class DownloadPlan:
    """Files to download, in remote manifest order, with their byte total."""
    files: Tuple[FileRecord, ...] = ()
    total_bytes: int = 0
    reasons: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, files: Iterable[FileRecord], reasons: Optional[Dict[str, str]] = None) -> "DownloadPlan":
        files = tuple(files)
        return cls(files=files, total_bytes=sum(f.size for f in files), reasons=dict(reasons or {}))

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self):
        return iter(self.files)

    @property
    def is_empty(self) -> bool:
        return not self.files


def local_path_for(local_root: Path, rel_path: str) -> Path:
    """
    Resolve a manifest path under the installation root.

    Raises FormatError for absolute paths or paths escaping the root.
    """
    pure = PurePosixPath(rel_path)
    if not pure.parts or pure.is_absolute() or ".." in pure.parts or ":" in pure.parts[0]:
        raise FormatError(f"Unsafe path in manifest: {rel_path!r}")
    return local_root.joinpath(*pure.parts)


def check_file(record: FileRecord, local_path: Path, cache: HashCache) -> Optional[str]:
    """
    Decide whether one file needs downloading.

    Returns the reason it must be downloaded, or None if it is current.
    Short-circuits at the first matching rule:
    missing -> unreadable metadata -> valid cache hit -> size mismatch -> hash.
    """
    if not local_path.exists():
        return REASON_MISSING

    try:
        stat = local_path.stat()
    except OSError:
        return REASON_UNREADABLE

    last_modified = mtime_of(stat)
    cached_hash = cache.lookup(record.path, last_modified)
    if cached_hash is not None and cached_hash == record.hash.lower():
        return None

    if stat.st_size != record.size:
        return REASON_SIZE_MISMATCH

    try:
        local_hash = hash_file(local_path)
    except FileIOError:
        return REASON_UNREADABLE

    # Cache the local hash even on mismatch; the download will replace it
    cache.update(record.path, local_hash, last_modified)

    if local_hash != record.hash.lower():
        return REASON_HASH_MISMATCH
    return None


def plan_downloads(
    remote_files: Iterable[FileRecord],
    local_root: Path,
    cache: HashCache,
    channel: Optional[ProgressChannel] = None,
    max_workers: Optional[int] = None,
    report_every: int = CHECK_REPORT_EVERY,
    ignored_paths: Iterable[str] = DEFAULT_IGNORED_PATHS,
) -> DownloadPlan:
    """
    Plan which files need to be downloaded.

    Files are checked in parallel; the plan keeps remote manifest order.
    The cache is saved once after every file has been checked (a failed save
    is logged, not raised).

    Args:
        remote_files: Records from the remote manifest
        local_root: Installation root
        cache: Hash cache, updated in place with freshly computed hashes
        channel: Progress channel for file_check_progress/completed events
        max_workers: Worker threads (default: CPU count)
        report_every: Emit a progress event every N checked files
        ignored_paths: Path filter prefixes; matching records are never checked

    Returns:
        DownloadPlan with the files to fetch and their total size
    """
    start_time = time.time()
    local_root = Path(local_root)
    ignored = tuple(ignored_paths)

    records: List[Tuple[FileRecord, Path]] = []
    for record in remote_files:
        local_path = local_path_for(local_root, record.path)
        if is_excluded(local_path, local_root, ignored):
            logger.debug("Ignoring %s (path filter)", record.path)
            continue
        records.append((record, local_path))

    total_files = len(records)
    logger.info("Checking %d file(s) against %s", total_files, local_root)

    processed_count = AtomicCounter()
    files_to_update_count = AtomicCounter()
    total_size = AtomicCounter()

    def check(item: Tuple[FileRecord, Path]) -> Optional[str]:
        record, local_path = item
        reason = check_file(record, local_path, cache)
        if reason is not None:
            files_to_update_count.add(1)
            total_size.add(record.size)
            logger.debug("Needs update (%s): %s", reason, record.path)

        current_count = processed_count.add(1)
        if current_count % report_every == 0 or current_count == total_files:
            emit(channel, FileCheckProgress(
                current_file=record.path,
                progress=current_count / total_files * 100,
                current_count=current_count,
                total_files=total_files,
                files_to_update=files_to_update_count.value,
                elapsed_time=time.time() - start_time,
            ))
        return reason

    with ThreadPoolExecutor(max_workers=max_workers or os.cpu_count() or 4) as executor:
        decisions = list(executor.map(check, records))

    reasons = {
        record.path: reason
        for (record, _), reason in zip(records, decisions)
        if reason is not None
    }
    plan = DownloadPlan.build(
        (record for (record, _), reason in zip(records, decisions) if reason is not None),
        reasons,
    )

    if cache.path is not None:
        try:
            cache.save()
        except FileIOError as e:
            logger.error("Failed to save hash cache: %s", e)

    total_time = time.time() - start_time
    emit(channel, FileCheckCompleted(
        total_files=total_files,
        files_to_update=len(plan),
        total_size=plan.total_bytes,
        total_time_seconds=total_time,
        average_time_per_file_ms=(total_time * 1000 / total_files) if total_files else 0.0,
    ))
    logger.info(
        "File comparison completed in %s. Files to update: %d (%s)",
        format_duration(total_time),
        len(plan),
        format_size(plan.total_bytes),
    )
    return plan


def check_update_required(
    remote_files: Iterable[FileRecord],
    local_root: Path,
    cache: HashCache,
    channel: Optional[ProgressChannel] = None,
    max_workers: Optional[int] = None,
) -> bool:
    """True if any file in the remote manifest needs downloading."""
    return not plan_downloads(remote_files, local_root, cache, channel, max_workers).is_empty
