"""
Persistent hash cache for Launcher Sync.

Maps relative path -> {hash, last_modified} so unchanged files are not
re-hashed on every update check. An entry is only trusted while the file's
modification time equals the recorded one.

The cache file is loaded once per diff pass and fully rewritten once at the
end. A missing or unreadable cache file is never fatal: it just means an
empty cache.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional

from ..core.errors import FileIOError
from ..core.locks import ReadWriteLock

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def mtime_of(stat_result: os.stat_result) -> datetime:
    """Modification time of a stat result as an aware UTC datetime (microsecond precision)."""
    return EPOCH + timedelta(microseconds=stat_result.st_mtime_ns // 1000)


def parse_timestamp(value) -> datetime:
    """
    Parse a stored last_modified value.

    Accepts RFC-3339 strings, epoch seconds, and the
    {"secs_since_epoch": .., "nanos_since_epoch": ..} object form.
    Raises ValueError for anything else.
    """
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return EPOCH + timedelta(seconds=value)
    if isinstance(value, dict) and "secs_since_epoch" in value:
        secs = int(value["secs_since_epoch"])
        nanos = int(value.get("nanos_since_epoch", 0))
        return EPOCH + timedelta(seconds=secs, microseconds=nanos // 1000)
    raise ValueError(f"Invalid timestamp: {value!r}")


@dataclass(frozen=True)
class CacheEntry:
    """As of `last_modified`, the file's content hash was `hash`."""
    hash: str
    last_modified: datetime

    def to_dict(self) -> dict:
        return {"hash": self.hash, "last_modified": self.last_modified.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "CacheEntry":
        if not isinstance(data, dict) or not isinstance(data.get("hash"), str):
            raise ValueError(f"Invalid cache entry: {data!r}")
        return cls(hash=data["hash"], last_modified=parse_timestamp(data.get("last_modified")))


class HashCache:
    """
    Thread-safe path -> CacheEntry map backed by a JSON file.

    Lookups take a shared read lock, updates an exclusive write lock.
    Concurrent updates to the same path: last writer wins.
    """

    def __init__(self, path: Optional[Path] = None, entries: Optional[Dict[str, CacheEntry]] = None):
        self.path = path
        self._entries: Dict[str, CacheEntry] = dict(entries or {})
        self._lock = ReadWriteLock()

    @classmethod
    def load(cls, path: Path) -> "HashCache":
        """
        Load cache from file.

        Missing file or unparseable JSON -> empty cache. Individual malformed
        entries are skipped.
        """
        cache = cls(path)
        if not path.exists():
            logger.debug("No hash cache at %s, starting empty", path)
            return cache

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Could not load hash cache %s, starting empty: %s", path, e)
            return cache

        if not isinstance(data, dict):
            logger.warning("Hash cache %s is not a JSON object, starting empty", path)
            return cache

        skipped = 0
        for rel_path, raw in data.items():
            try:
                cache._entries[rel_path] = CacheEntry.from_dict(raw)
            except (ValueError, TypeError, OverflowError):
                skipped += 1
        if skipped:
            logger.warning("Skipped %d malformed hash cache entries in %s", skipped, path)
        logger.debug("Loaded %d hash cache entries from %s", len(cache._entries), path)
        return cache

    def save(self, path: Optional[Path] = None):
        """
        Write the whole cache to disk (full replace).

        Raises FileIOError if the file can't be written.
        """
        path = path or self.path
        if not path:
            raise ValueError("No path set for hash cache")

        with self._lock.read():
            data = {p: e.to_dict() for p, e in self._entries.items()}

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, path)
        except OSError as e:
            raise FileIOError(f"Failed to save hash cache {path}: {e}") from e
        logger.debug("Saved %d hash cache entries to %s", len(data), path)

    def get(self, rel_path: str) -> Optional[CacheEntry]:
        with self._lock.read():
            return self._entries.get(rel_path)

    def lookup(self, rel_path: str, last_modified: datetime) -> Optional[str]:
        """Cached hash for rel_path if the entry is still valid for this mtime."""
        entry = self.get(rel_path)
        if entry is not None and entry.last_modified == last_modified:
            return entry.hash
        return None

    def update(self, rel_path: str, file_hash: str, last_modified: datetime):
        with self._lock.write():
            self._entries[rel_path] = CacheEntry(hash=file_hash, last_modified=last_modified)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def __contains__(self, rel_path: str) -> bool:
        with self._lock.read():
            return rel_path in self._entries
