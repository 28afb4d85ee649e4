"""
File system utilities for Launcher Sync.

Path filtering, tree walking and streaming content hashes.
"""

import hashlib
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from .constants import HASH_CHUNK_SIZE
from .errors import FileIOError
from .formatting import relative_posix


def is_excluded(path: Path, root: Path, ignored_paths: Iterable[str]) -> bool:
    """
    Check if a path is excluded from manifests and update checks.

    A path is excluded when it sits directly in the root folder, or when its
    root-relative posix form starts with any of the ignored prefixes.
    Prefixes are matched literally (no globbing).
    """
    try:
        rel_path = relative_posix(Path(path), Path(root))
    except ValueError:
        # Not under root at all
        return True

    if "/" not in rel_path:
        return True

    return any(rel_path.startswith(prefix) for prefix in ignored_paths)


def iter_files(root: Path) -> Iterator[Path]:
    """
    Yield every regular file under root, in sorted walk order.

    Symlinks are not followed. Unreadable directories raise FileIOError.
    """
    def on_error(e: OSError):
        raise FileIOError(f"Failed to read directory {e.filename}: {e}") from e

    for dir_path, dir_names, file_names in os.walk(root, onerror=on_error):
        dir_names.sort()
        for name in sorted(file_names):
            path = Path(dir_path) / name
            if path.is_file() and not path.is_symlink():
                yield path


def collect_files(root: Path, ignored_paths: Iterable[str]) -> List[Path]:
    """Walk root and return every file not excluded by the path filter."""
    ignored = tuple(ignored_paths)
    return [p for p in iter_files(root) if not is_excluded(p, root, ignored)]


def hash_file(path: Union[str, Path], chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """
    Compute the SHA-256 hex digest of a file.

    Reads in fixed-size chunks so large files are never fully buffered.
    Raises FileIOError if the file can't be opened or read. No retries.
    """
    hasher = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                hasher.update(chunk)
    except OSError as e:
        raise FileIOError(f"Failed to hash file {path}: {e}") from e
    return hasher.hexdigest()
