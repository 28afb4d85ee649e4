"""
Manifest generation for Launcher Sync (content owner side).

Walks an installation, skips ignored paths, hashes every remaining file in
parallel and writes hash-file.json into the installation root.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import quote

from ..core.constants import DEFAULT_IGNORED_PATHS, MANIFEST_FILE
from ..core.errors import FileIOError
from ..core.files import collect_files, hash_file
from ..core.formatting import format_duration, format_size, relative_posix
from ..core.progress import AtomicCounter, ManifestScanProgress, ProgressChannel, emit
from .manifest import FileRecord, Manifest

logger = logging.getLogger(__name__)


def build_file_url(file_server_url: str, rel_path: str) -> str:
    """Download URL for a file: <server>/files/<relative path>."""
    return f"{file_server_url.rstrip('/')}/files/{quote(rel_path, safe='/')}"


class ManifestGenerator:
    """
    Parallel manifest builder.

    `processed_files` and `total_size` are exact after generate() returns,
    whatever order the workers finish in.
    """

    def __init__(
        self,
        root: Path,
        file_server_url: str,
        ignored_paths: Iterable[str] = DEFAULT_IGNORED_PATHS,
        channel: Optional[ProgressChannel] = None,
        max_workers: Optional[int] = None,
    ):
        self.root = Path(root)
        self.file_server_url = file_server_url
        self.ignored_paths = tuple(ignored_paths)
        self.channel = channel
        self.max_workers = max_workers or os.cpu_count() or 4
        self.processed_files = AtomicCounter()
        self.total_size = AtomicCounter()
        self.elapsed = 0.0

    def _process(self, path: Path, total_files: int) -> FileRecord:
        rel_path = relative_posix(path, self.root)
        logger.debug("Processing file: %s", rel_path)

        file_hash = hash_file(path)
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileIOError(f"Failed to stat file {path}: {e}") from e
        record = FileRecord(
            path=rel_path,
            hash=file_hash,
            size=size,
            url=build_file_url(self.file_server_url, rel_path),
        )

        total_size = self.total_size.add(size)
        processed = self.processed_files.add(1)
        emit(self.channel, ManifestScanProgress(
            current_file=rel_path,
            progress=processed / total_files * 100,
            processed_files=processed,
            total_files=total_files,
            total_size=total_size,
        ))
        return record

    def generate(self) -> Manifest:
        """
        Hash every non-ignored file under root.

        Records keep walk order. The first per-file error cancels the
        remaining work and is raised.
        """
        start_time = time.time()
        paths = collect_files(self.root, self.ignored_paths)
        total_files = len(paths)
        logger.info("Total files to process: %d", total_files)

        records: List[Optional[FileRecord]] = [None] * total_files
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._process, path, total_files): index
                for index, path in enumerate(paths)
            }
            try:
                for future in as_completed(futures):
                    records[futures[future]] = future.result()
            except BaseException:
                for f in futures:
                    f.cancel()
                logger.error("Manifest generation aborted under %s", self.root)
                raise

        self.elapsed = time.time() - start_time
        logger.info(
            "Hash file generation completed in %s: %d files, %s",
            format_duration(self.elapsed),
            self.processed_files.value,
            format_size(self.total_size.value),
        )
        return Manifest(files=records)


def generate_manifest(
    root: Path,
    file_server_url: str,
    ignored_paths: Iterable[str] = DEFAULT_IGNORED_PATHS,
    channel: Optional[ProgressChannel] = None,
    max_workers: Optional[int] = None,
) -> Manifest:
    """Build the manifest for an installation without writing it."""
    generator = ManifestGenerator(root, file_server_url, ignored_paths, channel, max_workers)
    return generator.generate()


def write_manifest(
    root: Path,
    file_server_url: str,
    ignored_paths: Iterable[str] = DEFAULT_IGNORED_PATHS,
    channel: Optional[ProgressChannel] = None,
    max_workers: Optional[int] = None,
) -> Tuple[ManifestGenerator, Manifest, Path]:
    """
    Generate the manifest and save it as hash-file.json in root.

    Returns:
        Tuple of (generator with final counters, manifest, output path)
    """
    root = Path(root)
    generator = ManifestGenerator(root, file_server_url, ignored_paths, channel, max_workers)
    manifest = generator.generate()
    output_path = root / MANIFEST_FILE
    manifest.save(output_path)
    return generator, manifest, output_path
