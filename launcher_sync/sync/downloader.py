"""
File downloader for Launcher Sync.

Downloads a plan one file at a time, in plan order, streaming each response
straight to disk. Every file is verified against its manifest hash before
the next one starts; the first failure aborts the whole run.
Uses asyncio + aiohttp for the transfer.
"""

import asyncio
import logging
import os
import ssl
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

import aiohttp
import certifi

from ..core.constants import DOWNLOAD_CHUNK_SIZE, DOWNLOAD_PROGRESS_INTERVAL
from ..core.errors import FileIOError, IntegrityError, NetworkError, SyncCancelled
from ..core.files import hash_file
from ..core.formatting import format_size, format_speed
from ..core.progress import DownloadComplete, DownloadProgress, ProgressChannel, emit
from ..manifest.manifest import FileRecord
from .cache import HashCache, mtime_of
from .download_planner import DownloadPlan, local_path_for

logger = logging.getLogger(__name__)


def get_certifi_path() -> str:
    """Get path to certifi CA bundle, handling PyInstaller bundles."""
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        bundled_cert = os.path.join(sys._MEIPASS, 'certifi', 'cacert.pem')
        if os.path.exists(bundled_cert):
            return bundled_cert
    return certifi.where()


def transfer_speed(downloaded: int, elapsed: float) -> float:
    """Bytes per second; with no measurable elapsed time, the byte count itself."""
    if elapsed > 0:
        return downloaded / elapsed
    return float(downloaded)


class FileDownloader:
    """
    Sequential, hash-verified downloader.

    One network stream is in flight at a time. Progress events are throttled
    to one per `progress_interval` seconds per file, plus a final 100% event
    once the file is verified. With a cache, every verified hash is recorded
    against the new mtime and the cache is saved once when the run ends.
    """

    def __init__(
        self,
        local_root: Path,
        channel: Optional[ProgressChannel] = None,
        timeout: Tuple[int, int] = (10, 120),
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
        progress_interval: float = DOWNLOAD_PROGRESS_INTERVAL,
        cancel_event: Optional[threading.Event] = None,
        cache: Optional[HashCache] = None,
    ):
        self.local_root = Path(local_root)
        self.channel = channel
        self.timeout = aiohttp.ClientTimeout(connect=timeout[0], sock_read=timeout[1])
        self.chunk_size = chunk_size
        self.progress_interval = progress_interval
        self.cancel_event = cancel_event
        self.cache = cache

    def _check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SyncCancelled("Download cancelled")

    def _create_session(self) -> aiohttp.ClientSession:
        ssl_context = ssl.create_default_context(cafile=get_certifi_path())
        connector = aiohttp.TCPConnector(limit=1, ssl=ssl_context)
        return aiohttp.ClientSession(timeout=self.timeout, connector=connector)

    async def _stream_to_file(
        self,
        session: aiohttp.ClientSession,
        record: FileRecord,
        file_path: Path,
        current_file_index: int,
        total_files: int,
        total_bytes: int,
        downloaded_before: int,
    ) -> Tuple[int, float]:
        """Stream one response to disk. Returns (bytes written, start time)."""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileIOError(f"Failed to create directory {file_path.parent}: {e}") from e

        downloaded = 0
        start_time = time.time()
        try:
            async with session.get(record.url) as response:
                response.raise_for_status()
                file_size = response.content_length
                if file_size is None:
                    file_size = record.size

                last_update = start_time
                with open(file_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        self._check_cancelled()
                        f.write(chunk)
                        downloaded += len(chunk)

                        now = time.time()
                        if now - last_update >= self.progress_interval or downloaded == file_size:
                            elapsed = now - start_time
                            emit(self.channel, DownloadProgress(
                                file_name=record.path,
                                progress=(downloaded / file_size * 100) if file_size else 100.0,
                                speed=transfer_speed(downloaded, elapsed),
                                downloaded_bytes=downloaded_before + downloaded,
                                total_bytes=total_bytes,
                                current_file_index=current_file_index,
                                total_files=total_files,
                                elapsed_time=elapsed,
                            ))
                            last_update = now

                    f.flush()
                    os.fsync(f.fileno())

        except aiohttp.ClientResponseError as e:
            raise NetworkError(f"HTTP {e.status} while downloading {record.path} from {record.url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Download failed for {record.path} from {record.url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Download timed out for {record.path} from {record.url}") from e
        except OSError as e:
            raise FileIOError(f"Failed to write {file_path}: {e}") from e

        return downloaded, start_time

    async def _download_file(
        self,
        session: aiohttp.ClientSession,
        record: FileRecord,
        current_file_index: int,
        total_files: int,
        total_bytes: int,
        downloaded_before: int,
    ) -> int:
        """Download and verify one file. Returns bytes downloaded."""
        file_path = local_path_for(self.local_root, record.path)
        logger.info("Downloading file: %s", record.path)

        try:
            downloaded, start_time = await self._stream_to_file(
                session, record, file_path,
                current_file_index, total_files, total_bytes, downloaded_before,
            )
        except SyncCancelled:
            file_path.unlink(missing_ok=True)
            raise

        loop = asyncio.get_running_loop()
        downloaded_hash = await loop.run_in_executor(None, hash_file, file_path)
        if downloaded_hash != record.hash.lower():
            logger.error("Hash mismatch for file: %s", record.path)
            file_path.unlink(missing_ok=True)
            raise IntegrityError(record.path, record.hash, downloaded_hash)

        if self.cache is not None:
            try:
                last_modified = mtime_of(file_path.stat())
            except OSError as e:
                raise FileIOError(f"Failed to stat downloaded file {file_path}: {e}") from e
            self.cache.update(record.path, downloaded_hash, last_modified)

        elapsed = time.time() - start_time
        emit(self.channel, DownloadProgress(
            file_name=record.path,
            progress=100.0,
            speed=transfer_speed(downloaded, elapsed),
            downloaded_bytes=downloaded_before + downloaded,
            total_bytes=total_bytes,
            current_file_index=current_file_index,
            total_files=total_files,
            elapsed_time=elapsed,
        ))
        logger.info(
            "File download completed: %s (%s at %s)",
            record.path, format_size(downloaded), format_speed(transfer_speed(downloaded, elapsed)),
        )
        return downloaded

    def _save_cache(self):
        """Persist hashes of verified downloads, even after a failed run."""
        if self.cache is None or self.cache.path is None:
            return
        try:
            self.cache.save()
        except FileIOError as e:
            logger.error("Failed to save hash cache: %s", e)

    async def download_all_async(
        self,
        plan: DownloadPlan,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> List[int]:
        """
        Download every file in the plan, in order.

        Returns bytes downloaded per file. Raises on the first failure
        (NetworkError, FileIOError, IntegrityError); later files are not
        attempted.
        """
        total_files = len(plan)
        if total_files == 0:
            logger.info("No files to download")
            emit(self.channel, DownloadComplete(total_files=0, downloaded_bytes=0))
            return []

        owns_session = session is None
        if owns_session:
            session = self._create_session()

        downloaded_sizes: List[int] = []
        downloaded_size = 0
        try:
            for index, record in enumerate(plan.files, 1):
                self._check_cancelled()
                file_size = await self._download_file(
                    session, record, index, total_files, plan.total_bytes, downloaded_size,
                )
                downloaded_size += file_size
                downloaded_sizes.append(file_size)
        finally:
            if owns_session:
                await session.close()
            self._save_cache()

        logger.info("Download complete for %d file(s), %s", total_files, format_size(downloaded_size))
        emit(self.channel, DownloadComplete(total_files=total_files, downloaded_bytes=downloaded_size))
        return downloaded_sizes

    def download_all(self, plan: DownloadPlan) -> List[int]:
        """Blocking wrapper around download_all_async()."""
        return asyncio.run(self.download_all_async(plan))
