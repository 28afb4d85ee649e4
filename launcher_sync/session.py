"""
Sync session: the context for one check/update/generate lifecycle.

Owns the configuration, the progress channel, the cancellation flag and any
background task started through it. Nothing here is process-global; two
sessions are fully independent (apart from sharing the cache file on disk,
which is not locked across processes).
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from .config import SyncConfig
from .core.constants import DEFAULT_IGNORED_PATHS
from .core.progress import ProgressChannel
from .manifest.fetch import check_server_connection, fetch_manifest
from .manifest.generator import ManifestGenerator, write_manifest
from .manifest.manifest import Manifest
from .sync.cache import HashCache
from .sync.download_planner import DownloadPlan, plan_downloads
from .sync.downloader import FileDownloader

logger = logging.getLogger(__name__)


class SyncTask:
    """
    Handle for work running in the background of a session.

    join() is the defined completion point: it returns the work's result or
    re-raises its exception.
    """

    def __init__(self, name: str, future: Future):
        self.name = name
        self._future = future

    @property
    def done(self) -> bool:
        return self._future.done()

    def join(self, timeout: Optional[float] = None):
        return self._future.result(timeout=timeout)


class SyncSession:
    """
    One synchronization lifecycle.

    Usage:
        with SyncSession(SyncConfig.from_env()) as session:
            plan = session.check_for_updates()
            session.download(plan)

    Closing the session cancels in-flight downloads cooperatively and waits
    for background tasks to finish before returning.
    """

    def __init__(self, config: SyncConfig, channel: Optional[ProgressChannel] = None):
        self.config = config
        self.channel = channel if channel is not None else ProgressChannel()
        self.cancel_event = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._tasks: List[SyncTask] = []
        self.cache: Optional[HashCache] = None

    def __enter__(self) -> "SyncSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def check_server(self) -> Tuple[bool, Optional[str]]:
        """Probe the manifest endpoint."""
        return check_server_connection(self.config.require_hash_file_url())

    def fetch_remote_manifest(self) -> Manifest:
        return fetch_manifest(self.config.require_hash_file_url(), timeout=self.config.request_timeout)

    def load_cache(self) -> HashCache:
        """Load the hash cache; the session keeps it for the downloads that follow."""
        self.cache = HashCache.load(self.config.cache_path)
        return self.cache

    def check_for_updates(self, remote: Optional[Manifest] = None) -> DownloadPlan:
        """Diff the remote manifest against the installation."""
        game_path = self.config.require_game_path()
        if remote is None:
            remote = self.fetch_remote_manifest()
        return plan_downloads(
            remote.files,
            game_path,
            self.load_cache(),
            channel=self.channel,
            max_workers=self.config.max_workers,
        )

    def download(self, plan: DownloadPlan) -> List[int]:
        """Download a plan (blocking)."""
        downloader = FileDownloader(
            self.config.require_game_path(),
            channel=self.channel,
            timeout=(10, int(self.config.request_timeout)),
            cancel_event=self.cancel_event,
            cache=self.cache if self.cache is not None else self.load_cache(),
        )
        return downloader.download_all(plan)

    def update(self) -> Tuple[DownloadPlan, List[int]]:
        """Check, then download whatever is out of date."""
        plan = self.check_for_updates()
        return plan, self.download(plan)

    def generate_manifest(
        self, ignored_paths: Iterable[str] = DEFAULT_IGNORED_PATHS
    ) -> Tuple[ManifestGenerator, Manifest, Path]:
        """Write hash-file.json for the configured installation."""
        return write_manifest(
            self.config.require_game_path(),
            self.config.require_file_server_url(),
            ignored_paths=ignored_paths,
            channel=self.channel,
            max_workers=self.config.max_workers,
        )

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def start(self, name: str, fn: Callable, *args, **kwargs) -> SyncTask:
        """Run fn in the background; join the returned task for its result."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sync-session")
        task = SyncTask(name, self._executor.submit(fn, *args, **kwargs))
        self._tasks.append(task)
        logger.debug("Started background task %s", name)
        return task

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self):
        """Request cooperative cancellation of in-flight downloads."""
        self.cancel_event.set()

    def close(self):
        """Cancel, wait for background tasks, and close the progress channel."""
        pending = [t for t in self._tasks if not t.done]
        if pending:
            logger.info("Closing session with %d running task(s), cancelling", len(pending))
            self.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.channel.close()
