"""
Progress events and the channel that carries them to an observer.

Producers (manifest generator, update planner, downloader) never block on a
slow or absent observer: the channel is bounded and drops its oldest event
when full.
"""

import logging
import queue
import threading
from dataclasses import asdict, dataclass
from typing import Callable, ClassVar, List, Optional

from .constants import PROGRESS_QUEUE_SIZE

logger = logging.getLogger(__name__)


# ============================================================================
# Event variants
# ============================================================================

@dataclass(frozen=True)
class ProgressEvent:
    """Base for all progress events. `name` is the wire event name."""
    name: ClassVar[str] = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ManifestScanProgress(ProgressEvent):
    """One file hashed during manifest generation."""
    name: ClassVar[str] = "hash_file_progress"
    current_file: str
    progress: float
    processed_files: int
    total_files: int
    total_size: int


@dataclass(frozen=True)
class FileCheckProgress(ProgressEvent):
    """Periodic update during a diff pass."""
    name: ClassVar[str] = "file_check_progress"
    current_file: str
    progress: float
    current_count: int
    total_files: int
    files_to_update: int
    elapsed_time: float


@dataclass(frozen=True)
class FileCheckCompleted(ProgressEvent):
    """Summary emitted once a diff pass finishes."""
    name: ClassVar[str] = "file_check_completed"
    total_files: int
    files_to_update: int
    total_size: int
    total_time_seconds: float
    average_time_per_file_ms: float


@dataclass(frozen=True)
class DownloadProgress(ProgressEvent):
    """Transfer progress for one file, with overall running totals."""
    name: ClassVar[str] = "download_progress"
    file_name: str
    progress: float
    speed: float
    downloaded_bytes: int
    total_bytes: int
    current_file_index: int
    total_files: int
    elapsed_time: float


@dataclass(frozen=True)
class DownloadComplete(ProgressEvent):
    """Every file in the plan was downloaded and verified."""
    name: ClassVar[str] = "download_complete"
    total_files: int = 0
    downloaded_bytes: int = 0


# ============================================================================
# Counters
# ============================================================================

class AtomicCounter:
    """Thread-safe integer counter. `add()` returns the new value."""

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    def add(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


# ============================================================================
# Channel
# ============================================================================

class ProgressChannel:
    """
    Bounded, non-blocking event channel.

    emit() never blocks: when the queue is full the oldest event is discarded
    to make room. Delivery is FIFO, so events of one phase arrive in order.
    """

    def __init__(self, maxsize: int = PROGRESS_QUEUE_SIZE):
        self._queue: "queue.Queue[ProgressEvent]" = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: ProgressEvent):
        """Queue an event, discarding the oldest one if the channel is full."""
        if self._closed:
            return
        with self._lock:
            while True:
                try:
                    self._queue.put_nowait(event)
                    return
                except queue.Full:
                    try:
                        self._queue.get_nowait()
                        self.dropped += 1
                    except queue.Empty:
                        pass

    def get(self, timeout: Optional[float] = None) -> Optional[ProgressEvent]:
        """Next event, or None if nothing arrives within timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[ProgressEvent]:
        """Remove and return every queued event."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def close(self):
        """Stop accepting events. Already-queued events can still be read."""
        self._closed = True


def emit(channel: Optional[ProgressChannel], event: ProgressEvent):
    """Emit to channel if there is one."""
    if channel is not None:
        channel.emit(event)


class ProgressPump:
    """
    Background thread delivering channel events to an observer callback.

    Observer exceptions are logged and do not stop the pump.
    """

    def __init__(self, channel: ProgressChannel, observer: Callable[[ProgressEvent], None],
                 poll_interval: float = 0.05):
        self.channel = channel
        self.observer = observer
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(target=self._run, name="progress-pump", daemon=True)
        self._thread.start()

    def _deliver(self, event: ProgressEvent):
        try:
            self.observer(event)
        except Exception:
            logger.exception("Progress observer failed on %s", event.name)

    def _run(self):
        while not self._stop.is_set():
            event = self.channel.get(timeout=self.poll_interval)
            if event is not None:
                self._deliver(event)
        for event in self.channel.drain():
            self._deliver(event)

    def close(self, timeout: Optional[float] = 2.0):
        """Stop the pump after delivering whatever is still queued."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
