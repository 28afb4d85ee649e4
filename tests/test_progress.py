"""
Tests for progress events, the bounded channel, counters and the RW lock.
"""

import json
import threading
import time

import pytest

from launcher_sync.core.locks import ReadWriteLock
from launcher_sync.core.progress import (
    AtomicCounter,
    DownloadComplete,
    DownloadProgress,
    FileCheckCompleted,
    FileCheckProgress,
    ManifestScanProgress,
    ProgressChannel,
    ProgressPump,
)


def _check_event(n: int) -> FileCheckProgress:
    return FileCheckProgress(
        current_file=f"f{n}", progress=float(n), current_count=n,
        total_files=100, files_to_update=0, elapsed_time=0.0,
    )


class TestEvents:
    """Event names and payloads."""

    def test_event_names(self):
        assert ManifestScanProgress.name == "hash_file_progress"
        assert FileCheckProgress.name == "file_check_progress"
        assert FileCheckCompleted.name == "file_check_completed"
        assert DownloadProgress.name == "download_progress"
        assert DownloadComplete.name == "download_complete"

    def test_to_dict_is_json_serializable(self):
        event = DownloadProgress(
            file_name="S1Game/a.upk", progress=50.0, speed=1024.0,
            downloaded_bytes=512, total_bytes=1024, current_file_index=1,
            total_files=2, elapsed_time=0.5,
        )
        data = json.loads(json.dumps(event.to_dict()))
        assert data["file_name"] == "S1Game/a.upk"
        assert data["downloaded_bytes"] == 512
        assert "name" not in data

    def test_events_are_immutable(self):
        event = _check_event(1)
        with pytest.raises(AttributeError):
            event.current_count = 2


class TestProgressChannel:
    """Bounded, non-blocking, drop-oldest channel."""

    def test_fifo_order(self):
        channel = ProgressChannel(maxsize=10)
        for i in range(5):
            channel.emit(_check_event(i))
        assert [e.current_count for e in channel.drain()] == [0, 1, 2, 3, 4]

    def test_full_channel_drops_oldest(self):
        channel = ProgressChannel(maxsize=3)
        for i in range(5):
            channel.emit(_check_event(i))
        assert [e.current_count for e in channel.drain()] == [2, 3, 4]
        assert channel.dropped == 2

    def test_emit_never_blocks_without_consumer(self):
        channel = ProgressChannel(maxsize=1)
        start = time.time()
        for i in range(10_000):
            channel.emit(_check_event(i))
        assert time.time() - start < 5
        assert len(channel.drain()) == 1

    def test_get_timeout_returns_none(self):
        channel = ProgressChannel()
        assert channel.get(timeout=0.01) is None

    def test_closed_channel_ignores_events(self):
        channel = ProgressChannel()
        channel.emit(_check_event(1))
        channel.close()
        channel.emit(_check_event(2))
        assert [e.current_count for e in channel.drain()] == [1]


class TestProgressPump:
    """Background delivery to an observer."""

    def test_delivers_all_events_in_order(self):
        channel = ProgressChannel()
        received = []
        pump = ProgressPump(channel, received.append, poll_interval=0.01)
        pump.start()
        for i in range(50):
            channel.emit(_check_event(i))
        pump.close()
        assert [e.current_count for e in received] == list(range(50))

    def test_observer_errors_do_not_stop_pump(self):
        channel = ProgressChannel()
        received = []

        def observer(event):
            if event.current_count == 1:
                raise RuntimeError("boom")
            received.append(event.current_count)

        pump = ProgressPump(channel, observer, poll_interval=0.01)
        pump.start()
        for i in range(3):
            channel.emit(_check_event(i))
        pump.close()
        assert received == [0, 2]


class TestAtomicCounter:
    """Exactly-once increments under contention."""

    def test_concurrent_adds_are_exact(self):
        counter = AtomicCounter()
        seen = []
        lock = threading.Lock()

        def worker():
            for _ in range(1000):
                value = counter.add(1)
                with lock:
                    seen.append(value)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter.value == 8000
        # Every intermediate value handed out exactly once
        assert sorted(seen) == list(range(1, 8001))

    def test_add_amount(self):
        counter = AtomicCounter(10)
        assert counter.add(5) == 15
        assert counter.value == 15


class TestReadWriteLock:
    """Shared readers, exclusive writers."""

    def test_readers_share(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=2)

        def reader():
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=3)
        assert not inside.broken

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []
        lock.acquire_write()

        def reader():
            with lock.read():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.05)
        assert events == []
        events.append("write-done")
        lock.release_write()
        t.join(timeout=2)
        assert events == ["write-done", "read"]
