"""
Tests for formatting utilities and the console progress display.
"""

from pathlib import Path, PurePosixPath

import pytest

from launcher_sync.core.formatting import (
    format_duration,
    format_size,
    format_speed,
    relative_posix,
    to_posix,
)
from launcher_sync.core.progress import DownloadComplete, DownloadProgress, FileCheckProgress
from launcher_sync.ui import ConsoleProgress, fit_line


class TestPathHelpers:
    """Tests for to_posix() and relative_posix()."""

    def test_backslashes_converted(self):
        assert to_posix("S1Game\\CookedPC\\a.upk") == "S1Game/CookedPC/a.upk"

    def test_path_object(self):
        assert to_posix(PurePosixPath("a") / "b" / "c.bin") == "a/b/c.bin"

    def test_relative(self, tmp_path):
        assert relative_posix(tmp_path / "a" / "b.bin", tmp_path) == "a/b.bin"

    def test_relative_outside_base_raises(self, tmp_path):
        with pytest.raises(ValueError):
            relative_posix(Path("/somewhere/else"), tmp_path)


class TestFormatSize:
    """Tests for format_size() - human readable byte sizes."""

    def test_bytes(self):
        """Small values shown in bytes."""
        assert format_size(0) == "0.0 B"
        assert format_size(1023) == "1023.0 B"

    def test_kilobytes(self):
        assert format_size(1024) == "1.0 KB"
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(1024 * 1024 * 50) == "50.0 MB"

    def test_gigabytes(self):
        assert format_size(1024 * 1024 * 1024 * 2.5) == "2.5 GB"

    def test_speed(self):
        assert format_speed(1024 * 1024 * 1.5) == "1.5 MB/s"


class TestFormatDuration:
    """Tests for format_duration() - human readable time durations."""

    def test_seconds_only(self):
        """Durations under 60s shown in seconds."""
        assert format_duration(0) == "0.0s"
        assert format_duration(59.9) == "59.9s"

    def test_minutes_and_seconds(self):
        assert format_duration(90) == "1m 30s"
        assert format_duration(3599) == "59m 59s"

    def test_hours_and_minutes(self):
        assert format_duration(3660) == "1h 1m"
        assert format_duration(5400) == "1h 30m"


class TestConsoleProgress:
    """Tests for the console observer output."""

    def _download_event(self, progress, speed, index=1):
        return DownloadProgress(
            file_name="Data/a.bin", progress=progress, speed=speed,
            downloaded_bytes=512, total_bytes=1024, current_file_index=index,
            total_files=2, elapsed_time=1.0,
        )

    def test_fit_line_truncates(self, monkeypatch):
        monkeypatch.setattr("launcher_sync.ui.progress_display.shutil.get_terminal_size",
                            lambda: type("Size", (), {"columns": 20})())
        line = fit_line("x" * 100)
        assert len(line) == 19
        assert line.endswith("...")

    def test_completed_file_gets_own_line(self, capsys):
        display = ConsoleProgress()
        display(self._download_event(50.0, 1000.0))
        display(self._download_event(100.0, 2048.0))
        out = capsys.readouterr().out
        assert "[1/2] Data/a.bin\n" in out

    def test_completion_printed_once_per_file(self, capsys):
        """Repeated 100% events for a file print a single line, whatever their speed."""
        display = ConsoleProgress()
        display(self._download_event(100.0, 5000.0))
        display(self._download_event(100.0, 0.0))
        display(self._download_event(100.0, 4000.0, index=2))
        out = capsys.readouterr().out
        assert out.count("[1/2] Data/a.bin\n") == 1
        assert out.count("[2/2] Data/a.bin\n") == 1

    def test_check_progress_overwrites_line(self, capsys):
        display = ConsoleProgress()
        display(FileCheckProgress("Data/a.bin", 50.0, 1, 2, 0, 0.1))
        out = capsys.readouterr().out
        assert out.startswith("\033[2K\r")
        assert "Checking 1/2" in out
        assert not out.endswith("\n")

    def test_download_complete_summary(self, capsys):
        ConsoleProgress()(DownloadComplete(total_files=2, downloaded_bytes=2048))
        assert "Download complete: 2 file(s), 2.0 KB" in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
