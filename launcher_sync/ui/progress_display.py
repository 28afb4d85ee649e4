"""
Console progress display for Launcher Sync.

Renders progress events on a single, continuously overwritten terminal line,
and prints one line per completed download.
"""

import shutil
import threading

from ..core.formatting import format_duration, format_size, format_speed
from ..core.progress import (
    DownloadComplete,
    DownloadProgress,
    FileCheckCompleted,
    FileCheckProgress,
    ManifestScanProgress,
    ProgressEvent,
)


def fit_line(message: str, prefix: str = "  ") -> str:
    """Truncate a message to the terminal width."""
    width = shutil.get_terminal_size().columns
    full_msg = f"{prefix}{message}"
    if len(full_msg) >= width:
        full_msg = full_msg[:max(width - 4, 0)] + "..."
    return full_msg


class ConsoleProgress:
    """Progress observer that writes to stdout. Thread-safe."""

    def __init__(self):
        self.lock = threading.Lock()
        self._line_open = False
        self._finished_index = 0

    def _overwrite(self, message: str):
        # \033[2K clears the entire line
        print(f"\033[2K\r{fit_line(message)}", end="", flush=True)
        self._line_open = True

    def _println(self, message: str):
        if self._line_open:
            print("\033[2K\r", end="")
            self._line_open = False
        print(fit_line(message))

    def __call__(self, event: ProgressEvent):
        with self.lock:
            if isinstance(event, ManifestScanProgress):
                self._overwrite(
                    f"[{event.processed_files}/{event.total_files}] {event.progress:5.1f}% "
                    f"{format_size(event.total_size)}  {event.current_file}"
                )
            elif isinstance(event, FileCheckProgress):
                self._overwrite(
                    f"Checking {event.current_count}/{event.total_files} ({event.progress:5.1f}%), "
                    f"{event.files_to_update} to update"
                )
            elif isinstance(event, FileCheckCompleted):
                self._println(
                    f"Checked {event.total_files} files in {format_duration(event.total_time_seconds)}: "
                    f"{event.files_to_update} to update ({format_size(event.total_size)})"
                )
            elif isinstance(event, DownloadProgress):
                if event.progress >= 100.0:
                    # One line per file; a file can report 100% more than once
                    if event.current_file_index != self._finished_index:
                        self._finished_index = event.current_file_index
                        self._println(f"[{event.current_file_index}/{event.total_files}] {event.file_name}")
                else:
                    pct = (event.downloaded_bytes / event.total_bytes * 100) if event.total_bytes else 0
                    self._overwrite(
                        f"{pct:5.1f}% {format_size(event.downloaded_bytes)}/{format_size(event.total_bytes)} "
                        f"{format_speed(event.speed)}  {event.file_name} ({event.progress:.0f}%)"
                    )
            elif isinstance(event, DownloadComplete):
                self._finished_index = 0
                self._println(
                    f"Download complete: {event.total_files} file(s), {format_size(event.downloaded_bytes)}"
                )
