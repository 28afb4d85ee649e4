"""
Terminal rendering for Launcher Sync progress events.
"""

from .progress_display import ConsoleProgress, fit_line

__all__ = ["ConsoleProgress", "fit_line"]
