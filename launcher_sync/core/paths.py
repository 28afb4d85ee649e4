"""
Application path helpers for Launcher Sync.
"""

import sys
from pathlib import Path

from .constants import CACHE_FILE


def get_app_dir() -> Path:
    """Get the directory where the app is located (for user-writable files)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path(__file__).resolve().parent.parent.parent


def get_cache_path() -> Path:
    """Default location of the persistent hash cache (next to the program)."""
    return get_app_dir() / CACHE_FILE


def get_env_path() -> Path:
    """Location of the optional .env file."""
    return get_app_dir() / ".env"
