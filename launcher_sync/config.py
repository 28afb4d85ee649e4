"""
Configuration management for Launcher Sync.

Settings come from environment variables, optionally seeded from a .env file
next to the program:
- HASH_FILE_URL: remote manifest (hash file) endpoint
- FILE_SERVER_URL: base URL files are served from (manifest generation)
- GAME_PATH: installation root
- SYNC_CACHE_PATH, SYNC_WORKERS, SYNC_TIMEOUT: optional tuning
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .core.errors import ConfigError
from .core.paths import get_cache_path, get_env_path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def load_env_file(path: Path) -> int:
    """
    Load KEY=VALUE lines from a .env file into os.environ.

    Existing environment variables win. Returns the number of keys set.
    """
    if not path.exists():
        return 0

    loaded = 0
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                if key not in os.environ:
                    os.environ[key] = value.strip().strip('"').strip("'")
                    loaded += 1
    logger.debug("Loaded %d setting(s) from %s", loaded, path)
    return loaded


def _parse_int(value: Optional[str], name: str) -> Optional[int]:
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if parsed < 1:
        raise ConfigError(f"{name} must be at least 1, got {parsed}")
    return parsed


@dataclass
class SyncConfig:
    """Endpoints, installation path and tuning for one synchronization run."""
    hash_file_url: str = ""
    file_server_url: str = ""
    game_path: Optional[Path] = None
    cache_path: Optional[Path] = None
    max_workers: Optional[int] = None
    request_timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        if self.cache_path is None:
            self.cache_path = get_cache_path()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, load_dotenv: bool = True) -> "SyncConfig":
        """Build config from environment variables (and .env when environ is not given)."""
        if environ is None:
            if load_dotenv:
                load_env_file(get_env_path())
            environ = os.environ

        game_path = environ.get("GAME_PATH", "").strip()
        cache_path = environ.get("SYNC_CACHE_PATH", "").strip()
        timeout = environ.get("SYNC_TIMEOUT", "").strip()
        try:
            request_timeout = float(timeout) if timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigError(f"SYNC_TIMEOUT must be a number, got {timeout!r}")

        return cls(
            hash_file_url=environ.get("HASH_FILE_URL", "").strip(),
            file_server_url=environ.get("FILE_SERVER_URL", "").strip(),
            game_path=Path(game_path) if game_path else None,
            cache_path=Path(cache_path) if cache_path else None,
            max_workers=_parse_int(environ.get("SYNC_WORKERS", "").strip(), "SYNC_WORKERS"),
            request_timeout=request_timeout,
        )

    def require_hash_file_url(self) -> str:
        if not self.hash_file_url:
            raise ConfigError("HASH_FILE_URL must be set")
        return self.hash_file_url

    def require_file_server_url(self) -> str:
        if not self.file_server_url:
            raise ConfigError("FILE_SERVER_URL must be set")
        return self.file_server_url.rstrip("/")

    def require_game_path(self) -> Path:
        if self.game_path is None:
            raise ConfigError("Game path not set (use GAME_PATH or --path)")
        if not self.game_path.is_dir():
            raise ConfigError(f"Game path is not a directory: {self.game_path}")
        return self.game_path
