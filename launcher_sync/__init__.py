"""
Launcher Sync - keep a locally installed game in step with its update server.

Compares the installation against a published hash manifest, downloads only
the files that changed, and verifies every download by SHA-256.

Import from submodules directly:
    from launcher_sync.config import SyncConfig
    from launcher_sync.session import SyncSession
    from launcher_sync.manifest import Manifest, generate_manifest
    from launcher_sync.sync import plan_downloads, FileDownloader
"""


def _get_version():
    """Read version from VERSION file."""
    from pathlib import Path
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "0.0.0"


__version__ = _get_version()
