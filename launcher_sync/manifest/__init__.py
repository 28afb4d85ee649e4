"""
Manifest management for Launcher Sync.

The manifest lists every tracked file of an installation with its hash,
size and download URL.
"""

from .manifest import Manifest, FileRecord
from .fetch import fetch_manifest, check_server_connection
from .generator import ManifestGenerator, generate_manifest, write_manifest, build_file_url

__all__ = [
    # Core manifest
    "Manifest",
    "FileRecord",
    # Remote
    "fetch_manifest",
    "check_server_connection",
    # Generation
    "ManifestGenerator",
    "generate_manifest",
    "write_manifest",
    "build_file_url",
]
