#!/usr/bin/env python3
"""
Launcher Sync - Manifest Generator (Admin Only)

Generates hash-file.json for a game installation: every tracked file with
its SHA-256 hash, size and download URL. Publish the result as the
authoritative manifest for clients.
"""

import argparse
import logging
import sys
from pathlib import Path

from launcher_sync.config import SyncConfig
from launcher_sync.core.constants import DEFAULT_IGNORED_PATHS
from launcher_sync.core.errors import ConfigError, SyncError
from launcher_sync.core.formatting import format_duration, format_size
from launcher_sync.core.progress import ProgressPump
from launcher_sync.session import SyncSession
from launcher_sync.ui import ConsoleProgress


def generate(config: SyncConfig, extra_ignores: list[str]) -> int:
    print("=" * 60)
    print("Launcher Sync - Manifest Generator")
    print("=" * 60)
    print(f"  Game path: {config.game_path}")
    print(f"  File server: {config.file_server_url}")
    print()

    ignored_paths = set(DEFAULT_IGNORED_PATHS) | set(extra_ignores)

    with SyncSession(config) as session:
        pump = ProgressPump(session.channel, ConsoleProgress())
        pump.start()
        try:
            generator, manifest, output_path = session.generate_manifest(ignored_paths)
        finally:
            pump.close()

    print()
    print()
    print("=" * 60)
    print("Summary")
    print("=" * 60)
    print(f"  Total files: {generator.processed_files.value}")
    print(f"  Total size: {format_size(generator.total_size.value)}")
    print(f"  Time: {format_duration(generator.elapsed)}")
    print(f"  Manifest size: {format_size(output_path.stat().st_size)}")
    print(f"  SAVED to {output_path}")
    print()
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Generate hash-file.json for a game installation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python manifest_gen.py --path "C:/Games/Tera"
  python manifest_gen.py --path "C:/Games/Tera" --ignore S1Game/Movies

Required settings (environment or .env next to this script):
  FILE_SERVER_URL   Base URL files are served from (<url>/files/<path>)
  GAME_PATH         Installation folder (or pass --path)
"""
    )
    parser.add_argument("--path", "-p", type=Path,
                        help="Game installation folder (overrides GAME_PATH)")
    parser.add_argument("--ignore", "-i", action="append", default=[],
                        help="Extra path prefix to leave out (repeatable)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = SyncConfig.from_env()
        if args.path:
            config.game_path = args.path
        config.require_file_server_url()
        config.require_game_path()
        sys.exit(generate(config, args.ignore))
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
    except SyncError as e:
        print()
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
