#!/usr/bin/env python3
"""
Launcher Sync - bring a local game installation up to date.

Fetches the published hash manifest, checks which local files differ, and
downloads only those, verifying each one by SHA-256.
"""

import argparse
import logging
import sys
from pathlib import Path

from launcher_sync.config import SyncConfig
from launcher_sync.core.errors import ConfigError, SyncCancelled, SyncError
from launcher_sync.core.formatting import format_size
from launcher_sync.core.progress import ProgressPump
from launcher_sync.session import SyncSession
from launcher_sync.ui import ConsoleProgress


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run(config: SyncConfig, check_only: bool) -> int:
    print("=" * 60)
    print("Launcher Sync")
    print("=" * 60)
    print(f"  Game path: {config.game_path}")
    print()

    with SyncSession(config) as session:
        is_online, error = session.check_server()
        if not is_online:
            print(f"ERROR: Cannot reach update server ({error}).")
            return 1

        pump = ProgressPump(session.channel, ConsoleProgress())
        pump.start()
        try:
            plan = session.check_for_updates()
            if not plan.is_empty and not check_only:
                task = session.start("download", session.download, plan)
                try:
                    task.join()
                except KeyboardInterrupt:
                    print("\n  Cancelling downloads...")
                    session.cancel()
                    raise SyncCancelled("Download cancelled")
        finally:
            pump.close()

    print()
    if plan.is_empty:
        print("Up to date!")
    elif check_only:
        print(f"Update required: {len(plan)} file(s), {format_size(plan.total_bytes)}")
        for record in plan:
            print(f"  {plan.reasons.get(record.path, '?'):14} {record.path}")
    else:
        print(f"Updated {len(plan)} file(s), {format_size(plan.total_bytes)}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Update a local game installation from the update server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python sync.py --path "C:/Games/Tera"           # Check and download updates
  python sync.py --path "C:/Games/Tera" --check   # Only report what would change

Required settings (environment or .env next to this script):
  HASH_FILE_URL   URL of the published hash-file.json
  GAME_PATH       Installation folder (or pass --path)
"""
    )
    parser.add_argument("--path", "-p", type=Path,
                        help="Game installation folder (overrides GAME_PATH)")
    parser.add_argument("--check", "-c", action="store_true",
                        help="Only check for updates, don't download")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Verbose logging")
    args = parser.parse_args()

    configure_logging(args.verbose)

    try:
        config = SyncConfig.from_env()
        if args.path:
            config.game_path = args.path
        config.require_hash_file_url()
        config.require_game_path()
        sys.exit(run(config, args.check))
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
    except SyncCancelled:
        print("Cancelled.")
        sys.exit(1)
    except SyncError as e:
        print()
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
