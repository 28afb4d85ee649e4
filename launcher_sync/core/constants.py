"""
Shared constants for Launcher Sync.
"""

# Generated manifest, written into the installation root
MANIFEST_FILE = "hash-file.json"

# Persistent hash cache, co-located with the running program
CACHE_FILE = "file_cache.json"

# Read size for streaming hashes and downloads
HASH_CHUNK_SIZE = 65536
DOWNLOAD_CHUNK_SIZE = 32768

# Download progress events are throttled to one per interval (seconds)
DOWNLOAD_PROGRESS_INTERVAL = 0.1

# Diff pass emits a progress event every N checked files
CHECK_REPORT_EVERY = 100

# Default capacity of the progress channel before oldest events are dropped
PROGRESS_QUEUE_SIZE = 1000

# Paths never included in a manifest or update check (literal prefixes,
# relative to the installation root, forward slashes)
DEFAULT_IGNORED_PATHS = frozenset({
    "$Patch",
    "Binaries/cookies.dat",
    "S1Game/GuildFlagUpload",
    "S1Game/GuildLogoUpload",
    "S1Game/ImageCache",
    "S1Game/Logs",
    "S1Game/Screenshots",
    "S1Game/Config/S1Engine.ini",
    "S1Game/Config/S1Game.ini",
    "S1Game/Config/S1Input.ini",
    "S1Game/Config/S1Lightmass.ini",
    "S1Game/Config/S1Option.ini",
    "S1Game/Config/S1SystemSettings.ini",
    "S1Game/Config/S1TBASettings.ini",
    "S1Game/Config/S1UI.ini",
    "Launcher.exe",
    "local.db",
    "version.ini",
    "unins000.dat",
    "unins000.exe",
})
