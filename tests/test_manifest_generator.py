"""
Tests for parallel manifest generation.

Verifies that:
- Ignored and root-level files never reach the manifest
- Counters are exact for any worker count
- Records keep walk order and carry correct hash/size/url
"""

import json

import pytest

from launcher_sync.core.constants import DEFAULT_IGNORED_PATHS, MANIFEST_FILE
from launcher_sync.core.errors import FileIOError
from launcher_sync.core.progress import ManifestScanProgress, ProgressChannel
from launcher_sync.manifest import ManifestGenerator, build_file_url, generate_manifest, write_manifest

from conftest import sha256, write_file

SERVER = "http://files.example.com"


def _populate(root, count: int) -> dict:
    """Create `count` files of varying sizes under root. Returns {rel_path: bytes}."""
    files = {}
    for i in range(count):
        rel_path = f"S1Game/Data{i % 7}/file_{i:04d}.bin"
        data = bytes([i % 256]) * (i * 13 % 997)
        write_file(root, rel_path, data)
        files[rel_path] = data
    return files


class TestGenerateManifest:
    """Tests for generate_manifest() output."""

    def test_records_have_hash_size_url(self, game_root):
        write_file(game_root, "S1Game/CookedPC/a.upk", b"abc")
        manifest = generate_manifest(game_root, SERVER)

        assert len(manifest) == 1
        record = manifest.files[0]
        assert record.path == "S1Game/CookedPC/a.upk"
        assert record.hash == sha256(b"abc")
        assert record.size == 3
        assert record.url == "http://files.example.com/files/S1Game/CookedPC/a.upk"

    def test_path_filter_exclusivity(self, game_root):
        """Root-level and ignored files never appear, whatever their content."""
        write_file(game_root, "Launcher.exe", b"x")
        write_file(game_root, "readme.txt", b"x")
        write_file(game_root, "S1Game/Logs/today.log", b"x")
        write_file(game_root, "S1Game/Screenshots/shot.png", b"x")
        write_file(game_root, "S1Game/Config/S1Option.ini", b"x")
        write_file(game_root, "$Patch/tmp.bin", b"x")
        write_file(game_root, "Binaries/cookies.dat", b"x")
        write_file(game_root, "Binaries/TERA.exe", b"keep")

        manifest = generate_manifest(game_root, SERVER)
        assert [f.path for f in manifest] == ["Binaries/TERA.exe"]

    def test_custom_ignore_set(self, game_root):
        write_file(game_root, "Movies/intro.bik", b"x")
        write_file(game_root, "Data/a.bin", b"x")
        manifest = generate_manifest(game_root, SERVER, ignored_paths={"Movies"})
        assert [f.path for f in manifest] == ["Data/a.bin"]

    def test_walk_order_preserved(self, game_root):
        files = _populate(game_root, 40)
        manifest = generate_manifest(game_root, SERVER, max_workers=8)
        assert [f.path for f in manifest] == sorted(files)

    def test_empty_installation(self, game_root):
        generator = ManifestGenerator(game_root, SERVER)
        manifest = generator.generate()
        assert len(manifest) == 0
        assert generator.processed_files.value == 0
        assert generator.total_size.value == 0

    def test_unreadable_file_aborts(self, game_root, monkeypatch):
        write_file(game_root, "Data/a.bin", b"x")
        write_file(game_root, "Data/b.bin", b"y")

        def failing_hash(path, *args, **kwargs):
            raise FileIOError(f"Failed to hash file {path}: denied")

        monkeypatch.setattr("launcher_sync.manifest.generator.hash_file", failing_hash)
        with pytest.raises(FileIOError):
            generate_manifest(game_root, SERVER)


class TestGeneratorCounters:
    """Counters must be exact regardless of parallelism."""

    @pytest.mark.parametrize("workers", [1, 2, 8, 32])
    def test_counters_exact(self, game_root, workers):
        files = _populate(game_root, 120)
        generator = ManifestGenerator(game_root, SERVER, max_workers=workers)
        manifest = generator.generate()

        assert generator.processed_files.value == len(files)
        assert generator.total_size.value == sum(len(d) for d in files.values())
        assert manifest.total_size == generator.total_size.value

    def test_progress_events(self, game_root):
        files = _populate(game_root, 25)
        channel = ProgressChannel(maxsize=100)
        generate_manifest(game_root, SERVER, channel=channel, max_workers=4)

        events = channel.drain()
        assert len(events) == len(files)
        assert all(isinstance(e, ManifestScanProgress) for e in events)
        # processed_files values are handed out exactly once each
        assert sorted(e.processed_files for e in events) == list(range(1, 26))
        assert max(e.total_size for e in events) == sum(len(d) for d in files.values())
        assert all(e.total_files == 25 for e in events)

    @pytest.mark.stress
    def test_many_files(self, game_root):
        files = _populate(game_root, 2000)
        generator = ManifestGenerator(game_root, SERVER, max_workers=16)
        generator.generate()
        assert generator.processed_files.value == 2000
        assert generator.total_size.value == sum(len(d) for d in files.values())


class TestWriteManifest:
    """Tests for write_manifest() - hash-file.json in the installation root."""

    def test_writes_hash_file(self, game_root):
        write_file(game_root, "Data/a.bin", b"abc")
        generator, manifest, output_path = write_manifest(game_root, SERVER + "/")

        assert output_path == game_root / MANIFEST_FILE
        data = json.loads(output_path.read_text())
        assert data["files"] == [{
            "path": "Data/a.bin",
            "hash": sha256(b"abc"),
            "size": 3,
            "url": "http://files.example.com/files/Data/a.bin",
        }]

    def test_regenerating_skips_own_hash_file(self, game_root):
        """hash-file.json sits at the root, so it is never listed."""
        write_file(game_root, "Data/a.bin", b"abc")
        write_manifest(game_root, SERVER)
        _, manifest, _ = write_manifest(game_root, SERVER)
        assert [f.path for f in manifest] == ["Data/a.bin"]


class TestBuildFileUrl:
    def test_joins_with_files_segment(self):
        assert build_file_url("http://s", "a/b.bin") == "http://s/files/a/b.bin"

    def test_strips_trailing_slash(self):
        assert build_file_url("http://s/", "a/b.bin") == "http://s/files/a/b.bin"

    def test_quotes_spaces(self):
        assert build_file_url("http://s", "My Dir/b c.bin") == "http://s/files/My%20Dir/b%20c.bin"

    def test_default_ignores_cover_updater_files(self):
        assert "Launcher.exe" in DEFAULT_IGNORED_PATHS
        assert "unins000.exe" in DEFAULT_IGNORED_PATHS
