"""Pytest configuration and fixtures."""

import hashlib
from pathlib import Path

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "stress: stress tests with large data (skipped in CI)"
    )


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def write_file(root: Path, rel_path: str, data: bytes) -> Path:
    """Create root/rel_path (and parents) with the given bytes."""
    path = root.joinpath(*rel_path.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@pytest.fixture
def game_root(tmp_path):
    """Empty installation root."""
    root = tmp_path / "game"
    root.mkdir()
    return root
