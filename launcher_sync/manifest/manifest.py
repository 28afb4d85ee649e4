"""
Manifest classes for Launcher Sync.

A manifest is a JSON document listing every tracked file of an installation
with its SHA-256 hash, size and download URL:

    {"files": [{"path": "...", "hash": "...", "size": 0, "url": "..."}]}

The same shape is used for the published remote manifest and for the
hash-file.json written by the generator.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Iterator, List, Optional

from ..core.errors import FileIOError, FormatError
from ..core.formatting import to_posix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileRecord:
    """A single file in the manifest. Identity is `path`."""
    path: str
    hash: str = ""
    size: int = 0
    url: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "FileRecord":
        if not isinstance(data, dict):
            raise FormatError(f"Manifest entry must be an object, got {type(data).__name__}")
        values = {}
        for name in ("path", "hash", "url"):
            value = data.get(name)
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise FormatError(f"Invalid {name} in manifest entry {data!r}: expected a string")
            values[name] = value
        size = data.get("size", 0)
        if size is None:
            size = 0
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise FormatError(f"Invalid size for {values['path']!r}: {size!r}")
        return cls(
            path=to_posix(values["path"]),
            # Hex digests compare lowercase
            hash=values["hash"].lower(),
            size=size,
            url=values["url"],
        )


@dataclass
class Manifest:
    """Ordered list of file records. Order carries no meaning beyond reporting."""
    files: List[FileRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self.files)

    @property
    def total_size(self) -> int:
        """Total size in bytes across all files."""
        return sum(f.size for f in self.files)

    def get(self, path: str) -> Optional[FileRecord]:
        """Find a record by relative path."""
        for record in self.files:
            if record.path == path:
                return record
        return None

    def to_dict(self) -> dict:
        return {"files": [f.to_dict() for f in self.files]}

    @classmethod
    def from_dict(cls, data) -> "Manifest":
        """
        Parse a manifest document.

        Missing path/hash/url default to "" and missing size to 0.
        Raises FormatError if the document shape is wrong.
        """
        if not isinstance(data, dict):
            raise FormatError("Invalid hash file format: expected a JSON object")
        files = data.get("files")
        if not isinstance(files, list):
            raise FormatError("Invalid hash file format: 'files' must be a list")
        return cls(files=[FileRecord.from_dict(f) for f in files])

    @classmethod
    def load(cls, path: Path) -> "Manifest":
        """Load manifest from a JSON file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise FormatError(f"Malformed manifest {path}: {e}") from e
        except OSError as e:
            raise FileIOError(f"Failed to read manifest {path}: {e}") from e
        return cls.from_dict(data)

    def save(self, path: Path):
        """Write manifest to a JSON file (full overwrite)."""
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise FileIOError(f"Failed to write manifest {path}: {e}") from e
        logger.info("Wrote %d file record(s) to %s", len(self.files), path)
