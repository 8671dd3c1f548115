"""Scan result types."""

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class FileRecord:
    """One discovered file.

    ``relative_path`` always uses POSIX separators. ``extension`` has no
    leading dot and keeps its original case; it is empty for files such as
    ``Makefile``.
    """

    absolute_path: Path
    relative_path: str
    size_bytes: int
    extension: str
    is_binary: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "absolutePath": str(self.absolute_path),
            "relativePath": self.relative_path,
            "sizeBytes": self.size_bytes,
            "extension": self.extension,
            "isBinary": self.is_binary,
        }


@dataclass(frozen=True, slots=True)
class ScanResult:
    """An ordered, byte-accounted set of files under a project root.

    Produced once per scan and never mutated. Use ``ScanResult.build`` so
    ``total_bytes`` and ``extension_counts`` are always derived from
    ``files``.
    """

    files: tuple[FileRecord, ...]
    total_bytes: int
    root: Path
    extension_counts: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(cls, root: Path, files: Iterable[FileRecord]) -> "ScanResult":
        files = tuple(files)
        counts = Counter(f.extension for f in files)
        return cls(
            files=files,
            total_bytes=sum(f.size_bytes for f in files),
            root=root,
            extension_counts=MappingProxyType(dict(counts)),
        )

    @property
    def file_count(self) -> int:
        return len(self.files)

    def relative_paths(self) -> list[str]:
        return [f.relative_path for f in self.files]

    def summary(self) -> dict[str, Any]:
        """Wire summary used by project.scan."""
        return {
            "files": self.file_count,
            "totalBytes": self.total_bytes,
            "extensionCounts": dict(self.extension_counts),
        }
