"""Tests for the scan engine."""

from pathlib import Path

import pytest

from reporoller.core.scan import (
    ScanError,
    is_binary_file,
    is_binary_sample,
    normalize_extension,
    scan_files,
    sort_by_layout,
    sort_files,
)
from reporoller.core.types import FileRecord, ScanResult


def _record(path: str, size: int = 1) -> FileRecord:
    return FileRecord(
        absolute_path=Path("/p") / path,
        relative_path=path,
        size_bytes=size,
        extension=normalize_extension(path),
    )


class TestBinaryDetection:
    """Tests for content sniffing."""

    def test_empty_is_text(self):
        assert is_binary_sample(b"") is False

    def test_nul_byte_is_binary(self):
        assert is_binary_sample(b"hello\x00world") is True

    def test_plain_text(self):
        assert is_binary_sample(b"def f():\n\treturn 1\r\n") is False

    def test_control_density_threshold(self):
        # 3 of 10 bytes are control bytes: exactly 30% is still text
        assert is_binary_sample(b"\x01\x02\x03abcdefg") is False
        assert is_binary_sample(b"\x01\x02\x03\x04abcdef") is True

    def test_deterministic(self):
        sample = bytes(range(1, 40)) * 10
        results = {is_binary_sample(sample) for _ in range(5)}
        assert len(results) == 1

    async def test_unreadable_file_is_binary(self, tmp_path: Path):
        assert await is_binary_file(tmp_path / "missing") is True


class TestSorting:
    """Tests for sort modes and layout ordering."""

    def test_sort_by_path(self):
        files = [_record("b.py"), _record("a.py"), _record("a/z.py")]
        assert [f.relative_path for f in sort_files(files, "path")] == [
            "a.py",
            "a/z.py",
            "b.py",
        ]

    def test_sort_by_size_descending(self):
        files = [_record("a.py", 1), _record("b.py", 3), _record("c.py", 3)]
        assert [f.relative_path for f in sort_files(files, "size")] == [
            "b.py",
            "c.py",
            "a.py",
        ]

    def test_sort_by_extension(self):
        files = [_record("a.ts"), _record("b.md"), _record("a.md")]
        assert [f.relative_path for f in sort_files(files, "extension")] == [
            "a.md",
            "b.md",
            "a.ts",
        ]

    def test_layout_priority(self):
        files = [_record("tests/t.py"), _record("README.md"), _record("src/a.py")]
        ordered = sort_by_layout(files, ["README.md", "src/**"])
        assert [f.relative_path for f in ordered] == [
            "README.md",
            "src/a.py",
            "tests/t.py",
        ]


class TestScanFiles:
    """Tests for scan_files()."""

    async def test_default_ignores(self, project: Path):
        result = await scan_files(project)

        assert result.relative_paths() == [
            ".gitignore",
            "README.md",
            "src/main.py",
            "src/util.ts",
        ]
        assert result.root == project

    async def test_totals_match_files(self, project: Path):
        result = await scan_files(project)

        assert result.file_count == 4
        assert result.total_bytes == sum(f.size_bytes for f in result.files)
        assert sum(result.extension_counts.values()) == result.file_count
        assert result.extension_counts["py"] == 1

    async def test_extension_filter(self, project: Path):
        result = await scan_files(project, extensions=["py", "ts"])
        assert result.relative_paths() == ["src/main.py", "src/util.ts"]

    async def test_include_and_exclude(self, project: Path):
        result = await scan_files(project, include=["src/**"], exclude=["*.ts"])
        assert result.relative_paths() == ["src/main.py"]

    async def test_max_file_size(self, project: Path):
        (project / "big.py").write_text("x" * 2048)
        result = await scan_files(project, max_file_size_bytes=1024)
        assert "big.py" not in result.relative_paths()

    async def test_large_binary_excluded(self, tmp_path: Path):
        root = tmp_path / "mixed"
        root.mkdir()
        (root / "small.txt").write_text("0123456789")
        (root / "blob.bin").write_bytes(b"\x00" * (5 * 1024 * 1024))

        result = await scan_files(root)

        assert result.file_count == 1
        assert result.total_bytes == 10
        # Content sniffing drops it even when size allows it
        relaxed = await scan_files(root, max_file_size_bytes=10 * 1024 * 1024)
        assert relaxed.relative_paths() == ["small.txt"]

    async def test_nested_gitignore_directory_rule(self, tmp_path: Path):
        root = tmp_path / "repo"
        (root / "generated").mkdir(parents=True)
        (root / "generated" / "a.py").write_text("a = 1\n")
        (root / "keep.py").write_text("b = 2\n")
        (root / ".gitignore").write_text("generated/\n")

        result = await scan_files(root)

        assert result.relative_paths() == [".gitignore", "keep.py"]

    async def test_gitignore_negation(self, tmp_path: Path):
        root = tmp_path / "repo"
        root.mkdir()
        (root / "a.md").write_text("a\n")
        (root / "b.md").write_text("b\n")
        (root / ".gitignore").write_text("*.md\n!b.md\n")

        result = await scan_files(root)

        assert result.relative_paths() == [".gitignore", "b.md"]

    async def test_missing_root(self, tmp_path: Path):
        with pytest.raises(ScanError) as exc_info:
            await scan_files(tmp_path / "nope")
        assert exc_info.value.root == str(tmp_path / "nope")

    async def test_root_is_file(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(ScanError):
            await scan_files(path)

    async def test_layout_ordering(self, project: Path):
        result = await scan_files(project, layout=["src/**", "README.md"])
        assert result.relative_paths()[:3] == ["src/main.py", "src/util.ts", "README.md"]


class TestScanResult:
    """Tests for ScanResult helpers."""

    def test_build_derives_totals(self):
        result = ScanResult.build(Path("/p"), [_record("a.py", 3), _record("b.py", 4)])
        assert result.total_bytes == 7
        assert dict(result.extension_counts) == {"py": 2}

    def test_summary_uses_wire_keys(self):
        result = ScanResult.build(Path("/p"), [_record("Makefile", 5)])
        assert result.summary() == {
            "files": 1,
            "totalBytes": 5,
            "extensionCounts": {"": 1},
        }

    def test_extension_counts_are_read_only(self):
        result = ScanResult.build(Path("/p"), [_record("a.py")])
        with pytest.raises(TypeError):
            result.extension_counts["py"] = 5  # type: ignore[index]
