"""File discovery.

Walks a project root and returns the files worth bundling:
- Built-in deny list merged with the root .gitignore (gitignore semantics)
- Include/exclude globs (gitwildmatch syntax)
- Size and extension filters
- Content sniffing to drop binary files
- Stable sorting by path, size, extension, or profile layout
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os
import pathspec

from reporoller.config.models import DEFAULT_MAX_FILE_SIZE_BYTES, SortMode
from reporoller.core.types import FileRecord, ScanResult

logger = logging.getLogger(__name__)

BINARY_SAMPLE_SIZE = 8 * 1024
BINARY_CONTROL_THRESHOLD = 0.3
# Control bytes that still count as text
TEXT_CONTROL_BYTES = frozenset({9, 10, 13})

# Pruned before any rule is evaluated
ALWAYS_PRUNED_DIRS = frozenset({".git", "node_modules"})

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    # Version control
    ".git",
    # Dependencies
    "node_modules",
    # Lock files
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "composer.lock",
    "Gemfile.lock",
    "poetry.lock",
    "Cargo.lock",
    "go.sum",
    "Pipfile.lock",
    # Build outputs
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".output",
    ".vercel",
    ".netlify",
    # Caches
    ".cache",
    ".parcel-cache",
    ".turbo",
    ".swc",
    ".webpack",
    ".vite",
    # Coverage
    "coverage",
    ".nyc_output",
    ".jest",
    # Environment files
    ".env",
    ".env.local",
    ".env.*.local",
    # Editor and OS metadata
    ".vscode",
    ".idea",
    "*.swp",
    "*.swo",
    "*~",
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
    # Logs
    "*.log",
    "logs",
    "npm-debug.log*",
    "yarn-debug.log*",
    "yarn-error.log*",
    # Temporary files
    "*.tmp",
    "tmp",
    "temp",
)


class ScanError(Exception):
    """Raised when a root cannot be scanned at all."""

    def __init__(self, message: str, root: Path | str):
        super().__init__(message)
        self.root = str(root)


def normalize_extension(name: str) -> str:
    """Return the extension of a file name without the leading dot."""
    return Path(name).suffix[1:]


def is_binary_sample(sample: bytes) -> bool:
    """Classify a content sample.

    Binary if it contains a NUL byte or more than 30% of its bytes are
    control bytes other than tab, LF and CR. An empty sample is text.
    """
    if not sample:
        return False
    if b"\x00" in sample:
        return True
    control = sum(1 for b in sample if b < 32 and b not in TEXT_CONTROL_BYTES)
    return control / len(sample) > BINARY_CONTROL_THRESHOLD


async def is_binary_file(path: Path) -> bool:
    """Sample the head of a file; unreadable files count as binary."""
    try:
        async with aiofiles.open(path, "rb") as f:
            sample = await f.read(BINARY_SAMPLE_SIZE)
    except OSError as e:
        logger.debug(
            "binary_sample_failed",
            extra={"file.path": str(path), "error.message": str(e)},
        )
        return True
    return is_binary_sample(sample)


async def _read_gitignore(root: Path) -> list[str]:
    path = root / ".gitignore"
    try:
        async with aiofiles.open(path, encoding="utf-8", errors="replace") as f:
            content = await f.read()
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning(
            "gitignore_unreadable",
            extra={"file.path": str(path), "error.message": str(e)},
        )
        return []
    return content.splitlines()


async def build_ignore_spec(root: Path) -> pathspec.GitIgnoreSpec:
    """Merge the built-in deny list with the root .gitignore."""
    lines = list(DEFAULT_IGNORE_PATTERNS)
    lines.extend(await _read_gitignore(root))
    return pathspec.GitIgnoreSpec.from_lines(lines)


def _compile(patterns: tuple[str, ...] | list[str]) -> pathspec.PathSpec | None:
    if not patterns:
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


async def _walk(
    root: Path,
    ignore: pathspec.GitIgnoreSpec,
) -> list[tuple[Path, str]]:
    """Collect (absolute, relative) file paths not matched by ``ignore``."""
    found: list[tuple[Path, str]] = []
    pending: list[tuple[Path, str]] = [(root, "")]

    while pending:
        directory, rel_dir = pending.pop()
        try:
            with await aiofiles.os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            logger.debug(
                "scandir_failed",
                extra={"file.path": str(directory), "error.message": str(e)},
            )
            continue

        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name in ALWAYS_PRUNED_DIRS:
                        continue
                    if ignore.match_file(rel_path + "/"):
                        continue
                    pending.append((Path(entry.path), rel_path))
                elif entry.is_file():
                    if not ignore.match_file(rel_path):
                        found.append((Path(entry.path), rel_path))
            except OSError:
                continue

    return found


def sort_files(files: list[FileRecord], mode: SortMode) -> list[FileRecord]:
    if mode == "size":
        return sorted(files, key=lambda f: (-f.size_bytes, f.relative_path))
    if mode == "extension":
        return sorted(files, key=lambda f: (f.extension, f.relative_path))
    return sorted(files, key=lambda f: f.relative_path)


def sort_by_layout(
    files: list[FileRecord], layout: tuple[str, ...] | list[str]
) -> list[FileRecord]:
    """Order files by the first layout glob they match, then by path.

    Files matching no glob sort after all matched files.
    """
    specs = [pathspec.PathSpec.from_lines("gitwildmatch", [p]) for p in layout if p]

    def priority(record: FileRecord) -> int:
        for index, spec in enumerate(specs):
            if spec.match_file(record.relative_path):
                return index
        return len(specs)

    return sorted(files, key=lambda f: (priority(f), f.relative_path))


async def scan_files(
    root: Path,
    include: tuple[str, ...] | list[str] = (),
    exclude: tuple[str, ...] | list[str] = (),
    extensions: tuple[str, ...] | list[str] = (),
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
    sort: SortMode = "path",
    layout: tuple[str, ...] | list[str] = (),
) -> ScanResult:
    """Scan a project root.

    Args:
        root: Directory to scan.
        include: Globs a file must match (default: everything).
        exclude: Globs that drop a file.
        extensions: Allowed extensions without dots (default: all).
        max_file_size_bytes: Files larger than this are dropped.
        sort: Sort mode when no layout is given.
        layout: Ordered globs that take priority over ``sort``.

    Returns:
        ScanResult with files sorted and totals recomputed.

    Raises:
        ScanError: If root does not exist or is not a directory.
    """
    root = Path(root)
    if not await aiofiles.os.path.exists(root):
        raise ScanError(f"Root does not exist: {root}", root)
    if not await aiofiles.os.path.isdir(root):
        raise ScanError(f"Root is not a directory: {root}", root)

    ignore = await build_ignore_spec(root)
    include_spec = _compile(include)
    exclude_spec = _compile(exclude)
    allowed_extensions = set(extensions)

    candidates = await _walk(root, ignore)

    records: list[FileRecord] = []
    for absolute_path, rel_path in candidates:
        if include_spec is not None and not include_spec.match_file(rel_path):
            continue
        if exclude_spec is not None and exclude_spec.match_file(rel_path):
            continue

        extension = normalize_extension(rel_path)
        if allowed_extensions and extension not in allowed_extensions:
            continue

        try:
            stat = await aiofiles.os.stat(absolute_path)
        except OSError:
            continue
        if stat.st_size > max_file_size_bytes:
            continue

        if await is_binary_file(absolute_path):
            continue

        records.append(
            FileRecord(
                absolute_path=absolute_path,
                relative_path=rel_path,
                size_bytes=stat.st_size,
                extension=extension,
                is_binary=False,
            )
        )

    if layout:
        ordered = sort_by_layout(records, layout)
    else:
        ordered = sort_files(records, sort)

    result = ScanResult.build(root, ordered)
    logger.debug(
        "scan_complete",
        extra={
            "scan.root": str(root),
            "scan.candidates": len(candidates),
            "scan.files": result.file_count,
            "scan.bytes": result.total_bytes,
        },
    )
    return result
