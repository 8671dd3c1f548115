"""Render a scan into a single bundle document (md, json, yaml, txt)."""

import json
import logging
import math
from datetime import UTC, datetime
from typing import Any

import aiofiles
import yaml

from reporoller.config.models import ResolvedOptions
from reporoller.core.types import FileRecord, ScanResult

logger = logging.getLogger(__name__)

LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "jsx",
    "mjs": "javascript",
    "cjs": "javascript",
    "json": "json",
    "md": "markdown",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
    "xml": "xml",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "sass": "sass",
    "py": "python",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "java": "java",
    "c": "c",
    "cpp": "cpp",
    "h": "c",
    "hpp": "cpp",
    "cs": "csharp",
    "php": "php",
    "sh": "bash",
    "bash": "bash",
    "zsh": "zsh",
    "fish": "fish",
    "sql": "sql",
    "graphql": "graphql",
    "proto": "protobuf",
    "dockerfile": "dockerfile",
    "makefile": "makefile",
    "env": "bash",
}

SLASH_COMMENT_EXTENSIONS = frozenset(
    {"ts", "tsx", "js", "jsx", "java", "c", "cpp", "cs", "go", "rs"}
)
HASH_COMMENT_EXTENSIONS = frozenset({"py", "sh", "bash", "yaml", "yml", "toml", "rb"})

TXT_SEPARATOR = "=" * 50


def get_language(extension: str) -> str:
    return LANGUAGES.get(extension.lower(), extension)


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    index = min(int(math.log(size, 1024)), len(units) - 1)
    return f"{size / 1024**index:.2f} {units[index]}"


def strip_comments(content: str, extension: str) -> str:
    """Remove line and block comments for known language families.

    Line-based and naive: comment markers inside string literals are
    stripped too. Lines left blank are dropped.
    """
    slash = extension in SLASH_COMMENT_EXTENSIONS
    hash_ = extension in HASH_COMMENT_EXTENSIONS
    if not slash and not hash_:
        return content

    result: list[str] = []
    in_block = False

    for line in content.split("\n"):
        if slash:
            if in_block:
                end = line.find("*/")
                if end == -1:
                    continue
                line = line[end + 2 :]
                in_block = False

            start = line.find("/*")
            if start != -1:
                end = line.find("*/", start)
                if end != -1:
                    line = line[:start] + line[end + 2 :]
                else:
                    line = line[:start]
                    in_block = True

            index = line.find("//")
            if index != -1:
                line = line[:index]

        if hash_:
            index = line.find("#")
            if index != -1:
                line = line[:index]

        if line.strip():
            result.append(line)

    return "\n".join(result)


def build_tree_lines(paths: list[str]) -> list[str]:
    """Render relative paths as an indented tree."""
    tree: dict[str, Any] = {}
    for path in paths:
        node = tree
        for part in (p for p in path.split("/") if p):
            node = node.setdefault(part, {})

    lines: list[str] = []

    def walk(node: dict[str, Any], prefix: str) -> None:
        items = list(node.items())
        for i, (name, children) in enumerate(items):
            last = i == len(items) - 1
            connector = "└── " if last else "├── "
            suffix = "/" if children else ""
            lines.append(f"{prefix}{connector}{name}{suffix}")
            if children:
                walk(children, prefix + ("    " if last else "│   "))

    walk(tree, "")
    return lines


async def read_file_content(record: FileRecord, options: ResolvedOptions) -> str:
    """Read a file for rendering; read errors are inlined as text."""
    try:
        async with aiofiles.open(
            record.absolute_path, encoding="utf-8", errors="replace"
        ) as f:
            content = await f.read()
    except OSError as e:
        logger.warning(
            "render_read_failed",
            extra={"file.path": record.relative_path, "error.message": str(e)},
        )
        return f"[Error reading file: {e}]"

    if options.strip_comments:
        content = strip_comments(content, record.extension)
    return content


def _render_stats(scan: ScanResult) -> str:
    counts = sorted(scan.extension_counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ext_lines = "\n".join(
        f"  - {ext or '(no extension)'}: {count} file{'' if count == 1 else 's'}"
        for ext, count in counts
    )
    return (
        "## Statistics\n\n"
        f"- **Total files**: {scan.file_count}\n"
        f"- **Total size**: {format_bytes(scan.total_bytes)}\n"
        "- **Files by extension**:\n"
        f"{ext_lines}\n\n"
    )


async def render_markdown(scan: ScanResult, options: ResolvedOptions) -> str:
    parts = [
        "# Source Code Archive\n\n"
        f"**Root**: `{scan.root}`\n"
        f"**Files**: {scan.file_count}\n"
        f"**Total size**: {format_bytes(scan.total_bytes)}\n\n"
        "---\n\n"
    ]

    if options.preset_header:
        parts.append(f"{options.preset_header}\n\n")

    if options.architectural_overview:
        parts.append(f"## Architectural Overview\n\n{options.architectural_overview}\n\n")

    if options.with_tree:
        tree = "\n".join(build_tree_lines(scan.relative_paths()))
        parts.append(f"## Directory Structure\n\n```\n{tree}\n```\n\n")

    if options.with_stats:
        parts.append(_render_stats(scan))

    parts.append("## Files\n\n")
    for record in scan.files:
        content = await read_file_content(record, options)
        language = get_language(record.extension)
        parts.append(f"### {record.relative_path}\n\n```{language}\n{content}\n```\n\n")

    if options.preset_footer:
        parts.append(f"{options.preset_footer}\n")

    return "".join(parts)


async def _structured(scan: ScanResult, options: ResolvedOptions) -> dict[str, Any]:
    files = []
    for record in scan.files:
        files.append(
            {
                "path": record.relative_path,
                "language": get_language(record.extension),
                "sizeBytes": record.size_bytes,
                "content": await read_file_content(record, options),
            }
        )

    data: dict[str, Any] = {
        "metadata": {
            "root": str(scan.root),
            "profile": options.profile,
            "timestamp": datetime.now(UTC).isoformat(),
            "fileCount": scan.file_count,
            "totalBytes": scan.total_bytes,
        },
    }
    if options.architectural_overview:
        data["architecturalOverview"] = options.architectural_overview
    if options.with_stats:
        data["extensionCounts"] = dict(scan.extension_counts)
    data["files"] = files
    return data


async def render_json(scan: ScanResult, options: ResolvedOptions) -> str:
    return json.dumps(await _structured(scan, options), indent=2, ensure_ascii=False)


async def render_yaml(scan: ScanResult, options: ResolvedOptions) -> str:
    return yaml.safe_dump(
        await _structured(scan, options),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


async def render_txt(scan: ScanResult, options: ResolvedOptions) -> str:
    parts = [
        f"Source Code Archive\nRoot: {scan.root}\n"
        f"Files: {scan.file_count}\nTotal size: {format_bytes(scan.total_bytes)}\n\n"
    ]
    if options.with_tree:
        parts.append("\n".join(build_tree_lines(scan.relative_paths())) + "\n\n")

    for record in scan.files:
        content = await read_file_content(record, options)
        parts.append(
            f"{TXT_SEPARATOR}\nFile: {record.relative_path}\n{TXT_SEPARATOR}\n\n"
            f"{content}\n\n"
        )
    return "".join(parts)


RENDERERS = {
    "md": render_markdown,
    "json": render_json,
    "yaml": render_yaml,
    "txt": render_txt,
}


async def render(scan: ScanResult, options: ResolvedOptions) -> str:
    """Render a scan in the format named by ``options.format``."""
    renderer = RENDERERS[options.format]
    return await renderer(scan, options)
