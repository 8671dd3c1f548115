"""Bundle history persistence.

A single JSON document ``{"version": 1, "entries": [...]}`` holding the most
recent runs, oldest first. Reads and writes go through aiofiles; writes are
atomic (temp file + rename).
"""

import asyncio
import json
import logging
import tempfile
import uuid
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import aiofiles
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from reporoller.config.models import ResolvedOptions
from reporoller.config.paths import get_history_path
from reporoller.core.types import FileRecord

logger = logging.getLogger(__name__)

HISTORY_VERSION = 1
MAX_HISTORY_ENTRIES = 1000
DEFAULT_QUERY_LIMIT = 20
# Only the first few exclude patterns are kept per entry
MAX_EXCLUDED_PATTERNS = 10
GIT_TIMEOUT_SECONDS = 5


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectInfo(_CamelModel):
    name: str
    path: str
    git_branch: str | None = None
    git_commit: str | None = None


class CommandInfo(_CamelModel):
    args: list[str] = Field(default_factory=list)
    preset: str | None = None
    profile: str
    model: str | None = None


class RunResult(_CamelModel):
    file_count: int
    total_bytes: int
    estimated_tokens: int
    estimated_cost: float | None = None
    output_file: str
    format: str
    duration: int  # ms


class FileSelection(_CamelModel):
    included: list[str] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)


class HistoryEntry(_CamelModel):
    id: str
    timestamp: str
    project: ProjectInfo
    command: CommandInfo
    result: RunResult
    files: FileSelection
    tags: list[str] | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "project": self.project.name,
            "files": self.result.file_count,
            "tokens": self.result.estimated_tokens,
            "cost": self.result.estimated_cost,
        }

    @property
    def created_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp)


async def get_git_info(cwd: Path) -> tuple[str | None, str | None]:
    """Return (branch, short commit) for a checkout, or (None, None)."""

    async def _git(*args: str) -> str | None:
        proc = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, _ = await asyncio.wait_for(
                proc.communicate(), timeout=GIT_TIMEOUT_SECONDS
            )
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise
        if proc.returncode != 0:
            return None
        return stdout.decode(errors="replace").strip() or None

    try:
        branch = await _git("rev-parse", "--abbrev-ref", "HEAD")
        commit = await _git("rev-parse", "--short", "HEAD")
    except (TimeoutError, FileNotFoundError, OSError):
        return None, None
    return branch, commit


class HistoryStore:
    """JSON-file store of bundle runs."""

    def __init__(
        self,
        path: Path | None = None,
        max_entries: int = MAX_HISTORY_ENTRIES,
    ) -> None:
        self.path = path or get_history_path()
        self.max_entries = max_entries
        self._lock = asyncio.Lock()

    async def load(self) -> list[HistoryEntry]:
        """Load all entries, oldest first.

        A missing or unreadable file is treated as an empty history.
        """
        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            return []

        try:
            data = json.loads(content)
            return [HistoryEntry.model_validate(e) for e in data.get("entries", [])]
        except (json.JSONDecodeError, AttributeError, ValidationError) as e:
            logger.warning(
                "history_file_corrupted",
                extra={"file.path": str(self.path), "error.message": str(e)},
            )
            return []

    async def _save(self, entries: list[HistoryEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        entries = entries[-self.max_entries :]
        payload = json.dumps(
            {"version": HISTORY_VERSION, "entries": [e.to_dict() for e in entries]},
            indent=2,
            ensure_ascii=False,
        )

        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.stem}_",
            suffix=".tmp",
        )
        try:
            async with aiofiles.open(temp_fd, "w", encoding="utf-8") as f:
                await f.write(payload)
            Path(temp_path).replace(self.path)
        except Exception:
            Path(temp_path).unlink(missing_ok=True)
            raise

    async def record(
        self,
        options: ResolvedOptions,
        files: Sequence[FileRecord],
        estimated_tokens: int,
        estimated_cost: float | None,
        duration_ms: int,
        args: Sequence[str] = (),
    ) -> HistoryEntry:
        """Append a run to the history and return the stored entry."""
        root = Path(options.root).resolve()
        branch, commit = await get_git_info(root)

        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(UTC).isoformat(),
            project=ProjectInfo(
                name=root.name,
                path=str(root),
                git_branch=branch,
                git_commit=commit,
            ),
            command=CommandInfo(
                args=list(args),
                preset=options.preset_name,
                profile=options.profile,
                model=options.model,
            ),
            result=RunResult(
                file_count=len(files),
                total_bytes=sum(f.size_bytes for f in files),
                estimated_tokens=estimated_tokens,
                estimated_cost=estimated_cost,
                output_file=options.out_file,
                format=options.format,
                duration=duration_ms,
            ),
            files=FileSelection(
                included=[f.relative_path for f in files],
                excluded=list(options.exclude[:MAX_EXCLUDED_PATTERNS]),
            ),
        )

        async with self._lock:
            entries = await self.load()
            entries.append(entry)
            await self._save(entries)

        logger.debug(
            "history_recorded",
            extra={"history.id": entry.id, "project": entry.project.name},
        )
        return entry

    async def query(
        self,
        project: str | None = None,
        limit: int = DEFAULT_QUERY_LIMIT,
        offset: int = 0,
    ) -> list[HistoryEntry]:
        """Entries newest first, optionally filtered by project name substring."""
        entries = await self.load()
        if project:
            needle = project.lower()
            entries = [e for e in entries if needle in e.project.name.lower()]
        # Equal timestamps keep newest-first append order
        entries.reverse()
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries[offset : offset + limit]

    async def get(self, id_or_index: str | int) -> HistoryEntry | None:
        """Look up an entry by id prefix or by position (negative from the end)."""
        entries = await self.load()

        if isinstance(id_or_index, int):
            index = id_or_index + len(entries) if id_or_index < 0 else id_or_index
            if 0 <= index < len(entries):
                return entries[index]
            return None

        if not id_or_index:
            return None
        return next((e for e in entries if e.id.startswith(id_or_index)), None)

    async def stats(self, now: datetime | None = None) -> dict[str, Any]:
        """Aggregate statistics over all recorded runs."""
        entries = await self.load()
        if not entries:
            return {
                "totalRuns": 0,
                "uniqueProjects": 0,
                "totalTokensGenerated": 0,
                "totalCostIncurred": 0,
                "averageFilesPerRun": 0,
                "recentActivity": {"last24h": 0, "last7d": 0, "last30d": 0},
            }

        now = now or datetime.now(UTC)
        presets = Counter(e.command.preset for e in entries if e.command.preset)
        projects = Counter(e.project.name for e in entries)
        ages = [now - e.created_at for e in entries]

        stats: dict[str, Any] = {
            "totalRuns": len(entries),
            "uniqueProjects": len({e.project.path for e in entries}),
            "totalTokensGenerated": sum(e.result.estimated_tokens for e in entries),
            "totalCostIncurred": sum(e.result.estimated_cost or 0 for e in entries),
            "averageFilesPerRun": round(
                sum(e.result.file_count for e in entries) / len(entries)
            ),
            "recentActivity": {
                "last24h": sum(1 for a in ages if a <= timedelta(days=1)),
                "last7d": sum(1 for a in ages if a <= timedelta(days=7)),
                "last30d": sum(1 for a in ages if a <= timedelta(days=30)),
            },
        }
        if presets:
            stats["mostUsedPreset"] = presets.most_common(1)[0][0]
        stats["mostActiveProject"] = projects.most_common(1)[0][0]
        return stats
