"""Option resolution.

Merges, in order of increasing precedence:
1. Base defaults
2. Preset: built-in first, then repo-roller.config.toml, then .reporoller.yml
   (or the project's default_preset when no preset is requested)
3. Caller overrides (CLI flags or RPC params)
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from reporoller.config.models import (
    DEFAULT_FORMAT,
    DEFAULT_MAX_FILE_SIZE_BYTES,
    DEFAULT_OUTPUT_FILE,
    DEFAULT_PROFILE,
    OutputFormat,
    ProjectConfig,
    RepoRollerYml,
    ResolvedOptions,
    RollerPreset,
    SortMode,
)
from reporoller.config.presets import get_built_in_preset, list_built_in_presets

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS: dict[str, str] = {
    "md": "md",
    "json": "json",
    "yaml": "yaml",
    "txt": "txt",
}


def normalize_extension(ext: str) -> str:
    """Strip surrounding whitespace and a single leading dot."""
    ext = ext.strip()
    return ext[1:] if ext.startswith(".") else ext


def parse_extensions(ext: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Parse an extension filter from a comma string or a list."""
    if not ext:
        return []
    if isinstance(ext, str):
        items = ext.split(",")
    else:
        items = list(ext)
    return [e for e in (normalize_extension(item) for item in items) if e]


class OptionOverrides(BaseModel):
    """Caller-supplied partial options.

    Field names are camelCase on the wire (``stripComments``, ``maxSize``)
    and snake_case in Python.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    preset: str | None = None
    profile: str | None = None
    ext: str | list[str] | None = None
    include: list[str] | None = None
    exclude: list[str] | None = None
    # Kilobytes, matching the --max-size CLI flag
    max_size: int | None = Field(default=None, ge=0)
    strip_comments: bool | None = None
    with_tree: bool | None = None
    with_stats: bool | None = None
    sort: SortMode | None = None
    format: OutputFormat | None = None
    model: str | None = None
    out_file: str | None = None

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def _split_patterns(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [p for p in (part.strip() for part in value.split(",")) if p]
        return value


def _default_out_file(fmt: str) -> str:
    if fmt == DEFAULT_FORMAT:
        return DEFAULT_OUTPUT_FILE
    stem = DEFAULT_OUTPUT_FILE.rsplit(".", 1)[0]
    return f"{stem}.{FORMAT_EXTENSIONS[fmt]}"


def _find_preset(
    name: str,
    config: ProjectConfig | None,
    yml: RepoRollerYml | None,
) -> RollerPreset | None:
    preset = get_built_in_preset(name)
    if preset is not None:
        return preset
    if config and name in config.presets:
        return config.presets[name]
    if yml and name in yml.presets:
        return yml.presets[name]
    return None


def resolve_options(
    root: Path,
    overrides: OptionOverrides | None = None,
    config: ProjectConfig | None = None,
    yml: RepoRollerYml | None = None,
) -> ResolvedOptions:
    """Resolve full options for a project root.

    Args:
        root: Canonical project root.
        overrides: Caller-supplied partial options.
        config: Parsed repo-roller.config.toml, if any.
        yml: Parsed .reporoller.yml, if any.

    Returns:
        Frozen ResolvedOptions.
    """
    overrides = overrides or OptionOverrides()

    preset: RollerPreset | None = None
    if overrides.preset:
        preset = _find_preset(overrides.preset, config, yml)
        if preset is None:
            available = sorted(
                set(list_built_in_presets())
                | set(config.presets if config else ())
                | set(yml.presets if yml else ())
            )
            logger.warning(
                "Preset %r not found, using defaults",
                overrides.preset,
                extra={"available": available},
            )
    elif config and config.default_preset:
        preset = config.presets.get(config.default_preset)

    preset = preset or RollerPreset()

    fmt = overrides.format or DEFAULT_FORMAT
    profile = overrides.profile or DEFAULT_PROFILE

    extensions = parse_extensions(overrides.ext) or parse_extensions(
        preset.extensions
    )

    max_file_size_bytes = (
        overrides.max_size * 1024
        if overrides.max_size is not None
        else preset.max_file_size_bytes
        if preset.max_file_size_bytes is not None
        else DEFAULT_MAX_FILE_SIZE_BYTES
    )

    layout: tuple[str, ...] = ()
    if yml and profile in yml.profiles:
        layout = tuple(yml.profiles[profile].layout)

    return ResolvedOptions(
        root=root,
        out_file=overrides.out_file or _default_out_file(fmt),
        include=tuple(overrides.include or preset.include or ()),
        exclude=tuple(overrides.exclude or preset.exclude or ()),
        extensions=tuple(extensions),
        max_file_size_bytes=max_file_size_bytes,
        strip_comments=_first(overrides.strip_comments, preset.strip_comments, False),
        with_tree=_first(overrides.with_tree, preset.with_tree, True),
        with_stats=_first(overrides.with_stats, preset.with_stats, True),
        sort=overrides.sort or preset.sort or "path",
        format=fmt,
        profile=profile,
        preset_name=overrides.preset,
        model=overrides.model,
        layout=layout,
        architectural_overview=yml.architectural_overview if yml else None,
        preset_header=preset.header,
        preset_footer=preset.footer,
    )


def _first(*values: bool | None) -> bool:
    for value in values:
        if value is not None:
            return value
    return False
