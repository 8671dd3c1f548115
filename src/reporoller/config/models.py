"""Configuration models using Pydantic."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reporoller.config.paths import get_pid_path, get_rpc_socket_path

logger = logging.getLogger(__name__)

SortMode = Literal["path", "size", "extension"]
OutputFormat = Literal["md", "json", "yaml", "txt"]

DEFAULT_MAX_FILE_SIZE_BYTES = 1024 * 1024
DEFAULT_PROFILE = "llm-context"
DEFAULT_FORMAT: OutputFormat = "md"
DEFAULT_OUTPUT_FILE = "source_code.md"
DEFAULT_CACHE_TTL_SECONDS = 5 * 60
DEFAULT_MAX_CACHE_SIZE = 10
DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0


class ConfigError(Exception):
    """Configuration error."""

    pass


class DaemonConfig(BaseModel):
    """Configuration for the background daemon."""

    socket_path: Path = Field(default_factory=get_rpc_socket_path)
    pid_path: Path = Field(default_factory=get_pid_path)
    cache_ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)
    max_cache_size: int = Field(default=DEFAULT_MAX_CACHE_SIZE, ge=1)
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0
    )
    # Include tracebacks in INTERNAL_ERROR responses
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None


class RollerPreset(BaseModel):
    """A reusable set of scan and render options.

    Accepts both snake_case and camelCase keys, so presets written with
    camelCase keys (``maxFileSizeBytes``) keep working.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    include: list[str] | None = None
    exclude: list[str] | None = None
    extensions: list[str] | None = None
    max_file_size_bytes: int | None = Field(default=None, ge=0)
    strip_comments: bool | None = None
    with_tree: bool | None = None
    with_stats: bool | None = None
    sort: SortMode | None = None
    description: str | None = None
    header: str | None = None
    footer: str | None = None


class ProjectConfig(BaseModel):
    """Contents of repo-roller.config.toml in a project root."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    root: str | None = None
    default_preset: str | None = None
    presets: dict[str, RollerPreset] = Field(default_factory=dict)


class ProfileConfig(BaseModel):
    """A named profile; its layout globs control file ordering."""

    layout: list[str] = Field(default_factory=list)


class RepoRollerYml(BaseModel):
    """Contents of .reporoller.yml in a project root."""

    architectural_overview: str | None = None
    profiles: dict[str, ProfileConfig] = Field(default_factory=dict)
    presets: dict[str, RollerPreset] = Field(default_factory=dict)


class ResolvedOptions(BaseModel):
    """Fully resolved options after merging defaults, presets and overrides."""

    model_config = ConfigDict(frozen=True)

    root: Path
    out_file: str = DEFAULT_OUTPUT_FILE
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    strip_comments: bool = False
    with_tree: bool = True
    with_stats: bool = True
    sort: SortMode = "path"
    format: OutputFormat = DEFAULT_FORMAT
    profile: str = DEFAULT_PROFILE
    preset_name: str | None = None
    model: str | None = None
    layout: tuple[str, ...] = ()
    architectural_overview: str | None = None
    preset_header: str | None = None
    preset_footer: str | None = None
