"""Configuration loading from TOML/YAML files and environment variables."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import aiofiles
import yaml
from pydantic import ValidationError

from reporoller.config.models import (
    ConfigError,
    DaemonConfig,
    ProjectConfig,
    RepoRollerYml,
)
from reporoller.config.paths import (
    PROJECT_CONFIG_NAME,
    PROJECT_YAML_NAME,
    get_config_path,
)

logger = logging.getLogger(__name__)

# Environment variable -> DaemonConfig field
ENV_OVERRIDES = {
    "REPO_ROLLER_SOCKET": "socket_path",
    "REPO_ROLLER_PID_FILE": "pid_path",
    "REPO_ROLLER_CACHE_TTL": "cache_ttl_seconds",
    "REPO_ROLLER_MAX_CACHE_SIZE": "max_cache_size",
    "REPO_ROLLER_TIMEOUT": "request_timeout_seconds",
    "REPO_ROLLER_DEBUG": "debug",
    "REPO_ROLLER_LOG_LEVEL": "log_level",
}


def _apply_env_overrides(section: dict[str, Any]) -> dict[str, Any]:
    """Overlay REPO_ROLLER_* environment variables onto the [daemon] table."""
    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            section[key] = value.upper() if key == "log_level" else value
    return section


def load_daemon_config(path: Path | None = None) -> DaemonConfig:
    """Load daemon configuration.

    Reads the [daemon] table from the config file when present. A missing
    default config file is not an error: defaults plus environment
    overrides are used.

    Args:
        path: Explicit path to config file. If None, uses the default location.

    Returns:
        Validated DaemonConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the config file is invalid.
    """
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = get_config_path()

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    section = dict(raw_config.get("daemon") or {})
    section = _apply_env_overrides(section)

    try:
        return DaemonConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"Invalid daemon config: {e}") from e


async def _read_text(path: Path) -> str | None:
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            return await f.read()
    except FileNotFoundError:
        return None


async def load_project_config(root: Path) -> ProjectConfig | None:
    """Load repo-roller.config.toml from a project root.

    Returns:
        ProjectConfig, or None if the project has no config file.

    Raises:
        ConfigError: If the file exists but is malformed.
    """
    config_path = root / PROJECT_CONFIG_NAME
    content = await _read_text(config_path)
    if content is None:
        return None

    try:
        return ProjectConfig.model_validate(tomllib.loads(content))
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ConfigError(f"Invalid project config {config_path}: {e}") from e


async def load_reporoller_yml(root: Path) -> RepoRollerYml | None:
    """Load .reporoller.yml from a project root.

    Returns:
        RepoRollerYml, or None if the project has no YAML config.

    Raises:
        ConfigError: If the file exists but is malformed.
    """
    yml_path = root / PROJECT_YAML_NAME
    content = await _read_text(yml_path)
    if content is None:
        return None

    try:
        data = yaml.safe_load(content) or {}
        return RepoRollerYml.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigError(f"Invalid {PROJECT_YAML_NAME} in {root}: {e}") from e
