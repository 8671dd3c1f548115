"""Configuration module."""

from reporoller.config.loader import (
    load_daemon_config,
    load_project_config,
    load_reporoller_yml,
)
from reporoller.config.models import (
    ConfigError,
    DaemonConfig,
    ProfileConfig,
    ProjectConfig,
    RepoRollerYml,
    ResolvedOptions,
    RollerPreset,
)
from reporoller.config.paths import (
    get_config_path,
    get_history_path,
    get_pid_path,
    get_roller_home,
    get_rpc_socket_path,
)
from reporoller.config.resolve import OptionOverrides, resolve_options

__all__ = [
    "ConfigError",
    "DaemonConfig",
    "OptionOverrides",
    "ProfileConfig",
    "ProjectConfig",
    "RepoRollerYml",
    "ResolvedOptions",
    "RollerPreset",
    "get_config_path",
    "get_history_path",
    "get_pid_path",
    "get_roller_home",
    "get_rpc_socket_path",
    "load_daemon_config",
    "load_project_config",
    "load_reporoller_yml",
    "resolve_options",
]
