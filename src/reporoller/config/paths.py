"""Centralized path management for repo-roller.

All daemon state (socket, pid file, logs, history) is stored under a single
base directory. The base directory can be overridden with the
REPO_ROLLER_HOME environment variable.

Default location: ~/.cache/repo-roller
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "REPO_ROLLER_HOME"

# Project-level configuration file names, looked up in the project root.
PROJECT_CONFIG_NAME = "repo-roller.config.toml"
PROJECT_YAML_NAME = ".reporoller.yml"


@lru_cache(maxsize=1)
def get_roller_home() -> Path:
    """Get the base directory for all repo-roller state.

    Resolution order:
    1. REPO_ROLLER_HOME environment variable (if set)
    2. ~/.cache/repo-roller

    Returns:
        Path to the repo-roller home directory.
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".cache" / "repo-roller"


def get_config_path() -> Path:
    """Get the daemon config file path."""
    return get_roller_home() / "config.toml"


def get_logs_path() -> Path:
    """Get the logs directory path."""
    return get_roller_home() / "logs"


def get_history_path() -> Path:
    """Get the bundle history file path."""
    return get_roller_home() / "history.json"


def get_rpc_socket_path() -> Path:
    """Get the daemon Unix socket path."""
    return get_roller_home() / "daemon.sock"


def get_pid_path() -> Path:
    """Get the daemon PID file path."""
    return get_roller_home() / "daemon.pid"


def get_service_log_path() -> Path:
    """Get the log file used for a detached daemon's stdout/stderr."""
    return get_logs_path() / "daemon.log"


def ensure_roller_home() -> Path:
    """Ensure the repo-roller home directory exists.

    Returns:
        Path to the home directory.
    """
    home = get_roller_home()
    home.mkdir(parents=True, exist_ok=True)
    return home


def get_all_paths() -> dict[str, Path]:
    """Get all standard paths for debugging/display."""
    return {
        "home": get_roller_home(),
        "config": get_config_path(),
        "logs": get_logs_path(),
        "history": get_history_path(),
        "socket": get_rpc_socket_path(),
        "pid": get_pid_path(),
        "service_log": get_service_log_path(),
    }
