"""Tests for path management."""

from pathlib import Path

from reporoller.config.paths import (
    ENV_VAR,
    ensure_roller_home,
    get_all_paths,
    get_config_path,
    get_history_path,
    get_logs_path,
    get_pid_path,
    get_roller_home,
    get_rpc_socket_path,
    get_service_log_path,
)


class TestGetRollerHome:
    """Tests for get_roller_home()."""

    def test_default_is_user_cache(self, monkeypatch):
        monkeypatch.delenv(ENV_VAR, raising=False)
        get_roller_home.cache_clear()

        assert get_roller_home() == Path.home() / ".cache" / "repo-roller"

    def test_respects_env_var(self, monkeypatch, tmp_path):
        custom_path = tmp_path / "custom"
        monkeypatch.setenv(ENV_VAR, str(custom_path))
        get_roller_home.cache_clear()

        assert get_roller_home() == custom_path.resolve()

    def test_expands_tilde_in_env_var(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "~/my-roller")
        get_roller_home.cache_clear()

        assert get_roller_home() == (Path.home() / "my-roller").resolve()


class TestDerivedPaths:
    """Tests for derived path functions."""

    def test_paths_live_under_home(self, roller_home: Path):
        assert get_config_path() == roller_home / "config.toml"
        assert get_logs_path() == roller_home / "logs"
        assert get_history_path() == roller_home / "history.json"
        assert get_rpc_socket_path() == roller_home / "daemon.sock"
        assert get_pid_path() == roller_home / "daemon.pid"
        assert get_service_log_path() == roller_home / "logs" / "daemon.log"

    def test_get_all_paths(self, roller_home: Path):
        paths = get_all_paths()
        assert paths["home"] == roller_home
        assert paths["socket"] == roller_home / "daemon.sock"

    def test_ensure_roller_home(self, roller_home: Path):
        assert not roller_home.exists()
        assert ensure_roller_home() == roller_home
        assert roller_home.is_dir()
