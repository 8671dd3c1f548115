"""Tests for configuration loading and option resolution."""

from pathlib import Path

import pytest

from reporoller.config import (
    ConfigError,
    OptionOverrides,
    ProjectConfig,
    RepoRollerYml,
    load_daemon_config,
    load_project_config,
    load_reporoller_yml,
    resolve_options,
)
from reporoller.config.models import DEFAULT_MAX_FILE_SIZE_BYTES
from reporoller.config.resolve import parse_extensions

# =============================================================================
# Daemon config
# =============================================================================


class TestLoadDaemonConfig:
    """Tests for load_daemon_config()."""

    def test_defaults_without_file(self, roller_home: Path):
        config = load_daemon_config()

        assert config.socket_path == roller_home / "daemon.sock"
        assert config.pid_path == roller_home / "daemon.pid"
        assert config.cache_ttl_seconds == 300
        assert config.max_cache_size == 10
        assert config.request_timeout_seconds == 5.0
        assert config.debug is False

    def test_reads_daemon_table(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text(
            """
[daemon]
cache_ttl_seconds = 30
max_cache_size = 2
debug = true
log_level = "DEBUG"
"""
        )

        config = load_daemon_config(path)

        assert config.cache_ttl_seconds == 30
        assert config.max_cache_size == 2
        assert config.debug is True
        assert config.log_level == "DEBUG"

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text("[daemon]\nmax_cache_size = 2\n")
        monkeypatch.setenv("REPO_ROLLER_MAX_CACHE_SIZE", "7")
        monkeypatch.setenv("REPO_ROLLER_LOG_LEVEL", "warning")
        monkeypatch.setenv("REPO_ROLLER_SOCKET", str(tmp_path / "s.sock"))

        config = load_daemon_config(path)

        assert config.max_cache_size == 7
        assert config.log_level == "WARNING"
        assert config.socket_path == tmp_path / "s.sock"

    def test_explicit_missing_path(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_daemon_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("not valid toml [[[")
        with pytest.raises(ConfigError):
            load_daemon_config(path)

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[daemon]\nmax_cache_size = 0\n")
        with pytest.raises(ConfigError):
            load_daemon_config(path)


# =============================================================================
# Project files
# =============================================================================


class TestProjectFiles:
    """Tests for repo-roller.config.toml and .reporoller.yml."""

    async def test_missing_files(self, tmp_path: Path):
        assert await load_project_config(tmp_path) is None
        assert await load_reporoller_yml(tmp_path) is None

    async def test_project_config(self, tmp_path: Path):
        (tmp_path / "repo-roller.config.toml").write_text(
            """
default_preset = "api"

[presets.api]
include = ["api/**"]
maxFileSizeBytes = 2048
"""
        )

        config = await load_project_config(tmp_path)

        assert config is not None
        assert config.default_preset == "api"
        assert config.presets["api"].include == ["api/**"]
        assert config.presets["api"].max_file_size_bytes == 2048

    async def test_reporoller_yml(self, tmp_path: Path):
        (tmp_path / ".reporoller.yml").write_text(
            """
architectural_overview: |
  Three layers.
profiles:
  llm-context:
    layout:
      - README.md
      - src/**
"""
        )

        yml = await load_reporoller_yml(tmp_path)

        assert yml is not None
        assert yml.architectural_overview == "Three layers.\n"
        assert yml.profiles["llm-context"].layout == ["README.md", "src/**"]

    async def test_malformed_yml(self, tmp_path: Path):
        (tmp_path / ".reporoller.yml").write_text("profiles: [unclosed")
        with pytest.raises(ConfigError):
            await load_reporoller_yml(tmp_path)

    async def test_yml_wrong_shape(self, tmp_path: Path):
        (tmp_path / ".reporoller.yml").write_text("profiles: 3\n")
        with pytest.raises(ConfigError):
            await load_reporoller_yml(tmp_path)


# =============================================================================
# Option resolution
# =============================================================================


class TestParseExtensions:
    def test_comma_string(self):
        assert parse_extensions(".py, ts,,md") == ["py", "ts", "md"]

    def test_list(self):
        assert parse_extensions([".py", "ts"]) == ["py", "ts"]

    def test_empty(self):
        assert parse_extensions(None) == []
        assert parse_extensions("") == []


class TestResolveOptions:
    """Tests for resolve_options()."""

    def test_defaults(self, tmp_path: Path):
        options = resolve_options(tmp_path)

        assert options.root == tmp_path
        assert options.format == "md"
        assert options.out_file == "source_code.md"
        assert options.profile == "llm-context"
        assert options.max_file_size_bytes == DEFAULT_MAX_FILE_SIZE_BYTES
        assert options.extensions == ()
        assert options.with_tree is True
        assert options.strip_comments is False

    def test_built_in_preset(self, tmp_path: Path):
        options = resolve_options(tmp_path, OptionOverrides(preset="minimal"))

        assert options.extensions == ("ts", "tsx", "js", "jsx")
        assert options.strip_comments is True
        assert options.with_tree is False
        assert options.max_file_size_bytes == 512 * 1024
        assert options.preset_name == "minimal"

    def test_overrides_beat_preset(self, tmp_path: Path):
        overrides = OptionOverrides.model_validate(
            {"preset": "minimal", "ext": "py", "maxSize": 4, "withTree": True}
        )

        options = resolve_options(tmp_path, overrides)

        assert options.extensions == ("py",)
        assert options.max_file_size_bytes == 4096
        assert options.with_tree is True
        # Untouched preset values survive
        assert options.strip_comments is True

    def test_unknown_preset_falls_back(self, tmp_path: Path, caplog):
        with caplog.at_level("WARNING"):
            options = resolve_options(tmp_path, OptionOverrides(preset="nope"))

        assert options.extensions == ()
        assert "nope" in caplog.text

    def test_project_preset_and_default(self, tmp_path: Path):
        config = ProjectConfig.model_validate(
            {"default_preset": "api", "presets": {"api": {"include": ["api/**"]}}}
        )

        assert resolve_options(tmp_path, config=config).include == ("api/**",)
        named = resolve_options(tmp_path, OptionOverrides(preset="api"), config=config)
        assert named.include == ("api/**",)

    def test_yml_preset_and_layout(self, tmp_path: Path):
        yml = RepoRollerYml.model_validate(
            {
                "architectural_overview": "Overview",
                "profiles": {"custom": {"layout": ["docs/**"]}},
                "presets": {"docs-only": {"extensions": ["md"]}},
            }
        )

        options = resolve_options(
            tmp_path, OptionOverrides(preset="docs-only", profile="custom"), yml=yml
        )

        assert options.extensions == ("md",)
        assert options.layout == ("docs/**",)
        assert options.architectural_overview == "Overview"

    def test_format_sets_default_out_file(self, tmp_path: Path):
        options = resolve_options(tmp_path, OptionOverrides(format="yaml"))
        assert options.out_file == "source_code.yaml"

    def test_comma_separated_patterns(self):
        overrides = OptionOverrides.model_validate({"exclude": "a/**, *.snap"})
        assert overrides.exclude == ["a/**", "*.snap"]

    def test_negative_max_size_rejected(self):
        with pytest.raises(ValueError):
            OptionOverrides.model_validate({"maxSize": -1})
