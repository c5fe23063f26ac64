"""Tests for the configuration module."""

import os
from pathlib import Path
from unittest.mock import patch

from nextshelf.config import (
    AppConfig,
    LoggingConfig,
    NextUpConfig,
    PlexConfig,
    _expand_env_vars,
    _parse_bool,
    _parse_list,
    get_config_path,
    get_config_paths,
    load_config,
    reset_config,
    save_default_config,
)


class TestConfigModels:
    """Tests for configuration models."""

    def test_plex_config_defaults(self) -> None:
        """Test PlexConfig has correct defaults."""
        cfg = PlexConfig()
        assert cfg.url is None
        assert cfg.token is None
        assert cfg.libraries == []

    def test_nextup_config_defaults(self) -> None:
        """Test NextUpConfig has correct defaults."""
        cfg = NextUpConfig()
        assert cfg.display_specials_within_seasons is False
        assert cfg.max_days_for_next_up == 365
        assert cfg.enable_rewatching is False
        assert cfg.disable_first_episode is False
        assert cfg.limit is None

    def test_logging_config_defaults(self) -> None:
        """Test LoggingConfig has correct defaults."""
        cfg = LoggingConfig()
        assert cfg.level == "WARNING"
        assert cfg.file is None

    def test_app_config_defaults(self) -> None:
        """Test AppConfig has correct defaults."""
        cfg = AppConfig()
        assert isinstance(cfg.plex, PlexConfig)
        assert isinstance(cfg.nextup, NextUpConfig)
        assert isinstance(cfg.logging, LoggingConfig)


class TestEnvVarExpansion:
    """Tests for environment variable expansion."""

    def test_expand_simple_var(self) -> None:
        """Test expanding ${VAR} syntax."""
        with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
            assert _expand_env_vars("prefix_${TEST_VAR}_suffix") == "prefix_test_value_suffix"

    def test_expand_dollar_var(self) -> None:
        """Test expanding $VAR syntax."""
        with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
            assert _expand_env_vars("prefix_$TEST_VAR") == "prefix_test_value"

    def test_expand_missing_var(self) -> None:
        """Test expanding missing variable returns empty string."""
        assert _expand_env_vars("${NONEXISTENT_VAR_12345}") == ""

    def test_expand_nested(self) -> None:
        """Test expanding variables in dicts and lists."""
        with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
            result = _expand_env_vars({"key": ["${TEST_VAR}", "static"], "n": 3})
        assert result == {"key": ["test_value", "static"], "n": 3}


class TestParsing:
    """Tests for INI value parsing."""

    def test_parse_bool(self) -> None:
        """Test truthy and falsy strings."""
        assert all(_parse_bool(v) for v in ["true", "Yes", "1", "ON"])
        assert not any(_parse_bool(v) for v in ["false", "no", "0", "off", ""])

    def test_parse_list(self) -> None:
        """Test comma-separated lists drop blanks."""
        assert _parse_list("TV, Anime ,,") == ["TV", "Anime"]
        assert _parse_list("  ") == []


class TestConfigLoading:
    """Tests for configuration loading."""

    def test_load_nonexistent_file(self) -> None:
        """Test loading returns defaults when no config file exists."""
        reset_config()
        cfg = load_config(Path("/nonexistent/config.yaml"))
        assert cfg == AppConfig()
        assert get_config_path() is None

    def test_load_yaml_config(self, tmp_path: Path) -> None:
        """Test loading configuration from YAML file."""
        path = tmp_path / "nextshelf.yaml"
        path.write_text(
            """
plex:
  url: http://plex.local:32400
  libraries:
    - TV
    - Anime
nextup:
  max_days_for_next_up: 30
  enable_rewatching: true
logging:
  level: DEBUG
""",
            encoding="utf-8",
        )

        reset_config()
        cfg = load_config(path)

        assert cfg.plex.url == "http://plex.local:32400"
        assert cfg.plex.libraries == ["TV", "Anime"]
        assert cfg.nextup.max_days_for_next_up == 30
        assert cfg.nextup.enable_rewatching is True
        assert cfg.nextup.disable_first_episode is False
        assert cfg.logging.level == "DEBUG"
        assert get_config_path() == path

    def test_load_ini_config(self, tmp_path: Path) -> None:
        """Test loading configuration from INI file."""
        path = tmp_path / "nextshelf.ini"
        path.write_text(
            """
[plex]
url = http://192.168.1.100:32400
token = ${TEST_PLEX_TOKEN}
libraries = TV Shows, Anime

[nextup]
display_specials_within_seasons = yes
max_days_for_next_up = 14
disable_first_episode = true
limit = 20

[logging]
level = INFO
file = /tmp/nextshelf.log
""",
            encoding="utf-8",
        )

        reset_config()
        with patch.dict(os.environ, {"TEST_PLEX_TOKEN": "secret"}):
            cfg = load_config(path)

        assert cfg.plex.url == "http://192.168.1.100:32400"
        assert cfg.plex.token == "secret"
        assert cfg.plex.libraries == ["TV Shows", "Anime"]
        assert cfg.nextup.display_specials_within_seasons is True
        assert cfg.nextup.max_days_for_next_up == 14
        assert cfg.nextup.disable_first_episode is True
        assert cfg.nextup.limit == 20
        assert cfg.logging.level == "INFO"
        assert cfg.logging.file == "/tmp/nextshelf.log"

    def test_load_ini_partial_config(self, tmp_path: Path) -> None:
        """Test loading partial INI config uses defaults for missing values."""
        path = tmp_path / "nextshelf.ini"
        path.write_text("[nextup]\nmax_days_for_next_up = not-a-number\n", encoding="utf-8")

        reset_config()
        cfg = load_config(path)

        assert cfg.nextup.max_days_for_next_up == 365
        assert cfg.logging.level == "WARNING"


class TestConfigPaths:
    """Tests for configuration path handling."""

    def test_get_config_paths_includes_cwd(self) -> None:
        """Test that config paths include current directory."""
        cwd = Path.cwd()
        assert any(p.parent == cwd for p in get_config_paths())

    def test_get_config_paths_includes_home(self) -> None:
        """Test that config paths include the home config directory."""
        home_dir = Path.home() / ".nextshelf"
        assert any(p.parent == home_dir for p in get_config_paths())

    def test_ini_checked_before_yaml(self) -> None:
        """Test INI files take priority over YAML files."""
        suffixes = [p.suffix for p in get_config_paths()]
        assert suffixes.index(".yaml") > max(i for i, s in enumerate(suffixes) if s == ".ini")


class TestSaveDefaultConfig:
    """Tests for writing the default config file."""

    def test_save_and_reload(self, tmp_path: Path) -> None:
        """Test the default file loads back to the defaults."""
        path = save_default_config(tmp_path / "sub" / "nextshelf.ini", plex_url="http://plex:32400")

        reset_config()
        cfg = load_config(path)

        assert cfg.plex.url == "http://plex:32400"
        assert cfg.nextup == NextUpConfig()
        assert cfg.logging == LoggingConfig()

    def test_save_uses_env_placeholders(self, tmp_path: Path) -> None:
        """Test missing credentials are written as env var references."""
        path = save_default_config(tmp_path / "nextshelf.ini")
        content = path.read_text(encoding="utf-8")
        assert "${PLEX_URL}" in content
        assert "${PLEX_TOKEN}" in content
