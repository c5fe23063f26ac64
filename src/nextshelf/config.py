"""Configuration management for NextShelf."""

from __future__ import annotations

import configparser
import os
import re
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class PlexConfig(BaseModel):
    """Plex server configuration."""

    url: str | None = None
    token: str | None = None
    libraries: list[str] = Field(default_factory=list)  # Empty means all movie and TV libraries


class NextUpConfig(BaseModel):
    """Next-up defaults."""

    display_specials_within_seasons: bool = False
    max_days_for_next_up: int = 365  # Series idle longer than this only show as first episodes
    enable_rewatching: bool = False
    disable_first_episode: bool = False
    limit: int | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    file: str | None = None  # Optional JSON log file


class AppConfig(BaseModel):
    """Application configuration."""

    plex: PlexConfig = Field(default_factory=PlexConfig)
    nextup: NextUpConfig = Field(default_factory=NextUpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Global config instance
_config: AppConfig | None = None
_config_path: Path | None = None  # Track where config was loaded from


def get_exe_directory() -> Path:
    """Get the directory containing the executable (or script).

    Handles both normal Python execution and PyInstaller bundles.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    # Not __file__, since that's inside the package
    return Path.cwd()


def get_config_paths() -> list[Path]:
    """Get list of config file paths to search, in priority order.

    Search order:
    1. Exe directory
    2. Current working directory
    3. User home directory (~/.nextshelf/)

    INI files are checked before YAML files.

    Returns:
        List of paths to check for config files.
    """
    paths = []

    exe_dir = get_exe_directory()
    cwd = Path.cwd()
    home_dir = Path.home() / ".nextshelf"

    paths.append(exe_dir / "nextshelf.ini")
    if cwd != exe_dir:  # Avoid duplicates
        paths.append(cwd / "nextshelf.ini")
    paths.append(home_dir / "nextshelf.ini")

    paths.append(cwd / "nextshelf.yaml")
    paths.append(cwd / "nextshelf.yml")
    paths.append(home_dir / "config.yaml")
    paths.append(home_dir / "config.yml")

    return paths


def find_config_file() -> Path | None:
    """Find the first existing config file."""
    for path in get_config_paths():
        if path.exists():
            return path
    return None


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and $VAR syntax. Unset variables expand to "".
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, "")

        return pattern.sub(replace, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _parse_bool(value: str) -> bool:
    """Parse a boolean value from a string (true/false/yes/no/1/0/on/off)."""
    return value.lower() in ("true", "yes", "1", "on")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated list, dropping empty items."""
    if not value or not value.strip():
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_ini_config(path: Path) -> dict[str, Any]:
    """Load configuration from INI file.

    Args:
        path: Path to INI config file.

    Returns:
        Dictionary structure matching AppConfig schema.
    """
    parser = configparser.ConfigParser()
    parser.read(path, encoding="utf-8")

    config: dict[str, Any] = {}

    if parser.has_section("plex"):
        plex: dict[str, Any] = {
            "url": parser.get("plex", "url", fallback=None),
            "token": parser.get("plex", "token", fallback=None),
        }
        if parser.has_option("plex", "libraries"):
            plex["libraries"] = _parse_list(parser.get("plex", "libraries"))
        config["plex"] = {k: v for k, v in plex.items() if v}

    if parser.has_section("nextup"):
        nextup: dict[str, Any] = {}
        for key in [
            "display_specials_within_seasons",
            "enable_rewatching",
            "disable_first_episode",
        ]:
            if parser.has_option("nextup", key):
                nextup[key] = _parse_bool(parser.get("nextup", key))
        for key in ["max_days_for_next_up", "limit"]:
            if parser.has_option("nextup", key):
                try:
                    nextup[key] = int(parser.get("nextup", key))
                except ValueError:
                    pass  # Keep default
        if nextup:
            config["nextup"] = nextup

    if parser.has_section("logging"):
        logging_config = {
            "level": parser.get("logging", "level", fallback="").strip(),
            "file": parser.get("logging", "file", fallback="").strip(),
        }
        logging_config = {k: v for k, v in logging_config.items() if v}
        if logging_config:
            config["logging"] = logging_config

    return config


def _load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file.

    Supports both INI (.ini/.cfg) and YAML (.yaml/.yml) formats.
    Environment variables are expanded in all values.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Loaded configuration, or defaults if no file exists.
    """
    global _config, _config_path

    if path is None:
        path = find_config_file()

    if path is None or not path.exists():
        _config = AppConfig()
        _config_path = None
        return _config

    if path.suffix in (".ini", ".cfg"):
        raw_config = _load_ini_config(path)
    else:
        raw_config = _load_yaml_config(path)

    _config = AppConfig.model_validate(_expand_env_vars(raw_config))
    _config_path = path
    return _config


def get_config_path() -> Path | None:
    """Get the path to the currently loaded config file, or None for defaults."""
    return _config_path


def get_config() -> AppConfig:
    """Get the current configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the cached configuration.

    Useful for testing or when config file changes.
    """
    global _config, _config_path
    _config = None
    _config_path = None


def get_config_dir() -> Path:
    """Get the user config directory, creating it if needed."""
    config_dir = Path.home() / ".nextshelf"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def save_default_config(
    path: Path | None = None,
    plex_url: str = "",
    plex_token: str = "",
) -> Path:
    """Save a default INI config file.

    Args:
        path: Where to save. Defaults to ./nextshelf.ini.
        plex_url: Plex server URL (optional, can use env var).
        plex_token: Plex token (optional, can use env var).

    Returns:
        Path to saved config file.
    """
    if path is None:
        path = Path.cwd() / "nextshelf.ini"

    plex_url_value = plex_url or "${PLEX_URL}"
    plex_token_value = plex_token or "${PLEX_TOKEN}"

    default_config = f"""\
# NextShelf Configuration
# You can use environment variables with ${{VAR}} syntax

[plex]
# Plex server URL (e.g., http://192.168.1.100:32400)
url = {plex_url_value}
# X-Plex-Token from Plex settings
token = {plex_token_value}
# Libraries to export (comma-separated, empty = all movie and TV libraries)
libraries =

[nextup]
# Offer specials at their aired position between regular episodes
display_specials_within_seasons = false
# Series not watched for this many days only show as first episodes
max_days_for_next_up = 365
# Walk forward through already watched episodes
enable_rewatching = false
# Never suggest the first episode of an unstarted series
disable_first_episode = false

[logging]
# DEBUG, INFO, WARNING or ERROR
level = WARNING
# Optional JSON log file
file =
"""

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)

    return path
