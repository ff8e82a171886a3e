"""
Configuration loading for gh-mirror.

"Configuration is just organized paranoia." — schema.cx

Settings come from, in order of precedence: command line options, environment
variables (optionally loaded from a .env file), the YAML settings file, and
built-in defaults. The result is a single Config value handed to the core.
"""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .models import (
    DEFAULT_FALLBACK_BRANCH,
    DEFAULT_GITHUB_HOST,
    DEFAULT_MIRROR_DIR,
    DEFAULT_SYNC_DELAY,
    Config,
)
from .validation import ValidationError, validate_github_token


class ConfigError(Exception):
    """Raised when configuration is missing or malformed."""

    pass


DEFAULT_CONFIG_DIR = Path.home() / ".config" / "gh-auto-mirror"
ENV_FILE = ".env"
SETTINGS_FILE = "config.yaml"

SETTINGS_KEYS = ("mirror_dir", "github_host", "sync_delay", "fallback_branch", "strict")


def get_config_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Directory holding .env and config.yaml (GH_MIRROR_CONFIG_DIR overrides)."""
    env = os.environ if environ is None else environ
    override = env.get("GH_MIRROR_CONFIG_DIR")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_DIR


def load_env(config_dir: Path | None = None) -> Path | None:
    """
    Load the first .env file found into the process environment.

    Candidates are the config directory, then the current directory. Variables
    already set in the environment win.

    Returns:
        The file that was loaded, or None
    """
    config_dir = config_dir or get_config_dir()
    for candidate in (config_dir / ENV_FILE, Path.cwd() / ENV_FILE):
        if candidate.is_file():
            load_dotenv(candidate, override=False)
            return candidate
    return None


def load_settings(path: Path) -> dict[str, Any]:
    """
    Read the YAML settings file.

    A missing file yields an empty mapping. Unknown keys are ignored.

    Raises:
        ConfigError: If the file can't be parsed or isn't a mapping
    """
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read settings file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")

    return {key: data[key] for key in SETTINGS_KEYS if key in data}


def _parse_delay(value: Any) -> float:
    try:
        delay = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid sync delay: {value!r}") from e
    if delay < 0:
        raise ConfigError(f"Sync delay must not be negative: {value!r}")
    return delay


def build_config(
    username: str | None = None,
    token: str | None = None,
    mirror_dir: Path | str | None = None,
    github_host: str | None = None,
    sync_delay: float | None = None,
    fallback_branch: str | None = None,
    dry_run: bool = False,
    strict: bool = False,
    environ: Mapping[str, str] | None = None,
    settings: Mapping[str, Any] | None = None,
) -> Config:
    """
    Assemble a validated Config.

    Raises:
        ConfigError: If the username or token is missing, or a value is invalid
    """
    env = os.environ if environ is None else environ
    settings = settings or {}

    username = username or env.get("GITHUB_USERNAME", "")
    if not username:
        raise ConfigError("GITHUB_USERNAME is not set. Please set it in .env file or export it.")

    token = token or env.get("GITHUB_TOKEN", "")
    if not token:
        raise ConfigError("GITHUB_TOKEN is not set. Please set it in .env file or export it.")
    try:
        validate_github_token(token)
    except ValidationError as e:
        raise ConfigError(f"GITHUB_TOKEN is invalid: {e}") from e

    mirror_dir = (
        mirror_dir
        or env.get("MIRROR_DIR")
        or settings.get("mirror_dir")
        or DEFAULT_MIRROR_DIR
    )
    github_host = (
        github_host
        or env.get("GITHUB_HOST")
        or settings.get("github_host")
        or DEFAULT_GITHUB_HOST
    )
    fallback_branch = (
        fallback_branch
        or env.get("GH_MIRROR_FALLBACK_BRANCH")
        or settings.get("fallback_branch")
        or DEFAULT_FALLBACK_BRANCH
    )

    if sync_delay is None:
        raw_delay = env.get("GH_MIRROR_SYNC_DELAY", settings.get("sync_delay", DEFAULT_SYNC_DELAY))
        sync_delay = _parse_delay(raw_delay)
    else:
        sync_delay = _parse_delay(sync_delay)

    return Config(
        username=username,
        token=token,
        mirror_dir=Path(mirror_dir),
        github_host=github_host,
        sync_delay=sync_delay,
        fallback_branch=fallback_branch,
        dry_run=dry_run,
        strict=strict or bool(settings.get("strict", False)),
    )


def load_config(config_dir: Path | None = None, **overrides: Any) -> Config:
    """
    Load .env and the settings file, then build a Config.

    Keyword arguments are passed to build_config as command line overrides.
    """
    config_dir = config_dir or get_config_dir()
    load_env(config_dir)
    settings = load_settings(config_dir / SETTINGS_FILE)
    return build_config(settings=settings, **overrides)
