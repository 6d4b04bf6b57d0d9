"""
Configuration — loads settings from .difftargets.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

from __future__ import annotations

import logging
import os

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

_DEFAULTS = {
    "include_patterns": ["**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx"],
    "exclude_patterns": [
        "**/*.test.ts",
        "**/*.spec.ts",
        "**/*.test.js",
        "**/*.spec.js",
        "**/node_modules/**",
    ],
    "test_directory": "__tests__",
    "max_targets": 50,
    "max_workers": 1,
    "debug": False,
    "github_token": "",
    "github_api_url": "https://api.github.com",
    "github_max_retries": 3,
    "github_retry_delay": 1.0,
}

_CONFIG_FILENAMES = (".difftargets.yaml", ".difftargets.yml")
_TRUTHY = {"1", "true", "yes", "on"}


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Return the explicit path if it exists, else the first config file in CWD or home."""
    if explicit_path:
        return explicit_path if os.path.isfile(explicit_path) else None

    candidates = (
        os.path.join(d, name)
        for d in (os.getcwd(), os.path.expanduser("~"))
        for name in _CONFIG_FILENAMES
    )
    return next((p for p in candidates if os.path.isfile(p)), None)


def _load_yaml(path: str) -> dict:
    """Parse *path*; an unreadable or non-mapping file counts as empty."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring config file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _cast(raw, cast, source: str):
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ConfigError(
            f"{source} must be {cast.__name__}, got {raw!r}") from None


def _pattern_list(value, key: str) -> list[str]:
    """Normalise a pattern setting into a list of strings."""
    if isinstance(value, str):
        # Comma-separated, as environment variables carry them
        return [p.strip() for p in value.split(",") if p.strip()]
    if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
        raise ConfigError(f"{key} must be a list of glob strings, got {value!r}")
    return list(value)


class Config:
    """Settings consumed by the target extractor, GitHub client and CLI.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .difftargets.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}
        github = yd.get("github") if isinstance(yd.get("github"), dict) else {}

        # env var > yaml > default; values that fail *cast* raise ConfigError
        def _get(env_key, yaml_key: str, default, cast=str, section: dict = yd):
            raw = os.getenv(env_key) if env_key else None
            source = env_key
            if raw is None:
                raw, source = section.get(yaml_key), yaml_key
            if raw is None:
                return default
            return _cast(raw, cast, source)

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            raw = os.getenv(env_key)
            if raw is None:
                raw = yd.get(yaml_key, default)
            if isinstance(raw, str):
                return raw.strip().lower() in _TRUTHY
            return bool(raw)

        def _get_patterns(env_key: str, yaml_key: str) -> list[str]:
            raw = os.getenv(env_key)
            if raw is None:
                raw = yd.get(yaml_key, _DEFAULTS[yaml_key])
            return _pattern_list(raw, yaml_key)

        def _at_least_one(value: int, key: str) -> int:
            if value < 1:
                raise ConfigError(f"{key} must be >= 1, got {value}")
            return value

        self.INCLUDE_PATTERNS = _get_patterns("DIFFTARGETS_INCLUDE", "include_patterns")
        self.EXCLUDE_PATTERNS = _get_patterns("DIFFTARGETS_EXCLUDE", "exclude_patterns")
        self.TEST_DIRECTORY = _get("DIFFTARGETS_TEST_DIRECTORY", "test_directory",
                                   _DEFAULTS["test_directory"])

        self.MAX_TARGETS = _at_least_one(
            _get("DIFFTARGETS_MAX_TARGETS", "max_targets",
                 _DEFAULTS["max_targets"], cast=int),
            "max_targets")
        self.MAX_WORKERS = _at_least_one(
            _get("DIFFTARGETS_MAX_WORKERS", "max_workers",
                 _DEFAULTS["max_workers"], cast=int),
            "max_workers")

        self.DEBUG = _get_bool("DIFFTARGETS_DEBUG", "debug", _DEFAULTS["debug"])
        self.JSON_OUTPUT = os.getenv("DIFFTARGETS_OUTPUT", "").lower() == "json"

        # GitHub access; an empty GITHUB_TOKEN falls through to the file
        self.GITHUB_TOKEN = os.getenv("GITHUB_TOKEN") or _get(
            None, "token", _DEFAULTS["github_token"], section=github)
        self.GITHUB_API_URL = os.getenv("GITHUB_API_URL") or _get(
            None, "api_url", _DEFAULTS["github_api_url"], section=github)
        self.GITHUB_MAX_RETRIES = _at_least_one(
            _get(None, "max_retries", _DEFAULTS["github_max_retries"],
                 cast=int, section=github),
            "github.max_retries")
        self.GITHUB_RETRY_DELAY = _get(
            None, "retry_delay", _DEFAULTS["github_retry_delay"],
            cast=float, section=github)

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        return cls(_load_yaml(path) if path else {})
