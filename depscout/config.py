"""Configuration file loader for depscout.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``depscout.toml`` with settings under a ``[depscout]`` table
- ``pyproject.toml`` with settings under a ``[tool.depscout]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DEPSCOUT_CONFIG``
2. ``depscout.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.depscout]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``depscout.toml``)::

    [depscout]
    timeout = 5.0
    max_concurrency = 20
    cache_ttl = 600
    update_major = true
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from depscout.exceptions import ConfigError
from depscout.core.cache import PackageCache
from depscout.models import UpdateOptions
from depscout.utils.logger import get_logger
from depscout.utils.retry import RetryPolicy
from depscout.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CACHE_CLEANUP_INTERVAL,
    DEFAULT_CACHE_ERROR_TTL,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_CACHE_TTL,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_DELAY,
    DEFAULT_TIMEOUT,
    DEFAULT_UPDATE_MAJOR,
    DEFAULT_UPDATE_MINOR,
    DEFAULT_UPDATE_PATCH,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "depscout.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"
SECTION_NAME = "depscout"


@dataclass
class DepScoutConfig:
    """Parsed and validated depscout configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        timeout: Per-request registry timeout, in seconds.
        max_concurrency: Registry lookups in flight per analysis.
        max_attempts: Attempts per lookup, first call included.
        initial_delay: Delay before the first retry, in seconds.
        max_delay: Cap on the retry delay, in seconds.
        backoff_factor: Multiplier applied to the delay per attempt.
        use_jitter: Randomize retry delays by up to 25%.
        cache_max_size: Maximum cached lookups.
        cache_ttl: Lifetime of successful lookups, in seconds.
        cache_error_ttl: Lifetime of failed lookups, in seconds.
        cache_cleanup_interval: Period of the cache sweep, in seconds.
        update_major: Apply major upgrades in ``update``.
        update_minor: Apply minor upgrades in ``update``.
        update_patch: Apply patch upgrades in ``update``.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    timeout: float = DEFAULT_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    initial_delay: float = DEFAULT_INITIAL_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    use_jitter: bool = True
    cache_max_size: int = DEFAULT_CACHE_MAX_SIZE
    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_error_ttl: float = DEFAULT_CACHE_ERROR_TTL
    cache_cleanup_interval: float = DEFAULT_CACHE_CLEANUP_INTERVAL
    update_major: bool = DEFAULT_UPDATE_MAJOR
    update_minor: bool = DEFAULT_UPDATE_MINOR
    update_patch: bool = DEFAULT_UPDATE_PATCH

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {name: getattr(self, name) for name in _OPTION_TYPES}

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_factor=self.backoff_factor,
            use_jitter=self.use_jitter,
        )

    def create_cache(self) -> PackageCache:
        return PackageCache(
            max_size=self.cache_max_size,
            ttl=self.cache_ttl,
            error_ttl=self.cache_error_ttl,
            cleanup_interval=self.cache_cleanup_interval,
        )

    def update_options(self) -> UpdateOptions:
        return UpdateOptions(
            update_major=self.update_major,
            update_minor=self.update_minor,
            update_patch=self.update_patch,
        )


# Option name -> (expected type, must be positive)
_OPTION_TYPES: Dict[str, Tuple[type, bool]] = {
    "timeout": (float, True),
    "max_concurrency": (int, True),
    "max_attempts": (int, True),
    "initial_delay": (float, True),
    "max_delay": (float, True),
    "backoff_factor": (float, True),
    "use_jitter": (bool, False),
    "cache_max_size": (int, True),
    "cache_ttl": (float, True),
    "cache_error_ttl": (float, True),
    "cache_cleanup_interval": (float, True),
    "update_major": (bool, False),
    "update_minor": (bool, False),
    "update_patch": (bool, False),
}


def _settings_table(raw: Dict[str, Any], path: Path) -> Any:
    """Pick ``[tool.depscout]`` out of a pyproject and ``[depscout]`` out of anything else."""
    if path.name == PYPROJECT_FILE_NAME:
        raw = raw.get("tool", {})
    return raw.get(SECTION_NAME)


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Locate the settings file for this run.

    An explicit path always wins and must exist. Otherwise the current
    directory is searched for ``depscout.toml``, then for a
    ``pyproject.toml`` that actually has a ``[tool.depscout]`` table.

    Raises:
        ConfigError: ``explicit_path`` is not an existing file.
    """
    if explicit_path is not None:
        if explicit_path.is_file():
            return explicit_path.resolve()
        raise ConfigError(
            f"Configuration file not found: {explicit_path}",
            config_path=str(explicit_path),
        )

    here = Path.cwd()
    dedicated = here / CONFIG_FILE_NAME
    if dedicated.is_file():
        return dedicated

    pyproject = here / PYPROJECT_FILE_NAME
    if pyproject.is_file() and _pyproject_has_section(pyproject):
        return pyproject

    return None


def _pyproject_has_section(path: Path) -> bool:
    # An unreadable or invalid pyproject counts as having no table
    try:
        return _settings_table(_read_toml(path), path) is not None
    except ConfigError:
        return False


def load_config(config_path: Optional[Path] = None) -> DepScoutConfig:
    """Build the effective configuration for a run.

    Args:
        config_path: File given with ``--config``; ``None`` searches the
            current directory (see :func:`discover_config_file`).

    Returns:
        Settings from the file, or the defaults when there is no file or
        the file has an empty table. ``source_path`` records the file used.

    Raises:
        ConfigError: The file is unreadable, is not TOML, or holds unknown
            keys or bad values.
    """
    path = discover_config_file(config_path)
    if path is None:
        logger.debug("No depscout configuration found; using defaults")
        return DepScoutConfig()

    logger.info("Reading settings from %s", path)
    table = _settings_table(_read_toml(path), path)

    config = _parse_section(table, config_path=str(path)) if table else DepScoutConfig()
    config.source_path = path
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("rb") as stream:
            return tomllib.load(stream)
    except OSError as exc:
        message = f"Cannot read configuration file {path}: {exc}"
        cause: Exception = exc
    except tomllib.TOMLDecodeError as exc:
        message = f"Invalid TOML in {path.name}: {exc}"
        cause = exc
    raise ConfigError(message, config_path=str(path)) from cause


def _parse_section(section: Dict[str, Any], *, config_path: str) -> DepScoutConfig:
    """Validate a ``[depscout]`` table and build the config.

    Integers are accepted for float options; booleans are never accepted
    as numbers. Numeric options must be positive.

    Raises:
        ConfigError: Unknown keys, wrong types or non-positive numbers.
    """
    if not isinstance(section, dict):
        raise ConfigError(
            f"[{SECTION_NAME}] must be a table",
            config_path=config_path,
        )

    unknown = set(section) - set(_OPTION_TYPES)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = DepScoutConfig()

    for name, value in section.items():
        expected, positive = _OPTION_TYPES[name]
        config_value = _coerce_option(name, value, expected, config_path=config_path)

        if positive and config_value <= 0:
            raise ConfigError(
                f"{name} must be greater than zero, got {value}",
                config_path=config_path,
                option=name,
            )

        setattr(config, name, config_value)

    if config.cache_error_ttl > config.cache_ttl:
        logger.warning(
            "cache_error_ttl (%s) is longer than cache_ttl (%s)",
            config.cache_error_ttl,
            config.cache_ttl,
        )

    return config


def _coerce_option(name: str, value: Any, expected: type, *, config_path: str) -> Any:
    type_names = {bool: "a boolean", int: "an integer", float: "a number"}

    if expected is bool:
        valid = isinstance(value, bool)
    elif expected is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, (int, float)) and not isinstance(value, bool)

    if not valid:
        raise ConfigError(
            f"{name} must be {type_names[expected]}, got {type(value).__name__}",
            config_path=config_path,
            option=name,
        )

    return float(value) if expected is float else value
