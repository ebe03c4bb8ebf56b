"""Configuration file loader for depfloor.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``depfloor.toml``: settings under ``[depfloor]`` table
- ``pyproject.toml``: settings under ``[tool.depfloor]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DEPFLOOR_CONFIG``
2. ``depfloor.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.depfloor]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``depfloor.toml``)::

    [depfloor]
    registry_url = "https://registry.npmjs.org"
    expand_ranges = false
    concurrent_limit = 10
    timeout = 30
    max_retries = 0
"""

from __future__ import annotations


import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from depfloor.exceptions import ConfigError
from depfloor.utils.logger import get_logger
from depfloor.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_EXPAND_RANGES,
    DEFAULT_CONCURRENT_LIMIT,
)

logger = get_logger("config")


@dataclass
class DepFloorConfig:
    """Parsed and validated depfloor configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        registry_url: Base URL of the npm-compatible registry.
        expand_ranges: Enable sibling-version expansion while computing
            closures (conservative, worst-case evaluation).
        concurrent_limit: Maximum number of registry fetches in flight.
        timeout: Network timeout in seconds.
        max_retries: Retry attempts per registry request. ``0`` keeps the
            fail-fast default.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    registry_url: str = DEFAULT_REGISTRY_URL
    expand_ranges: bool = DEFAULT_EXPAND_RANGES
    concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT
    timeout: int = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {
            "registry_url": self.registry_url,
            "expand_ranges": self.expand_ranges,
            "concurrent_limit": self.concurrent_limit,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    depfloor_toml = cwd / "depfloor.toml"
    if depfloor_toml.is_file():
        logger.debug("Found depfloor.toml: %s", depfloor_toml)
        return depfloor_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file():
        if _pyproject_has_depfloor_section(pyproject_toml):
            logger.debug("Found [tool.depfloor] in pyproject.toml: %s", pyproject_toml)
            return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_depfloor_section(path: Path) -> bool:
    """Check if pyproject.toml contains a ``[tool.depfloor]`` section.

    Parse errors are ignored so that discovery falls back to defaults.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "depfloor" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> DepFloorConfig:
    """Load and validate depfloor configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`DepFloorConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return DepFloorConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("depfloor", {})
    else:
        section = raw.get("depfloor", {})

    if not section:
        logger.debug("Config file found but no depfloor section, using defaults")
        return DepFloorConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


# option name -> (expected type, minimum value for ints)
_OPTIONS: Dict[str, Any] = {
    "registry_url": (str, None),
    "expand_ranges": (bool, None),
    "concurrent_limit": (int, 1),
    "timeout": (int, 1),
    "max_retries": (int, 0),
}


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> DepFloorConfig:
    """Parse and validate a ``[depfloor]`` or ``[tool.depfloor]`` table.

    Rejects unknown keys, type mismatches and out-of-range integers.

    Raises:
        ConfigError: Unknown keys or invalid values.
    """
    config = DepFloorConfig()

    unknown = set(section.keys()) - set(_OPTIONS)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    for option, (expected, minimum) in _OPTIONS.items():
        if option not in section:
            continue
        val = section[option]

        # bool is a subclass of int; reject it for integer options
        if not isinstance(val, expected) or (expected is int and isinstance(val, bool)):
            raise ConfigError(
                f"{option} must be of type {expected.__name__}, got {type(val).__name__}",
                config_path=config_path,
                option=option,
            )
        if minimum is not None and val < minimum:
            raise ConfigError(
                f"{option} must be >= {minimum}, got {val}",
                config_path=config_path,
                option=option,
            )
        if option == "registry_url":
            val = val.rstrip("/")
            if not val:
                raise ConfigError(
                    "registry_url must not be empty",
                    config_path=config_path,
                    option=option,
                )

        setattr(config, option, val)

    return config
