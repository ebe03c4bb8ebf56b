"""
Centralized constants for depfloor.

This module defines immutable configuration values used across depfloor,
including registry endpoints, network settings, search parameters and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "depfloor/{version}"

# ---------------------------------------------------------------------------
# Registry endpoints
# ---------------------------------------------------------------------------

#: Base URL of the public npm registry.
DEFAULT_REGISTRY_URL: Final[str] = "https://registry.npmjs.org"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Registry fetches are fail-fast unless a retry policy is configured.
DEFAULT_MAX_RETRIES: Final[int] = 0

#: Maximum number of registry fetches in flight at once.
DEFAULT_CONCURRENT_LIMIT: Final[int] = 10

# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

#: Placeholder for "no real version available".
SENTINEL_VERSION: Final[str] = "0.0.0"

#: Result text for a dependent that can never satisfy the floor.
NO_FAVOURABLE_OUTCOME_TEMPLATE: Final[str] = "no favourable outcome because of {package}"

#: Default for sibling-version expansion during closure traversal.
DEFAULT_EXPAND_RANGES: Final[bool] = False

#: Lockfile scanned when no explicit roots are given.
DEFAULT_LOCKFILE: Final[str] = "package-lock.json"

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading lockfiles.
MAX_FILE_SIZE: Final[int] = 64 * 1024 * 1024  # 64 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
