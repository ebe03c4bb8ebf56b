"""
Utility helpers for depfloor.

This package provides reusable utilities used across depfloor, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Async HTTP client utilities
- Semantic version helpers and the range normalizer
- Batch progress reporting

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from depfloor.utils.filesystem import read_json_file, safe_read_file, validate_path

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from depfloor.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
    verbosity_level,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from depfloor.utils.console import (
    colorize_update_type,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
    status,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from depfloor.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from depfloor.utils.version_utils import (
    compare_versions,
    get_update_type,
    resolve_specifier,
    satisfying_versions,
    sort_versions,
)

# ---------------------------------------------------------------------------
# Progress reporting
# ---------------------------------------------------------------------------

from depfloor.utils.progress import ProgressReporter

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "colorize_update_type",
    "status",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    "verbosity_level",
    # Filesystem
    "read_json_file",
    "safe_read_file",
    "validate_path",
    # HTTP
    "HTTPClient",
    # Versions
    "compare_versions",
    "get_update_type",
    "resolve_specifier",
    "satisfying_versions",
    "sort_versions",
    # Progress
    "ProgressReporter",
]
