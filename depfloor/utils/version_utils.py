"""
Version comparison utilities for depfloor.

This module provides helpers for parsing, ordering and matching npm-style
semantic versions and range specifiers, backed by ``semantic_version``.
It also hosts the range normalizer that turns a declared specifier
(``^1.2.0``, ``~2.x``, ``>=1 <3``) into one concrete published version.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from semantic_version import NpmSpec, Version

from depfloor.constants import SENTINEL_VERSION
from depfloor.utils.logger import get_logger

logger = get_logger("version_utils")

# Specifiers that point outside the registry and never resolve to a version
_NON_REGISTRY_PREFIXES: Tuple[str, ...] = (
    "git+",
    "git:",
    "github:",
    "http:",
    "https:",
    "file:",
    "link:",
    "workspace:",
    "portal:",
)

_ALIAS_RE = re.compile(r"^npm:(?:@[^/@]+/)?[^@]+@(?P<range>.*)$")

LATEST_TAG = "latest"


def parse_version(value: Optional[str]) -> Optional[Version]:
    """Parse a semantic version string.

    A leading ``v`` or ``=`` is tolerated, as npm does.

    Returns:
        The parsed :class:`semantic_version.Version`, or ``None`` if the
        string is not a valid semantic version.
    """
    if value is None:
        return None

    text = value.strip().lstrip("=v").strip()
    try:
        return Version(text)
    except ValueError:
        return None


def compare_versions(left: str, right: str) -> int:
    """Compare two version strings by semantic precedence.

    Returns:
        ``-1``, ``0`` or ``1``.

    Raises:
        ValueError: If either string is not a valid semantic version.
    """
    a = parse_version(left)
    b = parse_version(right)
    if a is None or b is None:
        raise ValueError(f"Cannot compare {left!r} and {right!r}")
    return (a > b) - (a < b)


def sort_versions(versions: Iterable[str]) -> List[str]:
    """Sort versions ascending by semantic precedence and drop duplicates.

    Strings that are not valid semantic versions are skipped.

    Example:
        >>> sort_versions(["1.10.0", "1.2.0", "1.2.0", "bogus"])
        ['1.2.0', '1.10.0']
    """
    unique = {}
    for raw in versions:
        parsed = parse_version(raw)
        if parsed is None:
            logger.debug("Skipping unparseable version %r", raw)
            continue
        unique.setdefault(str(parsed), parsed)

    return [str(v) for v in sorted(unique.values())]


def _clean_specifier(specifier: str) -> Optional[str]:
    """Reduce a declared dependency specifier to a plain npm range.

    Returns ``None`` for specifiers that cannot refer to a registry version.
    """
    spec = specifier.strip()

    alias = _ALIAS_RE.match(spec)
    if alias:
        spec = alias.group("range").strip()

    if spec.startswith(_NON_REGISTRY_PREFIXES):
        return None

    if spec in ("", "x", "X"):
        # npm treats an empty range as "any version"
        return "*"

    return spec


def _newest_release(versions: Iterable[str]) -> Optional[str]:
    """Newest version without a pre-release tag, or ``None``."""
    releases = [v for v in sort_versions(versions) if not Version(v).prerelease]
    return releases[-1] if releases else None


def _npm_spec(specifier: str) -> Optional[NpmSpec]:
    spec = _clean_specifier(specifier)
    if spec is None:
        return None
    try:
        return NpmSpec(spec)
    except ValueError:
        logger.debug("Unparseable range specifier %r", specifier)
        return None


def satisfying_versions(specifier: str, versions: Iterable[str]) -> List[str]:
    """Return every version that satisfies *specifier*, ascending.

    The ``latest`` dist-tag matches only the newest stable release.

    Example:
        >>> satisfying_versions("^1.0.0", ["0.9.0", "1.0.0", "1.4.2", "2.0.0"])
        ['1.0.0', '1.4.2']
    """
    if _clean_specifier(specifier) == LATEST_TAG:
        newest = _newest_release(versions)
        return [newest] if newest is not None else []

    spec = _npm_spec(specifier)
    if spec is None:
        return []

    return [v for v in sort_versions(versions) if spec.match(Version(v))]


def resolve_specifier(specifier: str, available_versions: Iterable[str]) -> str:
    """Resolve a specifier to one concrete version.

    An exact version is returned as-is. A range resolves to the *lowest*
    available version that satisfies it, the most conservative reading of
    what a consumer may end up with. The ``latest`` dist-tag resolves to
    the newest stable release, which is what npm installs for it.

    Returns:
        A concrete version string, or :data:`SENTINEL_VERSION` when the
        specifier is not resolvable against *available_versions*.

    Example:
        >>> resolve_specifier("^1.0.0", ["1.0.0", "1.2.0", "2.0.0"])
        '1.0.0'
        >>> resolve_specifier("latest", ["1.0.0", "1.1.0"])
        '1.1.0'
        >>> resolve_specifier("git+https://example.com/lib.git", ["1.0.0"])
        '0.0.0'
    """
    cleaned = _clean_specifier(specifier)
    if cleaned is None:
        return SENTINEL_VERSION

    if cleaned == LATEST_TAG:
        return _newest_release(available_versions) or SENTINEL_VERSION

    exact = parse_version(cleaned)
    if exact is not None:
        return str(exact)

    matches = satisfying_versions(cleaned, available_versions)
    if not matches:
        return SENTINEL_VERSION
    return matches[0]


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Determine the semantic update type between two versions.

    Returns:
        One of ``"new"``, ``"same"``, ``"downgrade"``, ``"major"``,
        ``"minor"``, ``"patch"``, ``"update"`` (pre-release or build only)
        or ``"unknown"``.

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type(None, "1.0.0")
        'new'
    """
    if target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    current = parse_version(current_version)
    target = parse_version(target_version)
    if current is None or target is None:
        return "unknown"

    if target == current:
        return "same"

    if target < current:
        return "downgrade"

    if current.major != target.major:
        return "major"

    if current.minor != target.minor:
        return "minor"

    if current.patch != target.patch:
        return "patch"

    return "update"
