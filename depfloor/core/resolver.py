"""Minimal-version search for depfloor.

Given a root package currently at some version, find the lowest published
version of that root (never below the current one) whose transitive
closure only contains versions of a dependency at or above a required
floor.

Search strategy
---------------
The root's versions are sorted ascending and the search walks *down* from
the newest one.  A step starts at the smallest power of two covering the
whole list and halves every round; a probe ``rootindex - step`` is accepted
when its closure satisfies the floor, moving ``rootindex`` down.  A final
zero-width probe checks ``rootindex`` itself.  This finds the lowest
satisfying index in ``O(log N)`` closure computations **provided** the
predicate is monotonic over the root's history: once a version satisfies
the floor, every newer version does too.  Non-monotonic histories yield an
answer that is not guaranteed to be minimal (or even satisfying).

Typical usage::

    resolver = VersionResolver(cache)
    result   = await resolver.min_necessary_update("lib", "1.0.0", "core", "1.2.0")
    print(result.display_value)
"""

from __future__ import annotations

import asyncio
from typing import Optional

from semantic_version import Version

from depfloor.utils.logger import get_logger
from depfloor.models.result import UpdateResult
from depfloor.exceptions import DepFloorError
from depfloor.core.closure import DependencyClosure
from depfloor.core.metadata_cache import MetadataCache
from depfloor.utils.progress import ProgressReporter
from depfloor.utils.version_utils import parse_version

logger = get_logger("resolver")

# Public API
__all__ = ["VersionResolver", "initial_step"]


def initial_step(count: int) -> int:
    """Smallest power of two that is >= *count* (``1`` for ``count <= 1``).

    Example::

        >>> [initial_step(n) for n in (0, 1, 2, 3, 4, 5, 9)]
        [1, 1, 2, 4, 4, 8, 16]
    """
    return 1 << max(count - 1, 0).bit_length()


class VersionResolver:
    """Find the minimal root upgrade that satisfies a dependency floor.

    Args:
        cache: Shared metadata cache.
        closure: Closure calculator; built over *cache* when omitted.
        progress: Optional reporter advanced once per finished search.
    """

    def __init__(
        self,
        cache: MetadataCache,
        closure: Optional[DependencyClosure] = None,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self.cache = cache
        self.closure = closure or DependencyClosure(cache)
        self.progress = progress

    async def min_necessary_update(
        self,
        root_name: str,
        root_version: str,
        dependency_name: str,
        required_version: str,
        expand_ranges: bool = False,
    ) -> UpdateResult:
        """Search *root_name*'s history for the lowest satisfying version.

        Args:
            root_name: Package to upgrade.
            root_version: Current version or specifier; the search never
                goes below its resolved value.
            dependency_name: Package whose version floor must hold.
            required_version: The floor, a concrete version.
            expand_ranges: Compute closures in range-expansion mode.

        Returns:
            An :class:`UpdateResult`; ``resolved_version`` is ``None`` when
            no version of *root_name* satisfies the floor.

        Raises:
            DepFloorError: *required_version* is not a valid version.
            NetworkError: A registry fetch failed.
        """
        required = parse_version(required_version)
        if required is None:
            raise DepFloorError(
                f"Invalid required version: {required_version!r}",
                {"package": dependency_name},
            )

        floor = await self.cache.resolve_version(root_name, root_version)
        floor_parsed = parse_version(floor)
        versions = await self.cache.get_versions(root_name)

        rootindex = len(versions) - 1
        step = initial_step(len(versions))
        found = False
        probes = 0

        while True:
            candidate = rootindex - step
            # A zero-width probe on an already accepted index is redundant
            redundant = step == 0 and found
            if (
                candidate >= 0
                and not redundant
                and Version(versions[candidate]) >= floor_parsed
            ):
                probes += 1
                if await self._satisfies(
                    root_name,
                    versions[candidate],
                    dependency_name,
                    required,
                    expand_ranges,
                ):
                    rootindex = candidate
                    found = True
            if step == 0:
                break
            step //= 2

        result = UpdateResult(
            package=root_name,
            current_version=floor,
            resolved_version=versions[rootindex] if found else None,
            probes=probes,
        )
        logger.info(
            "%s@%s -> %s (%d probe(s))",
            root_name,
            floor,
            result.display_value,
            probes,
        )

        if self.progress is not None:
            self.progress.advance()

        return result

    async def _satisfies(
        self,
        root_name: str,
        candidate: str,
        dependency_name: str,
        required: Version,
        expand_ranges: bool,
    ) -> bool:
        """True when every occurrence of *dependency_name* meets *required*.

        An absent dependency satisfies the floor vacuously.  Otherwise the
        effective version is the lowest of all normalized occurrences.
        """
        closure = await self.closure.compute(root_name, candidate, expand_ranges)
        occurrences = [member for member in closure if member.name == dependency_name]

        if not occurrences:
            logger.debug("%s@%s: %s absent, accepted", root_name, candidate, dependency_name)
            return True

        resolved = await asyncio.gather(
            *(self.cache.resolve_version(dependency_name, m.version) for m in occurrences)
        )
        effective = min(Version(v) for v in resolved)

        logger.debug(
            "%s@%s: effective %s is %s (required %s)",
            root_name,
            candidate,
            dependency_name,
            effective,
            required,
        )
        return effective >= required
