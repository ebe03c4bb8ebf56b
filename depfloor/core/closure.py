"""Transitive dependency closure for depfloor.

Computes every ``(package, version)`` pair reachable from one pinned root
by breadth-first frontier expansion.  Each level of the frontier is expanded
concurrently through the shared :class:`MetadataCache`; a pair is expanded
at most once, which also makes the traversal safe on cyclic graphs.

Range-expansion mode
--------------------
When ``expand_ranges`` is set, expanding a package reached under a range
(``lodash@^4.0.0``) additionally enqueues *every* published version of that
same package which satisfies the range.  The closure then covers every
version a consumer's declared range could legitimately install, giving a
conservative, worst-case view of the graph.
"""

from __future__ import annotations

import asyncio
from typing import FrozenSet, Hashable, Iterable, List, Set, TypeVar

from depfloor.utils.logger import get_logger
from depfloor.models.package import VersionedPackage
from depfloor.core.metadata_cache import MetadataCache
from depfloor.utils.version_utils import satisfying_versions

logger = get_logger("closure")

# Public API
__all__ = ["DependencyClosure", "remove_duplicates"]

T = TypeVar("T", bound=Hashable)


def remove_duplicates(items: Iterable[T]) -> List[T]:
    """Return the distinct items, keeping first-seen order.

    Example::

        >>> remove_duplicates([("a", "1"), ("b", "2"), ("a", "1")])
        [('a', '1'), ('b', '2')]
    """
    return list(dict.fromkeys(items))


class DependencyClosure:
    """Compute transitive dependency closures over a shared cache.

    Args:
        cache: Metadata cache used for every lookup.
    """

    def __init__(self, cache: MetadataCache) -> None:
        self.cache = cache

    async def compute(
        self,
        root_name: str,
        root_version: str,
        expand_ranges: bool = False,
    ) -> FrozenSet[VersionedPackage]:
        """Return the closure of ``root_name@root_version``.

        The root is always a member.  Dependencies appear under the
        specifier their dependent declared.

        Raises:
            NetworkError: A registry fetch failed.
        """
        visited: Set[VersionedPackage] = set()
        frontier: List[VersionedPackage] = [VersionedPackage(root_name, root_version)]
        depth = 0

        while frontier:
            visited.update(frontier)
            logger.debug(
                "Closure of %s@%s: level %d, %d package(s) to expand",
                root_name,
                root_version,
                depth,
                len(frontier),
            )

            expansions = await asyncio.gather(
                *(self._expand(member, expand_ranges) for member in frontier)
            )

            frontier = remove_duplicates(
                candidate
                for reached in expansions
                for candidate in reached
                if candidate not in visited
            )
            depth += 1

        logger.debug(
            "Closure of %s@%s complete: %d package(s)", root_name, root_version, len(visited)
        )
        return frozenset(visited)

    async def _expand(
        self,
        member: VersionedPackage,
        expand_ranges: bool,
    ) -> List[VersionedPackage]:
        """Return the packages one closure member leads to."""
        pinned = await self.cache.resolve_version(member.name, member.version)
        if self.cache.is_bad(member.name):
            return []

        versions = await self.cache.get_versions(member.name)
        if pinned not in versions:
            logger.debug("%s resolves to unpublished %s; not expanded", member, pinned)
            return []

        deps = await self.cache.get_dependencies(member.name, pinned)
        reached = [dep.to_package() for dep in deps]

        if expand_ranges:
            reached.extend(
                VersionedPackage(member.name, version)
                for version in satisfying_versions(member.version, versions)
            )

        return reached
