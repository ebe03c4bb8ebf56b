"""Concurrent batch resolution for depfloor.

Runs one :meth:`VersionResolver.min_necessary_update` per root package,
all concurrently over the same :class:`MetadataCache`, and returns the
results in the order the roots were given.  The batch is fail-fast: the
first registry failure cancels the remaining searches and propagates.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Tuple

from depfloor.utils.logger import get_logger
from depfloor.exceptions import ParseError
from depfloor.models.result import UpdateResult
from depfloor.core.resolver import VersionResolver
from depfloor.utils.progress import ProgressReporter

logger = get_logger("scheduler")

# Public API
__all__ = ["BatchScheduler", "parse_dependent"]


def parse_dependent(descriptor: str) -> Tuple[str, str]:
    """Split a ``"name@version"`` descriptor into ``(name, version)``.

    Scoped names and the ``npm:`` protocol prefix are handled.

    Example::

        >>> parse_dependent("@babel/core@7.24.0")
        ('@babel/core', '7.24.0')
        >>> parse_dependent("lodash@npm:4.17.21")
        ('lodash', '4.17.21')

    Raises:
        ParseError: The descriptor has no name or no version.
    """
    name, sep, version = descriptor.strip().rpartition("@")
    if version.startswith("npm:"):
        version = version[len("npm:"):]

    if not sep or not name or name == "@" or not version:
        raise ParseError(f"Invalid dependent descriptor: {descriptor!r}", content=descriptor)

    return name, version


class BatchScheduler:
    """Resolve many independent root packages concurrently.

    Args:
        resolver: Version resolver shared by every task.
        progress: Reporter told the batch size before launch; defaults to
            the resolver's reporter.
    """

    def __init__(
        self,
        resolver: VersionResolver,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self.resolver = resolver
        self.progress = progress or resolver.progress

    async def list_update(
        self,
        expand_ranges: bool,
        root_packages: Sequence[Tuple[str, str]],
        dependency_name: str,
        required_version: str,
    ) -> List[Tuple[str, UpdateResult]]:
        """Find the minimal upgrade of every root in *root_packages*.

        Args:
            expand_ranges: Compute closures in range-expansion mode.
            root_packages: ``(name, version)`` pairs.
            dependency_name: Package whose floor must hold.
            required_version: The floor.

        Returns:
            ``(name, UpdateResult)`` pairs in input order.

        Raises:
            NetworkError: Any search hit a registry failure; no partial
                results are returned.
        """
        if self.progress is not None:
            self.progress.set_total_tasks(len(root_packages))

        logger.info(
            "Resolving %d root package(s) for %s>=%s",
            len(root_packages),
            dependency_name,
            required_version,
        )

        tasks = [
            asyncio.ensure_future(
                self.resolver.min_necessary_update(
                    name,
                    version,
                    dependency_name,
                    required_version,
                    expand_ranges,
                )
            )
            for name, version in root_packages
        ]

        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancellations settle so no task outlives the batch
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return [(name, result) for (name, _), result in zip(root_packages, results)]
