"""Resolver session for depfloor.

A :class:`ResolverSession` owns one :class:`MetadataCache` and the
components built on it.  Independent sessions share nothing, so several
can run side by side (or in isolated tests) without seeing each other's
cached metadata.

Typical usage::

    async with ResolverSession.connect(config) as session:
        results = await session.list_update(False, roots, "minimist", "1.2.6")
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, FrozenSet, List, Optional, Sequence, Tuple

from depfloor.utils.http import HTTPClient
from depfloor.config import DepFloorConfig
from depfloor.utils.logger import get_logger
from depfloor.models.result import UpdateResult
from depfloor.models.package import VersionedPackage
from depfloor.core.resolver import VersionResolver
from depfloor.core.scheduler import BatchScheduler
from depfloor.core.closure import DependencyClosure
from depfloor.core.metadata_cache import MetadataCache
from depfloor.utils.progress import ProgressReporter
from depfloor.core.registry import NpmRegistryClient, RegistryClient
from depfloor.constants import DEFAULT_CONCURRENT_LIMIT

logger = get_logger("session")

# Public API
__all__ = ["ResolverSession"]


class ResolverSession:
    """Explicit owner of the caches and the resolution pipeline.

    Args:
        registry: Source of raw package metadata.
        concurrent_limit: Maximum in-flight registry fetches.
        progress: Optional progress reporter for batch runs.
    """

    def __init__(
        self,
        registry: RegistryClient,
        *,
        concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self.cache = MetadataCache(registry, concurrent_limit=concurrent_limit)
        self.closure = DependencyClosure(self.cache)
        self.resolver = VersionResolver(self.cache, self.closure, progress)
        self.scheduler = BatchScheduler(self.resolver, progress)

    @classmethod
    @asynccontextmanager
    async def connect(
        cls,
        config: Optional[DepFloorConfig] = None,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> AsyncIterator["ResolverSession"]:
        """Open a session backed by the npm registry described by *config*."""
        config = config or DepFloorConfig()
        async with HTTPClient(
            timeout=config.timeout,
            max_retries=config.max_retries,
            max_concurrency=config.concurrent_limit,
        ) as http:
            registry = NpmRegistryClient(http, registry_url=config.registry_url)
            session = cls(
                registry,
                concurrent_limit=config.concurrent_limit,
                progress=progress,
            )
            try:
                yield session
            finally:
                await session.cache.close()
                logger.debug("Session cache stats: %s", session.cache.stats())

    async def compute_closure(
        self,
        name: str,
        version: str,
        expand_ranges: bool = False,
    ) -> FrozenSet[VersionedPackage]:
        """See :meth:`DependencyClosure.compute`."""
        return await self.closure.compute(name, version, expand_ranges)

    async def min_necessary_update(
        self,
        root_name: str,
        root_version: str,
        dependency_name: str,
        required_version: str,
        expand_ranges: bool = False,
    ) -> UpdateResult:
        """See :meth:`VersionResolver.min_necessary_update`."""
        return await self.resolver.min_necessary_update(
            root_name, root_version, dependency_name, required_version, expand_ranges
        )

    async def list_update(
        self,
        expand_ranges: bool,
        root_packages: Sequence[Tuple[str, str]],
        dependency_name: str,
        required_version: str,
    ) -> List[Tuple[str, UpdateResult]]:
        """See :meth:`BatchScheduler.list_update`."""
        return await self.scheduler.list_update(
            expand_ranges, root_packages, dependency_name, required_version
        )
