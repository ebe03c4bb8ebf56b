"""Shared registry metadata cache for depfloor.

Provides a unified, async-safe cache of package metadata so that every
closure computation and every concurrent version search share a single
registry fetch per package.  Three append-only stores are kept:

- **versions**: package name → ascending, de-duplicated version tuple
- **dependencies**: ``VersionedPackage`` → declared dependency tuple
- **bad packages**: names the registry knows nothing about

plus a map of in-flight fetch tasks that coalesces concurrent requests.

Typical usage::

    async with HTTPClient() as http:
        cache = MetadataCache(NpmRegistryClient(http))
        versions = await cache.get_versions("express")
        deps     = await cache.get_dependencies("express", versions[-1])
"""

from __future__ import annotations

import asyncio
from typing import Dict, FrozenSet, Optional, Set, Tuple

from depfloor.utils.logger import get_logger
from depfloor.core.registry import RegistryClient
from depfloor.constants import DEFAULT_CONCURRENT_LIMIT, SENTINEL_VERSION
from depfloor.models.package import DependencySpec, VersionedPackage
from depfloor.utils.version_utils import parse_version, resolve_specifier, sort_versions

logger = get_logger("metadata_cache")

# Public API
__all__ = ["MetadataCache"]


def _canonical(version: str) -> str:
    """Normalized string form of *version*, or the raw string if unparseable."""
    parsed = parse_version(version)
    return str(parsed) if parsed is not None else version


class MetadataCache:
    """Async-safe, per-session cache for registry metadata.

    Each package name triggers **at most one** call to
    :meth:`RegistryClient.fetch_metadata`.  The first caller registers a
    shared :class:`asyncio.Task` for the fetch before yielding to the
    event loop, so the "am I first?" decision and the registration are a
    single atomic step; every later caller awaits that same task.

    An :class:`asyncio.Semaphore` additionally limits how many fetches may
    be in flight at once.

    Cache entries are written once and never overwritten or evicted.  A
    fetch that fails stays registered: concurrent and later callers see the
    same error and the registry is not asked again.

    Args:
        registry: Client used to fetch raw metadata.
        concurrent_limit: Maximum number of in-flight registry fetches.
    """

    def __init__(
        self,
        registry: RegistryClient,
        concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT,
    ) -> None:
        self.registry = registry
        self.concurrent_limit = concurrent_limit
        # Created on first fetch so it binds to the running loop
        self._semaphore: Optional[asyncio.Semaphore] = None

        self._versions: Dict[str, Tuple[str, ...]] = {}
        self._dependencies: Dict[VersionedPackage, Tuple[DependencySpec, ...]] = {}
        self._fetches: Dict[str, "asyncio.Task[None]"] = {}
        self._bad: Set[str] = set()

        #: Number of registry fetches actually issued.
        self.fetch_count: int = 0

    # ------------------------------------------------------------------
    # Public async accessors
    # ------------------------------------------------------------------

    async def get_versions(self, name: str) -> Tuple[str, ...]:
        """Return every published version of *name*, ascending.

        Triggers a registry fetch on first use.  A bad package yields an
        empty tuple.

        Raises:
            NetworkError: The registry fetch failed.
        """
        await self._ensure_fetched(name)
        return self._versions.get(name, ())

    async def get_dependencies(self, name: str, version: str) -> Tuple[DependencySpec, ...]:
        """Return the declared dependencies of one exact version.

        Returns an empty tuple when the package is bad or the registry did
        not list *version*.

        Raises:
            NetworkError: The registry fetch failed.
        """
        if name in self._bad:
            return ()

        await self._ensure_fetched(name)

        key = VersionedPackage(name, _canonical(version))
        deps = self._dependencies.get(key)
        if deps is None:
            logger.debug("No metadata for %s; treating it as dependency-free", key)
            return ()
        return deps

    async def resolve_version(self, name: str, specifier: str) -> str:
        """Resolve *specifier* against the published versions of *name*.

        Returns:
            A concrete version, or the sentinel ``"0.0.0"`` for a bad
            package or a specifier nothing satisfies.
        """
        versions = await self.get_versions(name)
        if name in self._bad:
            return SENTINEL_VERSION
        return resolve_specifier(specifier, versions)

    # ------------------------------------------------------------------
    # Synchronous accessors (cache-only, no I/O)
    # ------------------------------------------------------------------

    def is_bad(self, name: str) -> bool:
        """True when the registry reported no versions for *name*."""
        return name in self._bad

    @property
    def bad_packages(self) -> FrozenSet[str]:
        """Snapshot of every package marked unresolvable."""
        return frozenset(self._bad)

    def cached_versions(self, name: str) -> Optional[Tuple[str, ...]]:
        """Return cached versions without fetching, or ``None``."""
        return self._versions.get(name)

    def stats(self) -> Dict[str, int]:
        """Counters for diagnostics and debug logging."""
        return {
            "fetches": self.fetch_count,
            "packages": len(self._versions),
            "versions": len(self._dependencies),
            "bad_packages": len(self._bad),
        }

    async def close(self) -> None:
        """Cancel registry fetches still in flight and wait for them to settle.

        Shielded fetches outlive their cancelled callers. Call this before
        the registry's HTTP client is closed.
        """
        pending = [task for task in self._fetches.values() if not task.done()]
        if not pending:
            return

        logger.debug("Cancelling %d in-flight fetch(es)", len(pending))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Fetch coalescing (private)
    # ------------------------------------------------------------------

    async def _ensure_fetched(self, name: str) -> None:
        if name in self._versions or name in self._bad:
            return

        # No await between the lookup and the registration
        task = self._fetches.get(name)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_fill(name))
            self._fetches[name] = task

        # Shield so that one cancelled waiter does not cancel the shared fetch
        await asyncio.shield(task)

    async def _fetch_and_fill(self, name: str) -> None:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.concurrent_limit)

        async with self._semaphore:
            self.fetch_count += 1
            logger.debug("Fetching metadata for %s", name)
            metadata = await self.registry.fetch_metadata(name)

        if not metadata:
            logger.info("Package %s has no published versions; marking as bad", name)
            self._bad.add(name)
            return

        versions = []
        for version, deps in metadata:
            key = VersionedPackage(name, _canonical(version))
            self._dependencies.setdefault(key, tuple(deps))
            versions.append(version)

        self._versions.setdefault(name, tuple(sort_versions(versions)))
        logger.debug("Cached %d version(s) of %s", len(self._versions[name]), name)
