"""
Core functionality exports for depfloor.

Importing from here keeps user-facing imports clean and stable:

    from depfloor.core import ResolverSession
"""

from __future__ import annotations

from depfloor.core.lockfile import LockfileScanner
from depfloor.core.metadata_cache import MetadataCache
from depfloor.core.closure import DependencyClosure, remove_duplicates
from depfloor.core.resolver import VersionResolver
from depfloor.core.scheduler import BatchScheduler, parse_dependent
from depfloor.core.registry import NpmRegistryClient, RegistryClient
from depfloor.core.session import ResolverSession

__all__ = [
    "LockfileScanner",
    "MetadataCache",
    "DependencyClosure",
    "remove_duplicates",
    "VersionResolver",
    "BatchScheduler",
    "parse_dependent",
    "NpmRegistryClient",
    "RegistryClient",
    "ResolverSession",
]
