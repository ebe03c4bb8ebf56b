"""
depfloor: minimal upgrades that lift a dependency above a version floor

depfloor answers one question for an npm dependency graph: given a target
package that must be at least some version (typically to pick up a security
fix), what is the *lowest* published version each dependent has to be
upgraded to so that its whole transitive closure honours that floor?

Features include:
    • Shared, de-duplicated registry metadata cache
    • Transitive dependency closure with optional range expansion
    • Descending exponential search over a dependent's release history
    • Concurrent batch resolution for every dependent in a lockfile
"""

from __future__ import annotations

from depfloor.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depfloor Contributors"
__license__ = "Apache-2.0"
__description__ = "Find the minimal upgrades that satisfy a transitive version floor."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

from depfloor.core import (  # noqa: E402
    BatchScheduler,
    DependencyClosure,
    MetadataCache,
    ResolverSession,
    VersionResolver,
)

__all__ = [
    "__version__",
    "BatchScheduler",
    "DependencyClosure",
    "MetadataCache",
    "ResolverSession",
    "VersionResolver",
]
