"""
Unified data model exports for depfloor.

Example:
    >>> from depfloor.models import VersionedPackage, DependencySpec, UpdateResult
"""

from __future__ import annotations

from depfloor.models.package import DependencySpec, VersionedPackage
from depfloor.models.result import UpdateResult

__all__ = [
    "DependencySpec",
    "VersionedPackage",
    "UpdateResult",
]
