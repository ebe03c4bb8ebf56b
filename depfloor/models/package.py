"""
Package identity models for depfloor.

This module defines the two small value types that flow through the
metadata cache and closure computation: a package pinned to (or reached
under) one version string, and a dependency declaration as published by a
dependent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class VersionedPackage:
    """A package paired with one version string.

    For a closure root the version is concrete. For every package reached
    through a dependency edge it is the specifier exactly as declared by
    the dependent (``"^1.2.0"``), so that the same package reached under
    different ranges stays distinguishable until it is normalized.

    Attributes:
        name: Registry package name (case-sensitive).
        version: Concrete version or declared specifier.
    """

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"

    def as_tuple(self) -> Tuple[str, str]:
        """Return ``(name, version)``."""
        return (self.name, self.version)


@dataclass(frozen=True)
class DependencySpec:
    """A dependency declaration: package name plus version specifier.

    Attributes:
        name: Name of the depended-upon package.
        specifier: Concrete version or npm range expression.
    """

    name: str
    specifier: str

    def __str__(self) -> str:
        return f"{self.name}@{self.specifier}"

    def to_package(self) -> VersionedPackage:
        """Return the closure member this declaration reaches."""
        return VersionedPackage(self.name, self.specifier)
