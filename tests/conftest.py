from __future__ import annotations

import asyncio
from typing import Dict, Optional

import pytest

from depfloor.core.registry import PackageMetadata
from depfloor.models.package import DependencySpec


class FakeRegistry:
    """In-memory registry client.

    ``packages`` maps a name to ``{version: {dep_name: specifier}}``.  Every
    fetch is counted per package, can be slowed down with ``delay`` and can
    be made to fail through ``failures``.
    """

    def __init__(
        self,
        packages: Dict[str, Dict[str, Dict[str, str]]],
        *,
        delay: float = 0.0,
        failures: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.packages = packages
        self.delay = delay
        self.failures = failures or {}
        self.calls: Dict[str, int] = {}

    async def fetch_metadata(self, name: str) -> PackageMetadata:
        self.calls[name] = self.calls.get(name, 0) + 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.failures:
            raise self.failures[name]

        versions = self.packages.get(name, {})
        return [
            (version, [DependencySpec(dep, spec) for dep, spec in deps.items()])
            for version, deps in versions.items()
        ]

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def lib_registry() -> FakeRegistry:
    """Three releases of ``lib`` pulling in increasingly new ``core``."""
    return FakeRegistry(
        {
            "lib": {
                "2.0.0": {"core": "^2.0.0"},
                "1.0.0": {"core": "^1.0.0"},
                "1.1.0": {"core": "^1.2.0"},
            },
            "core": {
                "1.0.0": {},
                "1.2.0": {},
                "1.3.0": {},
                "2.0.0": {},
            },
        }
    )


@pytest.fixture
def make_registry():
    """Factory fixture building a :class:`FakeRegistry`."""
    return FakeRegistry
