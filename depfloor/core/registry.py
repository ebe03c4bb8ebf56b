"""npm registry client for depfloor.

Fetches a package's *packument* (the JSON document listing every published
version) and reduces it to the only shape the metadata cache needs: a list
of ``(version, dependencies)`` pairs.

Typical usage::

    async with HTTPClient() as http:
        client   = NpmRegistryClient(http)
        metadata = await client.fetch_metadata("left-pad")
        for version, deps in metadata:
            print(version, [str(d) for d in deps])
"""

from __future__ import annotations

from urllib.parse import quote
from typing import Any, Dict, List, Protocol, Tuple

from depfloor.utils.http import HTTPClient
from depfloor.utils.logger import get_logger
from depfloor.exceptions import RegistryError
from depfloor.models.package import DependencySpec
from depfloor.constants import DEFAULT_REGISTRY_URL

logger = get_logger("registry")

# Public API
__all__ = ["PackageMetadata", "RegistryClient", "NpmRegistryClient"]

#: ``[(version, [DependencySpec, ...]), ...]`` in no particular order.
PackageMetadata = List[Tuple[str, List[DependencySpec]]]


class RegistryClient(Protocol):
    """Anything that can fetch raw package metadata.

    Implementations return an empty list for an unknown package and raise
    for transport failures.
    """

    async def fetch_metadata(self, name: str) -> PackageMetadata: ...


class NpmRegistryClient:
    """Registry client for the npm registry HTTP API.

    Args:
        http_client: A pre-configured :class:`HTTPClient` (owns the
            connection pool).
        registry_url: Base URL of an npm-compatible registry.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        registry_url: str = DEFAULT_REGISTRY_URL,
    ) -> None:
        self.http_client = http_client
        self.registry_url = registry_url.rstrip("/")

    def packument_url(self, name: str) -> str:
        """Return the packument URL for *name*.

        Scoped names keep their ``@`` but have the slash encoded, which is
        what the registry expects.

        Example::

            >>> client.packument_url("@types/node")
            'https://registry.npmjs.org/@types%2Fnode'
        """
        return f"{self.registry_url}/{quote(name, safe='@')}"

    async def fetch_metadata(self, name: str) -> PackageMetadata:
        """Fetch every published version of *name* with its dependencies.

        Returns:
            ``(version, dependencies)`` pairs, or ``[]`` when the registry
            does not know the package.

        Raises:
            RegistryError: Any failure other than "not found".
            NetworkError: Transport failure.
        """
        url = self.packument_url(name)
        try:
            data = await self.http_client.get_json(url)
        except RegistryError as exc:
            if exc.status_code == 404:
                logger.debug("Package %s not found in registry", name)
                return []
            raise

        return self._parse_packument(name, data)

    @staticmethod
    def _parse_packument(name: str, data: Dict[str, Any]) -> PackageMetadata:
        """Reduce a packument to ``(version, dependencies)`` pairs.

        Only runtime ``dependencies`` are considered; dev, peer and optional
        dependencies do not take part in a consumer's install.
        """
        versions = data.get("versions")
        if not isinstance(versions, dict):
            raise RegistryError(
                f"Malformed packument for '{name}': missing versions",
                package_name=name,
            )

        metadata: PackageMetadata = []
        for version, manifest in versions.items():
            deps = (manifest or {}).get("dependencies") or {}
            if not isinstance(deps, dict):
                logger.debug("Ignoring malformed dependencies of %s@%s", name, version)
                deps = {}
            metadata.append(
                (version, [DependencySpec(dep, str(spec)) for dep, spec in deps.items()])
            )

        return metadata
