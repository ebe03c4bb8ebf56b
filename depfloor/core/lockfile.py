"""npm lockfile scanner for depfloor.

Finds the project's direct dependencies that pull in a given package,
directly or transitively, according to ``package-lock.json``.  Those
dependents seed a batch resolution: they are the packages a project can
actually upgrade.

Supported formats:

- ``lockfileVersion`` 2 and 3: flat ``packages`` map keyed by install
  location (``node_modules/a/node_modules/b``)
- ``lockfileVersion`` 1: nested ``dependencies`` tree with ``requires``

Dependency edges are followed the way Node resolves ``require()``: from a
package's own ``node_modules`` upward to the project root.

Typical usage::

    scanner = LockfileScanner("package-lock.json")
    for descriptor in scanner.list_dependents("minimist"):
        print(descriptor)            # e.g. "mkdirp@0.5.5"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from depfloor.utils.logger import get_logger
from depfloor.exceptions import ParseError
from depfloor.utils.filesystem import PathLike, read_json_file, validate_path

logger = get_logger("lockfile")

# Public API
__all__ = ["LockfileScanner"]

_NODE_MODULES = "node_modules/"
_ROOT_DEPENDENCY_FIELDS = ("dependencies", "devDependencies", "optionalDependencies")
_DEPENDENCY_FIELDS = ("dependencies", "optionalDependencies")


class LockfileScanner:
    """Query the dependency graph recorded in an npm lockfile.

    The lockfile is read lazily on first use and kept in memory.

    Args:
        path: Path to ``package-lock.json`` (or ``npm-shrinkwrap.json``).
    """

    def __init__(self, path: PathLike) -> None:
        self.path: Path = validate_path(path)
        self._packages: Optional[Dict[str, Dict[str, Any]]] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_dependents(self, package_name: str) -> List[str]:
        """Return ``"name@version"`` for each direct dependency reaching *package_name*.

        The target itself is never reported, even when it is a direct
        dependency.  Results are sorted by name.

        Raises:
            FileOperationError: The lockfile cannot be read.
            ParseError: The lockfile is not valid JSON or has no package data.
        """
        packages = self._load()
        root = packages.get("", {})

        dependents: List[str] = []
        for name in sorted(self._declared(root, _ROOT_DEPENDENCY_FIELDS)):
            if name == package_name:
                continue
            location = self._resolve(packages, "", name)
            if location is None:
                logger.debug("Direct dependency %s is not installed in lockfile", name)
                continue
            if self._reaches(packages, location, package_name):
                version = packages[location].get("version", "")
                dependents.append(f"{name}@{version}")

        logger.info(
            "Found %d dependent(s) of %s in %s", len(dependents), package_name, self.path.name
        )
        return dependents

    # ------------------------------------------------------------------
    # Graph traversal (private)
    # ------------------------------------------------------------------

    def _reaches(
        self,
        packages: Dict[str, Dict[str, Any]],
        start: str,
        target: str,
    ) -> bool:
        seen: Set[str] = set()
        stack = [start]

        while stack:
            location = stack.pop()
            if location in seen:
                continue
            seen.add(location)

            for name in self._declared(packages[location], _DEPENDENCY_FIELDS):
                if name == target:
                    return True
                child = self._resolve(packages, location, name)
                if child is not None and child not in seen:
                    stack.append(child)

        return False

    @staticmethod
    def _declared(entry: Dict[str, Any], fields: Iterable[str]) -> Set[str]:
        names: Set[str] = set()
        for field_name in fields:
            names.update((entry.get(field_name) or {}).keys())
        return names

    @staticmethod
    def _resolve(
        packages: Dict[str, Dict[str, Any]],
        from_location: str,
        name: str,
    ) -> Optional[str]:
        """Find where *name* is installed as seen from *from_location*."""
        base = from_location
        while True:
            candidate = f"{base}/{_NODE_MODULES}{name}" if base else f"{_NODE_MODULES}{name}"
            entry = packages.get(candidate)
            if entry is not None:
                if entry.get("link") and entry.get("resolved") in packages:
                    return entry["resolved"]
                return candidate
            if not base:
                return None
            cut = base.rfind(f"/{_NODE_MODULES}")
            base = base[:cut] if cut != -1 else ""

    # ------------------------------------------------------------------
    # Loading (private)
    # ------------------------------------------------------------------

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if self._packages is not None:
            return self._packages

        data = read_json_file(self.path)

        if not isinstance(data, dict):
            raise ParseError("Lockfile must be a JSON object", file_path=str(self.path))

        if isinstance(data.get("packages"), dict):
            packages = data["packages"]
        elif isinstance(data.get("dependencies"), dict):
            logger.debug("Reading legacy lockfileVersion 1 tree")
            packages = self._flatten_v1(data["dependencies"])
            packages[""] = self._v1_root(data["dependencies"])
        else:
            raise ParseError(
                f"No package data found in {self.path.name}",
                file_path=str(self.path),
            )

        self._packages = packages
        return packages

    def _flatten_v1(
        self,
        tree: Dict[str, Any],
        prefix: str = "",
    ) -> Dict[str, Dict[str, Any]]:
        """Convert a v1 ``dependencies`` tree into the v2 location map."""
        packages: Dict[str, Dict[str, Any]] = {}
        for name, node in tree.items():
            location = f"{prefix}/{_NODE_MODULES}{name}" if prefix else f"{_NODE_MODULES}{name}"
            packages[location] = {
                "version": node.get("version", ""),
                "dependencies": dict(node.get("requires") or {}),
            }
            nested = node.get("dependencies")
            if isinstance(nested, dict):
                packages.update(self._flatten_v1(nested, location))
        return packages

    def _v1_root(self, tree: Dict[str, Any]) -> Dict[str, Any]:
        """Direct dependencies of a v1 project, from its ``package.json`` when present."""
        manifest = self.path.with_name("package.json")
        if manifest.is_file():
            data = read_json_file(manifest)
            return {field_name: data.get(field_name) or {} for field_name in _ROOT_DEPENDENCY_FIELDS}

        # Without a manifest every top-level entry is treated as direct
        return {"dependencies": {name: node.get("version", "") for name, node in tree.items()}}
