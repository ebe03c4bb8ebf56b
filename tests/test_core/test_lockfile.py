from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from depfloor.core import LockfileScanner
from depfloor.exceptions import FileOperationError, ParseError


def _write(path: Path, data: Dict[str, Any]) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def v3_lockfile(tmp_path: Path) -> Path:
    return _write(
        tmp_path / "package-lock.json",
        {
            "name": "app",
            "lockfileVersion": 3,
            "packages": {
                "": {
                    "name": "app",
                    "dependencies": {"mkdirp": "^0.5.1", "express": "^4.0.0", "minimist": "^1.2.0"},
                    "devDependencies": {"mocha": "^10.0.0"},
                },
                "node_modules/mkdirp": {
                    "version": "0.5.5",
                    "dependencies": {"minimist": "^1.2.5"},
                },
                "node_modules/minimist": {"version": "1.2.5"},
                "node_modules/express": {
                    "version": "4.18.2",
                    "dependencies": {"body-parser": "1.20.1"},
                },
                "node_modules/body-parser": {"version": "1.20.1"},
                "node_modules/mocha": {
                    "version": "10.2.0",
                    "dependencies": {"yargs": "16.2.0"},
                },
                "node_modules/yargs": {
                    "version": "16.2.0",
                    "dependencies": {"yargs-parser": "^20.2.2"},
                },
                "node_modules/mocha/node_modules/yargs-parser": {
                    "version": "20.2.9",
                    "dependencies": {"minimist": "0.0.8"},
                },
            },
        },
    )


@pytest.mark.unit
class TestListDependents:
    """Tests for LockfileScanner.list_dependents."""

    def test_direct_and_transitive_dependents(self, v3_lockfile: Path) -> None:
        scanner = LockfileScanner(v3_lockfile)

        assert scanner.list_dependents("minimist") == ["mkdirp@0.5.5"]

    def test_target_itself_not_reported(self, v3_lockfile: Path) -> None:
        scanner = LockfileScanner(v3_lockfile)

        assert "minimist@1.2.5" not in scanner.list_dependents("minimist")

    def test_dev_dependencies_are_roots(self, v3_lockfile: Path) -> None:
        scanner = LockfileScanner(v3_lockfile)

        assert scanner.list_dependents("yargs") == ["mocha@10.2.0"]

    def test_declared_but_not_hoisted_dependency(self, v3_lockfile: Path) -> None:
        """A declared edge counts even when the install is nested elsewhere."""
        scanner = LockfileScanner(v3_lockfile)

        assert scanner.list_dependents("yargs-parser") == ["mocha@10.2.0"]

    def test_unknown_target(self, v3_lockfile: Path) -> None:
        assert LockfileScanner(v3_lockfile).list_dependents("left-pad") == []

    def test_sorted_by_name(self, tmp_path: Path) -> None:
        lockfile = _write(
            tmp_path / "package-lock.json",
            {
                "lockfileVersion": 2,
                "packages": {
                    "": {"dependencies": {"zeta": "1.0.0", "alpha": "1.0.0"}},
                    "node_modules/zeta": {"version": "1.0.0", "dependencies": {"t": "1"}},
                    "node_modules/alpha": {"version": "1.0.0", "dependencies": {"t": "1"}},
                    "node_modules/t": {"version": "1.0.0"},
                },
            },
        )

        assert LockfileScanner(lockfile).list_dependents("t") == ["alpha@1.0.0", "zeta@1.0.0"]

    def test_cyclic_graph_terminates(self, tmp_path: Path) -> None:
        lockfile = _write(
            tmp_path / "package-lock.json",
            {
                "lockfileVersion": 3,
                "packages": {
                    "": {"dependencies": {"a": "1.0.0"}},
                    "node_modules/a": {"version": "1.0.0", "dependencies": {"b": "1.0.0"}},
                    "node_modules/b": {"version": "1.0.0", "dependencies": {"a": "1.0.0"}},
                },
            },
        )

        assert LockfileScanner(lockfile).list_dependents("c") == []

    def test_workspace_link_followed(self, tmp_path: Path) -> None:
        lockfile = _write(
            tmp_path / "package-lock.json",
            {
                "lockfileVersion": 3,
                "packages": {
                    "": {"dependencies": {"local": "*"}},
                    "node_modules/local": {"resolved": "packages/local", "link": True},
                    "packages/local": {"version": "0.1.0", "dependencies": {"minimist": "1.2.8"}},
                    "node_modules/minimist": {"version": "1.2.8"},
                },
            },
        )

        assert LockfileScanner(lockfile).list_dependents("minimist") == ["local@0.1.0"]


@pytest.mark.unit
class TestLegacyLockfile:
    """Tests for lockfileVersion 1 support."""

    def _v1(self, tmp_path: Path) -> Path:
        return _write(
            tmp_path / "package-lock.json",
            {
                "lockfileVersion": 1,
                "dependencies": {
                    "mkdirp": {
                        "version": "0.5.1",
                        "requires": {"minimist": "0.0.8"},
                        "dependencies": {"minimist": {"version": "0.0.8"}},
                    },
                    "minimist": {"version": "1.2.0"},
                    "chalk": {"version": "4.1.2"},
                },
            },
        )

    def test_without_manifest_top_level_entries_are_roots(self, tmp_path: Path) -> None:
        scanner = LockfileScanner(self._v1(tmp_path))

        assert scanner.list_dependents("minimist") == ["mkdirp@0.5.1"]

    def test_manifest_limits_roots(self, tmp_path: Path) -> None:
        lockfile = self._v1(tmp_path)
        _write(tmp_path / "package.json", {"name": "app", "dependencies": {"chalk": "^4.0.0"}})

        assert LockfileScanner(lockfile).list_dependents("minimist") == []


@pytest.mark.unit
class TestLockfileErrors:
    """Tests for unreadable or malformed lockfiles."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError):
            LockfileScanner(tmp_path / "package-lock.json").list_dependents("x")

    def test_invalid_json(self, tmp_path: Path) -> None:
        lockfile = tmp_path / "package-lock.json"
        lockfile.write_text("{not json", encoding="utf-8")

        with pytest.raises(ParseError, match="Invalid JSON"):
            LockfileScanner(lockfile).list_dependents("x")

    def test_no_package_data(self, tmp_path: Path) -> None:
        lockfile = _write(tmp_path / "package-lock.json", {"lockfileVersion": 3})

        with pytest.raises(ParseError, match="No package data"):
            LockfileScanner(lockfile).list_dependents("x")
