from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from depfloor.config import (
    DepFloorConfig,
    discover_config_file,
    load_config,
    _parse_section,
    _pyproject_has_depfloor_section,
    _read_toml,
)
from depfloor.exceptions import ConfigError


@pytest.mark.unit
class TestDepFloorConfig:
    """Tests for DepFloorConfig dataclass."""

    def test_default_initialization(self) -> None:
        config = DepFloorConfig()

        assert config.registry_url == "https://registry.npmjs.org"
        assert config.expand_ranges is False
        assert config.concurrent_limit == 10
        assert config.timeout == 30
        assert config.max_retries == 0
        assert config.source_path is None

    def test_to_log_dict_excludes_metadata(self) -> None:
        config = DepFloorConfig(expand_ranges=True, source_path=Path("/x/depfloor.toml"))

        result = config.to_log_dict()

        assert result["expand_ranges"] is True
        assert "source_path" not in result


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file."""

    def test_explicit_path_priority(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[depfloor]\n", encoding="utf-8")
        (tmp_path / "depfloor.toml").write_text("[depfloor]\n", encoding="utf-8")

        with patch("depfloor.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file(config_file)

        assert result == config_file.resolve()

    def test_explicit_path_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            discover_config_file(tmp_path / "missing.toml")

    def test_depfloor_toml_before_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "depfloor.toml").write_text("[depfloor]\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text("[tool.depfloor]\n", encoding="utf-8")

        with patch("depfloor.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == tmp_path / "depfloor.toml"

    def test_pyproject_with_section(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            "[tool.depfloor]\nexpand_ranges = true\n", encoding="utf-8"
        )

        with patch("depfloor.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == tmp_path / "pyproject.toml"

    def test_pyproject_without_section_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.black]\n", encoding="utf-8")

        with patch("depfloor.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() is None


@pytest.mark.unit
class TestReadToml:
    """Tests for _read_toml and _pyproject_has_depfloor_section."""

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "depfloor.toml"
        path.write_text("[depfloor\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            _read_toml(path)

    def test_unreadable(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            _read_toml(tmp_path / "absent.toml")

    def test_broken_pyproject_has_no_section(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("not = [valid", encoding="utf-8")

        assert _pyproject_has_depfloor_section(path) is False


@pytest.mark.unit
class TestParseSection:
    """Tests for _parse_section validation."""

    def test_all_options(self) -> None:
        config = _parse_section(
            {
                "registry_url": "https://npm.example.com/",
                "expand_ranges": True,
                "concurrent_limit": 4,
                "timeout": 5,
                "max_retries": 2,
            },
            config_path="depfloor.toml",
        )

        assert config.registry_url == "https://npm.example.com"
        assert config.expand_ranges is True
        assert config.concurrent_limit == 4
        assert config.timeout == 5
        assert config.max_retries == 2

    def test_unknown_keys(self) -> None:
        with pytest.raises(ConfigError, match="Unknown configuration keys: bogus"):
            _parse_section({"bogus": 1}, config_path="depfloor.toml")

    @pytest.mark.parametrize(
        "option, value",
        [
            ("expand_ranges", "yes"),
            ("concurrent_limit", "4"),
            ("concurrent_limit", True),
            ("timeout", 1.5),
            ("registry_url", 42),
        ],
    )
    def test_wrong_type(self, option: str, value) -> None:
        with pytest.raises(ConfigError, match="must be of type") as exc_info:
            _parse_section({option: value}, config_path="depfloor.toml")

        assert exc_info.value.option == option

    @pytest.mark.parametrize(
        "option, value",
        [("concurrent_limit", 0), ("timeout", 0), ("max_retries", -1)],
    )
    def test_below_minimum(self, option: str, value: int) -> None:
        with pytest.raises(ConfigError, match=">="):
            _parse_section({option: value}, config_path="depfloor.toml")

    def test_empty_registry_url(self) -> None:
        with pytest.raises(ConfigError, match="must not be empty"):
            _parse_section({"registry_url": "/"}, config_path="depfloor.toml")


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_when_nothing_found(self, tmp_path: Path) -> None:
        with patch("depfloor.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config == DepFloorConfig()

    def test_loads_depfloor_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "depfloor.toml"
        path.write_text("[depfloor]\nexpand_ranges = true\ntimeout = 10\n", encoding="utf-8")

        with patch("depfloor.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config.expand_ranges is True
        assert config.timeout == 10
        assert config.source_path == path

    def test_loads_pyproject_section(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("[tool.depfloor]\nconcurrent_limit = 3\n", encoding="utf-8")

        config = load_config(path)

        assert config.concurrent_limit == 3
        assert config.source_path == path.resolve()

    def test_empty_section_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "depfloor.toml"
        path.write_text("[other]\nkey = 1\n", encoding="utf-8")

        config = load_config(path)

        assert config.to_log_dict() == DepFloorConfig().to_log_dict()
        assert config.source_path == path.resolve()

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        path = tmp_path / "depfloor.toml"
        path.write_text("[depfloor]\ntimeout = 0\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert exc_info.value.config_path == str(path.resolve())
