from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from depscout.config import (
    DepScoutConfig,
    _parse_section,
    _pyproject_has_section,
    _read_toml,
    discover_config_file,
    load_config,
)
from depscout.exceptions import ConfigError
from depscout.models import UpdateOptions


@pytest.mark.unit
class TestDepScoutConfig:
    """Tests for DepScoutConfig and its derived objects."""

    def test_defaults(self) -> None:
        config = DepScoutConfig()

        assert config.timeout == 10.0
        assert config.max_concurrency == 10
        assert config.max_attempts == 3
        assert config.cache_max_size == 500
        assert config.cache_ttl == 300
        assert config.cache_error_ttl == 120
        assert config.update_major is False
        assert config.source_path is None

    def test_to_log_dict_excludes_metadata(self) -> None:
        result = DepScoutConfig(source_path=Path("/x/depscout.toml")).to_log_dict()

        assert "source_path" not in result
        assert result["timeout"] == 10.0
        assert len(result) == 14

    def test_retry_policy(self) -> None:
        policy = DepScoutConfig(max_attempts=5, initial_delay=0.5, use_jitter=False).retry_policy()

        assert policy.max_attempts == 5
        assert policy.initial_delay == 0.5
        assert policy.use_jitter is False

    def test_create_cache(self) -> None:
        cache = DepScoutConfig(cache_max_size=7, cache_ttl=60, cache_error_ttl=30).create_cache()

        assert cache.max_size == 7
        assert cache.ttl == 60
        assert cache.error_ttl == 30
        assert len(cache) == 0

    def test_update_options(self) -> None:
        options = DepScoutConfig(update_major=True, update_patch=False).update_options()
        assert options == UpdateOptions(update_major=True, update_minor=True, update_patch=False)


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file."""

    def test_explicit_path_priority(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[depscout]\n", encoding="utf-8")
        (tmp_path / "depscout.toml").write_text("[depscout]\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file(config_file)

        assert result == config_file.resolve()

    def test_explicit_path_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Configuration file not found") as exc_info:
            discover_config_file(tmp_path / "nonexistent.toml")

        assert exc_info.value.config_path == str(tmp_path / "nonexistent.toml")

    def test_depscout_toml_preferred(self, tmp_path: Path) -> None:
        (tmp_path / "depscout.toml").write_text("[depscout]\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text("[tool.depscout]\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == tmp_path / "depscout.toml"

    def test_pyproject_with_section(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.depscout]\ntimeout = 3\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == tmp_path / "pyproject.toml"

    def test_pyproject_without_section_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.black]\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() is None

    def test_nothing_found(self, tmp_path: Path) -> None:
        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() is None


@pytest.mark.unit
class TestReadToml:
    """Tests for _read_toml and _pyproject_has_section."""

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "depscout.toml"
        path.write_text("[depscout\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid TOML in depscout.toml"):
            _read_toml(path)

    def test_unreadable(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read configuration file"):
            _read_toml(tmp_path / "missing.toml")

    def test_invalid_pyproject_has_no_section(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("not = [valid", encoding="utf-8")

        assert _pyproject_has_section(path) is False


@pytest.mark.unit
class TestParseSection:
    """Tests for _parse_section validation."""

    def test_valid_values(self) -> None:
        config = _parse_section(
            {"timeout": 5, "max_concurrency": 20, "use_jitter": False, "update_major": True},
            config_path="depscout.toml",
        )

        assert config.timeout == 5.0
        assert isinstance(config.timeout, float)
        assert config.max_concurrency == 20
        assert config.use_jitter is False
        assert config.update_major is True

    def test_unknown_keys(self) -> None:
        with pytest.raises(ConfigError, match="Unknown configuration keys: colour, verbose"):
            _parse_section({"colour": True, "verbose": 1}, config_path="x")

    @pytest.mark.parametrize(
        "key,value,message",
        [
            ("timeout", "fast", "timeout must be a number, got str"),
            ("timeout", True, "timeout must be a number, got bool"),
            ("max_concurrency", 2.5, "max_concurrency must be an integer, got float"),
            ("max_attempts", False, "max_attempts must be an integer, got bool"),
            ("update_major", 1, "update_major must be a boolean, got int"),
        ],
    )
    def test_wrong_types(self, key: str, value, message: str) -> None:
        with pytest.raises(ConfigError) as exc_info:
            _parse_section({key: value}, config_path="x")

        assert exc_info.value.message == message
        assert exc_info.value.option == key

    @pytest.mark.parametrize("key", ["timeout", "max_concurrency", "cache_ttl", "cache_max_size"])
    def test_non_positive(self, key: str) -> None:
        with pytest.raises(ConfigError, match=f"{key} must be greater than zero"):
            _parse_section({key: 0}, config_path="x")

    def test_not_a_table(self) -> None:
        with pytest.raises(ConfigError, match="must be a table"):
            _parse_section("timeout=1", config_path="x")  # type: ignore[arg-type]

    def test_error_ttl_longer_than_ttl_warns(
        self, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(logging.getLogger("depscout"), "propagate", True)

        with caplog.at_level(logging.WARNING, logger="depscout.config"):
            _parse_section({"cache_ttl": 60, "cache_error_ttl": 600}, config_path="x")

        assert "cache_error_ttl" in caplog.text


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config == DepScoutConfig()

    def test_depscout_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "depscout.toml"
        path.write_text("[depscout]\ntimeout = 2.5\nupdate_major = true\n", encoding="utf-8")

        config = load_config(path)

        assert config.timeout == 2.5
        assert config.update_major is True
        assert config.source_path == path.resolve()

    def test_pyproject_section(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pyproject.toml").write_text(
            "[project]\nname = 'x'\n\n[tool.depscout]\nmax_concurrency = 4\n",
            encoding="utf-8",
        )
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.max_concurrency == 4
        assert config.source_path == tmp_path / "pyproject.toml"

    def test_empty_section_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "depscout.toml"
        path.write_text("# nothing here\n", encoding="utf-8")

        config = load_config(path)

        assert config.timeout == 10.0
        assert config.source_path == path.resolve()

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "depscout.toml"
        path.write_text("[depscout]\nmax_attempts = -1\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert exc_info.value.config_path == str(path.resolve())
