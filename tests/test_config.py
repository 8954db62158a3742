"""Tests for configuration models and YAML parsing."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from sqlorder.config import (
    ConfigParser,
    DatabaseConfig,
    DatabaseType,
    EnvironmentSettings,
    IsolationLevel,
    PositionSettings,
    SQLOrderConfig,
    create_sample_config,
    get_config,
    validate_config_file,
)
from sqlorder.exceptions import ConfigurationError


def write_yaml(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


class TestModels:

    def test_sqlite_accepts_database_as_path(self) -> None:
        config = DatabaseConfig(type="sqlite", database="app.db")
        assert config.path == "app.db"

    def test_sqlite_requires_location(self) -> None:
        with pytest.raises(ValidationError):
            DatabaseConfig(type="sqlite")

    def test_server_databases_require_host_database_username(self) -> None:
        with pytest.raises(ValidationError, match="host"):
            DatabaseConfig(type="mysql", database="app", username="root")
        config = DatabaseConfig(type="mysql", host="db", database="app", username="root")
        assert config.password is None
        assert config.charset == "utf8"

    def test_driver_alias(self) -> None:
        assert DatabaseConfig(driver="postgresql", host="h", database="d", username="u").type is DatabaseType.POSTGRESQL

    def test_port_range(self) -> None:
        with pytest.raises(ValidationError):
            DatabaseConfig(type="mysql", host="db", database="app", username="u", port=70000)

    def test_default_database_falls_back_to_first(self) -> None:
        config = SQLOrderConfig(databases={
            "one": {"type": "sqlite", "path": "one.db"},
            "two": {"type": "sqlite", "path": "two.db"},
        })
        assert config.default_database == "one"
        assert config.positions == PositionSettings()

    def test_unknown_default_database(self) -> None:
        with pytest.raises(ValidationError):
            SQLOrderConfig(databases={"one": {"type": "sqlite", "path": "one.db"}}, default_database="two")

    def test_position_settings_validate_identifiers(self) -> None:
        with pytest.raises(ValidationError):
            PositionSettings(column="pos; DROP TABLE x")
        settings = PositionSettings(isolation_level="READ COMMITTED")
        assert settings.isolation_level is IsolationLevel.READ_COMMITTED
        assert settings.atomic is True

    def test_environment_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("SQLORDER_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("SQLORDER_DEBUG", "true")
        settings = EnvironmentSettings()
        assert settings.log_level == "DEBUG"
        assert settings.debug is True


class TestParser:

    def test_load_config(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "sqlorder.yaml", """
databases:
  main:
    type: sqlite
    path: ./main.db
positions:
  column: sort_order
  atomic: false
  isolation_level: SERIALIZABLE
""")
        config = ConfigParser().load_config(path)
        assert config.default_database == "main"
        assert config.positions.column == "sort_order"
        assert config.positions.primary == "id"
        assert config.positions.atomic is False
        assert config.positions.isolation_level is IsolationLevel.SERIALIZABLE

    def test_env_var_interpolation(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("SQLORDER_TEST_HOST", "db.internal")
        monkeypatch.delenv("SQLORDER_TEST_PASSWORD", raising=False)
        path = write_yaml(tmp_path / "c.yaml", """
databases:
  main:
    type: mysql
    host: ${SQLORDER_TEST_HOST}
    database: app
    username: app
    password: ${SQLORDER_TEST_PASSWORD:-secret}
""")
        config = ConfigParser().load_config(path)
        assert config.databases["main"].host == "db.internal"
        assert config.databases["main"].password == "secret"

    def test_missing_required_env_var(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv("SQLORDER_TEST_MISSING", raising=False)
        path = write_yaml(tmp_path / "c.yaml", """
databases:
  main:
    type: sqlite
    path: ${SQLORDER_TEST_MISSING}
""")
        with pytest.raises(ConfigurationError, match="SQLORDER_TEST_MISSING"):
            ConfigParser().load_config(path)

    def test_includes_have_lower_priority(self, tmp_path: Path) -> None:
        write_yaml(tmp_path / "base.yaml", """
databases:
  main:
    type: sqlite
    path: base.db
positions:
  column: rank
  primary: uid
""")
        path = write_yaml(tmp_path / "app.yaml", """
include: base.yaml
positions:
  column: pos
""")
        config = ConfigParser().load_config(path)
        assert config.databases["main"].path == "base.db"
        assert config.positions.column == "pos"
        assert config.positions.primary == "uid"

    def test_including_file_adds_databases(self, tmp_path: Path) -> None:
        write_yaml(tmp_path / "shared.yaml", "databases:\n  main:\n    type: sqlite\n    path: main.db\n")
        path = write_yaml(tmp_path / "app.yaml", """
include: [shared.yaml]
databases:
  scratch:
    type: sqlite
    path: ":memory:"
default_database: scratch
""")
        config = ConfigParser().load_config(path)
        assert set(config.databases) == {"main", "scratch"}
        assert config.default_database == "scratch"
        assert validate_config_file(path) is True

    def test_missing_include(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "app.yaml", "include: nope.yaml\ndatabases: {}\n")
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigParser().load_config(path)

    @pytest.mark.parametrize("content", ["", "- a\n- b\n", "databases: invalid_structure\n", "databases: [\n"])
    def test_invalid_files(self, tmp_path: Path, content: str) -> None:
        path = write_yaml(tmp_path / "bad.yaml", content)
        with pytest.raises(ConfigurationError):
            ConfigParser().load_config(path)

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigParser().load_config(tmp_path / "absent.yaml")

    def test_default_location_lookup(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv("SQLORDER_CONFIG_FILE", raising=False)
        monkeypatch.chdir(tmp_path)
        write_yaml(tmp_path / "sqlorder.yml", "databases:\n  local:\n    type: sqlite\n    path: x.db\n")
        assert ConfigParser().load_config().default_database == "local"

    def test_config_file_from_environment(self, tmp_path: Path, monkeypatch) -> None:
        path = write_yaml(tmp_path / "elsewhere.yaml", "databases:\n  env:\n    type: sqlite\n    path: x.db\n")
        monkeypatch.setenv("SQLORDER_CONFIG_FILE", str(path))
        monkeypatch.chdir(tmp_path)
        assert ConfigParser().load_config().default_database == "env"

    def test_no_config_anywhere(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv("SQLORDER_CONFIG_FILE", raising=False)
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigurationError, match="No configuration file"):
            ConfigParser().load_config()


def test_sample_config_is_valid(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("DEV_DB_PASSWORD", raising=False)
    monkeypatch.delenv("PG_PASSWORD", raising=False)
    path = tmp_path / "sample.yaml"
    create_sample_config(path)

    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert set(raw["databases"]) == {"dev", "reporting", "local"}

    config = ConfigParser().load_config(path)
    assert config.default_database == "local"
    assert config.databases["dev"].type is DatabaseType.MYSQL
    assert config.databases["reporting"].password == "app"


def test_get_config_reloads_for_new_path(tmp_path: Path) -> None:
    first = write_yaml(tmp_path / "first.yaml", "databases:\n  a:\n    type: sqlite\n    path: a.db\n")
    second = write_yaml(tmp_path / "second.yaml", "databases:\n  b:\n    type: sqlite\n    path: b.db\n")

    assert get_config(first, reload=True).default_database == "a"
    assert get_config(first) is get_config(first)
    assert get_config(second).default_database == "b"
