from __future__ import annotations

from pathlib import Path

import pytest

from fixturedb.config import loadDatabaseConfig, loadSettings, readConfigFile
from fixturedb.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "FIXTUREDB_DB_URL",
        "FIXTUREDB_DB_USERNAME",
        "FIXTUREDB_DB_PASSWORD",
        "FIXTUREDB_LOG_LEVEL",
        "FIXTUREDB_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


def test_load_database_config_reads_properties(tmp_path: Path):
    props = tmp_path / "db.properties"
    props.write_text(
        "\n".join([
            "# test database",
            "! legacy comment",
            "",
            "db.url=jdbc:sqlite:test.db",
            "db.username = qa_user",
            "db.password: p=ss:word",
            "flag",
        ]),
        encoding="utf-8",
    )

    assert loadDatabaseConfig(str(props)) == {
        "db.url": "jdbc:sqlite:test.db",
        "db.username": "qa_user",
        "db.password": "p=ss:word",
        "flag": "",
    }


def test_load_database_config_handles_escapes_and_continuations(tmp_path: Path):
    props = tmp_path / "db.properties"
    props.write_text(
        "\n".join([
            "#Written by java.util.Properties.store",
            r"db.url=jdbc\:sqlite\:test.db",
            "db.username qa_user",
            r"db.password=first\\",
            "log.dir = logs/\\",
            "    nightly",
            r"greeting=caf\u00e9\tbar",
            r"key\ with\ spaces\=and\:colon=v",
        ]),
        encoding="utf-8",
    )

    assert loadDatabaseConfig(str(props)) == {
        "db.url": "jdbc:sqlite:test.db",
        "db.username": "qa_user",
        "db.password": "first\\",
        "log.dir": "logs/nightly",
        "greeting": "caf\u00e9\tbar",
        "key with spaces=and:colon": "v",
    }


def test_load_database_config_rejects_malformed_unicode_escape(tmp_path: Path):
    props = tmp_path / "db.properties"
    props.write_text(r"db.url=\u12" + "\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        loadDatabaseConfig(str(props))


def test_load_database_config_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError):
        loadDatabaseConfig(str(tmp_path / "nope.properties"))


def test_yaml_config_nested_and_flat_keys(tmp_path: Path):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join([
            "db:",
            '  url: "sqlite:///nested.db"',
            "  username: nested_user",
            "log.level: DEBUG",
        ]),
        encoding="utf-8",
    )
    assert readConfigFile(str(cfg)) == {
        "db.url": "sqlite:///nested.db",
        "db.username": "nested_user",
        "log.level": "DEBUG",
    }


def test_yaml_config_must_be_mapping(tmp_path: Path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        readConfigFile(str(cfg))


def test_defaults_without_sources():
    loaded = loadSettings(config_path=None, cli_overrides={})
    assert loaded.sources_used == []
    assert loaded.settings.db_url is None
    assert loaded.settings.log_level == "INFO"
    assert loaded.settings.log_dir == "./logs"


def test_priority_cli_over_env_over_config(tmp_path: Path, monkeypatch):
    props = tmp_path / "db.properties"
    props.write_text(
        "\n".join([
            "db.url=sqlite:///cfg.db",
            "db.username=cfg_user",
            "db.password=cfg_pass",
            "log.dir=cfg_logs",
        ]),
        encoding="utf-8",
    )

    # ENV overrides config
    monkeypatch.setenv("FIXTUREDB_DB_URL", "sqlite:///env.db")
    monkeypatch.setenv("FIXTUREDB_DB_USERNAME", "env_user")

    # CLI overrides env
    loaded = loadSettings(
        config_path=str(props),
        cli_overrides={"db_url": "sqlite:///cli.db", "db_username": None, "db_password": None},
    )

    settings = loaded.settings
    assert settings.db_url == "sqlite:///cli.db"
    assert settings.db_username == "env_user"
    assert settings.db_password == "cfg_pass"
    assert settings.log_dir == "cfg_logs"
    assert loaded.sources_used == ["config", "env", "cli"]


def test_yaml_scalars_are_kept_as_text(tmp_path: Path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("db.url: sqlite:///x.db\ndb.password: 12345\n", encoding="utf-8")
    loaded = loadSettings(config_path=str(cfg), cli_overrides={})
    assert loaded.settings.db_password == "12345"


def test_unknown_cli_override_is_rejected():
    with pytest.raises(ConfigError):
        loadSettings(config_path=None, cli_overrides={"host": "1.2.3.4"})
