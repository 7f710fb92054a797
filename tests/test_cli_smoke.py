from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fixturedb.main import app, parseScalar

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("FIXTUREDB_DB_URL", "FIXTUREDB_DB_USERNAME", "FIXTUREDB_DB_PASSWORD", "FIXTUREDB_LOG_LEVEL", "FIXTUREDB_LOG_DIR"):
        monkeypatch.delenv(name, raising=False)


def _make_db(tmp_path: Path) -> Path:
    db_path = tmp_path / "cli.sqlite3"
    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, username TEXT, email TEXT, age INTEGER)")
        conn.commit()
    finally:
        conn.close()
    return db_path


def _base_args(tmp_path: Path, db_path: Path) -> list[str]:
    return ["--db-url", f"sqlite:///{db_path}", "--log-dir", str(tmp_path / "logs")]


def _last_line(output: str) -> str:
    return [line for line in output.splitlines() if line.strip()][-1]


def test_help_shows_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("insert", "retrieve", "update", "delete", "demo"):
        assert command in result.stdout


def test_insert_retrieve_update_delete(tmp_path: Path):
    db_path = _make_db(tmp_path)
    base = _base_args(tmp_path, db_path)

    result = runner.invoke(app, base + ["insert", "users", "--set", "username=alice", "--set", "email=a@x.com", "--set", "age=30"])
    assert result.exit_code == 0, result.output
    assert _last_line(result.output) == "1"

    result = runner.invoke(app, base + ["retrieve", "users", "--where", "username=alice"])
    assert result.exit_code == 0, result.output
    rows = json.loads(_last_line(result.output))
    assert rows == [{"id": 1, "username": "alice", "email": "a@x.com", "age": 30}]

    result = runner.invoke(app, base + ["update", "users", "--set", "email=b@x.com", "--where", "username=alice"])
    assert result.exit_code == 0, result.output
    assert _last_line(result.output) == "1"

    result = runner.invoke(app, base + ["delete", "users", "--where", "username=alice"])
    assert result.exit_code == 0, result.output
    assert _last_line(result.output) == "1"

    result = runner.invoke(app, base + ["retrieve", "users"])
    assert json.loads(_last_line(result.output)) == []

    log_files = list((tmp_path / "logs").glob("insert_*.log"))
    assert len(log_files) == 1
    assert "Database connection established" in log_files[0].read_text(encoding="utf-8")


def test_leading_zero_and_clock_values_stay_text(tmp_path: Path):
    db_path = _make_db(tmp_path)
    base = _base_args(tmp_path, db_path)

    result = runner.invoke(app, base + ["insert", "users", "--set", "username=12:30", "--set", "email=01234"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, base + ["retrieve", "users", "--where", "username=12:30"])
    assert result.exit_code == 0, result.output
    rows = json.loads(_last_line(result.output))
    assert rows == [{"id": 1, "username": "12:30", "email": "01234", "age": None}]


def test_demo_runs_full_scenario(tmp_path: Path):
    db_path = _make_db(tmp_path)
    result = runner.invoke(app, _base_args(tmp_path, db_path) + ["demo"])
    assert result.exit_code == 0, result.output
    assert "insert: key=1" in result.output
    assert "retrieve: rows=1" in result.output
    assert "update: rows=1" in result.output
    assert "delete: rows=1" in result.output


def test_config_file_supplies_credentials(tmp_path: Path):
    db_path = _make_db(tmp_path)
    props = tmp_path / "db.properties"
    props.write_text(f"db.url=jdbc:sqlite:{db_path}\ndb.username=qa\ndb.password=secret\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", str(props), "--log-dir", str(tmp_path / "logs"), "retrieve", "users"])
    assert result.exit_code == 0, result.output
    assert "db_password=***" in result.output
    assert "secret" not in result.output
    assert "sources=['config', 'cli']" in result.output


def test_config_file_with_escaped_jdbc_url(tmp_path: Path):
    db_path = _make_db(tmp_path)
    props = tmp_path / "db.properties"
    props.write_text("db.url=jdbc\\:sqlite\\:" + str(db_path) + "\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", str(props), "--log-dir", str(tmp_path / "logs"), "insert", "users", "--set", "username=esc"])
    assert result.exit_code == 0, result.output
    assert _last_line(result.output) == "1"
    check = sqlite3.connect(str(db_path))
    try:
        assert check.execute("SELECT username FROM users").fetchall() == [("esc",)]
    finally:
        check.close()


def test_missing_database_url_exits_with_code_2(tmp_path: Path):
    result = runner.invoke(app, ["--log-dir", str(tmp_path / "logs"), "retrieve", "users"])
    assert result.exit_code == 2
    assert "missing database settings" in result.output


def test_missing_config_file_exits_with_code_2(tmp_path: Path):
    result = runner.invoke(app, ["--config", str(tmp_path / "absent.properties"), "retrieve", "users"])
    assert result.exit_code == 2
    assert "Config file not found" in result.output


def test_execution_error_exits_with_code_2(tmp_path: Path):
    db_path = _make_db(tmp_path)
    result = runner.invoke(app, _base_args(tmp_path, db_path) + ["retrieve", "no_such_table"])
    assert result.exit_code == 2
    assert "EXECUTION_FAILED" in result.output


def test_update_without_where_is_rejected(tmp_path: Path):
    db_path = _make_db(tmp_path)
    result = runner.invoke(app, _base_args(tmp_path, db_path) + ["update", "users", "--set", "email=x"])
    assert result.exit_code == 2
    assert "EMPTY_MAPPING" in result.output


def test_bad_assignment_syntax(tmp_path: Path):
    db_path = _make_db(tmp_path)
    result = runner.invoke(app, _base_args(tmp_path, db_path) + ["insert", "users", "--set", "username"])
    assert result.exit_code == 2
    assert "expects column=value" in result.output


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("42", 42),
        ("1.5", 1.5),
        ("true", True),
        ("null", None),
        ("", None),
        ("a@x.com", "a@x.com"),
        ("[1, 2]", "[1, 2]"),
        ("01234", "01234"),
        ("12:30", "12:30"),
        ("1_000", "1_000"),
        ("yes", "yes"),
        ("0", 0),
        ("-7", -7),
        (".5", 0.5),
        ("FALSE", False),
        ("{a: 1}", "{a: 1}"),
    ],
)
def test_parse_scalar(raw, expected):
    assert parseScalar(raw) == expected
