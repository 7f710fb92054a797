from __future__ import annotations

import json
import logging
import re
from typing import Callable

import typer
import yaml

from fixturedb.common.run_id import generate_run_id
from fixturedb.common.sanitize import maskSecret, maskUrlCredentials
from fixturedb.config import Settings, loadSettings
from fixturedb.data_manager import NO_GENERATED_KEY, FixtureDataManager
from fixturedb.errors import AppError, ConfigError
from fixturedb.loggingSetup import closeCommandLogger, createCommandLogger, logEvent

app = typer.Typer(no_args_is_help=True, add_completion=False)

CommandRunner = Callable[[FixtureDataManager, logging.Logger], int]

PLAIN_INT_RE = re.compile(r"[-+]?(0|[1-9][0-9]*)")
PLAIN_FLOAT_RE = re.compile(r"[-+]?([0-9]+\.[0-9]*|\.[0-9]+)")
SCALAR_WORDS = {"", "~", "null", "true", "false"}


def requireDatabase(settings: Settings) -> None:
    """
    Назначение:
        Проверяет наличие URL базы данных.

    Поведение:
        - Если URL не задан ни в CLI, ни в ENV, ни в конфиге — exit code 2.
    """
    if not settings.db_url:
        typer.echo("ERROR: missing database settings: db_url", err=True)
        raise typer.Exit(code=2)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает безопасную сводку параметров запуска (без секретов).
    """
    typer.echo(
        f"run_id={runId} command={command} "
        f"db_url={maskUrlCredentials(settings.db_url)} db_username={settings.db_username} "
        f"db_password={maskSecret(settings.db_password)} sources={sources}",
        err=True,
    )


def parseScalar(raw: str):
    """
    Назначение:
        Приводит значение из командной строки к типу как YAML-скаляр:
        "42" -> 42, "1.5" -> 1.5, "true" -> True, "null" или "" -> None, иначе строка.

    Поведение:
        - В YAML передаются только перечисленные формы; остальное (01234, 12:30,
          1_000, yes) возвращается строкой как введено.
    """
    text = raw.strip()
    if text.lower() in SCALAR_WORDS or PLAIN_INT_RE.fullmatch(text) or PLAIN_FLOAT_RE.fullmatch(text):
        return yaml.safe_load(text)
    return raw


def parseAssignments(items: list[str] | None, optionName: str) -> dict:
    """
    Назначение:
        Разбирает повторяемую опцию вида "--set col=value" в словарь с сохранением порядка.

    Поведение:
        - Элемент без '=' или с пустым именем колонки — exit code 2.
    """
    result: dict = {}
    for item in items or []:
        column, sep, raw = item.partition("=")
        column = column.strip()
        if not sep or not column:
            typer.echo(f"ERROR: {optionName} expects column=value, got: {item}", err=True)
            raise typer.Exit(code=2)
        result[column] = parseScalar(raw)
    return result


def runWithManager(ctx: typer.Context, commandName: str, runner: CommandRunner) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - проверяет настройки БД
        - открывает соединение и гарантирует его закрытие в finally
        - переводит AppError в сообщение ERROR и exit code 2
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    try:
        logger, logFilePath = createCommandLogger(
            commandName=commandName,
            logDir=settings.log_dir,
            runId=runId,
            logLevel=settings.log_level,
        )
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    exitCode = 0
    manager: FixtureDataManager | None = None
    try:
        logEvent(logger, logging.INFO, runId, "cli", "Command started")
        printRunHeader(runId, commandName, settings, sources)

        if not settings.db_url:
            logEvent(logger, logging.ERROR, runId, "config", "Missing database settings")
        requireDatabase(settings)

        manager = FixtureDataManager(
            settings.db_url,
            settings.db_username,
            settings.db_password,
            logger=logger,
            runId=runId,
        )
        manager.connect()
        exitCode = runner(manager, logger)
    except typer.Exit as exc:
        exitCode = exc.exit_code
    except AppError as exc:
        typer.echo(f"ERROR: {exc.code}: {exc.message} (see log {logFilePath})", err=True)
        exitCode = 2
    finally:
        if manager is not None:
            manager.disconnect()
        logEvent(logger, logging.INFO, runId, "cli", f"Command finished with exit code {exitCode}")
        closeCommandLogger(logger)

    if exitCode:
        raise typer.Exit(code=exitCode)


def echoJson(value) -> None:
    typer.echo(json.dumps(value, ensure_ascii=False, default=str))


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to db.properties or config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    dbUrl: str | None = typer.Option(None, "--db-url", help="Database URL, e.g. sqlite:///test.db"),
    dbUsername: str | None = typer.Option(None, "--db-username", help="Database username"),
    dbPassword: str | None = typer.Option(None, "--db-password", help="Database password (avoid; use env/file)"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "db_url": dbUrl,
        "db_username": dbUsername,
        "db_password": dbPassword,
        "log_level": logLevel,
        "log_dir": logDir,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
    except ConfigError as exc:
        typer.echo(f"ERROR: {exc.message}", err=True)
        raise typer.Exit(code=2)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("insert")
def insert(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Target table"),
    values: list[str] | None = typer.Option(None, "--set", "-s", help="Column value: col=value (repeatable)"),
):
    data = parseAssignments(values, "--set")

    def execute(manager: FixtureDataManager, logger: logging.Logger) -> int:
        key = manager.insert(table, data)
        typer.echo(str(key))
        return 0

    runWithManager(ctx, "insert", execute)


@app.command("retrieve")
def retrieve(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Source table"),
    where: list[str] | None = typer.Option(None, "--where", "-w", help="Condition: col=value (repeatable)"),
):
    conditions = parseAssignments(where, "--where")

    def execute(manager: FixtureDataManager, logger: logging.Logger) -> int:
        echoJson(manager.retrieve(table, conditions))
        return 0

    runWithManager(ctx, "retrieve", execute)


@app.command("update")
def update(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Target table"),
    values: list[str] | None = typer.Option(None, "--set", "-s", help="Column value: col=value (repeatable)"),
    where: list[str] | None = typer.Option(None, "--where", "-w", help="Condition: col=value (repeatable)"),
):
    data = parseAssignments(values, "--set")
    conditions = parseAssignments(where, "--where")

    def execute(manager: FixtureDataManager, logger: logging.Logger) -> int:
        typer.echo(str(manager.update(table, data, conditions)))
        return 0

    runWithManager(ctx, "update", execute)


@app.command("delete")
def delete(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Target table"),
    where: list[str] | None = typer.Option(None, "--where", "-w", help="Condition: col=value (repeatable)"),
):
    conditions = parseAssignments(where, "--where")

    def execute(manager: FixtureDataManager, logger: logging.Logger) -> int:
        typer.echo(str(manager.delete(table, conditions)))
        return 0

    runWithManager(ctx, "delete", execute)


@app.command("demo")
def demo(
    ctx: typer.Context,
    table: str = typer.Option("users", "--table", help="Table with username/email columns"),
    username: str = typer.Option("testuser", "--username", help="Username for the demo row"),
):
    """
    Демонстрационный сценарий: вставка, чтение, обновление и удаление одной записи.
    """

    def execute(manager: FixtureDataManager, logger: logging.Logger) -> int:
        runId = ctx.obj["runId"]
        key = manager.insert(table, {"username": username, "email": f"{username}@example.com"})
        typer.echo(f"insert: key={key if key != NO_GENERATED_KEY else 'none'}")

        rows = manager.retrieve(table, {"username": username})
        typer.echo(f"retrieve: rows={len(rows)}")

        updated = manager.update(table, {"email": "updated@example.com"}, {"username": username})
        typer.echo(f"update: rows={updated}")

        deleted = manager.delete(table, {"username": username})
        typer.echo(f"delete: rows={deleted}")
        logEvent(logger, logging.INFO, runId, "cli", "Demo scenario completed")
        return 0

    runWithManager(ctx, "demo", execute)
