from __future__ import annotations

import re
import sqlite3
from pathlib import Path

from fixturedb.domain.error_codes import ErrorCode
from fixturedb.domain.ports.connection import ConnectFactory
from fixturedb.errors import DatabaseConnectionError

MEMORY_DB = ":memory:"
DEFAULT_TIMEOUT_SECONDS = 5.0

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]+):")


def getUrlScheme(url: str) -> str:
    """
    Назначение:
        Определяет схему URL подключения.

    Входные данные:
        url: str
            URL в одном из видов: sqlite:///db.sqlite3, jdbc:sqlite:db.sqlite3,
            file:db.sqlite3?mode=ro, просто путь к файлу.

    Выходные данные:
        str
            Схема в нижнем регистре. Для пути без схемы: "sqlite".

    Алгоритм:
        - Префикс "jdbc:" отбрасывается.
        - Однобуквенная "схема" трактуется как буква диска Windows.
    """
    value = url.strip()
    if value.lower().startswith("jdbc:"):
        value = value[len("jdbc:"):]
    match = _SCHEME_RE.match(value)
    if not match:
        return "sqlite"
    return match.group(1).lower()


def parseSqliteUrl(url: str) -> tuple[str, bool]:
    """
    Назначение:
        Превращает URL SQLite в аргумент sqlite3.connect.

    Выходные данные:
        (database, isUri)

    Примеры:
        sqlite:///rel.db        -> ("rel.db", False)
        sqlite:////abs/x.db     -> ("/abs/x.db", False)
        sqlite://:memory:       -> (":memory:", False)
        jdbc:sqlite:test.db     -> ("test.db", False)
        jdbc:sqlite:file:x.db?mode=ro -> ("file:x.db?mode=ro", True)
        file:test.db?mode=ro    -> ("file:test.db?mode=ro", True)
    """
    value = url.strip()
    if value.lower().startswith("jdbc:"):
        value = value[len("jdbc:"):]
    if value.lower().startswith("file:"):
        return value, True
    if not value.lower().startswith("sqlite:"):
        return value or MEMORY_DB, False

    rest = value[len("sqlite:"):]
    if rest.startswith("///"):
        rest = rest[3:]
    elif rest.startswith("//"):
        rest = rest[2:]
    if rest.lower().startswith("file:"):
        return rest, True
    return rest or MEMORY_DB, False


def openSqliteConnection(
    url: str,
    username: str | None = None,
    password: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> sqlite3.Connection:
    """
    Назначение:
        Открывает/создаёт SQLite БД с нужными PRAGMA/timeout.

    Поведение:
        - username/password SQLite не использует, аргументы принимаются
          ради единой сигнатуры ConnectFactory.
        - isolation_level=None: каждый оператор фиксируется сразу (autocommit).
    """
    database, isUri = parseSqliteUrl(url)
    if not isUri and database != MEMORY_DB:
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(database, timeout=timeout, uri=isUri, isolation_level=None)
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute(f"PRAGMA busy_timeout = {int(timeout * 1000)}")
    return conn


_DRIVERS: dict[str, ConnectFactory] = {
    "sqlite": openSqliteConnection,
    "sqlite3": openSqliteConnection,
    "file": openSqliteConnection,
}


def registerDriver(scheme: str, factory: ConnectFactory) -> None:
    """
    Назначение:
        Регистрирует фабрику соединений для схемы URL
        (например, обёртку над psycopg.connect для "postgresql").
    """
    _DRIVERS[scheme.lower()] = factory


def listDriverSchemes() -> list[str]:
    return sorted(_DRIVERS.keys())


def resolveDriver(url: str) -> ConnectFactory:
    """
    Назначение:
        Находит фабрику соединений по схеме URL.

    Поведение:
        - Неизвестная схема -> DatabaseConnectionError(UNSUPPORTED_URL).
    """
    scheme = getUrlScheme(url)
    factory = _DRIVERS.get(scheme)
    if factory is None:
        raise DatabaseConnectionError(
            f"No database driver registered for URL scheme '{scheme}'",
            code=ErrorCode.UNSUPPORTED_URL,
            details={"scheme": scheme, "known_schemes": listDriverSchemes()},
        )
    return factory
