from __future__ import annotations

import sqlite3
from contextlib import closing
from typing import Any

from fixturedb.domain.ports.connection import DbApiConnection, DbApiCursor
from fixturedb.domain.statements import Statement
from fixturedb.domain.values import marshal_params


class StatementEngine:
    """
    Назначение/ответственность:
        Тонкая обёртка над DB-API соединением с единым API для выполнения Statement.
    Инварианты/гарантии:
        - Курсор закрывается на любом пути выхода, включая исключения.
        - Значения параметров преобразуются до вызова драйвера.
    """

    def __init__(self, conn: DbApiConnection):
        self.conn = conn

    @property
    def driverErrors(self) -> type[BaseException]:
        # DB-API расширение: connection.Error
        return getattr(self.conn, "Error", Exception)

    def execute(self, statement: Statement) -> tuple[int, int | None]:
        """
        Назначение:
            Выполняет INSERT/UPDATE/DELETE.

        Выходные данные:
            (rowcount, lastrowid)
        """
        params = self._bind(statement)
        with closing(self.conn.cursor()) as cur:
            cur.execute(statement.text, params)
            return cur.rowcount, getattr(cur, "lastrowid", None)

    def insert(self, statement: Statement) -> int | None:
        """
        Назначение:
            Выполняет INSERT и возвращает сгенерированный ключ или None.

        Поведение:
            - В sqlite lastrowid равен last_insert_rowid() всего соединения, поэтому
              значение сравнивается с прочитанным до вставки: без изменений -> None
              (например, таблица WITHOUT ROWID).
            - Для прочих драйверов None означает, что драйвер ключ не вернул.
        """
        before = self._lastInsertRowid()
        _rowcount, lastrowid = self.execute(statement)
        if lastrowid is None or lastrowid == before:
            return None
        return int(lastrowid)

    def fetchall(self, statement: Statement) -> list[dict[str, Any]]:
        """
        Назначение:
            Выполняет SELECT и возвращает строки как словари
            "имя колонки из description -> значение" в порядке результата.
        """
        params = self._bind(statement)
        with closing(self.conn.cursor()) as cur:
            cur.execute(statement.text, params)
            return _rows_to_dicts(cur)

    def _lastInsertRowid(self) -> int | None:
        if not isinstance(self.conn, sqlite3.Connection):
            return None
        with closing(self.conn.cursor()) as cur:
            cur.execute("SELECT last_insert_rowid()")
            return cur.fetchone()[0]

    @staticmethod
    def _bind(statement: Statement) -> tuple[Any, ...]:
        return marshal_params(statement.columns, statement.params)


def _rows_to_dicts(cur: DbApiCursor) -> list[dict[str, Any]]:
    if cur.description is None:
        return []
    names = [column[0] for column in cur.description]
    result: list[dict[str, Any]] = []
    for row in cur.fetchall():
        result.append({name: row[index] for index, name in enumerate(names)})
    return result
