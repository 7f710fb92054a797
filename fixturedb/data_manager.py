from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from fixturedb.common.sanitize import truncateText
from fixturedb.connection_manager import ConnectionManager
from fixturedb.domain.ports.connection import ConnectFactory
from fixturedb.domain.statements import Statement, build_delete, build_insert, build_select, build_update
from fixturedb.domain.values import RowMapping
from fixturedb.errors import AppError, ExecutionError
from fixturedb.infra.db.engine import StatementEngine
from fixturedb.loggingSetup import logEvent

NO_GENERATED_KEY = -1

T = TypeVar("T")

# sqlite3 и другие драйверы бросают их при привязке параметров, а не connection.Error
BINDING_ERRORS = (OverflowError, ValueError, TypeError)


class FixtureDataManager:
    """
    Назначение/ответственность:
        Вставка, чтение, обновление и удаление тестовых данных в произвольных
        таблицах по словарям "колонка -> значение".

    Взаимодействия:
        - ConnectionManager: жизненный цикл соединения.
        - domain.statements: построение SQL и позиционных параметров.
        - StatementEngine: выполнение и нормализация результата.

    Инварианты/гарантии:
        - Операция без активного соединения -> PreconditionError до построения SQL.
        - Значения передаются только через плейсхолдеры "?".
        - Ошибки драйвера и привязки параметров логируются и пробрасываются как ExecutionError.
        - Экземпляр не потокобезопасен: один менеджер на один поток.
    """

    def __init__(
        self,
        url: str,
        username: str | None = None,
        password: str | None = None,
        *,
        connectFactory: ConnectFactory | None = None,
        logger: logging.Logger | None = None,
        runId: str | None = None,
    ):
        self.connection = ConnectionManager(
            url,
            username,
            password,
            connectFactory=connectFactory,
            logger=logger,
            runId=runId,
        )
        self.logger = self.connection.logger
        self.runId = runId

    def __enter__(self) -> "FixtureDataManager":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    @property
    def isConnected(self) -> bool:
        return self.connection.isConnected

    def connect(self) -> None:
        self.connection.connect()

    def disconnect(self) -> None:
        self.connection.disconnect()

    def insert(self, table: str, values: RowMapping) -> int:
        """
        Назначение:
            INSERT INTO <table> (<columns>) VALUES (<?...>).

        Выходные данные:
            int
                Сгенерированный ключ или NO_GENERATED_KEY (-1), если вставка ключа не породила.
                Явно заданные ключи 0 и отрицательные возвращаются как есть.
        """

        def run(engine: StatementEngine, statement: Statement) -> int:
            key = engine.insert(statement)
            return NO_GENERATED_KEY if key is None else key

        key = self._run("insert", table, lambda: build_insert(table, values), run)
        logEvent(self.logger, logging.DEBUG, self.runId, "insert", f"Inserted into {table}, generated key={key}")
        return key

    def retrieve(self, table: str, conditions: RowMapping | None = None) -> list[dict[str, Any]]:
        """
        Назначение:
            SELECT * FROM <table> [WHERE c1 = ? AND ...].

        Выходные данные:
            list[dict]
                Строки в порядке результата; пустой список, если совпадений нет.
        """
        rows = self._run(
            "retrieve",
            table,
            lambda: build_select(table, conditions),
            lambda engine, statement: engine.fetchall(statement),
        )
        logEvent(self.logger, logging.DEBUG, self.runId, "retrieve", f"Retrieved {len(rows)} row(s) from {table}")
        return rows

    def update(self, table: str, values: RowMapping, conditions: RowMapping) -> int:
        """
        Назначение:
            UPDATE <table> SET a = ?, ... WHERE c = ? AND ...

        Поведение:
            - Пустые values или conditions -> PreconditionError(EMPTY_MAPPING):
              UPDATE без WHERE затронул бы все строки таблицы.
            - Параметры: сначала values, затем conditions.

        Выходные данные:
            int
                Количество изменённых строк (0 не является ошибкой).
        """
        return self._run(
            "update",
            table,
            lambda: build_update(table, values, conditions),
            lambda engine, statement: engine.execute(statement)[0],
        )

    def delete(self, table: str, conditions: RowMapping | None = None) -> int:
        """
        Назначение:
            DELETE FROM <table> [WHERE ...]. Пустые conditions удаляют все строки.
        """
        return self._run(
            "delete",
            table,
            lambda: build_delete(table, conditions),
            lambda engine, statement: engine.execute(statement)[0],
        )

    def _run(
        self,
        operation: str,
        table: str,
        build: Callable[[], Statement],
        action: Callable[[StatementEngine, Statement], T],
    ) -> T:
        conn = self.connection.requireConnection(operation)
        engine = StatementEngine(conn)

        try:
            statement = build()
            logEvent(
                self.logger,
                logging.DEBUG,
                self.runId,
                operation,
                f"SQL: {statement.text} params={len(statement.params)}",
            )
            return action(engine, statement)
        except AppError as exc:
            logEvent(self.logger, logging.ERROR, self.runId, operation, f"Error in {operation} on {table}: {exc}")
            raise
        except (engine.driverErrors, *BINDING_ERRORS) as exc:
            message = truncateText(str(exc))
            logEvent(self.logger, logging.ERROR, self.runId, operation, f"Error in {operation} on {table}: {message}")
            raise ExecutionError(
                f"{operation} on {table} failed: {message}",
                details={"operation": operation, "table": table, "driver_message": message},
            ) from exc


__all__ = ["FixtureDataManager", "NO_GENERATED_KEY"]
