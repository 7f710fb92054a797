from __future__ import annotations

import logging

from fixturedb.common.sanitize import maskUrlCredentials, truncateText
from fixturedb.domain.error_codes import ErrorCode
from fixturedb.domain.ports.connection import ConnectFactory, DbApiConnection
from fixturedb.errors import AppError, DatabaseConnectionError, PreconditionError
from fixturedb.infra.db.drivers import resolveDriver
from fixturedb.loggingSetup import getLibraryLogger, logEvent


class ConnectionManager:
    """
    Назначение/ответственность:
        Владеет единственным соединением с БД: открывает и закрывает его.

    Входные данные:
        url, username, password: str
            Непрозрачные для ядра строки, смысл определяет драйвер.
        connectFactory: ConnectFactory | None
            Явная фабрика соединений. По умолчанию выбирается по схеме URL.
        logger: logging.Logger | None
        runId: str | None

    Инварианты/гарантии:
        - Не более одного открытого соединения на экземпляр.
        - connect() при открытом соединении сначала закрывает старое.
        - disconnect() никогда не возбуждает исключений.
        - Пароль в лог не попадает.
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
        self.url = url
        self.username = username
        self.password = password
        self.connectFactory = connectFactory
        self.logger = logger or getLibraryLogger()
        self.runId = runId
        self._conn: DbApiConnection | None = None

    @property
    def isConnected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        if self._conn is not None:
            logEvent(self.logger, logging.INFO, self.runId, "connection", "Replacing active database connection")
            self.disconnect()

        safeUrl = maskUrlCredentials(self.url)
        try:
            factory = self.connectFactory or resolveDriver(self.url)
            conn = factory(self.url, self.username, self.password)
        except AppError as exc:
            logEvent(self.logger, logging.ERROR, self.runId, "connection", f"Failed to connect to database {safeUrl}: {exc}")
            raise
        except Exception as exc:
            message = truncateText(str(exc))
            logEvent(self.logger, logging.ERROR, self.runId, "connection", f"Failed to connect to database {safeUrl}: {message}")
            raise DatabaseConnectionError(
                f"Failed to connect to database: {message}",
                code=ErrorCode.CONNECTION_FAILED,
                details={"url": safeUrl, "driver_message": message},
            ) from exc

        self._conn = conn
        logEvent(self.logger, logging.INFO, self.runId, "connection", f"Database connection established: {safeUrl}")

    def disconnect(self) -> None:
        conn = self._conn
        if conn is None:
            return
        self._conn = None
        try:
            conn.close()
        except Exception as exc:
            logEvent(
                self.logger,
                logging.WARNING,
                self.runId,
                "cleanup",
                f"{ErrorCode.CLEANUP_FAILED.value}: error closing database connection: {truncateText(str(exc))}",
            )
            return
        logEvent(self.logger, logging.INFO, self.runId, "connection", "Database connection closed")

    def requireConnection(self, operation: str = "operation") -> DbApiConnection:
        """
        Назначение:
            Возвращает активное соединение или возбуждает PreconditionError(NOT_CONNECTED).
        """
        if self._conn is None:
            logEvent(self.logger, logging.ERROR, self.runId, operation, "No active database connection")
            raise PreconditionError(
                "No active database connection",
                code=ErrorCode.NOT_CONNECTED,
                details={"operation": operation},
            )
        return self._conn
