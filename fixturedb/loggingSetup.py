from __future__ import annotations

import logging
from pathlib import Path

LIBRARY_LOGGER_NAME = "fixturedb"
DEFAULT_COMPONENT = "manager"

LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s msg=%(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

LOG_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class EnsureFieldsFilter(logging.Filter):
    """
    Назначение:
        Подставляет runId и component в записи, пришедшие без extra
        (например, logger.info из стороннего кода), иначе LOG_FORMAT упадёт.
    """

    def __init__(self, runId: str, defaultComponent: str = DEFAULT_COMPONENT):
        super().__init__()
        self.runId = runId
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        record.runId = getattr(record, "runId", self.runId)
        record.component = getattr(record, "component", self.defaultComponent)
        return True


def mapLogLevel(levelName: str) -> int:
    """
    Назначение:
        Уровень из настройки log.level (ERROR|WARN|INFO|DEBUG, регистр не важен).
        Неизвестное значение -> ValueError.
    """
    level = LOG_LEVELS.get((levelName or "").strip().upper())
    if level is None:
        raise ValueError(f"Unsupported log level: {levelName}")
    return level


def getLibraryLogger() -> logging.Logger:
    """
    Назначение:
        Логгер по умолчанию для использования менеджера как библиотеки (без CLI).
        Обработчики настраивает приложение.
    """
    return logging.getLogger(LIBRARY_LOGGER_NAME)


def _buildFileHandler(logFilePath: str, level: int, runId: str) -> logging.FileHandler:
    handler = logging.FileHandler(logFilePath, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    handler.addFilter(EnsureFieldsFilter(runId=runId))
    return handler


def createCommandLogger(commandName: str, logDir: str, runId: str, logLevel: str) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Логгер одного запуска CLI-команды: пишет только в <logDir>/<command>_<runId>.log.

    Поведение:
        - Имя логгера fixturedb.<command>.<runId>, propagate=False: записи
          не попадают в обработчики приложения.
        - Повторный вызов с тем же runId заменяет обработчики.

    Выходные данные:
        (logger, logFilePath)
    """
    level = mapLogLevel(logLevel)
    directory = Path(logDir)
    directory.mkdir(parents=True, exist_ok=True)
    logFilePath = str(directory / f"{commandName}_{runId}.log")

    logger = logging.getLogger(f"{LIBRARY_LOGGER_NAME}.{commandName}.{runId}")
    closeCommandLogger(logger)
    logger.propagate = False
    logger.setLevel(level)
    logger.addHandler(_buildFileHandler(logFilePath, level, runId))
    return logger, logFilePath


def closeCommandLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def logEvent(logger: logging.Logger, level: int, runId: str | None, component: str, message: str) -> None:
    """
    Назначение:
        Запись события менеджера с полями runId/component.
        Без runId (библиотечный режим) пишется "-".
    """
    logger.log(level, message, extra={"runId": runId or "-", "component": component})
