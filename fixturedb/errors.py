from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from fixturedb.domain.error_codes import ErrorCode


@dataclass
class AppError(Exception):
    """
    Унифицированная ошибка приложения.
    """

    category: str
    code: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details or {},
        }


def _init_app_error(error: AppError, code: ErrorCode, message: str, details: Dict[str, Any] | None) -> None:
    AppError.__init__(
        error,
        category=ErrorCode.category_of(code),
        code=code.value,
        message=message,
        details=dict(details or {}),
    )


class DatabaseConnectionError(AppError):
    """
    Назначение:
        Не удалось установить соединение с БД (неверные учётные данные,
        недоступный хост, неизвестная схема URL).
    Инварианты/гарантии:
        - details["driver_message"] содержит исходное сообщение драйвера, если оно есть.
        - Повторных попыток не выполняется, решение за вызывающим.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONNECTION_FAILED,
        details: Dict[str, Any] | None = None,
    ):
        _init_app_error(self, code, message, details)


class PreconditionError(AppError):
    """
    Назначение:
        Операция вызвана в недопустимом состоянии или с недопустимыми аргументами.
        Возбуждается до построения и выполнения SQL.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.NOT_CONNECTED,
        details: Dict[str, Any] | None = None,
    ):
        _init_app_error(self, code, message, details)


class ExecutionError(AppError):
    """
    Назначение:
        Ошибка драйвера при подготовке/привязке/выполнении запроса или чтении результата.
    Инварианты/гарантии:
        - details содержит operation, table и driver_message.
    """

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        _init_app_error(self, ErrorCode.EXECUTION_FAILED, message, details)


class ConfigError(AppError):
    """
    Назначение:
        Ошибка чтения или содержимого файла конфигурации.
    """

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        _init_app_error(self, ErrorCode.CONFIG_ERROR, message, details)


__all__ = [
    "AppError",
    "ConfigError",
    "DatabaseConnectionError",
    "ExecutionError",
    "PreconditionError",
]
