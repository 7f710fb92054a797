from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок доступа к тестовым данным.
    """

    CONNECTION_FAILED = "CONNECTION_FAILED"
    UNSUPPORTED_URL = "UNSUPPORTED_URL"
    NOT_CONNECTED = "NOT_CONNECTED"
    EMPTY_MAPPING = "EMPTY_MAPPING"
    UNSUPPORTED_VALUE = "UNSUPPORTED_VALUE"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    CLEANUP_FAILED = "CLEANUP_FAILED"
    CONFIG_ERROR = "CONFIG_ERROR"

    @classmethod
    def category_of(cls, code: "ErrorCode") -> str:
        """
        Назначение:
            Подбор категории ошибки по коду (используется в AppError.category).
        """
        if code in (cls.CONNECTION_FAILED, cls.UNSUPPORTED_URL, cls.CLEANUP_FAILED):
            return "connection"
        if code in (cls.NOT_CONNECTED, cls.EMPTY_MAPPING, cls.UNSUPPORTED_VALUE):
            return "precondition"
        if code == cls.CONFIG_ERROR:
            return "config"
        return "execution"
