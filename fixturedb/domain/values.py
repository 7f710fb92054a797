from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Union

from fixturedb.domain.error_codes import ErrorCode
from fixturedb.errors import PreconditionError

SqlValue = Union[None, bool, int, float, str, bytes, bytearray, memoryview, datetime, date]
RowMapping = Mapping[str, SqlValue]


def to_driver_value(value: Any, column: str) -> Any:
    """
    Назначение:
        Преобразует значение из замкнутого набора SqlValue в значение,
        которое DB-API драйвер привязывает без собственных адаптеров.

    Входные данные:
        value: Any
            Значение колонки.
        column: str
            Имя колонки (для текста ошибки).

    Выходные данные:
        None | int | float | str | bytes

    Алгоритм:
        - bool -> 1/0 (проверяется раньше int, т.к. bool наследует int)
        - datetime -> ISO-8601 через пробел, date -> YYYY-MM-DD
        - bytearray/memoryview -> bytes
        - остальные типы -> PreconditionError(UNSUPPORTED_VALUE)
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float, str, bytes)):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    # datetime наследует date
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    raise PreconditionError(
        f"Unsupported value type for column '{column}': {type(value).__name__}",
        code=ErrorCode.UNSUPPORTED_VALUE,
        details={"column": column, "type": type(value).__name__},
    )


def marshal_params(columns: tuple[str, ...], values: tuple[Any, ...]) -> tuple[Any, ...]:
    """
    Назначение:
        Преобразует параметры запроса позиционно, сохраняя порядок.
    """
    return tuple(to_driver_value(value, column) for column, value in zip(columns, values))
