from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence


class DbApiCursor(Protocol):
    """
    Назначение/ответственность:
        Минимальная часть DB-API 2.0 курсора, которую использует исполнитель.
    """

    description: Sequence[Sequence[Any]] | None
    rowcount: int
    lastrowid: int | None

    def execute(self, sql: str, params: Sequence[Any] = ...) -> Any: ...
    def fetchall(self) -> list[Sequence[Any]]: ...
    def close(self) -> None: ...


class DbApiConnection(Protocol):
    """
    Назначение/ответственность:
        Порт соединения с БД (DB-API 2.0).
    Взаимодействия:
        Создаётся драйвером, принадлежит ConnectionManager.
    """

    def cursor(self) -> DbApiCursor: ...
    def close(self) -> None: ...


# (url, username, password) -> соединение
ConnectFactory = Callable[[str, str | None, str | None], DbApiConnection]
