from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from fixturedb.domain.error_codes import ErrorCode
from fixturedb.errors import PreconditionError

PLACEHOLDER = "?"
ASSIGN_SEPARATOR = ", "
CONDITION_SEPARATOR = " AND "


@dataclass(frozen=True)
class Statement:
    """
    Назначение:
        SQL-текст вместе с позиционными параметрами.
    Инварианты/гарантии:
        - N-й плейсхолдер в text соответствует params[N].
        - columns[N]: колонка, к которой относится params[N].
    """

    text: str
    params: tuple[Any, ...] = ()
    columns: tuple[str, ...] = ()


def build_assign_clause(mapping: Mapping[str, Any], separator: str) -> tuple[str, list[str], list[Any]]:
    """
    Назначение:
        Строит фрагмент вида "a = ?<sep>b = ?" и параллельный список параметров
        за один проход в порядке итерации mapping.

    Выходные данные:
        (text, columns, params)
    """
    parts: list[str] = []
    columns: list[str] = []
    params: list[Any] = []
    for key, value in mapping.items():
        parts.append(f"{key} = {PLACEHOLDER}")
        columns.append(key)
        params.append(value)
    return separator.join(parts), columns, params


def build_placeholder_list(mapping: Mapping[str, Any]) -> tuple[str, str, list[str], list[Any]]:
    """
    Назначение:
        Строит список колонок и список "?" для INSERT за один проход.

    Выходные данные:
        (columns_sql, placeholders_sql, columns, params)
    """
    columns: list[str] = []
    placeholders: list[str] = []
    params: list[Any] = []
    for key, value in mapping.items():
        columns.append(key)
        placeholders.append(PLACEHOLDER)
        params.append(value)
    return ASSIGN_SEPARATOR.join(columns), ASSIGN_SEPARATOR.join(placeholders), columns, params


def build_insert(table: str, values: Mapping[str, Any]) -> Statement:
    _require_non_empty(values, "insert", table, "values")
    columns_sql, placeholders_sql, columns, params = build_placeholder_list(values)
    return Statement(
        text=f"INSERT INTO {table} ({columns_sql}) VALUES ({placeholders_sql})",
        params=tuple(params),
        columns=tuple(columns),
    )


def build_select(table: str, conditions: Mapping[str, Any] | None = None) -> Statement:
    where_sql, columns, params = _where(conditions)
    return Statement(text=f"SELECT * FROM {table}{where_sql}", params=tuple(params), columns=tuple(columns))


def build_update(table: str, values: Mapping[str, Any], conditions: Mapping[str, Any]) -> Statement:
    _require_non_empty(values, "update", table, "values")
    _require_non_empty(conditions, "update", table, "conditions")
    set_sql, set_columns, set_params = build_assign_clause(values, ASSIGN_SEPARATOR)
    where_sql, where_columns, where_params = build_assign_clause(conditions, CONDITION_SEPARATOR)
    # SET-параметры строго перед параметрами WHERE
    return Statement(
        text=f"UPDATE {table} SET {set_sql} WHERE {where_sql}",
        params=tuple(set_params + where_params),
        columns=tuple(set_columns + where_columns),
    )


def build_delete(table: str, conditions: Mapping[str, Any] | None = None) -> Statement:
    where_sql, columns, params = _where(conditions)
    return Statement(text=f"DELETE FROM {table}{where_sql}", params=tuple(params), columns=tuple(columns))


def _where(conditions: Mapping[str, Any] | None) -> tuple[str, list[str], list[Any]]:
    if not conditions:
        return "", [], []
    clause, columns, params = build_assign_clause(conditions, CONDITION_SEPARATOR)
    return f" WHERE {clause}", columns, params


def _require_non_empty(mapping: Mapping[str, Any] | None, operation: str, table: str, name: str) -> None:
    if not mapping:
        raise PreconditionError(
            f"{operation} requires a non-empty {name} mapping (table={table})",
            code=ErrorCode.EMPTY_MAPPING,
            details={"operation": operation, "table": table, "mapping": name},
        )


__all__ = [
    "Statement",
    "build_assign_clause",
    "build_placeholder_list",
    "build_insert",
    "build_select",
    "build_update",
    "build_delete",
]
