"""
Centralized SQL construction with validated identifiers.

All dynamic SQL assembly lives here. Table and column names are validated
against _SAFE_IDENTIFIER_RE before interpolation. Values are always passed
as parameterized ? and never interpolated.

SQLite does not support parameterized identifiers (? works only for values),
so every f-string in this file is a validated-identifier interpolation.
"""

# ruff: noqa: S608
# All identifiers are validated via _validate() before interpolation.

from __future__ import annotations

import re

_SAFE_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate_identifier(name: str) -> str:
    """Validate that *name* is a safe SQL identifier.

    Returns the name unchanged if valid; raises ValueError otherwise.
    """
    if not _SAFE_IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


_validate = validate_identifier


# ────────────────────────────────────────────────────────────
# PRAGMA helpers
# ────────────────────────────────────────────────────────────


def pragma_table_info(table: str) -> str:
    return f"PRAGMA table_info([{_validate(table)}])"


def pragma_user_version_set(version: int) -> str:
    """PRAGMA user_version = N with int validation."""
    if not isinstance(version, int) or version < 0:
        raise ValueError(f"Invalid schema version: {version!r}")
    return f"PRAGMA user_version = {version}"


# ────────────────────────────────────────────────────────────
# DML: SELECT, INSERT, UPDATE, DELETE, COUNT
# ────────────────────────────────────────────────────────────


def select(
    table: str,
    columns: str = "*",
    where: str | None = None,
    order_by: str | None = None,
    limit: int | None = None,
) -> str:
    """Build SELECT with validated table name.

    *where* is a raw WHERE clause without the keyword and must use ``?``
    for all values. *limit* must be a non-negative int.
    """
    sql = f"SELECT {columns} FROM {_validate(table)}"
    if where:
        sql += f" WHERE {where}"
    if order_by:
        sql += f" ORDER BY {order_by}"
    if limit is not None:
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
            raise ValueError(f"Invalid limit: {limit!r}")
        sql += f" LIMIT {limit}"
    return sql


def select_count(table: str, where: str | None = None) -> str:
    """Build SELECT COUNT(*) with validated table name."""
    sql = f"SELECT COUNT(*) AS c FROM {_validate(table)}"
    if where:
        sql += f" WHERE {where}"
    return sql


def insert(table: str, columns: list[str]) -> str:
    """Build a plain INSERT. Primary-key collisions surface as IntegrityError."""
    _validate(table)
    for col in columns:
        _validate(col)
    cols = ", ".join(columns)
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"


def update(table: str, set_columns: list[str], where: str = "id = ?") -> str:
    """Build UPDATE SET with validated table+column names."""
    _validate(table)
    for col in set_columns:
        _validate(col)
    sets = ", ".join(f"{col} = ?" for col in set_columns)
    return f"UPDATE {table} SET {sets} WHERE {where}"


def delete(table: str, where: str | None = "id = ?") -> str:
    """Build DELETE with validated table name. ``where=None`` empties the table."""
    sql = f"DELETE FROM {_validate(table)}"
    if where:
        sql += f" WHERE {where}"
    return sql


# ────────────────────────────────────────────────────────────
# DDL
# ────────────────────────────────────────────────────────────


def create_table(table: str, column_defs: list[tuple[str, str]], constraints: list[str] | None = None) -> str:
    """Build CREATE TABLE IF NOT EXISTS. Column DDL comes from the schema module."""
    parts = [f"    {_validate(name)} {ddl}" for name, ddl in column_defs]
    parts.extend(f"    {c}" for c in constraints or [])
    body = ",\n".join(parts)
    return f"CREATE TABLE IF NOT EXISTS [{_validate(table)}] (\n{body}\n)"


def alter_add_column(table: str, column: str, column_type: str) -> str:
    """Build ALTER TABLE ADD COLUMN with validated identifiers."""
    _validate(table)
    _validate(column)
    return f"ALTER TABLE [{table}] ADD COLUMN [{column}] {column_type}"


def create_index(name: str, table: str, columns: str) -> str:
    """Build CREATE INDEX IF NOT EXISTS. *columns* is a comma-separated list of identifiers."""
    for col in columns.split(","):
        _validate(col.strip())
    return f"CREATE INDEX IF NOT EXISTS [{_validate(name)}] ON [{_validate(table)}]({columns})"
