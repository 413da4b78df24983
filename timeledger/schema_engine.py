"""
Schema Convergence Engine: introspect, diff, apply.

Reads the declarative schema from timeledger.schema and converges any
SQLite database to match:

  1. Creates missing tables
  2. Adds missing columns to existing tables (older ledgers gain
     tasks.folder_id and folders.icon this way)
  3. Creates missing indexes
  4. Sets PRAGMA user_version

The engine never drops tables or columns. Running it twice is a no-op.
"""

import logging
import re
import sqlite3

from timeledger import safe_sql, schema

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────
# SQLite ALTER TABLE column-safety
# ────────────────────────────────────────────────────────────

# Clauses that are valid in CREATE TABLE but not in ALTER TABLE ADD COLUMN
_STRIP_PATTERNS = [
    re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE),
    re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE),
    re.compile(r"\bUNIQUE\b", re.IGNORECASE),
    re.compile(r"\bREFERENCES\s+\w+\s*\([^)]*\)", re.IGNORECASE),
    re.compile(r"\bCHECK\s*\([^)]*\)", re.IGNORECASE),
]


def make_alter_safe(col_def: str) -> str:
    """
    Transform a CREATE TABLE column definition into one safe for
    ALTER TABLE ADD COLUMN.

    SQLite cannot add a PRIMARY KEY, UNIQUE, REFERENCES or CHECK column,
    and NOT NULL requires a DEFAULT.
    """
    safe = col_def
    for pattern in _STRIP_PATTERNS:
        safe = pattern.sub("", safe)

    safe = re.sub(r"\s{2,}", " ", safe).strip()

    has_not_null = re.search(r"\bNOT\s+NULL\b", safe, re.IGNORECASE)
    has_default = re.search(r"\bDEFAULT\b", safe, re.IGNORECASE)
    if has_not_null and not has_default:
        safe = safe + " DEFAULT ''"

    return safe


# ────────────────────────────────────────────────────────────
# Introspection helpers
# ────────────────────────────────────────────────────────────


def get_existing_tables(conn: sqlite3.Connection) -> set[str]:
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row[0] for row in cursor.fetchall()}


def get_existing_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    try:
        cursor = conn.execute(safe_sql.pragma_table_info(table))
        return {row[1] for row in cursor.fetchall()}
    except sqlite3.OperationalError:
        return set()


def get_existing_indexes(conn: sqlite3.Connection) -> set[str]:
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'index' AND name NOT LIKE 'sqlite_%'"
    )
    return {row[0] for row in cursor.fetchall()}


def get_schema_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version").fetchone()[0]


# ────────────────────────────────────────────────────────────
# converge: the main entry point
# ────────────────────────────────────────────────────────────


def converge(conn: sqlite3.Connection) -> dict:
    """
    Converge a database to match schema.TABLES / schema.INDEXES.

    Errors are not collected: a failing DDL statement propagates so the
    caller never runs against a half-built ledger.

    Returns a results dict for logging.
    """
    results = {
        "previous_version": get_schema_version(conn),
        "tables_created": [],
        "columns_added": [],
        "indexes_created": [],
    }

    existing_tables = get_existing_tables(conn)

    for table_name, table_def in schema.TABLES.items():
        if table_name not in existing_tables:
            conn.execute(
                safe_sql.create_table(table_name, table_def["columns"], table_def.get("constraints"))
            )
            results["tables_created"].append(table_name)
            logger.info("schema_engine: created table %s", table_name)
            continue

        existing_cols = get_existing_columns(conn, table_name)
        for col_name, col_ddl in table_def["columns"]:
            if col_name in existing_cols:
                continue
            conn.execute(safe_sql.alter_add_column(table_name, col_name, make_alter_safe(col_ddl)))
            col_ref = f"{table_name}.{col_name}"
            results["columns_added"].append(col_ref)
            logger.info("schema_engine: added column %s", col_ref)

    existing_indexes = get_existing_indexes(conn)
    for idx_name, idx_table, idx_cols in schema.INDEXES:
        if idx_name in existing_indexes:
            continue
        conn.execute(safe_sql.create_index(idx_name, idx_table, idx_cols))
        results["indexes_created"].append(idx_name)

    conn.execute(safe_sql.pragma_user_version_set(schema.SCHEMA_VERSION))

    results["schema_version"] = schema.SCHEMA_VERSION
    return results
