"""
Tests for schema convergence and the LedgerDB gate.
"""

import sqlite3

import pytest

from timeledger import schema, schema_engine
from timeledger.db import LedgerDB
from timeledger.errors import StorageError


def _columns(conn, table):
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}


class TestMakeAlterSafe:
    def test_strips_primary_key(self):
        assert schema_engine.make_alter_safe("TEXT PRIMARY KEY") == "TEXT"

    def test_not_null_gets_default(self):
        assert schema_engine.make_alter_safe("TEXT NOT NULL") == "TEXT NOT NULL DEFAULT ''"

    def test_keeps_existing_default(self):
        assert schema_engine.make_alter_safe("INTEGER NOT NULL DEFAULT 0") == "INTEGER NOT NULL DEFAULT 0"


class TestConverge:
    def test_fresh_database(self):
        conn = sqlite3.connect(":memory:")
        results = schema_engine.converge(conn)

        assert set(results["tables_created"]) == set(schema.TABLES)
        assert results["previous_version"] == 0
        assert schema_engine.get_schema_version(conn) == schema.SCHEMA_VERSION
        conn.close()

    def test_idempotent(self):
        conn = sqlite3.connect(":memory:")
        schema_engine.converge(conn)
        again = schema_engine.converge(conn)

        assert again["tables_created"] == []
        assert again["columns_added"] == []
        assert again["indexes_created"] == []
        conn.close()

    def test_upgrade_adds_folder_columns(self, tmp_path):
        path = tmp_path / "old.db"
        conn = sqlite3.connect(path)
        conn.execute(
            "CREATE TABLE tasks (id TEXT PRIMARY KEY, name TEXT NOT NULL, description TEXT, "
            "color TEXT NOT NULL DEFAULT '#3b82f6', archived INTEGER NOT NULL DEFAULT 0, "
            "created_at TEXT NOT NULL, updated_at TEXT NOT NULL)"
        )
        conn.execute(
            "CREATE TABLE folders (id TEXT PRIMARY KEY, name TEXT NOT NULL, "
            "color TEXT NOT NULL DEFAULT '#6b7280', sort_order INTEGER NOT NULL DEFAULT 0, "
            "created_at TEXT NOT NULL, updated_at TEXT NOT NULL)"
        )
        conn.execute(
            "INSERT INTO tasks (id, name, created_at, updated_at) VALUES "
            "('a0000000-0000-4000-8000-00000000000a', 'Old task', "
            "'2024-01-01T00:00:00.000000Z', '2024-01-01T00:00:00.000000Z')"
        )
        conn.commit()
        conn.close()

        with LedgerDB(path) as db, db.transaction() as conn:
            assert "folder_id" in _columns(conn, "tasks")
            assert "icon" in _columns(conn, "folders")
            row = conn.execute("SELECT name, folder_id FROM tasks").fetchone()
            assert row["name"] == "Old task"
            assert row["folder_id"] is None


class TestGate:
    def test_rollback_on_error(self):
        db = LedgerDB.in_memory()
        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                conn.execute(
                    "INSERT INTO artifacts (id, name, artifact_type, created_at) VALUES ('x', 'n', 't', 'now')"
                )
                raise RuntimeError("boom")

        with db.transaction() as conn:
            assert conn.execute("SELECT COUNT(*) FROM artifacts").fetchone()[0] == 0
        db.close()

    def test_sqlite_errors_become_storage_errors(self):
        db = LedgerDB.in_memory()
        with pytest.raises(StorageError):
            with db.transaction() as conn:
                conn.execute("SELECT * FROM no_such_table")
        db.close()

    def test_nested_transaction_joins_outer(self):
        db = LedgerDB.in_memory()
        with pytest.raises(RuntimeError):
            with db.transaction() as outer:
                with db.transaction() as inner:
                    assert inner is outer
                    inner.execute(
                        "INSERT INTO artifacts (id, name, artifact_type, created_at) VALUES ('x', 'n', 't', 'now')"
                    )
                raise RuntimeError("outer fails after inner finished")

        with db.transaction() as conn:
            assert conn.execute("SELECT COUNT(*) FROM artifacts").fetchone()[0] == 0
        db.close()

    def test_integrity_check(self, ledger):
        assert ledger.db.integrity_check() == (True, "ok")
