"""
Ledger database handle and the single-writer gate.

ALL store access goes through LedgerDB.transaction(). It holds one
re-entrant lock around one sqlite3 connection for the whole logical
operation, commits on success, rolls back on any failure and always
releases the lock. A start (check "anything running?" then insert) is
therefore atomic with respect to every other public operation.

Nested transaction() calls from the same thread join the outer one; only
the outermost call commits or rolls back.
"""

import logging
import sqlite3
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from timeledger import paths, schema_engine
from timeledger.errors import StorageError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class LedgerDB:
    """
    One connection, one gate. Schema is converged on open.

    Usage:
        db = LedgerDB("/tmp/ledger.db")
        with db.transaction() as conn:
            conn.execute(...)
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = str(db_path) if db_path is not None else str(paths.db_path())
        if self.db_path != MEMORY:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._gate = threading.RLock()
        self._depth = 0

        try:
            self._conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            if self.db_path != MEMORY:
                self._conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            logger.error("Could not open ledger DB %s: %s", self.db_path, e)
            raise StorageError(f"Could not open {self.db_path}: {e}") from e

        with self.transaction() as conn:
            results = schema_engine.converge(conn)

        if results["tables_created"]:
            logger.info("Tables created: %s", results["tables_created"])
        if results["columns_added"]:
            logger.info("Columns added: %s", results["columns_added"])
        logger.info(
            "Ledger DB ready at %s (user_version %s -> %s)",
            self.db_path,
            results["previous_version"],
            results["schema_version"],
        )

    @classmethod
    def in_memory(cls) -> "LedgerDB":
        return cls(MEMORY)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Acquire the gate for one logical operation."""
        with self._gate:
            if self._depth:
                self._depth += 1
                try:
                    yield self._conn
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                logger.error("Database error: %s", e)
                raise StorageError(str(e)) from e
            except BaseException:
                self._conn.rollback()
                raise
            finally:
                self._depth = 0

    def close(self) -> None:
        with self._gate:
            self._conn.close()

    def __enter__(self) -> "LedgerDB":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def integrity_check(self) -> tuple[bool, str]:
        """Run SQLite integrity check. Returns (ok, message)."""
        with self.transaction() as conn:
            result = conn.execute("PRAGMA integrity_check").fetchone()[0]
            return result == "ok", result
