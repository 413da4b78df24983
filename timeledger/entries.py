"""
Entry State Machine: start/stop lifecycle of time entries.

States:
- Idle:    no entry has ended_at = NULL
- Running: exactly one entry has ended_at = NULL

Invariant: at most one running entry in the whole store. start() performs
the "is anything running?" check and the insert inside one held gate, so
no interleaving can produce a second running entry.

update() is a direct correction path and deliberately does NOT re-check
the invariant when ended_at is cleared.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from timeledger import store
from timeledger.db import LedgerDB
from timeledger.errors import AlreadyExists, InvalidInput, NotFound, OperationFailed
from timeledger.models import (
    UNSET,
    EntryUpdate,
    TimeEntry,
    TimeEntryWithRelations,
    parse_id,
    parse_optional_id,
    parse_ts,
    utc_now,
)

logger = logging.getLogger(__name__)


class EntryTracker:
    """
    Start, stop, query and correct time entries.

    ``clock`` returns the current aware UTC datetime; tests inject a fixed
    or stepping clock.
    """

    def __init__(self, db: LedgerDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    # ==================== Lifecycle ====================

    def start(self, task_id: str | None = None, memo: str | None = None) -> TimeEntry:
        """Idle -> Running. Fails with AlreadyExists if an entry is running."""
        task_uuid = parse_optional_id(task_id)

        with self.db.transaction() as conn:
            running = store.fetch_running_entry(conn)
            if running is not None:
                raise AlreadyExists("There is already a running entry")

            entry = TimeEntry.start(task_uuid, memo, now=self.clock())
            store.insert_row(conn, store.ENTRIES, entry.to_row())

        logger.info("Started entry %s (task=%s)", entry.id, entry.task_id)
        return entry

    def stop(self, entry_id: str | None = None) -> TimeEntry:
        """
        Running -> Idle.

        With an id, stops that entry; without, stops the running one.
        Stopping an entry that already ended raises OperationFailed and
        leaves it untouched.
        """
        target_id = parse_id(entry_id) if entry_id is not None else None

        with self.db.transaction() as conn:
            if target_id is not None:
                entry = store.fetch_entry(conn, target_id)
                if entry is None:
                    raise NotFound(f"Entry with id {target_id} not found")
            else:
                entry = store.fetch_running_entry(conn)
                if entry is None:
                    raise NotFound("No running entry found")

            if not entry.is_running:
                raise OperationFailed("Entry is not running")

            now = self.clock()
            entry.ended_at = now
            entry.updated_at = now
            row = entry.to_row()
            store.update_row(conn, store.ENTRIES, entry.id, {"ended_at": row["ended_at"], "updated_at": row["updated_at"]})

        logger.info("Stopped entry %s after %ss", entry.id, entry.duration_seconds)
        return entry

    def get_running(self) -> TimeEntryWithRelations | None:
        """The running entry with its task and artifacts, or None."""
        with self.db.transaction() as conn:
            entry = store.fetch_running_entry(conn)
            if entry is None:
                return None
            return store.with_relations(conn, entry)

    # ==================== Queries ====================

    def get(self, entry_id: str) -> TimeEntryWithRelations:
        eid = parse_id(entry_id)
        with self.db.transaction() as conn:
            entry = store.fetch_entry(conn, eid)
            if entry is None:
                raise NotFound(f"Entry with id {eid} not found")
            return store.with_relations(conn, entry)

    def list_entries(
        self,
        started_from: datetime | str | None = None,
        started_to: datetime | str | None = None,
        task_id: str | None = None,
        limit: int | None = None,
    ) -> list[TimeEntryWithRelations]:
        """Entries whose started_at is within [started_from, started_to], newest first."""
        if limit is not None and (not isinstance(limit, int) or limit < 0):
            raise InvalidInput(f"Invalid limit: {limit}")
        with self.db.transaction() as conn:
            entries = store.fetch_entries(
                conn,
                started_from=parse_ts(started_from, "from"),
                started_to=parse_ts(started_to, "to"),
                task_id=parse_optional_id(task_id),
                limit=limit,
            )
            return [store.with_relations(conn, e) for e in entries]

    # ==================== Corrections ====================

    def update(self, entry_id: str, update: EntryUpdate) -> TimeEntry:
        """
        Apply a partial correction. Fields left UNSET are kept; ``None``
        clears task_id, ended_at or memo. started_at cannot be cleared.
        """
        eid = parse_id(entry_id)
        changes = update.supplied()

        if "task_id" in changes:
            changes["task_id"] = parse_optional_id(changes["task_id"], "task UUID")
        if "started_at" in changes:
            if changes["started_at"] is None:
                raise InvalidInput("started_at cannot be empty")
            changes["started_at"] = parse_ts(changes["started_at"], "started_at")
        if "ended_at" in changes:
            changes["ended_at"] = parse_ts(changes["ended_at"], "ended_at")

        with self.db.transaction() as conn:
            entry = store.fetch_entry(conn, eid)
            if entry is None:
                raise NotFound(f"Entry with id {eid} not found")

            for name, value in changes.items():
                setattr(entry, name, value)
            entry.updated_at = self.clock()

            row = entry.to_row()
            store.update_row(
                conn,
                store.ENTRIES,
                entry.id,
                {k: row[k] for k in ("task_id", "started_at", "ended_at", "memo", "updated_at")},
            )

        if update.ended_at is not UNSET and entry.ended_at is None:
            logger.warning("Entry %s reopened via direct update", entry.id)
        return entry

    def delete(self, entry_id: str) -> None:
        """Delete an entry and its artifact links."""
        eid = parse_id(entry_id)
        with self.db.transaction() as conn:
            if not store.exists(conn, store.ENTRIES, eid):
                raise NotFound(f"Entry with id {eid} not found")
            store.delete_links_for_entry(conn, eid)
            store.delete_row(conn, store.ENTRIES, eid)
        logger.info("Deleted entry %s", eid)
