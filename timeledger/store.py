"""
Record-level access to the ledger tables.

Every function takes an open connection obtained from
LedgerDB.transaction(); none of them acquire the gate themselves, so a
service can compose several of them into one atomic operation.
"""

import sqlite3
from datetime import datetime

from timeledger import safe_sql
from timeledger.models import (
    Artifact,
    EntryArtifact,
    Folder,
    Task,
    TimeEntry,
    TimeEntryWithRelations,
    format_ts,
    parse_ts,
)

TASKS = "tasks"
FOLDERS = "folders"
ARTIFACTS = "artifacts"
ENTRIES = "time_entries"
LINKS = "entry_artifacts"

# Dependency order for wiping the ledger: links first, folders last.
WIPE_ORDER = (LINKS, ENTRIES, ARTIFACTS, TASKS, FOLDERS)


# ==================== Generic ====================


def insert_row(conn: sqlite3.Connection, table: str, row: dict) -> None:
    conn.execute(safe_sql.insert(table, list(row.keys())), list(row.values()))


def update_row(conn: sqlite3.Connection, table: str, id: str, values: dict) -> bool:
    if not values:
        return False
    cursor = conn.execute(safe_sql.update(table, list(values.keys())), [*values.values(), id])
    return cursor.rowcount > 0


def delete_row(conn: sqlite3.Connection, table: str, id: str) -> bool:
    cursor = conn.execute(safe_sql.delete(table), [id])
    return cursor.rowcount > 0


def exists(conn: sqlite3.Connection, table: str, id: str) -> bool:
    row = conn.execute(safe_sql.select_count(table, where="id = ?"), [id]).fetchone()
    return row["c"] > 0


def wipe(conn: sqlite3.Connection) -> None:
    """Delete every ledger record, in dependency order."""
    for table in WIPE_ORDER:
        conn.execute(safe_sql.delete(table, where=None))


def _fetch_one(conn, table: str, id: str):
    return conn.execute(safe_sql.select(table, where="id = ?"), [id]).fetchone()


# ==================== Tasks ====================


def fetch_task(conn: sqlite3.Connection, id: str) -> Task | None:
    row = _fetch_one(conn, TASKS, id)
    return Task.from_row(row) if row else None


def fetch_tasks(conn: sqlite3.Connection, include_archived: bool = False, order: str = "DESC") -> list[Task]:
    where = None if include_archived else "archived = 0"
    direction = "ASC" if order == "ASC" else "DESC"
    rows = conn.execute(safe_sql.select(TASKS, where=where, order_by=f"created_at {direction}")).fetchall()
    return [Task.from_row(r) for r in rows]


def fetch_tasks_by_ids(conn: sqlite3.Connection, ids: set[str]) -> dict[str, Task]:
    if not ids:
        return {}
    placeholders = ", ".join("?" for _ in ids)
    rows = conn.execute(safe_sql.select(TASKS, where=f"id IN ({placeholders})"), list(ids)).fetchall()
    return {r["id"]: Task.from_row(r) for r in rows}


def clear_folder_on_tasks(conn: sqlite3.Connection, folder_id: str, now: datetime) -> int:
    cursor = conn.execute(
        safe_sql.update(TASKS, ["folder_id", "updated_at"], where="folder_id = ?"),
        [None, format_ts(now), folder_id],
    )
    return cursor.rowcount


# ==================== Folders ====================


def fetch_folder(conn: sqlite3.Connection, id: str) -> Folder | None:
    row = _fetch_one(conn, FOLDERS, id)
    return Folder.from_row(row) if row else None


def fetch_folders(conn: sqlite3.Connection) -> list[Folder]:
    rows = conn.execute(safe_sql.select(FOLDERS, order_by="sort_order ASC, created_at ASC")).fetchall()
    return [Folder.from_row(r) for r in rows]


def max_folder_sort_order(conn: sqlite3.Connection) -> int:
    row = conn.execute(safe_sql.select(FOLDERS, columns="COALESCE(MAX(sort_order), 0) AS m")).fetchone()
    return int(row["m"])


# ==================== Artifacts ====================


def fetch_artifact(conn: sqlite3.Connection, id: str) -> Artifact | None:
    row = _fetch_one(conn, ARTIFACTS, id)
    return Artifact.from_row(row) if row else None


def fetch_artifacts(conn: sqlite3.Connection, limit: int | None = None, order: str = "DESC") -> list[Artifact]:
    direction = "ASC" if order == "ASC" else "DESC"
    sql = safe_sql.select(ARTIFACTS, order_by=f"created_at {direction}", limit=limit)
    return [Artifact.from_row(r) for r in conn.execute(sql).fetchall()]


def fetch_artifacts_for_entry(conn: sqlite3.Connection, entry_id: str) -> list[Artifact]:
    rows = conn.execute(
        """SELECT a.* FROM artifacts a
           JOIN entry_artifacts ea ON ea.artifact_id = a.id
           WHERE ea.entry_id = ?
           ORDER BY a.created_at""",
        [entry_id],
    ).fetchall()
    return [Artifact.from_row(r) for r in rows]


# ==================== Links ====================


def link_exists(conn: sqlite3.Connection, entry_id: str, artifact_id: str) -> bool:
    row = conn.execute(
        safe_sql.select_count(LINKS, where="entry_id = ? AND artifact_id = ?"),
        [entry_id, artifact_id],
    ).fetchone()
    return row["c"] > 0


def insert_link(conn: sqlite3.Connection, entry_id: str, artifact_id: str) -> None:
    insert_row(conn, LINKS, {"entry_id": entry_id, "artifact_id": artifact_id})


def delete_link(conn: sqlite3.Connection, entry_id: str, artifact_id: str) -> bool:
    cursor = conn.execute(safe_sql.delete(LINKS, where="entry_id = ? AND artifact_id = ?"), [entry_id, artifact_id])
    return cursor.rowcount > 0


def delete_links_for_entry(conn: sqlite3.Connection, entry_id: str) -> int:
    return conn.execute(safe_sql.delete(LINKS, where="entry_id = ?"), [entry_id]).rowcount


def delete_links_for_artifact(conn: sqlite3.Connection, artifact_id: str) -> int:
    return conn.execute(safe_sql.delete(LINKS, where="artifact_id = ?"), [artifact_id]).rowcount


def fetch_links(conn: sqlite3.Connection) -> list[EntryArtifact]:
    rows = conn.execute(safe_sql.select(LINKS, order_by="entry_id, artifact_id")).fetchall()
    return [EntryArtifact(entry_id=r["entry_id"], artifact_id=r["artifact_id"]) for r in rows]


# ==================== Time entries ====================


def fetch_entry(conn: sqlite3.Connection, id: str) -> TimeEntry | None:
    row = _fetch_one(conn, ENTRIES, id)
    return TimeEntry.from_row(row) if row else None


def fetch_running_entry(conn: sqlite3.Connection) -> TimeEntry | None:
    row = conn.execute(
        safe_sql.select(ENTRIES, where="ended_at IS NULL", order_by="started_at DESC", limit=1)
    ).fetchone()
    return TimeEntry.from_row(row) if row else None


def count_running(conn: sqlite3.Connection) -> int:
    return conn.execute(safe_sql.select_count(ENTRIES, where="ended_at IS NULL")).fetchone()["c"]


def fetch_entries(
    conn: sqlite3.Connection,
    started_from: datetime | None = None,
    started_to: datetime | None = None,
    task_id: str | None = None,
    limit: int | None = None,
) -> list[TimeEntry]:
    """Entries with ``started_from <= started_at <= started_to``, newest first."""
    clauses = []
    params = []
    if started_from is not None:
        clauses.append("started_at >= ?")
        params.append(format_ts(started_from))
    if started_to is not None:
        clauses.append("started_at <= ?")
        params.append(format_ts(started_to))
    if task_id is not None:
        clauses.append("task_id = ?")
        params.append(task_id)
    sql = safe_sql.select(
        ENTRIES,
        where=" AND ".join(clauses) or None,
        order_by="started_at DESC",
        limit=limit,
    )
    return [TimeEntry.from_row(r) for r in conn.execute(sql, params).fetchall()]


def fetch_completed_entries_between(conn: sqlite3.Connection, start: datetime, end: datetime) -> list[TimeEntry]:
    """Completed entries with ``start <= started_at < end``, oldest first."""
    rows = conn.execute(
        safe_sql.select(
            ENTRIES,
            where="started_at >= ? AND started_at < ? AND ended_at IS NOT NULL",
            order_by="started_at ASC",
        ),
        [format_ts(start), format_ts(end)],
    ).fetchall()
    return [TimeEntry.from_row(r) for r in rows]


def fetch_completed_start_times(conn: sqlite3.Connection) -> list[datetime]:
    rows = conn.execute(
        safe_sql.select(ENTRIES, columns="started_at", where="ended_at IS NOT NULL")
    ).fetchall()
    return [parse_ts(r["started_at"]) for r in rows]


def fetch_all_entries(conn: sqlite3.Connection) -> list[TimeEntry]:
    rows = conn.execute(safe_sql.select(ENTRIES, order_by="started_at ASC")).fetchall()
    return [TimeEntry.from_row(r) for r in rows]


def with_relations(conn: sqlite3.Connection, entry: TimeEntry) -> TimeEntryWithRelations:
    task = fetch_task(conn, entry.task_id) if entry.task_id else None
    return TimeEntryWithRelations(
        entry=entry,
        task=task,
        artifacts=fetch_artifacts_for_entry(conn, entry.id),
    )
