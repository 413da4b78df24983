"""
Reconciliation Engine: export the ledger, import a snapshot back.

Two import modes:

- Replace (merge=False): wipe links, entries, artifacts, tasks, folders in
  that order, then insert every snapshot record.
- Merge (merge=True): records whose id already exists are skipped (the
  existing record wins, no field-level merge); only new ids are inserted
  and counted.

In both modes a link is inserted only when its entry and artifact exist
after the record import and the pair is not already present. Orphaned
links are dropped, never failing the import. A task whose folder does not
exist after import loses its folder_id, as if that folder had been deleted.

Merging the same snapshot twice imports nothing the second time.

The whole import runs in one gated transaction: on any failure the store
is rolled back to its state before the call.
"""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path

from timeledger import config, store
from timeledger.db import LedgerDB
from timeledger.errors import InvalidInput
from timeledger.models import utc_now
from timeledger.snapshot import (
    Snapshot,
    SnapshotArtifact,
    SnapshotEntry,
    SnapshotFolder,
    SnapshotLink,
    SnapshotTask,
    parse_snapshot,
    read_snapshot,
    write_snapshot,
)

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    tasks_imported: int = 0
    entries_imported: int = 0
    artifacts_imported: int = 0
    folders_imported: int = 0
    links_imported: int = 0
    links_skipped: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class Reconciler:
    """Export/import of the full ledger."""

    def __init__(self, db: LedgerDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    # ==================== Export ====================

    def export(self) -> Snapshot:
        """A point-in-time copy of the whole ledger."""
        with self.db.transaction() as conn:
            folders = store.fetch_folders(conn)
            tasks = store.fetch_tasks(conn, include_archived=True, order="ASC")
            artifacts = store.fetch_artifacts(conn, order="ASC")
            entries = store.fetch_all_entries(conn)
            links = store.fetch_links(conn)

        snapshot = Snapshot(
            version=config.EXPORT_VERSION,
            exported_at=self.clock(),
            folders=[SnapshotFolder.model_validate(f.to_dict()) for f in folders],
            tasks=[SnapshotTask.model_validate(t.to_dict()) for t in tasks],
            artifacts=[SnapshotArtifact.model_validate(a.to_dict()) for a in artifacts],
            time_entries=[SnapshotEntry.model_validate(e.to_dict()) for e in entries],
            entry_artifacts=[SnapshotLink.model_validate(link.to_dict()) for link in links],
        )
        logger.info("Exported ledger: %s", snapshot.counts())
        return snapshot

    def export_to_file(self, path: str | Path) -> Path:
        return write_snapshot(self.export(), path)

    # ==================== Import ====================

    def import_snapshot(self, data: "Snapshot | dict | str | bytes", merge: bool) -> ImportResult:
        snapshot = parse_snapshot(data)
        result = ImportResult()

        with self.db.transaction() as conn:
            if not merge:
                store.wipe(conn)
                logger.info("Replace import: ledger wiped")

            for folder in snapshot.folders:
                record = folder.to_record()
                if merge and store.exists(conn, store.FOLDERS, record.id):
                    logger.debug("Merge: folder %s exists, skipped", record.id)
                    continue
                store.insert_row(conn, store.FOLDERS, record.to_row())
                result.folders_imported += 1

            for task in snapshot.tasks:
                record = task.to_record()
                if merge and store.exists(conn, store.TASKS, record.id):
                    logger.debug("Merge: task %s exists, skipped", record.id)
                    continue
                if record.folder_id and not store.exists(conn, store.FOLDERS, record.folder_id):
                    record.folder_id = None
                store.insert_row(conn, store.TASKS, record.to_row())
                result.tasks_imported += 1

            for artifact in snapshot.artifacts:
                record = artifact.to_record()
                if merge and store.exists(conn, store.ARTIFACTS, record.id):
                    logger.debug("Merge: artifact %s exists, skipped", record.id)
                    continue
                store.insert_row(conn, store.ARTIFACTS, record.to_row())
                result.artifacts_imported += 1

            for entry in snapshot.time_entries:
                record = entry.to_record()
                if merge and store.exists(conn, store.ENTRIES, record.id):
                    logger.debug("Merge: entry %s exists, skipped", record.id)
                    continue
                if record.is_running and store.count_running(conn) > 0:
                    raise InvalidInput(
                        f"Snapshot entry {record.id} is running but the ledger already has a running entry"
                    )
                store.insert_row(conn, store.ENTRIES, record.to_row())
                result.entries_imported += 1

            for link in snapshot.entry_artifacts:
                entry_id, artifact_id = str(link.entry_id), str(link.artifact_id)
                if store.link_exists(conn, entry_id, artifact_id):
                    result.links_skipped += 1
                    continue
                if not (
                    store.exists(conn, store.ENTRIES, entry_id)
                    and store.exists(conn, store.ARTIFACTS, artifact_id)
                ):
                    logger.debug("Dropping orphaned link %s -> %s", entry_id, artifact_id)
                    result.links_skipped += 1
                    continue
                store.insert_link(conn, entry_id, artifact_id)
                result.links_imported += 1

        logger.info("Imported snapshot (%s mode): %s", "merge" if merge else "replace", result.to_dict())
        return result

    def import_from_file(self, path: str | Path, merge: bool) -> ImportResult:
        return self.import_snapshot(read_snapshot(path), merge=merge)
