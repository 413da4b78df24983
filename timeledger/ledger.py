"""
Ledger facade: one object wiring the services to one LedgerDB.

    ledger = Ledger.open()            # default path (TIME_LEDGER_DB)
    entry = ledger.start(task_id)
    ledger.stop()
    report = ledger.monthly_report(2024, 12)
    snapshot = ledger.export()
    ledger.import_snapshot(snapshot, merge=True)
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from timeledger.artifacts import ArtifactService
from timeledger.db import LedgerDB
from timeledger.entries import EntryTracker
from timeledger.folders import FolderService
from timeledger.models import TimeEntry, TimeEntryWithRelations, utc_now
from timeledger.reconcile import ImportResult, Reconciler
from timeledger.reports import MonthlyReport, ReportService
from timeledger.snapshot import Snapshot
from timeledger.tasks import TaskService


class Ledger:
    def __init__(self, db: LedgerDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.entries = EntryTracker(db, clock)
        self.tasks = TaskService(db, clock)
        self.folders = FolderService(db, clock)
        self.artifacts = ArtifactService(db, clock)
        self.reports = ReportService(db)
        self.reconciler = Reconciler(db, clock)

    @classmethod
    def open(cls, db_path: str | Path | None = None, clock: Callable[[], datetime] = utc_now) -> "Ledger":
        return cls(LedgerDB(db_path), clock)

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "Ledger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Core operations

    def start(self, task_id: str | None = None, memo: str | None = None) -> TimeEntry:
        return self.entries.start(task_id, memo)

    def stop(self, entry_id: str | None = None) -> TimeEntry:
        return self.entries.stop(entry_id)

    def get_running(self) -> TimeEntryWithRelations | None:
        return self.entries.get_running()

    def monthly_report(self, year: int, month: int) -> MonthlyReport:
        return self.reports.monthly_report(year, month)

    def available_months(self) -> list[tuple[int, int]]:
        return self.reports.available_months()

    def export(self) -> Snapshot:
        return self.reconciler.export()

    def import_snapshot(self, snapshot: "Snapshot | dict | str | bytes", merge: bool = False) -> ImportResult:
        return self.reconciler.import_snapshot(snapshot, merge=merge)
