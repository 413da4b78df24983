"""
Folders group tasks one level deep.

Deleting a folder never deletes its tasks: their folder_id is cleared in
the same gated operation.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from timeledger import config, store
from timeledger.db import LedgerDB
from timeledger.errors import InvalidInput, NotFound
from timeledger.models import Folder, FolderUpdate, new_id, parse_id, require_color, require_name, utc_now

logger = logging.getLogger(__name__)


class FolderService:
    def __init__(self, db: LedgerDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def list(self) -> list[Folder]:
        with self.db.transaction() as conn:
            return store.fetch_folders(conn)

    def create(self, name: str, color: str | None = None, icon: str | None = None) -> Folder:
        """New folders go to the end: sort_order = current max + 1."""
        name = require_name(name, "Folder name").strip()
        if color is not None:
            require_color(color)
        now = self.clock()

        with self.db.transaction() as conn:
            folder = Folder(
                id=new_id(),
                name=name,
                color=color or config.DEFAULT_FOLDER_COLOR,
                icon=icon,
                sort_order=store.max_folder_sort_order(conn) + 1,
                created_at=now,
                updated_at=now,
            )
            store.insert_row(conn, store.FOLDERS, folder.to_row())

        logger.info("Created folder %s (%s)", folder.id, folder.name)
        return folder

    def update(self, folder_id: str, update: FolderUpdate) -> Folder:
        fid = parse_id(folder_id)
        changes = update.supplied()
        if "name" in changes:
            changes["name"] = require_name(changes["name"], "Folder name").strip()
        if "color" in changes:
            require_color(changes["color"])
        if "sort_order" in changes:
            value = changes["sort_order"]
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidInput(f"Invalid sort order: {value}")

        with self.db.transaction() as conn:
            folder = store.fetch_folder(conn, fid)
            if folder is None:
                raise NotFound(f"Folder with id {fid} not found")
            for name, value in changes.items():
                setattr(folder, name, value)
            folder.updated_at = self.clock()
            row = folder.to_row()
            store.update_row(conn, store.FOLDERS, fid, {k: v for k, v in row.items() if k not in ("id", "created_at")})
        return folder

    def delete(self, folder_id: str) -> int:
        """Delete a folder. Returns how many tasks were moved out of it."""
        fid = parse_id(folder_id)
        with self.db.transaction() as conn:
            if not store.exists(conn, store.FOLDERS, fid):
                raise NotFound(f"Folder with id {fid} not found")
            released = store.clear_folder_on_tasks(conn, fid, self.clock())
            store.delete_row(conn, store.FOLDERS, fid)
        logger.info("Deleted folder %s (%d tasks released)", fid, released)
        return released
