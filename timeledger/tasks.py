"""Task catalogue: create, update, archive, list."""

import logging
from collections.abc import Callable
from datetime import datetime

from timeledger import store
from timeledger.db import LedgerDB
from timeledger.errors import NotFound
from timeledger.models import (
    Task,
    TaskUpdate,
    parse_id,
    parse_optional_id,
    require_color,
    require_name,
    utc_now,
)

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, db: LedgerDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def create(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
        folder_id: str | None = None,
    ) -> Task:
        """Create a task. Name must be non-blank; color defaults to blue."""
        require_name(name, "Task name")
        if color is not None:
            require_color(color)
        task = Task.new(name, description, color, parse_optional_id(folder_id, "folder UUID"), now=self.clock())

        with self.db.transaction() as conn:
            store.insert_row(conn, store.TASKS, task.to_row())

        logger.info("Created task %s (%s)", task.id, task.name)
        return task

    def get(self, task_id: str) -> Task:
        tid = parse_id(task_id)
        with self.db.transaction() as conn:
            task = store.fetch_task(conn, tid)
        if task is None:
            raise NotFound(f"Task with id {tid} not found")
        return task

    def list(self, include_archived: bool = False) -> list[Task]:
        """Tasks, newest first. Archived tasks only when asked for."""
        with self.db.transaction() as conn:
            return store.fetch_tasks(conn, include_archived=include_archived)

    def update(self, task_id: str, update: TaskUpdate) -> Task:
        tid = parse_id(task_id)
        changes = update.supplied()
        if "name" in changes:
            require_name(changes["name"], "Task name")
        if "color" in changes:
            require_color(changes["color"])
        if "folder_id" in changes:
            changes["folder_id"] = parse_optional_id(changes["folder_id"], "folder UUID")

        with self.db.transaction() as conn:
            task = store.fetch_task(conn, tid)
            if task is None:
                raise NotFound(f"Task with id {tid} not found")
            for name, value in changes.items():
                setattr(task, name, value)
            task.updated_at = self.clock()

            row = task.to_row()
            store.update_row(
                conn,
                store.TASKS,
                tid,
                {k: row[k] for k in ("name", "description", "color", "folder_id", "updated_at")},
            )
        return task

    def archive(self, task_id: str, archived: bool = True) -> Task:
        """Soft delete (or restore) a task."""
        tid = parse_id(task_id)
        with self.db.transaction() as conn:
            task = store.fetch_task(conn, tid)
            if task is None:
                raise NotFound(f"Task with id {tid} not found")
            task.archived = bool(archived)
            task.updated_at = self.clock()
            row = task.to_row()
            store.update_row(conn, store.TASKS, tid, {"archived": row["archived"], "updated_at": row["updated_at"]})
        logger.info("Task %s archived=%s", tid, task.archived)
        return task
