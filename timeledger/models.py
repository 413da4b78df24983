"""
Ledger records and the shared validation helpers.

Records are plain dataclasses holding timezone-aware UTC datetimes and
canonical UUID strings. Conversion to and from SQLite rows lives next to
each record (``from_row`` / ``to_row``); ``to_dict`` gives the JSON shape
used by snapshots, the HTTP layer and the CLI.

Partial updates use the ``UNSET`` sentinel: a field left at ``UNSET`` was
not supplied, a field set to ``None`` clears a nullable column.
"""

import json
import logging
import re
import sqlite3
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any

from timeledger import config
from timeledger.errors import InvalidInput

logger = logging.getLogger(__name__)

# ============================================================
# Timestamps
# ============================================================

_ONE_SECOND_US = 1_000_000


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_ts(value: datetime | None) -> str | None:
    """
    Storage text for a timestamp: ``YYYY-MM-DDTHH:MM:SS.ffffffZ``.

    Fixed width, years zero-padded to four digits, so lexical order in
    SQLite equals chronological order.
    """
    if value is None:
        return None
    return to_utc(value).replace(tzinfo=None).isoformat(timespec="microseconds") + "Z"


def parse_ts(value: str | datetime | None, what: str = "timestamp") -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise InvalidInput(f"Invalid {what}: {value}") from e


def duration_between(started_at: datetime, ended_at: datetime | None) -> int | None:
    """Whole seconds from start to end, truncated toward zero. None while running."""
    if ended_at is None:
        return None
    micros = (to_utc(ended_at) - to_utc(started_at)) // timedelta(microseconds=1)
    if micros < 0:
        return -(-micros // _ONE_SECOND_US)
    return micros // _ONE_SECOND_US


# ============================================================
# Identifiers and field validation
# ============================================================

_COLOR_RE = re.compile(r"#[0-9a-fA-F]{6}")


def new_id() -> str:
    return str(uuid.uuid4())


def parse_id(value: Any, what: str = "UUID") -> str:
    """Return the canonical string form of a UUID, or raise InvalidInput."""
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidInput(f"Invalid {what}: {value}") from e


def parse_optional_id(value: Any, what: str = "UUID") -> str | None:
    if value is None:
        return None
    return parse_id(value, what)


def is_valid_color(color: str) -> bool:
    """True for ``#RRGGBB`` with six hex digits."""
    return isinstance(color, str) and _COLOR_RE.fullmatch(color) is not None


def require_color(color: str) -> str:
    if not is_valid_color(color):
        raise InvalidInput(f"Invalid color format: {color}. Expected #RRGGBB")
    return color


def require_name(name: str | None, what: str = "Name") -> str:
    if name is None or not str(name).strip():
        raise InvalidInput(f"{what} cannot be empty")
    return str(name)


class _Unset:
    """Marker for "field not supplied" in partial updates."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class _Patch:
    """Mixin for update records: collect the supplied fields."""

    def supplied(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def is_empty(self) -> bool:
        return not self.supplied()


# ============================================================
# Records
# ============================================================


@dataclass
class Task:
    id: str
    name: str
    folder_id: str | None = None
    description: str | None = None
    color: str = config.DEFAULT_TASK_COLOR
    archived: bool = False
    created_at: datetime = None
    updated_at: datetime = None

    @classmethod
    def new(
        cls,
        name: str,
        description: str | None = None,
        color: str | None = None,
        folder_id: str | None = None,
        now: datetime | None = None,
    ) -> "Task":
        now = now or utc_now()
        return cls(
            id=new_id(),
            name=name,
            folder_id=folder_id,
            description=description,
            color=color or config.DEFAULT_TASK_COLOR,
            archived=False,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Task":
        return cls(
            id=row["id"],
            name=row["name"],
            folder_id=row["folder_id"],
            description=row["description"],
            color=row["color"],
            archived=bool(row["archived"]),
            created_at=parse_ts(row["created_at"]),
            updated_at=parse_ts(row["updated_at"]),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "folder_id": self.folder_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "archived": 1 if self.archived else 0,
            "created_at": format_ts(self.created_at),
            "updated_at": format_ts(self.updated_at),
        }

    def to_dict(self) -> dict:
        d = self.to_row()
        d["archived"] = self.archived
        return d


@dataclass
class TaskUpdate(_Patch):
    name: Any = UNSET
    description: Any = UNSET
    color: Any = UNSET
    folder_id: Any = UNSET


@dataclass
class Folder:
    id: str
    name: str
    color: str = config.DEFAULT_FOLDER_COLOR
    icon: str | None = None
    sort_order: int = 0
    created_at: datetime = None
    updated_at: datetime = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Folder":
        return cls(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            icon=row["icon"],
            sort_order=int(row["sort_order"]),
            created_at=parse_ts(row["created_at"]),
            updated_at=parse_ts(row["updated_at"]),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
            "sort_order": self.sort_order,
            "created_at": format_ts(self.created_at),
            "updated_at": format_ts(self.updated_at),
        }

    to_dict = to_row


@dataclass
class FolderUpdate(_Patch):
    name: Any = UNSET
    color: Any = UNSET
    icon: Any = UNSET
    sort_order: Any = UNSET


@dataclass
class Artifact:
    id: str
    name: str
    artifact_type: str
    reference: str | None = None
    metadata: Any = None
    created_at: datetime = None

    @classmethod
    def new(
        cls,
        name: str,
        artifact_type: str,
        reference: str | None = None,
        metadata: Any = None,
        now: datetime | None = None,
    ) -> "Artifact":
        return cls(
            id=new_id(),
            name=name,
            artifact_type=artifact_type,
            reference=reference,
            metadata=metadata,
            created_at=now or utc_now(),
        )

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Artifact":
        metadata = row["metadata"]
        if metadata is not None:
            try:
                metadata = json.loads(metadata)
            except json.JSONDecodeError as e:
                logger.warning("Artifact %s has unreadable metadata: %s", row["id"], e)
                metadata = None
        return cls(
            id=row["id"],
            name=row["name"],
            artifact_type=row["artifact_type"],
            reference=row["reference"],
            metadata=metadata,
            created_at=parse_ts(row["created_at"]),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "artifact_type": self.artifact_type,
            "reference": self.reference,
            "metadata": None if self.metadata is None else json.dumps(self.metadata),
            "created_at": format_ts(self.created_at),
        }

    def to_dict(self) -> dict:
        d = self.to_row()
        d["metadata"] = self.metadata
        return d


@dataclass
class TimeEntry:
    id: str
    started_at: datetime
    task_id: str | None = None
    ended_at: datetime | None = None
    memo: str | None = None
    created_at: datetime = None
    updated_at: datetime = None

    @classmethod
    def start(cls, task_id: str | None = None, memo: str | None = None, now: datetime | None = None) -> "TimeEntry":
        now = now or utc_now()
        return cls(
            id=new_id(),
            task_id=task_id,
            started_at=now,
            ended_at=None,
            memo=memo,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_running(self) -> bool:
        return self.ended_at is None

    @property
    def duration_seconds(self) -> int | None:
        return duration_between(self.started_at, self.ended_at)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "TimeEntry":
        return cls(
            id=row["id"],
            task_id=row["task_id"],
            started_at=parse_ts(row["started_at"]),
            ended_at=parse_ts(row["ended_at"]),
            memo=row["memo"],
            created_at=parse_ts(row["created_at"]),
            updated_at=parse_ts(row["updated_at"]),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "started_at": format_ts(self.started_at),
            "ended_at": format_ts(self.ended_at),
            "memo": self.memo,
            "created_at": format_ts(self.created_at),
            "updated_at": format_ts(self.updated_at),
        }

    def to_dict(self) -> dict:
        d = self.to_row()
        d["duration_seconds"] = self.duration_seconds
        return d


@dataclass
class EntryUpdate(_Patch):
    task_id: Any = UNSET
    started_at: Any = UNSET
    ended_at: Any = UNSET
    memo: Any = UNSET


@dataclass
class TimeEntryWithRelations:
    """A time entry joined with its task and linked artifacts."""

    entry: TimeEntry
    task: Task | None = None
    artifacts: list[Artifact] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.entry.id

    @property
    def duration_seconds(self) -> int | None:
        return self.entry.duration_seconds

    def to_dict(self) -> dict:
        d = self.entry.to_dict()
        d["task"] = self.task.to_dict() if self.task else None
        d["artifacts"] = [a.to_dict() for a in self.artifacts]
        return d


@dataclass(frozen=True)
class EntryArtifact:
    entry_id: str
    artifact_id: str

    def to_dict(self) -> dict:
        return {"entry_id": self.entry_id, "artifact_id": self.artifact_id}
