"""
Snapshot format: the versioned export bundle.

Shape (JSON):
    {
        "version": "1.0",
        "exported_at": "2024-12-30T10:00:00Z",
        "folders": [...],            # optional on import
        "tasks": [...],
        "artifacts": [...],
        "time_entries": [...],       # each with duration_seconds
        "entry_artifacts": [{"entry_id": ..., "artifact_id": ...}]
    }

Pydantic validates identifiers (UUID), timestamps, names and colors on the
way in, with the same rules as the task and folder services; any
validation failure is reported as InvalidInput before the store is touched.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from timeledger import config
from timeledger.errors import InvalidInput
from timeledger.models import Artifact, Folder, Task, TimeEntry, require_color, require_name, to_utc


class SnapshotModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _checked(check, *args):
    """Run a ledger validation helper inside a pydantic validator."""
    try:
        return check(*args)
    except InvalidInput as e:
        raise ValueError(str(e)) from e


class SnapshotFolder(SnapshotModel):
    id: UUID
    name: str
    color: str = config.DEFAULT_FOLDER_COLOR
    icon: str | None = None
    sort_order: int = 0
    created_at: datetime
    updated_at: datetime

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _checked(require_name, v, "Folder name")

    @field_validator("color")
    @classmethod
    def _color(cls, v: str) -> str:
        return _checked(require_color, v)

    def to_record(self) -> Folder:
        return Folder(
            id=str(self.id),
            name=self.name,
            color=self.color,
            icon=self.icon,
            sort_order=self.sort_order,
            created_at=to_utc(self.created_at),
            updated_at=to_utc(self.updated_at),
        )


class SnapshotTask(SnapshotModel):
    id: UUID
    folder_id: UUID | None = None
    name: str
    description: str | None = None
    color: str = config.DEFAULT_TASK_COLOR
    archived: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _checked(require_name, v, "Task name")

    @field_validator("color")
    @classmethod
    def _color(cls, v: str) -> str:
        return _checked(require_color, v)

    def to_record(self) -> Task:
        return Task(
            id=str(self.id),
            folder_id=str(self.folder_id) if self.folder_id else None,
            name=self.name,
            description=self.description,
            color=self.color,
            archived=self.archived,
            created_at=to_utc(self.created_at),
            updated_at=to_utc(self.updated_at),
        )


class SnapshotArtifact(SnapshotModel):
    id: UUID
    name: str
    artifact_type: str
    reference: str | None = None
    metadata: Any = None
    created_at: datetime

    def to_record(self) -> Artifact:
        return Artifact(
            id=str(self.id),
            name=self.name,
            artifact_type=self.artifact_type,
            reference=self.reference,
            metadata=self.metadata,
            created_at=to_utc(self.created_at),
        )


class SnapshotEntry(SnapshotModel):
    id: UUID
    task_id: UUID | None = None
    started_at: datetime
    ended_at: datetime | None = None
    duration_seconds: int | None = None  # informational; recomputed from the timestamps
    memo: str | None = None
    created_at: datetime
    updated_at: datetime

    def to_record(self) -> TimeEntry:
        return TimeEntry(
            id=str(self.id),
            task_id=str(self.task_id) if self.task_id else None,
            started_at=to_utc(self.started_at),
            ended_at=to_utc(self.ended_at) if self.ended_at else None,
            memo=self.memo,
            created_at=to_utc(self.created_at),
            updated_at=to_utc(self.updated_at),
        )


class SnapshotLink(SnapshotModel):
    entry_id: UUID
    artifact_id: UUID


class Snapshot(SnapshotModel):
    version: str
    exported_at: datetime
    folders: list[SnapshotFolder] = Field(default_factory=list)
    tasks: list[SnapshotTask] = Field(default_factory=list)
    artifacts: list[SnapshotArtifact] = Field(default_factory=list)
    time_entries: list[SnapshotEntry] = Field(default_factory=list)
    entry_artifacts: list[SnapshotLink] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "folders": len(self.folders),
            "tasks": len(self.tasks),
            "artifacts": len(self.artifacts),
            "time_entries": len(self.time_entries),
            "entry_artifacts": len(self.entry_artifacts),
        }

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(indent=indent)


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors()[:5]:
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    more = error.error_count() - len(parts)
    if more > 0:
        parts.append(f"... and {more} more")
    return "; ".join(parts)


def _check_unique(snapshot: Snapshot) -> None:
    for name in ("folders", "tasks", "artifacts", "time_entries"):
        seen: set[UUID] = set()
        for record in getattr(snapshot, name):
            if record.id in seen:
                raise InvalidInput(f"Duplicate id in {name}: {record.id}")
            seen.add(record.id)

    running = [e.id for e in snapshot.time_entries if e.ended_at is None]
    if len(running) > 1:
        raise InvalidInput(f"Snapshot contains {len(running)} running entries; at most one is allowed")


def parse_snapshot(data: "Snapshot | dict | str | bytes") -> Snapshot:
    """Validate a snapshot from a model, a dict or raw JSON text."""
    if isinstance(data, Snapshot):
        snapshot = data
    else:
        try:
            if isinstance(data, str | bytes):
                snapshot = Snapshot.model_validate_json(data)
            else:
                snapshot = Snapshot.model_validate(data)
        except ValidationError as e:
            raise InvalidInput(f"Malformed snapshot: {_describe(e)}") from e

    if snapshot.version not in config.SUPPORTED_EXPORT_VERSIONS:
        raise InvalidInput(
            f"Unsupported snapshot version {snapshot.version!r}; "
            f"expected one of {sorted(config.SUPPORTED_EXPORT_VERSIONS)}"
        )
    _check_unique(snapshot)
    return snapshot


def read_snapshot(path: str | Path) -> Snapshot:
    """Load and validate a snapshot JSON file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise InvalidInput(f"Snapshot file not found: {path}") from e
    try:
        json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Snapshot file is not valid JSON: {path}: {e}") from e
    return parse_snapshot(text)


def write_snapshot(snapshot: Snapshot, path: str | Path) -> Path:
    """Write a snapshot as pretty-printed JSON. Creates parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.to_json() + "\n", encoding="utf-8")
    return path
