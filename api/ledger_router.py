"""
Ledger API Router - REST endpoints over the Ledger facade.

Provides endpoints for:
- Starting/stopping/correcting time entries
- Monthly reports and available months
- Snapshot export and import (replace or merge)
- Task, folder and artifact management

Each endpoint is one ledger call, so each request is one gated operation.
Ledger errors are mapped to HTTP statuses by the handler in api.server.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel

from api.response_models import (
    DetailResponse,
    ImportResponse,
    ListResponse,
    MutationResponse,
    RunningResponse,
)
from timeledger import EntryUpdate, FolderUpdate, Ledger, TaskUpdate

logger = logging.getLogger(__name__)

ledger_router = APIRouter(tags=["Ledger"])


def get_ledger(request: Request) -> Ledger:
    return request.app.state.ledger


def _patch_fields(body: BaseModel) -> dict[str, Any]:
    """Only the fields the client actually sent; an explicit null clears."""
    return {name: getattr(body, name) for name in body.model_fields_set}


# ==== Request bodies ====


class StartRequest(BaseModel):
    task_id: str | None = None
    memo: str | None = None


class StopRequest(BaseModel):
    entry_id: str | None = None


class EntryPatch(BaseModel):
    task_id: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    memo: str | None = None


class TaskCreate(BaseModel):
    name: str
    description: str | None = None
    color: str | None = None
    folder_id: str | None = None


class TaskPatch(BaseModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None
    folder_id: str | None = None


class ArchiveRequest(BaseModel):
    archived: bool = True


class FolderCreate(BaseModel):
    name: str
    color: str | None = None
    icon: str | None = None


class FolderPatch(BaseModel):
    name: str | None = None
    color: str | None = None
    icon: str | None = None
    sort_order: int | None = None


class ArtifactCreate(BaseModel):
    name: str
    artifact_type: str
    reference: str | None = None
    metadata: Any = None
    entry_id: str | None = None


# ==== Entries ====


@ledger_router.post("/entries/start", response_model=DetailResponse)
def start_entry(body: StartRequest | None = None, ledger: Ledger = Depends(get_ledger)) -> dict:
    body = body or StartRequest()
    return ledger.start(body.task_id, body.memo).to_dict()


@ledger_router.post("/entries/stop", response_model=DetailResponse)
def stop_entry(body: StopRequest | None = None, ledger: Ledger = Depends(get_ledger)) -> dict:
    body = body or StopRequest()
    return ledger.stop(body.entry_id).to_dict()


@ledger_router.get("/entries/running", response_model=RunningResponse)
def get_running_entry(ledger: Ledger = Depends(get_ledger)) -> dict:
    running = ledger.get_running()
    return {"running": running is not None, "entry": running.to_dict() if running else None}


@ledger_router.get("/entries", response_model=ListResponse)
def list_entries(
    started_from: str | None = Query(None, alias="from", description="ISO timestamp, inclusive"),
    started_to: str | None = Query(None, alias="to", description="ISO timestamp, inclusive"),
    task_id: str | None = Query(None),
    limit: int | None = Query(None, ge=0),
    ledger: Ledger = Depends(get_ledger),
) -> dict:
    entries = ledger.entries.list_entries(started_from, started_to, task_id, limit)
    return {"items": [e.to_dict() for e in entries], "total": len(entries)}


@ledger_router.get("/entries/{entry_id}", response_model=DetailResponse)
def get_entry(entry_id: str, ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.entries.get(entry_id).to_dict()


@ledger_router.patch("/entries/{entry_id}", response_model=DetailResponse)
def update_entry(entry_id: str, body: EntryPatch, ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.entries.update(entry_id, EntryUpdate(**_patch_fields(body))).to_dict()


@ledger_router.delete("/entries/{entry_id}", response_model=MutationResponse)
def delete_entry(entry_id: str, ledger: Ledger = Depends(get_ledger)) -> dict:
    ledger.entries.delete(entry_id)
    return {"success": True, "id": entry_id}


# ==== Reports ====


@ledger_router.get("/reports/monthly/{year}/{month}", response_model=DetailResponse)
def get_monthly_report(year: int, month: int, ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.monthly_report(year, month).to_dict()


@ledger_router.get("/reports/months", response_model=ListResponse)
def get_available_months(ledger: Ledger = Depends(get_ledger)) -> dict:
    months = [{"year": y, "month": m} for y, m in ledger.available_months()]
    return {"items": months, "total": len(months)}


# ==== Export / Import ====


@ledger_router.get("/export", response_model=DetailResponse)
def export_data(ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.export().model_dump(mode="json")


@ledger_router.post("/import", response_model=ImportResponse)
def import_data(
    snapshot: dict[str, Any] = Body(..., description="Snapshot as produced by GET /export"),
    merge: bool = Query(False, description="Keep existing records and only add new ones"),
    ledger: Ledger = Depends(get_ledger),
) -> dict:
    return ledger.import_snapshot(snapshot, merge=merge).to_dict()


# ==== Tasks ====


@ledger_router.get("/tasks", response_model=ListResponse)
def list_tasks(include_archived: bool = Query(False), ledger: Ledger = Depends(get_ledger)) -> dict:
    tasks = ledger.tasks.list(include_archived=include_archived)
    return {"items": [t.to_dict() for t in tasks], "total": len(tasks)}


@ledger_router.post("/tasks", response_model=DetailResponse)
def create_task(body: TaskCreate, ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.tasks.create(body.name, body.description, body.color, body.folder_id).to_dict()


@ledger_router.patch("/tasks/{task_id}", response_model=DetailResponse)
def update_task(task_id: str, body: TaskPatch, ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.tasks.update(task_id, TaskUpdate(**_patch_fields(body))).to_dict()


@ledger_router.post("/tasks/{task_id}/archive", response_model=DetailResponse)
def archive_task(task_id: str, body: ArchiveRequest | None = None, ledger: Ledger = Depends(get_ledger)) -> dict:
    body = body or ArchiveRequest()
    return ledger.tasks.archive(task_id, body.archived).to_dict()


# ==== Folders ====


@ledger_router.get("/folders", response_model=ListResponse)
def list_folders(ledger: Ledger = Depends(get_ledger)) -> dict:
    folders = ledger.folders.list()
    return {"items": [f.to_dict() for f in folders], "total": len(folders)}


@ledger_router.post("/folders", response_model=DetailResponse)
def create_folder(body: FolderCreate, ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.folders.create(body.name, body.color, body.icon).to_dict()


@ledger_router.patch("/folders/{folder_id}", response_model=DetailResponse)
def update_folder(folder_id: str, body: FolderPatch, ledger: Ledger = Depends(get_ledger)) -> dict:
    return ledger.folders.update(folder_id, FolderUpdate(**_patch_fields(body))).to_dict()


@ledger_router.delete("/folders/{folder_id}", response_model=MutationResponse)
def delete_folder(folder_id: str, ledger: Ledger = Depends(get_ledger)) -> dict:
    released = ledger.folders.delete(folder_id)
    return {"success": True, "id": folder_id, "tasks_released": released}


# ==== Artifacts ====


@ledger_router.get("/artifacts", response_model=ListResponse)
def list_artifacts(limit: int | None = Query(None, ge=0), ledger: Ledger = Depends(get_ledger)) -> dict:
    artifacts = ledger.artifacts.list(limit=limit)
    return {"items": [a.to_dict() for a in artifacts], "total": len(artifacts)}


@ledger_router.post("/artifacts", response_model=DetailResponse)
def create_artifact(body: ArtifactCreate, ledger: Ledger = Depends(get_ledger)) -> dict:
    artifact = ledger.artifacts.create(body.name, body.artifact_type, body.reference, body.metadata, body.entry_id)
    return artifact.to_dict()


@ledger_router.delete("/artifacts/{artifact_id}", response_model=MutationResponse)
def delete_artifact(artifact_id: str, ledger: Ledger = Depends(get_ledger)) -> dict:
    ledger.artifacts.delete(artifact_id)
    return {"success": True, "id": artifact_id}


@ledger_router.put("/entries/{entry_id}/artifacts/{artifact_id}", response_model=MutationResponse)
def link_artifact(entry_id: str, artifact_id: str, ledger: Ledger = Depends(get_ledger)) -> dict:
    ledger.artifacts.link(entry_id, artifact_id)
    return {"success": True}


@ledger_router.delete("/entries/{entry_id}/artifacts/{artifact_id}", response_model=MutationResponse)
def unlink_artifact(entry_id: str, artifact_id: str, ledger: Ledger = Depends(get_ledger)) -> dict:
    ledger.artifacts.unlink(entry_id, artifact_id)
    return {"success": True}
