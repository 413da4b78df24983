"""
Shared Pydantic response models for API endpoints.

These give FastAPI the type information it needs for accurate OpenAPI
schemas.
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== List Envelope ====
# Shape: {items, total}


class ListResponse(BaseModel):
    """Standard list endpoint response."""

    items: list[Any] = Field(default_factory=list, description="Result items")
    total: int = Field(description="Total count")


# ==== Mutation Result ====


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = {"extra": "allow"}


# ==== Entity Detail ====


class DetailResponse(BaseModel):
    """Single entity detail: shape varies per entity type."""

    model_config = {"extra": "allow"}


# ==== Running entry ====


class RunningResponse(BaseModel):
    """The running entry with relations, or null when idle."""

    running: bool
    entry: dict[str, Any] | None = None


# ==== Import ====


class ImportResponse(BaseModel):
    tasks_imported: int
    entries_imported: int
    artifacts_imported: int
    folders_imported: int = 0
    links_imported: int = 0
    links_skipped: int = 0


# ==== Error Envelope ====


class ErrorResponse(BaseModel):
    status: str = Field(default="error")
    error: str = Field(description="Human-readable message")
    error_code: str = Field(description="Stable error code")
