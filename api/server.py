"""
Time Ledger API Server - REST API over one Ledger instance.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.ledger_router import ledger_router
from timeledger import Ledger, config
from timeledger.errors import (
    AlreadyExists,
    InvalidInput,
    LedgerError,
    NotFound,
    OperationFailed,
    StorageError,
)
from timeledger.observability import OperationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

# Ledger error -> HTTP status
STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    InvalidInput: 400,
    NotFound: 404,
    AlreadyExists: 409,
    OperationFailed: 422,
    StorageError: 500,
}


def status_for(error: LedgerError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"status": "error", "error": str(exc), "error_code": exc.code},
    )


def create_app(ledger: Ledger | None = None) -> FastAPI:
    """
    Build the API app around ``ledger`` (default: Ledger.open() on the
    configured database path). The app closes a ledger it opened itself
    on shutdown.
    """
    owns_ledger = ledger is None
    if ledger is None:
        ledger = Ledger.open()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_ledger:
            ledger.close()

    app = FastAPI(
        title="Time Ledger API",
        description="Time tracking ledger: entries, monthly reports, export/import",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.ledger = ledger

    # CORS middleware - configurable via CORS_ORIGINS env var
    cors_origins_env = os.getenv("CORS_ORIGINS", "*")
    cors_origins = ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(OperationIdMiddleware)
    app.add_exception_handler(LedgerError, ledger_error_handler)

    app.include_router(ledger_router, prefix="/api")

    @app.get("/api/health")
    def health() -> dict:
        ok, message = ledger.db.integrity_check()
        return {"status": "healthy" if ok else "degraded", "database": message}

    return app


# ==== Main ====


def main():
    """Run the server."""
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)
    port = int(os.environ.get("PORT", 8420))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
