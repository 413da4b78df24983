"""
Structured logging scoped to ledger operations.

An operation is one CLI command or one HTTP request. While it runs, every
log line carries its name (``cli.import``, ``POST /api/import``) and its
id, so the lines of one import can be pulled out of a shared log.
"""

import contextvars
import json
import logging
import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass(frozen=True)
class Operation:
    name: str
    id: str


_current: contextvars.ContextVar[Optional[Operation]] = contextvars.ContextVar("ledger_operation", default=None)


def generate_operation_id() -> str:
    return f"op-{uuid.uuid4().hex[:16]}"


def current_operation() -> Optional[Operation]:
    """The operation the calling code runs under, or None outside one."""
    return _current.get()


class OperationContext:
    """
    Scope log lines to one named operation.

    Usage:
        with OperationContext("cli.import"):
            ledger.import_snapshot(snapshot)

        with OperationContext("GET /api/export", operation_id="req-abc123"):
            ...

    Nested contexts keep the outer id, so a request that runs a
    sub-operation logs one id throughout.
    """

    def __init__(self, name: str, operation_id: Optional[str] = None):
        outer = _current.get()
        if operation_id is None:
            operation_id = outer.id if outer else generate_operation_id()
        self.operation = Operation(name=name, id=operation_id)
        self._token: Optional[contextvars.Token] = None

    @property
    def operation_id(self) -> str:
        return self.operation.id

    def __enter__(self) -> "OperationContext":
        self._token = _current.set(self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _current.reset(self._token)
            self._token = None


# LogRecord attributes that are not user-supplied "extra" fields
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.000Z",
        "level": "INFO",
        "logger": "timeledger.entries",
        "message": "Started entry ...",
        "operation": "cli.start",
        "operation_id": "op-abc123",
        ...extra fields
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        log_obj: dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        operation = current_operation()
        if operation is not None:
            log_obj["operation"] = operation.name
            log_obj["operation_id"] = operation.id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                log_obj[key] = value

        return json.dumps(log_obj, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        operation = current_operation()
        scope = f"[{operation.name} {operation.id[:12]}] " if operation else ""
        line = f"{timestamp} [{record.levelname}] {record.name}: {scope}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
) -> None:
    """
    Configure root logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format. If None, JSON when stderr is not a TTY.
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root_logger.addHandler(handler)
