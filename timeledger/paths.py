from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "TIME_LEDGER_HOME"
APP_ENV_DB = "TIME_LEDGER_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains timeledger/, api/, cli/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for Time Ledger.
    Override with TIME_LEDGER_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".time_ledger").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical ledger DB path.

    Resolution order:
    1. TIME_LEDGER_DB env var (explicit override)
    2. ~/.time_ledger/data/time_ledger.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "time_ledger.db"


def export_dir() -> Path:
    """Output directory for snapshot exports."""
    d = app_home() / "exports"
    d.mkdir(parents=True, exist_ok=True)
    return d
