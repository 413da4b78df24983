"""
Test configuration: ensures repo root is in sys.path + determinism guards.

This allows tests to import from top-level packages (timeledger, api, cli).
Enforces determinism by blocking live DB access and by giving every test a
private TIME_LEDGER_HOME.
"""

import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import timeledger.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".time_ledger" / "data" / "time_ledger.db"

_FORBIDDEN_DB_PATTERNS = [
    str(HOME_DB_ABSOLUTE),
    ".time_ledger/data/time_ledger.db",
]


def _is_forbidden_path(path_str: str) -> bool:
    """Check if a path string matches any forbidden live DB pattern."""
    if not path_str:
        return False
    return any(pattern in path_str for pattern in _FORBIDDEN_DB_PATTERNS)


_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    db_str = str(database)
    if _is_forbidden_path(db_str):
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
            "Tests must use a tmp_path ledger or tests/fixtures/fixture_ledger.py."
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def guard_live_db_access(monkeypatch, tmp_path):
    """Automatically guard all tests against live DB access."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    monkeypatch.setenv("TIME_LEDGER_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("TIME_LEDGER_DB", raising=False)


# =============================================================================
# CLOCKS AND LEDGERS
# =============================================================================


class SteppingClock:
    """
    Deterministic clock: each call returns the current time, then advances
    it by ``step``. ``advance()`` moves it without a call.
    """

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock():
    """Starts at 2024-12-15 09:00:00Z and ticks one second per call."""
    return SteppingClock(datetime(2024, 12, 15, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def ledger(tmp_path, clock):
    """Empty ledger on a temp file."""
    from timeledger import Ledger

    with Ledger.open(tmp_path / "ledger.db", clock=clock) as led:
        yield led


@pytest.fixture
def seeded_ledger(tmp_path, clock):
    """Ledger loaded with tests/fixtures/ledger_seed.json."""
    from tests.fixtures import create_fixture_ledger

    led = create_fixture_ledger(tmp_path / "seeded.db", clock=clock)
    yield led
    led.close()
