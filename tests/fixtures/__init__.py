"""
Test fixtures for deterministic testing.

This module provides:
- fixture_ledger: ledgers on temp SQLite files loaded with pinned seed data
- ledger_seed.json: the pinned snapshot that defines the golden expectations
"""

from .fixture_ledger import GOLDEN, create_fixture_ledger, load_seed_data

__all__ = ["GOLDEN", "create_fixture_ledger", "load_seed_data"]
