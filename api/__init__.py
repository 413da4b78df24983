"""Time Ledger HTTP API."""
