"""Time Ledger command-line tools."""
