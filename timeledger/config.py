"""
Centralized configuration for Time Ledger.

Domain constants are fixed; deployment knobs are overridable via
environment variables where marked.
"""

import os

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("TIME_LEDGER_LOG_LEVEL", "INFO")
"""Root log level used by configure_logging() in the CLI and API server."""

_log_json = os.environ.get("TIME_LEDGER_LOG_JSON")
LOG_JSON: bool | None = None if _log_json is None else _log_json.strip().lower() in {"1", "true", "yes", "on"}
"""Force JSON (True) or human (False) log lines. Unset = auto-detect from the TTY."""

# ============================================================
# Ledger defaults
# ============================================================

DEFAULT_TASK_COLOR: str = "#3b82f6"
"""Color given to tasks created without one."""

DEFAULT_FOLDER_COLOR: str = "#6b7280"
"""Color given to folders created without one."""

UNCLASSIFIED_LABEL: str = "未分類"
"""Task summary label for entries without a (resolvable) task."""

UNCLASSIFIED_COLOR: str = "#6b7280"
"""Task summary color for the unclassified group."""

# ============================================================
# Export / import
# ============================================================

EXPORT_VERSION: str = "1.0"
"""The only snapshot format version this build reads and writes."""

SUPPORTED_EXPORT_VERSIONS: frozenset[str] = frozenset({EXPORT_VERSION})
