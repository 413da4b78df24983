"""
Declarative Schema Definition: the single source of truth for the ledger DB.

Every table, column and index lives here. The schema_engine reads this and
converges any database to match: adding a column = add one line here.

Column definitions use CREATE TABLE syntax. The schema_engine derives
ALTER TABLE ADD COLUMN DDL for databases created by older versions.

Timestamps are stored as fixed-width ISO-8601 UTC text (see models.format_ts).
No foreign keys are declared: referential actions (cascade-null on folder
delete, link removal on entry/artifact delete) are sequenced by the
application inside the single-writer gate.
"""

from collections import OrderedDict

# =============================================================================
# Schema version: bump when you change this file
# =============================================================================
SCHEMA_VERSION = 3

# =============================================================================
# Table Definitions
#
# Format: TABLES[name] = {"columns": [(col_name, col_ddl), ...],
#                         "constraints": [table-level constraint, ...]}
# =============================================================================

TABLES: dict[str, dict] = OrderedDict()

TABLES["tasks"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("description", "TEXT"),
        ("color", "TEXT NOT NULL DEFAULT '#3b82f6'"),
        ("archived", "INTEGER NOT NULL DEFAULT 0"),
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
        # v2: folders
        ("folder_id", "TEXT"),
    ],
}

TABLES["artifacts"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("artifact_type", "TEXT NOT NULL"),
        ("reference", "TEXT"),
        ("metadata", "TEXT"),  # JSON document
        ("created_at", "TEXT NOT NULL"),
    ],
}

TABLES["time_entries"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("task_id", "TEXT"),
        ("started_at", "TEXT NOT NULL"),
        ("ended_at", "TEXT"),  # NULL while running
        ("memo", "TEXT"),
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ],
}

TABLES["entry_artifacts"] = {
    "columns": [
        ("entry_id", "TEXT NOT NULL"),
        ("artifact_id", "TEXT NOT NULL"),
    ],
    "constraints": ["PRIMARY KEY (entry_id, artifact_id)"],
}

TABLES["folders"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("color", "TEXT NOT NULL DEFAULT '#6b7280'"),
        ("sort_order", "INTEGER NOT NULL DEFAULT 0"),
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
        # v3: folder icons
        ("icon", "TEXT"),
    ],
}

# =============================================================================
# Indexes: (name, table, columns)
# =============================================================================

INDEXES: list[tuple[str, str, str]] = [
    ("idx_time_entries_task_id", "time_entries", "task_id"),
    ("idx_time_entries_started_at", "time_entries", "started_at"),
    ("idx_time_entries_ended_at", "time_entries", "ended_at"),
    ("idx_tasks_archived", "tasks", "archived"),
    ("idx_tasks_folder_id", "tasks", "folder_id"),
    ("idx_folders_sort_order", "folders", "sort_order"),
    ("idx_entry_artifacts_artifact", "entry_artifacts", "artifact_id"),
]
