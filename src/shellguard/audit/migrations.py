"""SQLite CREATE TABLE statements."""

from __future__ import annotations

TABLES: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS confirmations (
        id TEXT PRIMARY KEY,
        command TEXT NOT NULL,
        working_directory TEXT DEFAULT '',
        category TEXT NOT NULL,
        risk_score INTEGER NOT NULL,
        risk_factors TEXT DEFAULT '[]',
        decision TEXT NOT NULL,
        resolution TEXT NOT NULL,
        remembered INTEGER DEFAULT 0,
        timed_out INTEGER DEFAULT 0,
        error_type TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS executions (
        id TEXT PRIMARY KEY,
        confirmation_id TEXT NOT NULL,
        outcome TEXT NOT NULL,
        exit_code INTEGER,
        stdout TEXT DEFAULT '',
        stderr TEXT DEFAULT '',
        reason TEXT DEFAULT '',
        error_type TEXT,
        duration_ms REAL DEFAULT 0,
        executed_at TEXT NOT NULL,
        FOREIGN KEY (confirmation_id) REFERENCES confirmations(id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_confirmations_created ON confirmations (created_at)",
]
