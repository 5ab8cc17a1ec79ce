"""SQLite-backed audit trail of confirmations and executions."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import aiosqlite

from shellguard.audit.migrations import TABLES
from shellguard.audit.models import ConfirmationRecord, ExecutionRecord

logger = logging.getLogger(__name__)

_CONFIRMATION_COLUMNS = (
    "id, command, working_directory, category, risk_score, risk_factors, "
    "decision, resolution, remembered, timed_out, error_type, created_at"
)
_EXECUTION_COLUMNS = (
    "id, confirmation_id, outcome, exit_code, stdout, stderr, reason, "
    "error_type, duration_ms, executed_at"
)


def _confirmation_from_row(row: Any) -> ConfirmationRecord:
    return ConfirmationRecord(
        id=row[0],
        command=row[1],
        working_directory=row[2],
        category=row[3],
        risk_score=row[4],
        risk_factors=json.loads(row[5] or "[]"),
        decision=row[6],
        resolution=row[7],
        remembered=bool(row[8]),
        timed_out=bool(row[9]),
        error_type=row[10],
        created_at=row[11],
    )


def _execution_from_row(row: Any) -> ExecutionRecord:
    return ExecutionRecord(
        id=row[0],
        confirmation_id=row[1],
        outcome=row[2],
        exit_code=row[3],
        stdout=row[4],
        stderr=row[5],
        reason=row[6],
        error_type=row[7],
        duration_ms=row[8],
        executed_at=row[9],
    )


class AuditStore:
    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self.db_path = str(db_path)
        self._db: aiosqlite.Connection | None = None

    @property
    def initialized(self) -> bool:
        return self._db is not None

    async def initialize(self) -> None:
        if self._db is not None:
            return
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        for table_sql in TABLES:
            await self._db.execute(table_sql)
        await self._db.commit()
        logger.debug("Audit store ready at %s", self.db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    def _get_db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("AuditStore not initialized — call initialize() first")
        return self._db

    async def log_confirmation(self, record: ConfirmationRecord) -> str:
        db = self._get_db()
        await db.execute(
            f"INSERT INTO confirmations ({_CONFIRMATION_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.command,
                record.working_directory,
                record.category,
                record.risk_score,
                record.factors_json(),
                record.decision,
                record.resolution,
                int(record.remembered),
                int(record.timed_out),
                record.error_type,
                record.created_at.isoformat(),
            ),
        )
        await db.commit()
        return record.id

    async def log_execution(self, record: ExecutionRecord) -> None:
        db = self._get_db()
        await db.execute(
            f"INSERT INTO executions ({_EXECUTION_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.confirmation_id,
                record.outcome,
                record.exit_code,
                record.stdout,
                record.stderr,
                record.reason,
                record.error_type,
                record.duration_ms,
                record.executed_at.isoformat(),
            ),
        )
        await db.commit()

    async def get_confirmation(self, confirmation_id: str) -> ConfirmationRecord | None:
        db = self._get_db()
        cursor = await db.execute(
            f"SELECT {_CONFIRMATION_COLUMNS} FROM confirmations WHERE id = ?",
            (confirmation_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _confirmation_from_row(row)

    async def get_executions_for(self, confirmation_id: str) -> list[ExecutionRecord]:
        db = self._get_db()
        cursor = await db.execute(
            f"SELECT {_EXECUTION_COLUMNS} FROM executions WHERE confirmation_id = ? "
            "ORDER BY executed_at",
            (confirmation_id,),
        )
        rows = await cursor.fetchall()
        return [_execution_from_row(r) for r in rows]

    async def get_history(self, limit: int = 20) -> list[dict]:
        db = self._get_db()
        cursor = await db.execute(
            "SELECT c.id, c.command, c.category, c.decision, c.resolution, c.timed_out, "
            "       c.created_at, e.outcome, e.exit_code "
            "FROM confirmations c LEFT JOIN executions e ON e.confirmation_id = c.id "
            "ORDER BY c.created_at DESC LIMIT ?",
            (limit,),
        )
        rows = await cursor.fetchall()
        results: list[dict] = []
        for r in rows:
            results.append(
                {
                    "confirmation_id": r[0],
                    "command": r[1],
                    "category": r[2],
                    "decision": r[3],
                    "resolution": r[4],
                    "timed_out": bool(r[5]),
                    "created_at": r[6],
                    "outcome": r[7],
                    "exit_code": r[8],
                }
            )
        return results

    async def get_security_summary(self) -> dict[str, Any]:
        db = self._get_db()
        summary: dict[str, Any] = {}
        cursor = await db.execute("SELECT COUNT(*), COALESCE(SUM(timed_out), 0) FROM confirmations")
        total, timeouts = await cursor.fetchone()
        summary["total"] = total
        summary["timed_out"] = timeouts
        for column in ("resolution", "decision", "category"):
            cursor = await db.execute(
                f"SELECT {column}, COUNT(*) FROM confirmations GROUP BY {column}"
            )
            summary[f"by_{column}"] = {key: count for key, count in await cursor.fetchall()}
        cursor = await db.execute("SELECT outcome, COUNT(*) FROM executions GROUP BY outcome")
        summary["by_outcome"] = {key: count for key, count in await cursor.fetchall()}
        return summary
