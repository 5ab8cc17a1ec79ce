"""Pydantic models for audit records."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from shellguard.models.confirmation import Verdict
from shellguard.models.execution import ExecutionResult


class ConfirmationRecord(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    command: str
    working_directory: str = ""
    category: str
    risk_score: int = 0
    risk_factors: list[str] = Field(default_factory=list)
    decision: str
    resolution: str
    remembered: bool = False
    timed_out: bool = False
    error_type: str | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @classmethod
    def from_verdict(cls, verdict: Verdict) -> ConfirmationRecord:
        assessment = verdict.assessment
        return cls(
            command=verdict.command,
            working_directory=verdict.working_directory,
            category=assessment.category.name,
            risk_score=assessment.risk_score,
            risk_factors=list(assessment.risk_factors),
            decision=verdict.decision.value,
            resolution=verdict.resolution.value,
            remembered=verdict.response.remember_decision,
            timed_out=verdict.response.timed_out,
            error_type=assessment.error_type.value if assessment.error_type else None,
        )

    def factors_json(self) -> str:
        return json.dumps(self.risk_factors)


class ExecutionRecord(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    confirmation_id: str
    outcome: str
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    reason: str = ""
    error_type: str | None = None
    duration_ms: float = 0.0
    executed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @classmethod
    def from_result(cls, result: ExecutionResult, confirmation_id: str) -> ExecutionRecord:
        process = result.process
        return cls(
            id=result.id,
            confirmation_id=confirmation_id,
            outcome=result.outcome.value,
            exit_code=process.exit_code if process else None,
            stdout=process.stdout if process else "",
            stderr=process.stderr if process else "",
            reason=result.reason,
            error_type=result.error_type.value if result.error_type else None,
            duration_ms=process.duration_ms if process else 0.0,
            executed_at=result.executed_at,
        )
