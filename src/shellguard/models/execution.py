"""Execution models — output of the gate and the process runner."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from shellguard.models.confirmation import Decision, ResolutionPath
from shellguard.models.errors import ErrorType
from shellguard.models.risk import RiskCategory

TIMEOUT_EXIT_CODE = -1


class ExecutionOutcome(str, enum.Enum):
    SUCCESS = "SUCCESS"
    GENERAL_ERROR = "GENERAL_ERROR"
    TIMEOUT = "TIMEOUT"
    REFUSED = "REFUSED"
    DRY_RUN = "DRY_RUN"


class ProcessResult(BaseModel):
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    duration_ms: float = 0.0


class ExecutionResult(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    command: str
    working_directory: str
    decision: Decision
    resolution: ResolutionPath | None = None
    category: RiskCategory
    outcome: ExecutionOutcome
    reason: str = ""
    error_type: ErrorType | None = None
    process: ProcessResult | None = None
    executed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def success(self) -> bool:
        return self.outcome in (ExecutionOutcome.SUCCESS, ExecutionOutcome.DRY_RUN)

    @property
    def output(self) -> str:
        if self.process is None:
            return self.reason
        return self.process.stdout
