"""Confirmation models — session policy entries, prompts and verdicts."""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from shellguard.models.risk import CommandRiskAssessment


class Decision(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"
    TRUST = "trust"
    BLOCK = "block"

    @property
    def permits_execution(self) -> bool:
        return self in (Decision.ALLOW, Decision.TRUST)


class PolicyDecision(str, enum.Enum):
    TRUST = "trust"
    BLOCK = "block"


class PatternKind(str, enum.Enum):
    REGEX = "regex"
    SUBSTRING = "substring"


class CoordinatorState(str, enum.Enum):
    IDLE = "IDLE"
    CLASSIFYING = "CLASSIFYING"
    AUTO_ALLOWED = "AUTO_ALLOWED"
    AUTO_BLOCKED = "AUTO_BLOCKED"
    AWAITING_USER = "AWAITING_USER"
    RESOLVED = "RESOLVED"


class ResolutionPath(str, enum.Enum):
    AUTO_ALLOWED = "AUTO_ALLOWED"
    AUTO_BLOCKED = "AUTO_BLOCKED"
    USER = "USER"
    TIMEOUT = "TIMEOUT"
    TEARDOWN = "TEARDOWN"


class SessionPolicyEntry(BaseModel):
    model_config = {"frozen": True}

    pattern: str
    decision: PolicyDecision
    kind: PatternKind = PatternKind.SUBSTRING
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ConfirmationResponse(BaseModel):
    model_config = {"frozen": True}

    decision: Decision
    remember_decision: bool = False
    timed_out: bool = False

    @classmethod
    def allow(cls) -> ConfirmationResponse:
        return cls(decision=Decision.ALLOW)

    @classmethod
    def deny(cls) -> ConfirmationResponse:
        return cls(decision=Decision.DENY)

    @classmethod
    def timeout(cls) -> ConfirmationResponse:
        return cls(decision=Decision.DENY, timed_out=True)


class PendingConfirmation(BaseModel):
    command: str
    assessment: CommandRiskAssessment
    working_directory: str
    deadline: datetime
    show_details: bool = False


class Verdict(BaseModel):
    """What the coordinator hands back for one execution request."""

    command: str
    working_directory: str
    assessment: CommandRiskAssessment
    response: ConfirmationResponse
    resolution: ResolutionPath

    @property
    def decision(self) -> Decision:
        return self.response.decision

    @property
    def permits_execution(self) -> bool:
        return self.response.decision.permits_execution
