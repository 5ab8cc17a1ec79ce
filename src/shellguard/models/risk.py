"""Risk models — output of the classifier."""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field

from shellguard.models.errors import ErrorType, highest_priority


class RiskCategory(int, enum.Enum):
    SAFE = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    CRITICAL = 5


class CommandContext(BaseModel):
    model_config = {"frozen": True}

    command_type: str = ""
    potential_impact: tuple[str, ...] = ()
    mitigation_suggestions: tuple[str, ...] = ()


class CommandRiskAssessment(BaseModel):
    """Immutable result of classifying one command.

    ``risk_factors`` keeps detection order. ``matched_patterns`` and
    ``error_types`` are the audit side of the same decision.
    """

    model_config = {"frozen": True}

    command: str = ""
    category: RiskCategory
    risk_score: int = Field(ge=0)
    risk_factors: tuple[str, ...] = ()
    context: CommandContext = Field(default_factory=CommandContext)
    requires_confirmation: bool = False
    should_block: bool = False
    matched_patterns: tuple[str, ...] = ()
    error_types: tuple[ErrorType, ...] = ()

    @property
    def error_type(self) -> ErrorType | None:
        return highest_priority(self.error_types)

    def describe(self) -> str:
        reason = self.risk_factors[0] if self.risk_factors else "no risk factors recorded"
        return f"{self.category.name}: {reason}"
