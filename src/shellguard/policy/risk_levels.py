"""Risk category helpers — ordering, scoring and display info."""

from __future__ import annotations

from dataclasses import dataclass

from shellguard.models.risk import CommandRiskAssessment, RiskCategory

BASE_SCORES: dict[RiskCategory, int] = {
    RiskCategory.SAFE: 0,
    RiskCategory.LOW: 20,
    RiskCategory.MEDIUM: 40,
    RiskCategory.HIGH: 60,
    RiskCategory.CRITICAL: 80,
}
FACTOR_INCREMENT = 5
MAX_FACTOR_BONUS = 19


@dataclass(frozen=True)
class CategoryInfo:
    label: str
    color: str
    icon: str
    description: str


CATEGORY_INFO: dict[RiskCategory, CategoryInfo] = {
    RiskCategory.SAFE: CategoryInfo(
        "Safe", "green", "✓", "Low-risk operation that runs without confirmation"
    ),
    RiskCategory.LOW: CategoryInfo(
        "Low", "cyan", "?", "Unrecognised operation, runs without confirmation"
    ),
    RiskCategory.MEDIUM: CategoryInfo(
        "Risky", "yellow", "⚠", "Modifies the workspace and requires confirmation"
    ),
    RiskCategory.HIGH: CategoryInfo(
        "Dangerous", "dark_orange", "⚠", "High-risk operation that requires confirmation"
    ),
    RiskCategory.CRITICAL: CategoryInfo(
        "Critical", "red", "✗", "Not permitted for safety reasons"
    ),
}


def risk_from_string(value: str) -> RiskCategory:
    try:
        return RiskCategory[value.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown risk category: {value}") from None


def raise_tier(category: RiskCategory, steps: int = 1) -> RiskCategory:
    return RiskCategory(min(category.value + steps, RiskCategory.CRITICAL.value))


def risk_score(category: RiskCategory, factor_count: int) -> int:
    """Fixed base per category plus a capped bonus for each factor past the first."""
    bonus = min(max(factor_count - 1, 0) * FACTOR_INCREMENT, MAX_FACTOR_BONUS)
    return BASE_SCORES[category] + bonus


def requires_user_confirmation(
    category: RiskCategory,
    confirm_risky: bool = True,
    confirm_dangerous: bool = True,
) -> bool:
    if category == RiskCategory.MEDIUM:
        return confirm_risky
    if category == RiskCategory.HIGH:
        return confirm_dangerous
    return False


def category_info(category: RiskCategory) -> CategoryInfo:
    return CATEGORY_INFO[category]


def confirmation_message(assessment: CommandRiskAssessment, command: str) -> str:
    category = assessment.category
    if assessment.should_block:
        return (
            f'Command blocked: "{command}"\n'
            "This operation is not permitted for safety reasons."
        )
    if category == RiskCategory.MEDIUM:
        return (
            f'Execute risky command: "{command}"?\n'
            "This operation will modify your workspace."
        )
    if category >= RiskCategory.HIGH:
        return (
            f'WARNING: Execute dangerous command: "{command}"?\n'
            "This operation could have significant system impact. Proceed with caution."
        )
    return f'Execute command: "{command}"?'
