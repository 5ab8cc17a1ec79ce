"""Tests for risk category helpers."""

from __future__ import annotations

import pytest

from shellguard.models.risk import CommandRiskAssessment, RiskCategory
from shellguard.policy.risk_levels import (
    BASE_SCORES,
    category_info,
    confirmation_message,
    raise_tier,
    requires_user_confirmation,
    risk_from_string,
    risk_score,
)


class TestRiskFromString:
    @pytest.mark.parametrize("name", ["SAFE", "low", " Medium ", "HIGH", "critical"])
    def test_known_names(self, name):
        assert risk_from_string(name) == RiskCategory[name.strip().upper()]

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown risk category"):
            risk_from_string("EXTREME")


class TestOrdering:
    def test_total_order(self):
        assert RiskCategory.SAFE < RiskCategory.LOW < RiskCategory.MEDIUM
        assert RiskCategory.MEDIUM < RiskCategory.HIGH < RiskCategory.CRITICAL

    def test_raise_tier(self):
        assert raise_tier(RiskCategory.SAFE) == RiskCategory.LOW
        assert raise_tier(RiskCategory.MEDIUM, 2) == RiskCategory.CRITICAL

    def test_raise_tier_caps_at_critical(self):
        assert raise_tier(RiskCategory.CRITICAL) == RiskCategory.CRITICAL
        assert raise_tier(RiskCategory.HIGH, 5) == RiskCategory.CRITICAL


class TestRiskScore:
    def test_base_only_for_single_factor(self):
        assert risk_score(RiskCategory.SAFE, 0) == 0
        assert risk_score(RiskCategory.MEDIUM, 1) == BASE_SCORES[RiskCategory.MEDIUM]

    def test_extra_factors_increase_score(self):
        assert risk_score(RiskCategory.LOW, 3) > risk_score(RiskCategory.LOW, 2)

    def test_bonus_never_reaches_next_tier(self):
        for lower, upper in zip(list(RiskCategory), list(RiskCategory)[1:]):
            assert risk_score(lower, 50) < risk_score(upper, 0)


class TestRequiresConfirmation:
    def test_default_matrix(self):
        assert requires_user_confirmation(RiskCategory.SAFE) is False
        assert requires_user_confirmation(RiskCategory.LOW) is False
        assert requires_user_confirmation(RiskCategory.MEDIUM) is True
        assert requires_user_confirmation(RiskCategory.HIGH) is True
        assert requires_user_confirmation(RiskCategory.CRITICAL) is False

    def test_flags_disable_prompts(self):
        assert requires_user_confirmation(RiskCategory.MEDIUM, confirm_risky=False) is False
        assert requires_user_confirmation(RiskCategory.HIGH, confirm_dangerous=False) is False


class TestDisplayInfo:
    def test_every_category_has_info(self):
        for category in RiskCategory:
            info = category_info(category)
            assert info.label
            assert info.color

    def test_critical_is_red(self):
        assert category_info(RiskCategory.CRITICAL).color == "red"

    def test_messages(self):
        medium = CommandRiskAssessment(category=RiskCategory.MEDIUM, risk_score=40)
        high = CommandRiskAssessment(category=RiskCategory.HIGH, risk_score=60)
        blocked = CommandRiskAssessment(
            category=RiskCategory.CRITICAL, risk_score=80, should_block=True
        )
        assert "risky command" in confirmation_message(medium, "npm i")
        assert "WARNING" in confirmation_message(high, "sudo ls")
        assert "blocked" in confirmation_message(blocked, "rm -rf /")
        assert confirmation_message(
            CommandRiskAssessment(category=RiskCategory.LOW, risk_score=20), "foo"
        ) == 'Execute command: "foo"?'
