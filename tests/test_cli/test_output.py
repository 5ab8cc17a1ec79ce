"""Brutal tests for Rich display helpers."""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from shellguard.cli.output import (
    category_label,
    print_assessment,
    print_error,
    print_history,
    print_info,
    print_patterns,
    print_proposal,
    print_result,
    print_summary,
)
from shellguard.models.confirmation import Decision, ResolutionPath
from shellguard.models.errors import ErrorType
from shellguard.models.execution import ExecutionOutcome, ExecutionResult, ProcessResult
from shellguard.models.proposal import CommandProposal
from shellguard.models.risk import CommandContext, CommandRiskAssessment, RiskCategory
from shellguard.policy.patterns import PatternRegistry, PatternTier


def _capture(func, *args, width: int = 250, **kwargs) -> str:
    """Capture Rich output by temporarily replacing the module console."""
    import shellguard.cli.output as mod
    buf = StringIO()
    original = mod.console
    mod.console = Console(file=buf, force_terminal=False, width=width)
    try:
        func(*args, **kwargs)
    finally:
        mod.console = original
    return buf.getvalue()


def _result(**kwargs) -> ExecutionResult:
    kwargs.setdefault("outcome", ExecutionOutcome.SUCCESS)
    return ExecutionResult(
        command="ls",
        working_directory="/tmp",
        decision=Decision.ALLOW,
        resolution=ResolutionPath.AUTO_ALLOWED,
        category=RiskCategory.SAFE,
        **kwargs,
    )


class TestPrintAssessment:
    def test_displays_category_and_factors(self):
        assessment = CommandRiskAssessment(
            command="sudo apt update",
            category=RiskCategory.HIGH,
            risk_score=60,
            risk_factors=("Dangerous operation: privilege escalation",),
            context=CommandContext(
                command_type="sudo",
                potential_impact=("Could affect the system or destroy data",),
                mitigation_suggestions=("Consider a safer alternative",),
            ),
            requires_confirmation=True,
        )
        output = _capture(print_assessment, assessment)
        assert "sudo apt update" in output
        assert "HIGH" in output
        assert "60" in output
        assert "privilege escalation" in output
        assert "Consider a safer alternative" in output
        assert "required" in output

    def test_blocked_shows_error(self):
        assessment = CommandRiskAssessment(
            command="rm -rf /",
            category=RiskCategory.CRITICAL,
            risk_score=90,
            should_block=True,
            error_types=(ErrorType.PERMISSION_ERROR,),
        )
        output = _capture(print_assessment, assessment)
        assert "CRITICAL" in output
        assert "yes" in output
        assert "PERMISSION_ERROR" in output

    def test_markup_in_command_is_escaped(self):
        assessment = CommandRiskAssessment(
            command="grep '[red]x[/red]' file",
            category=RiskCategory.SAFE,
            risk_score=0,
        )
        output = _capture(print_assessment, assessment)
        assert "[red]x[/red]" in output

    def test_category_label(self):
        assessment = CommandRiskAssessment(command="x", category=RiskCategory.MEDIUM, risk_score=40)
        assert "MEDIUM" in category_label(assessment)
        assert "yellow" in category_label(assessment)


class TestPrintProposal:
    def test_displays_command_and_explanation(self):
        proposal = CommandProposal(request="r", command="ls -la", explanation="List files")
        output = _capture(print_proposal, proposal)
        assert "ls -la" in output
        assert "List files" in output

    def test_empty_command(self):
        output = _capture(print_proposal, CommandProposal(request="r", command=""))
        assert "(no command)" in output


class TestPrintResult:
    def test_success_with_output(self):
        result = _result(process=ProcessResult(exit_code=0, stdout="file.txt\n", duration_ms=3))
        output = _capture(print_result, result)
        assert "SUCCESS" in output
        assert "file.txt" in output
        assert "exit 0" in output

    def test_stderr_and_reason(self):
        result = _result(
            outcome=ExecutionOutcome.GENERAL_ERROR,
            reason="Command exited with code 2",
            process=ProcessResult(exit_code=2, stderr="no such file"),
        )
        output = _capture(print_result, result)
        assert "no such file" in output
        assert "exited with code 2" in output

    def test_refusal(self):
        result = _result(
            outcome=ExecutionOutcome.REFUSED,
            reason="Blocked: CRITICAL: Blocked pattern: delete root or home",
            error_type=ErrorType.PERMISSION_ERROR,
        )
        output = _capture(print_result, result)
        assert "REFUSED" in output
        assert "delete root or home" in output
        assert "PERMISSION_ERROR" in output

    def test_no_output(self):
        output = _capture(print_result, _result(process=ProcessResult(exit_code=0)))
        assert "(no output)" in output


class TestPrintMessages:
    def test_error(self):
        output = _capture(print_error, "Something [bad] happened")
        assert "Something [bad] happened" in output

    def test_info(self):
        assert "FYI" in _capture(print_info, "FYI")


class TestPrintHistory:
    def test_rows(self):
        rows = [
            {
                "confirmation_id": "c1",
                "command": "npm install x",
                "category": "MEDIUM",
                "decision": "allow",
                "resolution": "USER",
                "timed_out": False,
                "created_at": "2026-01-01T00:00:00+00:00",
                "outcome": "SUCCESS",
                "exit_code": 0,
            },
            {
                "confirmation_id": "c2",
                "command": "rm -rf /",
                "category": "CRITICAL",
                "decision": "deny",
                "resolution": "AUTO_BLOCKED",
                "timed_out": False,
                "created_at": "2026-01-01T00:01:00+00:00",
                "outcome": None,
                "exit_code": None,
            },
        ]
        output = _capture(print_history, rows)
        assert "npm install x" in output
        assert "AUTO_BLOCKED" in output
        assert "SUCCESS" in output

    def test_commands_stay_on_one_line_at_80_columns(self):
        rows = [
            {
                "command": "npm install lodash",
                "category": "CRITICAL",
                "decision": "deny",
                "resolution": "AUTO_BLOCKED",
                "created_at": "2026-10-18T09:30:12.123456+00:00",
                "outcome": "REFUSED",
            }
        ]
        output = _capture(print_history, rows, width=80)
        assert "npm install lodash" in output
        assert "2026-10-18" in output
        assert "T09:30:12" not in output
        assert "AUTO_BLOCKED" in output

    def test_unparseable_time_shown_as_is(self):
        rows = [{"command": "ls", "created_at": "yesterday"}]
        assert "yesterday" in _capture(print_history, rows)


class TestPrintSummary:
    def test_counts(self):
        summary = {
            "total": 3,
            "timed_out": 1,
            "by_resolution": {"USER": 2, "TIMEOUT": 1},
            "by_decision": {"allow": 2, "deny": 1},
            "by_category": {},
            "by_outcome": {"SUCCESS": 2},
        }
        output = _capture(print_summary, summary)
        assert "Confirmations" in output
        assert "TIMEOUT=1, USER=2" in output
        assert "SUCCESS=2" in output
        assert "Category" not in output


class TestPrintPatterns:
    def test_single_tier(self):
        output = _capture(print_patterns, PatternRegistry.default(), PatternTier.BLOCKED)
        assert "BLOCKED" in output
        assert "format filesystem" in output
        assert "list directory" not in output

    def test_regex_text_is_not_markup(self):
        output = _capture(print_patterns, PatternRegistry.default(), PatternTier.DANGEROUS)
        assert "[a-zA-Z]" in output

    def test_malformed_flagged(self):
        registry = PatternRegistry.default().with_operator_patterns(blocked=["rm (("])
        output = _capture(print_patterns, registry, PatternTier.BLOCKED)
        assert "malformed" in output
