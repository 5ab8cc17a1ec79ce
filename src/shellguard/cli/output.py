"""Rich display helpers for CLI output."""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shellguard.models.execution import ExecutionOutcome, ExecutionResult
from shellguard.models.proposal import CommandProposal
from shellguard.models.risk import CommandRiskAssessment
from shellguard.policy.patterns import PatternRegistry, PatternTier
from shellguard.policy.risk_levels import category_info

console = Console()

_OUTCOME_STYLE = {
    ExecutionOutcome.SUCCESS: "green",
    ExecutionOutcome.DRY_RUN: "cyan",
    ExecutionOutcome.REFUSED: "red",
    ExecutionOutcome.TIMEOUT: "yellow",
    ExecutionOutcome.GENERAL_ERROR: "red",
}


def category_label(assessment: CommandRiskAssessment) -> str:
    info = category_info(assessment.category)
    return f"[{info.color}]{info.icon} {assessment.category.name}[/]"


def print_assessment(assessment: CommandRiskAssessment) -> None:
    table = Table(title="Risk Assessment", show_header=False, expand=True)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Command", escape(assessment.command) or "[dim](empty)[/]")
    table.add_row("Category", category_label(assessment))
    table.add_row("Score", str(assessment.risk_score))
    table.add_row("Type", escape(assessment.context.command_type) or "-")
    table.add_row("Confirmation", "required" if assessment.requires_confirmation else "not required")
    table.add_row("Blocked", "[red]yes[/]" if assessment.should_block else "no")
    if assessment.risk_factors:
        table.add_row("Factors", escape("\n".join(assessment.risk_factors)))
    if assessment.context.potential_impact:
        table.add_row("Impact", escape("\n".join(assessment.context.potential_impact)))
    if assessment.context.mitigation_suggestions:
        table.add_row("Suggestions", escape("\n".join(assessment.context.mitigation_suggestions)))
    if assessment.error_type is not None:
        table.add_row("Error", assessment.error_type.value)
    console.print(table)


def print_proposal(proposal: CommandProposal) -> None:
    body = f"[bold]{escape(proposal.command) or '(no command)'}[/]"
    if proposal.explanation:
        body += f"\n[dim]{escape(proposal.explanation)}[/]"
    console.print(Panel(body, title="Proposed Command", border_style="cyan"))


def print_result(result: ExecutionResult) -> None:
    style = _OUTCOME_STYLE.get(result.outcome, "white")
    title = f"[{style}]{result.outcome.value}[/]"
    if result.process is not None:
        process = result.process
        body = escape(process.stdout.rstrip()) or "[dim](no output)[/]"
        if process.stderr.strip():
            body += f"\n[red]{escape(process.stderr.rstrip())}[/]"
        if result.reason:
            body += f"\n[{style}]{escape(result.reason)}[/]"
        subtitle = f"exit {process.exit_code} · {process.duration_ms:.0f} ms"
    else:
        body = escape(result.reason) or "[dim](no output)[/]"
        subtitle = result.error_type.value if result.error_type else None
    console.print(Panel(body, title=title, subtitle=subtitle, border_style=style))


def print_error(message: str) -> None:
    console.print(Panel(f"[red]{escape(message)}[/]", title="Error", border_style="red"))


def print_info(message: str) -> None:
    console.print(f"[dim]{message}[/]")


def _format_time(value) -> str:
    if isinstance(value, datetime):
        return f"{value:%Y-%m-%d %H:%M}"
    try:
        return f"{datetime.fromisoformat(str(value)):%Y-%m-%d %H:%M}"
    except ValueError:
        return str(value or "")


def print_history(rows: list[dict]) -> None:
    table = Table(title="Command History", expand=True)
    table.add_column("Time")
    table.add_column("Command", no_wrap=True, min_width=20)
    table.add_column("Category")
    table.add_column("Decision")
    table.add_column("Outcome", justify="center")

    for row in rows:
        outcome = row.get("outcome") or ""
        if outcome == ExecutionOutcome.SUCCESS.value:
            outcome = f"[green]{outcome}[/]"
        elif outcome:
            outcome = f"[red]{outcome}[/]"
        table.add_row(
            _format_time(row.get("created_at")),
            escape(row.get("command", "")),
            row.get("category", ""),
            f"{row.get('decision', '')} ({row.get('resolution', '')})",
            outcome,
        )

    console.print(table)


def print_summary(summary: dict) -> None:
    table = Table(title="Security Summary", show_header=False)
    table.add_column("Metric", style="bold cyan")
    table.add_column("Value")
    table.add_row("Confirmations", str(summary.get("total", 0)))
    table.add_row("Timed out", str(summary.get("timed_out", 0)))
    for key in ("by_resolution", "by_decision", "by_category", "by_outcome"):
        counts = summary.get(key) or {}
        if counts:
            label = key.removeprefix("by_").capitalize()
            table.add_row(label, ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))
    console.print(table)


def print_patterns(registry: PatternRegistry, tier: PatternTier | None = None) -> None:
    tiers = [tier] if tier is not None else list(PatternTier)
    table = Table(title="Pattern Registry", expand=True)
    table.add_column("Tier", style="bold")
    table.add_column("Pattern")
    table.add_column("Kind")
    table.add_column("Description")
    for t in tiers:
        for pattern in registry.patterns(t):
            kind = pattern.kind.value + (" [red](malformed)[/]" if pattern.malformed else "")
            table.add_row(t.value, escape(pattern.text), kind, escape(pattern.description))
    console.print(table)
