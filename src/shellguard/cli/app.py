"""Typer CLI commands."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from shellguard.audit.store import AuditStore
from shellguard.cli.output import (
    print_assessment,
    print_error,
    print_history,
    print_info,
    print_patterns,
    print_proposal,
    print_result,
    print_summary,
)
from shellguard.cli.prompts import RichPromptRenderer
from shellguard.config.settings import Settings
from shellguard.confirmation.renderer import PromptRenderer, StaticRenderer
from shellguard.exceptions import ShellGuardError
from shellguard.logging_config import configure_logging
from shellguard.models.execution import ExecutionOutcome, ExecutionResult
from shellguard.policy.classifier import RiskClassifier
from shellguard.policy.patterns import PatternRegistry, PatternTier

console = Console()
app = typer.Typer(name="shellguard", help="Risk-checked shell command execution.")

EXIT_CODES = {
    ExecutionOutcome.SUCCESS: 0,
    ExecutionOutcome.DRY_RUN: 0,
    ExecutionOutcome.GENERAL_ERROR: 1,
    ExecutionOutcome.REFUSED: 2,
    ExecutionOutcome.TIMEOUT: 124,
}


def _load_settings() -> Settings:
    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        print_error(f"Failed to load settings: {exc}")
        raise typer.Exit(1)
    configure_logging(settings.log_level)
    return settings


def _get_renderer(non_interactive: bool) -> PromptRenderer:
    if non_interactive:
        return StaticRenderer()
    return RichPromptRenderer()


def _get_session(renderer: PromptRenderer, settings: Settings, dry_run: bool = False):
    from shellguard.main import build_session
    return build_session(renderer, settings=settings, dry_run=dry_run)


def _get_proposer(settings: Settings):
    from shellguard.parser.command_proposer import CommandProposer
    return CommandProposer(settings)


def _finish(result: ExecutionResult) -> None:
    print_result(result)
    code = EXIT_CODES.get(result.outcome, 1)
    if code:
        raise typer.Exit(code)


@app.command()
def classify(
    command: str = typer.Argument(..., help="Shell command to classify"),
    cwd: str = typer.Option("", "--cwd", help="Working directory the command would run in"),
) -> None:
    """Classify a command without running it."""
    settings = _load_settings()
    cwd = cwd or os.getcwd()
    try:
        classifier = RiskClassifier(PatternRegistry.from_settings(settings), settings)
    except ShellGuardError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    print_assessment(classifier.classify(command, cwd))


@app.command()
def run(
    command: str = typer.Argument(..., help="Shell command to run"),
    cwd: str = typer.Option("", "--cwd", help="Working directory"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Decide but do not execute"),
    non_interactive: bool = typer.Option(
        False, "--non-interactive", help="Deny anything that needs confirmation"
    ),
) -> None:
    """Run a command through the confirmation gate."""
    settings = _load_settings()
    cwd = cwd or os.getcwd()

    async def _run() -> ExecutionResult:
        session = _get_session(_get_renderer(non_interactive), settings, dry_run=dry_run)
        await session.open()
        try:
            return await session.request_execution(command, cwd)
        finally:
            await session.close()

    try:
        result = asyncio.run(_run())
    except ShellGuardError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    _finish(result)


@app.command()
def ask(
    request: str = typer.Argument(..., help="Natural language request"),
    cwd: str = typer.Option("", "--cwd", help="Working directory"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Decide but do not execute"),
    non_interactive: bool = typer.Option(
        False, "--non-interactive", help="Deny anything that needs confirmation"
    ),
) -> None:
    """Ask the model for a command, then run it through the confirmation gate."""
    settings = _load_settings()
    cwd = cwd or os.getcwd()

    async def _run() -> ExecutionResult | None:
        proposal = await _get_proposer(settings).propose(request, cwd)
        print_proposal(proposal)
        if proposal.is_empty:
            return None
        session = _get_session(_get_renderer(non_interactive), settings, dry_run=dry_run)
        await session.open()
        try:
            return await session.request_execution(proposal.command, cwd)
        finally:
            await session.close()

    try:
        result = asyncio.run(_run())
    except ShellGuardError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    if result is None:
        print_info("The model did not propose a command.")
        raise typer.Exit(1)
    _finish(result)


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of records"),
    summary: bool = typer.Option(False, "--summary", help="Show counts instead of records"),
) -> None:
    """Show recent confirmations and executions."""
    settings = _load_settings()

    async def _run() -> None:
        store = AuditStore(db_path=settings.db_path)
        await store.initialize()
        try:
            if summary:
                print_summary(await store.get_security_summary())
                return
            rows = await store.get_history(limit=limit)
            if not rows:
                print_info("No history found.")
            else:
                print_history(rows)
        finally:
            await store.close()

    asyncio.run(_run())


@app.command()
def patterns(
    tier: Optional[str] = typer.Option(None, "--tier", help="SAFE, RISKY, DANGEROUS or BLOCKED"),
) -> None:
    """List the pattern registry, including operator patterns."""
    settings = _load_settings()
    selected: PatternTier | None = None
    if tier is not None:
        try:
            selected = PatternTier(tier.upper())
        except ValueError:
            print_error(f"Unknown tier: {tier}")
            raise typer.Exit(1)
    try:
        registry = PatternRegistry.from_settings(settings)
    except ShellGuardError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    print_patterns(registry, selected)


@app.command(name="config")
def show_config() -> None:
    """Show current configuration."""
    settings = _load_settings()

    table_data = {
        "Model": settings.openai_model,
        "DB Path": str(settings.db_path),
        "Dry Run": str(settings.dry_run),
        "Log Level": settings.log_level,
        "Confirm Risky": str(settings.require_confirmation_for_risky),
        "Confirm Dangerous": str(settings.require_confirmation_for_dangerous),
        "Allow Dangerous": str(settings.allow_dangerous),
        "Max Execution Time": f"{settings.max_execution_time:g}s",
        "Confirmation Timeout": f"{settings.confirmation_timeout:g}s",
        "Trusted Commands": ", ".join(settings.trusted_commands) or "-",
        "Extra Safe Patterns": ", ".join(settings.operator_safe_patterns) or "-",
        "Extra Blocked Patterns": ", ".join(settings.operator_blocked_patterns) or "-",
    }

    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    for k, v in table_data.items():
        table.add_row(k, escape(v))
    console.print(table)
