"""Entry point and dependency wiring."""

from __future__ import annotations

from shellguard.audit.store import AuditStore
from shellguard.cli.app import app
from shellguard.config.settings import Settings
from shellguard.confirmation.coordinator import ConfirmationCoordinator
from shellguard.confirmation.renderer import PromptRenderer
from shellguard.executor.gate import ExecutionGate
from shellguard.executor.runners.base import BaseRunner
from shellguard.policy.classifier import RiskClassifier
from shellguard.policy.patterns import PatternRegistry
from shellguard.policy.session_store import SessionPolicyStore
from shellguard.session import Session


def build_session(
    renderer: PromptRenderer,
    settings: Settings | None = None,
    dry_run: bool = False,
    runner: BaseRunner | None = None,
    audit: AuditStore | None = None,
) -> Session:
    settings = settings or Settings()  # type: ignore[call-arg]

    registry = PatternRegistry.from_settings(settings)
    store = SessionPolicyStore()
    classifier = RiskClassifier(registry, settings, policy_store=store)
    coordinator = ConfirmationCoordinator(classifier, store, renderer, settings)
    audit = audit if audit is not None else AuditStore(db_path=settings.db_path)
    gate = ExecutionGate(
        coordinator,
        runner=runner,
        settings=settings,
        audit=audit,
        dry_run=dry_run or settings.dry_run,
    )
    return Session(store=store, coordinator=coordinator, gate=gate, audit=audit)


if __name__ == "__main__":
    app()
