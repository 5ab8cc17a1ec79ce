"""Brutal tests for main entry point and dependency wiring."""

from __future__ import annotations

from shellguard.audit.store import AuditStore
from shellguard.confirmation.coordinator import ConfirmationCoordinator
from shellguard.confirmation.renderer import StaticRenderer
from shellguard.executor.gate import ExecutionGate
from shellguard.executor.runners.shell_runner import ShellRunner
from shellguard.main import build_session
from shellguard.policy.session_store import SessionPolicyStore
from shellguard.session import Session


class TestBuildSession:
    def test_returns_session(self, mock_settings):
        session = build_session(StaticRenderer(), settings=mock_settings)
        assert isinstance(session, Session)

    def test_wires_store(self, mock_settings):
        session = build_session(StaticRenderer(), settings=mock_settings)
        assert isinstance(session.store, SessionPolicyStore)

    def test_wires_coordinator(self, mock_settings):
        session = build_session(StaticRenderer(), settings=mock_settings)
        assert isinstance(session.coordinator, ConfirmationCoordinator)

    def test_wires_gate_with_shell_runner(self, mock_settings):
        session = build_session(StaticRenderer(), settings=mock_settings)
        assert isinstance(session.gate, ExecutionGate)
        assert isinstance(session.gate._runner, ShellRunner)

    def test_wires_audit(self, mock_settings):
        session = build_session(StaticRenderer(), settings=mock_settings)
        assert isinstance(session.audit, AuditStore)
        assert session.audit.db_path == ":memory:"

    def test_custom_runner_and_audit(self, mock_settings, fake_runner):
        audit = AuditStore()
        session = build_session(
            StaticRenderer(), settings=mock_settings, runner=fake_runner, audit=audit
        )
        assert session.gate._runner is fake_runner
        assert session.audit is audit

    def test_classifier_shares_session_store(self, mock_settings):
        session = build_session(StaticRenderer(), settings=mock_settings)
        session.store.remember("ls", "block")
        assert session.classify("ls -la").should_block is True

    def test_dry_run_propagated(self, mock_settings):
        session = build_session(StaticRenderer(), settings=mock_settings, dry_run=True)
        assert session.gate.dry_run is True

    def test_settings_dry_run_override(self, monkeypatch):
        monkeypatch.setenv("SHELLGUARD_DRY_RUN", "true")
        monkeypatch.setenv("SHELLGUARD_DB_PATH", ":memory:")
        session = build_session(StaticRenderer())
        assert session.gate.dry_run is True

    def test_trusted_commands_seeded(self, monkeypatch):
        monkeypatch.setenv("SHELLGUARD_DB_PATH", ":memory:")
        monkeypatch.setenv("SHELLGUARD_TRUSTED_COMMANDS", '["npm install *"]')
        session = build_session(StaticRenderer())
        assert len(session.store) == 1
