"""Shared fixtures and fakes for all tests."""

from __future__ import annotations

import asyncio
import json
import os
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from shellguard.audit.store import AuditStore
from shellguard.config.settings import Settings
from shellguard.confirmation.coordinator import ConfirmationCoordinator
from shellguard.confirmation.renderer import PromptRenderer
from shellguard.executor.gate import ExecutionGate
from shellguard.executor.runners.base import BaseRunner
from shellguard.models.confirmation import ConfirmationResponse, PendingConfirmation
from shellguard.models.execution import ProcessResult
from shellguard.policy.classifier import RiskClassifier
from shellguard.policy.patterns import PatternRegistry
from shellguard.policy.session_store import SessionPolicyStore


class ScriptedRenderer(PromptRenderer):
    """Renderer that answers from a script and records what it was shown.

    A response of ``None`` never answers, leaving the prompt to the timeout
    or teardown path. ``hold`` keeps every prompt open until it is set.
    """

    def __init__(self, *responses: ConfirmationResponse | None) -> None:
        self.responses = list(responses)
        self.shown: list[PendingConfirmation] = []
        self.cancelled: list[PendingConfirmation] = []
        self.ticks: list[float] = []
        self.active = 0
        self.max_active = 0
        self.hold: asyncio.Event | None = None

    async def show(self, pending: PendingConfirmation) -> ConfirmationResponse:
        self.shown.append(pending)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.hold is not None:
                await self.hold.wait()
            response = self.responses.pop(0) if self.responses else ConfirmationResponse.deny()
            if response is None:
                await asyncio.Event().wait()
            return response
        finally:
            self.active -= 1

    def cancel(self, pending: PendingConfirmation) -> None:
        self.cancelled.append(pending)

    def tick(self, pending: PendingConfirmation, remaining: float) -> None:
        self.ticks.append(remaining)


class FakeRunner(BaseRunner):
    def __init__(self, result: ProcessResult | None = None, error: Exception | None = None) -> None:
        self.result = result or ProcessResult(exit_code=0, stdout="ok\n")
        self.error = error
        self.calls: list[tuple[str, str, float]] = []

    async def run(self, command: str, cwd: str, timeout: float) -> ProcessResult:
        self.calls.append((command, cwd, timeout))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("SHELLGUARD_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_settings(monkeypatch):
    monkeypatch.setenv("SHELLGUARD_OPENAI_API_KEY", "sk-test-key-fake")
    monkeypatch.setenv("SHELLGUARD_OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv("SHELLGUARD_DRY_RUN", "false")
    monkeypatch.setenv("SHELLGUARD_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("SHELLGUARD_DB_PATH", ":memory:")
    return Settings()  # type: ignore[call-arg]


@pytest.fixture
def settings():
    return Settings(db_path=":memory:", confirmation_timeout=0.2, max_execution_time=5.0)


@pytest.fixture
def registry():
    return PatternRegistry.default()


@pytest.fixture
def store():
    return SessionPolicyStore()


@pytest.fixture
def classifier(registry, settings, store):
    return RiskClassifier(registry, settings, policy_store=store)


@pytest.fixture
def renderer():
    return ScriptedRenderer()


@pytest.fixture
def coordinator(classifier, store, renderer, settings):
    return ConfirmationCoordinator(classifier, store, renderer, settings, countdown_interval=0.01)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest_asyncio.fixture
async def temp_db():
    audit = AuditStore(db_path=":memory:")
    await audit.initialize()
    yield audit
    await audit.close()


@pytest.fixture
def gate(coordinator, fake_runner, settings, temp_db):
    return ExecutionGate(coordinator, runner=fake_runner, settings=settings, audit=temp_db)


@pytest.fixture
def mock_openai_response():
    """Create a mock OpenAI chat completion response."""
    def _make(data: dict):
        message = MagicMock()
        message.content = json.dumps(data)
        choice = MagicMock()
        choice.message = message
        response = MagicMock()
        response.choices = [choice]
        return response
    return _make


@pytest.fixture
def scripted_renderer():
    """The ScriptedRenderer class, for tests that need more than one renderer."""
    return ScriptedRenderer
