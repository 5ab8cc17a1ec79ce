"""Session lifecycle — owns the policy store, coordinator, gate and audit trail."""

from __future__ import annotations

import asyncio
import logging

from shellguard.audit.store import AuditStore
from shellguard.confirmation.coordinator import ConfirmationCoordinator
from shellguard.executor.gate import ExecutionGate
from shellguard.models.execution import ExecutionResult
from shellguard.models.risk import CommandRiskAssessment
from shellguard.policy.session_store import SessionPolicyStore

logger = logging.getLogger(__name__)


class Session:
    """One interactive session.

    Remembered trust/block decisions live exactly as long as the session.
    ``close`` denies any prompt still waiting for the user, wipes the policy
    store and closes the audit database.
    """

    def __init__(
        self,
        store: SessionPolicyStore,
        coordinator: ConfirmationCoordinator,
        gate: ExecutionGate,
        audit: AuditStore | None = None,
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.gate = gate
        self.audit = audit
        self._closed = False
        self._active = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> Session:
        if self.audit is not None:
            await self.audit.initialize()
        return self

    def classify(self, command: str, cwd: str = "") -> CommandRiskAssessment:
        return self.coordinator.classify(command, cwd)

    async def request_execution(self, command: str, cwd: str = "") -> ExecutionResult:
        self._active += 1
        self._idle.clear()
        try:
            return await self.gate.request_execution(command, cwd)
        finally:
            self._active -= 1
            if self._active == 0:
                self._idle.set()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.coordinator.close()
        if self._active:
            # Requests resolved by the teardown still write their audit rows.
            logger.debug("Waiting for %d in-flight request(s)", self._active)
            await self._idle.wait()
        self.store.clear()
        if self.audit is not None:
            await self.audit.close()
        logger.debug("Session closed")

    async def __aenter__(self) -> Session:
        return await self.open()

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
