"""Execution gate — the only path from a proposed command to a spawned process."""

from __future__ import annotations

import asyncio
import logging

from shellguard.audit.models import ConfirmationRecord, ExecutionRecord
from shellguard.audit.store import AuditStore
from shellguard.config.settings import Settings
from shellguard.confirmation.coordinator import ConfirmationCoordinator
from shellguard.exceptions import ExecutionError
from shellguard.executor.runners.base import BaseRunner
from shellguard.executor.runners.shell_runner import ShellRunner
from shellguard.models.confirmation import Decision, ResolutionPath, Verdict
from shellguard.models.errors import ErrorType
from shellguard.models.execution import ExecutionOutcome, ExecutionResult
from shellguard.models.risk import RiskCategory

logger = logging.getLogger(__name__)

SPAWN_RETRY_DELAY = 0.1

_REFUSAL_PREFIX = {
    ResolutionPath.AUTO_BLOCKED: "Blocked",
    ResolutionPath.USER: "Denied",
    ResolutionPath.TIMEOUT: "Confirmation timed out",
    ResolutionPath.TEARDOWN: "Session closed before confirmation",
}


class ExecutionGate:
    def __init__(
        self,
        coordinator: ConfirmationCoordinator,
        runner: BaseRunner | None = None,
        settings: Settings | None = None,
        audit: AuditStore | None = None,
        dry_run: bool = False,
    ) -> None:
        self._settings = settings or Settings()  # type: ignore[call-arg]
        self._coordinator = coordinator
        self._runner = runner or ShellRunner()
        self._audit = audit
        self._dry_run = dry_run or self._settings.dry_run

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    async def request_execution(self, command: str, cwd: str = "") -> ExecutionResult:
        if not isinstance(command, str) or not command.strip():
            return ExecutionResult(
                command="",
                working_directory=cwd,
                decision=Decision.DENY,
                category=RiskCategory.LOW,
                outcome=ExecutionOutcome.REFUSED,
                reason="Refused: empty or unparseable command",
                error_type=ErrorType.INPUT_VALIDATION,
            )

        verdict = await self._coordinator.request(command, cwd)
        confirmation_id = await self._log_confirmation(verdict)

        if not verdict.permits_execution:
            result = self._refusal(verdict)
        elif self._dry_run:
            result = self._result(
                verdict,
                ExecutionOutcome.DRY_RUN,
                reason=f"[DRY RUN] Would execute: {verdict.command}",
            )
        else:
            result = await self._execute(verdict)

        await self._log_execution(result, confirmation_id)
        return result

    def _result(self, verdict: Verdict, outcome: ExecutionOutcome, **kwargs) -> ExecutionResult:
        return ExecutionResult(
            command=verdict.command,
            working_directory=verdict.working_directory,
            decision=verdict.decision,
            resolution=verdict.resolution,
            category=verdict.assessment.category,
            outcome=outcome,
            **kwargs,
        )

    def _refusal(self, verdict: Verdict) -> ExecutionResult:
        prefix = _REFUSAL_PREFIX.get(verdict.resolution, "Refused")
        reason = f"{prefix}: {verdict.assessment.describe()}"
        error_type = (
            ErrorType.TIMEOUT_ERROR if verdict.response.timed_out else ErrorType.PERMISSION_ERROR
        )
        logger.info("Refused %r: %s", verdict.command, reason)
        return self._result(
            verdict, ExecutionOutcome.REFUSED, reason=reason, error_type=error_type
        )

    async def _execute(self, verdict: Verdict) -> ExecutionResult:
        timeout = self._settings.max_execution_time
        attempts = self._settings.spawn_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                process = await self._runner.run(verdict.command, verdict.working_directory, timeout)
                break
            except ExecutionError as exc:
                logger.warning("Attempt %d/%d to start %r failed: %s", attempt, attempts, verdict.command, exc)
                if attempt == attempts:
                    return self._result(
                        verdict,
                        ExecutionOutcome.GENERAL_ERROR,
                        reason=str(exc),
                        error_type=ErrorType.EXECUTION_ERROR,
                    )
                await asyncio.sleep(SPAWN_RETRY_DELAY)

        if process.timed_out:
            return self._result(
                verdict,
                ExecutionOutcome.TIMEOUT,
                reason=f"Command timed out after {timeout:g} seconds",
                error_type=ErrorType.TIMEOUT_ERROR,
                process=process,
            )
        if process.exit_code != 0:
            return self._result(
                verdict,
                ExecutionOutcome.GENERAL_ERROR,
                reason=f"Command exited with code {process.exit_code}",
                error_type=ErrorType.EXECUTION_ERROR,
                process=process,
            )
        return self._result(verdict, ExecutionOutcome.SUCCESS, process=process)

    async def _log_confirmation(self, verdict: Verdict) -> str | None:
        if self._audit is None or not self._audit.initialized:
            return None
        return await self._audit.log_confirmation(ConfirmationRecord.from_verdict(verdict))

    async def _log_execution(self, result: ExecutionResult, confirmation_id: str | None) -> None:
        if self._audit is None or confirmation_id is None:
            return
        await self._audit.log_execution(ExecutionRecord.from_result(result, confirmation_id))
