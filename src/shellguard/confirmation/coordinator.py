"""Confirmation coordinator — classify, consult session policy, prompt, resolve."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from shellguard.config.settings import Settings
from shellguard.confirmation.renderer import PromptRenderer
from shellguard.models.confirmation import (
    ConfirmationResponse,
    CoordinatorState,
    Decision,
    PatternKind,
    PendingConfirmation,
    PolicyDecision,
    ResolutionPath,
    Verdict,
)
from shellguard.models.risk import CommandRiskAssessment
from shellguard.policy.classifier import RiskClassifier
from shellguard.policy.session_store import SessionPolicyStore, remembered_pattern

logger = logging.getLogger(__name__)

_Resolution = tuple[ConfirmationResponse, ResolutionPath]


class ConfirmationCoordinator:
    """Owns the decision pipeline for execution requests.

    Requests are served one at a time in arrival order. While one request is
    awaiting the user, later requests wait on the lock and are only shown to
    the renderer once the current prompt has resolved.
    """

    def __init__(
        self,
        classifier: RiskClassifier,
        store: SessionPolicyStore,
        renderer: PromptRenderer,
        settings: Settings | None = None,
        countdown_interval: float = 1.0,
    ) -> None:
        self._settings = settings or Settings()  # type: ignore[call-arg]
        self._classifier = classifier
        self._store = store
        self._renderer = renderer
        self._timeout = self._settings.confirmation_timeout
        self._countdown_interval = countdown_interval
        self._lock = asyncio.Lock()
        self._state = CoordinatorState.IDLE
        self._pending: PendingConfirmation | None = None
        self._future: asyncio.Future[_Resolution] | None = None
        self._closed = False

        for pattern in self._settings.trusted_commands:
            self._store.remember(pattern, PolicyDecision.TRUST)

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def pending(self) -> PendingConfirmation | None:
        return self._pending

    @property
    def closed(self) -> bool:
        return self._closed

    def classify(self, command: str, cwd: str = "") -> CommandRiskAssessment:
        return self._classifier.classify(command, cwd)

    async def request(self, command: str, cwd: str = "") -> Verdict:
        async with self._lock:
            if self._closed:
                return self._verdict(
                    command, cwd, self.classify(command, cwd),
                    ConfirmationResponse.timeout(), ResolutionPath.TEARDOWN,
                )

            self._state = CoordinatorState.CLASSIFYING
            assessment = self.classify(command, cwd)

            if assessment.should_block:
                self._state = CoordinatorState.AUTO_BLOCKED
                logger.info("Auto-blocked %r: %s", command, assessment.describe())
                response, path = ConfirmationResponse.deny(), ResolutionPath.AUTO_BLOCKED
            elif not assessment.requires_confirmation:
                self._state = CoordinatorState.AUTO_ALLOWED
                logger.debug("Auto-allowed %r (%s)", command, assessment.category.name)
                response, path = ConfirmationResponse.allow(), ResolutionPath.AUTO_ALLOWED
            else:
                response, path = await self._prompt(command, cwd, assessment)
                self._record(command, response)

            self._state = CoordinatorState.RESOLVED
            return self._verdict(command, cwd, assessment, response, path)

    def close(self) -> None:
        """Tear down: any prompt in flight and every later request resolves as deny-timeout."""
        self._closed = True
        future = self._future
        if future is not None and not future.done():
            logger.warning(
                "Session closing while awaiting confirmation of %r; denying",
                self._pending.command if self._pending else "",
            )
            future.set_result((ConfirmationResponse.timeout(), ResolutionPath.TEARDOWN))

    def _verdict(
        self,
        command: str,
        cwd: str,
        assessment: CommandRiskAssessment,
        response: ConfirmationResponse,
        path: ResolutionPath,
    ) -> Verdict:
        return Verdict(
            command=command.strip(),
            working_directory=cwd,
            assessment=assessment,
            response=response,
            resolution=path,
        )

    def _record(self, command: str, response: ConfirmationResponse) -> None:
        if not response.remember_decision or response.timed_out:
            return
        if response.decision == Decision.TRUST:
            decision = PolicyDecision.TRUST
        elif response.decision == Decision.BLOCK:
            decision = PolicyDecision.BLOCK
        else:
            return
        self._store.remember(remembered_pattern(command), decision, PatternKind.REGEX)

    async def _prompt(
        self,
        command: str,
        cwd: str,
        assessment: CommandRiskAssessment,
    ) -> _Resolution:
        loop = asyncio.get_running_loop()
        pending = PendingConfirmation(
            command=command.strip(),
            assessment=assessment,
            working_directory=cwd,
            deadline=datetime.now(timezone.utc) + timedelta(seconds=self._timeout),
        )
        future: asyncio.Future[_Resolution] = loop.create_future()
        self._pending, self._future = pending, future
        self._state = CoordinatorState.AWAITING_USER
        logger.info(
            "Awaiting confirmation for %r (%s, %.0fs timeout)",
            pending.command,
            assessment.category.name,
            self._timeout,
        )

        def resolve(response: ConfirmationResponse, path: ResolutionPath) -> None:
            if not future.done():
                future.set_result((response, path))

        def on_shown(task: asyncio.Future[ConfirmationResponse]) -> None:
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                logger.error("Prompt renderer failed for %r: %s", pending.command, exc)
                resolve(ConfirmationResponse.deny(), ResolutionPath.USER)
            else:
                resolve(task.result(), ResolutionPath.USER)

        show_task = asyncio.ensure_future(self._renderer.show(pending))
        show_task.add_done_callback(on_shown)
        timer = loop.call_later(
            self._timeout, resolve, ConfirmationResponse.timeout(), ResolutionPath.TIMEOUT
        )
        countdown = asyncio.create_task(self._countdown(pending, loop.time() + self._timeout))
        try:
            response, path = await future
        finally:
            timer.cancel()
            countdown.cancel()
            if not show_task.done():
                show_task.cancel()
                self._renderer.cancel(pending)
            self._pending, self._future = None, None

        if path == ResolutionPath.TIMEOUT:
            logger.warning("Confirmation of %r timed out; denying", pending.command)
        else:
            logger.info("Confirmation of %r resolved: %s", pending.command, response.decision.value)
        return response, path

    async def _countdown(self, pending: PendingConfirmation, deadline: float) -> None:
        loop = asyncio.get_running_loop()
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return
            try:
                self._renderer.tick(pending, remaining)
            except Exception:
                logger.exception("Prompt renderer failed to refresh the countdown")
                return
            await asyncio.sleep(min(self._countdown_interval, remaining))
