"""Prompt renderer interface consumed by the confirmation coordinator."""

from __future__ import annotations

import abc

from shellguard.models.confirmation import ConfirmationResponse, PendingConfirmation


class PromptRenderer(abc.ABC):
    """Shows one pending confirmation at a time and returns the user's answer.

    ``show`` is awaited once per prompt. When the coordinator resolves the
    prompt some other way (timeout, teardown) the ``show`` task is cancelled
    and ``cancel`` is called so the renderer can clean up the terminal.
    """

    @abc.abstractmethod
    async def show(self, pending: PendingConfirmation) -> ConfirmationResponse:
        ...  # pragma: no cover

    def cancel(self, pending: PendingConfirmation) -> None:
        return None

    def tick(self, pending: PendingConfirmation, remaining: float) -> None:
        return None


class StaticRenderer(PromptRenderer):
    """Answers every prompt with the same response (non-interactive runs)."""

    def __init__(self, response: ConfirmationResponse | None = None) -> None:
        self._response = response or ConfirmationResponse.deny()
        self.shown: list[PendingConfirmation] = []

    async def show(self, pending: PendingConfirmation) -> ConfirmationResponse:
        self.shown.append(pending)
        return self._response
