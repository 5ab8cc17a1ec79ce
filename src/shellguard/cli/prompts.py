"""User confirmation dialogs."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from shellguard.confirmation.renderer import PromptRenderer
from shellguard.models.confirmation import ConfirmationResponse, Decision, PendingConfirmation
from shellguard.policy.risk_levels import category_info, confirmation_message

console = Console()

CHOICES: dict[str, tuple[Decision, bool]] = {
    "a": (Decision.ALLOW, False),
    "d": (Decision.DENY, False),
    "t": (Decision.TRUST, True),
    "b": (Decision.BLOCK, True),
}
CHOICE_PROMPT = "[A]llow once, [D]eny, [T]rust, [B]lock, [S]how details (default: deny): "
COUNTDOWN_MARKS = (10, 5)


def _deliver(future: asyncio.Future, value: str | None, exc: BaseException | None) -> None:
    if future.done():
        return
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(value)


class RichPromptRenderer(PromptRenderer):
    """Interactive terminal prompt.

    Input is read on a daemon thread so that the coordinator's timeout can
    resolve the prompt while the user is still at the keyboard.
    """

    def __init__(
        self,
        term: Console | None = None,
        input_func: Callable[[str], str] = input,
    ) -> None:
        self._console = term if term is not None else console
        self._input = input_func
        self._announced: set[int] = set()
        self._reader: asyncio.Future[str] | None = None

    async def show(self, pending: PendingConfirmation) -> ConfirmationResponse:
        self._announced = set()
        while True:
            self.render(pending)
            answer = (await self._read(CHOICE_PROMPT)).strip().lower()
            if answer in ("s", "?"):
                pending.show_details = not pending.show_details
                continue
            if answer in CHOICES:
                decision, remember = CHOICES[answer]
                return ConfirmationResponse(decision=decision, remember_decision=remember)
            if answer in ("y", "yes"):
                return ConfirmationResponse.allow()
            if answer in ("", "n", "no"):
                return ConfirmationResponse.deny()
            self._console.print(f"[red]Unrecognised choice: {escape(answer)}[/]")

    def cancel(self, pending: PendingConfirmation) -> None:
        self._console.print(
            f"\n[yellow]No answer for {escape(pending.command)}; the command was denied.[/]"
        )

    def tick(self, pending: PendingConfirmation, remaining: float) -> None:
        for mark in COUNTDOWN_MARKS:
            if remaining <= mark and mark not in self._announced:
                self._announced.add(mark)
                self._console.print(f"[dim]{mark}s left to answer[/]")

    def render(self, pending: PendingConfirmation) -> None:
        assessment = pending.assessment
        info = category_info(assessment.category)
        lines = [escape(confirmation_message(assessment, pending.command)), ""]
        lines.append(f"Risk: [{info.color}]{info.icon} {info.label}[/] ({assessment.category.name})")
        for factor in assessment.risk_factors:
            lines.append(f"  • {escape(factor)}")
        if pending.show_details:
            lines.append("")
            lines.append(f"Directory: {escape(pending.working_directory or '.')}")
            lines.append(f"Score: {assessment.risk_score}")
            lines.append(f"Type: {escape(assessment.context.command_type or '-')}")
            for impact in assessment.context.potential_impact:
                lines.append(f"Impact: {escape(impact)}")
            for suggestion in assessment.context.mitigation_suggestions:
                lines.append(f"Suggestion: {escape(suggestion)}")
            lines.append(f"Answer before: {pending.deadline:%H:%M:%S} UTC")
        self._console.print(
            Panel("\n".join(lines), title="Confirm command", border_style=info.color)
        )

    async def _read(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        future = self._reader
        if future is not None and not future.done() and future.get_loop() is loop:
            # A prompt that timed out left its input() call running; it owns the next line.
            self._console.print(prompt, end="", markup=False, highlight=False)
        else:
            future = loop.create_future()
            self._reader = future
            threading.Thread(
                target=self._worker,
                args=(loop, future, prompt),
                name="shellguard-prompt",
                daemon=True,
            ).start()
        try:
            return await asyncio.shield(future)
        finally:
            if future.done() and self._reader is future:
                self._reader = None

    def _worker(self, loop: asyncio.AbstractEventLoop, future: asyncio.Future, prompt: str) -> None:
        value: str | None = None
        error: BaseException | None = None
        try:
            value = self._input(prompt)
        except EOFError:
            value = "d"
        except Exception as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(_deliver, future, value, error)
        except RuntimeError:
            pass  # loop already closed; the prompt was resolved elsewhere
