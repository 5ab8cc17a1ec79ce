"""Session policy store — remembered trust/block decisions for one session."""

from __future__ import annotations

import logging
import re
from typing import Any

from shellguard.models.confirmation import PatternKind, PolicyDecision, SessionPolicyEntry
from shellguard.policy.patterns import CommandPattern, infer_kind

logger = logging.getLogger(__name__)


def remembered_pattern(command: str) -> str:
    """Pattern stored for a remembered decision: the exact command, anchored."""
    return "^" + re.escape(command.strip()) + "$"


class SessionPolicyStore:
    """In-memory trust/block patterns keyed by their literal text.

    Entries live for the owning session only. Trust entries are consulted
    before block entries, so trusting a pattern later in the session
    overrides an earlier block of the same command.
    """

    def __init__(self) -> None:
        self._entries: dict[str, SessionPolicyEntry] = {}
        self._matchers: dict[str, CommandPattern] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._entries

    def remember(
        self,
        pattern: str,
        decision: PolicyDecision | str,
        kind: PatternKind | None = None,
    ) -> SessionPolicyEntry:
        decision = PolicyDecision(decision)
        kind = kind or infer_kind(pattern)
        entry = SessionPolicyEntry(pattern=pattern, decision=decision, kind=kind)
        self._entries[pattern] = entry
        self._matchers[pattern] = CommandPattern.compile(pattern, kind)
        logger.info("Remembered %s for pattern %r", decision.value, pattern)
        return entry

    def lookup(self, command: str) -> PolicyDecision | None:
        command = command.strip()
        if not command:
            return None
        matched = {
            entry.decision
            for pattern, entry in self._entries.items()
            if self._matchers[pattern].matches(command)
        }
        if PolicyDecision.TRUST in matched:
            return PolicyDecision.TRUST
        if PolicyDecision.BLOCK in matched:
            return PolicyDecision.BLOCK
        return None

    def decision_for(self, pattern: str) -> PolicyDecision | None:
        """Decision stored under exactly this pattern text, if any."""
        entry = self._entries.get(pattern)
        return entry.decision if entry is not None else None

    def forget(self, pattern: str) -> bool:
        self._matchers.pop(pattern, None)
        return self._entries.pop(pattern, None) is not None

    def clear(self) -> None:
        if self._entries:
            logger.debug("Clearing %d session policy entries", len(self._entries))
        self._entries.clear()
        self._matchers.clear()

    def entries(self) -> list[SessionPolicyEntry]:
        return list(self._entries.values())

    def export(self) -> list[dict[str, Any]]:
        return [entry.model_dump(mode="json") for entry in self._entries.values()]
