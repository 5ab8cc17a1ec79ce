"""Risk classifier — turns a raw command line into a CommandRiskAssessment."""

from __future__ import annotations

import logging

from shellguard.config.settings import Settings
from shellguard.models.confirmation import PolicyDecision
from shellguard.models.errors import ErrorType
from shellguard.models.risk import CommandContext, CommandRiskAssessment, RiskCategory
from shellguard.policy.patterns import (
    CATEGORY_PROFILES,
    TIER_CATEGORY,
    Detector,
    PatternRegistry,
    PatternTier,
)
from shellguard.policy.risk_levels import raise_tier, requires_user_confirmation, risk_score
from shellguard.policy.session_store import SessionPolicyStore, remembered_pattern
from shellguard.policy.shell_syntax import ParsedCommand, is_within, parse, path_arguments, resolve_path

logger = logging.getLogger(__name__)

EMPTY_COMMAND_FACTOR = "empty or unparseable command"
DANGEROUS_DISABLED_FACTOR = "dangerous commands are disabled in configuration"

HARMLESS_DEVICES = frozenset({"/dev/null", "/dev/stdout", "/dev/stderr", "/dev/stdin", "/dev/tty"})

_TIER_LABELS = {
    PatternTier.BLOCKED: "Blocked pattern",
    PatternTier.DANGEROUS: "Dangerous operation",
    PatternTier.RISKY: "Risky operation",
    PatternTier.SAFE: "Known safe command",
}


class _Findings:
    """Accumulates factors, impacts and error types in detection order."""

    def __init__(self) -> None:
        self.factors: list[str] = []
        self.impacts: list[str] = []
        self.mitigations: list[str] = []
        self.matched: list[str] = []
        self.errors: list[ErrorType] = []

    def factor(self, text: str) -> None:
        if text not in self.factors:
            self.factors.append(text)

    def detector(self, detector: Detector) -> None:
        self.factor(detector.factor)
        if detector.impact and detector.impact not in self.impacts:
            self.impacts.append(detector.impact)
        if detector.mitigation and detector.mitigation not in self.mitigations:
            self.mitigations.append(detector.mitigation)

    def error(self, error_type: ErrorType) -> None:
        if error_type not in self.errors:
            self.errors.append(error_type)


class RiskClassifier:
    """Pure classification over the pattern registry.

    ``classify`` never raises for string input. Unexpected internal failures
    are folded into a blocked assessment carrying UNKNOWN_ERROR.
    """

    def __init__(
        self,
        registry: PatternRegistry | None = None,
        settings: Settings | None = None,
        policy_store: SessionPolicyStore | None = None,
    ) -> None:
        self._settings = settings or Settings()  # type: ignore[call-arg]
        self._registry = registry or PatternRegistry.from_settings(self._settings)
        self._store = policy_store

    @property
    def registry(self) -> PatternRegistry:
        return self._registry

    def classify(self, command: str, cwd: str = "") -> CommandRiskAssessment:
        if not isinstance(command, str) or not command.strip():
            return self._empty(command if isinstance(command, str) else "")
        try:
            return self._classify(command, cwd)
        except Exception as exc:
            logger.exception("Classification failed for %r", command)
            return CommandRiskAssessment(
                command=command.strip(),
                category=RiskCategory.CRITICAL,
                risk_score=risk_score(RiskCategory.CRITICAL, 1),
                risk_factors=(f"classification failed: {exc}",),
                context=CommandContext(
                    command_type="classification_error",
                    potential_impact=("Unknown",),
                ),
                should_block=True,
                error_types=(ErrorType.UNKNOWN_ERROR,),
            )

    def _empty(self, command: str) -> CommandRiskAssessment:
        profile = CATEGORY_PROFILES[RiskCategory.LOW]
        return CommandRiskAssessment(
            command=command.strip(),
            category=RiskCategory.LOW,
            risk_score=risk_score(RiskCategory.LOW, 1),
            risk_factors=(EMPTY_COMMAND_FACTOR,),
            context=CommandContext(
                command_type="",
                potential_impact=(profile.impact,),
                mitigation_suggestions=profile.suggestions,
            ),
            error_types=(ErrorType.INPUT_VALIDATION,),
        )

    def _classify(self, command: str, cwd: str) -> CommandRiskAssessment:
        settings = self._settings
        parsed = parse(command)
        found = _Findings()

        if not parsed.tokenized:
            found.factor("Command could not be tokenized (unbalanced quotes)")

        top = self._match_tiers(parsed, found)
        category = TIER_CATEGORY[top] if top is not None else RiskCategory.LOW
        absolute_block = top == PatternTier.BLOCKED
        if absolute_block:
            found.error(ErrorType.PERMISSION_ERROR)

        if top == PatternTier.DANGEROUS and settings.escalate_dangerous_on_system_path:
            target = self._system_target(parsed, cwd)
            if target is not None:
                found.factor(f"Dangerous operation targets system path {target}")
                category = RiskCategory.CRITICAL

        category = self._scan_syntax(parsed, cwd, category, found)

        if len(parsed.normalized) > settings.max_command_length:
            found.factor(f"Command is longer than {settings.max_command_length} characters")
            found.error(ErrorType.INPUT_VALIDATION)

        requires_confirmation = requires_user_confirmation(
            category,
            settings.require_confirmation_for_risky,
            settings.require_confirmation_for_dangerous,
        )
        should_block = False
        policy = self._session_policy(parsed)

        if absolute_block:
            should_block, requires_confirmation = True, False
            if policy == PolicyDecision.TRUST:
                found.factor("Session trust does not apply to blocked commands")
        elif policy == PolicyDecision.BLOCK:
            should_block, requires_confirmation = True, False
            found.factor("Blocked by a remembered session decision")
            found.error(ErrorType.PERMISSION_ERROR)
        elif category == RiskCategory.CRITICAL:
            if policy == PolicyDecision.TRUST:
                requires_confirmation = True
                found.factor("Session trust allows confirming this critical command")
            else:
                should_block, requires_confirmation = True, False
                found.error(ErrorType.PERMISSION_ERROR)
        elif category == RiskCategory.HIGH and not settings.allow_dangerous:
            should_block, requires_confirmation = True, False
            found.factor(DANGEROUS_DISABLED_FACTOR)
            found.error(ErrorType.PERMISSION_ERROR)
        elif policy == PolicyDecision.TRUST:
            requires_confirmation = False

        profile = CATEGORY_PROFILES[category]
        assessment = CommandRiskAssessment(
            command=parsed.normalized,
            category=category,
            risk_score=risk_score(category, len(found.factors)),
            risk_factors=tuple(found.factors),
            context=CommandContext(
                command_type=parsed.command_type,
                potential_impact=(profile.impact, *found.impacts),
                mitigation_suggestions=(*profile.suggestions, *found.mitigations),
            ),
            requires_confirmation=requires_confirmation,
            should_block=should_block,
            matched_patterns=tuple(found.matched),
            error_types=tuple(found.errors),
        )
        logger.debug(
            "Classified %r as %s (score=%d, block=%s, confirm=%s)",
            assessment.command,
            category.name,
            assessment.risk_score,
            should_block,
            requires_confirmation,
        )
        return assessment

    def _match_tiers(self, parsed: ParsedCommand, found: _Findings) -> PatternTier | None:
        candidates = (parsed.normalized, *parsed.segments)
        registry = self._registry
        top: PatternTier | None = None

        for tier in (PatternTier.BLOCKED, PatternTier.DANGEROUS, PatternTier.RISKY, PatternTier.SAFE):
            for pattern in registry.match(tier, candidates):
                found.matched.append(pattern.text)
                if tier != PatternTier.SAFE:
                    found.factor(f"{_TIER_LABELS[tier]}: {pattern.description or pattern.text}")
                if pattern.malformed:
                    found.factor(f"Pattern {pattern.text!r} is not a valid regular expression")
                    found.error(ErrorType.CONFIGURATION_ERROR)
                if top is None:
                    top = tier

        if top == PatternTier.SAFE:
            unmatched = [
                segment
                for segment in parsed.segments
                if not any(registry.match(tier, (segment,)) for tier in PatternTier)
            ]
            if unmatched:
                found.factor(f"Unrecognised command segment: {unmatched[0]}")
                return None
        elif top is None:
            found.factor(f"Unrecognised command: {parsed.command_type}")
        return top

    def _segment_tier(self, segment: str) -> PatternTier | None:
        for tier in (PatternTier.BLOCKED, PatternTier.DANGEROUS, PatternTier.RISKY, PatternTier.SAFE):
            if self._registry.match(tier, (segment,)):
                return tier
        return None

    def _session_policy(self, parsed: ParsedCommand) -> PolicyDecision | None:
        """Remembered decision covering the whole command line.

        A decision stored for this exact line wins. Otherwise a block on any
        segment blocks the line, and trust applies only when every segment
        that is not plain SAFE is trusted on its own.
        """
        store = self._store
        if store is None:
            return None
        exact = store.decision_for(remembered_pattern(parsed.normalized))
        if exact is not None:
            return exact

        segments = parsed.segments or (parsed.normalized,)
        decisions = {segment: store.lookup(segment) for segment in segments}
        if PolicyDecision.BLOCK in decisions.values():
            return PolicyDecision.BLOCK
        if store.lookup(parsed.normalized) == PolicyDecision.BLOCK:
            return PolicyDecision.BLOCK

        unsafe = [s for s in segments if self._segment_tier(s) != PatternTier.SAFE]
        if all(decisions[s] == PolicyDecision.TRUST for s in unsafe or segments):
            return PolicyDecision.TRUST
        return None

    def _system_target(self, parsed: ParsedCommand, cwd: str) -> str | None:
        for path in path_arguments(parsed.words):
            resolved = resolve_path(path, cwd)
            if resolved in HARMLESS_DEVICES:
                continue
            if any(is_within(resolved, d) for d in self._settings.system_directories):
                return resolved
        return None

    def _scan_syntax(
        self,
        parsed: ParsedCommand,
        cwd: str,
        category: RiskCategory,
        found: _Findings,
    ) -> RiskCategory:
        settings = self._settings
        registry = self._registry
        text = parsed.normalized

        traversal = [d for d in registry.traversal if d.matches(text)]
        if traversal:
            for detector in traversal:
                found.detector(detector)
            found.error(ErrorType.SECURITY_ERROR)
            if cwd:
                base = resolve_path(".", cwd)
                for path in path_arguments(parsed.words):
                    resolved = resolve_path(path, cwd)
                    if ".." in path.split("/") and not is_within(resolved, base):
                        found.factor(f"Path {path} resolves to {resolved} outside the working directory")
            if settings.escalate_on_traversal:
                category = raise_tier(category)

        for detector in registry.expansion:
            if detector.matches(text):
                found.detector(detector)
                if settings.escalate_on_expansion:
                    category = raise_tier(category)

        for detector in registry.anomalies:
            if detector.matches(text):
                found.detector(detector)
                found.error(ErrorType.INPUT_VALIDATION)
                category = raise_tier(category)

        return category
