"""Pattern registry — static classification data grouped by risk tier.

Adding a dangerous command is an edit to the tables below, never to the
classifier. Every pattern is matched case-sensitively against the trimmed
command (and, for anchored patterns, against each command segment).
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from shellguard.exceptions import SecurityViolationError
from shellguard.models.confirmation import PatternKind
from shellguard.models.risk import RiskCategory

logger = logging.getLogger(__name__)

_REGEX_CHARS = frozenset("^$*+?()[]{}|\\")
_LITERAL_STOP = re.compile(r"[()\[\]{}|$*+?\\]")


class PatternTier(str, enum.Enum):
    SAFE = "SAFE"
    RISKY = "RISKY"
    DANGEROUS = "DANGEROUS"
    BLOCKED = "BLOCKED"


TIER_CATEGORY: dict[PatternTier, RiskCategory] = {
    PatternTier.SAFE: RiskCategory.SAFE,
    PatternTier.RISKY: RiskCategory.MEDIUM,
    PatternTier.DANGEROUS: RiskCategory.HIGH,
    PatternTier.BLOCKED: RiskCategory.CRITICAL,
}


def infer_kind(text: str) -> PatternKind:
    """Operator strings with regex metacharacters are regexes, others are literals."""
    return PatternKind.REGEX if any(c in _REGEX_CHARS for c in text) else PatternKind.SUBSTRING


@dataclass(frozen=True)
class CommandPattern:
    text: str
    kind: PatternKind
    description: str = ""
    malformed: bool = False
    _regex: re.Pattern[str] | None = field(default=None, compare=False, repr=False)

    @classmethod
    def compile(
        cls,
        text: str,
        kind: PatternKind | None = None,
        description: str = "",
    ) -> CommandPattern:
        kind = kind or infer_kind(text)
        if kind == PatternKind.SUBSTRING:
            return cls(text=text, kind=kind, description=description)
        try:
            regex = re.compile(text)
        except re.error as exc:
            logger.warning("Pattern %r is not a valid regular expression (%s); matching it literally", text, exc)
            return cls(text=text, kind=PatternKind.SUBSTRING, description=description, malformed=True)
        return cls(text=text, kind=kind, description=description, _regex=regex)

    @property
    def anchored(self) -> bool:
        return self.kind == PatternKind.REGEX and self.text.startswith("^")

    def matches(self, command: str) -> bool:
        if self._regex is not None:
            return self._regex.search(command) is not None
        return self.text in command

    def representative(self) -> str:
        """Literal command text this pattern is written to recognise."""
        if self.kind == PatternKind.SUBSTRING:
            return self.text
        literal = self.text.lstrip("^")
        stop = _LITERAL_STOP.search(literal)
        if stop is not None:
            literal = literal[: stop.start()]
        return literal.replace(r"\s", " ").strip()


@dataclass(frozen=True)
class Detector:
    """Cross-cutting syntax detector (shell expansion, path traversal, anomalies)."""

    name: str
    regex: re.Pattern[str]
    factor: str
    impact: str = ""
    mitigation: str = ""

    def matches(self, command: str) -> bool:
        return self.regex.search(command) is not None


@dataclass(frozen=True)
class TierProfile:
    command_type: str
    impact: str
    suggestions: tuple[str, ...] = ()


def _rx(text: str, description: str) -> CommandPattern:
    return CommandPattern.compile(text, PatternKind.REGEX, description)


def _lit(text: str, description: str) -> CommandPattern:
    return CommandPattern.compile(text, PatternKind.SUBSTRING, description)


# rm option tokens before the operands, in any order or spelling.
_RM_OPTIONS = r"(?:-\S+\s+)*"
_RM_RECURSIVE = r"(?=" + _RM_OPTIONS + r"(?:-[a-zA-Z]*[rR]|--recursive\b))"
_RM_FORCE = r"(?=" + _RM_OPTIONS + r"(?:-[a-zA-Z]*f|--force\b))"

SAFE_PATTERNS: tuple[CommandPattern, ...] = (
    _rx(r"^ls(\s|$)", "list directory"),
    _rx(r"^pwd(\s|$)", "print working directory"),
    _rx(r"^echo(\s|$)", "print text"),
    _rx(r"^cat(\s|$)", "read file"),
    _rx(r"^head(\s|$)", "read file head"),
    _rx(r"^tail(\s|$)", "read file tail"),
    _rx(r"^less(\s|$)", "page file"),
    _rx(r"^grep(\s|$)", "search text"),
    _rx(r"^rg(\s|$)", "search text"),
    _rx(r"^find(\s|$)", "find files"),
    _rx(r"^tree(\s|$)", "list tree"),
    _rx(r"^which(\s|$)", "locate command"),
    _rx(r"^whereis(\s|$)", "locate command"),
    _rx(r"^file(\s|$)", "inspect file type"),
    _rx(r"^stat(\s|$)", "inspect file"),
    _rx(r"^wc(\s|$)", "count lines"),
    _rx(r"^sort(\s|$)", "sort lines"),
    _rx(r"^uniq(\s|$)", "filter lines"),
    _rx(r"^diff(\s|$)", "compare files"),
    _rx(r"^du(\s|$)", "disk usage"),
    _rx(r"^df(\s|$)", "free space"),
    _rx(r"^date(\s|$)", "print date"),
    _rx(r"^whoami(\s|$)", "print user"),
    _rx(r"^git status(\s|$)", "git status"),
    _rx(r"^git log(\s|$)", "git log"),
    _rx(r"^git diff(\s|$)", "git diff"),
    _rx(r"^git show(\s|$)", "git show"),
    _rx(r"^git branch(\s|$)", "git branch listing"),
    _rx(r"^npm test(\s|$)", "run npm tests"),
    _rx(r"^yarn test(\s|$)", "run yarn tests"),
    _rx(r"^pytest(\s|$)", "run pytest"),
)

RISKY_PATTERNS: tuple[CommandPattern, ...] = (
    _rx(r"^npm (install|i|ci|uninstall)(\s|$)", "npm dependency change"),
    _rx(r"^yarn (install|add|remove)(\s|$)", "yarn dependency change"),
    _rx(r"^pip3? (install|uninstall)(\s|$)", "pip dependency change"),
    _rx(r"^mkdir(\s|$)", "create directory"),
    _rx(r"^rmdir(\s|$)", "remove directory"),
    _rx(r"^touch(\s|$)", "create file"),
    _rx(r"^cp(\s|$)", "copy files"),
    _rx(r"^mv(\s|$)", "move files"),
    _rx(r"^rm(\s|$)", "remove files"),
    _rx(r"^ln(\s|$)", "create link"),
    _rx(r"^chmod(\s|$)", "change permissions"),
    _rx(r"^git (add|commit|push|pull|fetch|checkout|switch|merge|rebase|stash|tag)(\s|$)", "git write operation"),
    _rx(r"^(npm|yarn) run(\s|$)", "run package script"),
    _rx(r"^(npm|yarn) build(\s|$)", "run build"),
    _rx(r"^make(\s|$)", "run make"),
    _rx(r"^tar(\s|$)", "archive files"),
    _rx(r"^zip(\s|$)", "archive files"),
    _rx(r"^unzip(\s|$)", "extract archive"),
    _rx(r"^curl(\s|$)", "network request"),
    _rx(r"^wget(\s|$)", "network download"),
    _rx(r"^docker(\s|$)", "container operation"),
)

DANGEROUS_PATTERNS: tuple[CommandPattern, ...] = (
    _rx(r"\brm\s+" + _RM_RECURSIVE + _RM_FORCE, "recursive forced delete"),
    _rx(r"(^|[\s;&|(])sudo(\s|$)", "privilege escalation"),
    _rx(r"(^|[\s;&|(])su(\s+-|\s+root|$)", "switch user"),
    _rx(r"\bchmod\s+(-R\s+)?777\b", "world-writable permissions"),
    _rx(r"\bchmod\s+(\+s|[24][0-7]{3})\b", "setuid/setgid bit"),
    _rx(r"\bchown\s+-R\b", "recursive ownership change"),
    _rx(r"\bchown\s+root\b", "ownership change to root"),
    _rx(r"\bdd\s+if=", "raw disk copy"),
    _rx(r"\bsystemctl\b", "service manager"),
    _rx(r"(^|[\s;&|])service\s+\S+\s+(start|stop|restart|reload)\b", "service control"),
    _rx(r"\bkill\s+-(9|KILL)\b", "force kill"),
    _rx(r"\b(killall|pkill)\b", "kill by name"),
    _rx(r"(^|[\s;&|])(ch)?passwd(\s|$)", "password change"),
    _rx(r"\bgit\s+push\s+.*(--force|-f)\b", "force push"),
    _rx(r"\bgit\s+reset\s+--hard\b", "discard commits"),
    _rx(r"\bgit\s+clean\s+-[a-zA-Z]*f", "delete untracked files"),
    _rx(r"\bfind\b.*\s-delete\b", "find with delete"),
    _rx(r"\b(nc|netcat)\s+(-[a-zA-Z]*\s+)*-[a-zA-Z]*l", "listening socket"),
    _rx(r"/etc/(shadow|gshadow|sudoers)\b", "credential file access"),
    _rx(r">\s*/etc/", "write into /etc"),
    _rx(r"\bcrontab\s+-r\b", "remove crontab"),
)

BLOCKED_PATTERNS: tuple[CommandPattern, ...] = (
    _rx(
        r"\brm\s+" + _RM_RECURSIVE + r"(?:-\S+\s+)+(?:/\*?|~/?|\$HOME/?|\$\{HOME\}/?)(?=\s|;|&|\||$)",
        "delete root or home",
    ),
    _rx(r"\bmkfs(\.\w+)?\b", "format filesystem"),
    _rx(r"\bfdisk\b", "partition disk"),
    _rx(r"\bparted\b", "partition disk"),
    _rx(r"\bdd\s+if=/dev/(zero|random|urandom)\b", "overwrite with raw data"),
    _rx(r"\bdd\b.*\bof=/dev/(sd|hd|nvme|xvd|vd)", "write raw device"),
    _rx(r">\s*/dev/(sd|hd|nvme|xvd|vd)[a-z0-9]*", "redirect into raw device"),
    _rx(r":\s*\(\s*\)\s*\{.*:\s*\|\s*:.*&.*\}", "fork bomb"),
    _rx(r"\bfor\s*\(\(\s*;\s*;\s*\)\)", "unbounded loop"),
    _rx(r"\bwhile\s+true\s*;?\s*do\b", "unbounded loop"),
    _rx(r"(^|[\s;&|])(shutdown|reboot|halt|poweroff)(\s|;|&|\||$)", "power state change"),
    _rx(r"(^|[\s;&|])init\s+[06](\s|$)", "runlevel change"),
    _rx(r"\btruncate\s+-s\s*0\s+/", "truncate system file"),
    _rx(r"\b(shred|wipe|srm)\b.*/", "secure delete"),
    _rx(r"\bformat\s+[a-zA-Z]:", "format drive"),
    _rx(r"\bchmod\s+(-R\s+)?777\s+/(\s|$)", "open permissions on root"),
)

EXPANSION_DETECTORS: tuple[Detector, ...] = (
    Detector(
        name="command_substitution",
        regex=re.compile(r"\$\([^)]*\)|`[^`]*`"),
        factor="Command substitution ($(...) or backticks) runs a nested command",
        impact="Nested command output is executed or interpolated",
        mitigation="Run the inner command on its own first and inspect its output",
    ),
    Detector(
        name="variable_expansion",
        regex=re.compile(r"\$\{[^}]*\}|\$[A-Za-z_][A-Za-z0-9_]*"),
        factor="Variable expansion makes the final arguments depend on the environment",
        impact="Arguments are not known until the shell expands them",
        mitigation="Replace variables with literal values",
    ),
    Detector(
        name="pipe_to_shell",
        regex=re.compile(r"\|\s*(sudo\s+)?(ba|z|k|da|fi)?sh\b"),
        factor="Output is piped into a shell interpreter",
        impact="Arbitrary downloaded or generated code is executed",
        mitigation="Save the script to a file and review it before running",
    ),
    Detector(
        name="process_substitution",
        regex=re.compile(r"[<>]\([^)]*\)"),
        factor="Process substitution runs a nested command",
        impact="Nested command output is executed or interpolated",
        mitigation="Run the inner command on its own first",
    ),
)

TRAVERSAL_DETECTORS: tuple[Detector, ...] = (
    Detector(
        name="parent_traversal",
        regex=re.compile(r"(^|[\s/=\"'])\.\.([/\\]|\s|$)"),
        factor="Path traversal (..) reaches outside the current directory",
        impact="Files outside the workspace may be read or modified",
        mitigation="Use paths inside the workspace",
    ),
)

ANOMALY_DETECTORS: tuple[Detector, ...] = (
    Detector(
        name="control_characters",
        regex=re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]"),
        factor="Command contains control characters",
        impact="Terminal output may hide part of the command",
        mitigation="Retype the command without escape sequences",
    ),
)

CATEGORY_PROFILES: dict[RiskCategory, TierProfile] = {
    RiskCategory.SAFE: TierProfile(
        command_type="safe_operation",
        impact="Read-only or low-impact operation",
    ),
    RiskCategory.LOW: TierProfile(
        command_type="unknown_command",
        impact="Unverified operation",
        suggestions=("Verify what the command does before running it",),
    ),
    RiskCategory.MEDIUM: TierProfile(
        command_type="risky_operation",
        impact="Modifies the workspace",
        suggestions=(
            "Review the operation before proceeding",
            "Ensure the workspace is backed up if needed",
        ),
    ),
    RiskCategory.HIGH: TierProfile(
        command_type="dangerous_operation",
        impact="Could affect the system or destroy data",
        suggestions=(
            "Consider a safer alternative",
            "Create backups before modifying important data",
        ),
    ),
    RiskCategory.CRITICAL: TierProfile(
        command_type="blocked_operation",
        impact="Potentially irreversible system damage",
        suggestions=("Use a safer alternative",),
    ),
}

_DEFAULT_TIERS: dict[PatternTier, tuple[CommandPattern, ...]] = {
    PatternTier.SAFE: SAFE_PATTERNS,
    PatternTier.RISKY: RISKY_PATTERNS,
    PatternTier.DANGEROUS: DANGEROUS_PATTERNS,
    PatternTier.BLOCKED: BLOCKED_PATTERNS,
}


class PatternRegistry:
    """Read-only table of patterns keyed by tier."""

    def __init__(
        self,
        tiers: Mapping[PatternTier, Sequence[CommandPattern]],
        expansion: Sequence[Detector] = EXPANSION_DETECTORS,
        traversal: Sequence[Detector] = TRAVERSAL_DETECTORS,
        anomalies: Sequence[Detector] = ANOMALY_DETECTORS,
    ) -> None:
        self._tiers = MappingProxyType(
            {tier: tuple(tiers.get(tier, ())) for tier in PatternTier}
        )
        self.expansion = tuple(expansion)
        self.traversal = tuple(traversal)
        self.anomalies = tuple(anomalies)

    @classmethod
    def default(cls) -> PatternRegistry:
        return cls(_DEFAULT_TIERS)

    @classmethod
    def from_settings(cls, settings) -> PatternRegistry:
        registry = cls.default().with_operator_patterns(
            safe=settings.operator_safe_patterns,
            blocked=settings.operator_blocked_patterns,
        )
        registry.validate()
        return registry

    def with_operator_patterns(
        self,
        safe: Iterable[str] = (),
        blocked: Iterable[str] = (),
    ) -> PatternRegistry:
        tiers = {tier: list(patterns) for tier, patterns in self._tiers.items()}
        for tier, texts in ((PatternTier.SAFE, safe), (PatternTier.BLOCKED, blocked)):
            known = {p.text for p in tiers[tier]}
            for text in texts:
                if text in known:
                    continue
                tiers[tier].append(CommandPattern.compile(text, description=f"operator pattern {text!r}"))
                known.add(text)
        return PatternRegistry(tiers, self.expansion, self.traversal, self.anomalies)

    def patterns(self, tier: PatternTier) -> tuple[CommandPattern, ...]:
        return self._tiers[tier]

    def match(self, tier: PatternTier, candidates: Sequence[str]) -> list[CommandPattern]:
        return [p for p in self._tiers[tier] if any(p.matches(c) for c in candidates)]

    @property
    def malformed(self) -> list[CommandPattern]:
        return [p for patterns in self._tiers.values() for p in patterns if p.malformed]

    def validate(self) -> None:
        """No SAFE pattern may describe a command that DANGEROUS or BLOCKED also match."""
        conflicts: list[str] = []
        for safe in self._tiers[PatternTier.SAFE]:
            sample = safe.representative()
            if not sample:
                continue
            for tier in (PatternTier.BLOCKED, PatternTier.DANGEROUS):
                for other in self._tiers[tier]:
                    if other.matches(sample):
                        conflicts.append(f"SAFE {safe.text!r} overlaps {tier.value} {other.text!r}")
        if conflicts:
            raise SecurityViolationError(
                "Pattern registry overlap: " + "; ".join(conflicts)
            )
