"""Custom exception hierarchy for shellguard."""

from __future__ import annotations


class ShellGuardError(Exception):
    """Base exception for all shellguard errors."""


class ParseError(ShellGuardError):
    """Raised when the model's command proposal cannot be parsed."""


class SecurityViolationError(ShellGuardError):
    """Raised when the pattern registry fails its startup invariants."""


class ConfigurationError(ShellGuardError):
    """Raised when a required setting is missing or unusable."""

    def __init__(self, message: str, key: str = "") -> None:
        super().__init__(message)
        self.key = key


class ExecutionError(ShellGuardError):
    """Raised when a command cannot be spawned."""

    def __init__(self, message: str, command: str = "") -> None:
        super().__init__(message)
        self.command = command
