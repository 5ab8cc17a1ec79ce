"""Application settings loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

MAX_EXECUTION_TIME_LIMIT = 300.0

DEFAULT_SYSTEM_DIRECTORIES = [
    "/",
    "/etc",
    "/usr",
    "/bin",
    "/sbin",
    "/lib",
    "/boot",
    "/dev",
    "/proc",
    "/sys",
    "/var",
    "/root",
]


class Settings(BaseSettings):
    model_config = {"env_prefix": "SHELLGUARD_"}

    openai_api_key: str = Field(default="", description="OpenAI API key (ask command only)")
    openai_model: str = Field(default="gpt-4o", description="OpenAI model name")
    db_path: Path = Field(
        default=Path.home() / ".shellguard" / "audit.db",
        description="SQLite audit database path",
    )
    dry_run: bool = Field(default=False, description="Global dry-run mode")
    log_level: str = Field(default="INFO", description="Logging level")

    require_confirmation_for_risky: bool = Field(
        default=True, description="Prompt before MEDIUM risk commands"
    )
    require_confirmation_for_dangerous: bool = Field(
        default=True, description="Prompt before HIGH risk commands"
    )
    allow_dangerous: bool = Field(
        default=True, description="Allow HIGH risk commands at all (with confirmation)"
    )
    max_execution_time: float = Field(
        default=30.0, description="Hard process timeout in seconds"
    )
    confirmation_timeout: float = Field(
        default=30.0, description="Seconds before an unanswered prompt denies"
    )
    max_command_length: int = Field(default=1000, description="Longer commands are flagged")
    spawn_retries: int = Field(
        default=1, ge=0, description="Extra attempts when a command fails to start"
    )

    trusted_commands: list[str] = Field(
        default_factory=list, description="Patterns trusted for every session"
    )
    allowed_commands: list[str] = Field(
        default_factory=list, description="Extra SAFE tier patterns"
    )
    auto_approve_patterns: list[str] = Field(
        default_factory=list, description="Extra SAFE tier patterns"
    )
    blocked_commands: list[str] = Field(
        default_factory=list, description="Extra BLOCKED tier patterns"
    )
    always_block_patterns: list[str] = Field(
        default_factory=list, description="Extra BLOCKED tier patterns"
    )

    escalate_on_expansion: bool = Field(
        default=True, description="Shell expansion raises the category one tier"
    )
    escalate_on_traversal: bool = Field(
        default=True, description="Path traversal raises the category one tier"
    )
    escalate_dangerous_on_system_path: bool = Field(
        default=True, description="DANGEROUS + system directory target becomes CRITICAL"
    )
    system_directories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SYSTEM_DIRECTORIES),
        description="Directories that count as system paths",
    )

    @field_validator("max_execution_time")
    @classmethod
    def _check_execution_time(cls, value: float) -> float:
        if value <= 0 or value > MAX_EXECUTION_TIME_LIMIT:
            raise ValueError(
                f"max_execution_time must be in (0, {MAX_EXECUTION_TIME_LIMIT:g}] seconds"
            )
        return value

    @field_validator("confirmation_timeout")
    @classmethod
    def _check_confirmation_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("confirmation_timeout must be greater than 0")
        return value

    @property
    def operator_safe_patterns(self) -> list[str]:
        return [*self.allowed_commands, *self.auto_approve_patterns]

    @property
    def operator_blocked_patterns(self) -> list[str]:
        return [*self.blocked_commands, *self.always_block_patterns]
