"""Command proposal returned by the language model."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class CommandProposal(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    request: str
    command: str
    explanation: str = ""
    confidence: float = Field(ge=0.0, le=1.0, default=1.0)

    @property
    def is_empty(self) -> bool:
        return not self.command.strip()
