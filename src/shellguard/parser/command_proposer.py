"""OpenAI-based translation of a natural-language request into one shell command."""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import AsyncOpenAI

from shellguard.config.settings import Settings
from shellguard.exceptions import ConfigurationError, ParseError
from shellguard.models.proposal import CommandProposal
from shellguard.parser.prompt_templates import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE
from shellguard.parser.schemas import PROPOSAL_JSON_SCHEMA

logger = logging.getLogger(__name__)


class CommandProposer:
    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._settings.openai_api_key:
                raise ConfigurationError("SHELLGUARD_OPENAI_API_KEY is not set", key="openai_api_key")
            self._client = AsyncOpenAI(api_key=self._settings.openai_api_key)
        return self._client

    async def propose(self, request: str, cwd: str = "") -> CommandProposal:
        if not request.strip():
            raise ParseError("Empty request")

        client = self._get_client()
        user_prompt = USER_PROMPT_TEMPLATE.format(cwd=cwd or ".", request=request)

        try:
            response = await client.chat.completions.create(
                model=self._settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": PROPOSAL_JSON_SCHEMA,
                },
                temperature=0.0,
            )
        except Exception as exc:
            raise ParseError(f"OpenAI API error: {exc}") from exc

        raw = response.choices[0].message.content
        if raw is None:
            raise ParseError("OpenAI returned empty content")

        try:
            data: dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Malformed JSON from OpenAI: {exc}") from exc

        try:
            proposal = CommandProposal(
                request=request,
                command=str(data["command"]).strip(),
                explanation=data.get("explanation", ""),
                confidence=float(data.get("confidence", 1.0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseError(f"Unexpected proposal from OpenAI: {exc}") from exc

        logger.debug("Model proposed %r for %r", proposal.command, request)
        return proposal
