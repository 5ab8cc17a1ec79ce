"""JSON schema for OpenAI structured output."""

from __future__ import annotations

PROPOSAL_JSON_SCHEMA: dict = {
    "name": "command_proposal",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "command": {
                "type": "string",
                "description": "A single shell command, or an empty string if none is safe.",
            },
            "explanation": {
                "type": "string",
                "description": "Brief explanation of what the command does.",
            },
            "confidence": {
                "type": "number",
                "description": "Confidence score between 0.0 and 1.0.",
            },
        },
        "required": ["command", "explanation", "confidence"],
        "additionalProperties": False,
    },
}
