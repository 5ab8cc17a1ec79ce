"""Error taxonomy shared by assessments and execution results."""

from __future__ import annotations

import enum
from collections.abc import Iterable


class ErrorType(str, enum.Enum):
    PERMISSION_ERROR = "PERMISSION_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    SECURITY_ERROR = "SECURITY_ERROR"
    INPUT_VALIDATION = "INPUT_VALIDATION"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Higher wins when several conditions apply to one command.
ERROR_PRIORITIES: dict[ErrorType, int] = {
    ErrorType.PERMISSION_ERROR: 100,
    ErrorType.TIMEOUT_ERROR: 95,
    ErrorType.SECURITY_ERROR: 85,
    ErrorType.INPUT_VALIDATION: 80,
    ErrorType.EXECUTION_ERROR: 70,
    ErrorType.CONFIGURATION_ERROR: 60,
    ErrorType.UNKNOWN_ERROR: 10,
}


def highest_priority(error_types: Iterable[ErrorType]) -> ErrorType | None:
    ranked = sorted(set(error_types), key=lambda e: ERROR_PRIORITIES[e], reverse=True)
    return ranked[0] if ranked else None
