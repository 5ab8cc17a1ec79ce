"""Abstract base for process runners."""

from __future__ import annotations

import abc

from shellguard.models.execution import ProcessResult


class BaseRunner(abc.ABC):
    @abc.abstractmethod
    async def run(self, command: str, cwd: str, timeout: float) -> ProcessResult:
        """Run ``command`` in ``cwd``; a command still running after ``timeout`` seconds is killed."""
        ...  # pragma: no cover
