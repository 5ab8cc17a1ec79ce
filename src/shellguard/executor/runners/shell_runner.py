"""Shell runner — spawns commands through the system shell with asyncio."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time

import psutil

from shellguard.exceptions import ExecutionError
from shellguard.executor.runners.base import BaseRunner
from shellguard.models.execution import TIMEOUT_EXIT_CODE, ProcessResult

logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 1024 * 1024
TRUNCATION_NOTICE = "\n[output truncated]"


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    if len(data) > MAX_OUTPUT_BYTES:
        return data[:MAX_OUTPUT_BYTES].decode(errors="replace") + TRUNCATION_NOTICE
    return data.decode(errors="replace")


def kill_process_tree(pid: int) -> list[int]:
    """Kill ``pid`` and all of its descendants, children first."""
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return []
    procs = parent.children(recursive=True)
    procs.append(parent)
    killed: list[int] = []
    for proc in procs:
        try:
            proc.kill()
            killed.append(proc.pid)
        except (psutil.NoSuchProcess, psutil.AccessDenied) as exc:
            logger.debug("Could not kill PID %s: %s", proc.pid, exc)
    psutil.wait_procs(procs, timeout=1)
    return killed


class ShellRunner(BaseRunner):
    async def run(self, command: str, cwd: str, timeout: float) -> ProcessResult:
        started = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                cwd=cwd or None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ExecutionError(f"Failed to start command: {exc}", command=command) from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            killed = kill_process_tree(proc.pid)
            logger.warning(
                "Command %r exceeded %.1fs; killed %d process(es)", command, timeout, len(killed)
            )
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(proc.wait(), timeout=1)
            return ProcessResult(
                exit_code=TIMEOUT_EXIT_CODE,
                stderr=f"Command timed out after {timeout:g} seconds",
                timed_out=True,
                duration_ms=(time.monotonic() - started) * 1000,
            )

        return ProcessResult(
            exit_code=proc.returncode if proc.returncode is not None else 0,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            duration_ms=(time.monotonic() - started) * 1000,
        )
