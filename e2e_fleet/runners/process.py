"""Subprocess helpers shared by test runners."""

import asyncio
import contextlib
import logging
import os
import signal
from collections.abc import Sequence
from pathlib import Path

from e2e_fleet.runners.base import RunnerOutput

log = logging.getLogger(__name__)


async def run_process(
    command: Sequence[str],
    *,
    cwd: Path,
    kill_grace_period: float = 5.0,
) -> RunnerOutput:
    """Run a command and capture its combined stdout and stderr.

    The process is started in its own session. If the awaiting task is
    cancelled, the whole process group is terminated before the cancellation
    propagates, so no runner keeps working after its result was abandoned.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=True,
        )
    except FileNotFoundError as error:
        raise RuntimeError(
            f"Test runner executable '{command[0]}' was not found in PATH"
        ) from error

    try:
        stdout, _ = await process.communicate()
    except asyncio.CancelledError:
        log.warning("Terminating abandoned process %d (%s)", process.pid, command[0])
        await terminate_process_group(process, kill_grace_period)
        raise

    return RunnerOutput(
        output=stdout.decode(errors="replace"),
        exit_status=process.returncode if process.returncode is not None else -1,
    )


async def terminate_process_group(
    process: asyncio.subprocess.Process, grace_period: float
) -> None:
    """Send SIGTERM to the process group, then SIGKILL after a grace period."""
    if process.returncode is not None:
        return

    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGTERM)

    try:
        await asyncio.wait_for(process.wait(), timeout=grace_period)
        return
    except TimeoutError:
        pass

    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGKILL)
    await process.wait()
