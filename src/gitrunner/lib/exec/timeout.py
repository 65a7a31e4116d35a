"""Timeout helpers for subprocess execution."""

from __future__ import annotations

import asyncio
import signal

from gitrunner.lib.config.settings import RunnerConfig
from gitrunner.lib.exec.process_groups import force_kill_signal, signal_process_group

DEFAULT_KILL_GRACE_SECONDS = RunnerConfig().kill_grace_seconds


class CommandTimeoutError(TimeoutError):
    """Raised when a child process exceeds the configured timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Command timed out after {timeout_seconds:g} seconds")


async def terminate_process(
    process: asyncio.subprocess.Process,
    *,
    grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS,
) -> None:
    """Terminate the child's process tree, force-killing it after the grace period."""

    if process.returncode is not None:
        # The leader is gone but descendants may still hold the pipes.
        signal_process_group(process, force_kill_signal())
        return

    signal_process_group(process, signal.SIGTERM)
    try:
        await asyncio.wait_for(process.wait(), timeout=grace_seconds)
    except TimeoutError:
        pass
    signal_process_group(process, force_kill_signal())
    if process.returncode is None:
        await process.wait()


async def wait_for_process_exit(
    process: asyncio.subprocess.Process,
    *,
    timeout_seconds: float,
    kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS,
) -> int:
    """Wait for process completion with timeout-triggered termination."""

    if timeout_seconds <= 0:
        raise ValueError("timeout_seconds must be > 0.")

    try:
        return await asyncio.wait_for(process.wait(), timeout=timeout_seconds)
    except TimeoutError as exc:
        await terminate_process(process, grace_seconds=kill_grace_seconds)
        raise CommandTimeoutError(timeout_seconds) from exc
