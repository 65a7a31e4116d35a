"""Timeout supervisor and process-group helpers."""

from __future__ import annotations

import asyncio
import signal
import sys

import pytest

from gitrunner.lib.exec.process_groups import force_kill_signal, signal_process_group
from gitrunner.lib.exec.timeout import (
    CommandTimeoutError,
    terminate_process,
    wait_for_process_exit,
)


async def _spawn(code: str) -> asyncio.subprocess.Process:
    return await asyncio.create_subprocess_exec(
        sys.executable,
        "-c",
        code,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
        start_new_session=True,
    )


def test_timeout_error_message_names_the_limit() -> None:
    error = CommandTimeoutError(120.0)

    assert str(error) == "Command timed out after 120 seconds"
    assert error.timeout_seconds == 120.0
    assert isinstance(error, TimeoutError)


@pytest.mark.asyncio
async def test_wait_returns_exit_code_within_deadline() -> None:
    process = await _spawn("raise SystemExit(4)")

    code = await wait_for_process_exit(process, timeout_seconds=10.0)

    assert code == 4


@pytest.mark.asyncio
async def test_wait_rejects_non_positive_timeout() -> None:
    process = await _spawn("pass")
    try:
        with pytest.raises(ValueError, match="timeout_seconds"):
            await wait_for_process_exit(process, timeout_seconds=0)
    finally:
        await process.wait()


@pytest.mark.asyncio
async def test_wait_kills_process_on_expiry() -> None:
    process = await _spawn("import time\nwhile True:\n    time.sleep(0.1)\n")

    with pytest.raises(CommandTimeoutError):
        await wait_for_process_exit(process, timeout_seconds=0.3, kill_grace_seconds=0.2)

    assert process.returncode is not None


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")
@pytest.mark.asyncio
async def test_terminate_escalates_when_sigterm_is_ignored() -> None:
    process = await asyncio.create_subprocess_exec(
        sys.executable,
        "-c",
        "import signal, time\n"
        "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
        "print('ready', flush=True)\n"
        "while True:\n    time.sleep(0.1)\n",
        stdout=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    assert process.stdout is not None
    assert await asyncio.wait_for(process.stdout.readline(), timeout=10.0) == b"ready\n"

    await terminate_process(process, grace_seconds=0.2)

    assert process.returncode == -force_kill_signal()
    await process.stdout.read()


@pytest.mark.asyncio
async def test_terminate_is_noop_for_exited_process() -> None:
    process = await _spawn("pass")
    await process.wait()

    await terminate_process(process, grace_seconds=0.1)
    signal_process_group(process, signal.SIGTERM)

    assert process.returncode == 0
