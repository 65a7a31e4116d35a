"""Async subprocess execution and result assembly."""

from __future__ import annotations

import asyncio
import os
import subprocess
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import structlog

from gitrunner.lib.config.settings import RunnerConfig
from gitrunner.lib.exec.collector import StreamCollector
from gitrunner.lib.exec.errors import LaunchError
from gitrunner.lib.exec.invocation import CommandInvocation
from gitrunner.lib.exec.result import ExecutionResult
from gitrunner.lib.exec.timeout import (
    CommandTimeoutError,
    terminate_process,
    wait_for_process_exit,
)

_DEFAULT_CONFIG = RunnerConfig()
# Keeps unattended runs on Windows from flashing a console window.
_NO_WINDOW_FLAGS = getattr(subprocess, "CREATE_NO_WINDOW", 0)
logger = structlog.get_logger(__name__)


def build_child_env(overrides: Mapping[str, str]) -> dict[str, str] | None:
    """Return the child environment, or None to inherit the parent's unchanged."""

    if not overrides:
        return None
    env = dict(os.environ)
    env.update(overrides)
    return env


@dataclass(frozen=True, slots=True)
class LaunchedProcess:
    """A started child together with its two output pipes."""

    process: asyncio.subprocess.Process
    stdout: asyncio.StreamReader
    stderr: asyncio.StreamReader


async def launch_process(
    invocation: CommandInvocation,
    *,
    config: RunnerConfig = _DEFAULT_CONFIG,
) -> LaunchedProcess:
    """Start the child with piped, non-inherited output streams."""

    cwd = invocation.cwd
    if not cwd.is_dir():
        raise LaunchError(
            f"Working directory does not exist or is not a directory: {cwd}",
            program=invocation.program,
            cwd=cwd,
        )

    try:
        process = await asyncio.create_subprocess_exec(
            *invocation.argv,
            cwd=str(cwd),
            env=build_child_env(invocation.env_overrides()),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
            creationflags=_NO_WINDOW_FLAGS,
            limit=config.stream_limit_bytes,
        )
    except OSError as exc:
        raise LaunchError(
            f"Cannot start '{invocation.program}': {exc.strerror or exc}",
            program=invocation.program,
            cwd=cwd,
        ) from exc
    except ValueError as exc:
        # NUL bytes in argv or env, or an env name containing '='.
        raise LaunchError(
            f"Cannot start '{invocation.program}': {exc}",
            program=invocation.program,
            cwd=cwd,
        ) from exc

    if process.stdout is None or process.stderr is None:
        await terminate_process(process, grace_seconds=config.kill_grace_seconds)
        _release_process(process)
        raise LaunchError(
            "Subprocess did not expose stdout/stderr pipes.",
            program=invocation.program,
            cwd=cwd,
        )
    return LaunchedProcess(process=process, stdout=process.stdout, stderr=process.stderr)


async def _join_readers(readers: tuple[asyncio.Task[None], ...], *, timeout: float) -> bool:
    """Wait for drain tasks to reach EOF; return False if any is still pending."""

    _, pending = await asyncio.wait(readers, timeout=timeout)
    return not pending


async def _cancel_readers(readers: tuple[asyncio.Task[None], ...]) -> None:
    for task in readers:
        if not task.done():
            task.cancel()
    await asyncio.gather(*readers, return_exceptions=True)


def _release_process(process: asyncio.subprocess.Process) -> None:
    # asyncio exposes no public close for a subprocess; closing the transport
    # releases both pipes and kills the child if it is somehow still alive.
    transport = getattr(process, "_transport", None)
    if transport is not None:
        transport.close()


async def run_command_async(
    invocation: CommandInvocation,
    *,
    config: RunnerConfig | None = None,
) -> ExecutionResult:
    """Run one invocation to completion, timeout, or launch failure.

    Every failure mode is reported through the returned result; only caller
    cancellation propagates, after the child tree has been terminated.
    """

    settings = config or _DEFAULT_CONFIG
    command_text = invocation.command_text
    log = logger.bind(command=command_text, cwd=str(invocation.cwd))
    started = time.monotonic()

    def _elapsed() -> float:
        return time.monotonic() - started

    try:
        launched = await launch_process(invocation, config=settings)
    except LaunchError as exc:
        log.warning("Command could not be started.", error=str(exc))
        return ExecutionResult.launch_failed(
            command_text,
            error=f"Error executing command: {exc}",
            duration_seconds=_elapsed(),
        )

    process = launched.process
    log.debug("Command started.", pid=process.pid, timeout_seconds=invocation.timeout_seconds)
    stdout = StreamCollector("stdout", encoding=settings.encoding)
    stderr = StreamCollector("stderr", encoding=settings.encoding)
    # Draining starts before the wait so a full pipe can never stall the child.
    readers = (
        asyncio.create_task(stdout.drain(launched.stdout)),
        asyncio.create_task(stderr.drain(launched.stderr)),
    )

    try:
        try:
            return_code = await wait_for_process_exit(
                process,
                timeout_seconds=invocation.timeout_seconds,
                kill_grace_seconds=settings.kill_grace_seconds,
            )
        except CommandTimeoutError as exc:
            log.warning("Command timed out.", timeout_seconds=invocation.timeout_seconds)
            await _join_readers(readers, timeout=settings.drain_grace_seconds)
            return ExecutionResult.timed_out(
                command_text,
                error=str(exc),
                output=stdout.text(),
                duration_seconds=_elapsed(),
            )

        remaining = invocation.timeout_seconds - _elapsed()
        drained = await _join_readers(
            readers,
            timeout=max(remaining, settings.drain_grace_seconds),
        )
        if not drained:
            log.warning("Command exited but its output pipes stayed open; killing descendants.")
            await terminate_process(process, grace_seconds=settings.kill_grace_seconds)
            await _join_readers(readers, timeout=settings.drain_grace_seconds)

        log.debug("Command finished.", exit_code=return_code)
        return ExecutionResult.completed(
            command_text,
            exit_code=return_code,
            output=stdout.text(),
            error=stderr.text(),
            duration_seconds=_elapsed(),
        )
    except asyncio.CancelledError:
        await terminate_process(process, grace_seconds=settings.kill_grace_seconds)
        raise
    except Exception as exc:
        log.exception("Command execution failed.")
        await terminate_process(process, grace_seconds=settings.kill_grace_seconds)
        return ExecutionResult.launch_failed(
            command_text,
            error=f"Error executing command: {exc}",
            output=stdout.text(),
            duration_seconds=_elapsed(),
        )
    finally:
        await _cancel_readers(readers)
        _release_process(process)


def run_command(
    invocation: CommandInvocation,
    *,
    config: RunnerConfig | None = None,
) -> ExecutionResult:
    """Blocking facade over `run_command_async`."""

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(run_command_async(invocation, config=config))

    # Already inside an event loop: run on a private loop in a worker thread.
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="gitrunner") as pool:
        return pool.submit(asyncio.run, run_command_async(invocation, config=config)).result()


class CommandRunner:
    """Engine owner bound to one immutable config.

    Holds no per-call state, so one runner may serve concurrent invocations.
    """

    def __init__(self, config: RunnerConfig | None = None) -> None:
        self._config = config or _DEFAULT_CONFIG

    @property
    def config(self) -> RunnerConfig:
        return self._config

    def invocation(
        self,
        program: str,
        *args: str,
        cwd: Path,
        timeout_seconds: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandInvocation:
        return CommandInvocation(
            program=program,
            cwd=cwd,
            args=args,
            timeout_seconds=(
                timeout_seconds
                if timeout_seconds is not None
                else self._config.default_timeout_seconds
            ),
            env=_env_pairs(env),
        )

    def run(self, invocation: CommandInvocation) -> ExecutionResult:
        return run_command(invocation, config=self._config)

    async def run_async(self, invocation: CommandInvocation) -> ExecutionResult:
        return await run_command_async(invocation, config=self._config)

    def execute(
        self,
        program: str,
        *args: str,
        cwd: Path,
        timeout_seconds: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        """Build an invocation from call arguments and run it."""

        return self.run(
            self.invocation(
                program,
                *args,
                cwd=cwd,
                timeout_seconds=timeout_seconds,
                env=env,
            )
        )


def _env_pairs(env: Mapping[str, str] | None) -> tuple[tuple[str, str], ...]:
    if not env:
        return ()
    return tuple(env.items())
