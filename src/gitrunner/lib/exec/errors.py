"""Failure taxonomy for command execution."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from gitrunner.lib.exec.result import ExecutionResult, ExecutionStatus


class LaunchError(RuntimeError):
    """Raised by the launcher when a child process cannot be started.

    The engine catches this and reports it through the launch-failure
    sentinel; it never reaches engine callers.
    """

    def __init__(self, message: str, *, program: str, cwd: Path) -> None:
        self.program = program
        self.cwd = cwd
        super().__init__(message)


class FailureKind(StrEnum):
    NONE = "none"
    LAUNCH_FAILURE = "launch_failure"
    TIMEOUT = "timeout"
    NON_ZERO_EXIT = "non_zero_exit"


def classify_result(result: ExecutionResult) -> FailureKind:
    """Map one result onto the failure taxonomy callers branch on."""

    if result.status == ExecutionStatus.LAUNCH_FAILED:
        return FailureKind.LAUNCH_FAILURE
    if result.status == ExecutionStatus.TIMED_OUT:
        return FailureKind.TIMEOUT
    if result.exit_code != 0:
        # A non-zero exit is an ordinary outcome, not an engine error.
        return FailureKind.NON_ZERO_EXIT
    return FailureKind.NONE
