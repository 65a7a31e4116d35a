"""Command execution engine primitives."""

from gitrunner.lib.exec.collector import StreamCollector
from gitrunner.lib.exec.errors import FailureKind, LaunchError, classify_result
from gitrunner.lib.exec.invocation import DEFAULT_TIMEOUT_SECONDS, CommandInvocation
from gitrunner.lib.exec.result import (
    LAUNCH_FAILURE_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    ExecutionResult,
    ExecutionStatus,
)
from gitrunner.lib.exec.spawn import (
    CommandRunner,
    LaunchedProcess,
    launch_process,
    run_command,
    run_command_async,
)
from gitrunner.lib.exec.timeout import (
    DEFAULT_KILL_GRACE_SECONDS,
    CommandTimeoutError,
    terminate_process,
    wait_for_process_exit,
)

__all__ = [
    "DEFAULT_KILL_GRACE_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "LAUNCH_FAILURE_EXIT_CODE",
    "TIMEOUT_EXIT_CODE",
    "CommandInvocation",
    "CommandRunner",
    "CommandTimeoutError",
    "ExecutionResult",
    "ExecutionStatus",
    "FailureKind",
    "LaunchError",
    "LaunchedProcess",
    "StreamCollector",
    "classify_result",
    "launch_process",
    "run_command",
    "run_command_async",
    "terminate_process",
    "wait_for_process_exit",
]
