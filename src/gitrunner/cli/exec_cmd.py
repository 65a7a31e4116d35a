"""CLI handler for running one arbitrary command."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any

from cyclopts import Parameter

from gitrunner.lib.config import load_config, resolve_repo_root
from gitrunner.lib.exec import CommandRunner, ExecutionResult, ExecutionStatus

Emitter = Callable[[Any], None]

TIMEOUT_CLI_EXIT_CODE = 124
LAUNCH_FAILURE_CLI_EXIT_CODE = 127


def cli_exit_code(result: ExecutionResult) -> int:
    """Map a result onto shell conventions; sentinels do not fit in a process status."""

    if result.status == ExecutionStatus.TIMED_OUT:
        return TIMEOUT_CLI_EXIT_CODE
    if result.status == ExecutionStatus.LAUNCH_FAILED:
        return LAUNCH_FAILURE_CLI_EXIT_CODE
    if 0 <= result.exit_code <= 255:
        return result.exit_code
    return 1


def register_exec_command(app: Any, emit: Emitter) -> set[str]:
    def exec_command(
        program: str,
        *args: str,
        cwd: Annotated[
            str | None,
            Parameter(name="--cwd", help="Working directory for the child process."),
        ] = None,
        timeout: Annotated[
            float | None,
            Parameter(name="--timeout", help="Timeout in seconds (default from config)."),
        ] = None,
    ) -> None:
        """Run PROGRAM with ARGS and report its captured output.

        Separate gitrunner options from the child command with `--`.
        """

        repo_root = resolve_repo_root()
        runner = CommandRunner(load_config(repo_root))
        workdir = Path(cwd).expanduser().resolve() if cwd is not None else Path.cwd()
        result = runner.execute(program, *args, cwd=workdir, timeout_seconds=timeout)
        emit(result)
        code = cli_exit_code(result)
        if code != 0:
            raise SystemExit(code)

    app.command(exec_command, name="exec")
    return {"exec"}
