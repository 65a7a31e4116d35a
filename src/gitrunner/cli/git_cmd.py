"""CLI handlers for the git helper commands."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

from cyclopts import Parameter

from gitrunner.cli.exec_cmd import cli_exit_code
from gitrunner.lib.config import load_config, resolve_repo_root
from gitrunner.lib.exec import ExecutionResult
from gitrunner.lib.git import GitClient, parse_branch_lines

Emitter = Callable[[Any], None]


def _client() -> GitClient:
    repo_root = resolve_repo_root()
    return GitClient(repo_root, config=load_config(repo_root))


def register_git_commands(app: Any, emit: Emitter) -> set[str]:
    def _emit_result(result: ExecutionResult) -> None:
        emit(result)
        code = cli_exit_code(result)
        if code != 0:
            raise SystemExit(code)

    def git_status() -> None:
        """Show the working tree status."""

        _emit_result(_client().status())

    def git_log(
        limit: Annotated[int, Parameter(name="--limit", help="Number of commits to show.")] = 10,
    ) -> None:
        """Show recent commits."""

        _emit_result(_client().log(limit=limit))

    def _emit_listing(result: ExecutionResult, parse: Callable[[ExecutionResult], object]) -> None:
        if not result.success:
            _emit_result(result)
            return
        emit(parse(result))

    def git_branches(
        remote: Annotated[bool, Parameter(name="--remote", help="List remote branches.")] = False,
        all_branches: Annotated[
            bool,
            Parameter(name="--all", help="List local and remote branches."),
        ] = False,
    ) -> None:
        """List branch names."""

        flag = "-a" if all_branches else "-r" if remote else "-l"
        _emit_listing(_client().branch(flag), lambda result: parse_branch_lines(result.output))

    def git_current_branch() -> None:
        """Print the checked-out branch name."""

        _emit_listing(_client().branch("--show-current"), lambda result: result.output.strip())

    def git_remotes() -> None:
        """List configured remotes."""

        _emit_listing(_client().remote(), ExecutionResult.output_lines)

    handlers: dict[str, Callable[..., None]] = {
        "status": git_status,
        "log": git_log,
        "branches": git_branches,
        "current-branch": git_current_branch,
        "remotes": git_remotes,
    }
    for name, handler in handlers.items():
        app.command(handler, name=name)
    return {f"git.{name}" for name in handlers}
