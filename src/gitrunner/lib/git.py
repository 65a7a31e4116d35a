"""Git helpers built on the command execution engine."""

from __future__ import annotations

from pathlib import Path

from gitrunner.lib.config.settings import RunnerConfig
from gitrunner.lib.exec.result import ExecutionResult
from gitrunner.lib.exec.spawn import CommandRunner

# Git must never block on a credential prompt: stdin is not attached.
_GIT_ENV: dict[str, str] = {"GIT_TERMINAL_PROMPT": "0"}


def parse_branch_lines(output: str) -> list[str]:
    """Return branch names from `git branch` output without the current marker."""

    branches: list[str] = []
    for line in output.splitlines():
        name = line.strip()
        if name.startswith("*"):
            name = name[1:].strip()
        if name:
            branches.append(name)
    return branches


class GitClient:
    """Run git subcommands against one repository directory.

    Arguments are always passed as a list, so values with spaces or quotes
    reach git verbatim.
    """

    def __init__(
        self,
        repo_root: Path,
        *,
        config: RunnerConfig | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._repo_root = Path(repo_root)
        self._runner = runner or CommandRunner(config)
        self._git_path = self._runner.config.git_path

    @property
    def repo_root(self) -> Path:
        return self._repo_root

    def execute(
        self,
        *args: str,
        cwd: Path | None = None,
        timeout_seconds: float | None = None,
    ) -> ExecutionResult:
        return self._runner.execute(
            self._git_path,
            *args,
            cwd=cwd or self._repo_root,
            timeout_seconds=timeout_seconds,
            env=_GIT_ENV,
        )

    def clone(self, repository_url: str, directory: str | None = None) -> ExecutionResult:
        args = ["clone", repository_url]
        if directory:
            args.append(directory)
        return self.execute(*args)

    def status(self, *args: str) -> ExecutionResult:
        return self.execute("status", *args)

    def log(self, limit: int = 10) -> ExecutionResult:
        return self.execute("log", "-n", str(limit))

    def commit(self, message: str) -> ExecutionResult:
        return self.execute("commit", "-m", message)

    def add(self, *paths: str) -> ExecutionResult:
        return self.execute("add", *(paths or (".",)))

    def reset(self, *args: str) -> ExecutionResult:
        return self.execute("reset", *args)

    def tag(self, *args: str) -> ExecutionResult:
        return self.execute("tag", *args)

    def branch(self, *args: str) -> ExecutionResult:
        return self.execute("branch", *args)

    def local_branches(self) -> list[str]:
        return parse_branch_lines(self.branch("-l").output)

    def remote_branches(self) -> list[str]:
        return parse_branch_lines(self.branch("-r").output)

    def all_branches(self) -> list[str]:
        return parse_branch_lines(self.branch("-a").output)

    def current_branch(self) -> str:
        return self.branch("--show-current").output.strip()

    def remote(self, *args: str) -> ExecutionResult:
        return self.execute("remote", *args)

    def remotes(self) -> list[str]:
        return self.remote().output_lines()

    def checkout(self, *args: str) -> ExecutionResult:
        return self.execute("checkout", *args)

    def checkout_branch(self, branch: str) -> bool:
        return self.checkout(branch).success

    def fetch(self, *args: str) -> ExecutionResult:
        return self.execute("fetch", *args)

    def fetch_all(self) -> ExecutionResult:
        return self.fetch("--all")

    def merge(self, *args: str) -> ExecutionResult:
        return self.execute("merge", *args)

    def merge_abort(self) -> ExecutionResult:
        return self.merge("--abort")

    def pull(self, *args: str) -> ExecutionResult:
        return self.execute("pull", *args)

    def push(self, *args: str) -> ExecutionResult:
        return self.execute("push", *args)

    def push_set_upstream(self, remote: str, branch: str) -> ExecutionResult:
        return self.push("--set-upstream", remote, branch)
