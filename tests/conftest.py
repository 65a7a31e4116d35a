"""Shared pytest fixtures for engine and CLI checks."""

from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

PACKAGE_ROOT = Path(__file__).resolve().parents[1]


@dataclass(frozen=True, slots=True)
class CliResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def pid_alive(pid: int) -> bool:
    """Return True while `pid` is a live (non-zombie) process."""

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    stat_path = Path(f"/proc/{pid}/stat")
    try:
        stat = stat_path.read_text(encoding="utf-8")
    except OSError:
        return True
    # Field 3 is the state; a reparented zombie may never be reaped in containers.
    return stat.rpartition(")")[2].split()[0] != "Z"


@pytest.fixture
def process_alive() -> Callable[[int], bool]:
    return pid_alive


@pytest.fixture
def package_root() -> Path:
    return PACKAGE_ROOT


@pytest.fixture
def fake_program(package_root: Path) -> tuple[str, str]:
    """Program + leading argument that runs tests/fake_program.py."""

    return sys.executable, str(package_root / "tests" / "fake_program.py")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("GITRUNNER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cli_env(package_root: Path) -> dict[str, str]:
    env = os.environ.copy()
    existing = env.get("PYTHONPATH", "")
    root = str(package_root / "src")
    env["PYTHONPATH"] = root if not existing else f"{root}{os.pathsep}{existing}"
    return env


@pytest.fixture
def run_gitrunner(package_root: Path, cli_env: dict[str, str]) -> Callable[..., CliResult]:
    def _run(args: list[str], timeout: float = 30.0, cwd: Path | None = None) -> CliResult:
        completed = subprocess.run(
            [sys.executable, "-m", "gitrunner", *args],
            cwd=cwd or package_root,
            env=cli_env,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        return CliResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    return _run
