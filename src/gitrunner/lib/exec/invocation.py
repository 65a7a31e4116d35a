"""Immutable description of one child-process invocation."""

from __future__ import annotations

import shlex
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final

DEFAULT_TIMEOUT_SECONDS: Final[float] = 120.0


def _normalize_env(
    env: Mapping[str, str] | Iterable[tuple[str, str]] | None,
) -> tuple[tuple[str, str], ...]:
    if env is None:
        return ()
    items = env.items() if isinstance(env, Mapping) else env
    normalized: dict[str, str] = {}
    for key, value in items:
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValueError(f"Environment overrides must be str -> str, got {key!r}={value!r}.")
        normalized[key] = value
    return tuple(sorted(normalized.items()))


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """What to run, where, and for how long.

    The working directory travels with every invocation so concurrent calls
    sharing one runner never observe each other's directory.
    """

    program: str
    cwd: Path
    args: tuple[str, ...] = ()
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    env: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.program, str) or not self.program.strip():
            raise ValueError("Cannot build invocation: program is empty.")
        if isinstance(self.args, str):
            raise ValueError("args must be a sequence of strings; use from_string() for text.")
        args = tuple(self.args)
        for arg in args:
            if not isinstance(arg, str):
                raise ValueError(f"Invocation arguments must be str, got {arg!r}.")
        if isinstance(self.timeout_seconds, bool) or self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")

        object.__setattr__(self, "cwd", Path(self.cwd))
        object.__setattr__(self, "args", args)
        object.__setattr__(self, "timeout_seconds", float(self.timeout_seconds))
        object.__setattr__(self, "env", _normalize_env(self.env))

    @classmethod
    def from_string(
        cls,
        program: str,
        arguments: str,
        *,
        cwd: Path,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> CommandInvocation:
        """Split a pre-joined argument string with POSIX shell word rules."""

        return cls(
            program=program,
            cwd=cwd,
            args=tuple(shlex.split(arguments)),
            timeout_seconds=timeout_seconds,
        )

    @property
    def argv(self) -> tuple[str, ...]:
        return (self.program, *self.args)

    @property
    def command_text(self) -> str:
        return shlex.join(self.argv)

    def env_overrides(self) -> dict[str, str]:
        return dict(self.env)

    def with_timeout(self, timeout_seconds: float) -> CommandInvocation:
        return replace(self, timeout_seconds=timeout_seconds)
