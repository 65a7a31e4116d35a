"""Structured outcome of one command invocation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from gitrunner.lib.formatting import FormatContext, join_sections

# Both sentinels sit outside the 0-255 range a POSIX child can report.
TIMEOUT_EXIT_CODE: Final[int] = 9998
LAUNCH_FAILURE_EXIT_CODE: Final[int] = 9999


class ExecutionStatus(StrEnum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    LAUNCH_FAILED = "launch_failed"


_SENTINEL_BY_STATUS: dict[ExecutionStatus, int] = {
    ExecutionStatus.TIMED_OUT: TIMEOUT_EXIT_CODE,
    ExecutionStatus.LAUNCH_FAILED: LAUNCH_FAILURE_EXIT_CODE,
}


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Exactly one of these is produced per invocation."""

    command: str
    output: str
    error: str
    exit_code: int
    status: ExecutionStatus = ExecutionStatus.COMPLETED
    duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        expected = _SENTINEL_BY_STATUS.get(self.status)
        if expected is not None and self.exit_code != expected:
            raise ValueError(
                f"Status {self.status} requires exit code {expected}, got {self.exit_code}."
            )

    @classmethod
    def completed(
        cls,
        command: str,
        *,
        exit_code: int,
        output: str,
        error: str,
        duration_seconds: float = 0.0,
    ) -> ExecutionResult:
        return cls(
            command=command,
            output=output,
            error=error,
            exit_code=exit_code,
            status=ExecutionStatus.COMPLETED,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def timed_out(
        cls,
        command: str,
        *,
        error: str,
        output: str = "",
        duration_seconds: float = 0.0,
    ) -> ExecutionResult:
        return cls(
            command=command,
            output=output,
            error=error,
            exit_code=TIMEOUT_EXIT_CODE,
            status=ExecutionStatus.TIMED_OUT,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def launch_failed(
        cls,
        command: str,
        *,
        error: str,
        output: str = "",
        duration_seconds: float = 0.0,
    ) -> ExecutionResult:
        return cls(
            command=command,
            output=output,
            error=error,
            exit_code=LAUNCH_FAILURE_EXIT_CODE,
            status=ExecutionStatus.LAUNCH_FAILED,
            duration_seconds=duration_seconds,
        )

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def is_timed_out(self) -> bool:
        return self.status == ExecutionStatus.TIMED_OUT

    def output_lines(self) -> list[str]:
        return [line for line in self.output.splitlines() if line.strip()]

    def to_payload(self) -> dict[str, object]:
        return {
            "command": self.command,
            "output": self.output,
            "error": self.error,
            "exit_code": self.exit_code,
            "status": self.status.value,
            "success": self.success,
            "duration_seconds": round(self.duration_seconds, 3),
        }

    def format_text(self, ctx: FormatContext | None = None) -> str:
        """Render output for a terminal.

        Quiet mode shows only the error of a failed run; verbose mode adds the
        command line, status and timing, and always shows stderr.
        """

        context = ctx or FormatContext()
        if context.quiet:
            return "" if self.success else self.error
        header = ""
        if context.verbose:
            header = (
                f"$ {self.command}\n"
                f"status: {self.status} exit_code: {self.exit_code} "
                f"duration: {self.duration_seconds:.3f}s"
            )
        show_error = not self.success or context.verbose
        return join_sections(header, self.output, self.error if show_error else "")
