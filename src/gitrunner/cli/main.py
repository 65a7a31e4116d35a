"""Cyclopts CLI entry point for gitrunner."""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated

from cyclopts import App, Parameter

from gitrunner import __version__
from gitrunner.cli.config_cmd import register_config_commands
from gitrunner.cli.exec_cmd import register_exec_command
from gitrunner.cli.git_cmd import register_git_commands
from gitrunner.cli.output import OutputConfig, normalize_output_format
from gitrunner.cli.output import emit as emit_output

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Top-level options that apply to all commands."""

    output: OutputConfig


_GLOBAL_OPTIONS: ContextVar[GlobalOptions | None] = ContextVar("_GLOBAL_OPTIONS", default=None)


def get_global_options() -> GlobalOptions:
    """Return parsed global options for current command."""

    default = GlobalOptions(output=OutputConfig(format="text"))
    return _GLOBAL_OPTIONS.get() or default


def emit(payload: object) -> None:
    """Write command output using current output format settings."""

    emit_output(payload, get_global_options().output)


def _extract_global_options(argv: Sequence[str]) -> tuple[list[str], GlobalOptions]:
    json_mode = False
    porcelain_mode = False
    output_format: str | None = None
    verbosity = 0
    quiet = False
    cleaned: list[str] = []

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--":
            # Everything after the separator belongs to the child command.
            cleaned.extend(argv[i:])
            break
        if arg == "--json":
            json_mode = True
            i += 1
            continue
        if arg == "--porcelain":
            porcelain_mode = True
            i += 1
            continue
        if arg == "--format":
            if i + 1 >= len(argv):
                raise SystemExit("--format requires a value")
            output_format = argv[i + 1]
            i += 2
            continue
        if arg.startswith("--format="):
            output_format = arg.partition("=")[2]
            i += 1
            continue
        if arg in {"-q", "--quiet"}:
            quiet = True
            i += 1
            continue
        if arg in {"-v", "--verbose"}:
            verbosity += 1
            i += 1
            continue

        cleaned.append(arg)
        i += 1

    resolved = normalize_output_format(
        requested=output_format,
        json_mode=json_mode,
        porcelain_mode=porcelain_mode,
    )
    if quiet:
        verbosity = -1
    return cleaned, GlobalOptions(output=OutputConfig(format=resolved, verbosity=verbosity))


app = App(
    name="gitrunner",
    help="Run external commands and git helpers with captured output and timeouts.",
    version=__version__,
    help_formatter="plain",
)


@app.default
def root(
    json_mode: Annotated[
        bool,
        Parameter(name="--json", help="Emit command output as JSON."),
    ] = False,
    output_format: Annotated[
        str | None,
        Parameter(name="--format", help="Set output format: text, json, or porcelain."),
    ] = None,
    porcelain: Annotated[
        bool,
        Parameter(name="--porcelain", help="Emit stable tab-separated key/value output."),
    ] = False,
    quiet: Annotated[
        bool,
        Parameter(name=["--quiet", "-q"], help="Print only errors of failed commands."),
    ] = False,
    verbose: Annotated[
        bool,
        Parameter(name=["--verbose", "-v"], help="Increase log and output detail."),
    ] = False,
) -> None:
    """gitrunner root command with global options."""

    _ = (json_mode, output_format, porcelain, quiet, verbose)
    app.help_print()


git_app = App(name="git", help="Git helper commands", help_formatter="plain")
config_app = App(name="config", help="Runner config commands", help_formatter="plain")

app.command(git_app, name="git")
app.command(config_app, name="config")


def _operation_error_message(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return exc.__class__.__name__


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point used by `gitrunner` and `python -m gitrunner`."""

    from gitrunner.lib.logging import configure_logging

    args = list(sys.argv[1:] if argv is None else argv)
    cleaned_args, options = _extract_global_options(args)

    # Configure logging early so structlog warnings go to stderr, not stdout.
    configure_logging(
        json_mode=options.output.format == "json",
        verbosity=options.output.verbosity,
    )

    token = _GLOBAL_OPTIONS.set(options)
    try:
        try:
            app(cleaned_args)
        except (KeyError, ValueError, FileNotFoundError, OSError) as exc:
            logger.debug("command failed", exc_info=True)
            print(f"error: {_operation_error_message(exc)}", file=sys.stderr)
            raise SystemExit(1) from None
    finally:
        _GLOBAL_OPTIONS.reset(token)


register_exec_command(app, emit)
register_git_commands(git_app, emit)
register_config_commands(config_app, emit)
