"""Structlog setup for the gitrunner CLI."""

from __future__ import annotations

import logging as std_logging
import sys

import structlog

_LEVEL_BY_VERBOSITY: dict[int, int] = {
    -1: std_logging.ERROR,
    0: std_logging.WARNING,
    1: std_logging.INFO,
}


def level_for_verbosity(verbosity: int) -> int:
    """Map `-q`/`-v` counts onto a stdlib level; two or more `-v` means DEBUG."""

    if verbosity >= 2:
        return std_logging.DEBUG
    return _LEVEL_BY_VERBOSITY[max(verbosity, -1)]


def _processors(json_mode: bool) -> list[structlog.typing.Processor]:
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_mode:
        # Engine failures log with exc_info; JSON needs the traceback as a string.
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(json_mode: bool = False, verbosity: int = 0) -> None:
    """Send engine and config logs to stderr; stdout carries child output only."""

    level = level_for_verbosity(verbosity)
    handler = std_logging.StreamHandler(sys.stderr)
    handler.setFormatter(std_logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    std_logging.basicConfig(level=level, handlers=[handler], force=True)

    structlog.configure(
        processors=_processors(json_mode),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
