"""Run external commands with captured output, timeouts and structured results."""

__version__ = "0.1.0"
