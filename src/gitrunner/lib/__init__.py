"""Core gitrunner library exports."""

from gitrunner.lib.exec import CommandInvocation, CommandRunner, ExecutionResult, ExecutionStatus
from gitrunner.lib.git import GitClient

__all__ = ["CommandInvocation", "CommandRunner", "ExecutionResult", "ExecutionStatus", "GitClient"]
