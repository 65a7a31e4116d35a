"""Runner configuration loading."""

from gitrunner.lib.config._paths import resolve_repo_root
from gitrunner.lib.config.settings import RunnerConfig, config_path, load_config

__all__ = ["RunnerConfig", "config_path", "load_config", "resolve_repo_root"]
