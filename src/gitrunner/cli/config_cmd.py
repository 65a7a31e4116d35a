"""CLI handlers for config inspection."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, cast

from gitrunner.lib.config import config_path, load_config, resolve_repo_root
from gitrunner.lib.serialization import to_jsonable

Emitter = Callable[[Any], None]


def register_config_commands(app: Any, emit: Emitter) -> set[str]:
    def config_show() -> None:
        """Show the resolved runner configuration."""

        repo_root = resolve_repo_root()
        payload: dict[str, object] = {"path": config_path(repo_root).as_posix()}
        payload.update(cast("dict[str, object]", to_jsonable(load_config(repo_root))))
        emit(payload)

    def config_path_cmd() -> None:
        """Print the config file location for this repository."""

        emit(config_path(resolve_repo_root()).as_posix())

    app.command(config_show, name="show")
    app.command(config_path_cmd, name="path")
    return {"config.show", "config.path"}
