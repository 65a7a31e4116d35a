"""Repository-level runner config loader."""

from __future__ import annotations

import codecs
import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import cast

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".gitrunner"
CONFIG_FILENAME = "config.toml"


@dataclass(frozen=True, slots=True)
class RunnerConfig:
    """Resolved operational configuration for command execution."""

    default_timeout_seconds: float = 120.0
    kill_grace_seconds: float = 2.0
    drain_grace_seconds: float = 2.0
    encoding: str = "utf-8"
    stream_limit_bytes: int = 1024 * 1024
    git_path: str = "git"


_SECTION_KEY_MAP: dict[str, dict[str, str]] = {
    "timeouts": {
        "default_seconds": "default_timeout_seconds",
        "default_timeout_seconds": "default_timeout_seconds",
        "kill_grace_seconds": "kill_grace_seconds",
        "drain_grace_seconds": "drain_grace_seconds",
    },
    "streams": {
        "encoding": "encoding",
        "limit_bytes": "stream_limit_bytes",
        "stream_limit_bytes": "stream_limit_bytes",
    },
    "git": {
        "path": "git_path",
        "git_path": "git_path",
    },
}

_TOP_LEVEL_KEY_MAP: dict[str, str] = {
    "default_timeout_seconds": "default_timeout_seconds",
    "kill_grace_seconds": "kill_grace_seconds",
    "drain_grace_seconds": "drain_grace_seconds",
    "encoding": "encoding",
    "stream_limit_bytes": "stream_limit_bytes",
    "git_path": "git_path",
}

_ENV_OVERRIDE_MAP: dict[str, str] = {
    "GITRUNNER_DEFAULT_TIMEOUT_SECONDS": "default_timeout_seconds",
    "GITRUNNER_KILL_GRACE_SECONDS": "kill_grace_seconds",
    "GITRUNNER_DRAIN_GRACE_SECONDS": "drain_grace_seconds",
    "GITRUNNER_ENCODING": "encoding",
    "GITRUNNER_STREAM_LIMIT_BYTES": "stream_limit_bytes",
    "GITRUNNER_GIT_PATH": "git_path",
}

_FLOAT_FIELDS = frozenset(
    {"default_timeout_seconds", "kill_grace_seconds", "drain_grace_seconds"}
)
_INT_FIELDS = frozenset({"stream_limit_bytes"})


def config_path(repo_root: Path) -> Path:
    return repo_root / CONFIG_DIRNAME / CONFIG_FILENAME


def _expected_type_name(field_name: str) -> str:
    if field_name in _INT_FIELDS:
        return "int"
    if field_name in _FLOAT_FIELDS:
        return "float"
    return "str"


def _coerce_file_value(*, field_name: str, raw_value: object, source: str) -> object:
    expected = _expected_type_name(field_name)
    if expected == "int":
        if isinstance(raw_value, bool) or not isinstance(raw_value, int):
            raise ValueError(
                f"Invalid value for '{source}': expected int, got "
                f"{type(raw_value).__name__} ({raw_value!r})."
            )
        return raw_value

    if expected == "float":
        if isinstance(raw_value, bool) or not isinstance(raw_value, int | float):
            raise ValueError(
                f"Invalid value for '{source}': expected float, got "
                f"{type(raw_value).__name__} ({raw_value!r})."
            )
        return float(raw_value)

    if not isinstance(raw_value, str):
        raise ValueError(
            f"Invalid value for '{source}': expected str, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    normalized = raw_value.strip()
    if not normalized:
        raise ValueError(f"Invalid value for '{source}': expected non-empty string.")
    return normalized


def _coerce_env_value(*, field_name: str, raw_value: str, env_name: str) -> object:
    expected = _expected_type_name(field_name)
    if expected == "int":
        try:
            return int(raw_value.strip())
        except ValueError as error:
            raise ValueError(
                f"Invalid environment override '{env_name}': expected int, got {raw_value!r}."
            ) from error

    if expected == "float":
        try:
            return float(raw_value.strip())
        except ValueError as error:
            raise ValueError(
                f"Invalid environment override '{env_name}': expected float, got {raw_value!r}."
            ) from error

    normalized = raw_value.strip()
    if not normalized:
        raise ValueError(
            f"Invalid environment override '{env_name}': expected non-empty string."
        )
    return normalized


def _default_values() -> dict[str, object]:
    defaults = RunnerConfig()
    return {field.name: getattr(defaults, field.name) for field in fields(RunnerConfig)}


def _apply_toml_payload(
    *,
    values: dict[str, object],
    payload: dict[str, object],
    path: Path,
) -> None:
    for key, raw_value in payload.items():
        section_map = _SECTION_KEY_MAP.get(key)
        if section_map is not None:
            if not isinstance(raw_value, dict):
                raise ValueError(f"Invalid value for '{key}' in '{path}': expected table.")
            for section_key, section_value in cast("dict[str, object]", raw_value).items():
                field_name = section_map.get(section_key)
                if field_name is None:
                    logger.warning(
                        "Ignoring unknown gitrunner config key '%s.%s'.",
                        key,
                        section_key,
                    )
                    continue
                values[field_name] = _coerce_file_value(
                    field_name=field_name,
                    raw_value=section_value,
                    source=f"{key}.{section_key}",
                )
            continue

        field_name = _TOP_LEVEL_KEY_MAP.get(key)
        if field_name is None:
            logger.warning("Ignoring unknown gitrunner config key '%s'.", key)
            continue
        values[field_name] = _coerce_file_value(
            field_name=field_name,
            raw_value=raw_value,
            source=key,
        )


def _apply_env_overrides(values: dict[str, object]) -> None:
    for env_name, field_name in _ENV_OVERRIDE_MAP.items():
        raw_value = os.getenv(env_name)
        if raw_value is None:
            continue
        values[field_name] = _coerce_env_value(
            field_name=field_name,
            raw_value=raw_value,
            env_name=env_name,
        )


def _build_config(values: dict[str, object]) -> RunnerConfig:
    config = RunnerConfig(
        default_timeout_seconds=cast("float", values["default_timeout_seconds"]),
        kill_grace_seconds=cast("float", values["kill_grace_seconds"]),
        drain_grace_seconds=cast("float", values["drain_grace_seconds"]),
        encoding=cast("str", values["encoding"]),
        stream_limit_bytes=cast("int", values["stream_limit_bytes"]),
        git_path=cast("str", values["git_path"]),
    )
    for field_name in sorted(_FLOAT_FIELDS):
        if cast("float", getattr(config, field_name)) <= 0:
            raise ValueError(f"Invalid {field_name}: expected a value > 0.")
    if config.stream_limit_bytes <= 0:
        raise ValueError("Invalid stream_limit_bytes: expected a value > 0.")
    try:
        codecs.lookup(config.encoding)
    except LookupError as error:
        raise ValueError(f"Invalid encoding: unknown codec {config.encoding!r}.") from error
    return config


def load_config(repo_root: Path) -> RunnerConfig:
    """Load `.gitrunner/config.toml` and apply environment overrides."""

    values = _default_values()
    path = config_path(repo_root)
    if path.is_file():
        payload_obj = tomllib.loads(path.read_text(encoding="utf-8"))
        payload = cast("dict[str, object]", payload_obj)
        _apply_toml_payload(values=values, payload=payload, path=path)

    _apply_env_overrides(values)
    return _build_config(values)
