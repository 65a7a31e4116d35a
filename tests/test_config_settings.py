"""Runner config loading and repo-root resolution."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from gitrunner.lib.config import RunnerConfig, config_path, load_config, resolve_repo_root


def _write_config(repo_root: Path, text: str) -> Path:
    path = config_path(repo_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path: Path) -> None:
    assert load_config(tmp_path) == RunnerConfig()
    assert RunnerConfig().default_timeout_seconds == 120.0


def test_sections_and_top_level_keys_are_applied(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        "\n".join(
            [
                "stream_limit_bytes = 4096",
                "[timeouts]",
                "default_seconds = 30",
                "kill_grace_seconds = 0.5",
                "[streams]",
                'encoding = "latin-1"',
                "[git]",
                'path = "/usr/local/bin/git"',
            ]
        ),
    )

    config = load_config(tmp_path)

    assert config.default_timeout_seconds == 30.0
    assert config.kill_grace_seconds == 0.5
    assert config.drain_grace_seconds == RunnerConfig().drain_grace_seconds
    assert config.encoding == "latin-1"
    assert config.stream_limit_bytes == 4096
    assert config.git_path == "/usr/local/bin/git"


def test_env_overrides_take_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_config(tmp_path, "[timeouts]\ndefault_seconds = 30\n")
    monkeypatch.setenv("GITRUNNER_DEFAULT_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("GITRUNNER_GIT_PATH", "  git2  ")

    config = load_config(tmp_path)

    assert config.default_timeout_seconds == 5.0
    assert config.git_path == "git2"


def test_unknown_keys_warn_but_do_not_fail(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    _write_config(tmp_path, "retries = 3\n[timeouts]\nbogus = 1\n")

    with caplog.at_level(logging.WARNING, logger="gitrunner.lib.config.settings"):
        config = load_config(tmp_path)

    assert config == RunnerConfig()
    assert "retries" in caplog.text
    assert "timeouts.bogus" in caplog.text


@pytest.mark.parametrize(
    "text,match",
    [
        pytest.param('[timeouts]\ndefault_seconds = "fast"\n', "expected float", id="float-type"),
        pytest.param("[timeouts]\ndefault_seconds = true\n", "expected float", id="bool-float"),
        pytest.param("[timeouts]\ndefault_seconds = 0\n", "> 0", id="zero-timeout"),
        pytest.param("[streams]\nlimit_bytes = 1.5\n", "expected int", id="int-type"),
        pytest.param('[streams]\nencoding = "klingon-8"\n', "unknown codec", id="codec"),
        pytest.param('[git]\npath = "  "\n', "non-empty", id="blank-path"),
        pytest.param('timeouts = "soon"\n', "expected table", id="section-type"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, text: str, match: str) -> None:
    _write_config(tmp_path, text)

    with pytest.raises(ValueError, match=match):
        load_config(tmp_path)


def test_invalid_env_override_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITRUNNER_STREAM_LIMIT_BYTES", "lots")

    with pytest.raises(ValueError, match="GITRUNNER_STREAM_LIMIT_BYTES"):
        load_config(tmp_path)


def test_repo_root_prefers_explicit_then_env(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    env_root = tmp_path / "env-root"
    env_root.mkdir()
    monkeypatch.setenv("GITRUNNER_REPO_ROOT", str(env_root))

    assert resolve_repo_root(tmp_path) == tmp_path.resolve()
    assert resolve_repo_root() == env_root.resolve()


def test_repo_root_walks_up_to_git_marker(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    repo = tmp_path / "repo"
    nested = repo / "a" / "b"
    nested.mkdir(parents=True)
    (repo / ".git").mkdir()
    monkeypatch.chdir(nested)

    assert resolve_repo_root() == repo.resolve()
