"""Repository root resolution."""

from __future__ import annotations

import os
from pathlib import Path


def resolve_repo_root(explicit: Path | None = None) -> Path:
    """Resolve the repository root that owns `.gitrunner/config.toml`.

    Precedence:
    1. Explicit function argument.
    2. `GITRUNNER_REPO_ROOT` environment variable.
    3. Current directory / nearest ancestor containing `.git`.
    4. Current working directory.
    """

    if explicit is not None:
        return explicit.expanduser().resolve()

    env_root = os.getenv("GITRUNNER_REPO_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()

    cwd = Path.cwd().resolve()
    candidate = cwd
    while True:
        # A .git entry (file for worktree/submodule, directory for standalone
        # repo) marks a repo boundary.
        if (candidate / ".git").exists():
            return candidate

        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent

    return cwd
