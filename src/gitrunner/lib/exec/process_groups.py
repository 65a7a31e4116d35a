"""Process-group helpers for subprocess lifecycle management."""

from __future__ import annotations

import asyncio
import os
import signal

_HAS_PROCESS_GROUPS = hasattr(os, "killpg")


def force_kill_signal() -> signal.Signals:
    """Return the uncatchable kill signal, or SIGTERM where none exists."""

    return getattr(signal, "SIGKILL", signal.SIGTERM)


def signal_process_group(
    process: asyncio.subprocess.Process,
    signum: signal.Signals,
) -> None:
    """Send one signal to every process in the child's process group.

    The child is started as a session leader, so its pid doubles as the group
    id and descendants are reached even after the leader has been reaped.
    The group may already be gone by delivery time, so ProcessLookupError is
    treated as an expected race.
    """

    if not _HAS_PROCESS_GROUPS:
        if process.returncode is not None:
            return
        try:
            process.send_signal(signum)
        except ProcessLookupError:
            return
        return

    try:
        os.killpg(process.pid, signum)
    except (ProcessLookupError, PermissionError):
        return
