"""Line-oriented draining of child process output pipes."""

from __future__ import annotations

import asyncio

import structlog

logger = structlog.get_logger(__name__)


def _decode_line(chunk: bytes, encoding: str) -> str:
    text = chunk.decode(encoding, errors="replace")
    if text.endswith("\n"):
        text = text[:-1]
    if text.endswith("\r"):
        text = text[:-1]
    return text


class StreamCollector:
    """Drain one pipe into an ordered line buffer owned by a single task.

    Only the drain task appends to the buffer; the engine reads it after the
    task has finished or been cancelled, so no locking is needed.
    """

    def __init__(self, name: str, *, encoding: str = "utf-8") -> None:
        self.name = name
        self._encoding = encoding
        self._lines: list[str] = []
        self.read_errors = 0

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines).rstrip()

    def _record_failure(self, exc: BaseException) -> None:
        self.read_errors += 1
        logger.warning(
            "Failed to read child process stream.",
            stream=self.name,
            error=str(exc),
        )
        self._lines.append(f"[{self.name} read error: {exc}]")

    async def drain(self, reader: asyncio.StreamReader) -> None:
        while True:
            try:
                chunk = await _read_full_line(reader)
            except OSError as exc:
                self._record_failure(exc)
                return
            if not chunk:
                return
            self._lines.append(_decode_line(chunk, self._encoding))


async def _read_full_line(reader: asyncio.StreamReader) -> bytes:
    """Read one line of any length; empty bytes means EOF.

    The reader limit only bounds how much is buffered per read, so a line
    longer than the limit is collected in pieces and returned whole.
    """

    pieces: list[bytes] = []
    while True:
        try:
            pieces.append(await reader.readuntil(b"\n"))
        except asyncio.IncompleteReadError as exc:
            pieces.append(exc.partial)
        except asyncio.LimitOverrunError as exc:
            pieces.append(await reader.read(exc.consumed))
            continue
        return b"".join(pieces)
