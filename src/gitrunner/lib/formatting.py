"""Text rendering context shared by result types and CLI output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class FormatContext:
    """Parameters passed to text formatters."""

    verbosity: int = 0  # 0=normal, 1+=verbose, -1=quiet

    @property
    def verbose(self) -> bool:
        return self.verbosity > 0

    @property
    def quiet(self) -> bool:
        return self.verbosity < 0


@runtime_checkable
class TextFormattable(Protocol):
    """Anything the CLI can print as human-readable text."""

    def format_text(self, ctx: FormatContext | None = None) -> str: ...


def join_sections(*sections: str) -> str:
    """Join the non-empty text blocks, one per line."""

    return "\n".join(section for section in sections if section)
