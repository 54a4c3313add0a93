"""Output sink shared by the router, the session and the terminal host."""

from __future__ import annotations

from collections import deque
from typing import Protocol

INFO = "info"
PROMPT = "prompt"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

LEVELS = (INFO, PROMPT, SUCCESS, WARNING, ERROR)


class OutputSink(Protocol):
    """Anything that accepts user-visible lines and can be wiped."""

    def append(self, line: str, level: str = INFO) -> None: ...

    def clear(self) -> None: ...


class OutputLog:
    """Bounded scrollback of ``(level, text)`` entries.

    Multi-line text is split so every entry renders on one row. ``offset``
    counts rows scrolled up from the bottom and is reset by new output.
    """

    def __init__(self, maxlen: int = 1000) -> None:
        self.lines: deque[tuple[str, str]] = deque(maxlen=maxlen)
        self.offset = 0

    def append(self, line: str, level: str = INFO) -> None:
        if level not in LEVELS:
            raise ValueError(f"unknown output level: {level!r}")
        for part in line.rstrip("\n").split("\n"):
            self.lines.append((level, part.rstrip("\r")))
        self.offset = 0

    def clear(self) -> None:
        self.lines.clear()
        self.offset = 0

    def scroll(self, rows: int, height: int) -> None:
        """Move the view by *rows* (positive = up), clamped to the content."""
        limit = max(0, len(self.lines) - height)
        self.offset = max(0, min(self.offset + rows, limit))

    def visible(self, height: int) -> list[tuple[str, str]]:
        """Entries that fit in a pane of *height* rows at the current offset."""
        if height <= 0:
            return []
        end = len(self.lines) - self.offset
        start = max(0, end - height)
        return list(self.lines)[start:end]

    def __len__(self) -> int:
        return len(self.lines)
