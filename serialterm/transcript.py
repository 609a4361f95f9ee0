# serialterm/transcript.py
"""Bounded, scrollable transcript of everything shown in the monitor window."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, List

from serialterm.config_term import ERROR_MARKER, MAX_LINES, SCROLL_STEP

class Category(Enum):
    """What produced a transcript line; decides its display colour."""
    INBOUND       = "inbound"
    INBOUND_ERROR = "inbound_error"
    OUTBOUND      = "outbound"

def classify_inbound(text: str, marker: str = ERROR_MARKER) -> Category:
    return Category.INBOUND_ERROR if marker in text else Category.INBOUND

def _now() -> datetime:
    return datetime.now().astimezone()

@dataclass(frozen=True, slots=True)
class TranscriptLine:
    text: str
    category: Category
    timestamp: datetime = field(default_factory=_now)

class TranscriptBuffer:
    """
    FIFO of at most ``max_lines`` lines plus the scroll offset of the view.

    ``scroll_offset`` counts lines the view is shifted up from the tail. New
    lines never reset it; evicting the oldest line pulls it down by one so
    the content the operator is looking at stays in place.
    """

    def __init__(self, max_lines: int = MAX_LINES) -> None:
        if max_lines <= 0:
            raise ValueError("max_lines must be positive")
        self.max_lines = max_lines
        self.scroll_offset = 0
        self._lines: Deque[TranscriptLine] = deque()

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(self._lines)

    @property
    def lines(self) -> List[TranscriptLine]:
        return list(self._lines)

    def append(self, text: str, category: Category) -> TranscriptLine:
        line = TranscriptLine(text, category)
        self.append_line(line)
        return line

    def append_line(self, line: TranscriptLine) -> None:
        self._lines.append(line)
        if len(self._lines) > self.max_lines:
            self._lines.popleft()
            self.scroll_offset = max(0, self.scroll_offset - 1)
        self._clamp()

    def visible_window(self, height: int, scroll_offset: int | None = None) -> List[TranscriptLine]:
        """Lines from ``max(0, len - (height + offset))`` to the end; callers draw the first ``height``."""
        offset = self.scroll_offset if scroll_offset is None else scroll_offset
        start = max(0, len(self._lines) - (max(0, height) + offset))
        return list(self._lines)[start:]

    def scroll_up(self, step: int = SCROLL_STEP) -> None:
        self.scroll_offset = min(self.scroll_offset + step, max(0, len(self._lines) - 1))

    def scroll_down(self, step: int = SCROLL_STEP) -> None:
        self.scroll_offset = max(0, self.scroll_offset - step)

    def _clamp(self) -> None:
        self.scroll_offset = min(self.scroll_offset, max(0, len(self._lines) - 1))
