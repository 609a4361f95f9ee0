# serialterm/line_editor.py
"""
Single-line input editor with command history.

The editor knows nothing about curses: the session translates key presses
into ``EditorKey`` values (or plain characters) and calls ``handle``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

class EditorKey(Enum):
    BACKSPACE = auto()
    LEFT      = auto()
    RIGHT     = auto()
    SUBMIT    = auto()
    HISTORY_UP   = auto()
    HISTORY_DOWN = auto()

@dataclass(slots=True)
class InputState:
    text: str = ""
    cursor: int = 0

    def set(self, text: str) -> None:
        """Replaces the text and parks the cursor at its end."""
        self.text = text
        self.cursor = len(text)

    def clear(self) -> None:
        self.set("")

@dataclass(slots=True)
class History:
    """Submitted commands, oldest first. ``cursor`` is None unless browsing."""
    entries: List[str] = field(default_factory=list)
    cursor: Optional[int] = None

    def __len__(self) -> int:
        return len(self.entries)

class LineEditor:
    def __init__(self) -> None:
        self.state = InputState()
        self.history = History()

    @property
    def text(self) -> str:
        return self.state.text

    @property
    def cursor(self) -> int:
        return self.state.cursor

    def handle(self, key: EditorKey | str) -> Optional[str]:
        """Applies one key press. Returns the submitted command on a successful submit, else None."""
        if isinstance(key, str):
            self.insert(key)
            return None
        if key is EditorKey.SUBMIT:
            return self.submit()
        {
            EditorKey.BACKSPACE: self.backspace,
            EditorKey.LEFT: self.move_left,
            EditorKey.RIGHT: self.move_right,
            EditorKey.HISTORY_UP: self.history_up,
            EditorKey.HISTORY_DOWN: self.history_down,
        }[key]()
        return None

    # --- Editing ---
    def insert(self, ch: str) -> None:
        s = self.state
        s.text = s.text[:s.cursor] + ch + s.text[s.cursor:]
        s.cursor += len(ch)

    def backspace(self) -> None:
        s = self.state
        if s.cursor == 0: return
        s.text = s.text[:s.cursor - 1] + s.text[s.cursor:]
        s.cursor -= 1

    def move_left(self) -> None:
        self.state.cursor = max(0, self.state.cursor - 1)

    def move_right(self) -> None:
        self.state.cursor = min(len(self.state.text), self.state.cursor + 1)

    def submit(self) -> Optional[str]:
        """Records and clears the current line. Blank input is ignored."""
        text = self.state.text
        if not text.strip():
            return None
        self.history.entries.append(text)
        self.history.cursor = None
        self.state.clear()
        return text

    # --- History browsing ---
    def history_up(self) -> None:
        h = self.history
        if h.cursor is None:
            if not h.entries: return
            h.cursor = len(h.entries) - 1
        else:
            h.cursor = max(0, h.cursor - 1)
        self.state.set(h.entries[h.cursor])

    def history_down(self) -> None:
        h = self.history
        if h.cursor is None: return
        if h.cursor + 1 < len(h.entries):
            h.cursor += 1
            self.state.set(h.entries[h.cursor])
        else:
            h.cursor = None
            self.state.clear()
