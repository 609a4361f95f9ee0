# serialterm/session.py
"""
Interactive curses session: the render / drain / poll loop.

Each ``Session.tick`` runs one iteration: blink the cursor, draw the screen,
move every queued inbound line into the transcript (and the log file), poll
the keyboard for one key with a short timeout, then sleep briefly. Every
wait is bounded, so the loop never stalls on the serial threads.
"""

from __future__ import annotations

import contextlib
import curses
import logging
import os
import signal
import threading
import time
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Union

from serialterm.assembler import SerialReader
from serialterm.channels import DispatchChannels, LogSink, SerialWriter
from serialterm.config_term import (
    BLINK_INTERVAL_S, ESC_DELAY_MS, INBOUND_PREFIX, INPUT_TITLE, MONITOR_PREFIX, MONITOR_TITLE,
    OUTBOUND_PREFIX, POLL_TIMEOUT_MS, TICK_SLEEP_S,
)
from serialterm.line_editor import EditorKey, LineEditor
from serialterm.logging_config import transcript_logging
from serialterm.term_driver import SerialTransport
from serialterm.transcript import Category, TranscriptBuffer, TranscriptLine, classify_inbound

logger = logging.getLogger(__name__)

Key = Union[str, int]

class SessionState(Enum):
    RUNNING     = "running"
    TERMINATING = "terminating"

QUIT_KEYS = ("\x1b", "\x03")

EDITOR_KEYS: Dict[Key, EditorKey] = {
    "\n": EditorKey.SUBMIT,
    "\r": EditorKey.SUBMIT,
    curses.KEY_ENTER: EditorKey.SUBMIT,
    "\x7f": EditorKey.BACKSPACE,
    "\x08": EditorKey.BACKSPACE,
    curses.KEY_BACKSPACE: EditorKey.BACKSPACE,
    curses.KEY_LEFT: EditorKey.LEFT,
    curses.KEY_RIGHT: EditorKey.RIGHT,
    curses.KEY_UP: EditorKey.HISTORY_UP,
    curses.KEY_DOWN: EditorKey.HISTORY_DOWN,
}

INPUT_COLOR = "input"

# ----------------------- Drawing helpers -----------------------

def _safe_addstr(win, y: int, x: int, s: str, attr: int = 0) -> None:
    try:
        max_y, max_x = win.getmaxyx()
        if y < 0 or y >= max_y or x >= max_x:
            return
        if x < 0:
            s = s[-x:]
            x = 0
        s = s[: max(0, max_x - x)]
        if not s:
            return
        win.addstr(y, x, s, attr)
    except curses.error:
        return

def _draw_box(win, y: int, x: int, h: int, w: int, title: str = "") -> None:
    if h < 2 or w < 2:
        return
    _safe_addstr(win, y, x, "+" + ("-" * (w - 2)) + "+")
    for row in range(y + 1, y + h - 1):
        _safe_addstr(win, row, x, "|")
        _safe_addstr(win, row, x + w - 1, "|")
    _safe_addstr(win, y + h - 1, x, "+" + ("-" * (w - 2)) + "+")
    if title and w >= 6:
        t = f" {title} "
        _safe_addstr(win, y, x + 2, t[: max(0, w - 4)])

def _wrap(text: str, width: int) -> List[str]:
    if width <= 0:
        return []
    return [text[i:i + width] for i in range(0, len(text), width)] or [""]

def init_colors() -> Dict[Union[Category, str], int]:
    colors: Dict[Union[Category, str], int] = {}
    if not curses.has_colors():
        return colors
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(1, curses.COLOR_GREEN, -1)
    curses.init_pair(2, curses.COLOR_RED, -1)
    curses.init_pair(3, curses.COLOR_YELLOW, -1)
    colors.update({
        Category.INBOUND: curses.color_pair(1),
        Category.INBOUND_ERROR: curses.color_pair(2),
        Category.OUTBOUND: curses.color_pair(3),
        INPUT_COLOR: curses.color_pair(3),
    })
    return colors

# ----------------------- Session -----------------------

class Session:
    def __init__(
        self,
        screen,
        channels: DispatchChannels,
        log_sink: Optional[LogSink] = None,
        transcript: Optional[TranscriptBuffer] = None,
        colors: Optional[Dict[Union[Category, str], int]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.screen = screen
        self.channels = channels
        self.log_sink = log_sink
        self.transcript = transcript if transcript is not None else TranscriptBuffer()
        self.editor = LineEditor()
        self.colors = colors or {}
        self.clock, self.sleep = clock, sleep
        self.state = SessionState.RUNNING
        self.cursor_visible = True
        self._last_blink = clock()

    def run(self) -> None:
        try:
            while self.tick() is SessionState.RUNNING:
                pass
        except KeyboardInterrupt:
            # Ctrl+C (or a forwarded SIGTERM/SIGHUP) anywhere in a tick quits like Esc.
            self.state = SessionState.TERMINATING

    def tick(self) -> SessionState:
        self._blink()
        self.render()
        self.drain_inbound()
        key = self.poll_key()
        if key is not None:
            self.dispatch(key)
        if self.state is SessionState.RUNNING:
            self.sleep(TICK_SLEEP_S)
        return self.state

    def record(self, line: TranscriptLine) -> None:
        self.transcript.append_line(line)
        if self.log_sink is not None:
            self.log_sink.write(line)

    def drain_inbound(self) -> int:
        count = 0
        for item in self.channels.drain_inbound():
            if isinstance(item, str):
                item = TranscriptLine(INBOUND_PREFIX + item, classify_inbound(item))
            self.record(item)
            count += 1
        return count

    def poll_key(self) -> Optional[Key]:
        self.screen.timeout(POLL_TIMEOUT_MS)
        try:
            return self.screen.get_wch()
        except curses.error:
            return None  # nothing pressed within the timeout
        except KeyboardInterrupt:
            return QUIT_KEYS[1]

    def dispatch(self, key: Key) -> None:
        if key in QUIT_KEYS:
            self.state = SessionState.TERMINATING
            return
        if key == curses.KEY_PPAGE:
            self.transcript.scroll_up()
            return
        if key == curses.KEY_NPAGE:
            self.transcript.scroll_down()
            return
        editor_key = EDITOR_KEYS.get(key)
        if editor_key is None:
            if not (isinstance(key, str) and key.isprintable()):
                return
            editor_key = key
        submitted = self.editor.handle(editor_key)
        if submitted is not None:
            self.channels.outbound.put(submitted)
            self.record(TranscriptLine(OUTBOUND_PREFIX + submitted, Category.OUTBOUND))

    # --- Rendering ---
    def _blink(self) -> None:
        now = self.clock()
        if now - self._last_blink >= BLINK_INTERVAL_S:
            self.cursor_visible = not self.cursor_visible
            self._last_blink = now

    def render(self) -> None:
        scr = self.screen
        scr.erase()
        max_y, max_x = scr.getmaxyx()
        x0, w = 1, max_x - 2
        input_h = 3
        monitor_h = max(2, max_y - 2 - input_h)

        _draw_box(scr, 1, x0, monitor_h, w, MONITOR_TITLE)
        height, width = max(0, monitor_h - 2), max(0, w - 2)
        rows = []
        for line in self.transcript.visible_window(height)[:height]:
            attr = self.colors.get(line.category, 0)
            rows.extend((chunk, attr) for chunk in _wrap(line.text, width))
        for i, (chunk, attr) in enumerate(rows[-height:] if height else []):
            _safe_addstr(scr, 2 + i, x0 + 1, chunk, attr)

        input_y = 1 + monitor_h
        _draw_box(scr, input_y, x0, input_h, w, INPUT_TITLE)
        inner = max(1, width)
        offset = max(0, self.editor.cursor - (inner - 1))
        text = self.editor.text[offset:offset + inner]
        _safe_addstr(scr, input_y + 1, x0 + 1, text, self.colors.get(INPUT_COLOR, 0))

        try:
            scr.move(input_y + 1, x0 + 1 + self.editor.cursor - offset)
            curses.curs_set(1 if self.cursor_visible else 0)
        except curses.error:
            pass  # terminal without cursor control, or too small to place it
        scr.refresh()

# ----------------------- Entry point -----------------------

THREAD_JOIN_TIMEOUT_S = 1.0

def _interrupt(signum, frame) -> None:
    raise KeyboardInterrupt(signal.Signals(signum).name)

@contextlib.contextmanager
def _quit_on_termination() -> Iterator[None]:
    """Turns SIGTERM/SIGHUP into KeyboardInterrupt so curses.wrapper can restore the terminal."""
    signums = [getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)]
    saved = {signum: signal.signal(signum, _interrupt) for signum in signums}
    try:
        yield
    finally:
        for signum, handler in saved.items():
            signal.signal(signum, handler)

def run_session(
    transport: SerialTransport,
    log_sink: Optional[LogSink] = None,
    channels: Optional[DispatchChannels] = None,
    stop_event: Optional[threading.Event] = None,
) -> int:
    """Starts the reader/writer threads and runs the curses session until the operator quits."""
    channels = channels or DispatchChannels()
    stop_event = stop_event or threading.Event()
    reader = SerialReader(transport, channels.inbound, stop_event)
    writer = SerialWriter(transport, channels.outbound, stop_event)
    channels.inbound.put(TranscriptLine(
        f"{MONITOR_PREFIX}connected to {transport.port} @ {transport.baudrate} bps", Category.INBOUND,
    ))

    def _curses_main(stdscr) -> int:
        session = Session(stdscr, channels, log_sink, colors=init_colors())
        session.run()
        return 0

    os.environ.setdefault("ESCDELAY", str(ESC_DELAY_MS))
    with transcript_logging(channels.inbound), _quit_on_termination():
        reader.start()
        writer.start()
        try:
            return curses.wrapper(_curses_main)
        finally:
            stop_event.set()
            # Bounded: a read blocks at most SERIAL_TIMEOUT, and the port is closed right after.
            for thread in (reader, writer):
                thread.join(THREAD_JOIN_TIMEOUT_S)
