# serialterm/logging_config.py
from __future__ import annotations

import contextlib
import logging
import queue
from typing import Iterator

from serialterm.config_term import MONITOR_PREFIX
from serialterm.transcript import Category, TranscriptLine

LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(message)s"

def setup_logging(level: int = logging.INFO) -> None:
    """Console logging for start-up and shutdown, before and after the screen is taken over."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)

class TranscriptLogHandler(logging.Handler):
    """Forwards log records onto the inbound queue so they show up in the transcript."""

    def __init__(self, lines: "queue.Queue", level: int = logging.WARNING) -> None:
        super().__init__(level)
        self.lines = lines
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            text = MONITOR_PREFIX + self.format(record)
            self.lines.put(TranscriptLine(text, Category.INBOUND_ERROR))
        except Exception:
            self.handleError(record)

@contextlib.contextmanager
def transcript_logging(lines: "queue.Queue", level: int = logging.WARNING) -> Iterator[TranscriptLogHandler]:
    """Swaps the root handlers for a ``TranscriptLogHandler`` while the screen is in use."""
    root = logging.getLogger()
    saved = root.handlers[:]
    handler = TranscriptLogHandler(lines, level)
    root.handlers = [handler]
    try:
        yield handler
    finally:
        root.handlers = saved
