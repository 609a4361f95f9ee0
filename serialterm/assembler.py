# serialterm/assembler.py
"""Turns the raw byte stream coming off the serial port into text lines."""

from __future__ import annotations

import codecs
import logging
import queue
import threading
from typing import List, Protocol

from serialterm.config_term import READ_CHUNK_SIZE, READ_RETRY_DELAY_S
from serialterm.term_driver import TransportError

logger = logging.getLogger(__name__)

TERMINATORS = ("\n", "\r")

class ByteSource(Protocol):
    def read(self, size: int = ...) -> bytes: ...

class LineAssembler:
    """
    Incremental line splitter.

    Chunks may be cut anywhere, including inside a multi-byte UTF-8
    sequence; the incremental decoder holds partial sequences back until the
    rest arrives and substitutes U+FFFD for malformed bytes. Both ``\\n`` and
    ``\\r`` end a line, and empty lines are dropped, so ``\\r\\n`` yields one line.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending: List[str] = []

    @property
    def pending(self) -> str:
        return "".join(self._pending)

    def feed(self, chunk: bytes) -> List[str]:
        """Consumes one chunk and returns the lines it completed, in order."""
        lines: List[str] = []
        for ch in self._decoder.decode(chunk):
            if ch in TERMINATORS:
                if self._pending:
                    lines.append("".join(self._pending))
                    self._pending.clear()
            else:
                self._pending.append(ch)
        return lines

class SerialReader(threading.Thread):
    """Reads the transport forever, pushing completed lines onto ``lines``."""

    def __init__(
        self,
        source: ByteSource,
        lines: "queue.Queue[str]",
        stop_event: threading.Event | None = None,
        retry_delay_s: float = READ_RETRY_DELAY_S,
        chunk_size: int = READ_CHUNK_SIZE,
    ):
        super().__init__(daemon=True)
        self.source, self.lines = source, lines
        self.stop_event = stop_event or threading.Event()
        self.retry_delay_s, self.chunk_size = retry_delay_s, chunk_size
        self.assembler = LineAssembler()
        self.name = "SerialReader"

    def run(self) -> None:
        logger.debug("Reader thread started.")
        while not self.stop_event.is_set():
            self.poll_once()
        logger.debug("Reader thread stopped.")

    def poll_once(self) -> None:
        """One read attempt. A failed read is reported and followed by the retry delay."""
        try:
            chunk = self.source.read(self.chunk_size)
        except TransportError as exc:
            logger.warning("Serial read error: %s", exc)
            self.stop_event.wait(self.retry_delay_s)
            return
        if not chunk:
            return
        for line in self.assembler.feed(chunk):
            self.lines.put(line)
