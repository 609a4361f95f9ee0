# serialterm/channels.py
"""
Queues and sinks shared between the I/O threads and the session loop.

The session loop owns the transcript and the editor outright; the only
state it shares with the reader and writer threads are the two queues in
``DispatchChannels``. The serial write path and the log file each have a
lock of their own.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional, Protocol, Union

from serialterm.term_driver import LogSinkError, TransportError
from serialterm.transcript import TranscriptLine

logger = logging.getLogger(__name__)

# Raw device lines arrive as str; monitor diagnostics arrive pre-built.
InboundItem = Union[str, TranscriptLine]

class ByteSink(Protocol):
    def write(self, data: bytes) -> None: ...

@dataclass
class DispatchChannels:
    inbound: "queue.Queue[InboundItem]" = field(default_factory=queue.Queue)
    outbound: "queue.Queue[str]" = field(default_factory=queue.Queue)

    def drain_inbound(self):
        """Yields everything queued right now without blocking."""
        while True:
            try:
                yield self.inbound.get_nowait()
            except queue.Empty:
                return

# ----------------------- Writer Thread -----------------------

class SerialWriter(threading.Thread):
    """Sends queued commands, newline-terminated, one at a time."""

    def __init__(
        self,
        sink: ByteSink,
        commands: "queue.Queue[str]",
        stop_event: threading.Event | None = None,
        line_ending: bytes = b"\n",
    ):
        super().__init__(daemon=True)
        self.sink, self.commands, self.line_ending = sink, commands, line_ending
        self.stop_event = stop_event or threading.Event()
        self.name = "SerialWriter"

    def run(self) -> None:
        logger.debug("Writer thread started.")
        while not self.stop_event.is_set():
            try:
                cmd = self.commands.get(timeout=0.1)
            except queue.Empty:
                continue
            self.send(cmd)
        logger.debug("Writer thread stopped.")

    def send(self, cmd: str) -> bool:
        # A command that fails to go out is dropped: re-sending to hardware blindly is unsafe.
        try:
            self.sink.write(cmd.encode("utf-8") + self.line_ending)
        except TransportError as exc:
            logger.warning("Serial write error: %s; dropped command %r", exc, cmd)
            return False
        return True

# ----------------------- Log Sink -----------------------

def format_log_entry(text: str, timestamp: datetime) -> bytes:
    return f"[{timestamp.isoformat()}] {text}\n".encode("utf-8")

class LogSink:
    """Append-only transcript log. Write failures are reported, never raised."""

    def __init__(self, stream: BinaryIO, path: Optional[Path] = None) -> None:
        self.stream = stream
        self.path = path
        self._lock = threading.Lock()
        self._failing = False

    @classmethod
    def open(cls, path: Union[str, Path]) -> "LogSink":
        path = Path(path)
        try:
            stream = path.open("ab")
        except OSError as e:
            raise LogSinkError(f"Could not open log file {path}: {e}") from e
        logger.info("Logging transcript to %s", path)
        return cls(stream, path)

    def __enter__(self) -> "LogSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def write(self, line: TranscriptLine) -> bool:
        with self._lock:
            try:
                self.stream.write(format_log_entry(line.text, line.timestamp))
                self.stream.flush()
            except (OSError, ValueError) as exc:
                # Report once per failure streak; the warning itself is logged to this sink too.
                if not self._failing:
                    self._failing = True
                    logger.warning("Log write error: %s", exc)
                return False
            if self._failing:
                self._failing = False
                logger.warning("Log writes recovered")
            return True

    def close(self) -> None:
        with self._lock:
            try:
                self.stream.close()
            except OSError as exc:
                logger.warning("Could not close log file: %s", exc)
