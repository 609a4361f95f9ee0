# serialterm/term_driver.py
"""
Serial transport for the interactive device terminal.

Wraps a pyserial port as a duplex byte stream: ``read`` hands back whatever
the device has sent so far (possibly nothing), ``write`` pushes a complete
command line. All transport failures surface as ``TransportError`` so the
reader and writer threads can report them and carry on.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

import serial
from serial.tools import list_ports

logger = logging.getLogger(__name__)

# ----------------------- Errors -----------------------

class SerialTermError(Exception):
    """Base class for all serial terminal errors."""

class TransportError(SerialTermError):
    """Raised when the serial port cannot be opened, read or written."""

class LogSinkError(SerialTermError):
    """Raised when the transcript log file cannot be opened."""

# ----------------------- Port Discovery -----------------------

@dataclass(frozen=True, slots=True)
class PortInfo:
    """A detected serial port, as reported by pyserial."""
    device: str
    description: str

def list_serial_ports() -> List[PortInfo]:
    """Returns the serial ports currently visible to the OS, sorted by device name."""
    ports = sorted(list_ports.comports(), key=lambda p: p.device)
    return [PortInfo(device=p.device, description=p.description or "n/a") for p in ports]

# ----------------------- Transport -----------------------

@dataclass(slots=True)
class SerialTransport:
    """ 8N1 serial link to the device, no flow control. """
    port: str
    baudrate: int
    timeout: float = 0.1
    serial_conn: Optional[serial.Serial] = None
    write_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.baudrate <= 0: raise ValueError("baudrate must be positive")
        if self.timeout <= 0: raise ValueError("timeout must be positive")

    def __enter__(self) -> "SerialTransport":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    @property
    def is_open(self) -> bool:
        return bool(self.serial_conn and self.serial_conn.is_open)

    def connect(self) -> None:
        if self.is_open: return
        logger.info("Connecting to %s @ %d bps…", self.port, self.baudrate)
        try:
            self.serial_conn = serial.Serial(
                self.port,
                self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                timeout=self.timeout,
            )
            logger.info("Connection established.")
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Could not open {self.port}: {e}") from e

    def disconnect(self) -> None:
        if self.is_open:
            self.serial_conn.close()
            logger.info("Serial connection closed.")
        self.serial_conn = None

    def read(self, size: int = 512) -> bytes:
        """Reads up to ``size`` bytes; returns b"" when the read timeout expires first."""
        conn = self.serial_conn  # disconnect() may clear the attribute from another thread
        if not (conn and conn.is_open):
            raise TransportError("Port not open.")
        try:
            waiting = conn.in_waiting
            return conn.read(min(size, waiting) if waiting else 1)
        except (serial.SerialException, OSError, TypeError) as e:
            # TypeError: pyserial's fd is None once the port was closed under us.
            raise TransportError(str(e)) from e

    def write(self, data: bytes) -> None:
        """Writes ``data`` in one locked section so concurrent senders never interleave."""
        with self.write_lock:
            if not self.is_open:
                raise TransportError("Port not open.")
            try:
                self.serial_conn.write(data)
                self.serial_conn.flush()
            except (serial.SerialException, OSError) as e:
                raise TransportError(str(e)) from e
            logger.debug("TX -> %r", data)
