# serialterm/cli.py
from __future__ import annotations

import argparse
import logging
import os
from typing import Optional, Sequence

from serialterm.channels import LogSink
from serialterm.config_term import BAUD_RATE, LOG_FILE, SERIAL_PORT, SERIAL_TIMEOUT, VALID_BAUD_RATES
from serialterm.logging_config import setup_logging
from serialterm.session import run_session
from serialterm.term_driver import SerialTermError, SerialTransport, list_serial_ports

logger = logging.getLogger(__name__)

def _allowed_rates() -> str:
    return "[" + ", ".join(str(b) for b in VALID_BAUD_RATES) + "]"

def validate_baud_rate(value: str) -> int:
    try:
        baud = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Baud rate must be a number, one of {_allowed_rates()}"
        ) from None
    if baud not in VALID_BAUD_RATES:
        raise argparse.ArgumentTypeError(
            f"Invalid baud rate: {baud}. Must be one of {_allowed_rates()}"
        )
    return baud

def validate_port(value: str) -> str:
    """Accepts /dev/tty* (Linux/macOS) and COM* (Windows) names; a missing device only warns."""
    if not (value.startswith("/dev/tty") or value.upper().startswith("COM")):
        raise argparse.ArgumentTypeError(
            f"Invalid port: {value}. Must start with '/dev/tty' (Unix) or 'COM' (Windows)"
        )
    if value.startswith("/dev/") and not os.path.exists(value):
        logger.warning("Port '%s' may not exist or is inaccessible", value)
    return value

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive serial monitor for microcontroller boards")
    parser.add_argument("--port", default=SERIAL_PORT, type=validate_port,
                        help="Serial port name (e.g. /dev/ttyUSB0 or COM1)")
    parser.add_argument("--baud-rate", default=BAUD_RATE, type=validate_baud_rate,
                        help=f"Baud rate, one of {_allowed_rates()}")
    parser.add_argument("--log-file", default=LOG_FILE, help="Transcript log file (appended to)")
    parser.add_argument("--no-log", action="store_true", help="Disable logging to file")
    parser.add_argument("--list-ports", action="store_true", help="List detected serial ports and exit")
    parser.add_argument("--debug", action="store_true", help="Verbose start-up logging")
    return parser

def print_ports() -> None:
    ports = list_serial_ports()
    if not ports:
        print("No serial ports found.")
        return
    for i, p in enumerate(ports, start=1):
        print(f"  {i}. {p.device}  ({p.description})")

def main(argv: Optional[Sequence[str]] = None) -> int:
    # Logging first, so port validation warnings are visible.
    setup_logging()
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.list_ports:
        print_ports()
        return 0

    log_sink: Optional[LogSink] = None
    transport = SerialTransport(args.port, args.baud_rate, SERIAL_TIMEOUT)
    try:
        if not args.no_log:
            log_sink = LogSink.open(args.log_file)
        transport.connect()
    except SerialTermError as e:
        logger.error("Start-up failed: %s", e)
        if log_sink is not None:
            log_sink.close()
        return 1

    try:
        return run_session(transport, log_sink)
    finally:
        transport.disconnect()
        if log_sink is not None:
            log_sink.close()
