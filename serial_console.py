#!/usr/bin/env python3
"""
Interactive serial monitor.

Usage: python serial_console.py --port /dev/ttyUSB0 [--baud-rate 57600] [--log-file PATH | --no-log]
Keys : Enter send, Up/Down history, PageUp/PageDown scroll, Esc quit.
"""
import sys

from serialterm.cli import main

if __name__ == "__main__":
    sys.exit(main())
