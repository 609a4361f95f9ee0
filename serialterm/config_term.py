from typing import Tuple

# --- Serial Port Configuration ---
SERIAL_PORT = "/dev/ttyUSB0"
BAUD_RATE = 57600
SERIAL_TIMEOUT = 0.1  # read timeout, keeps the reader thread responsive
READ_CHUNK_SIZE = 512
READ_RETRY_DELAY_S = 1.0

VALID_BAUD_RATES: Tuple[int, ...] = (300, 1200, 2400, 4800, 9600, 19200, 38400, 57600, 115200)

# --- Transcript ---
LOG_FILE = "serial_monitor.log"
MAX_LINES = 1000
SCROLL_STEP = 3
ERROR_MARKER = "ERROR"

INBOUND_PREFIX = "[Device] "
OUTBOUND_PREFIX = "> "
MONITOR_PREFIX = "[monitor] "

MONITOR_TITLE = "Device Monitor"
INPUT_TITLE = "Input"

# --- Session timing ---
BLINK_INTERVAL_S = 0.5
POLL_TIMEOUT_MS = 10
TICK_SLEEP_S = 0.01
ESC_DELAY_MS = 25
