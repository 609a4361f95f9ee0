import curses
from collections import deque

import pytest

from serialterm.term_driver import TransportError


class FakeScreen:
    """Just enough of a curses window for the session to draw on."""

    def __init__(self, rows=24, cols=80, keys=()):
        self.rows, self.cols = rows, cols
        self.keys = deque(keys)
        self.timeouts = []
        self.cursor = None
        self.refreshes = 0
        self.erase()

    def getmaxyx(self):
        return self.rows, self.cols

    def erase(self):
        self.grid = [[" "] * self.cols for _ in range(self.rows)]
        self.attrs = {}

    def addstr(self, y, x, s, attr=0):
        for i, ch in enumerate(s):
            if x + i < self.cols:
                self.grid[y][x + i] = ch
        self.attrs[(y, x)] = attr

    def move(self, y, x):
        self.cursor = (y, x)

    def refresh(self):
        self.refreshes += 1

    def timeout(self, ms):
        self.timeouts.append(ms)

    def get_wch(self):
        if not self.keys:
            raise curses.error("no input")
        key = self.keys.popleft()
        if isinstance(key, BaseException):
            raise key
        return key

    def row(self, y):
        return "".join(self.grid[y])

    def text(self):
        return "\n".join(self.row(y) for y in range(self.rows))


class FakeTransport:
    def __init__(self, chunks=(), fail_writes=False):
        self.chunks = deque(chunks)
        self.writes = []
        self.fail_writes = fail_writes

    def read(self, size=512):
        if not self.chunks:
            return b""
        chunk = self.chunks.popleft()
        if isinstance(chunk, Exception):
            raise chunk
        return chunk

    def write(self, data):
        if self.fail_writes:
            raise TransportError("device unplugged")
        self.writes.append(data)


@pytest.fixture
def screen():
    return FakeScreen()


@pytest.fixture
def transport():
    return FakeTransport()
