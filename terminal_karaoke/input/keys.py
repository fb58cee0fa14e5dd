from __future__ import annotations

import enum
import logging
import os
import select
import sys
import termios
import tty
from dataclasses import dataclass
from typing import TextIO

logger = logging.getLogger(__name__)

ESC = "\x1b"
# how long to wait for the rest of an escape sequence after ESC
_SEQ_TIMEOUT_S = 0.01


class TerminalUnavailable(RuntimeError):
    pass


class Key(enum.Enum):
    SPACE = "space"
    UP = "up"
    DOWN = "down"
    ESCAPE = "escape"
    CHAR = "char"


@dataclass(frozen=True, slots=True)
class KeyEvent:
    key: Key
    char: str = ""


_ARROWS = {"A": Key.UP, "B": Key.DOWN}


def decode(chunk: str) -> list[KeyEvent]:
    """Translate raw terminal input into key events; unknown sequences are dropped."""
    out: list[KeyEvent] = []
    i = 0
    while i < len(chunk):
        ch = chunk[i]
        if ch == ESC:
            # CSI / SS3 arrows: ESC [ A, ESC O A
            if i + 2 < len(chunk) and chunk[i + 1] in "[O":
                final = chunk[i + 2]
                if final in _ARROWS:
                    out.append(KeyEvent(_ARROWS[final]))
                    i += 3
                    continue
                # skip other CSI sequences up to their final byte
                j = i + 2
                while j < len(chunk) and not ("@" <= chunk[j] <= "~"):
                    j += 1
                i = j + 1
                continue
            out.append(KeyEvent(Key.ESCAPE))
            i += 1
            continue
        if ch == " ":
            out.append(KeyEvent(Key.SPACE))
        elif ch.isprintable():
            out.append(KeyEvent(Key.CHAR, ch))
        i += 1
    return out


class KeyReader:
    """
    Non-blocking keyboard input on a POSIX terminal.

    Puts stdin into cbreak mode on enter and restores the saved attributes
    on exit. `poll(timeout)` is the loop's only suspension point.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdin
        self._fd: int | None = None
        self._saved: list | None = None
        self._pending: list[KeyEvent] = []

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    def enter(self) -> None:
        if self._saved is not None:
            return
        try:
            fd = self.stream.fileno()
        except (AttributeError, OSError, ValueError) as e:
            raise TerminalUnavailable(f"stdin has no file descriptor: {e}") from e
        if not os.isatty(fd):
            raise TerminalUnavailable("stdin is not a terminal")
        try:
            self._saved = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except termios.error as e:
            raise TerminalUnavailable(f"cannot switch terminal to cbreak mode: {e}") from e
        self._fd = fd
        logger.debug("Keyboard input on fd %d", fd)

    def exit(self) -> None:
        if self._saved is None or self._fd is None:
            return
        termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
        self._saved = None
        self._fd = None

    def _read_available(self, timeout: float) -> str:
        if self._fd is None:
            raise TerminalUnavailable("KeyReader used outside its context")
        ready, _, _ = select.select([self._fd], [], [], max(timeout, 0.0))
        if not ready:
            return ""
        data = os.read(self._fd, 64)
        if not data:
            raise TerminalUnavailable("terminal input closed")
        # pick up the tail of an escape sequence split across reads
        while data.endswith(ESC.encode()) or data[-2:] in (b"\x1b[", b"\x1bO"):
            more, _, _ = select.select([self._fd], [], [], _SEQ_TIMEOUT_S)
            if not more:
                break
            data += os.read(self._fd, 64)
        return data.decode("utf-8", errors="ignore")

    def poll(self, timeout: float) -> KeyEvent | None:
        """Wait up to `timeout` seconds for one key event."""
        if self._pending:
            return self._pending.pop(0)
        if self._fd is None:
            raise TerminalUnavailable("KeyReader used outside its context")
        self._pending.extend(decode(self._read_available(timeout)))
        if self._pending:
            return self._pending.pop(0)
        return None
