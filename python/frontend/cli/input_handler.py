"""Single-keypress reader for the terminal driver.

Arrow keys and WASD tilt the board; letters map to game actions. Works on
macOS / Linux (tty+termios) and Windows (msvcrt).
"""

from __future__ import annotations

import os
import sys
import time
from enum import StrEnum


class Action(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HINT = "hint"
    SOLVE = "solve"
    RESTART = "restart"
    PAUSE = "pause"
    ENTER = "enter"
    QUIT = "quit"
    NONE = ""


_KEYS: dict[str, Action] = {
    "w": Action.UP,
    "s": Action.DOWN,
    "a": Action.LEFT,
    "d": Action.RIGHT,
    "n": Action.HINT,
    "v": Action.SOLVE,
    "r": Action.RESTART,
    "p": Action.PAUSE,
    " ": Action.PAUSE,
    "q": Action.QUIT,
    "\x03": Action.QUIT,  # Ctrl-C
    "\r": Action.ENTER,
    "\n": Action.ENTER,
}

# Final byte of ESC [ X arrow sequences.
_ARROWS: dict[str, Action] = {
    "A": Action.UP,
    "B": Action.DOWN,
    "C": Action.RIGHT,
    "D": Action.LEFT,
}


def _lookup(ch: str) -> Action:
    return _KEYS.get(ch.lower() if ch.isalpha() else ch, Action.NONE)


# -- Windows ------------------------------------------------------------------


def _read_windows(timeout: float | None) -> Action | None:
    import msvcrt  # type: ignore[import-not-found]

    deadline = None if timeout is None else time.monotonic() + timeout
    while not msvcrt.kbhit():
        if deadline is not None and time.monotonic() >= deadline:
            return None
        time.sleep(0.02)
    ch = msvcrt.getwch()
    if ch in ("\x00", "\xe0"):
        # Arrow keys arrive as a prefix plus a scan code.
        return {"H": Action.UP, "P": Action.DOWN, "K": Action.LEFT, "M": Action.RIGHT}.get(
            msvcrt.getwch(), Action.NONE
        )
    if ch == "\x1b":
        return Action.QUIT
    return _lookup(ch)


# -- POSIX --------------------------------------------------------------------


def _read_posix(timeout: float | None) -> Action | None:
    import select
    import termios
    import tty

    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)

    def byte(wait: float | None) -> str | None:
        ready, _, _ = select.select([fd], [], [], wait)
        if not ready:
            return None
        # os.read is unbuffered, so select() still sees the rest of an
        # escape sequence.
        return os.read(fd, 1).decode("utf-8", errors="ignore")

    try:
        tty.setraw(fd)
        ch = byte(timeout)
        if ch is None:
            return None
        if ch != "\x1b":
            return _lookup(ch)
        if byte(0.1) != "[":
            return Action.QUIT  # bare Escape
        return _ARROWS.get(byte(0.1) or "", Action.NONE)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


# -- public API ---------------------------------------------------------------


def read_action(timeout: float | None = None) -> Action | None:
    """Block for one keypress and return its :class:`Action`.

    With *timeout* (seconds) returns ``None`` when nothing was pressed in
    time. Unmapped keys give ``Action.NONE``.
    """
    if os.name == "nt":
        return _read_windows(timeout)
    return _read_posix(timeout)
