"""Tracks the mutable state of a stage attempt in progress."""

from __future__ import annotations

import time
from enum import StrEnum

from backend.models.board import Board


class GameStatus(StrEnum):
    PLAYING = "playing"
    CLEARED = "cleared"
    FAILED = "failed"


class GameState:
    """Holds the current board, move counter, elapsed time and status."""

    def __init__(self, board: Board) -> None:
        self.board = board
        self.moves: int = 0
        self.status: GameStatus = GameStatus.PLAYING
        self.failure: str = ""
        self._start_time: float = time.time()
        self._elapsed_banked: float = 0.0
        self._running: bool = True

    # -- time tracking --------------------------------------------------------

    @property
    def elapsed_time(self) -> float:
        if self._running:
            return self._elapsed_banked + (time.time() - self._start_time)
        return self._elapsed_banked

    @property
    def paused(self) -> bool:
        return not self._running

    def pause(self) -> None:
        if self._running:
            self._elapsed_banked += time.time() - self._start_time
            self._running = False

    def resume(self) -> None:
        if not self._running:
            self._start_time = time.time()
            self._running = True

    # -- moves ----------------------------------------------------------------

    def increment_moves(self) -> None:
        self.moves += 1

    @property
    def is_finished(self) -> bool:
        return self.status is not GameStatus.PLAYING

    def clear(self) -> None:
        self.status = GameStatus.CLEARED
        self.pause()

    def fail(self, reason: str) -> None:
        self.status = GameStatus.FAILED
        self.failure = reason
        self.pause()
