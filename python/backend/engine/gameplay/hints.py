"""Background hint computation."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from backend.engine.gamesolver.solver import Solver, SolverResult
from backend.models.board import Board

logger = logging.getLogger(__name__)


class HintWorker:
    """Runs the solver on a worker thread so the caller never blocks.

    Only one search is live at a time: a new request or :meth:`cancel`
    stops the previous one and its result is dropped. The worker solves a
    private copy of the board, so nothing needs to be unwound on cancel.

    Example::

        worker = HintWorker()
        worker.request(game.state.board, show_hint)
        ...
        worker.cancel()   # stage changed, result no longer wanted
    """

    def __init__(self, max_states: int | None = None) -> None:
        self.max_states = max_states
        self._lock = threading.RLock()
        self._cancel: threading.Event | None = None
        self._thread: threading.Thread | None = None

    def request(
        self, board: Board, callback: Callable[[SolverResult], None]
    ) -> None:
        """Start solving *board*; *callback* receives the result on the
        worker thread unless the request is cancelled first."""
        snapshot = board.copy()
        cancel = threading.Event()
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
            self._cancel = cancel
            self._thread = threading.Thread(
                target=self._run,
                args=(snapshot, cancel, callback),
                name="hint-worker",
                daemon=True,
            )
            self._thread.start()

    def cancel(self) -> None:
        """Drop the live search. Waits out a result already being delivered."""
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
                self._cancel = None

    @property
    def busy(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def wait(self, timeout: float | None = None) -> bool:
        """Join the current search. Returns False if it is still running."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _run(
        self,
        board: Board,
        cancel: threading.Event,
        callback: Callable[[SolverResult], None],
    ) -> None:
        result = Solver.solve(board, max_states=self.max_states, cancel=cancel)
        # Delivered under the lock so that once cancel() returns, no result
        # for the old board can arrive. A callback may call request().
        with self._lock:
            if cancel.is_set():
                logger.debug("Discarding hint for a stale board")
                return
            callback(result)
