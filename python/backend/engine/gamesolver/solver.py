"""Ice slide puzzle solver."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field

from backend.engine.gameresolver.resolver import slide
from backend.models.board import Board, Direction

logger = logging.getLogger(__name__)

# A search node: row-major cells plus the next required number. Rows, cols,
# hole and block count are fixed for one search, so this pair is the
# variable part of Board.key().
_State = tuple[tuple[int, ...], int]


@dataclass(frozen=True)
class SolverResult:
    solvable: bool
    min_moves: int | None = None
    moves: list[Direction] = field(default_factory=list)
    explored: int = 0
    truncated: bool = False


class Solver:
    """Stateless solver — all methods are static."""

    @staticmethod
    def solve(
        board: Board,
        max_states: int | None = None,
        cancel: threading.Event | None = None,
    ) -> SolverResult:
        """Breadth-first search for the shortest clearing move sequence.

        Tilts that change nothing and tilts that drop a block out of order
        are never expanded. *board* is not modified. When *max_states*
        expansions are exceeded or *cancel* is set, the result is
        unsolvable with ``truncated=True``.
        """
        if board.is_cleared():
            return SolverResult(solvable=True, min_moves=0)

        rows, cols = board.rows, board.cols
        hole = board.hole_index
        goal = board.block_count + 1
        start: _State = (tuple(board.flat()), board.next_number)

        parents: dict[_State, tuple[_State, Direction] | None] = {start: None}
        queue: deque[_State] = deque([start])
        explored = 0

        while queue:
            if cancel is not None and cancel.is_set():
                logger.debug("Search cancelled after %d states", explored)
                return SolverResult(solvable=False, explored=explored, truncated=True)
            if max_states is not None and explored >= max_states:
                logger.warning("Search stopped at the %d state limit", max_states)
                return SolverResult(solvable=False, explored=explored, truncated=True)

            state = queue.popleft()
            explored += 1
            cells, next_number = state

            for direction in Direction:
                work = list(cells)
                moved, dropped = slide(work, rows, cols, hole, direction)
                if not moved:
                    continue
                if dropped is None:
                    child: _State = (tuple(work), next_number)
                elif dropped == next_number:
                    child = (tuple(work), next_number + 1)
                else:
                    continue
                if child in parents:
                    continue
                parents[child] = (state, direction)
                if child[1] == goal:
                    moves = Solver._path(parents, child)
                    logger.debug(
                        "Solved in %d moves after %d states", len(moves), explored
                    )
                    return SolverResult(
                        solvable=True,
                        min_moves=len(moves),
                        moves=moves,
                        explored=explored,
                    )
                queue.append(child)

        logger.debug("No solution, %d states exhausted", explored)
        return SolverResult(solvable=False, explored=explored)

    @staticmethod
    def hint(board: Board, max_states: int | None = None) -> Direction | None:
        """Return the first move of a shortest solution, or ``None`` if
        solved / unsolvable."""
        if board.is_cleared():
            return None

        result = Solver.solve(board, max_states=max_states)
        return result.moves[0] if result.moves else None

    @staticmethod
    def is_solvable(board: Board, max_states: int | None = None) -> bool:
        """Return True if *board* can be cleared without a wrong-order drop."""
        return Solver.solve(board, max_states=max_states).solvable

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _path(
        parents: dict[_State, tuple[_State, Direction] | None], end: _State
    ) -> list[Direction]:
        moves: list[Direction] = []
        link = parents[end]
        while link is not None:
            prev, direction = link
            moves.append(direction)
            link = parents[prev]
        moves.reverse()
        return moves
