"""Move resolution: tilts the board and applies the ordered-removal rule."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import Iterable

from backend.models.board import EMPTY, Board, Direction

logger = logging.getLogger(__name__)


class Outcome(StrEnum):
    MOVED = "moved"
    REMOVED = "removed"
    PREMATURE_REMOVAL = "premature_removal"
    NO_EFFECT = "no_effect"


@dataclass(frozen=True)
class MoveResult:
    """What a single move did to the board.

    ``number`` is the block that dropped into the hole (``REMOVED`` and
    ``PREMATURE_REMOVAL`` only). ``moved`` counts blocks that changed cell.
    """

    outcome: Outcome
    number: int | None = None
    moved: int = 0
    cleared: bool = False

    @property
    def counts(self) -> bool:
        """Whether the move should consume a move on the player's counter."""
        return self.outcome is not Outcome.NO_EFFECT


# -- flat-grid helpers --------------------------------------------------------


@lru_cache(maxsize=None)
def neighbours(rows: int, cols: int, direction: Direction) -> tuple[int, ...]:
    """Index of the next cell in *direction* for every cell, ``-1`` off-board."""
    dr, dc = direction.delta
    out: list[int] = []
    for r in range(rows):
        for c in range(cols):
            nr, nc = r + dr, c + dc
            out.append(nr * cols + nc if 0 <= nr < rows and 0 <= nc < cols else -1)
    return tuple(out)


@lru_cache(maxsize=None)
def scan_order(rows: int, cols: int, direction: Direction) -> tuple[int, ...]:
    """Cell indices ordered leading edge first for *direction*."""
    dr, dc = direction.delta
    row_range = range(rows - 1, -1, -1) if dr > 0 else range(rows)
    col_range = range(cols - 1, -1, -1) if dc > 0 else range(cols)
    return tuple(r * cols + c for r in row_range for c in col_range)


def chain_from(
    cells: list[int], rows: int, cols: int, start: int, direction: Direction
) -> list[int]:
    """The block at *start* plus the contiguous blocks directly ahead of it,
    leading block first."""
    ahead = neighbours(rows, cols, direction)
    chain = [start]
    pos = ahead[start]
    while pos >= 0 and cells[pos] > 0:
        chain.append(pos)
        pos = ahead[pos]
    chain.reverse()
    return chain


def slide(
    cells: list[int],
    rows: int,
    cols: int,
    hole: int,
    direction: Direction,
    movers: Iterable[int] | None = None,
) -> tuple[int, int | None]:
    """Slide blocks of a row-major grid in place.

    *movers* restricts the move to the given indices, which must be listed
    leading block first; by default every block moves. A block that steps
    onto the hole drops in and plugs it until the move ends, so at most one
    block drops per call. Returns ``(moved, dropped_number)``.
    """
    ahead = neighbours(rows, cols, direction)
    order = scan_order(rows, cols, direction) if movers is None else movers
    moved = 0
    dropped: int | None = None

    for start in order:
        number = cells[start]
        if number <= 0:
            continue
        pos = start
        while pos != hole:
            nxt = ahead[pos]
            if nxt < 0 or cells[nxt] != EMPTY:
                break
            pos = nxt
        if pos == start:
            continue
        cells[start] = EMPTY
        cells[pos] = number
        moved += 1
        if pos == hole:
            dropped = number

    if dropped is not None:
        cells[hole] = EMPTY
    return moved, dropped


# -- public API ---------------------------------------------------------------


def apply_move(
    board: Board,
    direction: Direction,
    selection: tuple[int, int] | None = None,
) -> MoveResult:
    """Apply one move to *board* in place and report the outcome.

    Without *selection* the whole board tilts. With *selection* only the
    block at that cell and the chain directly ahead of it move. A premature
    removal is not reverted: the wrong block has left the board and the
    attempt is over.
    """
    cells = board.flat()
    movers: list[int] | None = None
    if selection is not None:
        r, c = selection
        if not board.in_bounds(r, c) or board.get_cell(r, c) <= 0:
            return MoveResult(Outcome.NO_EFFECT, cleared=board.is_cleared())
        movers = chain_from(cells, board.rows, board.cols, r * board.cols + c, direction)

    moved, dropped = slide(
        cells, board.rows, board.cols, board.hole_index, direction, movers
    )
    if not moved:
        return MoveResult(Outcome.NO_EFFECT, cleared=board.is_cleared())

    board.load_flat(cells)

    if dropped is None:
        return MoveResult(Outcome.MOVED, moved=moved, cleared=board.is_cleared())

    if dropped == board.next_number:
        board.next_number += 1
        logger.debug("Block %d removed, next is %d", dropped, board.next_number)
        return MoveResult(
            Outcome.REMOVED, number=dropped, moved=moved, cleared=board.is_cleared()
        )

    logger.info(
        "Block %d dropped while %d was required", dropped, board.next_number
    )
    return MoveResult(Outcome.PREMATURE_REMOVAL, number=dropped, moved=moved)


def tilt(board: Board, direction: Direction) -> tuple[Board, MoveResult]:
    """Non-mutating variant of :func:`apply_move` for a whole-board tilt."""
    after = board.copy()
    result = apply_move(after, direction)
    return after, result
