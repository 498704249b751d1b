"""Solver test suite: shortest clears, unsolvable boards and search limits.

Every solution the solver returns is replayed through the real move
resolver to check that it clears the board without a wrong-order drop.
"""

from __future__ import annotations

import threading

import pytest

from backend.engine.gameresolver import Outcome, apply_move
from backend.engine.gamesolver import Solver, SolverResult
from backend.models.board import Board, Direction


def _board(*rows: str, next_number: int = 1) -> Board:
    return Board.from_rows(list(rows), next_number=next_number)


def _assert_replay(board: Board, result: SolverResult) -> None:
    """Replay the solution on a copy and verify it clears the board."""
    assert result.solvable
    assert result.min_moves == len(result.moves)

    game = board.copy()
    for i, direction in enumerate(result.moves):
        outcome = apply_move(game, direction).outcome
        assert outcome in (Outcome.MOVED, Outcome.REMOVED), (
            f"Move {i} ({direction.value}) gave {outcome.value}"
        )
    assert game.is_cleared(), f"Board not cleared after {len(result.moves)} moves"


# -- solvable boards ----------------------------------------------------------


def test_single_block_one_move() -> None:
    board = _board(
        "1...O",
        ".....",
        ".....",
        ".....",
        ".....",
    )

    result = Solver.solve(board)

    assert result.solvable
    assert result.min_moves == 1
    assert result.moves == [Direction.RIGHT]
    _assert_replay(board, result)


def test_chain_needs_one_move_per_block() -> None:
    board = _board(
        "21..O",
        ".....",
        ".....",
        ".....",
        ".....",
    )

    result = Solver.solve(board)

    assert result.min_moves == 2
    assert result.moves == [Direction.RIGHT, Direction.RIGHT]
    _assert_replay(board, result)


def test_block_goes_around_an_obstacle() -> None:
    board = _board(
        "1.#.O",
        ".....",
        ".....",
        ".....",
        ".....",
    )

    result = Solver.solve(board)

    assert result.min_moves == 3
    assert result.moves == [Direction.DOWN, Direction.RIGHT, Direction.UP]
    _assert_replay(board, result)


def test_wrong_order_shortcut_is_avoided() -> None:
    # Tilting right first would drop 2 before 1.
    board = _board(
        "2...O",
        ".....",
        ".....",
        ".....",
        "....1",
    )

    result = Solver.solve(board)

    assert result.min_moves == 2
    assert result.moves == [Direction.UP, Direction.RIGHT]
    _assert_replay(board, result)
    assert apply_move(board.copy(), Direction.RIGHT).outcome is Outcome.PREMATURE_REMOVAL


def test_mixed_board_replays_cleanly() -> None:
    board = _board(
        "3.#.O",
        "..1..",
        "#....",
        "...2.",
        ".....",
    )

    result = Solver.solve(board)

    assert result.solvable
    assert result.min_moves is not None and result.min_moves >= 3
    _assert_replay(board, result)


def test_cleared_board_needs_no_moves() -> None:
    board = _board(
        "....O",
        ".....",
        ".....",
        ".....",
        ".....",
        next_number=3,
    )

    assert Solver.solve(board) == SolverResult(solvable=True, min_moves=0)
    assert Solver.hint(board) is None


# -- unsolvable boards --------------------------------------------------------


def test_walled_hole_is_unsolvable() -> None:
    board = _board(
        "1.#.O",
        "...##",
        ".....",
        ".....",
        ".....",
    )

    result = Solver.solve(board)

    assert not result.solvable
    assert result.min_moves is None
    assert result.moves == []
    assert not result.truncated
    assert result.explored > 0
    assert not Solver.is_solvable(board)


def test_inseparable_blocks_are_unsolvable() -> None:
    # The two blocks always share a row or column, and 2 always leads.
    board = _board(
        "2...O",
        ".....",
        ".....",
        ".....",
        "1....",
    )

    assert not Solver.solve(board).solvable


# -- properties ---------------------------------------------------------------


def test_solve_does_not_mutate_board() -> None:
    board = _board(
        "3.#.O",
        "..1..",
        "#....",
        "...2.",
        ".....",
    )
    before = board.key()

    Solver.solve(board)

    assert board.key() == before


def test_equal_boards_give_equal_results() -> None:
    layout = (
        "3.#.O",
        "..1..",
        "#....",
        "...2.",
        ".....",
    )

    a = Solver.solve(_board(*layout))
    b = Solver.solve(_board(*layout))

    assert (a.solvable, a.min_moves, a.moves) == (b.solvable, b.min_moves, b.moves)


def test_hint_is_first_optimal_move() -> None:
    board = _board(
        "2...O",
        ".....",
        ".....",
        ".....",
        "....1",
    )

    assert Solver.hint(board) is Direction.UP


# -- limits -------------------------------------------------------------------


def test_state_limit_truncates_search() -> None:
    board = _board(
        "21..O",
        ".....",
        ".....",
        ".....",
        ".....",
    )

    result = Solver.solve(board, max_states=1)

    assert not result.solvable
    assert result.truncated
    assert result.explored == 1


def test_cancelled_search_is_truncated() -> None:
    board = _board(
        "21..O",
        ".....",
        ".....",
        ".....",
        ".....",
    )
    cancel = threading.Event()
    cancel.set()

    result = Solver.solve(board, cancel=cancel)

    assert result.truncated
    assert result.explored == 0


@pytest.mark.parametrize("max_states", [None, 10_000])
def test_limit_does_not_change_small_answers(max_states: int | None) -> None:
    board = _board(
        "1.#.O",
        ".....",
        ".....",
        ".....",
        ".....",
    )

    assert Solver.solve(board, max_states=max_states).min_moves == 3
