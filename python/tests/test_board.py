"""Board model tests: construction invariants, queries and the state key."""

from __future__ import annotations

import pytest

from backend.models.board import EMPTY, OBSTACLE, Board, Direction, InvalidBoard


LAYOUT = [
    "21..O",
    ".....",
    "..#..",
    ".....",
    "3....",
]


# -- construction -------------------------------------------------------------


def test_from_rows_parses_cells() -> None:
    board = Board.from_rows(LAYOUT)

    assert (board.rows, board.cols) == (5, 5)
    assert board.hole == (0, 4)
    assert board.block_count == 3
    assert board.next_number == 1
    assert board.get_cell(0, 0) == 2
    assert board.get_cell(2, 2) == OBSTACLE
    assert board.get_cell(0, 4) == EMPTY
    assert board.to_rows() == LAYOUT


def test_create_checks_obstacle_count() -> None:
    board = Board.from_rows(LAYOUT)
    Board.create(board.tiles, board.hole, obstacle_count=1)

    with pytest.raises(InvalidBoard, match="obstacles"):
        Board.create(board.tiles, board.hole, obstacle_count=2)


@pytest.mark.parametrize(
    "layout, next_number",
    [
        (["11..O", ".....", ".....", ".....", "....."], 1),   # duplicate
        (["13..O", ".....", ".....", ".....", "....."], 1),   # gap
        (["12..O", ".....", ".....", ".....", "....."], 2),   # removed block present
        (["1..O", "....", "...."], 1),                        # too small
        (["1...O", "....", ".....", ".....", "....."], 1),    # ragged
        (["1...O", "....O", ".....", ".....", "....."], 1),   # two holes
        (["1....", ".....", ".....", ".....", "....."], 1),   # no hole
        (["1...O", ".....", "..x..", ".....", "....."], 1),   # unknown cell
    ],
    ids=["duplicate", "gap", "stale", "small", "ragged", "two-holes", "no-hole", "unknown"],
)
def test_invalid_layouts_rejected(layout: list[str], next_number: int) -> None:
    with pytest.raises(InvalidBoard):
        Board.from_rows(layout, next_number=next_number)


def test_hole_must_be_empty() -> None:
    tiles = [[EMPTY] * 5 for _ in range(5)]
    tiles[0][4] = 1
    with pytest.raises(InvalidBoard, match="not empty"):
        Board.create(tiles, (0, 4))


def test_hole_must_be_on_board() -> None:
    tiles = [[EMPTY] * 5 for _ in range(5)]
    tiles[1][1] = 1
    with pytest.raises(InvalidBoard, match="outside"):
        Board.create(tiles, (0, 5))


def test_invalid_board_is_a_value_error() -> None:
    assert issubclass(InvalidBoard, ValueError)


# -- queries ------------------------------------------------------------------


def test_block_positions_and_obstacles() -> None:
    board = Board.from_rows(LAYOUT)

    assert board.block_positions() == {1: (0, 1), 2: (0, 0), 3: (4, 0)}
    assert board.obstacle_positions() == [(2, 2)]


def test_cleared_when_every_number_removed() -> None:
    board = Board.from_rows(
        ["....O", ".....", ".....", ".....", "....."], next_number=3
    )

    assert board.block_count == 2
    assert board.is_cleared()
    assert not Board.from_rows(LAYOUT).is_cleared()


def test_partially_cleared_board() -> None:
    board = Board.from_rows(
        ["3...O", ".....", ".....", ".....", "....2"], next_number=2
    )

    assert board.block_count == 3
    assert not board.is_cleared()


def test_key_is_value_based() -> None:
    a = Board.from_rows(LAYOUT)
    b = Board.from_rows(LAYOUT)

    assert a is not b
    assert a.key() == b.key()
    assert hash(a.key()) == hash(b.key())

    b.next_number = 2
    assert a.key() != b.key()


def test_copy_is_independent() -> None:
    board = Board.from_rows(LAYOUT)
    clone = board.copy()

    clone.tiles[1][1] = 4
    clone.next_number = 2

    assert board.get_cell(1, 1) == EMPTY
    assert board.next_number == 1
    assert board.key() != clone.key()


# -- directions ---------------------------------------------------------------


@pytest.mark.parametrize(
    "direction, delta, opposite",
    [
        (Direction.UP, (-1, 0), Direction.DOWN),
        (Direction.DOWN, (1, 0), Direction.UP),
        (Direction.LEFT, (0, -1), Direction.RIGHT),
        (Direction.RIGHT, (0, 1), Direction.LEFT),
    ],
)
def test_direction_geometry(
    direction: Direction, delta: tuple[int, int], opposite: Direction
) -> None:
    assert direction.delta == delta
    assert direction.opposite is opposite
