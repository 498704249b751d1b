"""Board model for the ice slide puzzle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# Cell encoding. Positive integers are numbered blocks.
EMPTY = 0
OBSTACLE = -1

MIN_SIZE = 4
MAX_SIZE = 8
MAX_BLOCKS = 9

_DELTAS: dict[str, tuple[int, int]] = {
    "up": (-1, 0),
    "down": (1, 0),
    "left": (0, -1),
    "right": (0, 1),
}

_OPPOSITES: dict[str, str] = {
    "up": "down",
    "down": "up",
    "left": "right",
    "right": "left",
}


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> tuple[int, int]:
        """Row/column step of one cell in this direction."""
        return _DELTAS[self.value]

    @property
    def opposite(self) -> Direction:
        return Direction(_OPPOSITES[self.value])


class InvalidBoard(ValueError):
    """Raised when a board violates one of its construction invariants."""


@dataclass
class Board:
    """Represents the ice puzzle board.

    Tiles are stored as a 2D list of ints: ``EMPTY`` (0), ``OBSTACLE`` (-1)
    or a block number. The hole is a fixed empty cell; blocks that slide
    into it leave the board. ``next_number`` is the smallest block number
    still on the board, ``block_count + 1`` once the board is cleared.

    The plain constructor does not validate, so the resolver and solver can
    build intermediate boards cheaply. Use :meth:`create` or
    :meth:`from_rows` for checked construction.
    """

    rows: int
    cols: int
    tiles: list[list[int]]
    hole: tuple[int, int]
    block_count: int
    next_number: int = 1

    # -- construction helpers -------------------------------------------------

    @classmethod
    def create(
        cls,
        tiles: list[list[int]],
        hole: tuple[int, int],
        next_number: int = 1,
        block_count: int | None = None,
        obstacle_count: int | None = None,
    ) -> Board:
        """Build a board and check every invariant.

        ``block_count`` defaults to the count implied by the blocks present
        and ``next_number``. Raises :class:`InvalidBoard` on any violation.
        """
        rows = len(tiles)
        cols = len(tiles[0]) if rows else 0
        if block_count is None:
            present = sum(1 for row in tiles for v in row if v > 0)
            block_count = next_number - 1 + present
        board = cls(
            rows=rows,
            cols=cols,
            tiles=[list(row) for row in tiles],
            hole=(hole[0], hole[1]),
            block_count=block_count,
            next_number=next_number,
        )
        board.validate(obstacle_count)
        return board

    @classmethod
    def from_rows(cls, layout: list[str], next_number: int = 1) -> Board:
        """Create a board from a text layout.

        ``.`` is empty, ``#`` an obstacle, ``O`` the hole and ``1``-``9``
        numbered blocks. Example::

            Board.from_rows([
                "21..O",
                ".....",
                "..#..",
                ".....",
                ".....",
            ])
        """
        tiles: list[list[int]] = []
        holes: list[tuple[int, int]] = []
        for r, line in enumerate(layout):
            row: list[int] = []
            for c, ch in enumerate(line):
                if ch == ".":
                    row.append(EMPTY)
                elif ch == "#":
                    row.append(OBSTACLE)
                elif ch == "O":
                    row.append(EMPTY)
                    holes.append((r, c))
                elif ch.isdigit() and ch != "0":
                    row.append(int(ch))
                else:
                    raise InvalidBoard(f"Unknown cell {ch!r} at ({r}, {c}).")
            tiles.append(row)
        if len(holes) != 1:
            raise InvalidBoard(f"Expected exactly one hole, found {len(holes)}.")
        return cls.create(tiles, holes[0], next_number=next_number)

    def validate(self, obstacle_count: int | None = None) -> None:
        """Raise :class:`InvalidBoard` unless the board is well formed."""
        if not (MIN_SIZE <= self.rows <= MAX_SIZE and MIN_SIZE <= self.cols <= MAX_SIZE):
            raise InvalidBoard(
                f"Board must be between {MIN_SIZE}x{MIN_SIZE} and "
                f"{MAX_SIZE}x{MAX_SIZE}, got {self.rows}x{self.cols}."
            )
        if any(len(row) != self.cols for row in self.tiles):
            raise InvalidBoard("Board rows have different lengths.")
        if not 0 <= self.block_count <= MAX_BLOCKS:
            raise InvalidBoard(f"Block count {self.block_count} out of range.")
        if not 1 <= self.next_number <= self.block_count + 1:
            raise InvalidBoard(
                f"next_number {self.next_number} outside 1..{self.block_count + 1}."
            )

        hr, hc = self.hole
        if not self.in_bounds(hr, hc):
            raise InvalidBoard(f"Hole {self.hole} is outside the board.")
        if self.tiles[hr][hc] != EMPTY:
            raise InvalidBoard(f"Hole {self.hole} is not empty.")

        numbers: list[int] = []
        obstacles = 0
        for row in self.tiles:
            for v in row:
                if v > 0:
                    numbers.append(v)
                elif v == OBSTACLE:
                    obstacles += 1
                elif v != EMPTY:
                    raise InvalidBoard(f"Unknown cell value {v}.")

        expected = list(range(self.next_number, self.block_count + 1))
        if sorted(numbers) != expected:
            raise InvalidBoard(
                f"Blocks on board {sorted(numbers)} do not match the "
                f"remaining numbers {expected}."
            )
        if obstacle_count is not None and obstacles != obstacle_count:
            raise InvalidBoard(
                f"Expected {obstacle_count} obstacles, found {obstacles}."
            )

    # -- queries --------------------------------------------------------------

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def get_cell(self, row: int, col: int) -> int:
        return self.tiles[row][col]

    def is_hole(self, row: int, col: int) -> bool:
        return (row, col) == self.hole

    def block_positions(self) -> dict[int, tuple[int, int]]:
        """Map each block number still on the board to its position."""
        return {
            v: (r, c)
            for r, row in enumerate(self.tiles)
            for c, v in enumerate(row)
            if v > 0
        }

    def obstacle_positions(self) -> list[tuple[int, int]]:
        return [
            (r, c)
            for r, row in enumerate(self.tiles)
            for c, v in enumerate(row)
            if v == OBSTACLE
        ]

    def is_cleared(self) -> bool:
        return self.next_number > self.block_count

    def flat(self) -> list[int]:
        """Row-major copy of the cells."""
        return [v for row in self.tiles for v in row]

    @property
    def hole_index(self) -> int:
        return self.hole[0] * self.cols + self.hole[1]

    def key(self) -> tuple:
        """Canonical, hashable serialization of the full board state.

        Two boards with equal keys behave identically for every future move.
        """
        return (
            self.rows,
            self.cols,
            tuple(self.flat()),
            self.hole_index,
            self.next_number,
            self.block_count,
        )

    def to_rows(self) -> list[str]:
        """Inverse of :meth:`from_rows`."""
        lines: list[str] = []
        for r, row in enumerate(self.tiles):
            chars: list[str] = []
            for c, v in enumerate(row):
                if (r, c) == self.hole:
                    chars.append("O")
                elif v == OBSTACLE:
                    chars.append("#")
                elif v == EMPTY:
                    chars.append(".")
                else:
                    chars.append(str(v))
            lines.append("".join(chars))
        return lines

    def load_flat(self, cells: list[int] | tuple[int, ...]) -> None:
        """Overwrite the grid from a row-major cell sequence."""
        for r in range(self.rows):
            self.tiles[r] = list(cells[r * self.cols : (r + 1) * self.cols])

    def copy(self) -> Board:
        return Board(
            rows=self.rows,
            cols=self.cols,
            tiles=[row[:] for row in self.tiles],
            hole=self.hole,
            block_count=self.block_count,
            next_number=self.next_number,
        )
