"""Stage configuration table."""

from __future__ import annotations

from dataclasses import dataclass

from backend.models.board import MAX_BLOCKS

MAX_OBSTACLES = 10
MAX_SHUFFLE_MOVES = 48

# (last stage index of the tier, board size). Stages past the last tier
# use the final size.
_SIZE_TIERS: tuple[tuple[int, int], ...] = (
    (3, 5),
    (6, 6),
    (10, 7),
)
_FINAL_SIZE = 8


@dataclass(frozen=True)
class StageConfig:
    """Immutable generation parameters for one stage."""

    stage: int
    cols: int
    rows: int
    block_count: int
    obstacle_count: int
    shuffle_moves: int

    @property
    def hole(self) -> tuple[int, int]:
        """The exit sits in the top-right corner on every stage."""
        return (0, self.cols - 1)


def _size_for(stage: int) -> int:
    for last, size in _SIZE_TIERS:
        if stage <= last:
            return size
    return _FINAL_SIZE


def stage_config(stage: int) -> StageConfig:
    """Return the generation parameters for a 1-based stage index."""
    if stage < 1:
        raise ValueError(f"Stage index must be >= 1, got {stage}.")
    size = _size_for(stage)
    return StageConfig(
        stage=stage,
        cols=size,
        rows=size,
        block_count=min(MAX_BLOCKS, stage + 2),
        obstacle_count=min(MAX_OBSTACLES, stage // 2 + 1),
        shuffle_moves=min(MAX_SHUFFLE_MOVES, 4 + 3 * stage),
    )
