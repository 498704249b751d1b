"""Generates solvable ice puzzle stages."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from backend.engine.gameresolver.resolver import neighbours, slide
from backend.engine.gamesolver.solver import Solver
from backend.models.board import EMPTY, OBSTACLE, Board, Direction
from backend.models.stage import StageConfig, stage_config
from backend.settings import EngineSettings

logger = logging.getLogger(__name__)

# Reverse steps tried per scramble before the walk gives up.
_WALK_NODE_LIMIT = 2000

# The step undone from an earlier grid: the tilt direction and whether that
# tilt drops a block. ``None`` marks the last step, which leaves the earlier
# grid's blocks anywhere along their lanes.
_Plan = tuple[Direction, bool] | None


class GenerationFailed(RuntimeError):
    """No acceptable stage was produced within the retry budget."""

    def __init__(self, stage_index: int, attempts: int) -> None:
        super().__init__(
            f"Could not generate stage {stage_index} after {attempts} attempts."
        )
        self.stage_index = stage_index
        self.attempts = attempts


@dataclass(frozen=True)
class Stage:
    """A generated stage.

    ``board`` is the starting position; play on a copy. ``shuffle`` is the
    forward replay of the reverse walk, a known (not necessarily shortest)
    way to clear it.
    """

    config: StageConfig
    board: Board
    par: int
    shuffle: tuple[Direction, ...]
    seed: int


@dataclass(frozen=True)
class _Lanes:
    """Obstacle-free runs of cells along each direction, leading cell first.

    A tilt keeps every block inside its lane and packs the lane's blocks
    against the leading end. ``drain`` maps a direction to the lane whose
    leading cell borders the hole, for the directions that can tilt a block
    into it.
    """

    rows: int
    cols: int
    hole: int
    runs: dict[Direction, tuple[tuple[int, ...], ...]]
    drain: dict[Direction, int]

    @classmethod
    def of(cls, board: Board) -> _Lanes:
        cells = board.flat()
        rows, cols, hole = board.rows, board.cols, board.hole_index
        runs: dict[Direction, tuple[tuple[int, ...], ...]] = {}
        drain: dict[Direction, int] = {}

        for direction in Direction:
            ahead = neighbours(rows, cols, direction)
            behind = neighbours(rows, cols, direction.opposite)
            found: list[tuple[int, ...]] = []
            for start, value in enumerate(cells):
                if start == hole or value == OBSTACLE:
                    continue
                front = ahead[start]
                if front >= 0 and front != hole and cells[front] != OBSTACLE:
                    continue
                lane: list[int] = []
                pos = start
                while pos >= 0 and pos != hole and cells[pos] != OBSTACLE:
                    lane.append(pos)
                    pos = behind[pos]
                if front == hole:
                    drain[direction] = len(found)
                found.append(tuple(lane))
            runs[direction] = tuple(found)

        return cls(rows, cols, hole, runs, drain)


@dataclass
class _Frame:
    """One state on the reverse walk and the step that will be undone from it.

    ``options`` holds the plans still untried for the grid before it.
    """

    cells: tuple[int, ...]
    next_number: int
    direction: Direction
    drop: bool
    options: list[_Plan]


class GameGenerator:
    """Creates solvable stages by undoing moves from the cleared board."""

    @staticmethod
    def solved(config: StageConfig, rng: random.Random) -> Board:
        """Return the goal board: no blocks, obstacles placed at random.

        Obstacles never touch the hole, so it can always be approached.
        """
        hr, hc = config.hole
        reserved = {(hr, hc), (hr - 1, hc), (hr + 1, hc), (hr, hc - 1), (hr, hc + 1)}
        free = [
            (r, c)
            for r in range(config.rows)
            for c in range(config.cols)
            if (r, c) not in reserved
        ]
        tiles = [[EMPTY] * config.cols for _ in range(config.rows)]
        for r, c in rng.sample(free, config.obstacle_count):
            tiles[r][c] = OBSTACLE
        return Board.create(
            tiles,
            config.hole,
            next_number=config.block_count + 1,
            block_count=config.block_count,
            obstacle_count=config.obstacle_count,
        )

    @staticmethod
    def scramble(
        board: Board, budget: int, rng: random.Random
    ) -> list[Direction] | None:
        """Walk the cleared *board* back up to *budget* tilts, in-place.

        Every state the walk passes through is one a tilt can produce, so
        each earlier grid is built already resting against something in
        the direction of the step that will be undone from it. Dead ends
        are backtracked; the walk stops short of *budget* only when it
        cannot go on. Returns the forward move sequence that undoes the
        walk, or ``None`` when no walk placing every block was found (the
        board is left untouched then).
        """
        if not board.is_cleared():
            raise ValueError("Only a cleared board can be scrambled.")

        lanes = _Lanes.of(board)
        cells = tuple(board.flat())
        next_number = board.next_number
        firsts = list(lanes.drain)
        rng.shuffle(firsts)
        tried = 0

        for first in firsts:
            root = _Frame(cells, next_number, first, next_number > 1, [])
            root.options = GameGenerator._plans(lanes, root, budget, 0, rng)
            path = [root]
            on_path = {(cells, next_number)}

            while path:
                frame = path[-1]
                if tried >= _WALK_NODE_LIMIT:
                    # Out of steps: finish from the deepest state that can.
                    frame.options = [p for p in frame.options if p is None]
                if not frame.options:
                    path.pop()
                    on_path.discard((frame.cells, frame.next_number))
                    continue

                plan = frame.options.pop(0)
                tried += 1
                earlier = GameGenerator._undo(lanes, frame, plan, rng)
                if earlier is None:
                    continue
                earlier_next = frame.next_number - frame.drop
                if (earlier, earlier_next) in on_path:
                    continue
                if not GameGenerator._replays_to(lanes, earlier, frame):
                    logger.debug("Discarding a reverse step that does not replay")
                    continue

                if plan is None:
                    board.load_flat(earlier)
                    board.next_number = earlier_next
                    moves = [f.direction for f in path]
                    moves.reverse()
                    logger.debug("Reverse walk done after %d steps tried", tried)
                    return moves

                child = _Frame(earlier, earlier_next, plan[0], plan[1], [])
                child.options = GameGenerator._plans(lanes, child, budget, len(path), rng)
                path.append(child)
                on_path.add((earlier, earlier_next))

        logger.debug("Reverse walk gave up after %d steps tried", tried)
        return None

    @staticmethod
    def generate(
        stage_index: int,
        rng: random.Random | None = None,
        settings: EngineSettings | None = None,
    ) -> Stage:
        """Return a validated stage for *stage_index*.

        Raises ``GenerationFailed`` when every attempt is rejected.
        """
        return GameGenerator.from_config(stage_config(stage_index), rng, settings)

    @staticmethod
    def from_config(
        config: StageConfig,
        rng: random.Random | None = None,
        settings: EngineSettings | None = None,
    ) -> Stage:
        settings = settings or EngineSettings()
        rng = rng or random.Random(settings.seed)

        for attempt in range(1, settings.max_retries + 1):
            seed = rng.randrange(2**32)
            attempt_rng = random.Random(seed)

            board = GameGenerator.solved(config, attempt_rng)
            shuffle = GameGenerator.scramble(board, config.shuffle_moves, attempt_rng)
            if shuffle is None:
                continue

            result = Solver.solve(board, max_states=settings.solver_state_limit)
            if not result.solvable or result.min_moves is None:
                if not result.truncated:
                    logger.warning(
                        "Scrambled board for stage %d (seed %d) has no solution",
                        config.stage,
                        seed,
                    )
                continue
            if result.min_moves <= 1:
                logger.debug("Rejecting trivial board (par %d)", result.min_moves)
                continue

            board.validate(config.obstacle_count)
            logger.info(
                "Generated stage %d: par %d, %d shuffle moves, seed %d, attempt %d",
                config.stage,
                result.min_moves,
                len(shuffle),
                seed,
                attempt,
            )
            return Stage(
                config=config,
                board=board,
                par=result.min_moves,
                shuffle=tuple(shuffle),
                seed=seed,
            )

        raise GenerationFailed(config.stage, settings.max_retries)

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _plans(
        lanes: _Lanes, frame: _Frame, budget: int, depth: int, rng: random.Random
    ) -> list[_Plan]:
        """Plans to try for the grid before *frame*, most wanted first.

        Each block needs one dropping step. Once the steps left only just
        cover the blocks still out, every step must drop one.
        """
        left = budget - depth - 1
        to_place = frame.next_number - 1 - frame.drop
        if to_place > left:
            return []
        if left == 0:
            return [None, None]

        facings = [d for d in Direction if d is not frame.direction]
        drops: list[_Plan] = [
            (d, True) for d in facings if to_place and d in lanes.drain
        ]
        if to_place and frame.drop:
            # The same tilt twice: the first drops a block and the second
            # drops the one that stopped behind it.
            drops.append((frame.direction, True))
        stays: list[_Plan] = [(d, False) for d in facings] if to_place < left else []
        rng.shuffle(drops)
        rng.shuffle(stays)

        if drops and rng.random() < 2 * to_place / left:
            order = drops + stays
        else:
            order = stays + drops
        # A second pass re-rolls the random placement of each plan.
        plans = order + order
        if not to_place:
            # Every block is out: stopping here is the fallback to walking on.
            plans.append(None)
        return plans

    @staticmethod
    def _undo(
        lanes: _Lanes, frame: _Frame, plan: _Plan, rng: random.Random
    ) -> tuple[int, ...] | None:
        """Build a grid that tilting ``frame.direction`` turns into ``frame.cells``.

        The blocks of each lane keep their order. When ``frame.drop`` is set,
        block ``next_number - 1`` goes in front of the drain lane. With a
        *plan*, every block of the new grid must rest against something in
        the plan's direction, the hole counting only when that step drops.
        """
        cells = frame.cells
        runs = lanes.runs[frame.direction]
        contents = [[cells[i] for i in lane if cells[i] > 0] for lane in runs]
        if frame.drop:
            contents[lanes.drain[frame.direction]].insert(0, frame.next_number - 1)

        earlier = [OBSTACLE if v == OBSTACLE else EMPTY for v in cells]

        if plan is None:
            for lane, blocks in zip(runs, contents):
                if not GameGenerator._spread(earlier, list(lane), blocks, rng):
                    return None

        elif plan[0] is frame.direction:
            for lane, blocks in zip(runs, contents):
                if len(blocks) > len(lane):
                    return None
                for idx, number in zip(lane, blocks):
                    earlier[idx] = number

        elif plan[0] is frame.direction.opposite:
            plug = plan[1]
            beyond = neighbours(lanes.rows, lanes.cols, plan[0])
            for lane, blocks in zip(runs, contents):
                if not blocks:
                    continue
                if len(blocks) > len(lane):
                    return None
                if beyond[lane[-1]] == lanes.hole and not plug:
                    return None
                for idx, number in zip(lane[len(lane) - len(blocks) :], blocks):
                    earlier[idx] = number

        else:
            facing, plug = plan
            ahead = neighbours(lanes.rows, lanes.cols, facing)
            dr, dc = facing.delta

            def distance(k: int) -> int:
                r, c = divmod(runs[k][0], lanes.cols)
                return -(dr * r + dc * c)

            # Lanes nearest the wall faced first, so supports are placed
            # before the blocks leaning on them.
            order = sorted(range(len(runs)), key=distance)
            for k in order:
                blocks = contents[k]
                if not blocks:
                    continue
                spots = [
                    i
                    for i in runs[k]
                    if ahead[i] < 0
                    or earlier[ahead[i]] != EMPTY
                    or (plug and ahead[i] == lanes.hole)
                ]
                if not GameGenerator._spread(earlier, spots, blocks, rng):
                    return None

        result = tuple(earlier)
        if result == cells:
            return None
        return result

    @staticmethod
    def _spread(
        earlier: list[int], spots: list[int], blocks: list[int], rng: random.Random
    ) -> bool:
        """Put *blocks* on random *spots*, keeping their lane order."""
        if len(blocks) > len(spots):
            return False
        picks = sorted(rng.sample(range(len(spots)), len(blocks)))
        for number, at in zip(blocks, picks):
            earlier[spots[at]] = number
        return True

    @staticmethod
    def _replays_to(lanes: _Lanes, earlier: tuple[int, ...], frame: _Frame) -> bool:
        """Check that tilting *earlier* forward reproduces the frame legally."""
        work = list(earlier)
        moved, dropped = slide(
            work, lanes.rows, lanes.cols, lanes.hole, frame.direction
        )
        if not moved or tuple(work) != frame.cells:
            return False
        if frame.drop:
            return dropped == frame.next_number - 1
        return dropped is None
