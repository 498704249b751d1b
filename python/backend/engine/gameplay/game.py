"""Core gameplay logic — processes moves, scoring and stage flow."""

from __future__ import annotations

import logging
import random
from typing import Callable

from backend.engine.gamegenerator import GameGenerator, Stage
from backend.engine.gameplay.hints import HintWorker
from backend.engine.gameresolver import MoveResult, Outcome, apply_move
from backend.engine.gamesolver import Solver, SolverResult
from backend.engine.gamestate import GameState, GameStatus
from backend.models.board import Board, Direction
from backend.settings import EngineSettings

logger = logging.getLogger(__name__)


class GamePlay:
    """Orchestrates a run of stages, one attempt at a time."""

    def __init__(
        self,
        stage: int = 1,
        settings: EngineSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or EngineSettings.from_env()
        self._rng = rng or random.Random(self.settings.seed)
        self.hints = HintWorker(self.settings.solver_state_limit)
        self._load(GameGenerator.generate(stage, self._rng, self.settings))

    @classmethod
    def from_board(
        cls,
        board: Board,
        par: int | None = None,
        settings: EngineSettings | None = None,
    ) -> "GamePlay":
        """Create a session from an existing board (e.g. a hand-made one).

        The par is solved for when not given.
        """
        obj = object.__new__(cls)
        obj.settings = settings or EngineSettings()
        obj._rng = random.Random(obj.settings.seed)
        obj.hints = HintWorker(obj.settings.solver_state_limit)
        obj.stage = None
        obj.stage_index = 0
        if par is None:
            par = Solver.solve(board, max_states=obj.settings.solver_state_limit).min_moves or 0
        obj.par = par
        obj._initial = board.copy()
        obj.state = GameState(board.copy())
        return obj

    def _load(self, stage: Stage) -> None:
        self.stage: Stage | None = stage
        self.stage_index = stage.config.stage
        self.par = stage.par
        self._initial = stage.board.copy()
        self.state = GameState(stage.board.copy())

    # -- movement -------------------------------------------------------------

    def move(
        self, direction: Direction, selection: tuple[int, int] | None = None
    ) -> MoveResult:
        """Tilt the board (or push the selected chain) in *direction*.

        Moves are ignored while paused or once the attempt is over.
        """
        state = self.state
        if state.is_finished or state.paused:
            return MoveResult(Outcome.NO_EFFECT, cleared=state.board.is_cleared())

        result = apply_move(state.board, direction, selection)
        if not result.counts:
            return result

        self.hints.cancel()
        state.increment_moves()

        if result.outcome is Outcome.PREMATURE_REMOVAL:
            state.fail(
                f"Dropped {result.number} while {state.board.next_number} was needed."
            )
        elif result.cleared:
            state.clear()
            logger.info(
                "Stage %d cleared in %d moves (par %d)",
                self.stage_index,
                state.moves,
                self.par,
            )
        elif state.moves >= self.move_limit:
            state.fail(f"Used all {self.move_limit} moves.")

        if state.status is GameStatus.FAILED:
            logger.info("Stage %d failed: %s", self.stage_index, state.failure)
        return result

    # -- stage flow -----------------------------------------------------------

    def restart(self) -> None:
        """Start the same stage again from its initial board."""
        self.hints.cancel()
        self.state = GameState(self._initial.copy())

    def next_stage(self) -> None:
        self.hints.cancel()
        self._load(GameGenerator.generate(self.stage_index + 1, self._rng, self.settings))

    def pause(self) -> None:
        self.state.pause()

    def resume(self) -> None:
        if not self.state.is_finished:
            self.state.resume()

    # -- hints ----------------------------------------------------------------

    def hint(self) -> Direction | None:
        return Solver.hint(self.state.board, max_states=self.settings.solver_state_limit)

    def request_hint(self, callback: Callable[[SolverResult], None]) -> None:
        """Solve the current board in the background; see ``HintWorker``."""
        self.hints.request(self.state.board, callback)

    # -- queries --------------------------------------------------------------

    @property
    def move_limit(self) -> int:
        return max(1, self.par * self.settings.par_fail_factor)

    @property
    def is_won(self) -> bool:
        return self.state.status is GameStatus.CLEARED

    @property
    def is_failed(self) -> bool:
        return self.state.status is GameStatus.FAILED

    @property
    def stars(self) -> int:
        if not self.is_won:
            return 0
        if self.state.moves <= self.par:
            return 3
        if self.state.moves <= self.par + self.settings.star_slack:
            return 2
        return 1
