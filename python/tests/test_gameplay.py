"""Gameplay session tests: move counting, stage flow, scoring and hints."""

from __future__ import annotations

import random
import threading

from backend.engine.gameplay import GamePlay, HintWorker
from backend.engine.gameplay import hints as hints_module
from backend.engine.gameresolver import Outcome
from backend.engine.gamesolver import SolverResult
from backend.engine.gamestate import GameStatus
from backend.models.board import Board, Direction
from backend.settings import EngineSettings

CHAIN = [
    "21..O",
    ".....",
    ".....",
    ".....",
    ".....",
]

SINGLE = [
    "1...O",
    ".....",
    ".....",
    ".....",
    ".....",
]


def _game(layout: list[str], **settings: int) -> GamePlay:
    return GamePlay.from_board(Board.from_rows(layout), settings=EngineSettings(**settings))


# -- moves --------------------------------------------------------------------


def test_from_board_solves_for_par() -> None:
    game = _game(CHAIN)

    assert game.par == 2
    assert game.state.moves == 0
    assert game.state.status is GameStatus.PLAYING


def test_clearing_at_par_earns_three_stars() -> None:
    game = _game(CHAIN)

    first = game.move(Direction.RIGHT)
    assert first.outcome is Outcome.REMOVED
    assert not game.is_won
    assert game.stars == 0

    game.move(Direction.RIGHT)

    assert game.is_won
    assert game.state.moves == 2
    assert game.stars == 3
    assert game.state.paused


def test_clearing_over_par_earns_fewer_stars() -> None:
    game = _game(SINGLE, star_slack=2)

    game.move(Direction.DOWN)
    game.move(Direction.UP)
    game.move(Direction.RIGHT)

    assert game.is_won
    assert game.state.moves == 3
    assert game.stars == 2


def test_no_effect_does_not_count() -> None:
    game = _game(SINGLE)

    result = game.move(Direction.UP)

    assert result.outcome is Outcome.NO_EFFECT
    assert game.state.moves == 0


def test_premature_removal_fails_the_attempt() -> None:
    game = _game(
        [
            "2...O",
            ".....",
            ".....",
            ".....",
            "....1",
        ]
    )

    result = game.move(Direction.RIGHT)

    assert result.outcome is Outcome.PREMATURE_REMOVAL
    assert game.is_failed
    assert "Dropped 2" in game.state.failure
    assert game.state.moves == 1

    after = game.move(Direction.UP)
    assert after.outcome is Outcome.NO_EFFECT
    assert game.state.moves == 1


def test_running_out_of_moves_fails() -> None:
    game = _game(CHAIN, par_fail_factor=1)

    game.move(Direction.DOWN)
    assert not game.is_failed
    game.move(Direction.UP)

    assert game.is_failed
    assert game.move_limit == 2
    assert "2 moves" in game.state.failure


def test_moves_ignored_while_paused() -> None:
    game = _game(SINGLE)
    game.pause()

    assert game.move(Direction.RIGHT).outcome is Outcome.NO_EFFECT

    game.resume()
    assert game.move(Direction.RIGHT).outcome is Outcome.REMOVED


def test_selection_moves_through_the_session() -> None:
    game = _game(
        [
            "1...O",
            ".....",
            "2....",
            ".....",
            ".....",
        ]
    )

    result = game.move(Direction.RIGHT, selection=(2, 0))

    assert result.outcome is Outcome.MOVED
    assert game.state.board.block_positions() == {1: (0, 0), 2: (2, 4)}


# -- stage flow ---------------------------------------------------------------


def test_restart_restores_initial_board() -> None:
    game = _game(CHAIN)
    before = game.state.board.key()

    game.move(Direction.RIGHT)
    game.restart()

    assert game.state.board.key() == before
    assert game.state.moves == 0
    assert game.state.status is GameStatus.PLAYING


def test_generated_session_and_next_stage() -> None:
    game = GamePlay(1, EngineSettings(), random.Random(3))

    assert game.stage is not None
    assert game.stage_index == 1
    assert game.par == game.stage.par
    assert game.state.board.key() == game.stage.board.key()
    assert game.state.board is not game.stage.board

    game.next_stage()

    assert game.stage_index == 2
    assert game.state.moves == 0


def test_playing_the_hint_line_clears_at_par() -> None:
    game = GamePlay(2, EngineSettings(), random.Random(8))

    while not game.state.is_finished:
        hint = game.hint()
        assert hint is not None
        game.move(hint)

    assert game.is_won
    assert game.state.moves == game.par
    assert game.stars == 3


# -- background hints ---------------------------------------------------------


def test_request_hint_calls_back() -> None:
    game = _game(CHAIN)
    results: list[SolverResult] = []

    game.request_hint(results.append)
    assert game.hints.wait(5)

    assert len(results) == 1
    assert results[0].moves == [Direction.RIGHT, Direction.RIGHT]


def test_cancelled_hint_is_discarded(monkeypatch) -> None:
    started = threading.Event()

    def slow_solve(board, max_states=None, cancel=None):
        started.set()
        cancel.wait(5)
        return SolverResult(solvable=False, truncated=True)

    monkeypatch.setattr(hints_module.Solver, "solve", staticmethod(slow_solve))

    worker = HintWorker()
    results: list[SolverResult] = []
    worker.request(Board.from_rows(CHAIN), results.append)
    assert started.wait(5)

    worker.cancel()

    assert worker.wait(5)
    assert results == []
    assert not worker.busy


def test_cancel_waits_for_a_hint_being_delivered(monkeypatch) -> None:
    def quick_solve(board, max_states=None, cancel=None):
        return SolverResult(solvable=True, min_moves=0)

    monkeypatch.setattr(hints_module.Solver, "solve", staticmethod(quick_solve))
    delivering = threading.Event()
    release = threading.Event()

    def callback(result: SolverResult) -> None:
        delivering.set()
        release.wait(5)

    worker = HintWorker()
    worker.request(Board.from_rows(CHAIN), callback)
    assert delivering.wait(5)

    canceller = threading.Thread(target=worker.cancel)
    canceller.start()
    canceller.join(0.2)
    assert canceller.is_alive()

    release.set()
    canceller.join(5)
    assert not canceller.is_alive()
    assert worker.wait(5)


def test_callback_may_request_again() -> None:
    worker = HintWorker()
    results: list[SolverResult] = []
    board = Board.from_rows(CHAIN)

    def first(result: SolverResult) -> None:
        results.append(result)
        worker.request(board, results.append)

    worker.request(board, first)

    for _ in range(2):
        assert worker.wait(5)
    assert len(results) == 2
