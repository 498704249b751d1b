"""Rich terminal driver — play the ice puzzle in a terminal.

Uses the ``rich`` library for the board and panels. Arrow keys / WASD tilt
the board; the hole sits in the top-right corner and blocks must drop in
ascending order.
"""

from __future__ import annotations

import queue
import sys
import time

import rich.box
from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from backend.engine.gamegenerator import GenerationFailed
from backend.engine.gameplay import GamePlay
from backend.engine.gameresolver import Outcome
from backend.engine.gamesolver import SolverResult
from backend.models.board import EMPTY, OBSTACLE, Board, Direction
from backend.settings import EngineSettings
from frontend.cli.input_handler import Action, read_action

console = Console()

_BLOCK_STYLES = (
    "bold red",
    "bold bright_cyan",
    "bold yellow",
    "bold green",
    "bold magenta",
    "bold bright_blue",
    "bold bright_red",
    "bold white",
    "bold bright_green",
)

_DIRECTIONS = {
    Action.UP: Direction.UP,
    Action.DOWN: Direction.DOWN,
    Action.LEFT: Direction.LEFT,
    Action.RIGHT: Direction.RIGHT,
}


# -- helpers ------------------------------------------------------------------


def _format_time(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    return f"{m:02d}:{s:02d}"


def _stars(count: int) -> str:
    return "★" * count + "☆" * (3 - count)


# -- board rendering ----------------------------------------------------------


def _render_board(board: Board) -> Table:
    """Return a Rich Table representing the ice grid."""
    table = Table(
        show_header=False,
        show_edge=True,
        pad_edge=True,
        box=rich.box.HEAVY,
        border_style="bright_blue",
        padding=(0, 1),
    )
    for _ in range(board.cols):
        table.add_column(width=2, justify="center")

    for r, row in enumerate(board.tiles):
        cells: list[str] = []
        for c, val in enumerate(row):
            if board.is_hole(r, c):
                label = board.next_number if not board.is_cleared() else ""
                cells.append(f"[bold black on bright_yellow]◎{label}[/]")
            elif val == OBSTACLE:
                cells.append("[grey50]██[/grey50]")
            elif val == EMPTY:
                cells.append("[dim]·[/dim]")
            else:
                style = _BLOCK_STYLES[(val - 1) % len(_BLOCK_STYLES)]
                cells.append(f"[{style}]{val}[/{style}]")
        table.add_row(*cells)

    return table


def _stats(game: GamePlay) -> Text:
    stats = Text()
    stats.append("  Moves: ", style="dim")
    stats.append(f"{game.state.moves}/{game.move_limit}", style="bold yellow")
    stats.append("    Par: ", style="dim")
    stats.append(str(game.par), style="bold yellow")
    stats.append("    Time: ", style="dim")
    stats.append(_format_time(game.state.elapsed_time), style="bold yellow")
    return stats


# -- solver helpers -----------------------------------------------------------


def _request(game: GamePlay, inbox: queue.SimpleQueue, action: Action) -> str:
    """Start a background search; the result lands in *inbox* tagged with
    the board it was asked for."""
    key = game.state.board.key()
    game.request_hint(lambda result: inbox.put((action, key, result)))
    return "[dim]Thinking…[/dim]"


def _deliver(game: GamePlay, inbox: queue.SimpleQueue) -> str:
    """Apply finished searches that still match the board on screen."""
    status = ""
    while True:
        try:
            action, key, result = inbox.get_nowait()
        except queue.Empty:
            return status
        if key != game.state.board.key() or game.state.paused:
            continue
        if action is Action.HINT:
            status = _apply_hint(game, result)
        else:
            status = _auto_solve(game, result)


def _no_solution(result: SolverResult) -> str:
    if result.truncated:
        return "[yellow]Search gave up after too many positions.[/yellow]"
    return "[red]No way to clear this board from here.[/red]"


def _apply_hint(game: GamePlay, result: SolverResult) -> str:
    if not result.moves:
        return _no_solution(result)
    hint = result.moves[0]
    game.move(hint)
    return f"[cyan]Hint:[/cyan] tilted [bold]{hint.value}[/bold]"


def _auto_solve(game: GamePlay, result: SolverResult) -> str:
    if not result.moves:
        return _no_solution(result)

    for i, direction in enumerate(result.moves):
        game.move(direction)
        console.clear()
        progress = Text()
        progress.append(f"  Solving… move {i + 1}/{len(result.moves)} ", style="bold cyan")
        progress.append(f"({direction.value})", style="dim")

        panel = Panel(
            Align.center(_render_board(game.state.board)),
            title=f"[bold cyan]Auto-Solve  Stage {game.stage_index}[/bold cyan]",
            border_style="cyan",
            padding=(1, 2),
        )
        console.print()
        console.print(Align.center(panel))
        console.print(Align.center(progress))
        sys.stdout.flush()
        time.sleep(0.2)

    return f"[bold green]Solved in {len(result.moves)} moves.[/bold green]"


# -- screens ------------------------------------------------------------------


def _draw_menu(stage: int) -> None:
    console.clear()

    selector = Text()
    selector.append("← ", style="dim")
    selector.append(f" Stage {stage} ", style="bold green on #313244")
    selector.append(" →", style="dim")

    opts = Text()
    opts.append("  Enter", style="bold cyan")
    opts.append("  Play    ")
    opts.append("Q", style="dim bold")
    opts.append("  Quit", style="dim")

    panel = Panel(
        Group(Text(""), Align.center(selector), Text(""), Align.center(opts), Text("")),
        title="[bold]I C E   S L I D E[/bold]",
        border_style="bright_blue",
        padding=(1, 4),
    )
    console.print()
    console.print(Align.center(panel))


def _draw_game(game: GamePlay, status: str = "") -> None:
    console.clear()

    controls = Text()
    controls.append("  ↑↓←→", style="bold cyan")
    controls.append(" / ", style="dim")
    controls.append("WASD", style="bold cyan")
    controls.append("  tilt   ", style="dim")
    controls.append("N", style="bold cyan")
    controls.append("  hint   ", style="dim")
    controls.append("V", style="bold cyan")
    controls.append("  solve   ", style="dim")
    controls.append("P", style="bold cyan")
    controls.append("  pause   ", style="dim")
    controls.append("R", style="bold cyan")
    controls.append("  restart   ", style="dim")
    controls.append("Q", style="bold cyan")
    controls.append("  back", style="dim")

    title = f"[bold cyan]Stage {game.stage_index}[/bold cyan]"
    if game.state.paused and not game.state.is_finished:
        title += "  [yellow]PAUSED[/yellow]"

    panel = Panel(
        Align.center(_render_board(game.state.board)),
        title=title,
        border_style="bright_blue",
        padding=(1, 2),
    )
    console.print()
    console.print(Align.center(panel))
    console.print(Align.center(_stats(game)))
    if status:
        console.print(Align.center(Text.from_markup(f"  {status}")))
    console.print(Align.center(controls))


def _draw_result(game: GamePlay) -> None:
    console.clear()

    if game.is_won:
        banner = Text()
        banner.append(f"\n  {_stars(game.stars)}  ", style="bold yellow")
        banner.append("CLEAR!", style="bold green")
        banner.append(f"  {game.state.moves} moves (par {game.par})\n", style="green")
        footer = "\n  Enter: next stage   R: replay   Q: back\n"
        border = "bold green"
    else:
        banner = Text()
        banner.append("\n  FAILED  ", style="bold red")
        banner.append(game.state.failure + "\n", style="red")
        footer = "\n  R: retry   Q: back\n"
        border = "bold red"

    panel = Panel(
        Group(Align.center(_render_board(game.state.board)), Align.center(banner)),
        title=f"[bold]Stage {game.stage_index}[/bold]",
        border_style=border,
        padding=(1, 2),
    )
    console.print()
    console.print(Align.center(panel))
    console.print(Align.center(Text(footer, style="dim")))


# -- game loop ----------------------------------------------------------------


def _play(game: GamePlay) -> None:
    inbox: queue.SimpleQueue = queue.SimpleQueue()
    status = ""
    while True:
        while not game.state.is_finished:
            _draw_game(game, status)
            status = ""

            # Short timeout so the clock keeps ticking and hints land.
            key = read_action(0.5)
            while key is None:
                status = _deliver(game, inbox)
                if status or game.state.is_finished:
                    break
                if not game.state.paused:
                    _draw_game(game)
                key = read_action(0.5)
            if key is None:
                continue

            if game.state.paused and key not in (Action.PAUSE, Action.QUIT):
                continue

            if key in _DIRECTIONS:
                result = game.move(_DIRECTIONS[key])
                if result.outcome is Outcome.REMOVED and not result.cleared:
                    status = f"[green]{result.number} is out![/green]"
            elif key is Action.HINT:
                status = _request(game, inbox, Action.HINT)
            elif key is Action.SOLVE:
                status = _request(game, inbox, Action.SOLVE)
            elif key is Action.PAUSE:
                if game.state.paused:
                    game.resume()
                else:
                    game.pause()
            elif key is Action.RESTART:
                game.restart()
            elif key is Action.QUIT:
                game.hints.cancel()
                return

        _draw_result(game)
        while True:
            key = read_action()
            if key is Action.RESTART:
                game.restart()
                break
            if key is Action.ENTER and game.is_won:
                try:
                    game.next_stage()
                except GenerationFailed as exc:
                    console.print(Align.center(Text(f"  {exc}", style="red")))
                    continue
                break
            if key is Action.QUIT:
                return


def _menu_loop(stage: int, settings: EngineSettings) -> None:
    while True:
        _draw_menu(stage)
        key = read_action()

        if key is Action.QUIT:
            console.clear()
            console.print(Align.center(Text("\nGoodbye!\n", style="bold cyan")))
            return
        if key is Action.LEFT:
            stage = max(1, stage - 1)
        elif key is Action.RIGHT:
            stage += 1
        elif key is Action.ENTER:
            with console.status(f"Generating stage {stage}…"):
                try:
                    game = GamePlay(stage, settings)
                except GenerationFailed as exc:
                    console.print(Align.center(Text(f"  {exc}", style="red")))
                    time.sleep(1.5)
                    continue
            _play(game)
            stage = game.stage_index


# -- public entry point -------------------------------------------------------


def run(stage: int = 1, settings: EngineSettings | None = None) -> None:
    """Launch the Rich terminal driver with its stage menu."""
    _menu_loop(stage, settings or EngineSettings.from_env())
