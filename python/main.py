#!/usr/bin/env python3
"""Ice Slide Puzzle.

Usage::

    python main.py play               # terminal game, stage menu
    python main.py play -s 4          # start the menu at stage 4
    python main.py stages -n 12       # show the stage table
    python main.py generate 3 --seed 7
    python main.py solve 3 --seed 7
"""

import logging
import random
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

ROOT = Path(__file__).resolve().parent  # python/

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.engine.gamegenerator import GameGenerator, GenerationFailed, Stage  # noqa: E402
from backend.engine.gamesolver import Solver  # noqa: E402
from backend.models.stage import stage_config  # noqa: E402
from backend.settings import EngineSettings  # noqa: E402

console = Console()


# -- helpers ------------------------------------------------------------------


def _settings(seed: Optional[int], retries: Optional[int]) -> EngineSettings:
    return EngineSettings.from_env().with_overrides(seed=seed, max_retries=retries)


def _generate(stage: int, settings: EngineSettings) -> Stage:
    try:
        return GameGenerator.generate(stage, random.Random(settings.seed), settings)
    except GenerationFailed as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc


def _print_stage(stage: Stage) -> None:
    board = stage.board
    console.print(
        f"[bold cyan]Stage {stage.config.stage}[/bold cyan]  "
        f"{board.rows}x{board.cols}, {board.block_count} blocks, "
        f"par [bold yellow]{stage.par}[/bold yellow], seed {stage.seed}"
    )
    for line in board.to_rows():
        console.print("  " + " ".join(line), highlight=False)


# -- CLI entry point ----------------------------------------------------------

app = typer.Typer(add_completion=False, help="Ice Slide Puzzle.")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "-v", "--verbose",
        help="Show debug logging from the engine.",
    ),
) -> None:
    """Ice Slide Puzzle."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


@app.command()
def play(
    stage: int = typer.Option(
        1, "-s", "--stage",
        min=1,
        help="Stage to preselect in the menu.",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed."),
) -> None:
    """Play in the terminal."""
    from frontend.cli.rich.app import run

    run(stage=stage, settings=_settings(seed, None))


@app.command()
def stages(
    count: int = typer.Option(12, "-n", "--count", min=1, help="Stages to list."),
) -> None:
    """Show the stage configuration table."""
    table = Table(title="Stages", title_style="bold cyan")
    for name in ("Stage", "Size", "Blocks", "Obstacles", "Shuffle"):
        table.add_column(name, justify="right")
    for index in range(1, count + 1):
        cfg = stage_config(index)
        table.add_row(
            str(cfg.stage),
            f"{cfg.rows}x{cfg.cols}",
            str(cfg.block_count),
            str(cfg.obstacle_count),
            str(cfg.shuffle_moves),
        )
    console.print(table)


@app.command()
def generate(
    stage: int = typer.Argument(..., min=1, help="Stage index."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed."),
    retries: Optional[int] = typer.Option(None, "--retries", min=1, help="Attempts before giving up."),
) -> None:
    """Generate a stage and print it with its par."""
    result = _generate(stage, _settings(seed, retries))
    _print_stage(result)
    console.print("  shuffle: " + " ".join(d.value for d in result.shuffle))


@app.command()
def solve(
    stage: int = typer.Argument(..., min=1, help="Stage index."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed."),
) -> None:
    """Generate a stage and print an optimal solution."""
    settings = _settings(seed, None)
    generated = _generate(stage, settings)
    _print_stage(generated)
    result = Solver.solve(generated.board, max_states=settings.solver_state_limit)
    if not result.solvable:
        console.print("[red]No solution found.[/red]")
        raise typer.Exit(code=1)
    console.print(
        f"  [green]{result.min_moves} moves[/green] ({result.explored} states): "
        + " ".join(d.value for d in result.moves)
    )


if __name__ == "__main__":
    app()
