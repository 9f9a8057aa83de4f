"""
movestats CLI

Writes a movement input report next to every demo analyzed:

    movestats --demo /path/to/demo.dem
    movestats --dir /path/to/demos/ --max-concurrent 4 --v
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from . import __version__
from .batch import BatchRunner, FileOutcome, find_demos
from .config import Config
from .log import log

app = typer.Typer(
    name="movestats",
    help="Movement input statistics (key overlaps, strafe switches, air turns) for CS2 demos",
    add_completion=False,
)
console = Console(soft_wrap=True)


def _print_summary(outcome: FileOutcome, tick_rate: float) -> None:
    report = outcome.report
    console.print(f"[bold]{escape(str(outcome.path))}[/bold]")
    console.print(
        f"Game duration: {report.duration_ticks} ticks ({report.duration_minutes(tick_rate):f} minutes)",
        highlight=False,
    )
    for row in report:
        console.print(row.summary(), highlight=False, markup=False)


@app.command()
def main(
    dir: Optional[Path] = typer.Option(None, "--dir", help="Directory to process"),
    demo: Optional[Path] = typer.Option(None, "--demo", help="Demo file path"),
    verbose: bool = typer.Option(False, "--v", help="Enable verbose stdout"),
    max_concurrent: Optional[int] = typer.Option(
        None,
        "--max-concurrent",
        min=1,
        help="Maximum amount of demos parsed at the same time [default: 8]",
    ),
) -> None:
    """Parse a single demo (--demo) or every demo under a directory (--dir)."""
    if (dir is None) == (demo is None):
        console.print("[red]Error:[/red] --dir OR --demo flag is required")
        raise typer.Exit(code=1)

    config = Config.from_env()
    if max_concurrent is not None:
        config.max_concurrent = max_concurrent

    console.print(f"[bold blue]Movement Input Parser[/bold blue] v{__version__}")
    console.print("Keep in mind that this overlap data can be inaccurate and does not contain subtick information.")
    console.print("----")

    def on_submit(path: Path) -> None:
        console.print(f"Parsing demo file: {path}", highlight=False)

    def on_complete(outcome: FileOutcome) -> None:
        if verbose and not outcome.failed:
            _print_summary(outcome, config.tick_rate)

    runner = BatchRunner(config=config, on_submit=on_submit, on_complete=on_complete)

    if demo is not None:
        paths = [demo]
    else:
        console.print(f"Parsing dir {dir}", highlight=False)
        paths = find_demos(dir, config.extension)

    try:
        result = runner.run(paths)
    except OSError as exc:
        log.error(f"Directory walk failed: {exc}")
        console.print(f"[red]Error:[/red] could not read {escape(str(dir))}: {escape(str(exc))}")
        raise typer.Exit(code=1)

    for outcome in result.failed:
        console.print(
            f"[red]Failed:[/red] Path={escape(str(outcome.path))}, Error: {escape(str(outcome.error))}", highlight=False
        )

    console.print("Parsing done.")


if __name__ == "__main__":
    app()
