"""
CLI entry point using Typer.

Provides commands for training log analysis:
- init: Create the data directory
- log-session: Log a completed session
- exercises: List the exercise catalog
- rotation / freshness: Exercise staleness and swap suggestions
- accept-swap / dismiss-swap: Decide on a pending swap
- plateaus: Plateau and regression alerts
- volume: Weekly sets against the volume landmarks
- achievements: Earned badges
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from . import views
from .app import app

# Command modules register themselves on import
from .commands import analysis, rotation, sessions  # noqa: F401


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through Rich; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=views.console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Exercise rotation, plateau alerts and achievements for strength training logs.
    """
    configure_logging(verbose)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
