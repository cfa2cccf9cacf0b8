"""Shared Typer app object, shared option types, and store utility."""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..io.event_log import EventLog
from ..io.history_store import HistoryStore, get_default_data_dir
from ..io.serializers import ValidationError, parse_timestamp
from . import views

# Shared options used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Data directory (default: ~/.lift-signals/data)"),
]
UserOption = Annotated[
    str,
    typer.Option("--user", "-u", help="User id whose history is analysed"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="lift-signals",
    help="Exercise rotation, plateau alerts and achievements for strength training logs.",
    no_args_is_help=True,
)


def get_store(data_dir: Path | None) -> HistoryStore:
    """Get history store from path or default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    return HistoryStore(data_dir)


def require_store(data_dir: Path | None) -> HistoryStore:
    """Like get_store, but exit with an error if the data directory is not initialized."""
    store = get_store(data_dir)
    if not store.exists():
        views.print_error(f"Data directory not initialized: {store.data_dir}")
        views.print_info("Run 'init' first to create it.")
        raise typer.Exit(1)
    return store


def get_event_log(store: HistoryStore) -> EventLog:
    """Event log stored next to the data files."""
    return EventLog(store.data_dir / "events.jsonl")


AsOfOption = Annotated[
    Optional[str],
    typer.Option("--as-of", help="Evaluate as of this ISO date/time (default: now)"),
]


def resolve_now(as_of: str | None) -> datetime:
    """Parse --as-of, or return the current local time; exit on a bad value."""
    if as_of is None:
        return datetime.now().replace(microsecond=0)
    try:
        return parse_timestamp(as_of, "--as-of")
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
