"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of rotation, plateau, volume and
achievement data.
"""

from datetime import date

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.achievements import BADGE_DEFINITIONS, badge_label
from ..core.exercises.base import ExerciseDefinition
from ..core.models import (
    AchievementRecord,
    FreshnessEntry,
    PlateauResult,
    RotationSuggestion,
    VolumeLandmark,
)
from ..core.volume import volume_status

console = Console()

_FRESHNESS_STYLES = {
    "Fresh": "green",
    "Good": "cyan",
    "Getting stale": "yellow",
    "Needs rotation": "red",
}

_VOLUME_STYLES = {
    "below_mev": "yellow",
    "mev": "cyan",
    "mav": "green",
    "approaching_mrv": "magenta",
    "over_mrv": "red",
}


def _fmt_weight(weight: float) -> str:
    return f"{weight:g}"


def _pct(score: float) -> str:
    return f"{score * 100:.0f}%"


def format_freshness_table(entries: list[FreshnessEntry]) -> Table:
    """
    Create a Rich table of rotation records and their freshness.

    Args:
        entries: Report rows, stalest first

    Returns:
        Rich Table object
    """
    table = Table(title="Exercise Freshness")

    table.add_column("Exercise", style="bold")
    table.add_column("Muscle", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Days", justify="right")
    table.add_column("Freshness", justify="right")
    table.add_column("Label")

    for e in entries:
        name = e.exercise.name if e.exercise else e.rotation.exercise_id
        style = _FRESHNESS_STYLES.get(e.label, "")
        table.add_row(
            name,
            e.rotation.muscle_group,
            e.rotation.status,
            str(e.days_elapsed),
            _pct(e.freshness),
            f"[{style}]{e.label}[/{style}]" if style else e.label,
        )

    return table


def print_freshness(entries: list[FreshnessEntry]) -> None:
    if not entries:
        console.print("[yellow]No exercises in rotation yet.[/yellow]")
        return
    console.print(format_freshness_table(entries))


def print_rotation_suggestions(suggestions: list[RotationSuggestion]) -> None:
    """
    Print stale exercises and their proposed replacements.

    Args:
        suggestions: Result of a rotation scan
    """
    if not suggestions:
        console.print("[green]All exercises in rotation are fresh.[/green]")
        return

    table = Table(title="Rotation Suggestions")
    table.add_column("Exercise", style="bold")
    table.add_column("Muscle", style="cyan")
    table.add_column("Freshness", justify="right")
    table.add_column("Swap to", style="green")

    for s in suggestions:
        name = s.exercise.name if s.exercise else s.rotation.exercise_id
        table.add_row(
            name,
            s.rotation.muscle_group,
            _pct(s.freshness),
            s.replacement.name if s.replacement else "[dim]no candidate[/dim]",
        )
    console.print(table)

    console.print()
    for s in suggestions:
        name = s.exercise.name if s.exercise else s.rotation.exercise_id
        console.print(f"[bold]{name}[/bold]: {s.reason}")
        if s.replacement is not None:
            console.print(
                f"  [dim]accept-swap {s.rotation.exercise_id}  |  "
                f"dismiss-swap {s.rotation.exercise_id}[/dim]"
            )


def print_plateaus(results: list[PlateauResult]) -> None:
    """
    Print plateau and regression alerts with their interventions.

    Args:
        results: Detector output
    """
    if not results:
        console.print("[green]No plateaus or regressions in your recent sessions.[/green]")
        return

    for r in results:
        colour = "yellow" if r.plateau_type == "plateau" else "red"
        console.print()
        console.print(
            f"[bold {colour}]{r.plateau_type.upper()}[/bold {colour}] "
            f"[bold]{r.exercise_name}[/bold] ({r.muscle_group}) - "
            f"{_fmt_weight(r.last_weight)} × {r.last_reps} over {r.session_count} sessions"
        )
        for i, iv in enumerate(r.interventions, 1):
            console.print(f"  {i}. [bold]{iv.title}[/bold]")
            console.print(f"     {iv.description}")


def format_volume_table(
    weekly: dict[date, dict[str, int]],
    landmarks: dict[str, VolumeLandmark],
    weeks: list[date],
) -> Table:
    """
    Weekly working sets per muscle group, with the current week classified.

    Args:
        weekly: {monday: {muscle_group: sets}}
        landmarks: Landmark table
        weeks: Mondays to show, oldest first (the last one is classified)

    Returns:
        Rich Table object
    """
    table = Table(title="Weekly Working Sets")
    table.add_column("Muscle", style="cyan")
    for monday in weeks:
        table.add_column(monday.strftime("%m-%d"), justify="right")
    table.add_column("MEV-MAV-MRV", justify="right", style="dim")
    table.add_column("This week")

    current = weeks[-1] if weeks else None
    for group, lm in landmarks.items():
        counts = [weekly.get(m, {}).get(group, 0) for m in weeks]
        status = volume_status(weekly.get(current, {}).get(group, 0), lm) if current else None
        style = _VOLUME_STYLES.get(status.status, "") if status else ""
        table.add_row(
            group,
            *[str(c) if c else "-" for c in counts],
            f"{lm.minimum_effective}-{lm.optimal_min}/{lm.optimal_max}-{lm.maximum_recoverable}",
            f"[{style}]{status.status}[/{style}]" if status else "-",
        )
    return table


def print_achievements(records: list[AchievementRecord], newly: list[str] | None = None) -> None:
    """
    Print earned badges and the ones still open.

    Args:
        records: Earned achievement records
        newly: Badge types earned in the evaluation that just ran
    """
    newly = newly or []
    earned = {r.badge_type: r for r in records}

    table = Table(title="Achievements")
    table.add_column("Badge", style="bold")
    table.add_column("Description")
    table.add_column("Earned", style="cyan")

    for badge in BADGE_DEFINITIONS:
        record = earned.get(badge.type)
        if record is None:
            table.add_row(f"[dim]{badge.name}[/dim]", f"[dim]{badge.description}[/dim]", "-")
            continue
        when = record.earned_at.strftime("%Y-%m-%d")
        if badge.type in newly:
            when += " [green](new)[/green]"
        table.add_row(badge.name, badge.description, when)

    # Badges no longer in the catalog are still shown
    for badge_type, record in earned.items():
        if all(b.type != badge_type for b in BADGE_DEFINITIONS):
            table.add_row(badge_type, "", record.earned_at.strftime("%Y-%m-%d"))

    console.print(table)


def print_exercise_catalog(rows: list[ExerciseDefinition]) -> None:
    """Print catalog entries as a table."""
    table = Table(title="Exercise Catalog")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Muscle", style="cyan")
    table.add_column("Equipment")
    table.add_column("Pattern")
    for ex in rows:
        table.add_row(
            ex.exercise_id, ex.name, ex.primary_muscle_group, ex.equipment_type, ex.movement_pattern
        )
    console.print(table)


def print_new_badges(newly: list[str]) -> None:
    for badge_type in newly:
        console.print(f"[bold green]Badge earned:[/bold green] {badge_label(badge_type)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{escape(message)}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {escape(message)}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {escape(message)}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{escape(message)}[/blue]")
