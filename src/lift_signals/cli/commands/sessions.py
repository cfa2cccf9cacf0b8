"""Session commands: init, log-session, exercises."""

import json
import uuid
from datetime import datetime, timedelta
from typing import Annotated, Optional

import typer

from ...core.achievements import AchievementEvaluator
from ...core.config import DEFAULT_USER_ID
from ...core.exercises.registry import EXERCISE_REGISTRY, find_exercise
from ...core.metrics import flag_personal_records
from ...core.models import MUSCLE_GROUPS, SessionSummary, WorkingSet
from ...core.rotation import RotationCoordinator
from ...core.store import StoreError
from ...io.serializers import ValidationError, parse_set_spec, parse_timestamp
from .. import views
from ..app import DataDirOption, JsonOption, UserOption, app, get_event_log, get_store, require_store


@app.command()
def init(data_dir: DataDirOption = None) -> None:
    """
    Create the data directory and empty data files.
    """
    store = get_store(data_dir)
    if store.exists():
        views.print_info(f"Data directory already initialized: {store.data_dir}")
        return
    try:
        store.init()
    except StoreError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_success(f"Initialized data directory: {store.data_dir}")


@app.command("log-session")
def log_session(
    sets: Annotated[
        list[str],
        typer.Option(
            "--set", "-s",
            help="EXERCISE:WEIGHTxREPS[*COUNT][/KIND], e.g. barbell_bench_press:135x8*3 (repeatable)",
        ),
    ],
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    at: Annotated[
        Optional[str],
        typer.Option("--at", help="Session start as ISO date/time (default: now)"),
    ] = None,
    duration_min: Annotated[
        int,
        typer.Option("--duration", help="Session length in minutes", min=1),
    ] = 60,
    split: Annotated[
        Optional[str],
        typer.Option("--split", help="Split label, e.g. push, pull, legs"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a completed session.

    Flags personal records, refreshes the rotation state of every exercise
    performed and evaluates achievements as of the end of the session.
    """
    store = require_store(data_dir)

    try:
        started = parse_timestamp(at, "--at") if at else datetime.now().replace(microsecond=0)
        parsed = [item for spec in sets for item in parse_set_spec(spec)]
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    unknown = sorted({ex_id for ex_id, *_ in parsed if find_exercise(ex_id) is None})
    if unknown:
        views.print_error(f"Unknown exercise(s): {', '.join(unknown)}")
        views.print_info("Run 'exercises' to list the catalog.")
        raise typer.Exit(1)

    ended = started + timedelta(minutes=duration_min)
    session_id = uuid.uuid4().hex[:12]
    session = SessionSummary(
        session_id=session_id,
        user_id=user_id,
        started_at=started,
        ended_at=ended,
        split=split,
    )
    new_sets = [
        WorkingSet(
            set_id=f"{session_id}-{i}",
            session_id=session_id,
            exercise_id=ex_id,
            weight=weight,
            reps=reps,
            kind=kind,  # type: ignore[arg-type]
            logged_at=started,
            exercise=find_exercise(ex_id).to_ref(),  # type: ignore[union-attr]
        )
        for i, (ex_id, weight, reps, kind) in enumerate(parsed, 1)
    ]

    try:
        flag_personal_records(new_sets, store.fetch_user_sets(user_id))
        store.append_session(session, new_sets)
    except StoreError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    coordinator = RotationCoordinator(store)
    performed: dict[str, str] = {}
    for s in new_sets:
        if s.exercise is not None:
            performed.setdefault(s.exercise_id, s.exercise.muscle_group)
    for ex_id, muscle_group in performed.items():
        try:
            coordinator.record_performed(user_id, ex_id, muscle_group, ended)
        except StoreError as e:
            views.print_warning(f"Rotation state for {ex_id} not updated: {e}")

    newly = AchievementEvaluator(store, get_event_log(store)).evaluate(user_id, ended)
    prs = [s for s in new_sets if s.is_pr]

    if json_out:
        print(json.dumps({
            "session_id": session_id,
            "sets": len(new_sets),
            "personal_records": [
                {"exercise_id": s.exercise_id, "weight": s.weight, "reps": s.reps} for s in prs
            ],
            "new_badges": newly,
        }, indent=2))
        return

    views.print_success(
        f"Logged session {session_id}: {len(new_sets)} sets across {len(performed)} exercises"
    )
    for s in prs:
        name = s.exercise.name if s.exercise else s.exercise_id
        views.console.print(f"[bold magenta]PR[/bold magenta] {name}: {s.weight:g} × {s.reps}")
    views.print_new_badges(newly)


@app.command()
def exercises(
    muscle_group: Annotated[
        Optional[str],
        typer.Option("--muscle-group", "-m", help="Only show one muscle group"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    List the exercise catalog.
    """
    if muscle_group is not None and muscle_group not in MUSCLE_GROUPS:
        views.print_error(
            f"Unknown muscle group '{muscle_group}'. Choose from: {', '.join(MUSCLE_GROUPS)}"
        )
        raise typer.Exit(1)

    rows = sorted(
        (ex for ex in EXERCISE_REGISTRY.values()
         if muscle_group is None or ex.primary_muscle_group == muscle_group),
        key=lambda ex: (ex.primary_muscle_group, ex.name),
    )

    if json_out:
        print(json.dumps([
            {
                "exercise_id": ex.exercise_id,
                "name": ex.name,
                "muscle_group": ex.primary_muscle_group,
                "equipment": ex.equipment_type,
                "movement_pattern": ex.movement_pattern,
            }
            for ex in rows
        ], indent=2))
        return

    views.print_exercise_catalog(rows)
