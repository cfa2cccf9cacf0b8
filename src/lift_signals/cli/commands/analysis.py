"""Analysis commands: plateaus, volume, achievements."""

import json
from datetime import timedelta
from typing import Annotated

import typer

from ...core.achievements import AchievementEvaluator, badge_label
from ...core.config import DEFAULT_USER_ID
from ...core.metrics import week_bounds
from ...core.plateau import PlateauDetector
from ...core.store import StoreError
from ...core.volume import load_landmark_table, volume_status, weekly_set_counts
from ...io.serializers import achievement_to_dict, exercise_ref_to_dict
from .. import views
from ..app import (
    AsOfOption,
    DataDirOption,
    JsonOption,
    UserOption,
    app,
    get_event_log,
    require_store,
    resolve_now,
)


@app.command()
def plateaus(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Detect plateaus and regressions in the last three sessions.
    """
    store = require_store(data_dir)
    now = resolve_now(as_of)
    results = PlateauDetector(store, landmarks=load_landmark_table()).detect(user_id, now)

    if json_out:
        print(json.dumps([
            {
                "exercise_id": r.exercise_id,
                "exercise_name": r.exercise_name,
                "muscle_group": r.muscle_group,
                "type": r.plateau_type,
                "session_count": r.session_count,
                "last_weight": r.last_weight,
                "last_reps": r.last_reps,
                "interventions": [
                    {
                        "type": iv.type,
                        "title": iv.title,
                        "description": iv.description,
                        "replacement": exercise_ref_to_dict(iv.replacement) if iv.replacement else None,
                    }
                    for iv in r.interventions
                ],
            }
            for r in results
        ], indent=2))
        return

    views.print_plateaus(results)
    views.console.print()


@app.command()
def volume(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    weeks: Annotated[
        int,
        typer.Option("--weeks", "-w", help="Number of weeks to show", min=1),
    ] = 4,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show weekly working sets per muscle group against the volume landmarks.
    """
    store = require_store(data_dir)
    now = resolve_now(as_of)
    start, _ = week_bounds(now, weeks - 1)
    _, end = week_bounds(now, 0)

    try:
        sessions = store.fetch_completed_sessions_between(user_id, start, end)
        sets = store.fetch_working_sets([s.session_id for s in sessions])
    except StoreError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    weekly = weekly_set_counts(sets)
    landmarks = load_landmark_table()
    mondays = [(start + timedelta(weeks=i)).date() for i in range(weeks)]
    current = weekly.get(mondays[-1], {})

    if json_out:
        print(json.dumps({
            "weeks": [
                {"week_start": m.isoformat(), "sets": weekly.get(m, {})}
                for m in mondays
            ],
            "current_week": {
                group: {
                    "sets": current.get(group, 0),
                    "status": volume_status(current.get(group, 0), lm).status,
                }
                for group, lm in landmarks.items()
            },
        }, indent=2))
        return

    views.console.print()
    views.console.print(views.format_volume_table(weekly, landmarks, mondays))
    views.console.print()


@app.command()
def achievements(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    evaluate: Annotated[
        bool,
        typer.Option("--evaluate", "-e", help="Run the badge rules before listing"),
    ] = False,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List earned badges (optionally evaluating the badge rules first).
    """
    store = require_store(data_dir)
    newly: list[str] = []
    if evaluate:
        now = resolve_now(as_of)
        newly = AchievementEvaluator(store, get_event_log(store)).evaluate(user_id, now)

    try:
        records = store.fetch_achievements(user_id)
    except StoreError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "earned": [
                {**achievement_to_dict(r), "badge_label": badge_label(r.badge_type)}
                for r in records
            ],
            "new": newly,
        }, indent=2))
        return

    views.console.print()
    views.print_achievements(records, newly)
    views.print_new_badges(newly)
    views.console.print()
