"""Rotation commands: rotation, freshness, accept-swap, dismiss-swap."""

import json
from typing import Annotated

import typer

from ...core.config import DEFAULT_USER_ID
from ...core.rotation import RotationCoordinator
from ...core.store import InvalidTransitionError, StoreError
from ...io.serializers import exercise_ref_to_dict, rotation_state_to_dict
from .. import views
from ..app import AsOfOption, DataDirOption, JsonOption, UserOption, app, require_store, resolve_now

ExerciseArgument = Annotated[str, typer.Argument(help="Exercise ID, e.g. barbell_bench_press")]


@app.command()
def rotation(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Scan for stale exercises and suggest replacements.

    Stale exercises with a replacement move to the suggested-swap state
    until the swap is accepted or dismissed.
    """
    store = require_store(data_dir)
    now = resolve_now(as_of)
    suggestions = RotationCoordinator(store).scan(user_id, now)

    if json_out:
        print(json.dumps([
            {
                "exercise_id": s.rotation.exercise_id,
                "muscle_group": s.rotation.muscle_group,
                "freshness": round(s.freshness, 4),
                "days_elapsed": s.days_elapsed,
                "reason": s.reason,
                "replacement": exercise_ref_to_dict(s.replacement) if s.replacement else None,
                "status": s.rotation.status,
            }
            for s in suggestions
        ], indent=2))
        return

    views.console.print()
    views.print_rotation_suggestions(suggestions)
    views.console.print()


@app.command()
def freshness(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show how fresh every exercise in rotation is.
    """
    store = require_store(data_dir)
    now = resolve_now(as_of)
    entries = RotationCoordinator(store).freshness_report(user_id, now)

    if json_out:
        print(json.dumps([
            {
                "exercise_id": e.rotation.exercise_id,
                "muscle_group": e.rotation.muscle_group,
                "status": e.rotation.status,
                "freshness": round(e.freshness, 4),
                "label": e.label,
                "days_elapsed": e.days_elapsed,
            }
            for e in entries
        ], indent=2))
        return

    views.console.print()
    views.print_freshness(entries)
    views.console.print()


@app.command("accept-swap")
def accept_swap(
    exercise_id: ExerciseArgument,
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Accept the suggested replacement for an exercise.

    The exercise is rested and its replacement becomes active.
    """
    store = require_store(data_dir)
    now = resolve_now(as_of)
    try:
        resting, activated = RotationCoordinator(store).accept_swap(user_id, exercise_id, now)
    except (InvalidTransitionError, StoreError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "resting": rotation_state_to_dict(resting),
            "active": rotation_state_to_dict(activated),
        }, indent=2))
        return
    views.print_success(
        f"Swapped {resting.exercise_id} → {activated.exercise_id} "
        f"({resting.exercise_id} is now resting)"
    )


@app.command("dismiss-swap")
def dismiss_swap(
    exercise_id: ExerciseArgument,
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER_ID,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Keep an exercise despite the swap suggestion; its freshness timer restarts.
    """
    store = require_store(data_dir)
    now = resolve_now(as_of)
    try:
        state = RotationCoordinator(store).dismiss_swap(user_id, exercise_id, now)
    except (InvalidTransitionError, StoreError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(rotation_state_to_dict(state), indent=2))
        return
    views.print_success(f"Kept {state.exercise_id} in rotation")
