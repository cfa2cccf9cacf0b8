"""
JSON serialization for training data models.

Handles conversion between dataclasses and JSON-compatible dicts, and
normalizes the joined exercise metadata into a single ExerciseRef shape
before records reach the analyzers.
"""

import re
from datetime import datetime
from typing import Any

from ..core.models import (
    ROTATION_STATUSES,
    SET_KINDS,
    AchievementRecord,
    ExerciseRef,
    RotationState,
    SessionSummary,
    WorkingSet,
)
from ..core.store import StoreError


class ValidationError(StoreError):
    """Raised when data validation fails."""

    pass


def parse_timestamp(value: Any, name: str = "timestamp") -> datetime:
    """
    Parse an ISO timestamp (date-only strings mean midnight).

    Values carrying a UTC offset are converted to naive local time; every
    comparison in the analyzers is between naive datetimes.

    Raises:
        ValidationError: If value is not a valid ISO date/time string
    """
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {name}: {value!r}")
    else:
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise ValidationError(f"Invalid {name}: {value!r}") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_optional_timestamp(value: Any, name: str = "timestamp") -> datetime | None:
    if value is None:
        return None
    return parse_timestamp(value, name)


def format_timestamp(value: datetime | None) -> str | None:
    """ISO string with seconds precision, or None."""
    if value is None:
        return None
    return value.isoformat(timespec="seconds")


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is a non-negative number.

    Raises:
        ValidationError: If value is negative or not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def normalize_set_kind(raw: Any) -> str:
    """
    Map a raw set type onto working / warmup / other.

    Drop sets, failure sets, rest-pause and similar specialised types are
    treated as "other".
    """
    if raw in SET_KINDS:
        return raw
    return "other"


def normalize_exercise_ref(raw: Any, exercise_id: str | None = None) -> ExerciseRef | None:
    """
    Convert a joined exercise record to an ExerciseRef.

    Accepts a single mapping, a list whose first element is the mapping, or
    None.  Both ``muscle_group`` and ``primary_muscle_group`` (and
    ``equipment`` / ``equipment_type``) spellings are recognised.
    """
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError(f"Invalid exercise record: {raw!r}")

    ex_id = raw.get("exercise_id") or raw.get("id") or exercise_id
    name = raw.get("name")
    muscle = raw.get("muscle_group") or raw.get("primary_muscle_group")
    if not ex_id or not name or not muscle:
        raise ValidationError(f"Exercise record missing id, name or muscle group: {raw!r}")

    return ExerciseRef(
        exercise_id=str(ex_id),
        name=str(name),
        muscle_group=str(muscle),
        equipment=str(raw.get("equipment") or raw.get("equipment_type") or "other"),
        movement_pattern=str(raw.get("movement_pattern") or "isolation"),
    )


def exercise_ref_to_dict(ref: ExerciseRef) -> dict[str, Any]:
    return {
        "exercise_id": ref.exercise_id,
        "name": ref.name,
        "muscle_group": ref.muscle_group,
        "equipment": ref.equipment,
        "movement_pattern": ref.movement_pattern,
    }


def session_summary_to_dict(session: SessionSummary) -> dict[str, Any]:
    """Convert SessionSummary to JSON-compatible dict."""
    return {
        "id": session.session_id,
        "user_id": session.user_id,
        "started_at": format_timestamp(session.started_at),
        "ended_at": format_timestamp(session.ended_at),
        "split": session.split,
    }


def dict_to_session_summary(data: dict[str, Any]) -> SessionSummary:
    """
    Convert dict to SessionSummary.

    Raises:
        ValidationError: If data is invalid
    """
    if not data.get("id") or not data.get("user_id"):
        raise ValidationError(f"Session record missing id or user_id: {data!r}")
    try:
        return SessionSummary(
            session_id=str(data["id"]),
            user_id=str(data["user_id"]),
            started_at=parse_timestamp(data.get("started_at"), "started_at"),
            ended_at=parse_optional_timestamp(data.get("ended_at"), "ended_at"),
            split=data.get("split"),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def working_set_to_dict(s: WorkingSet) -> dict[str, Any]:
    """
    Convert WorkingSet to JSON-compatible dict.

    Exercise metadata is not persisted; it is joined from the catalog on read.
    """
    d: dict[str, Any] = {
        "id": s.set_id,
        "session_id": s.session_id,
        "exercise_id": s.exercise_id,
        "weight": s.weight,
        "reps": s.reps,
        "set_type": s.kind,
        "logged_at": format_timestamp(s.logged_at),
    }
    if s.is_pr:
        d["is_pr"] = True
    return d


def dict_to_working_set(data: dict[str, Any], exercise: ExerciseRef | None = None) -> WorkingSet:
    """
    Convert dict to WorkingSet.

    Args:
        data: Dict representation (an embedded "exercise" join is honoured)
        exercise: Catalog metadata used when the record carries none

    Raises:
        ValidationError: If data is invalid
    """
    for key in ("id", "session_id", "exercise_id"):
        if not data.get(key):
            raise ValidationError(f"Set record missing {key}: {data!r}")
    weight = validate_non_negative(data.get("weight", 0), "weight")
    reps = validate_non_negative(data.get("reps", 0), "reps")

    embedded = normalize_exercise_ref(data.get("exercise"), str(data["exercise_id"]))
    return WorkingSet(
        set_id=str(data["id"]),
        session_id=str(data["session_id"]),
        exercise_id=str(data["exercise_id"]),
        weight=float(weight),
        reps=int(reps),
        kind=normalize_set_kind(data.get("set_type", "working")),  # type: ignore[arg-type]
        logged_at=parse_timestamp(data.get("logged_at"), "logged_at"),
        is_pr=bool(data.get("is_pr", False)),
        exercise=embedded or exercise,
    )


def rotation_state_to_dict(state: RotationState) -> dict[str, Any]:
    """Convert RotationState to JSON-compatible dict."""
    return {
        "user_id": state.user_id,
        "exercise_id": state.exercise_id,
        "muscle_group": state.muscle_group,
        "introduced_at": format_timestamp(state.introduced_at),
        "last_performed_at": format_timestamp(state.last_performed_at),
        "rotation_status": state.status,
        "freshness_score": round(state.freshness_score, 4),
        "swap_suggested_at": format_timestamp(state.swap_suggested_at),
        "replacement_exercise_id": state.suggested_replacement,
        "version": state.version,
    }


def dict_to_rotation_state(data: dict[str, Any]) -> RotationState:
    """
    Convert dict to RotationState.

    Raises:
        ValidationError: If data is invalid
    """
    status = data.get("rotation_status", "active")
    if status not in ROTATION_STATUSES:
        raise ValidationError(f"Invalid rotation_status: {status!r}")
    for key in ("user_id", "exercise_id", "muscle_group"):
        if not data.get(key):
            raise ValidationError(f"Rotation record missing {key}: {data!r}")
    try:
        return RotationState(
            user_id=str(data["user_id"]),
            exercise_id=str(data["exercise_id"]),
            muscle_group=str(data["muscle_group"]),
            introduced_at=parse_timestamp(data.get("introduced_at"), "introduced_at"),
            last_performed_at=parse_optional_timestamp(data.get("last_performed_at"), "last_performed_at"),
            status=status,
            freshness_score=float(data.get("freshness_score", 1.0)),
            swap_suggested_at=parse_optional_timestamp(data.get("swap_suggested_at"), "swap_suggested_at"),
            suggested_replacement=data.get("replacement_exercise_id"),
            version=int(data.get("version", 1)),
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(str(e)) from e


def achievement_to_dict(record: AchievementRecord) -> dict[str, Any]:
    return {
        "user_id": record.user_id,
        "badge_type": record.badge_type,
        "earned_at": format_timestamp(record.earned_at),
        "context": dict(record.context),
    }


def dict_to_achievement(data: dict[str, Any]) -> AchievementRecord:
    """
    Convert dict to AchievementRecord.

    Raises:
        ValidationError: If data is invalid
    """
    if not data.get("user_id") or not data.get("badge_type"):
        raise ValidationError(f"Achievement record missing user_id or badge_type: {data!r}")
    context = data.get("context") or {}
    if not isinstance(context, dict):
        raise ValidationError(f"Achievement context must be a mapping: {context!r}")
    return AchievementRecord(
        user_id=str(data["user_id"]),
        badge_type=str(data["badge_type"]),
        earned_at=parse_timestamp(data.get("earned_at"), "earned_at"),
        context=context,
    )


_SET_SPEC = re.compile(
    r"^(?P<exercise>[a-z0-9_]+)\s*:\s*"
    r"(?P<weight>\d+(?:\.\d+)?)\s*[xX×]\s*(?P<reps>\d+)"
    r"(?:\s*\*\s*(?P<count>\d+))?"
    r"(?:\s*/\s*(?P<kind>working|warmup|other))?$"
)


def parse_set_spec(spec: str) -> list[tuple[str, float, int, str]]:
    """
    Parse one set specification.

    Format: EXERCISE:WEIGHTxREPS[*COUNT][/KIND]

    Examples:
        "barbell_bench_press:135x8"          → 1 working set of 8 @ 135
        "barbell_bench_press:135x8*3"        → 3 working sets of 8 @ 135
        "back_squat:95x10/warmup"            → 1 warm-up set
        "push_up:0x100"                      → bodyweight set of 100 reps

    Returns:
        List of (exercise_id, weight, reps, kind) tuples

    Raises:
        ValidationError: If the format is invalid
    """
    m = _SET_SPEC.match(spec.strip())
    if m is None:
        raise ValidationError(
            f"Invalid set format: '{spec}'.\n"
            "Use: EXERCISE:WEIGHTxREPS[*COUNT][/KIND] (e.g. barbell_bench_press:135x8*3)."
        )
    count = int(m.group("count") or 1)
    if count < 1:
        raise ValidationError(f"Set count must be at least 1: '{spec}'")
    kind = m.group("kind") or "working"
    return [
        (m.group("exercise"), float(m.group("weight")), int(m.group("reps")), kind)
        for _ in range(count)
    ]
