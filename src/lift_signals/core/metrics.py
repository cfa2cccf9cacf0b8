"""
Pure metric computation functions.

All functions are pure and typed for testability.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta

from .models import SessionBest, SessionSummary, WorkingSet


def start_of_day(moment: datetime) -> datetime:
    """Midnight at the start of moment's calendar day."""
    return datetime.combine(moment.date(), time.min)


def week_start(day: date) -> date:
    """Monday of the calendar week containing day."""
    return day - timedelta(days=day.weekday())


def week_bounds(moment: datetime, weeks_back: int = 0) -> tuple[datetime, datetime]:
    """
    Half-open [Monday 00:00, next Monday 00:00) window of a calendar week.

    Args:
        moment: Any instant inside the reference week
        weeks_back: 0 for the reference week, 1 for the week before, …

    Returns:
        (start, end) datetimes
    """
    monday = week_start(moment.date()) - timedelta(weeks=weeks_back)
    start = datetime.combine(monday, time.min)
    return start, start + timedelta(days=7)


def iso_week_label(moment: datetime) -> str:
    """ISO week label, e.g. '2026-W42'."""
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def total_volume(sets: Iterable[WorkingSet]) -> float:
    """Σ weight × reps over the given sets."""
    return sum(s.weight * s.reps for s in sets)


def training_days(sessions: Iterable[SessionSummary]) -> set[date]:
    """Distinct calendar days with at least one completed session."""
    return {s.started_at.date() for s in sessions if s.is_completed}


def current_streak(days: set[date], today: date) -> int:
    """
    Consecutive training days ending today.

    If today has no session yet, counting starts from yesterday so an
    unfinished day does not break the streak.
    """
    check = today
    if check not in days:
        check -= timedelta(days=1)
    streak = 0
    while check in days:
        streak += 1
        check -= timedelta(days=1)
    return streak


def best_set(sets: Iterable[WorkingSet]) -> WorkingSet | None:
    """
    Set with the highest weight × reps.

    Ties keep the first set that reached the maximum.
    """
    best: WorkingSet | None = None
    for s in sets:
        if best is None or s.volume > best.volume:
            best = s
    return best


def session_bests(
    sets: Iterable[WorkingSet],
    sessions: Sequence[SessionSummary],
) -> dict[str, dict[str, SessionBest]]:
    """
    Best set per exercise per session.

    Sets belonging to sessions outside *sessions* are ignored.

    Returns:
        {exercise_id: {session_id: SessionBest}}
    """
    started = {s.session_id: s.started_at for s in sessions}
    result: dict[str, dict[str, SessionBest]] = {}

    for s in sets:
        if s.session_id not in started:
            continue
        per_session = result.setdefault(s.exercise_id, {})
        existing = per_session.get(s.session_id)
        if existing is None or s.volume > existing.weight * existing.reps:
            per_session[s.session_id] = SessionBest(
                session_id=s.session_id,
                started_at=started[s.session_id],
                weight=s.weight,
                reps=s.reps,
            )
    return result


def flag_personal_records(
    new_sets: Sequence[WorkingSet],
    previous_sets: Iterable[WorkingSet],
) -> list[WorkingSet]:
    """
    Mark new working sets that beat the exercise's previous best.

    A set is a PR when its weight exceeds every earlier working set of the
    same exercise, or matches the heaviest weight with more reps.  The very
    first set of an exercise is not a PR.  Sets are compared in order, so a
    later set in the same batch must also beat the earlier ones.

    Returns:
        The new sets, with is_pr updated in place
    """
    best: dict[str, tuple[float, int]] = {}
    for s in previous_sets:
        if s.kind != "working":
            continue
        cur = best.get(s.exercise_id)
        if cur is None or (s.weight, s.reps) > cur:
            best[s.exercise_id] = (s.weight, s.reps)

    for s in new_sets:
        if s.kind != "working":
            continue
        cur = best.get(s.exercise_id)
        if cur is not None and (s.weight, s.reps) > cur:
            s.is_pr = True
        if cur is None or (s.weight, s.reps) > cur:
            best[s.exercise_id] = (s.weight, s.reps)
    return list(new_sets)
