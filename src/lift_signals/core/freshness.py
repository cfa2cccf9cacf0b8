"""
Exercise freshness model.

Freshness decays linearly from 1.0 on the day an exercise was last
performed (or introduced, if never performed since) to 0.0 after
FRESHNESS_DECAY_DAYS:

    score = clip(1 - d / 56, 0, 1)

    d = 0   → 1.00  "Fresh"
    d = 28  → 0.50  "Good" / getting stale boundary
    d = 42  → 0.25  swap threshold
    d ≥ 56  → 0.00

All functions are pure; ``now`` defaults to the current local time.
"""

from datetime import datetime

from .config import (
    FRESHNESS_BANDS,
    FRESHNESS_DECAY_DAYS,
    FRESHNESS_FLOOR_LABEL,
    REST_RECOVERY_DAYS,
    SWAP_FRESHNESS_THRESHOLD,
)


def days_elapsed(since: datetime, now: datetime | None = None) -> int:
    """
    Whole days elapsed from *since* to *now* (partial days are dropped).

    Returns a negative number when *since* lies in the future.
    """
    now = now or datetime.now()
    return (now - since).days


def reference_instant(introduced_at: datetime, last_performed_at: datetime | None) -> datetime:
    """last_performed_at when present, else introduced_at."""
    return last_performed_at if last_performed_at is not None else introduced_at


def freshness_from_days(days: int) -> float:
    """
    Freshness score for a whole number of elapsed days.

    Args:
        days: Days since the reference instant

    Returns:
        Score in [0, 1]
    """
    score = 1.0 - days / FRESHNESS_DECAY_DAYS
    return max(0.0, min(1.0, score))


def freshness(
    introduced_at: datetime,
    last_performed_at: datetime | None,
    now: datetime | None = None,
) -> float:
    """
    Calculate the freshness score of an exercise.

    Args:
        introduced_at: When the exercise entered the user's rotation
        last_performed_at: When it was last performed, or None
        now: Evaluation instant

    Returns:
        Score in [0, 1]
    """
    ref = reference_instant(introduced_at, last_performed_at)
    return freshness_from_days(days_elapsed(ref, now))


def freshness_status(score: float) -> str:
    """Display label for a freshness score."""
    for bound, label in FRESHNESS_BANDS:
        if score >= bound:
            return label
    return FRESHNESS_FLOOR_LABEL


def needs_swap(score: float) -> bool:
    """True if the score is below the swap threshold."""
    return score < SWAP_FRESHNESS_THRESHOLD


def has_recovered_from_rest(last_performed_at: datetime | None, now: datetime | None = None) -> bool:
    """
    Whether a resting exercise has rested long enough to be a good replacement.

    An exercise with no recorded performance counts as recovered.  This is
    a ranking signal only; it never changes the exercise's own score.
    """
    if last_performed_at is None:
        return True
    return days_elapsed(last_performed_at, now) >= REST_RECOVERY_DAYS
