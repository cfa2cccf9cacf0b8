"""
Volume landmark table and weekly set classification.

Landmarks are weekly working-set counts per muscle group (MV, MEV,
MAV range, MRV).  Defaults live in config.VOLUME_LANDMARKS; a user
config.yaml may override any muscle group:

    volume_landmarks:
      chest: {mev: 10, mav_min: 14, mav_max: 22, mrv: 24}
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from .config import VOLUME_LANDMARKS
from .engine.config_loader import load_user_config
from .metrics import week_start
from .models import VolumeLandmark, VolumeStatus, WorkingSet

logger = logging.getLogger(__name__)

_LANDMARK_KEYS = ("mv", "mev", "mav_min", "mav_max", "mrv")


def _default_landmarks() -> dict[str, dict[str, int]]:
    return {
        group: dict(zip(_LANDMARK_KEYS, values))
        for group, values in VOLUME_LANDMARKS.items()
    }


def build_landmark_table(overrides: dict | None = None) -> dict[str, VolumeLandmark]:
    """
    Build the landmark table from defaults plus optional overrides.

    Invalid override entries are logged and the default for that muscle
    group is kept.

    Args:
        overrides: {muscle_group: {mv|mev|mav_min|mav_max|mrv: int}}

    Returns:
        {muscle_group: VolumeLandmark}
    """
    raw = _default_landmarks()
    table: dict[str, VolumeLandmark] = {}

    for group in sorted(set(raw) | set(overrides or {})):
        base = raw.get(group, {})
        entry = dict(base)
        override = (overrides or {}).get(group)
        if isinstance(override, dict):
            entry.update({k: v for k, v in override.items() if k in _LANDMARK_KEYS})
        try:
            table[group] = VolumeLandmark(
                muscle_group=group,
                maintenance=int(entry["mv"]),
                minimum_effective=int(entry["mev"]),
                optimal_min=int(entry["mav_min"]),
                optimal_max=int(entry["mav_max"]),
                maximum_recoverable=int(entry["mrv"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring volume landmark override for %s: %s", group, e)
            if base:
                table[group] = VolumeLandmark(
                    group,
                    base["mv"], base["mev"], base["mav_min"], base["mav_max"], base["mrv"],
                )
    return table


def load_landmark_table() -> dict[str, VolumeLandmark]:
    """Landmark table with the user's config.yaml overrides applied."""
    overrides = load_user_config().get("volume_landmarks")
    return build_landmark_table(overrides if isinstance(overrides, dict) else None)


def get_landmark(
    muscle_group: str | None,
    table: dict[str, VolumeLandmark] | None = None,
) -> VolumeLandmark | None:
    """Landmarks for a muscle group, or None if the group is unknown."""
    if not muscle_group:
        return None
    table = table if table is not None else load_landmark_table()
    return table.get(muscle_group)


def volume_status(weekly_sets: int, landmark: VolumeLandmark) -> VolumeStatus:
    """
    Classify a weekly working-set count against the landmarks.

      < MEV          → below_mev
      < MAV min      → mev
      ≤ MAV max      → mav (optimal range)
      ≤ MRV          → approaching_mrv
      > MRV          → over_mrv
    """
    lm = landmark
    if weekly_sets < lm.minimum_effective:
        return VolumeStatus(
            "below_mev",
            f"{weekly_sets} sets -- below minimum effective volume ({lm.minimum_effective})",
        )
    if weekly_sets < lm.optimal_min:
        return VolumeStatus("mev", f"{weekly_sets} sets -- at minimum effective volume")
    if weekly_sets <= lm.optimal_max:
        return VolumeStatus(
            "mav",
            f"{weekly_sets} sets -- in optimal range ({lm.optimal_min}-{lm.optimal_max})",
        )
    if weekly_sets <= lm.maximum_recoverable:
        return VolumeStatus(
            "approaching_mrv",
            f"{weekly_sets} sets -- approaching max recoverable volume ({lm.maximum_recoverable})",
        )
    return VolumeStatus(
        "over_mrv",
        f"{weekly_sets} sets -- OVER max recoverable volume ({lm.maximum_recoverable})! Consider a deload",
    )


def weekly_set_counts(sets: Iterable[WorkingSet]) -> dict[date, dict[str, int]]:
    """
    Count working sets per Monday-anchored week and primary muscle group.

    Sets without exercise metadata or of a non-working kind are ignored.

    Returns:
        {week_monday: {muscle_group: set_count}}, weeks in ascending order
    """
    counts: dict[date, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for s in sets:
        if s.kind != "working" or s.exercise is None:
            continue
        counts[week_start(s.logged_at.date())][s.exercise.muscle_group] += 1
    return {week: dict(groups) for week, groups in sorted(counts.items())}
