"""
Achievement (badge) evaluation.

One evaluation pass loads the badges already earned, then runs each rule
against that baseline.  A rule that qualifies appends a record and adds
the badge to the in-memory set so later rules in the same pass see it.

Awarding and notifying are separate steps: the award is a constrained
write that happens exactly once per (user, badge); the notification is
best-effort and may repeat (streak milestones fire on every pass whose
streak equals a milestone).

Rules run in isolation: a storage failure inside one rule is logged and
skips only that rule.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .config import (
    CENTURY_REPS,
    CONSISTENCY_DAYS_PER_WEEK,
    CONSISTENCY_WEEKS,
    STREAK_BADGES,
    STREAK_LOOKBACK_DAYS,
    STREAK_MILESTONES,
    VOLUME_LOOKBACK_WEEKS,
)
from .metrics import (
    current_streak,
    iso_week_label,
    start_of_day,
    total_volume,
    training_days,
    week_bounds,
)
from .models import AchievementRecord
from .notifications import BADGE_EARNED, STREAK_MILESTONE, Notifier, emit_best_effort
from .store import DuplicateAchievementError, StoreError, TrainingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeDefinition:
    type: str
    name: str
    description: str


BADGE_DEFINITIONS: list[BadgeDefinition] = [
    BadgeDefinition("iron_streak_3", "Iron Streak (3)", "3-day workout streak"),
    BadgeDefinition("iron_streak_7", "Iron Streak (7)", "7-day workout streak"),
    BadgeDefinition("iron_streak_14", "Iron Streak (14)", "14-day workout streak"),
    BadgeDefinition("iron_streak_30", "Iron Streak (30)", "30-day workout streak"),
    BadgeDefinition("pr_hunter", "PR Hunter", "Hit a new personal record"),
    BadgeDefinition("century_club", "Century Club", "Complete a 100-rep set"),
    BadgeDefinition("volume_king", "Volume King", "New weekly volume record"),
    BadgeDefinition("consistency_crown", "Consistency Crown", "4+ workouts/week for a full month"),
]

_BADGES_BY_TYPE = {b.type: b for b in BADGE_DEFINITIONS}


def badge_label(badge_type: str) -> str:
    """Display name of a badge type (the type itself if unknown)."""
    badge = _BADGES_BY_TYPE.get(badge_type)
    return badge.name if badge else badge_type


class AchievementEvaluator:
    """Evaluates and awards badges for one store."""

    def __init__(self, store: TrainingStore, notifier: Notifier | None = None):
        self.store = store
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def evaluate(self, user_id: str, now: datetime | None = None) -> list[str]:
        """
        Run every rule once.

        Returns:
            Badge types newly earned in this pass (empty when nothing changed)
        """
        now = now or datetime.now()
        try:
            earned = set(self.store.fetch_earned_badge_types(user_id))
        except StoreError as e:
            # The uniqueness constraint still prevents duplicate awards.
            logger.warning("Could not load earned badges for %s: %s", user_id, e)
            earned = set()

        newly: list[str] = []
        rules: list[tuple[str, Callable[[], None]]] = [
            ("streak", lambda: self._check_streak(user_id, now, earned, newly)),
            ("pr_hunter", lambda: self._check_pr_hunter(user_id, now, earned, newly)),
            ("century_club", lambda: self._check_century_club(user_id, now, earned, newly)),
            ("volume_king", lambda: self._check_volume_king(user_id, now, earned, newly)),
            ("consistency_crown", lambda: self._check_consistency_crown(user_id, now, earned, newly)),
        ]
        for name, rule in rules:
            try:
                rule()
            except StoreError as e:
                logger.warning("Skipping %s rule for %s: %s", name, user_id, e)
        return newly

    # ------------------------------------------------------------------
    # Award / notify
    # ------------------------------------------------------------------

    def _award(
        self,
        user_id: str,
        badge_type: str,
        now: datetime,
        earned: set[str],
        newly: list[str],
        context: dict | None = None,
    ) -> bool:
        """Write the award, then notify. Returns True if the badge is new."""
        record = AchievementRecord(
            user_id=user_id,
            badge_type=badge_type,
            earned_at=now,
            context=context or {},
        )
        try:
            self.store.insert_achievement_record(record)
        except DuplicateAchievementError:
            logger.debug("%s already holds %s", user_id, badge_type)
            earned.add(badge_type)
            return False

        earned.add(badge_type)
        newly.append(badge_type)
        logger.info("Awarded %s to %s", badge_type, user_id)
        emit_best_effort(
            self.notifier,
            BADGE_EARNED,
            {"user_id": user_id, "badge_type": badge_type, "badge_label": badge_label(badge_type)},
        )
        return True

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def compute_streak(self, user_id: str, now: datetime) -> int:
        """Current consecutive-day streak from the last STREAK_LOOKBACK_DAYS of sessions."""
        today = start_of_day(now)
        sessions = self.store.fetch_completed_sessions_between(
            user_id,
            today - timedelta(days=STREAK_LOOKBACK_DAYS - 1),
            today + timedelta(days=1),
        )
        return current_streak(training_days(sessions), today.date())

    def _check_streak(self, user_id: str, now: datetime, earned: set[str], newly: list[str]) -> None:
        streak = self.compute_streak(user_id, now)
        for threshold, badge_type in STREAK_BADGES:
            if streak >= threshold and badge_type not in earned:
                self._award(user_id, badge_type, now, earned, newly, {"streak": streak})

        if streak in STREAK_MILESTONES:
            emit_best_effort(
                self.notifier,
                STREAK_MILESTONE,
                {"user_id": user_id, "streak_count": streak},
            )

    def _check_pr_hunter(self, user_id: str, now: datetime, earned: set[str], newly: list[str]) -> None:
        if "pr_hunter" in earned:
            return
        todays = self.store.fetch_sets_logged_since(user_id, start_of_day(now))
        if any(s.is_pr for s in todays):
            self._award(
                user_id, "pr_hunter", now, earned, newly, {"date": now.strftime("%Y-%m-%d")}
            )

    def _check_century_club(self, user_id: str, now: datetime, earned: set[str], newly: list[str]) -> None:
        if "century_club" in earned:
            return
        if self.store.any_set_with_min_reps(user_id, CENTURY_REPS):
            self._award(user_id, "century_club", now, earned, newly)

    def weekly_volume(self, user_id: str, now: datetime, weeks_back: int) -> float | None:
        """
        Working-set volume of one calendar week.

        Returns:
            Σ weight × reps, or None if the week has no completed session
        """
        start, end = week_bounds(now, weeks_back)
        sessions = self.store.fetch_completed_sessions_between(user_id, start, end)
        if not sessions:
            return None
        sets = self.store.fetch_working_sets([s.session_id for s in sessions])
        return total_volume(sets)

    def is_weekly_volume_record(self, user_id: str, now: datetime) -> tuple[bool, float]:
        """
        Whether this week's volume beats every earlier week in the lookback.

        Weeks without sessions are skipped rather than counted as zero.
        """
        current = self.weekly_volume(user_id, now, 0)
        if not current:
            return False, 0.0
        for w in range(1, VOLUME_LOOKBACK_WEEKS + 1):
            previous = self.weekly_volume(user_id, now, w)
            if previous is None:
                continue
            if previous >= current:
                return False, current
        return True, current

    def _check_volume_king(self, user_id: str, now: datetime, earned: set[str], newly: list[str]) -> None:
        if "volume_king" in earned:
            return
        is_record, volume = self.is_weekly_volume_record(user_id, now)
        if is_record:
            self._award(
                user_id, "volume_king", now, earned, newly,
                {"week": iso_week_label(now), "volume": volume},
            )

    def is_consistent(self, user_id: str, now: datetime) -> bool:
        """Current week and the preceding ones each have enough training days."""
        for w in range(CONSISTENCY_WEEKS):
            start, end = week_bounds(now, w)
            sessions = self.store.fetch_completed_sessions_between(user_id, start, end)
            if len(training_days(sessions)) < CONSISTENCY_DAYS_PER_WEEK:
                return False
        return True

    def _check_consistency_crown(self, user_id: str, now: datetime, earned: set[str], newly: list[str]) -> None:
        if "consistency_crown" in earned:
            return
        if self.is_consistent(user_id, now):
            self._award(user_id, "consistency_crown", now, earned, newly)
