"""
Formula-focused unit tests for the pure analyzers.

Values are hand-computed from the formulas in core/freshness.py,
core/rotation.py, core/volume.py and core/metrics.py.
"""

from datetime import date, datetime, timedelta

import pytest

from lift_signals.core.config import (
    FRESHNESS_DECAY_DAYS,
    SCORE_CURRENTLY_ACTIVE,
    SCORE_DIFFERENT_EQUIPMENT,
    SCORE_DIFFERENT_PATTERN,
    SCORE_NEVER_USED,
    SCORE_RESTING_NOT_RECOVERED,
    SCORE_RESTING_RECOVERED,
)
from lift_signals.core.models import (
    ExerciseRef,
    RotationState,
    SessionSummary,
    VolumeLandmark,
    WorkingSet,
)

# Wednesday; the week runs Mon 2026-03-16 .. Sun 2026-03-22
NOW = datetime(2026, 3, 18, 12, 0)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _ref(
    exercise_id: str = "barbell_bench_press",
    muscle_group: str = "chest",
    equipment: str = "barbell",
    pattern: str = "push",
) -> ExerciseRef:
    return ExerciseRef(
        exercise_id=exercise_id,
        name=exercise_id.replace("_", " ").title(),
        muscle_group=muscle_group,
        equipment=equipment,
        movement_pattern=pattern,
    )


def _set(
    weight: float,
    reps: int,
    *,
    exercise_id: str = "barbell_bench_press",
    session_id: str = "s1",
    kind: str = "working",
    logged_at: datetime = NOW,
    exercise: ExerciseRef | None = None,
    with_exercise: bool = True,
) -> WorkingSet:
    return WorkingSet(
        set_id=f"{session_id}-{exercise_id}-{weight}-{reps}-{kind}",
        session_id=session_id,
        exercise_id=exercise_id,
        weight=weight,
        reps=reps,
        kind=kind,  # type: ignore[arg-type]
        logged_at=logged_at,
        exercise=(exercise or _ref(exercise_id)) if with_exercise else None,
    )


def _state(
    exercise_id: str,
    status: str = "active",
    last_performed_days_ago: int | None = 0,
) -> RotationState:
    last = NOW - timedelta(days=last_performed_days_ago) if last_performed_days_ago is not None else None
    return RotationState(
        user_id="u1",
        exercise_id=exercise_id,
        muscle_group="chest",
        introduced_at=NOW - timedelta(days=120),
        last_performed_at=last,
        status=status,  # type: ignore[arg-type]
    )


# ===========================================================================
# freshness.py
# ===========================================================================

class TestFreshness:
    """score = clip(1 - d / 56, 0, 1)"""

    def test_just_performed_is_fully_fresh(self):
        from lift_signals.core.freshness import freshness
        assert freshness(NOW, NOW, NOW) == pytest.approx(1.0)

    def test_half_way_through_decay(self):
        from lift_signals.core.freshness import freshness_from_days
        assert freshness_from_days(28) == pytest.approx(0.5)

    def test_swap_threshold_reached_at_42_days(self):
        from lift_signals.core.freshness import freshness_from_days
        assert freshness_from_days(42) == pytest.approx(0.25)

    def test_fully_decayed_at_and_after_56_days(self):
        from lift_signals.core.freshness import freshness_from_days
        assert freshness_from_days(FRESHNESS_DECAY_DAYS) == 0.0
        assert freshness_from_days(200) == 0.0

    def test_future_reference_clamps_to_one(self):
        from lift_signals.core.freshness import freshness
        assert freshness(NOW + timedelta(days=3), None, NOW) == 1.0

    def test_fifty_days_needs_rotation(self):
        # 1 - 50/56 ≈ 0.107
        from lift_signals.core.freshness import freshness, freshness_status, needs_swap
        score = freshness(NOW - timedelta(days=90), NOW - timedelta(days=50), NOW)
        assert score == pytest.approx(1 - 50 / 56, abs=1e-9)
        assert freshness_status(score) == "Needs rotation"
        assert needs_swap(score)

    def test_uses_last_performed_over_introduced(self):
        from lift_signals.core.freshness import freshness
        score = freshness(NOW - timedelta(days=100), NOW - timedelta(days=7), NOW)
        assert score == pytest.approx(1 - 7 / 56)

    def test_never_performed_uses_introduced(self):
        from lift_signals.core.freshness import freshness
        assert freshness(NOW - timedelta(days=14), None, NOW) == pytest.approx(0.75)

    def test_partial_days_are_dropped(self):
        from lift_signals.core.freshness import days_elapsed
        assert days_elapsed(NOW - timedelta(days=27, hours=23), NOW) == 27


class TestFreshnessStatus:
    @pytest.mark.parametrize(
        "score, label",
        [
            (1.0, "Fresh"),
            (0.75, "Fresh"),
            (0.74, "Good"),
            (0.5, "Good"),
            (0.49, "Getting stale"),
            (0.25, "Getting stale"),
            (0.2499, "Needs rotation"),
            (0.0, "Needs rotation"),
        ],
    )
    def test_bands(self, score, label):
        from lift_signals.core.freshness import freshness_status
        assert freshness_status(score) == label

    def test_swap_threshold_is_strict(self):
        from lift_signals.core.freshness import needs_swap
        assert not needs_swap(0.25)
        assert needs_swap(0.2499)


class TestRestRecovery:
    def test_no_performance_counts_as_recovered(self):
        from lift_signals.core.freshness import has_recovered_from_rest
        assert has_recovered_from_rest(None, NOW)

    def test_recovered_after_28_days(self):
        from lift_signals.core.freshness import has_recovered_from_rest
        assert has_recovered_from_rest(NOW - timedelta(days=28), NOW)
        assert not has_recovered_from_rest(NOW - timedelta(days=27), NOW)


# ===========================================================================
# rotation.py: candidate scoring
# ===========================================================================

class TestCandidateScore:
    """+3 equipment, +2 pattern, +5/+1 resting, +4 never used, -2 active"""

    def test_never_used_variation_scores_highest_bonuses(self):
        from lift_signals.core.rotation import score_candidate
        current = _ref()
        candidate = _ref("cable_fly", equipment="cable", pattern="isolation")
        expected = SCORE_DIFFERENT_EQUIPMENT + SCORE_DIFFERENT_PATTERN + SCORE_NEVER_USED
        assert score_candidate(candidate, current, None, NOW) == expected == 9

    def test_never_used_different_equipment(self):
        from lift_signals.core.rotation import score_candidate
        candidate = _ref("dumbbell_bench_press", equipment="dumbbell")
        assert score_candidate(candidate, _ref(), None, NOW) == 7

    def test_active_same_equipment_is_penalised(self):
        from lift_signals.core.rotation import score_candidate
        candidate = _ref("incline_barbell_bench_press")
        state = _state("incline_barbell_bench_press", "active")
        assert score_candidate(candidate, _ref(), state, NOW) == SCORE_CURRENTLY_ACTIVE == -2

    def test_resting_recovered_vs_not_recovered(self):
        from lift_signals.core.rotation import score_candidate
        candidate = _ref("incline_barbell_bench_press")
        rested = _state("incline_barbell_bench_press", "resting", last_performed_days_ago=30)
        recent = _state("incline_barbell_bench_press", "resting", last_performed_days_ago=10)
        assert score_candidate(candidate, _ref(), rested, NOW) == SCORE_RESTING_RECOVERED
        assert score_candidate(candidate, _ref(), recent, NOW) == SCORE_RESTING_NOT_RECOVERED

    def test_pending_swap_candidate_gets_no_state_points(self):
        from lift_signals.core.rotation import score_candidate
        candidate = _ref("incline_barbell_bench_press")
        state = _state("incline_barbell_bench_press", "suggested_swap")
        assert score_candidate(candidate, _ref(), state, NOW) == 0

    def test_unknown_current_exercise_scores_state_only(self):
        from lift_signals.core.rotation import score_candidate
        candidate = _ref("cable_fly", equipment="cable", pattern="isolation")
        assert score_candidate(candidate, None, None, NOW) == SCORE_NEVER_USED


class TestRankCandidates:
    def test_fresh_variation_beats_active_same_equipment(self):
        from lift_signals.core.rotation import rank_candidates
        active = _ref("incline_barbell_bench_press")
        fresh = _ref("dumbbell_bench_press", equipment="dumbbell")
        states = {"incline_barbell_bench_press": _state("incline_barbell_bench_press")}
        ranked = rank_candidates([active, fresh], _ref(), states, NOW)
        assert [sc.exercise.exercise_id for sc in ranked] == [
            "dumbbell_bench_press",
            "incline_barbell_bench_press",
        ]
        assert [sc.score for sc in ranked] == [7, -2]

    def test_ties_keep_input_order(self):
        from lift_signals.core.rotation import rank_candidates
        a = _ref("dumbbell_bench_press", equipment="dumbbell")
        b = _ref("machine_chest_press", equipment="machine")
        ranked = rank_candidates([a, b], _ref(), {}, NOW)
        assert [sc.exercise.exercise_id for sc in ranked] == [
            "dumbbell_bench_press",
            "machine_chest_press",
        ]


class TestSwapReason:
    def test_long_rotation_wording(self):
        from lift_signals.core.rotation import swap_reason
        assert "in rotation for 50 days" in swap_reason(50, 0.107)

    def test_low_score_wording(self):
        from lift_signals.core.rotation import swap_reason
        assert swap_reason(30, 0.2321).startswith("Freshness score is low (23%)")


# ===========================================================================
# volume.py
# ===========================================================================

class TestVolumeStatus:
    """chest: MV 6, MEV 8, MAV 12-20, MRV 22"""

    @pytest.mark.parametrize(
        "sets, status",
        [
            (0, "below_mev"),
            (7, "below_mev"),
            (8, "mev"),
            (11, "mev"),
            (12, "mav"),
            (20, "mav"),
            (21, "approaching_mrv"),
            (22, "approaching_mrv"),
            (23, "over_mrv"),
        ],
    )
    def test_classification(self, sets, status):
        from lift_signals.core.volume import build_landmark_table, volume_status
        chest = build_landmark_table()["chest"]
        assert volume_status(sets, chest).status == status

    def test_message_mentions_set_count(self):
        from lift_signals.core.volume import build_landmark_table, volume_status
        chest = build_landmark_table()["chest"]
        assert volume_status(25, chest).message.startswith("25 sets")


class TestLandmarkTable:
    def test_defaults_cover_every_muscle_group(self):
        from lift_signals.core.models import MUSCLE_GROUPS
        from lift_signals.core.volume import build_landmark_table
        assert set(build_landmark_table()) == set(MUSCLE_GROUPS)

    def test_override_merges_over_default(self):
        from lift_signals.core.volume import build_landmark_table
        table = build_landmark_table({"chest": {"mev": 10, "mav_min": 14, "mav_max": 21, "mrv": 24}})
        chest = table["chest"]
        assert (chest.maintenance, chest.minimum_effective, chest.maximum_recoverable) == (6, 10, 24)
        assert table["back"].minimum_effective == 8

    def test_invalid_override_keeps_default(self):
        # MEV above MAV min breaks the ordering
        from lift_signals.core.volume import build_landmark_table
        table = build_landmark_table({"chest": {"mev": 30}})
        assert table["chest"].minimum_effective == 8

    def test_new_group_needs_all_values(self):
        from lift_signals.core.volume import build_landmark_table
        full = build_landmark_table({"neck": {"mv": 0, "mev": 2, "mav_min": 4, "mav_max": 8, "mrv": 10}})
        partial = build_landmark_table({"neck": {"mev": 2}})
        assert full["neck"].optimal_max == 8
        assert "neck" not in partial

    def test_landmarks_must_be_ordered(self):
        with pytest.raises(ValueError):
            VolumeLandmark("chest", 6, 5, 12, 20, 22)

    def test_get_landmark_unknown_group(self):
        from lift_signals.core.volume import build_landmark_table, get_landmark
        table = build_landmark_table()
        assert get_landmark("chest", table).minimum_effective == 8
        assert get_landmark("neck", table) is None
        assert get_landmark(None, table) is None


class TestWeeklySetCounts:
    def test_counts_working_sets_per_monday_week(self):
        from lift_signals.core.volume import weekly_set_counts
        back = _ref("barbell_row", muscle_group="back", pattern="pull")
        sets = [
            _set(135, 8, logged_at=datetime(2026, 3, 16, 18)),
            _set(135, 8, logged_at=datetime(2026, 3, 22, 23, 59)),
            _set(95, 10, kind="warmup", logged_at=datetime(2026, 3, 17, 18)),
            _set(155, 8, exercise_id="barbell_row", exercise=back, logged_at=datetime(2026, 3, 10, 18)),
            _set(50, 10, exercise_id="mystery", with_exercise=False, logged_at=datetime(2026, 3, 17, 18)),
        ]
        counts = weekly_set_counts(sets)
        assert counts == {
            date(2026, 3, 9): {"back": 1},
            date(2026, 3, 16): {"chest": 2},
        }
        assert list(counts) == [date(2026, 3, 9), date(2026, 3, 16)]


# ===========================================================================
# metrics.py
# ===========================================================================

class TestCalendarWeeks:
    def test_week_bounds_are_half_open_monday_to_monday(self):
        from lift_signals.core.metrics import week_bounds
        assert week_bounds(NOW) == (datetime(2026, 3, 16), datetime(2026, 3, 23))
        assert week_bounds(NOW, 1) == (datetime(2026, 3, 9), datetime(2026, 3, 16))

    def test_sunday_night_belongs_to_same_week(self):
        from lift_signals.core.metrics import week_bounds
        assert week_bounds(datetime(2026, 3, 22, 23, 59))[0] == datetime(2026, 3, 16)

    def test_iso_week_label(self):
        from lift_signals.core.metrics import iso_week_label
        assert iso_week_label(NOW) == "2026-W12"


class TestStreak:
    def test_streak_including_today(self):
        from lift_signals.core.metrics import current_streak
        days = {date(2026, 3, 16), date(2026, 3, 17), date(2026, 3, 18)}
        assert current_streak(days, date(2026, 3, 18)) == 3

    def test_missing_today_counts_from_yesterday(self):
        from lift_signals.core.metrics import current_streak
        days = {date(2026, 3, 15), date(2026, 3, 16), date(2026, 3, 17)}
        assert current_streak(days, date(2026, 3, 18)) == 3

    def test_gap_breaks_streak(self):
        from lift_signals.core.metrics import current_streak
        days = {date(2026, 3, 16), date(2026, 3, 18)}
        assert current_streak(days, date(2026, 3, 18)) == 1

    def test_no_days(self):
        from lift_signals.core.metrics import current_streak
        assert current_streak(set(), date(2026, 3, 18)) == 0

    def test_training_days_ignore_unfinished_sessions(self):
        from lift_signals.core.metrics import training_days
        sessions = [
            SessionSummary("a", "u1", datetime(2026, 3, 16, 18), datetime(2026, 3, 16, 19)),
            SessionSummary("b", "u1", datetime(2026, 3, 16, 20), datetime(2026, 3, 16, 21)),
            SessionSummary("c", "u1", datetime(2026, 3, 17, 18)),
        ]
        assert training_days(sessions) == {date(2026, 3, 16)}


class TestBestSet:
    def test_tie_keeps_first_set(self):
        from lift_signals.core.metrics import best_set
        first = _set(100, 10)
        tie = _set(125, 8)
        assert best_set([first, tie, _set(90, 10)]) is first

    def test_empty(self):
        from lift_signals.core.metrics import best_set
        assert best_set([]) is None

    def test_session_bests_per_exercise_and_session(self):
        from lift_signals.core.metrics import session_bests
        sessions = [
            SessionSummary("s1", "u1", datetime(2026, 3, 16, 18), datetime(2026, 3, 16, 19)),
            SessionSummary("s2", "u1", datetime(2026, 3, 18, 18), datetime(2026, 3, 18, 19)),
        ]
        sets = [
            _set(135, 8, session_id="s1"),
            _set(145, 6, session_id="s1"),
            _set(140, 8, session_id="s2"),
            _set(300, 5, session_id="other"),
        ]
        bests = session_bests(sets, sessions)
        assert set(bests) == {"barbell_bench_press"}
        assert (bests["barbell_bench_press"]["s1"].weight, bests["barbell_bench_press"]["s1"].reps) == (135, 8)
        assert bests["barbell_bench_press"]["s2"].started_at == datetime(2026, 3, 18, 18)


class TestPersonalRecords:
    def test_heavier_or_more_reps_is_a_pr(self):
        from lift_signals.core.metrics import flag_personal_records
        previous = [_set(135, 8, session_id="old")]
        new = [_set(135, 8), _set(135, 9), _set(140, 5), _set(200, 1, kind="warmup")]
        flag_personal_records(new, previous)
        assert [s.is_pr for s in new] == [False, True, True, False]

    def test_first_set_of_an_exercise_is_not_a_pr(self):
        from lift_signals.core.metrics import flag_personal_records
        new = [_set(100, 5), _set(105, 5)]
        flag_personal_records(new, [])
        assert [s.is_pr for s in new] == [False, True]

    def test_previous_warmups_do_not_set_the_bar(self):
        from lift_signals.core.metrics import flag_personal_records
        previous = [_set(225, 1, kind="warmup", session_id="old"), _set(135, 8, session_id="old")]
        new = [_set(155, 5)]
        flag_personal_records(new, previous)
        assert new[0].is_pr
