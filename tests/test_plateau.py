"""
Plateau and regression detection.

Pattern tests run on hand-built SessionBest sequences; detector tests log
sessions into a HistoryStore in a temporary directory.
"""

import itertools
from datetime import datetime, timedelta

import pytest

from lift_signals.core.models import SessionBest, SessionSummary, WorkingSet
from lift_signals.core.plateau import (
    PlateauDetector,
    build_interventions,
    declining_prefix_length,
    detect_pattern,
    identical_prefix_length,
)
from lift_signals.core.store import StoreError
from lift_signals.core.volume import build_landmark_table
from lift_signals.io.history_store import HistoryStore

NOW = datetime(2026, 3, 18, 12, 0)
USER = "u1"

_ids = itertools.count(1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _bests(*pairs: tuple[float, int]) -> list[SessionBest]:
    """Most-recent-first bests from (weight, reps) pairs."""
    return [
        SessionBest(session_id=f"s{i}", started_at=NOW - timedelta(days=i), weight=w, reps=r)
        for i, (w, r) in enumerate(pairs)
    ]


def _store(tmp_path) -> HistoryStore:
    store = HistoryStore(tmp_path / "data")
    store.init()
    return store


def _log(
    store: HistoryStore,
    days_ago: int,
    sets: list[tuple],
    *,
    user_id: str = USER,
    completed: bool = True,
) -> SessionSummary:
    """Log a session; sets are (exercise_id, weight, reps[, kind]) tuples."""
    sid = f"s{next(_ids)}"
    started = NOW - timedelta(days=days_ago, hours=2)
    session = SessionSummary(
        session_id=sid,
        user_id=user_id,
        started_at=started,
        ended_at=started + timedelta(hours=1) if completed else None,
    )
    rows = [
        WorkingSet(
            set_id=f"{sid}-{i}",
            session_id=sid,
            exercise_id=t[0],
            weight=t[1],
            reps=t[2],
            kind=t[3] if len(t) > 3 else "working",
            logged_at=started,
        )
        for i, t in enumerate(sets)
    ]
    store.append_session(session, rows)
    return session


def _detect(store) -> list:
    return PlateauDetector(store, landmarks=build_landmark_table()).detect(USER, NOW)


# ===========================================================================
# Pattern classification
# ===========================================================================

class TestPrefixes:
    def test_identical_prefix(self):
        assert identical_prefix_length(_bests((135, 8), (135, 8), (135, 8))) == 3
        assert identical_prefix_length(_bests((135, 8), (135, 8), (125, 8))) == 2
        assert identical_prefix_length(_bests((135, 8), (135, 7))) == 1

    def test_declining_prefix_needs_strict_drop(self):
        assert declining_prefix_length(_bests((135, 8), (145, 8), (155, 8))) == 3
        assert declining_prefix_length(_bests((135, 8), (135, 9))) == 2
        # Heavier but fewer reps is not "at least as good on both"
        assert declining_prefix_length(_bests((135, 8), (145, 6))) == 1

    def test_empty(self):
        assert identical_prefix_length([]) == 0
        assert declining_prefix_length([]) == 0


class TestDetectPattern:
    def test_repeated_best_is_plateau(self):
        assert detect_pattern(_bests((135, 8), (135, 8), (135, 8))) == "plateau"

    def test_declining_best_is_regression(self):
        assert detect_pattern(_bests((135, 8), (145, 8), (155, 8))) == "regression"

    def test_plateau_checked_before_regression(self):
        assert detect_pattern(_bests((135, 8), (135, 8), (155, 8))) == "plateau"

    def test_progress_is_not_flagged(self):
        assert detect_pattern(_bests((145, 8), (140, 8), (135, 8))) is None

    def test_single_session_is_not_enough(self):
        assert detect_pattern(_bests((135, 8))) is None


# ===========================================================================
# Interventions
# ===========================================================================

class TestInterventions:
    def test_five_interventions_in_fixed_order(self):
        landmark = build_landmark_table()["chest"]
        interventions = build_interventions("plateau", None, "chest", landmark)
        assert [i.type for i in interventions] == [
            "deload", "rep_range", "exercise_swap", "technique", "volume",
        ]

    def test_regression_deload_wording(self):
        deload = build_interventions("regression", None, None, None)[0]
        assert "declining" in deload.description

    def test_volume_intervention_quotes_landmarks(self):
        landmark = build_landmark_table()["chest"]
        volume = build_interventions("plateau", None, "chest", landmark)[-1]
        assert "MEV is 8 sets" in volume.description
        assert "12-20 sets" in volume.description
        assert "MRV is 22 sets" in volume.description

    def test_generic_texts_without_replacement_or_landmark(self):
        interventions = build_interventions("plateau", None, None, None)
        assert interventions[2].replacement is None
        assert interventions[2].description.startswith("Try a different variation")
        assert interventions[4].title == "Check weekly volume"


# ===========================================================================
# Detector over stored history
# ===========================================================================

class TestPlateauDetector:
    def test_three_identical_sessions(self, tmp_path):
        store = _store(tmp_path)
        for days_ago in (6, 4, 2):
            _log(store, days_ago, [("barbell_bench_press", 135, 8), ("barbell_bench_press", 135, 7)])

        results = _detect(store)

        assert len(results) == 1
        r = results[0]
        assert r.exercise_id == "barbell_bench_press"
        assert r.exercise_name == "Barbell Bench Press"
        assert r.muscle_group == "chest"
        assert r.plateau_type == "plateau"
        assert r.session_count == 3
        assert (r.last_weight, r.last_reps) == (135, 8)
        assert len(r.interventions) == 5

    def test_swap_intervention_names_best_replacement(self, tmp_path):
        # No rotation history: Cable Fly (cable, isolation, never used) scores 9
        store = _store(tmp_path)
        for days_ago in (4, 2):
            _log(store, days_ago, [("barbell_bench_press", 135, 8)])

        swap = _detect(store)[0].interventions[2]

        assert swap.replacement is not None
        assert swap.replacement.exercise_id == "cable_fly"
        assert "Cable Fly" in swap.description

    def test_declining_sessions(self, tmp_path):
        store = _store(tmp_path)
        _log(store, 6, [("barbell_bench_press", 155, 8)])
        _log(store, 4, [("barbell_bench_press", 145, 8)])
        _log(store, 2, [("barbell_bench_press", 135, 8)])

        results = _detect(store)

        assert [r.plateau_type for r in results] == ["regression"]
        assert results[0].last_weight == 135

    def test_progress_yields_nothing(self, tmp_path):
        store = _store(tmp_path)
        _log(store, 6, [("barbell_bench_press", 135, 8)])
        _log(store, 4, [("barbell_bench_press", 140, 8)])
        _log(store, 2, [("barbell_bench_press", 145, 8)])
        assert _detect(store) == []

    def test_sessions_without_the_exercise_are_skipped(self, tmp_path):
        store = _store(tmp_path)
        _log(store, 6, [("barbell_bench_press", 135, 8)])
        _log(store, 4, [("back_squat", 225, 5)])
        _log(store, 2, [("barbell_bench_press", 135, 8)])

        results = _detect(store)

        assert [(r.exercise_id, r.session_count) for r in results] == [("barbell_bench_press", 2)]

    def test_exercise_in_one_session_only(self, tmp_path):
        store = _store(tmp_path)
        _log(store, 4, [("back_squat", 225, 5)])
        _log(store, 2, [("barbell_bench_press", 135, 8)])
        assert _detect(store) == []

    def test_only_three_most_recent_sessions_count(self, tmp_path):
        store = _store(tmp_path)
        _log(store, 10, [("barbell_bench_press", 135, 8)])
        _log(store, 8, [("barbell_bench_press", 135, 8)])
        _log(store, 6, [("back_squat", 225, 5)])
        _log(store, 4, [("back_squat", 230, 5)])
        _log(store, 2, [("barbell_bench_press", 140, 8)])
        assert _detect(store) == []

    def test_warmups_and_unfinished_sessions_ignored(self, tmp_path):
        store = _store(tmp_path)
        _log(store, 6, [("barbell_bench_press", 135, 8), ("barbell_bench_press", 225, 1, "warmup")])
        _log(store, 4, [("barbell_bench_press", 135, 8)])
        _log(store, 1, [("barbell_bench_press", 155, 8)], completed=False)

        results = _detect(store)

        assert [(r.plateau_type, r.session_count) for r in results] == [("plateau", 2)]

    def test_fewer_than_two_sessions(self, tmp_path):
        store = _store(tmp_path)
        _log(store, 2, [("barbell_bench_press", 135, 8)])
        assert _detect(store) == []

    def test_other_users_history_is_ignored(self, tmp_path):
        store = _store(tmp_path)
        for days_ago in (4, 2):
            _log(store, days_ago, [("barbell_bench_press", 135, 8)], user_id="someone-else")
        assert _detect(store) == []

    def test_store_failure_reads_as_no_data(self, tmp_path):
        class BrokenStore(HistoryStore):
            def fetch_recent_completed_sessions(self, user_id, limit):
                raise StoreError("disk on fire")

        store = BrokenStore(tmp_path / "data")
        store.init()
        assert PlateauDetector(store).detect(USER, NOW) == []


@pytest.mark.parametrize("plateau_type", ["plateau", "regression"])
def test_intervention_titles_are_stable(plateau_type):
    titles = [i.title for i in build_interventions(plateau_type, None, None, None)]
    assert titles == [
        "Take a deload week",
        "Switch rep range",
        "Swap exercise variation",
        "Modify technique",
        "Check weekly volume",
    ]
