"""
Tests for the learner session facade.

Tests cover:
- Issue / submit lifecycle
- Term-state updates from graded results
- Level adjustment over result windows
- Bootstrapping from history and flushing to the database
"""

import random
from datetime import timedelta

import pytest

from aves.errors import InvalidSubmissionError, NoExerciseAvailableError, UnknownExerciseError
from aves.schemas import ExerciseResult, ExerciseSubmission, Point
from aves.session import LearnerSession
from aves.srs import database

LEVEL_1 = {"visual_identification", "visual_discrimination"}
LEVEL_2 = {"term_matching", "audio_recognition", "contextual_fill"}


def correct_answer(exercise):
    key = exercise.answer_key
    return {
        "visual_identification": lambda: key.target_part,
        "visual_discrimination": lambda: key.correct_option_id,
        "audio_recognition": lambda: key.correct_option_id,
        "comparative_analysis": lambda: key.correct_option_id,
        "contextual_fill": lambda: key.correct_answer,
        "term_matching": lambda: {p.spanish: p.english for p in key.correct_pairs},
        "sentence_building": lambda: list(key.correct_order),
        "annotation_sequencing": lambda: list(key.correct_order),
        "cultural_context": lambda: key.correct_index,
        "category_sorting": lambda: dict(key.assignments),
        "spatial_identification": lambda: key.target_box.center,
        "bounding_box_drawing": lambda: key.target_box,
    }[exercise.type]()


def wrong_answer(exercise):
    if exercise.type == "term_matching":
        return {}
    if exercise.type == "cultural_context":
        return -1
    return "wrong"


@pytest.fixture
def session(bird_pool, now):
    return LearnerSession(bird_pool, user_id="ana", rng=random.Random(5), clock=lambda: now)


def answer(session, exercise, value, **kwargs):
    return session.submit_answer(ExerciseSubmission(exercise_id=exercise.id, answer=value), **kwargs)


class TestLifecycle:

    def test_first_exercise_is_level_one(self, session):
        assert session.level == 1
        assert session.next_exercise().type in LEVEL_1

    def test_issuing_marks_term_discovered(self, session, now):
        exercise = session.next_exercise()
        state = session.term_states[exercise.annotation_id]
        assert state.repetitions == 0
        assert state.first_seen_at == now
        assert session.due_terms(now) == [state]

    def test_correct_answer_updates_term(self, session, now):
        exercise = session.next_exercise()
        result = answer(session, exercise, correct_answer(exercise))

        assert result.correct
        state = session.term_states[exercise.annotation_id]
        assert state.repetitions == 1
        assert state.interval_days == 1
        assert state.next_review_at == now + timedelta(days=1)
        assert session.due_terms(now) == []
        assert len(session.review_events) == 1
        assert session.review_events[0]["exercise_type"] == exercise.type

    def test_wrong_answer_is_lapse(self, session):
        exercise = session.next_exercise()
        result = answer(session, exercise, wrong_answer(exercise), elapsed_ms=6000)
        assert not result.correct
        state = session.term_states[exercise.annotation_id]
        assert state.times_incorrect == 1
        assert state.repetitions == 0

    def test_resubmission_rejected(self, session):
        exercise = session.next_exercise()
        answer(session, exercise, correct_answer(exercise))
        with pytest.raises(UnknownExerciseError):
            answer(session, exercise, correct_answer(exercise))

    def test_unknown_exercise_rejected(self, session):
        with pytest.raises(UnknownExerciseError):
            session.submit_answer({"exercise_id": "never-issued", "answer": "beak"})

    def test_malformed_payload_rejected(self, session):
        session.next_exercise()
        with pytest.raises(InvalidSubmissionError):
            session.submit_answer({"answer": "beak"})

    def test_raw_payload_accepted(self, session):
        exercise = session.next_exercise()
        result = session.submit_answer({"exercise_id": exercise.id, "answer": correct_answer(exercise)})
        assert result.correct

    def test_cultural_context_leaves_terms_alone(self, bird_pool, now):
        session = LearnerSession(bird_pool, rng=random.Random(1), level=3, clock=lambda: now)
        exercise = session.next_exercise("cultural_context")
        answer(session, exercise, correct_answer(exercise))
        assert session.term_states == {}
        assert session.review_events == []
        assert len(session.results) == 1

    def test_requested_spatial_exercise(self, session):
        exercise = session.next_exercise("spatial_identification")
        result = answer(session, exercise, correct_answer(exercise))
        assert result.correct
        assert result.score == pytest.approx(1.0)

    def test_requested_type_unavailable(self, four_part_pool, now):
        session = LearnerSession(four_part_pool, rng=random.Random(1), clock=lambda: now)
        with pytest.raises(NoExerciseAvailableError):
            session.next_exercise("comparative_analysis")

    def test_invalid_level_window(self, bird_pool):
        with pytest.raises(ValueError):
            LearnerSession(bird_pool, level_window=0)


class TestLevelAdjustment:

    def test_ten_correct_raise_level(self, session):
        for _ in range(10):
            exercise = session.next_exercise()
            answer(session, exercise, correct_answer(exercise))
        assert session.level == 2
        assert session.next_exercise().type in LEVEL_2

    def test_level_unchanged_before_window_fills(self, session):
        for _ in range(9):
            exercise = session.next_exercise()
            answer(session, exercise, correct_answer(exercise))
        assert session.level == 1

    def test_ten_wrong_lower_level(self, bird_pool, now):
        session = LearnerSession(bird_pool, rng=random.Random(2), level=2, clock=lambda: now)
        for _ in range(10):
            exercise = session.next_exercise()
            answer(session, exercise, wrong_answer(exercise))
        assert session.level == 1


class TestHistoryAndPersistence:

    def test_from_history_replays_level(self, bird_pool, now):
        results = [
            ExerciseResult(exercise_id=f"old-{i}", exercise_type="visual_identification",
                           correct=True, score=1.0, completed_at=now)
            for i in range(13)
        ]
        session = LearnerSession.from_history(bird_pool, results, rng=random.Random(1), clock=lambda: now)
        assert session.level == 2
        assert session.progress(now).total_attempts == 13

    def test_progress_snapshot(self, session, now):
        for _ in range(3):
            exercise = session.next_exercise()
            answer(session, exercise, correct_answer(exercise))
        stats = session.progress(now)
        assert stats.total_attempts == 3
        assert stats.accuracy == 1.0
        assert stats.current_streak == 3

    def test_flush_persists_states_and_events(self, session):
        engine = database.get_engine("sqlite://")
        database.init_db(engine)
        db_session = database.get_session(engine)

        exercise = session.next_exercise()
        answer(session, exercise, correct_answer(exercise))
        session.flush(db_session)

        assert session.review_events == []
        loaded = database.load_term_states(db_session, "ana")
        assert loaded[exercise.annotation_id].repetitions == 1
        assert len(database.get_recent_events(db_session, "ana")) == 1

        restored = LearnerSession(session.generator.pool, user_id="ana", term_states=loaded)
        assert restored.term_states[exercise.annotation_id].repetitions == 1

        db_session.close()
        engine.dispose()

    def test_spatial_click_off_target(self, session):
        exercise = session.next_exercise("spatial_identification")
        result = answer(session, exercise, Point(x=0.99, y=0.99))
        assert not result.correct
