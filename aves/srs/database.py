"""
Database - Learner Progress I/O

Handles database operations for term review state and review events.
Uses SQLAlchemy ORM; any SQLAlchemy URL works (SQLite by default).

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.
"""

from __future__ import annotations
from typing import Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from aves.settings import get_database_url
from aves.srs.models import Base, ReviewEvent as ReviewEventModel, TermReviewStateModel
from aves.srs.review_state import TermReviewState, as_utc


def get_engine(db_url: Optional[str] = None) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    Server databases get a connection pool; SQLite uses SQLAlchemy's default.

    Args:
        db_url: Database URL (defaults to settings.get_database_url())

    Returns:
        SQLAlchemy Engine instance
    """
    db_url = db_url or get_database_url()
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=False)
    return create_engine(
        db_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


def get_session(engine: Optional[Engine] = None) -> Session:
    """
    Get a SQLAlchemy session for database operations.

    Returns:
        SQLAlchemy Session instance
    """
    engine = engine or get_engine()
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    return SessionLocal()


def init_db(engine: Optional[Engine] = None):
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates missing tables.
    """
    engine = engine or get_engine()
    existing_tables = inspect(engine).get_table_names()
    if 'term_review_state' not in existing_tables or 'review_events' not in existing_tables:
        Base.metadata.create_all(engine)


def _to_state(row: TermReviewStateModel) -> TermReviewState:
    # SQLite drops tzinfo on the way back
    return TermReviewState(
        user_id=row.user_id,
        annotation_id=row.annotation_id,
        repetitions=row.repetitions,
        ease_factor=row.ease_factor,
        interval_days=row.interval_days,
        next_review_at=as_utc(row.next_review_at),
        last_reviewed_at=as_utc(row.last_reviewed_at),
        first_seen_at=as_utc(row.first_seen_at),
        times_correct=row.times_correct,
        times_incorrect=row.times_incorrect,
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        mastery_score=row.mastery_score,
    )


def _copy_into_row(row: TermReviewStateModel, state: TermReviewState):
    row.repetitions = state.repetitions
    row.ease_factor = state.ease_factor
    row.interval_days = state.interval_days
    row.next_review_at = state.next_review_at
    row.last_reviewed_at = state.last_reviewed_at
    row.first_seen_at = state.first_seen_at
    row.times_correct = state.times_correct
    row.times_incorrect = state.times_incorrect
    row.current_streak = state.current_streak
    row.longest_streak = state.longest_streak
    row.mastery_score = state.mastery_score


def load_term_states(session: Session, user_id: str) -> dict[str, TermReviewState]:
    """
    Load every term state of one learner.

    Args:
        session: Open SQLAlchemy session
        user_id: Learner identifier

    Returns:
        Dict of annotation_id -> TermReviewState (empty for a new learner)
    """
    rows = session.query(TermReviewStateModel).filter(
        TermReviewStateModel.user_id == user_id
    ).all()
    return {row.annotation_id: _to_state(row) for row in rows}


def save_term_states(session: Session, states: list[TermReviewState]):
    """
    Upsert term states in a single transaction.

    Args:
        session: Open SQLAlchemy session
        states: TermReviewState objects to save
    """
    if not states:
        return

    for state in states:
        row = session.get(TermReviewStateModel, (state.user_id, state.annotation_id))
        if row is None:
            row = TermReviewStateModel(user_id=state.user_id, annotation_id=state.annotation_id)
            session.add(row)
        _copy_into_row(row, state)
    session.commit()


def log_review_events(session: Session, events: list[dict]):
    """
    Log review events in a single transaction.

    Args:
        session: Open SQLAlchemy session
        events: Event dicts as returned by scheduler.process_review(), with keys:
            - user_id, annotation_id, timestamp, quality
            - exercise_type, latency_ms (optional)
            - repetitions/ease/interval/mastery _before and _after
    """
    if not events:
        return

    for event in events:
        session.add(ReviewEventModel(
            user_id=event['user_id'],
            annotation_id=event['annotation_id'],
            exercise_type=event.get('exercise_type'),
            timestamp=event['timestamp'],
            quality=int(event['quality']),
            latency_ms=event.get('latency_ms'),
            repetitions_before=event['repetitions_before'],
            ease_before=event['ease_before'],
            interval_before=event['interval_before'],
            mastery_before=event['mastery_before'],
            repetitions_after=event['repetitions_after'],
            ease_after=event['ease_after'],
            interval_after=event['interval_after'],
            mastery_after=event['mastery_after'],
        ))
    session.commit()


def get_recent_events(session: Session, user_id: str, limit: int = 50) -> list[dict]:
    """
    Most recent review events of one learner, newest first.

    Returns:
        List of event dicts with the same keys log_review_events() accepts
    """
    rows = session.query(ReviewEventModel).filter(
        ReviewEventModel.user_id == user_id
    ).order_by(ReviewEventModel.timestamp.desc(), ReviewEventModel.id.desc()).limit(limit).all()

    return [
        {
            'user_id': row.user_id,
            'annotation_id': row.annotation_id,
            'exercise_type': row.exercise_type,
            'timestamp': as_utc(row.timestamp),
            'quality': row.quality,
            'latency_ms': row.latency_ms,
            'repetitions_before': row.repetitions_before,
            'ease_before': row.ease_before,
            'interval_before': row.interval_before,
            'mastery_before': row.mastery_before,
            'repetitions_after': row.repetitions_after,
            'ease_after': row.ease_after,
            'interval_after': row.interval_after,
            'mastery_after': row.mastery_after,
        }
        for row in rows
    ]
