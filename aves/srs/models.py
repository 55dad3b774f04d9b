"""
SQLAlchemy ORM Models for learner progress

Defines TermReviewState and ReviewEvent tables.
"""

from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TermReviewStateModel(Base):
    """
    Persistent SM-2 state for one term of one learner (user_id + annotation_id).
    """
    __tablename__ = 'term_review_state'

    # Primary key: one row per term per learner
    user_id = Column(String(255), primary_key=True, nullable=False)
    annotation_id = Column(String(255), primary_key=True, nullable=False)

    # SM-2 parameters
    repetitions = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval_days = Column(Integer, nullable=False, default=0)

    # Scheduling
    next_review_at = Column(DateTime(timezone=True), nullable=True)
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    first_seen_at = Column(DateTime(timezone=True), nullable=True)

    # Counters
    times_correct = Column(Integer, nullable=False, default=0)
    times_incorrect = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)

    mastery_score = Column(Integer, nullable=False, default=0)  # 0-100

    def __repr__(self):
        return f"<TermReviewState({self.user_id}, {self.annotation_id})>"


class ReviewEvent(Base):
    """
    Log entry for a single review, with SM-2 state before and after.
    """
    __tablename__ = 'review_events'

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(String(255), nullable=False, index=True)
    annotation_id = Column(String(255), nullable=False)
    exercise_type = Column(String(50), nullable=True)

    # Timing and rating
    timestamp = Column(DateTime(timezone=True), nullable=False)
    quality = Column(Integer, nullable=False)  # 0-5
    latency_ms = Column(Integer, nullable=True)

    # State before review
    repetitions_before = Column(Integer, nullable=False)
    ease_before = Column(Float, nullable=False)
    interval_before = Column(Integer, nullable=False)
    mastery_before = Column(Integer, nullable=False)

    # State after review
    repetitions_after = Column(Integer, nullable=False)
    ease_after = Column(Float, nullable=False)
    interval_after = Column(Integer, nullable=False)
    mastery_after = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<ReviewEvent(id={self.id}, {self.annotation_id}, quality={self.quality})>"
