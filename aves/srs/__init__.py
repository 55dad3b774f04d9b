"""
SRS - SM-2 Spaced Repetition for annotation terms

Quick start:
    from aves import srs

    states = {}
    state, event_data = srs.record_review(states, "learner", "ann-1", srs.SRSQuality.GOOD)

    # Persist
    session = srs.get_session()
    srs.init_db(session.get_bind())
    srs.save_term_states(session, list(states.values()))
    srs.log_review_events(session, [event_data])

    # Due terms, most overdue first
    due = srs.get_due_terms(states.values())
"""

# Core scheduler API (algorithm logic)
from aves.srs.scheduler import get_due_terms, process_review, record_review, validate_quality
from aves.srs.quality import quality_from_result

# Database API
from aves.srs.database import (
    get_engine,
    get_recent_events,
    get_session,
    init_db,
    load_term_states,
    log_review_events,
    save_term_states,
)

# Constants and parameters
from aves.srs.constants import (
    INITIAL_EASE,
    MASTERY_GAIN,
    MASTERY_LOSS,
    MATURE_INTERVAL_DAYS,
    MIN_EASE,
    SRSQuality,
)

# Review state
from aves.srs.review_state import (
    TermReviewState,
    classify_regime,
    initialize_term_state,
    mark_term_discovered,
)


__all__ = [
    # Core algorithm
    "process_review",
    "record_review",
    "get_due_terms",
    "validate_quality",
    "quality_from_result",

    # Database operations
    "get_engine",
    "get_session",
    "init_db",
    "load_term_states",
    "save_term_states",
    "log_review_events",
    "get_recent_events",

    # Enums
    "SRSQuality",

    # Review state
    "TermReviewState",
    "classify_regime",
    "initialize_term_state",
    "mark_term_discovered",

    # Parameters
    "INITIAL_EASE",
    "MIN_EASE",
    "MASTERY_GAIN",
    "MASTERY_LOSS",
    "MATURE_INTERVAL_DAYS",
]
