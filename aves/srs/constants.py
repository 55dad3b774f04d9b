"""
SRS Constants and Parameters

All configurable parameters for the SM-2 scheduler and the mastery
heuristic in one place.
"""

from enum import IntEnum


# ---- Quality Ratings ----

class SRSQuality(IntEnum):
    """SM-2 recall quality, 0 (blackout) to 5 (perfect)."""
    BLACKOUT = 0       # No recall at all
    INCORRECT = 1      # Wrong, but the answer felt familiar
    NEAR_MISS = 2      # Wrong, but close
    HARD = 3           # Correct with serious difficulty
    GOOD = 4           # Correct after hesitation
    PERFECT = 5        # Correct and immediate


MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3  # Below this a review is a lapse


# ---- SM-2 Parameters ----

INITIAL_EASE = 2.5
MIN_EASE = 1.3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
LAPSE_INTERVAL_DAYS = 1


# ---- Regimes ----

MATURE_INTERVAL_DAYS = 21  # Interval at which a term counts as mature

REGIME_NEW = "new"
REGIME_LEARNING = "learning"
REGIME_MATURE = "mature"


# ---- Mastery Heuristic ----
# Bounded accumulator layered on top of SM-2, independent of the interval math

MASTERY_GAIN = 8
MASTERY_LOSS = 15
MIN_MASTERY = 0
MAX_MASTERY = 100

MASTERED_THRESHOLD = 80  # Mastery at or above this counts as mastered


# ---- Result -> Quality Mapping ----
# Response time thresholds in milliseconds

FAST_RESPONSE_MS = 1500
NORMAL_RESPONSE_MS = 3000
SLOW_RESPONSE_MS = 5000

GOOD_SCORE = 0.85  # Partial score that still counts as a confident answer

# Match-rate caps for multi-term exercises
HIGH_MATCH_RATE = 0.75
MEDIUM_MATCH_RATE = 0.5
