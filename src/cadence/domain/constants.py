"""Centralized constants for cadence.

All scheduling numbers live here so every layer imports from a single
source of truth.
"""

# ---------- Ease factor ----------
DEFAULT_EASE = 2.5
MIN_EASE = 1.3
MAX_EASE = 3.0

HARD_EASE_PENALTY = 0.2
MEDIUM_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.1

# ---------- Intervals (days) ----------
MAX_INTERVAL = 60
LEARNING_INTERVALS = [1, 3]
GRADUATION_INTERVAL = 7
EASY_INTERVALS = [1, 4, 10]
MATURE_MIN_INTERVAL = 7
MATURE_REPETITIONS = 3

MEDIUM_INTERVAL_DAMPING = 0.85
EASY_MULTIPLIER_CAP = 2.8
MATURITY_STEP = 0.05
MATURITY_CAP = 1.3

# ---------- Timing ----------
HARD_RETRY_MINUTES = 5
JITTER_RATIO = 0.1  # +/- fraction of the interval
MINUTES_PER_DAY = 24 * 60

# ---------- Mastery ----------
LEARNING_REPETITIONS = 3
CONSOLIDATING_REPETITIONS = 6
MASTERED_EASE_THRESHOLD = 2.3
DIFFICULT_LAPSES = 3

# ---------- Session ----------
HARD_RETRY_DELAY = 1.0  # seconds before the same card is shown again
ADVANCE_DELAY = 0.5  # seconds before moving to the next card

# ---------- Stores ----------
REQUEST_TIMEOUT = 15.0
