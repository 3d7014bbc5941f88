"""Centralized constants for the scheduling engine.

All magic numbers and defaults live here so every layer
imports from a single source of truth.
"""

from datetime import timedelta

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
PASSING_GRADE = 3
MAX_GRADE = 5
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
MIGRATED_REPETITION_COUNT = 1  # foreign migrations assume some progress was made

# ---------- New cards ----------
SM2_NEW_CARD_DELAY = timedelta(days=1)
MODIFIED_SM2_NEW_CARD_DELAY = timedelta(seconds=45)

# ---------- Recovery loop ----------
DEFAULT_RECOVERY_THRESHOLD = 4
RECOVERY_STEP_DELAY = timedelta(seconds=45)

SECONDS_PER_DAY = 86400
