"""Shared enums for models and API."""

from enum import Enum


class BillingFrequency(str, Enum):
    """How often a subscription charges."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class TimeOfDay(str, Enum):
    """Winners Bible viewing slot."""

    MORNING = "morning"
    NIGHT = "night"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class MutationMode(str, Enum):
    """How a mutation reconciles the query cache."""

    OPTIMISTIC = "optimistic"  # apply before the call, roll back on failure
    DIRECT = "direct"  # splice the returned row in after success
    INVALIDATE = "invalidate"  # only mark affected scopes stale


class Difficulty(str, Enum):
    """Nirvana milestone difficulty."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Intensity(str, Enum):
    """How hard a session type works its body parts."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
