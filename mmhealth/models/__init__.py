"""ORM models - import all so Base.metadata is complete for migrations."""

from mmhealth.models.daily import CalorieEntry, DailyEntry, ExerciseEntry, InjectionEntry, MITEntry
from mmhealth.models.lookup import Compound, FoodTemplate, NirvanaSessionType
from mmhealth.models.nirvana import (
    BodyPartMapping,
    NirvanaEntry,
    NirvanaMilestone,
    NirvanaPersonalRecord,
    NirvanaSession,
)
from mmhealth.models.profile import UserProfile
from mmhealth.models.subscription import Subscription, SubscriptionCategory
from mmhealth.models.weekly import WeeklyEntry
from mmhealth.models.winners_bible import WinnersBibleImage

__all__ = [
    "BodyPartMapping",
    "CalorieEntry",
    "Compound",
    "DailyEntry",
    "ExerciseEntry",
    "FoodTemplate",
    "InjectionEntry",
    "MITEntry",
    "NirvanaEntry",
    "NirvanaMilestone",
    "NirvanaPersonalRecord",
    "NirvanaSession",
    "NirvanaSessionType",
    "Subscription",
    "SubscriptionCategory",
    "UserProfile",
    "WeeklyEntry",
    "WinnersBibleImage",
]
