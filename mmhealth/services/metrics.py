"""Derived daily metrics: BMR, calorie balance, macro totals.

Pure functions; nothing here touches the database.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional


def calc_bmr(weight_kg: float, height_cm: float, age: int, gender: Optional[str]) -> int:
    """Mifflin-St Jeor BMR equation (kcal/day), rounded to the nearest kcal.

    Unspecified gender uses the mean of the male and female equations.
    """
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    if gender == "male":
        bmr = base + 5
    elif gender == "female":
        bmr = base - 161
    else:
        bmr = ((base + 5) + (base - 161)) / 2
    return math.floor(bmr + 0.5)  # half-up, not banker's rounding


def _total(rows: Iterable[Any], attr: str) -> float:
    return sum(float(getattr(r, attr) or 0) for r in rows)


@dataclass
class DailyMetrics:
    total_calories_consumed: float
    total_calories_burned: float
    calorie_balance: float
    macros: dict[str, float] = field(default_factory=dict)


def daily_metrics(bmr: float, calories: Iterable[Any], exercises: Iterable[Any]) -> DailyMetrics:
    """Daily balance = BMR - food calories + exercise calories."""
    calories = list(calories)
    consumed = _total(calories, "calories")
    burned = _total(exercises, "calories_burned")
    return DailyMetrics(
        total_calories_consumed=consumed,
        total_calories_burned=burned,
        calorie_balance=bmr - consumed + burned,
        macros={
            "carbs": _total(calories, "carbs"),
            "protein": _total(calories, "protein"),
            "fat": _total(calories, "fat"),
        },
    )
