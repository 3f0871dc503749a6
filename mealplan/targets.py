"""Daily energy targets from a user's nutrition profile.

BMR uses the Mifflin-St Jeor equation:

    men:   10 * weight(kg) + 6.25 * height(cm) - 5 * age + 5
    women: 10 * weight(kg) + 6.25 * height(cm) - 5 * age - 161

TDEE is BMR scaled by an activity multiplier.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mealplan import config
from mealplan.units import optional_float, round_half_up

logger = logging.getLogger(__name__)


class MealPlanError(Exception):
    """Base class for failures that abort meal plan generation."""
    code = "MEAL_PLAN_ERROR"


class IncompleteProfileError(MealPlanError):
    """Raised when a profile lacks the fields needed to compute a target."""
    code = "INSUFFICIENT_USER_PROFILE"


class Sex(Enum):
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(Enum):
    SEDENTARY = "sedentary"        # little or no exercise
    LIGHT = "light"                # light exercise 1-3 days/week
    MODERATE = "moderate"          # moderate exercise 3-5 days/week
    ACTIVE = "active"              # hard exercise 6-7 days/week
    VERY_ACTIVE = "very_active"    # very hard exercise, physical job


ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

# Share of daily energy per macro, and energy per gram of that macro.
MACRO_SPLIT: dict[str, tuple[float, float]] = {
    "protein": (0.25, 4.0),
    "carbs": (0.45, 4.0),
    "fat": (0.30, 9.0),
}


@dataclass(frozen=True)
class NutritionProfile:
    weight: float | None = None   # kg
    height: float | None = None   # cm
    age: int | None = None
    sex: Sex | None = None
    activity_level: ActivityLevel | None = None

    @property
    def is_complete(self) -> bool:
        """True when the profile has everything plan generation requires."""
        return self.weight is not None and self.height is not None and self.age is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NutritionProfile":
        """Build a profile from JSON-style data; every field is optional.

        Raises:
            ValueError: If *data* is not an object, a measurement is not a
                finite number, or sex or activity level is not a known value.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Invalid nutrition profile: expected an object, got {type(data).__name__}")

        age = data.get("age")
        sex = data.get("sex")
        activity_level = data.get("activity_level")
        try:
            return cls(
                weight=optional_float(data.get("weight"), "weight"),
                height=optional_float(data.get("height"), "height"),
                age=int(age) if age is not None else None,
                sex=Sex(sex.lower()) if sex else None,
                activity_level=ActivityLevel(activity_level.lower()) if activity_level else None,
            )
        except (AttributeError, TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"Invalid nutrition profile: {e}") from e


@dataclass(frozen=True)
class NutritionGoal:
    bmr: float
    daily_calories: float
    protein: float
    carbs: float
    fat: float


def bmr(
    weight: float | None,
    height: float | None,
    age: int | None,
    sex: Sex | None,
) -> float | None:
    """Basal metabolic rate in kcal, or None if any input is missing."""
    if weight is None or height is None or age is None or sex is None:
        return None

    base = 10 * weight + 6.25 * height - 5 * age
    if sex is Sex.MALE:
        return base + 5
    return base - 161


def activity_multiplier(activity_level: ActivityLevel | None) -> float:
    if activity_level is None:
        return ACTIVITY_MULTIPLIERS[ActivityLevel.MODERATE]
    return ACTIVITY_MULTIPLIERS[activity_level]


def tdee(bmr_kcal: float, activity_level: ActivityLevel | None, places: int = 2) -> float:
    """Total daily energy expenditure.

    Goal display uses 2 decimals; plan generation passes places=0 to work
    in whole kcal.
    """
    return round_half_up(bmr_kcal * activity_multiplier(activity_level), places)


def daily_target(profile: NutritionProfile | None, places: int = 0) -> float:
    """Daily calorie target for a profile.

    Falls back to config.DEFAULT_CALORIE_TARGET when weight, height or age
    is missing. A profile without a sex is computed with the female
    formula.
    """
    if profile is None or not profile.is_complete:
        logger.info("Profile incomplete, using default calorie target")
        return float(config.DEFAULT_CALORIE_TARGET)

    base = bmr(profile.weight, profile.height, profile.age, profile.sex or Sex.FEMALE)
    return tdee(base, profile.activity_level, places)


def macro_grams(daily_calories: float) -> dict[str, float]:
    return {
        macro: round_half_up(daily_calories * share / kcal_per_gram)
        for macro, (share, kcal_per_gram) in MACRO_SPLIT.items()
    }


def recommended_goals(profile: NutritionProfile) -> NutritionGoal:
    """Recommended daily calories and macro grams for a profile.

    Raises:
        IncompleteProfileError: If weight, height, age or sex is missing.
    """
    base = bmr(profile.weight, profile.height, profile.age, profile.sex)
    if base is None:
        raise IncompleteProfileError("Weight, height, age and sex are required to calculate goals")

    daily_calories = tdee(base, profile.activity_level)
    macros = macro_grams(daily_calories)
    logger.info(
        "Calculated recommended goals",
        extra={"bmr": base, "tdee": daily_calories, **macros},
    )
    return NutritionGoal(
        bmr=round_half_up(base),
        daily_calories=daily_calories,
        protein=macros["protein"],
        carbs=macros["carbs"],
        fat=macros["fat"],
    )


def calculate_progress(consumed: float | None, goal: float | None) -> float:
    """Percentage of *goal* reached by *consumed* (may exceed 100)."""
    if consumed is None or not goal:
        return 0.0
    return round_half_up(consumed * 100 / goal)
