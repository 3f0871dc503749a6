"""Weekly meal plan allocation: recipe scoring, variety-aware slot filling and nutrition totals."""

from mealplan.nutrition import aggregate_nutrition
from mealplan.planner import generate_weekly_plan
from mealplan.targets import daily_target

__all__ = ["aggregate_nutrition", "daily_target", "generate_weekly_plan"]
