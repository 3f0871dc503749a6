import logging
import random
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, timedelta

from mealplan import config
from mealplan.nutrition import NutritionTotals, aggregate_nutrition
from mealplan.recipes import MealType, NutrientFact, RecipeCandidate, RecordId
from mealplan.scoring import score_recipe
from mealplan.targets import (
    IncompleteProfileError,
    MealPlanError,
    NutritionProfile,
    daily_target,
)
from mealplan.units import round_half_up

logger = logging.getLogger(__name__)

# Variety tuning
BASE_REPETITION_PENALTY = 0.7  # per earlier use of the recipe, any meal type
RECENT_USE_PENALTY = 0.9       # same recipe in the same meal type yesterday
RANDOMIZATION_FACTOR = 0.05    # jitter range, breaks near-ties
RECENT_USE_WINDOW = 3          # days looked back for recent use
MAX_USES_PER_MEAL_TYPE = 2     # hard cap per recipe per meal type per week


class NoRecipesAvailableError(MealPlanError):
    """Raised when the recipe catalog handed to the planner is empty."""
    code = "NO_RECIPES_AVAILABLE"


def week_start(day: date | None = None) -> date:
    """Return the Monday of the week containing *day* (today if omitted)."""
    day = day or date.today()
    return day - timedelta(days=day.weekday())


@dataclass(frozen=True)
class PlannedMeal:
    date: date
    meal_type: MealType
    recipe: RecipeCandidate
    nutrition: NutritionTotals
    score: float | None = None  # base score at selection; None when chosen by hand

    @property
    def calories(self) -> float:
        return self.nutrition.calories

    @property
    def protein(self) -> float:
        return self.nutrition.protein

    @property
    def carbs(self) -> float:
        return self.nutrition.carbs

    @property
    def fat(self) -> float:
        return self.nutrition.fat


@dataclass(frozen=True)
class PlannedDay:
    date: date
    # One entry per planned meal type; None marks a slot no recipe could fill.
    meals: dict[MealType, PlannedMeal | None]

    @property
    def nutrition(self) -> NutritionTotals:
        total = NutritionTotals()
        for meal in self.meals.values():
            if meal is not None:
                total = total + meal.nutrition
        return total.rounded()

    @property
    def unfilled_meal_types(self) -> list[MealType]:
        return [meal_type for meal_type, meal in self.meals.items() if meal is None]


@dataclass(frozen=True)
class WeeklyPlan:
    week_start: date
    days: list[PlannedDay]
    meal_types: tuple[MealType, ...]
    daily_calorie_target: float
    meal_calorie_target: float

    @property
    def meals(self) -> list[PlannedMeal]:
        return [meal for day in self.days for meal in day.meals.values() if meal is not None]

    @property
    def unfilled_slots(self) -> list[tuple[date, MealType]]:
        return [(day.date, meal_type) for day in self.days for meal_type in day.unfilled_meal_types]

    @property
    def is_complete(self) -> bool:
        return not self.unfilled_slots

    @property
    def total_nutrition(self) -> NutritionTotals:
        total = NutritionTotals()
        for day in self.days:
            total = total + day.nutrition
        return total.rounded()

    @property
    def avg_daily_nutrition(self) -> NutritionTotals:
        if not self.days:
            return NutritionTotals()
        return self.total_nutrition.scaled(1 / len(self.days)).rounded()

    def get_meal(self, day_index: int, meal_type: MealType) -> PlannedMeal | None:
        return self.days[day_index].meals.get(meal_type)

    def usage_counts(self) -> dict[tuple[RecordId, MealType], int]:
        """How many cells each (recipe id, meal type) pair fills."""
        counts: dict[tuple[RecordId, MealType], int] = {}
        for meal in self.meals:
            key = (meal.recipe.id, meal.meal_type)
            counts[key] = counts.get(key, 0) + 1
        return counts

    def get_daily_nutrition(self) -> dict[str, dict[str, float]]:
        """Nutrition totals for each day, keyed by ISO date.

        Returns:
            {"2025-01-06": {"calories": 2000, "protein": 150, ...}, ...}
        """
        return {day.date.isoformat(): day.nutrition.to_dict() for day in self.days}


@dataclass
class UsageState:
    """Variety bookkeeping for a single allocation run."""
    total_uses: dict[RecordId, int] = field(default_factory=dict)
    meal_type_uses: dict[tuple[RecordId, MealType], int] = field(default_factory=dict)
    # day index -> meal type -> recipe id chosen for that cell
    selections: dict[int, dict[MealType, RecordId]] = field(default_factory=dict)
    base_scores: dict[RecordId, float] = field(default_factory=dict)

    def uses_for(self, recipe_id: RecordId, meal_type: MealType) -> int:
        return self.meal_type_uses.get((recipe_id, meal_type), 0)

    def repetition_penalty(self, recipe_id: RecordId) -> float:
        return self.total_uses.get(recipe_id, 0) * BASE_REPETITION_PENALTY

    def recency_penalty(self, recipe_id: RecordId, meal_type: MealType, day_index: int) -> float:
        """Penalty for the same recipe in the same meal type on recent days.

        Yesterday costs the full RECENT_USE_PENALTY and each earlier day
        half of the one after it, up to RECENT_USE_WINDOW days back.
        """
        penalty = 0.0
        for days_ago in range(1, min(day_index, RECENT_USE_WINDOW) + 1):
            chosen = self.selections.get(day_index - days_ago, {}).get(meal_type)
            if chosen == recipe_id:
                penalty += RECENT_USE_PENALTY * 0.5 ** (days_ago - 1)
        return penalty

    def record(self, day_index: int, meal_type: MealType, recipe_id: RecordId) -> None:
        self.total_uses[recipe_id] = self.total_uses.get(recipe_id, 0) + 1
        key = (recipe_id, meal_type)
        self.meal_type_uses[key] = self.meal_type_uses.get(key, 0) + 1
        self.selections.setdefault(day_index, {})[meal_type] = recipe_id


def _candidate_order(recipe: RecipeCandidate) -> tuple[bool, RecordId]:
    # Stable iteration order for tie-breaking; integer ids sort before slugs.
    return (isinstance(recipe.id, str), recipe.id)


class MealPlanner:
    def __init__(
        self,
        meal_types: Iterable[MealType] | None = None,
        rng: random.Random | None = None,
        days: int | None = None,
    ):
        # Slots within a day are always filled in MealType declaration order.
        selected = set(meal_types) if meal_types is not None else set(MealType)
        self.meal_types: tuple[MealType, ...] = tuple(mt for mt in MealType if mt in selected)
        if not self.meal_types:
            raise ValueError("At least one meal type is required")
        self.rng = rng or random.Random()
        self.days = days if days is not None else config.DAYS_IN_PLAN

    def _jitter(self) -> float:
        return (self.rng.random() - 0.5) * RANDOMIZATION_FACTOR

    def _select_recipe(
        self,
        candidates: Sequence[RecipeCandidate],
        meal_type: MealType,
        day_index: int,
        meal_calorie_target: float,
        pantry_ingredient_ids: Collection[RecordId],
        favorite_recipe_ids: Collection[RecordId],
        usage: UsageState,
    ) -> tuple[RecipeCandidate, float] | None:
        """Pick the best eligible recipe for one (day, meal type) cell.

        Eligible recipes carry the cell's meal type and have been used fewer
        than MAX_USES_PER_MEAL_TYPE times for it. Each is rated as its base
        score minus the repetition and recency penalties plus jitter, floored
        at zero; the highest wins, the first one seen on a tie.

        Returns:
            (recipe, base score), or None when nothing is eligible.
        """
        best: RecipeCandidate | None = None
        best_adjusted = 0.0

        for recipe in candidates:
            if recipe.meal_type is not meal_type:
                continue
            if usage.uses_for(recipe.id, meal_type) >= MAX_USES_PER_MEAL_TYPE:
                continue

            if recipe.id not in usage.base_scores:
                usage.base_scores[recipe.id] = score_recipe(
                    recipe, meal_calorie_target, pantry_ingredient_ids, favorite_recipe_ids
                )
            base_score = usage.base_scores[recipe.id]

            adjusted = max(
                0.0,
                base_score
                - usage.repetition_penalty(recipe.id)
                - usage.recency_penalty(recipe.id, meal_type, day_index)
                + self._jitter(),
            )
            if best is None or adjusted > best_adjusted:
                best, best_adjusted = recipe, adjusted

        if best is None:
            return None
        return best, usage.base_scores[best.id]

    def generate_weekly_plan(
        self,
        profile: NutritionProfile | None,
        recipes: Sequence[RecipeCandidate],
        pantry_ingredient_ids: Collection[RecordId] = frozenset(),
        favorite_recipe_ids: Collection[RecordId] = frozenset(),
        start_date: date | None = None,
        nutrient_facts: Mapping[RecordId, Sequence[NutrientFact]] | None = None,
    ) -> WeeklyPlan:
        """Fill a days x meal-types grid with recipes.

        Args:
            profile: The user's nutrition profile; weight, height and age are
                required
            recipes: Candidate recipes, each tagged with one meal type
            pantry_ingredient_ids: Ingredient ids the user already has
            favorite_recipe_ids: Recipe ids the user marked as favorite
            start_date: Date of the first day; days are labelled
                consecutively from it. Defaults to the current week's Monday.
            nutrient_facts: Optional nutrient facts by ingredient id, used for
                the nutrition summaries instead of the facts on each
                ingredient

        Returns:
            WeeklyPlan. Cells with no eligible recipe are left as None and
            listed in WeeklyPlan.unfilled_slots.

        Raises:
            IncompleteProfileError: If the profile lacks weight, height or age
            NoRecipesAvailableError: If no recipes were supplied
        """
        if profile is None or not profile.is_complete:
            raise IncompleteProfileError("Weight, height and age are required to generate a meal plan")
        if not recipes:
            raise NoRecipesAvailableError("No recipes available to generate a meal plan")

        start_date = start_date or week_start()
        daily_calories = daily_target(profile, places=0)
        meal_calorie_target = round_half_up(daily_calories / len(self.meal_types))

        logger.info(
            "Generating weekly plan",
            extra={
                "recipe_pool_size": len(recipes),
                "meal_types": [mt.value for mt in self.meal_types],
                "daily_calorie_target": daily_calories,
            },
        )

        candidates = sorted(recipes, key=_candidate_order)
        usage = UsageState()
        days: list[PlannedDay] = []

        for day_index in range(self.days):
            current_date = start_date + timedelta(days=day_index)
            meals: dict[MealType, PlannedMeal | None] = {}

            for meal_type in self.meal_types:
                logger.debug("Filling meal slot", extra={"day": day_index, "meal_type": meal_type.value})
                selection = self._select_recipe(
                    candidates,
                    meal_type,
                    day_index,
                    meal_calorie_target,
                    pantry_ingredient_ids,
                    favorite_recipe_ids,
                    usage,
                )
                if selection is None:
                    logger.warning(
                        "No eligible recipe for meal slot, leaving it empty",
                        extra={"date": current_date.isoformat(), "meal_type": meal_type.value},
                    )
                    meals[meal_type] = None
                    continue

                recipe, base_score = selection
                usage.record(day_index, meal_type, recipe.id)
                meals[meal_type] = PlannedMeal(
                    date=current_date,
                    meal_type=meal_type,
                    recipe=recipe,
                    nutrition=aggregate_nutrition(recipe.ingredients, nutrient_facts),
                    score=base_score,
                )

            days.append(PlannedDay(date=current_date, meals=meals))

        plan = WeeklyPlan(
            week_start=start_date,
            days=days,
            meal_types=self.meal_types,
            daily_calorie_target=daily_calories,
            meal_calorie_target=meal_calorie_target,
        )
        logger.info(
            "Weekly plan generated",
            extra={"total_meals": len(plan.meals), "unfilled_slots": len(plan.unfilled_slots)},
        )
        return plan


def generate_weekly_plan(
    profile: NutritionProfile | None,
    recipes: Sequence[RecipeCandidate],
    pantry_ingredient_ids: Collection[RecordId] = frozenset(),
    favorite_recipe_ids: Collection[RecordId] = frozenset(),
    start_date: date | None = None,
    nutrient_facts: Mapping[RecordId, Sequence[NutrientFact]] | None = None,
    rng: random.Random | None = None,
) -> WeeklyPlan:
    """Generate a plan over every meal type with a fresh MealPlanner."""
    return MealPlanner(rng=rng).generate_weekly_plan(
        profile,
        recipes,
        pantry_ingredient_ids,
        favorite_recipe_ids,
        start_date,
        nutrient_facts,
    )


def replace_meal(
    plan: WeeklyPlan,
    day_index: int,
    meal_type: MealType,
    recipe: RecipeCandidate,
    nutrient_facts: Mapping[RecordId, Sequence[NutrientFact]] | None = None,
) -> WeeklyPlan:
    """Return a copy of *plan* with one slot's recipe swapped by hand.

    The slot's nutrition is recomputed for the new recipe, so the day and
    week summaries follow. Variety rules do not apply to manual choices.

    Raises:
        ValueError: If the day or meal type is not part of the plan
    """
    if not 0 <= day_index < len(plan.days):
        raise ValueError(f"Day index {day_index} is outside the plan")
    if meal_type not in plan.meal_types:
        raise ValueError(f"Meal type {meal_type.value!r} is not part of the plan")

    day = plan.days[day_index]
    meals = dict(day.meals)
    meals[meal_type] = PlannedMeal(
        date=day.date,
        meal_type=meal_type,
        recipe=recipe,
        nutrition=aggregate_nutrition(recipe.ingredients, nutrient_facts),
    )
    days = list(plan.days)
    days[day_index] = replace(day, meals=meals)

    logger.info(
        "Meal slot replaced",
        extra={"date": day.date.isoformat(), "meal_type": meal_type.value, "recipe_id": recipe.id},
    )
    return replace(plan, days=days)
