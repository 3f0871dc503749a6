"""Nutrition aggregation from ingredient lines and per-100g nutrient facts."""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass

from mealplan.recipes import IngredientLine, NutrientFact, RecordId
from mealplan.units import round_half_up, to_grams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NutritionTotals:
    """Calories (kcal) and macros (g)."""
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def __add__(self, other: "NutritionTotals") -> "NutritionTotals":
        if not isinstance(other, NutritionTotals):
            return NotImplemented
        return NutritionTotals(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )

    def scaled(self, multiplier: float) -> "NutritionTotals":
        """Scale by a serving multiplier, e.g. 1.5 servings of a logged recipe."""
        return NutritionTotals(
            calories=self.calories * multiplier,
            protein=self.protein * multiplier,
            carbs=self.carbs * multiplier,
            fat=self.fat * multiplier,
        )

    def rounded(self, places: int = 2) -> "NutritionTotals":
        return NutritionTotals(
            calories=round_half_up(self.calories, places),
            protein=round_half_up(self.protein, places),
            carbs=round_half_up(self.carbs, places),
            fat=round_half_up(self.fat, places),
        )

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def _bucket_for(nutrient_name: str) -> str | None:
    """Map a nutrient display name to the bucket it is summed into.

    "calories" must match exactly; the macros match on substrings so that
    names like "Total Carbohydrate" or "Saturated fat" are picked up.
    """
    name = nutrient_name.strip().lower()
    if name == "calories":
        return "calories"
    if "protein" in name:
        return "protein"
    if "carb" in name:
        return "carbs"
    if "fat" in name:
        return "fat"
    return None


def aggregate_nutrition(
    lines: Iterable[IngredientLine],
    nutrient_facts: Mapping[RecordId, Sequence[NutrientFact]] | None = None,
) -> NutritionTotals:
    """Sum calories and macros over a recipe's ingredient lines.

    Args:
        lines: Ingredient lines of one serving of the recipe
        nutrient_facts: Optional mapping of ingredient id to its nutrient
            facts. When omitted, the facts carried by each line's
            ingredient are used.

    Returns:
        NutritionTotals for the lines. Lines without an ingredient, a
        positive finite quantity, a unit or a matching fact contribute nothing.
    """
    totals = {"calories": 0.0, "protein": 0.0, "carbs": 0.0, "fat": 0.0}

    for line in lines:
        ingredient, quantity = line.ingredient, line.quantity
        if ingredient is None or quantity is None or not math.isfinite(quantity) or quantity <= 0:
            continue

        grams = to_grams(quantity, line.unit, ingredient.density)
        if not math.isfinite(grams) or grams <= 0:
            logger.debug(
                "Ingredient line has no gram weight, skipping",
                extra={"ingredient_id": ingredient.id, "unit": getattr(line.unit, "value", None)},
            )
            continue

        if nutrient_facts is not None:
            facts = nutrient_facts.get(ingredient.id, ())
        else:
            facts = ingredient.nutrients

        for fact in facts:
            if fact.amount_per_100g is None or not math.isfinite(fact.amount_per_100g):
                continue
            bucket = _bucket_for(fact.nutrient)
            if bucket is None:
                continue
            contribution = round_half_up(fact.amount_per_100g * grams / 100)
            if math.isfinite(contribution):
                totals[bucket] += contribution

    return NutritionTotals(**totals).rounded()


def compute_recipe_calories(lines: Iterable[IngredientLine]) -> float:
    """Calories of one serving, as frozen onto a recipe when it is authored."""
    return aggregate_nutrition(lines).calories
