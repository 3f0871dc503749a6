"""Score how well a recipe fits a calorie target and the user's context."""

from collections.abc import Collection
from decimal import ROUND_HALF_UP, Decimal

from mealplan.recipes import RecipeCandidate, RecordId

# Scoring weights
CALORIE_WEIGHT = 0.5   # calorie fit
PANTRY_WEIGHT = 0.3    # pantry match
FAVORITE_WEIGHT = 0.2  # favorite status

NEUTRAL_CALORIE_SCORE = 0.5


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def calorie_fit_score(recipe_calories: float | None, target_calories: float | None) -> float:
    """Closer to target scores higher, decaying linearly.

    A recipe at zero or double the target scores 0. Missing data, or a zero
    target, gives the neutral score.
    """
    if recipe_calories is None or target_calories is None or target_calories == 0:
        return NEUTRAL_CALORIE_SCORE

    diff = Decimal(str(abs(recipe_calories - target_calories)))
    ratio = diff / Decimal(str(target_calories))
    if ratio >= 1:
        return 0.0
    if ratio <= 0:
        return 1.0
    ratio = ratio.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
    return _clamp(1.0 - float(ratio))


def pantry_match_score(recipe: RecipeCandidate, pantry_ingredient_ids: Collection[RecordId]) -> float:
    """Share of the recipe's distinct ingredients already in the pantry."""
    ingredient_ids = recipe.ingredient_ids
    if not ingredient_ids:
        return 0.0
    matched = sum(1 for ingredient_id in ingredient_ids if ingredient_id in pantry_ingredient_ids)
    return matched / len(ingredient_ids)


def score_recipe(
    recipe: RecipeCandidate,
    target_calories: float | None,
    pantry_ingredient_ids: Collection[RecordId],
    favorite_recipe_ids: Collection[RecordId],
) -> float:
    """Weighted fitness of a recipe in [0, 1].

    Args:
        recipe: The recipe to score
        target_calories: Calorie target for the meal slot
        pantry_ingredient_ids: Ingredient ids in the user's pantry
        favorite_recipe_ids: Recipe ids the user marked as favorite

    Returns:
        0.5 * calorie fit + 0.3 * pantry match + 0.2 * favorite, clamped.
    """
    calorie_score = calorie_fit_score(recipe.calories, target_calories)
    pantry_score = pantry_match_score(recipe, pantry_ingredient_ids)
    favorite_score = 1.0 if recipe.id in favorite_recipe_ids else 0.0

    total = (
        CALORIE_WEIGHT * calorie_score
        + PANTRY_WEIGHT * pantry_score
        + FAVORITE_WEIGHT * favorite_score
    )
    return _clamp(total)
