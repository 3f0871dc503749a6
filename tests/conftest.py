"""Pytest configuration and fixtures."""

import pytest

from mealplan.recipes import Ingredient, IngredientLine, MealType, NutrientFact, RecipeCandidate
from mealplan.targets import ActivityLevel, NutritionProfile, Sex
from mealplan.units import Unit


class FixedRandom:
    """Stand-in for random.Random that always returns the same value.

    0.5 makes the planner's jitter exactly zero.
    """

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value


def create_test_ingredient(
    ingredient_id: int | str,
    name: str | None = None,
    density: float | None = None,
    calories: float | None = None,
    protein: float | None = None,
    carbs: float | None = None,
    fat: float | None = None,
) -> Ingredient:
    """Helper to create an Ingredient with per-100g nutrient facts."""
    nutrients = []
    for nutrient, amount in (
        ("Calories", calories),
        ("Protein", protein),
        ("Carbohydrate", carbs),
        ("Fat", fat),
    ):
        if amount is not None:
            nutrients.append(NutrientFact(ingredient_id, nutrient, amount))
    return Ingredient(
        id=ingredient_id,
        name=name or f"ingredient-{ingredient_id}",
        density=density,
        nutrients=tuple(nutrients),
    )


def create_test_recipe(
    recipe_id: int | str,
    meal_type: MealType = MealType.DINNER,
    name: str | None = None,
    calories: float | None = 500,
    ingredients: list | None = None,
) -> RecipeCandidate:
    """Helper to create a RecipeCandidate.

    *ingredients* may hold IngredientLine objects or (ingredient, grams)
    tuples for the common case of mass quantities in grams.
    """
    lines = []
    for item in ingredients or []:
        if isinstance(item, IngredientLine):
            lines.append(item)
        else:
            ingredient, grams = item
            lines.append(IngredientLine(ingredient, grams, Unit.GRAM))
    return RecipeCandidate(
        id=recipe_id,
        name=name or f"Recipe {recipe_id}",
        meal_type=meal_type,
        calories=calories,
        ingredients=tuple(lines),
    )


@pytest.fixture
def profile():
    return NutritionProfile(
        weight=70,
        height=175,
        age=25,
        sex=Sex.MALE,
        activity_level=ActivityLevel.MODERATE,
    )


@pytest.fixture
def fixed_rng():
    return FixedRandom()
