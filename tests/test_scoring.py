"""Tests for recipe scoring."""

import pytest

from mealplan.scoring import (
    NEUTRAL_CALORIE_SCORE,
    calorie_fit_score,
    pantry_match_score,
    score_recipe,
)
from tests.conftest import create_test_ingredient, create_test_recipe


class TestCalorieFitScore:
    def test_exact_match_scores_one(self):
        assert calorie_fit_score(600, 600) == 1.0

    def test_linear_decay(self):
        assert calorie_fit_score(450, 600) == pytest.approx(0.75)
        assert calorie_fit_score(750, 600) == pytest.approx(0.75)
        assert calorie_fit_score(300, 600) == pytest.approx(0.5)

    def test_zero_or_double_target_scores_zero(self):
        assert calorie_fit_score(0, 600) == 0.0
        assert calorie_fit_score(1200, 600) == 0.0
        assert calorie_fit_score(5000, 600) == 0.0

    def test_closer_scores_higher(self):
        target = 648.5
        scores = [calorie_fit_score(c, target) for c in (648.5, 600, 500, 300, 100)]
        assert scores == sorted(scores, reverse=True)

    def test_ratio_is_rounded_to_four_places(self):
        # 1/3 -> 0.3333
        assert calorie_fit_score(400, 300) == pytest.approx(0.6667)

    def test_far_off_calories_do_not_raise(self):
        assert calorie_fit_score(1e300, 648.5) == 0.0
        assert calorie_fit_score(1e27, 2594) == 0.0

    def test_missing_data_is_neutral(self):
        assert calorie_fit_score(None, 600) == NEUTRAL_CALORIE_SCORE
        assert calorie_fit_score(500, None) == NEUTRAL_CALORIE_SCORE
        assert calorie_fit_score(500, 0) == NEUTRAL_CALORIE_SCORE


class TestPantryMatchScore:
    def test_share_of_distinct_ingredients(self):
        egg = create_test_ingredient(1, "egg")
        flour = create_test_ingredient(2, "flour")
        milk = create_test_ingredient(3, "milk")
        recipe = create_test_recipe(
            10,
            ingredients=[(egg, 50), (egg, 50), (flour, 100), (milk, 200)],
        )
        assert pantry_match_score(recipe, {1}) == pytest.approx(1 / 3)
        assert pantry_match_score(recipe, {1, 2, 3, 99}) == 1.0

    def test_no_ingredients(self):
        assert pantry_match_score(create_test_recipe(1), {1, 2}) == 0.0

    def test_empty_pantry(self):
        egg = create_test_ingredient(1, "egg")
        assert pantry_match_score(create_test_recipe(1, ingredients=[(egg, 50)]), set()) == 0.0


class TestScoreRecipe:
    def test_calorie_fit_only(self):
        recipe = create_test_recipe(1, calories=600)
        assert score_recipe(recipe, 600, set(), set()) == pytest.approx(0.5)

    def test_perfect_recipe_scores_exactly_one(self):
        egg = create_test_ingredient(1, "egg")
        recipe = create_test_recipe(1, calories=600, ingredients=[(egg, 100)])
        assert score_recipe(recipe, 600, {1}, {1}) == 1.0

    def test_favorite_bonus(self):
        recipe = create_test_recipe(7, calories=600)
        plain = score_recipe(recipe, 600, set(), set())
        favorite = score_recipe(recipe, 600, set(), {7})
        assert favorite - plain == pytest.approx(0.2)

    def test_pantry_weight(self):
        egg = create_test_ingredient(1, "egg")
        flour = create_test_ingredient(2, "flour")
        recipe = create_test_recipe(1, calories=600, ingredients=[(egg, 50), (flour, 100)])
        assert score_recipe(recipe, 600, {2}, set()) == pytest.approx(0.5 + 0.3 * 0.5)

    def test_unknown_calories_is_neutral(self):
        recipe = create_test_recipe(1, calories=None)
        assert score_recipe(recipe, 600, set(), set()) == pytest.approx(0.25)

    @pytest.mark.parametrize("calories", [0, 100, 400, 648.5, 900, 2000])
    def test_score_is_bounded(self, calories):
        recipe = create_test_recipe("r", calories=calories)
        score = score_recipe(recipe, 648.5, set(), {"r"})
        assert 0.0 <= score <= 1.0
