import logging
from datetime import date

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from mealplan import config
from mealplan.logging_config import configure_logging
from mealplan.nutrition import aggregate_nutrition
from mealplan.planner import MealPlanner, PlannedMeal, WeeklyPlan, week_start
from mealplan.recipes import (
    IngredientLine,
    MealType,
    NutrientFact,
    RecipeCandidate,
    RecordId,
    record_id,
    require_mapping,
)
from mealplan.targets import (
    MealPlanError,
    NutritionProfile,
    daily_target,
    recommended_goals,
)
from mealplan.units import optional_float

configure_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = Flask(__name__)
limiter = Limiter(
    get_remote_address,
    app=app,
    default_limits=[],          # no global limit; apply per-route only
    storage_uri=config.RATELIMIT_STORAGE_URI,
)

# The service layer in front of this app owns users, recipes and pantry
# data; every request carries the inputs it needs and nothing is stored.


def _error(message: str, status: int, code: str | None = None):
    body = {"error": message}
    if code:
        body["code"] = code
    return jsonify(body), status


def _json_body() -> dict | None:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _list_field(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return value


def _id_set(data: dict, key: str, what: str) -> set[RecordId]:
    return {record_id(value, what) for value in _list_field(data, key)}


def _nutrient_facts(data: dict) -> dict[RecordId, list[NutrientFact]] | None:
    """Group a flat `nutrient_facts` list by ingredient id.

    Each entry is `{"ingredient_id", "nutrient", "amount_per_100g"}`. Returns
    None when the key is absent or null so each ingredient's own facts are used.
    """
    if data.get("nutrient_facts") is None:
        return None

    facts: dict[RecordId, list[NutrientFact]] = {}
    for entry in _list_field(data, "nutrient_facts"):
        require_mapping(entry, "Nutrient fact")
        ingredient_id = record_id(entry.get("ingredient_id"), "Nutrient fact ingredient")
        facts.setdefault(ingredient_id, []).append(NutrientFact.from_dict(entry, ingredient_id))
    return facts


def _serialize_meal(meal: PlannedMeal | None):
    if meal is None:
        return None
    return {
        "recipe_id": meal.recipe.id,
        "name": meal.recipe.name,
        "calories": meal.recipe.calories,
        "score": meal.score,
        "nutrition": meal.nutrition.to_dict(),
    }


def _serialize_plan(plan: WeeklyPlan) -> dict:
    """Serialize a WeeklyPlan object to dict for JSON."""
    return {
        "week_start": plan.week_start.isoformat(),
        "daily_calorie_target": plan.daily_calorie_target,
        "meal_calorie_target": plan.meal_calorie_target,
        "days": [
            {
                "date": day.date.isoformat(),
                "meals": {
                    meal_type.value: _serialize_meal(meal)
                    for meal_type, meal in day.meals.items()
                },
                "nutrition": day.nutrition.to_dict(),
            }
            for day in plan.days
        ],
        "unfilled_slots": [
            {"date": slot_date.isoformat(), "meal_type": meal_type.value}
            for slot_date, meal_type in plan.unfilled_slots
        ],
        "totals": plan.total_nutrition.to_dict(),
        "daily_averages": plan.avg_daily_nutrition.to_dict(),
    }


@app.route("/api/daily-target", methods=["POST"])
def api_daily_target():
    """Daily calorie target, falling back to the default for partial profiles."""
    data = _json_body()
    if data is None:
        return _error("Invalid JSON", 400)

    try:
        profile = NutritionProfile.from_dict(data.get("profile") or {})
    except ValueError as e:
        return _error(str(e), 400)

    return jsonify({"daily_calories": daily_target(profile)})


@app.route("/api/goals", methods=["POST"])
def api_goals():
    """Recommended daily calories and macros for a complete profile."""
    data = _json_body()
    if data is None:
        return _error("Invalid JSON", 400)

    try:
        profile = NutritionProfile.from_dict(data.get("profile") or {})
        goal = recommended_goals(profile)
    except MealPlanError as e:
        return _error(str(e), 422, e.code)
    except ValueError as e:
        return _error(str(e), 400)

    return jsonify({
        "bmr": goal.bmr,
        "tdee": goal.daily_calories,
        "daily_calories": goal.daily_calories,
        "protein": goal.protein,
        "carbs": goal.carbs,
        "fat": goal.fat,
    })


@app.route("/api/plans", methods=["POST"])
@limiter.limit(config.PLAN_RATE_LIMIT)
def api_generate_plan():
    """Generate a weekly meal plan from the profile and catalog in the body."""
    data = _json_body()
    if data is None:
        return _error("Invalid JSON", 400)

    try:
        profile = NutritionProfile.from_dict(data.get("profile") or {})
        recipes = [RecipeCandidate.from_dict(r) for r in _list_field(data, "recipes")]
        meal_types = _list_field(data, "meal_types")
        planner = MealPlanner(
            meal_types=[MealType.parse(mt) for mt in meal_types] if meal_types else None,
        )
        raw_start = data.get("week_start")
        start = week_start(date.fromisoformat(raw_start) if raw_start else None)
        pantry_ids = _id_set(data, "pantry_ingredient_ids", "Pantry ingredient")
        favorite_ids = _id_set(data, "favorite_recipe_ids", "Favorite recipe")
        nutrient_facts = _nutrient_facts(data)
    except (TypeError, ValueError) as e:
        logger.info("Rejected plan request", extra={"reason": str(e)})
        return _error(str(e), 400)

    try:
        plan = planner.generate_weekly_plan(
            profile,
            recipes,
            pantry_ingredient_ids=pantry_ids,
            favorite_recipe_ids=favorite_ids,
            start_date=start,
            nutrient_facts=nutrient_facts,
        )
    except MealPlanError as e:
        logger.warning("Meal plan generation failed", extra={"code": e.code})
        return _error(str(e), 422, e.code)

    return jsonify(_serialize_plan(plan))


@app.route("/api/nutrition", methods=["POST"])
def api_nutrition():
    """Aggregate nutrition of ingredient lines, optionally times a serving count."""
    data = _json_body()
    if data is None:
        return _error("Invalid JSON", 400)

    try:
        lines = [IngredientLine.from_dict(line) for line in _list_field(data, "ingredients")]
        nutrient_facts = _nutrient_facts(data)
        servings = optional_float(data.get("servings"), "servings")
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)

    if servings is None:
        servings = 1.0
    elif servings <= 0:
        return _error("Servings must be greater than 0", 400)

    totals = aggregate_nutrition(lines, nutrient_facts).scaled(servings).rounded()
    return jsonify(totals.to_dict())
