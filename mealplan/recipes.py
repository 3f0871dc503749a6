from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mealplan.units import Unit, optional_float

# Recipe and ingredient ids come straight from the caller's catalog, which
# may key them by integer primary key or by slug.
RecordId = int | str


def require_mapping(data: Any, what: str) -> dict[str, Any]:
    """Return *data* if it is a JSON object, else raise ValueError naming *what*."""
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")
    return data


def record_id(value: Any, what: str) -> RecordId:
    """Validate a catalog id from JSON; booleans are not accepted as integers."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"{what} id must be an integer or string, got {value!r}")
    return value


class MealType(Enum):
    # Declaration order is the order slots are filled within a day.
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @classmethod
    def parse(cls, text: str) -> "MealType":
        if not isinstance(text, str):
            raise ValueError(f"Meal type must be a string, got {text!r}")
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown meal type: {text!r}") from None


@dataclass(frozen=True)
class NutrientFact:
    """Amount of one nutrient per 100g of an ingredient."""
    ingredient_id: RecordId
    nutrient: str
    amount_per_100g: float | None

    @classmethod
    def from_dict(cls, data: dict[str, Any], ingredient_id: RecordId) -> "NutrientFact":
        require_mapping(data, "Nutrient fact")
        if "nutrient" not in data:
            raise ValueError("Nutrient fact is missing 'nutrient'")
        if not isinstance(data["nutrient"], str):
            raise ValueError(f"Nutrient name must be a string, got {data['nutrient']!r}")
        return cls(
            ingredient_id=ingredient_id,
            nutrient=data["nutrient"],
            amount_per_100g=optional_float(data.get("amount_per_100g"), "amount_per_100g"),
        )


@dataclass(frozen=True)
class Ingredient:
    id: RecordId
    name: str
    density: float | None = None  # grams per ml, needed for volume units
    nutrients: tuple[NutrientFact, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Ingredient":
        require_mapping(data, "Ingredient")
        missing = [f for f in ("id", "name") if f not in data]
        if missing:
            raise ValueError(f"Missing required ingredient fields: {', '.join(missing)}")

        nutrients = data.get("nutrients", [])
        if not isinstance(nutrients, list):
            raise ValueError("Ingredient nutrients must be a list")
        return cls(
            id=record_id(data["id"], "Ingredient"),
            name=data["name"],
            density=optional_float(data.get("density"), "density"),
            nutrients=tuple(
                NutrientFact.from_dict(n, data["id"]) for n in nutrients
            ),
        )


@dataclass(frozen=True)
class IngredientLine:
    """One line of a recipe: how much of which ingredient.

    Any of the three fields may be missing; such a line simply contributes
    nothing to the recipe's nutrition.
    """
    ingredient: Ingredient | None
    quantity: float | None
    unit: Unit | None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IngredientLine":
        require_mapping(data, "Ingredient line")
        ingredient = data.get("ingredient")
        unit = data.get("unit")
        return cls(
            ingredient=Ingredient.from_dict(ingredient) if ingredient else None,
            quantity=optional_float(data.get("quantity"), "quantity"),
            unit=Unit.parse(unit) if unit else None,
        )


@dataclass(frozen=True)
class RecipeCandidate:
    id: RecordId
    name: str
    meal_type: MealType
    # Calories per serving frozen when the recipe was authored. Used for
    # scoring only; reported nutrition is always recomputed from the lines.
    calories: float | None = None
    ingredients: tuple[IngredientLine, ...] = field(default_factory=tuple)

    @property
    def ingredient_ids(self) -> set[RecordId]:
        return {line.ingredient.id for line in self.ingredients if line.ingredient is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecipeCandidate":
        """Create a RecipeCandidate from a JSON-style dictionary.

        Raises:
            ValueError: If the data is not an object, required fields are
                missing, a number is not finite, or the meal type or a unit
                is not recognised.
        """
        require_mapping(data, "Recipe")
        missing = [f for f in ("id", "name", "meal_type") if f not in data]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        lines = data.get("ingredients", [])
        if not isinstance(lines, list):
            raise ValueError("Recipe ingredients must be a list")
        return cls(
            id=record_id(data["id"], "Recipe"),
            name=data["name"],
            meal_type=MealType.parse(data["meal_type"]),
            calories=optional_float(data.get("calories"), "calories"),
            ingredients=tuple(IngredientLine.from_dict(line) for line in lines),
        )
