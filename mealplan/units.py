"""Convert ingredient quantities to grams."""

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import Any


def round_half_up(value: float, places: int = 2) -> float:
    """Round *value* to *places* decimals, halves away from zero.

    Works on the decimal string, so 2.675 becomes 2.68 where round()
    would give 2.67. Infinities and NaN come back unchanged.
    """
    if not math.isfinite(value):
        return value
    decimal_value = Decimal(str(value))
    with localcontext() as ctx:
        # Enough digits for every integer place plus the requested decimals
        ctx.prec = max(28, decimal_value.adjusted() + places + 2)
        return float(decimal_value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def optional_float(value: Any, field: str) -> float | None:
    """Parse an optional JSON number, rejecting infinities and NaN.

    Raises:
        ValueError: If *value* is not a finite number.
    """
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"{field} must be finite, got {value!r}")
    return number


class Unit(Enum):
    # Mass
    MILLIGRAM = "mg"
    GRAM = "g"
    KILOGRAM = "kg"
    OUNCE = "oz"
    POUND = "lb"
    EGG_PIECE = "egg_piece"

    # Volume (metric)
    MILLILITER = "ml"
    LITER = "l"
    DECILITER = "dl"
    CENTILITER = "cl"

    # Volume (US customary)
    TEASPOON = "tsp"
    TABLESPOON = "tbsp"
    CUP = "cup"
    FLUID_OUNCE = "floz"
    PINT = "pint"
    QUART = "quart"
    GALLON = "gallon"

    @property
    def is_volume(self) -> bool:
        return self in VOLUME_TO_ML

    @property
    def is_mass(self) -> bool:
        return self in MASS_TO_GRAMS

    @classmethod
    def parse(cls, text: str) -> "Unit":
        """Parse a unit string such as "tbsp", "Tablespoons" or "fl oz".

        Raises:
            ValueError: if the value is not a string naming a known unit.
        """
        if not isinstance(text, str):
            raise ValueError(f"Unit must be a string, got {text!r}")
        key = text.strip().lower()
        unit = _UNIT_ALIASES.get(key)
        if unit is None:
            raise ValueError(f"Unknown unit: {text!r}")
        return unit


MASS_TO_GRAMS: dict[Unit, float] = {
    Unit.MILLIGRAM: 0.001,
    Unit.GRAM: 1.0,
    Unit.KILOGRAM: 1000.0,
    Unit.OUNCE: 28.3495,
    Unit.POUND: 453.59237,
    Unit.EGG_PIECE: 50.0,  # average egg
}

VOLUME_TO_ML: dict[Unit, float] = {
    Unit.MILLILITER: 1.0,
    Unit.LITER: 1000.0,
    Unit.DECILITER: 100.0,
    Unit.CENTILITER: 10.0,
    Unit.TEASPOON: 4.92892,
    Unit.TABLESPOON: 14.7868,
    Unit.CUP: 240.0,  # US cup (approx)
    Unit.FLUID_OUNCE: 29.5735,
    Unit.PINT: 473.176,
    Unit.QUART: 946.353,
    Unit.GALLON: 3785.41,
}

_UNIT_ALIASES: dict[str, Unit] = {unit.value: unit for unit in Unit}
_UNIT_ALIASES.update({unit.name.lower(): unit for unit in Unit})
_UNIT_ALIASES.update({
    'milligram': Unit.MILLIGRAM,
    'milligrams': Unit.MILLIGRAM,
    'gram': Unit.GRAM,
    'grams': Unit.GRAM,
    'kilogram': Unit.KILOGRAM,
    'kilograms': Unit.KILOGRAM,
    'ounce': Unit.OUNCE,
    'ounces': Unit.OUNCE,
    'lbs': Unit.POUND,
    'pound': Unit.POUND,
    'pounds': Unit.POUND,
    'egg': Unit.EGG_PIECE,
    'eggs': Unit.EGG_PIECE,
    'egg piece': Unit.EGG_PIECE,
    'milliliter': Unit.MILLILITER,
    'milliliters': Unit.MILLILITER,
    'liter': Unit.LITER,
    'liters': Unit.LITER,
    'deciliter': Unit.DECILITER,
    'centiliter': Unit.CENTILITER,
    'teaspoon': Unit.TEASPOON,
    'teaspoons': Unit.TEASPOON,
    'tbs': Unit.TABLESPOON,
    'tablespoon': Unit.TABLESPOON,
    'tablespoons': Unit.TABLESPOON,
    'cups': Unit.CUP,
    'fl oz': Unit.FLUID_OUNCE,
    'fluid ounce': Unit.FLUID_OUNCE,
    'fluid ounces': Unit.FLUID_OUNCE,
    'pints': Unit.PINT,
    'quarts': Unit.QUART,
    'gallons': Unit.GALLON,
})


def to_grams(quantity: float | None, unit: Unit | None, density: float | None = None) -> float:
    """Convert a quantity to grams.

    Args:
        quantity: Amount of ingredient
        unit: Unit of measurement
        density: Grams per millilitre, required for volume units

    Returns:
        Weight in grams rounded to 2 decimals. Returns 0.0 when the
        quantity or unit is missing or the quantity is not finite, or when
        a volume unit has no usable density.
    """
    if quantity is None or unit is None or not math.isfinite(quantity):
        return 0.0

    if unit.is_volume:
        if density is None or not math.isfinite(density) or density <= 0:
            return 0.0
        return round_half_up(quantity * VOLUME_TO_ML[unit] * density)

    return round_half_up(quantity * MASS_TO_GRAMS[unit])


def to_grams_mass_only(quantity: float | None, unit: Unit | None) -> float:
    """Convert a mass quantity to grams without a density; volume units yield 0.0."""
    if quantity is None or unit is None or not unit.is_mass or not math.isfinite(quantity):
        return 0.0
    return round_half_up(quantity * MASS_TO_GRAMS[unit])


def to_ml(quantity: float | None, unit: Unit | None) -> float:
    """Convert a volume quantity to millilitres; mass units yield 0.0."""
    if quantity is None or unit is None or not unit.is_volume or not math.isfinite(quantity):
        return 0.0
    return round_half_up(quantity * VOLUME_TO_ML[unit])
