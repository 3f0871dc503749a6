"""Tests for unit conversion."""

import math

import pytest

from mealplan.units import (
    MASS_TO_GRAMS,
    Unit,
    optional_float,
    round_half_up,
    to_grams,
    to_grams_mass_only,
    to_ml,
)


class TestRoundHalfUp:
    def test_rounds_halves_up(self):
        assert round_half_up(2.675) == 2.68
        assert round_half_up(1.005) == 1.01
        assert round_half_up(0.125, 2) == 0.13

    def test_zero_places(self):
        assert round_half_up(2594.5, 0) == 2595.0
        assert round_half_up(2594.3125, 0) == 2594.0

    def test_large_values_keep_their_magnitude(self):
        assert round_half_up(1e27) == 1e27
        assert round_half_up(1.5e300, 0) == 1.5e300

    def test_non_finite_values_pass_through(self):
        assert round_half_up(math.inf) == math.inf
        assert math.isnan(round_half_up(math.nan))


class TestOptionalFloat:
    def test_parses_numbers_and_numeric_strings(self):
        assert optional_float(3, "quantity") == 3.0
        assert optional_float("2.5", "quantity") == 2.5
        assert optional_float(None, "quantity") is None

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan", math.inf])
    def test_rejects_non_finite(self, value):
        with pytest.raises(ValueError, match="quantity must be finite"):
            optional_float(value, "quantity")

    @pytest.mark.parametrize("value", ["lots", [1], {}])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError, match="quantity must be a number"):
            optional_float(value, "quantity")


class TestToGrams:
    def test_mass_conversions(self):
        """Test fixed factors for mass units."""
        assert to_grams(500, Unit.GRAM) == 500
        assert to_grams(1, Unit.KILOGRAM) == 1000
        assert to_grams(250, Unit.MILLIGRAM) == 0.25
        assert to_grams(1, Unit.OUNCE) == 28.35
        assert to_grams(1, Unit.POUND) == 453.59
        assert to_grams(2, Unit.EGG_PIECE) == 100

    @pytest.mark.parametrize("unit", [Unit.GRAM, Unit.KILOGRAM, Unit.EGG_PIECE])
    def test_mass_conversion_is_linear(self, unit):
        for quantity in (1, 2, 5, 12):
            assert to_grams(2 * quantity, unit) == pytest.approx(2 * to_grams(quantity, unit))

    def test_mass_units_ignore_density(self):
        assert to_grams(100, Unit.GRAM, density=0.5) == 100

    def test_volume_with_density(self):
        """Volume converts to ml first, then multiplies by density."""
        assert to_grams(1, Unit.LITER, density=1.0) == 1000.00
        assert to_grams(1, Unit.CUP, density=1.0) == 240.00
        assert to_grams(1, Unit.TABLESPOON, density=1.0) == 14.79
        assert to_grams(1, Unit.TEASPOON, density=1.0) == 4.93
        assert to_grams(2, Unit.DECILITER, density=0.92) == 184.0
        assert to_grams(1, Unit.GALLON, density=1.03) == 3898.97

    def test_volume_without_density_fails_closed(self):
        assert to_grams(1, Unit.MILLILITER, density=None) == 0.00
        assert to_grams(1, Unit.CUP) == 0.0

    def test_volume_with_non_positive_density(self):
        assert to_grams(1, Unit.LITER, density=0) == 0.0
        assert to_grams(1, Unit.LITER, density=-1.0) == 0.0

    def test_missing_quantity_or_unit(self):
        assert to_grams(None, Unit.GRAM) == 0.0
        assert to_grams(100, None) == 0.0

    def test_very_large_quantity(self):
        assert to_grams(1e27, Unit.GRAM) == 1e27

    def test_non_finite_quantity_or_density(self):
        assert to_grams(math.nan, Unit.GRAM) == 0.0
        assert to_grams(math.inf, Unit.KILOGRAM) == 0.0
        assert to_grams(1, Unit.LITER, density=math.nan) == 0.0
        assert to_ml(math.inf, Unit.CUP) == 0.0
        assert to_grams_mass_only(math.nan, Unit.GRAM) == 0.0


class TestMassOnlyAndMl:
    def test_mass_only_converts_mass(self):
        assert to_grams_mass_only(2, Unit.KILOGRAM) == 2000

    def test_mass_only_rejects_volume(self):
        assert to_grams_mass_only(1, Unit.LITER) == 0.0

    def test_to_ml(self):
        assert to_ml(1, Unit.CUP) == 240
        assert to_ml(3, Unit.CENTILITER) == 30
        assert to_ml(1, Unit.FLUID_OUNCE) == 29.57

    def test_to_ml_rejects_mass(self):
        assert to_ml(100, Unit.GRAM) == 0.0


class TestUnitParse:
    @pytest.mark.parametrize("text,expected", [
        ("g", Unit.GRAM),
        ("Grams", Unit.GRAM),
        ("tbsp", Unit.TABLESPOON),
        ("Tablespoons", Unit.TABLESPOON),
        ("fl oz", Unit.FLUID_OUNCE),
        ("egg_piece", Unit.EGG_PIECE),
        (" L ", Unit.LITER),
        ("lbs", Unit.POUND),
    ])
    def test_known_units(self, text, expected):
        assert Unit.parse(text) is expected

    def test_unknown_unit_raises(self):
        with pytest.raises(ValueError, match="Unknown unit"):
            Unit.parse("pinch")

    @pytest.mark.parametrize("value", [5, None, ["g"]])
    def test_non_string_raises_value_error(self, value):
        with pytest.raises(ValueError, match="Unit must be a string"):
            Unit.parse(value)

    def test_every_unit_is_mass_or_volume(self):
        for unit in Unit:
            assert unit.is_mass != unit.is_volume
        assert set(MASS_TO_GRAMS) == {u for u in Unit if u.is_mass}
