"""Tests for UnitConverter and the compound unit parser."""

import math
from pathlib import Path

import pytest

from tabulous.units.converter import UnitConverter
from tabulous.units.definitions import DAY, HOUR, KM
from tabulous.utils.exceptions import UnitError


@pytest.fixture
def units() -> UnitConverter:
    """Converter with the built-in registry."""
    return UnitConverter()


def test_exact_multiplier(units: UnitConverter) -> None:
    """Test a registered symbol converts by its multiplier."""
    assert units.convert(1.5, "km") == 1500.0
    assert units.convert(1500.0, "km", to_internal=False) == 1.5


def test_empty_unit_is_passthrough(units: UnitConverter) -> None:
    """Test an empty unit leaves the value unchanged."""
    assert units.convert(3.25, "") == 3.25
    assert units.convert(3.25, "", to_internal=False) == 3.25


@pytest.mark.parametrize(
    ("unit", "value", "internal"),
    [
        ("degC", 0.0, 273.15),
        ("degC", 100.0, 373.15),
        ("degF", 32.0, 273.15),
        ("degF", 212.0, 373.15),
    ],
)
def test_nonlinear_units(
    units: UnitConverter, unit: str, value: float, internal: float
) -> None:
    """Test temperature scales convert in both directions."""
    assert units.convert(value, unit) == pytest.approx(internal)
    assert units.convert(internal, unit, to_internal=False) == pytest.approx(value)


def test_division_binds_parenthesized_product(units: UnitConverter) -> None:
    """Test that a/(b c^2) divides by the whole parenthesized product."""
    expected = KM**3 / (HOUR * DAY**2)
    assert units.convert(1.0, "km^3/(h d^2)") == pytest.approx(expected)
    assert units.convert(1.0, "km^3/(h d^2)") != pytest.approx(KM**3 / HOUR * DAY**2)


def test_operator_precedence() -> None:
    """Test '^' binds tighter than '/' and ' ', which associate to the left."""
    units = UnitConverter({"X": 2.0, "Y": 3.0, "Z": 5.0})
    assert units.get_multiplier("X^3/(Y Z^2)") == pytest.approx(8.0 / 75.0)
    assert units.get_multiplier("X Y/Z^2") == pytest.approx(6.0 / 25.0)
    assert units.get_multiplier("X/Y Z") == pytest.approx(2.0 / 3.0 * 5.0)
    assert units.get_multiplier("X/Y/Z") == pytest.approx(2.0 / 15.0)


def test_si_expression_from_table_units(units: UnitConverter) -> None:
    """Test the gravitational constant style unit m^3/(kg s^2) resolves."""
    assert units.convert(1.0, "m^3/(kg s^2)") == pytest.approx(1.0)


def test_negative_exponent(units: UnitConverter) -> None:
    """Test d^-1 is one per day."""
    assert units.convert(1.0, "d^-1") == pytest.approx(1.0 / DAY)


def test_parenthesized_fractional_exponent(units: UnitConverter) -> None:
    """Test an exponent may be a parenthesized fraction."""
    assert units.get_multiplier("km^(1/2)") == pytest.approx(math.sqrt(1000.0))


def test_numbers_and_spaces(units: UnitConverter) -> None:
    """Test numeric factors and spaces around operators."""
    assert units.convert(2.0, "1000 m") == pytest.approx(2000.0)
    assert units.convert(1.0, "km / s") == pytest.approx(1000.0)
    assert units.convert(1.0, "(km/s)") == pytest.approx(1000.0)


@pytest.mark.parametrize(
    "unit",
    [
        "(km", "km)", "km/", "/s", "km^", "parsecs", "km^s", "degC/s", "()",
        "inf", "nan", "infinity", "1_000", "km^inf", "km^(nan)",
    ],
)
def test_invalid_units_raise(units: UnitConverter, unit: str) -> None:
    """Test malformed or unknown units raise UnitError."""
    with pytest.raises(UnitError):
        units.convert(1.0, unit)


def test_probe_mode_returns_nan(units: UnitConverter) -> None:
    """Test assert_on_error=False returns NaN instead of raising."""
    assert math.isnan(units.convert(1.0, "parsecs", assert_on_error=False))
    assert math.isnan(units.convert(1.0, "(km", assert_on_error=False))


def test_allow_parse_false(units: UnitConverter) -> None:
    """Test compound expressions are rejected when parsing is not allowed."""
    assert units.convert(1.0, "km/h", allow_parse=False) == pytest.approx(1000.0 / 3600.0)
    assert math.isnan(
        units.convert(1.0, "km/h^2", allow_parse=False, assert_on_error=False)
    )
    with pytest.raises(UnitError, match="Unknown unit"):
        units.convert(1.0, "km/h^2", allow_parse=False)


def test_is_valid_unit(units: UnitConverter) -> None:
    """Test the unit validity check."""
    assert units.is_valid_unit("km/s^2")
    assert units.is_valid_unit("degC")
    assert units.is_valid_unit("")
    assert not units.is_valid_unit("parsecs")
    assert not units.is_valid_unit("inf")
    assert not units.is_valid_unit("m^1_0")
    assert not units.is_valid_unit("km/s^2", allow_parse=False)


def test_overrides_and_replace() -> None:
    """Test per-instance registries can extend or replace the built-ins."""
    assert UnitConverter({"km": 2.0}).convert(1.0, "km") == 2.0
    assert UnitConverter().convert(1.0, "km") == 1000.0
    replaced = UnitConverter({"u": 4.0}, replace=True)
    assert replaced.convert(1.0, "u") == 4.0
    assert not replaced.is_valid_unit("km")


def test_custom_lambda() -> None:
    """Test a caller supplied non-linear conversion."""
    units = UnitConverter(lambdas={"dB": lambda x, to_internal: x + 1 if to_internal else x - 1})
    assert units.convert(1.0, "dB") == 2.0
    assert units.convert(2.0, "dB", to_internal=False) == 1.0


def test_from_yaml(tmp_path: Path) -> None:
    """Test multiplier overrides read from a YAML file."""
    path = tmp_path / "units.yaml"
    path.write_text("furlong: 201.168\nleague: 3 km\n")
    units = UnitConverter.from_yaml(path)
    assert units.convert(1.0, "furlong") == pytest.approx(201.168)
    assert units.convert(1.0, "league") == pytest.approx(3000.0)
    assert units.convert(1.0, "km") == 1000.0


@pytest.mark.parametrize(
    "content",
    ["- a\n- b\n", "bad: [1, 2]\n", "bad: nosuchunit\n"],
)
def test_from_yaml_invalid(tmp_path: Path, content: str) -> None:
    """Test invalid override files raise UnitError."""
    path = tmp_path / "units.yaml"
    path.write_text(content)
    with pytest.raises(UnitError):
        UnitConverter.from_yaml(path)
