import math
from decimal import Decimal

import pytest

from receiptwiser.utils.money import (
    apply_percent,
    coerce_number,
    round2,
    safe_divide,
    sum_amounts,
    to_decimal,
)


def test_apply_percent():
    assert apply_percent(200, 10) == 20
    assert apply_percent(0, 50) == 0


@pytest.mark.parametrize("value, expected", [
    (0.944625, 0.94),
    (2.675, 2.68),
    (1.005, 1.01),
    (-1.005, -1.01),
    (8.8, 8.8),
    (3, 3.0),
])
def test_round2_rounds_half_away_from_zero(value, expected):
    assert round2(value) == expected


def test_round2_non_finite_falls_back_to_zero():
    assert round2(math.nan) == 0.0
    assert round2(math.inf) == 0.0


@pytest.mark.parametrize("value", [1e26, 1e30, -4.2e200, 1.7e308])
def test_round2_handles_huge_values(value):
    assert round2(value) == value
    assert to_decimal(value) == Decimal(repr(value))


def test_safe_divide_guards_zero_and_negative_denominators():
    assert safe_divide(10, 4) == 2.5
    assert safe_divide(10, 0) == 0.0
    assert safe_divide(10, 0, fallback=3.5) == 3.5
    assert safe_divide(10, -2, fallback=1.0) == 1.0


def test_sum_amounts_has_no_float_drift():
    assert sum_amounts([0.1, 0.2]) == 0.3
    assert sum_amounts([3.5, 7.95]) == 11.45
    assert sum_amounts([]) == 0.0


def test_to_decimal_quantizes_to_cents():
    assert to_decimal(0.944625) == Decimal("0.94")
    assert str(to_decimal(5)) == "5.00"


@pytest.mark.parametrize("value, default, expected", [
    (None, 1.0, 1.0),
    ("", 0.0, 0.0),
    ("abc", 1.0, 1.0),
    ("2", 1.0, 2.0),
    (" $1,234.50 ", 0.0, 1234.5),
    (0, 1.0, 1.0),
    ("0", 1.0, 1.0),
    (True, 1.0, 1.0),
    (float("nan"), 0.0, 0.0),
    ("NaN", 0.0, 0.0),
    ([3], 0.0, 0.0),
    (Decimal("4.20"), 0.0, 4.2),
    (2.5, 1.0, 2.5),
])
def test_coerce_number(value, default, expected):
    assert coerce_number(value, default) == expected
