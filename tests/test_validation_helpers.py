"""Negative-path tests for input validation helpers."""

import math

import pytest

from cyclecast.utils.validation_helpers import (
    is_finite_number,
    is_valid_position,
    validate_enum,
    validate_positive_int,
    validate_range,
)


def test_validate_range_accepts_bounds():
    validate_range(0.0, "p", 0.0, 1.0)
    validate_range(1.0, "p", 0.0, 1.0)


def test_validate_range_rejects_outside():
    with pytest.raises(ValueError, match="p must be between 0.0 and 1.0"):
        validate_range(1.5, "p", 0.0, 1.0)


@pytest.mark.parametrize("value", [0, -3, 2.5, True, "4"])
def test_validate_positive_int_rejects(value):
    with pytest.raises(ValueError, match="n_trials must be an integer"):
        validate_positive_int(value, "n_trials")


def test_validate_enum():
    validate_enum("flat", "race_profile", ("flat", "hilly"))
    with pytest.raises(ValueError, match="race_profile must be one of"):
        validate_enum("gravel", "race_profile", ("flat", "hilly"))


@pytest.mark.parametrize(
    "value,expected",
    [(1, True), (1.5, True), (math.nan, False), (math.inf, False), (True, False), ("1", False)],
)
def test_is_finite_number(value, expected):
    assert is_finite_number(value) is expected


@pytest.mark.parametrize(
    "value,expected", [(1, True), (150, True), (0, False), (-1, False), (1.0, False), (True, False)]
)
def test_is_valid_position(value, expected):
    assert is_valid_position(value) is expected
