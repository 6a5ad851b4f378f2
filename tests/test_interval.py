"""
Tests for intervals and their constructors.
"""

import math

import pytest

from optimodel.errors import InvalidArgumentError
from optimodel.functions import (
    Interval,
    as_interval,
    make_infinite_interval,
    make_interval,
    make_lower_interval,
    make_upper_interval,
)


class TestConstructors:
    """Test the convenience constructors."""

    def test_make_interval(self):
        interval = make_interval(-1, 2)
        assert interval.lower == -1.0
        assert interval.upper == 2.0

    def test_make_lower_interval(self):
        interval = make_lower_interval(3.0)
        assert interval.lower == 3.0
        assert interval.upper == math.inf

    def test_make_upper_interval(self):
        interval = make_upper_interval(3.0)
        assert interval.lower == -math.inf
        assert interval.upper == 3.0

    def test_make_infinite_interval(self):
        assert make_infinite_interval() == Interval()
        assert not make_infinite_interval().has_lower
        assert not make_infinite_interval().has_upper

    def test_lower_greater_than_upper_rejected(self):
        with pytest.raises(InvalidArgumentError, match="lower"):
            make_interval(2.0, 1.0)

    def test_nan_rejected(self):
        with pytest.raises(InvalidArgumentError, match="NaN"):
            Interval(float("nan"), 1.0)


class TestMembership:
    """Test containment and equality intervals."""

    def test_contains_is_inclusive(self):
        interval = make_interval(0.0, 1.0)
        assert interval.contains(0.0)
        assert interval.contains(1.0)
        assert 0.5 in interval
        assert not interval.contains(1.0 + 1e-12)
        assert -1.0 not in interval

    def test_infinite_bounds_contain_everything(self):
        assert make_infinite_interval().contains(1e300)
        assert make_lower_interval(0.0).contains(math.inf)

    def test_equality_interval(self):
        assert make_interval(1.0, 1.0).is_equality
        assert not make_interval(0.0, 1.0).is_equality

    def test_unpacking(self):
        lower, upper = make_interval(-2.0, 5.0)
        assert (lower, upper) == (-2.0, 5.0)


class TestCoercion:
    """Test as_interval() and printing."""

    def test_pair_is_coerced(self):
        assert as_interval((0, 1)) == make_interval(0.0, 1.0)

    def test_interval_is_returned_as_is(self):
        interval = make_interval(0.0, 1.0)
        assert as_interval(interval) is interval

    def test_invalid_value_rejected(self):
        with pytest.raises(InvalidArgumentError):
            as_interval(3.0)

    def test_str(self):
        assert str(make_interval(0.0, 1.5)) == "[0, 1.5]"
        assert str(make_infinite_interval()) == "[-inf, inf]"

    def test_intervals_are_immutable(self):
        interval = make_interval(0.0, 1.0)
        with pytest.raises(AttributeError):
            interval.lower = -1.0
