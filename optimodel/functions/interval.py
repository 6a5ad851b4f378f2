"""
Closed real intervals used for argument and constraint bounds.

An interval ``[lower, upper]`` may have infinite endpoints. Bounds are
inclusive: ``Interval(1, 1)`` encodes an equality.
"""

from dataclasses import dataclass
from typing import Tuple, Union
import math

from ..errors import InvalidArgumentError
from ..io import format_scalar

INFINITY = math.inf


@dataclass(frozen=True)
class Interval:
    """
    Closed interval ``[lower, upper]`` with ``lower <= upper``.

    Attributes:
        lower: Lower endpoint (may be -inf)
        upper: Upper endpoint (may be +inf)
    """
    lower: float = -INFINITY
    upper: float = INFINITY

    def __post_init__(self):
        lower = float(self.lower)
        upper = float(self.upper)
        if math.isnan(lower) or math.isnan(upper):
            raise InvalidArgumentError("Interval endpoints must not be NaN")
        if lower > upper:
            raise InvalidArgumentError(
                f"Invalid interval: lower ({lower}) > upper ({upper})"
            )
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    def contains(self, value: float) -> bool:
        """Whether ``value`` lies in the interval (endpoints inclusive)."""
        return self.lower <= value <= self.upper

    __contains__ = contains

    @property
    def is_equality(self) -> bool:
        return self.lower == self.upper

    @property
    def has_lower(self) -> bool:
        return math.isfinite(self.lower)

    @property
    def has_upper(self) -> bool:
        return math.isfinite(self.upper)

    def __iter__(self):
        yield self.lower
        yield self.upper

    def __str__(self) -> str:
        return f"[{format_scalar(self.lower)}, {format_scalar(self.upper)}]"


IntervalLike = Union[Interval, Tuple[float, float]]


def as_interval(value: IntervalLike) -> Interval:
    """Coerce an Interval or a ``(lower, upper)`` pair to an Interval."""
    if isinstance(value, Interval):
        return value
    try:
        lower, upper = value
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"Cannot interpret {value!r} as an interval") from e
    return Interval(lower, upper)


def make_interval(lower: float, upper: float) -> Interval:
    return Interval(lower, upper)


def make_lower_interval(lower: float) -> Interval:
    """``[lower, +inf]``"""
    return Interval(lower, INFINITY)


def make_upper_interval(upper: float) -> Interval:
    """``[-inf, upper]``"""
    return Interval(-INFINITY, upper)


def make_infinite_interval() -> Interval:
    return Interval(-INFINITY, INFINITY)
