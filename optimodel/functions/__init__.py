"""
Typed mathematical functions.

- base.py: Function hierarchy and kind helpers
- numeric.py: NumericLinearFunction, NumericQuadraticFunction
- user.py: Functions wrapping user callables
- interval.py: Interval and its constructors
"""

from .base import (
    Capability,
    Function,
    DifferentiableFunction,
    TwiceDifferentiableFunction,
    QuadraticFunction,
    LinearFunction,
    FUNCTION_KINDS,
    kind_of,
    widens_to,
)
from .numeric import NumericLinearFunction, NumericQuadraticFunction
from .user import (
    CallableFunction,
    CallableDifferentiableFunction,
    CallableTwiceDifferentiableFunction,
    CallableQuadraticFunction,
    CallableLinearFunction,
    make_function,
)
from .interval import (
    Interval,
    as_interval,
    make_interval,
    make_lower_interval,
    make_upper_interval,
    make_infinite_interval,
)

__all__ = [
    # Hierarchy
    "Capability",
    "Function",
    "DifferentiableFunction",
    "TwiceDifferentiableFunction",
    "QuadraticFunction",
    "LinearFunction",
    "FUNCTION_KINDS",
    "kind_of",
    "widens_to",
    # Concrete functions
    "NumericLinearFunction",
    "NumericQuadraticFunction",
    "CallableFunction",
    "CallableDifferentiableFunction",
    "CallableTwiceDifferentiableFunction",
    "CallableQuadraticFunction",
    "CallableLinearFunction",
    "make_function",
    # Intervals
    "Interval",
    "as_interval",
    "make_interval",
    "make_lower_interval",
    "make_upper_interval",
    "make_infinite_interval",
]
