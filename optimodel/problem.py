"""
Optimization problem container.

A Problem bundles:
- an objective function R^n -> R of a declared kind (objective_kind)
- constraints R^n -> R^k whose kinds are admitted by constraint_kinds
- bounds on the arguments and on each constraint output
- scales on the arguments and on each constraint output
- an optional starting point

The two kind parameters define a class of problems. A solver for linear
programs would require ``objective_kind=LinearFunction`` and
``constraint_kinds=(LinearFunction,)``; a generic NLP solver would accept
``DifferentiableFunction`` for both. Problem.from_problem() converts a problem
to weaker kinds (a linear problem can be solved as a nonlinear one) but never
to stronger kinds.

Example:
    problem = Problem(objective, constraint_kinds=(LinearFunction, DifferentiableFunction))
    problem.argument_bounds[0] = make_interval(0.0, 1.0)
    problem.add_constraint(g, [make_lower_interval(25.0)])
    problem.set_starting_point([0.5, 0.5])
"""

from collections.abc import MutableSequence
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Type, Union
import logging
import math

import numpy as np

from .errors import (
    DimensionMismatchError,
    IncompatibleProblemError,
    InvalidArgumentError,
    OutOfBoundsError,
)
from .functions.base import Function, kind_of, widens_to
from .functions.interval import Interval, IntervalLike, as_interval, make_infinite_interval
from .io import IndentingWriter, format_sequence, format_vector, render

logger = logging.getLogger(__name__)

KindSpec = Union[Type[Function], Sequence[Type[Function]]]


def positive_scale(value: float) -> float:
    """Validate a scale: finite and strictly positive."""
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidArgumentError(f"Scales must be finite and positive, got {value}")
    return value


class FixedSizeList(MutableSequence):
    """
    List whose length never changes.

    Items may be replaced (each new item goes through ``validate``); any
    insertion or deletion raises DimensionMismatchError.
    """

    def __init__(self, items: Iterable, validate: Callable, label: str):
        self._validate = validate
        self._label = label
        self._items = [validate(item) for item in items]

    def __getitem__(self, index):
        if isinstance(index, slice):
            return list(self._items[index])
        return self._items[index]

    def __setitem__(self, index, value):
        if isinstance(index, slice):
            values = [self._validate(v) for v in value]
            if len(values) != len(range(*index.indices(len(self._items)))):
                raise DimensionMismatchError(f"Cannot resize {self._label}")
            self._items[index] = values
        else:
            self._items[index] = self._validate(value)

    def __delitem__(self, index):
        raise DimensionMismatchError(f"Cannot remove items from {self._label}")

    def insert(self, index, value):
        raise DimensionMismatchError(f"Cannot insert items into {self._label}")

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other) -> bool:
        if isinstance(other, FixedSizeList):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"FixedSizeList({self._items!r})"

    def __str__(self) -> str:
        return format_sequence(self._items)


@dataclass(frozen=True)
class Constraint:
    """
    Constraint entry of a problem.

    Attributes:
        function: Constraint function g: R^n -> R^k
        bounds: k intervals, one per output of g
        scales: k positive scales, one per output of g
        kind: Admitted kind this constraint is stored as
    """
    function: Function
    bounds: Tuple[Interval, ...]
    scales: Tuple[float, ...]
    kind: Type[Function]

    @property
    def output_size(self) -> int:
        return self.function.output_size


def normalize_kinds(kinds: KindSpec) -> Tuple[Type[Function], ...]:
    """Turn a single kind or a sequence of kinds into a non-empty tuple of kinds."""
    if isinstance(kinds, type):
        kinds = (kinds,)
    kinds = tuple(kinds)
    if not kinds:
        raise InvalidArgumentError("At least one constraint kind is required")
    for kind in kinds:
        _check_kind(kind)
    return kinds


def _check_kind(kind) -> None:
    if not (isinstance(kind, type) and issubclass(kind, Function)):
        raise InvalidArgumentError(f"{kind!r} is not a function kind")


def _kind_names(kinds: Sequence[Type[Function]]) -> str:
    return ", ".join(kind.__name__ for kind in kinds)


class Problem:
    """
    Optimization problem over objective kind F and constraint kinds C.

    Args:
        objective: Scalar objective function (output_size == 1)
        objective_kind: Kind F the objective is handled as (defaults to the
            strongest kind of ``objective``)
        constraint_kinds: Kind or tuple of kinds C admitted as constraints.
            A tuple such as ``(LinearFunction, DifferentiableFunction)`` lets
            constraints of different strengths coexist.

    Raises:
        IncompatibleProblemError: If the objective is not of objective_kind
        DimensionMismatchError: If the objective is not scalar
    """

    def __init__(
        self,
        objective: Function,
        objective_kind: Optional[Type[Function]] = None,
        constraint_kinds: KindSpec = (Function,),
    ):
        if not isinstance(objective, Function):
            raise IncompatibleProblemError(f"Objective must be a Function, got {type(objective).__name__}")
        if objective_kind is None:
            objective_kind = kind_of(objective)
        _check_kind(objective_kind)
        if not isinstance(objective, objective_kind):
            raise IncompatibleProblemError(
                f"Objective {objective.header()} is not a {objective_kind.__name__}"
            )
        if objective.output_size != 1:
            raise DimensionMismatchError(
                f"Objective must have output size 1, got {objective.output_size}"
            )

        self._function = objective
        self._objective_kind = objective_kind
        self._constraint_kinds = normalize_kinds(constraint_kinds)

        n = objective.input_size
        self._argument_bounds = FixedSizeList(
            [make_infinite_interval()] * n, as_interval, "argument bounds"
        )
        self._argument_scales = FixedSizeList([1.0] * n, positive_scale, "argument scales")
        self._starting_point: Optional[np.ndarray] = None
        self._constraints: List[Constraint] = []

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    @classmethod
    def from_problem(
        cls,
        other: "Problem",
        objective_kind: Type[Function],
        constraint_kinds: KindSpec = (Function,),
    ) -> "Problem":
        """
        Convert a problem to (possibly) weaker kinds.

        Allowed iff other's objective kind widens to ``objective_kind`` and
        each of other's constraint kinds widens to one of
        ``constraint_kinds``. Functions are shared, not copied.

        Raises:
            IncompatibleProblemError: If the conversion would strengthen a kind
        """
        _check_kind(objective_kind)
        constraint_kinds = normalize_kinds(constraint_kinds)

        if not widens_to(other.objective_kind, objective_kind):
            raise IncompatibleProblemError(
                f"Objective kind {other.objective_kind.__name__} cannot be used "
                f"as {objective_kind.__name__}"
            )
        for kind in other.constraint_kinds:
            if not any(widens_to(kind, target) for target in constraint_kinds):
                raise IncompatibleProblemError(
                    f"Constraint kind {kind.__name__} is not admitted by "
                    f"({_kind_names(constraint_kinds)})"
                )

        problem = cls(other.function, objective_kind, constraint_kinds)
        problem._argument_bounds[:] = other._argument_bounds
        problem._argument_scales[:] = other._argument_scales
        if other._starting_point is not None:
            problem._starting_point = other._starting_point.copy()
        for entry in other._constraints:
            problem._constraints.append(
                Constraint(
                    function=entry.function,
                    bounds=entry.bounds,
                    scales=entry.scales,
                    kind=problem._admitted_kind(entry.function),
                )
            )
        return problem

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def function(self) -> Function:
        """The objective function."""
        return self._function

    @property
    def objective_kind(self) -> Type[Function]:
        return self._objective_kind

    @property
    def constraint_kinds(self) -> Tuple[Type[Function], ...]:
        return self._constraint_kinds

    @property
    def input_size(self) -> int:
        return self._function.input_size

    @property
    def argument_bounds(self) -> FixedSizeList:
        """Mutable, fixed-size sequence of n argument intervals."""
        return self._argument_bounds

    @argument_bounds.setter
    def argument_bounds(self, bounds: Sequence[IntervalLike]):
        bounds = list(bounds)
        if len(bounds) != self.input_size:
            raise DimensionMismatchError(
                f"Expected {self.input_size} argument bounds, got {len(bounds)}"
            )
        self._argument_bounds[:] = bounds

    @property
    def argument_scales(self) -> FixedSizeList:
        """Mutable, fixed-size sequence of n positive argument scales."""
        return self._argument_scales

    @argument_scales.setter
    def argument_scales(self, scales: Sequence[float]):
        scales = list(scales)
        if len(scales) != self.input_size:
            raise DimensionMismatchError(
                f"Expected {self.input_size} argument scales, got {len(scales)}"
            )
        self._argument_scales[:] = scales

    @property
    def starting_point(self) -> Optional[np.ndarray]:
        if self._starting_point is None:
            return None
        return self._starting_point.copy()

    @starting_point.setter
    def starting_point(self, x):
        if x is None:
            self._starting_point = None
        else:
            self.set_starting_point(x)

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        """Constraints in insertion order."""
        return tuple(self._constraints)

    @property
    def constraint_functions(self) -> List[Function]:
        return [entry.function for entry in self._constraints]

    @property
    def bounds_vector(self) -> List[Tuple[Interval, ...]]:
        return [entry.bounds for entry in self._constraints]

    @property
    def scales_vector(self) -> List[Tuple[float, ...]]:
        return [entry.scales for entry in self._constraints]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_constraint(
        self,
        function: Function,
        bounds: Union[IntervalLike, Sequence[IntervalLike]],
        scales: Optional[Union[float, Sequence[float]]] = None,
    ) -> Constraint:
        """
        Append a constraint.

        Args:
            function: Constraint function with input_size == n
            bounds: One interval per output (a single interval is accepted
                for scalar constraints)
            scales: One positive scale per output (defaults to 1)

        Returns:
            The stored Constraint entry

        Raises:
            IncompatibleProblemError: If the function kind is not admitted
            DimensionMismatchError: If sizes are inconsistent or a scale is
                not positive
        """
        if not isinstance(function, Function):
            raise IncompatibleProblemError(
                f"Constraint must be a Function, got {type(function).__name__}"
            )
        kind = self._admitted_kind(function)
        if kind is None:
            raise IncompatibleProblemError(
                f"Constraint {function.header()} is not admitted by "
                f"({_kind_names(self._constraint_kinds)})"
            )
        if function.input_size != self.input_size:
            raise DimensionMismatchError(
                f"Constraint input size {function.input_size} does not match "
                f"problem input size {self.input_size}"
            )

        k = function.output_size
        if isinstance(bounds, Interval):
            bounds = [bounds]
        elif _is_pair(bounds) and k == 1:
            bounds = [bounds]
        bounds = [as_interval(b) for b in bounds]
        if len(bounds) != k:
            raise DimensionMismatchError(
                f"Constraint has {k} outputs but {len(bounds)} bounds were given"
            )

        if scales is None:
            scales = [1.0] * k
        elif np.isscalar(scales):
            scales = [scales]
        scales = list(scales)
        if len(scales) != len(bounds):
            raise DimensionMismatchError(
                f"Constraint has {len(bounds)} bounds but {len(scales)} scales were given"
            )
        scales = [float(s) for s in scales]
        for j, scale in enumerate(scales):
            if not math.isfinite(scale) or scale <= 0.0:
                raise DimensionMismatchError(
                    f"Constraint scale {j} must be finite and positive, got {scale}"
                )

        entry = Constraint(function=function, bounds=tuple(bounds), scales=tuple(scales), kind=kind)
        self._constraints.append(entry)
        logger.debug(f"Added constraint #{len(self._constraints) - 1}: {function.header()}")
        return entry

    def set_starting_point(self, x) -> None:
        """
        Set the starting point.

        Raises:
            DimensionMismatchError: If len(x) != n
            OutOfBoundsError: If some x_i lies outside argument_bounds[i]
        """
        x = np.array(x, dtype=float)
        if x.ndim != 1 or x.shape[0] != self.input_size:
            raise DimensionMismatchError(
                f"Starting point must have size {self.input_size}, got shape {x.shape}"
            )
        for i, (value, interval) in enumerate(zip(x, self._argument_bounds)):
            if not interval.contains(value):
                raise OutOfBoundsError(
                    f"Starting point component {i} = {value} is outside {interval}"
                )
        self._starting_point = x

    def _admitted_kind(self, function: Function) -> Optional[Type[Function]]:
        for kind in self._constraint_kinds:
            if isinstance(function, kind):
                return kind
        return None

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        writer.write("Problem:")
        with writer.indented():
            writer.line()
            self._function.print_to(writer)
            writer.line(f"Argument bounds: {format_sequence(self._argument_bounds)}")
            writer.line(f"Argument scales: {format_sequence(self._argument_scales)}")

            if self._constraints:
                writer.line(f"Number of constraints: {len(self._constraints)}")
            for i, entry in enumerate(self._constraints):
                writer.line(f"Constraint {i}")
                with writer.indented():
                    writer.line()
                    entry.function.print_to(writer)
                    writer.line(f"Bounds: {format_sequence(entry.bounds)}")
                    writer.line(f"Scales: {format_sequence(entry.scales)}")
                    if self._starting_point is not None:
                        value = entry.function(self._starting_point)
                        writer.line(f"Initial value: {format_vector(value)}")

            if self._starting_point is not None:
                writer.line(f"Starting point: {format_vector(self._starting_point)}")
                value = self._function(self._starting_point)
                writer.line(f"Starting value: {format_vector(value)}")
            else:
                writer.line("No starting point.")
        return writer

    def __str__(self) -> str:
        return render(self)

    def __repr__(self) -> str:
        return (
            f"Problem(objective={self._function!r}, "
            f"objective_kind={self._objective_kind.__name__}, "
            f"constraint_kinds=({_kind_names(self._constraint_kinds)}), "
            f"n_constraints={len(self._constraints)})"
        )


def _is_pair(value) -> bool:
    """A two-number (lower, upper) pair rather than a sequence of intervals."""
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return all(isinstance(v, (int, float, np.integer, np.floating)) for v in value)
    return False
