"""
Solver state snapshots and typed parameters.

A SolverState is published by a solver bridge at each iteration. It carries the
current point, the optional cost and constraint violation, and a ParameterMap
of typed, described values. Solvers use the same ParameterMap type for their
configuration (e.g. "max-iterations", "tol").

Parameter values are drawn from a closed set of arms:
    bool, int, float, str, numpy.ndarray (1-D float vector)

Lookups are strict: a missing key raises ParameterNotFoundError and a value of
another arm raises ParameterTypeError. ``True`` is never an int and ``1`` is
never a float.

Usage:
    params = ParameterMap()
    params.set_parameter("tol", 1e-6, "Convergence tolerance")
    params.get_parameter("tol", float)   # 1e-06
    params.get_parameter("tol", str)     # ParameterTypeError
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Type
import time

import numpy as np
from pydantic import BaseModel, Field

from .errors import ParameterNotFoundError, ParameterTypeError
from .io import IndentingWriter, format_scalar, format_vector, render

PARAMETER_ARMS = (bool, int, float, str, np.ndarray)

# numpy spellings of the arms, accepted as expected_type
_ARM_ALIASES = {
    np.bool_: bool,
    np.int64: int,
    np.int32: int,
    np.float64: float,
    np.float32: float,
    np.str_: str,
}


def normalize_value(value) -> Any:
    """
    Normalize a parameter value onto one of the arms.

    numpy scalars become the matching Python scalar; sequences of numbers
    become a float vector.

    Raises:
        ParameterTypeError: If the value fits no arm
    """
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return float(value)
    if isinstance(value, (str, np.str_)):
        return str(value)
    if isinstance(value, (np.ndarray, list, tuple)):
        try:
            return np.array(value, dtype=float).reshape(-1)
        except (TypeError, ValueError) as e:
            raise ParameterTypeError(f"Cannot store {value!r} as a vector parameter") from e
    raise ParameterTypeError(
        f"Unsupported parameter type {type(value).__name__}; "
        f"expected one of bool, int, float, str, vector"
    )


def _arm_of(value) -> type:
    # bool before int: bool is a subclass of int
    for arm in PARAMETER_ARMS:
        if isinstance(value, arm):
            return arm
    raise ParameterTypeError(f"Value {value!r} fits no parameter arm")


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, np.ndarray):
        return format_vector(value)
    if isinstance(value, float):
        return format_scalar(value)
    if isinstance(value, int):
        return str(value)
    return repr(value)


@dataclass(eq=False)
class StateParameter:
    """
    Typed, described parameter value.

    Attributes:
        value: bool, int, float, str or 1-D float numpy array
        description: Human-readable description
    """
    value: Any
    description: str = ""

    def __post_init__(self):
        self.value = normalize_value(self.value)

    @property
    def arm(self) -> type:
        """The arm the value is stored as."""
        return _arm_of(self.value)

    def __str__(self) -> str:
        text = _format_value(self.value)
        if self.description:
            text += f" ({self.description})"
        return text


class ParameterMap(Mapping):
    """Mapping from string key to StateParameter with strict typed lookup."""

    def __init__(self, parameters: Optional[Dict[str, Any]] = None):
        self._parameters: Dict[str, StateParameter] = {}
        for key, value in (parameters or {}).items():
            if isinstance(value, StateParameter):
                self._parameters[key] = StateParameter(value.value, value.description)
            else:
                self.set_parameter(key, value)

    def __getitem__(self, key: str) -> StateParameter:
        try:
            return self._parameters[key]
        except KeyError:
            raise ParameterNotFoundError(f"Parameter '{key}' not found") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def set_parameter(self, key: str, value, description: str = "") -> StateParameter:
        """
        Store a value under ``key``, replacing any previous entry.

        Raises:
            ParameterTypeError: If the value fits no arm or the key is not a string
        """
        if not isinstance(key, str):
            raise ParameterTypeError(f"Parameter keys must be strings, got {type(key).__name__}")
        parameter = StateParameter(value, description)
        self._parameters[key] = parameter
        return parameter

    def get_parameter(self, key: str, expected_type: Optional[Type] = None):
        """
        Typed lookup.

        Args:
            key: Parameter key
            expected_type: One of bool, int, float, str, numpy.ndarray (or
                their numpy scalar spellings). None returns the value as stored.

        Returns:
            The stored value (vectors are returned as copies)

        Raises:
            ParameterNotFoundError: If the key is absent
            ParameterTypeError: If the stored value is of another arm
        """
        parameter = self[key]
        if expected_type is not None:
            expected = _ARM_ALIASES.get(expected_type, expected_type)
            if expected not in PARAMETER_ARMS:
                raise ParameterTypeError(f"{expected_type!r} is not a parameter type")
            if parameter.arm is not expected:
                raise ParameterTypeError(
                    f"Parameter '{key}' holds a {parameter.arm.__name__}, "
                    f"not a {expected.__name__}"
                )
        value = parameter.value
        if isinstance(value, np.ndarray):
            return value.copy()
        return value

    def remove(self, key: str) -> None:
        if key not in self._parameters:
            raise ParameterNotFoundError(f"Parameter '{key}' not found")
        del self._parameters[key]

    def copy(self) -> "ParameterMap":
        return ParameterMap(dict(self._parameters))

    def to_dict(self) -> Dict[str, Any]:
        """Plain values (vectors as lists) keyed by parameter name."""
        result = {}
        for key, parameter in self._parameters.items():
            value = parameter.value
            result[key] = value.tolist() if isinstance(value, np.ndarray) else value
        return result

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        writer.write("Parameters:")
        with writer.indented():
            for key, parameter in self._parameters.items():
                writer.line(f"{key}: {parameter}")
        return writer

    def __str__(self) -> str:
        return render(self)

    def __repr__(self) -> str:
        return f"ParameterMap({self.to_dict()!r})"


class SolverState:
    """
    Snapshot of a solver at one iteration.

    Attributes:
        x: Current point (length n)
        cost: Objective value at x, if known
        constraint_violation: Constraint violation at x, if known
        iteration: Iteration counter, monotonic within a solve
        parameters: Additional typed values published by the bridge
    """

    def __init__(self, problem=None, x=None, iteration: int = 0):
        if x is None:
            n = problem.input_size if problem is not None else 0
            x = np.zeros(n)
        self.x = np.array(x, dtype=float).reshape(-1)
        self.cost: Optional[float] = None
        self.constraint_violation: Optional[float] = None
        self.iteration = int(iteration)
        self.parameters = ParameterMap()

    def get_parameter(self, key: str, expected_type: Optional[Type] = None):
        return self.parameters.get_parameter(key, expected_type)

    def set_parameter(self, key: str, value, description: str = "") -> StateParameter:
        return self.parameters.set_parameter(key, value, description)

    def copy(self) -> "SolverState":
        state = SolverState(x=self.x.copy(), iteration=self.iteration)
        state.cost = self.cost
        state.constraint_violation = self.constraint_violation
        state.parameters = self.parameters.copy()
        return state

    def to_record(self) -> "StateRecord":
        """JSON-serializable snapshot of this state."""
        return StateRecord(
            iteration=self.iteration,
            x=self.x.tolist(),
            cost=self.cost,
            constraint_violation=self.constraint_violation,
            parameters=self.parameters.to_dict(),
        )

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        writer.write("Solver state:")
        with writer.indented():
            writer.line(f"Iteration: {self.iteration}")
            writer.line(f"x: {format_vector(self.x)}")
            if self.cost is not None:
                writer.line(f"Cost: {format_scalar(self.cost)}")
            if self.constraint_violation is not None:
                writer.line(f"Constraint violation: {format_scalar(self.constraint_violation)}")
            if self.parameters:
                writer.line()
                self.parameters.print_to(writer)
        return writer

    def __str__(self) -> str:
        return render(self)

    def __repr__(self) -> str:
        return (
            f"SolverState(iteration={self.iteration}, x={self.x.tolist()}, "
            f"cost={self.cost}, constraint_violation={self.constraint_violation})"
        )


class StateRecord(BaseModel):
    """
    Serializable solver state, one line of a state log.

    Example:
        >>> record = state.to_record()
        >>> record.model_dump_json()
    """

    iteration: int = Field(default=0, description="Iteration counter")
    timestamp: float = Field(default_factory=time.time, description="Unix timestamp")
    x: List[float] = Field(default_factory=list, description="Current point")
    cost: Optional[float] = Field(None, description="Objective value, if known")
    constraint_violation: Optional[float] = Field(None, description="Constraint violation, if known")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Published parameters")
