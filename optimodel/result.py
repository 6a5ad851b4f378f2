"""
Outcome types of a solve.

The outcome of ``Solver.minimum()`` is exactly one of:
- Result: success, final point, objective and constraint values, multipliers
- ResultWithWarnings: a Result plus non-fatal warning messages
- SolverError: failure with a message and optionally the last known Result

NoSolution is the "not solved yet" sentinel held by an unsolved solver and
never returned by ``minimum()``.

SolverError derives from Exception so callers may raise it themselves, but
solvers always return it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from warnings import warn

import numpy as np

from .errors import OptimodelError
from .io import IndentingWriter, format_scalar, format_vector, render


class SolverWarning(UserWarning):
    """Category used when a ResultWithWarnings re-emits its warnings."""


class NoSolution:
    """Sentinel for a solver that has not been solved."""

    _instance: Optional["NoSolution"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        return writer.write("No solution.")

    def __str__(self) -> str:
        return render(self)

    def __repr__(self) -> str:
        return "NO_SOLUTION"


NO_SOLUTION = NoSolution()


@dataclass(eq=False)
class Result:
    """
    Successful optimization outcome.

    Attributes:
        x: Final point (length n)
        value: Objective value at x
        constraints: Concatenated constraint values at x, in insertion order
        multipliers: Lagrange multipliers, when the back-end produces them
        iterations: Number of iterations reported by the back-end
        raw_result: Raw object returned by the back-end (for advanced use)
    """

    x: np.ndarray
    value: float
    constraints: np.ndarray = field(default_factory=lambda: np.zeros(0))
    multipliers: Optional[np.ndarray] = None
    iterations: int = 0
    raw_result: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        self.x = np.array(self.x, dtype=float).reshape(-1)
        self.value = float(self.value)
        self.constraints = np.array(self.constraints, dtype=float).reshape(-1)
        if self.multipliers is not None:
            self.multipliers = np.array(self.multipliers, dtype=float).reshape(-1)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "x": self.x.tolist(),
            "value": self.value,
            "constraints": self.constraints.tolist(),
            "multipliers": None if self.multipliers is None else self.multipliers.tolist(),
            "iterations": self.iterations,
        }

    def _print_fields(self, writer: IndentingWriter) -> None:
        writer.line(f"x: {format_vector(self.x)}")
        writer.line(f"Value: {format_scalar(self.value)}")
        if self.constraints.size:
            writer.line(f"Constraints values: {format_vector(self.constraints)}")
        if self.multipliers is not None:
            writer.line(f"Lagrange multipliers: {format_vector(self.multipliers)}")

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        writer.write("Result:")
        with writer.indented():
            self._print_fields(writer)
        return writer

    def __str__(self) -> str:
        return render(self)


@dataclass(eq=False)
class ResultWithWarnings(Result):
    """Successful outcome that carries non-fatal warnings."""

    warnings: List[str] = field(default_factory=list)

    def emit(self, stacklevel: int = 2) -> None:
        """Re-emit each message through ``warnings.warn`` as a SolverWarning."""
        for message in self.warnings:
            warn(message, SolverWarning, stacklevel=stacklevel)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["warnings"] = list(self.warnings)
        return result

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        writer.write("Result with warnings:")
        with writer.indented():
            self._print_fields(writer)
            writer.line("Warnings:")
            with writer.indented():
                for message in self.warnings:
                    writer.line(f"- {message}")
        return writer


class SolverError(OptimodelError):
    """
    Failed optimization outcome.

    Attributes:
        message: Human-readable failure reason
        last_state: Best known Result at the time of failure, if any
    """

    def __init__(self, message: str, last_state: Optional[Result] = None):
        super().__init__(message)
        self.message = message
        self.last_state = last_state

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "last_state": None if self.last_state is None else self.last_state.to_dict(),
        }

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        writer.write(f"Solver error: {self.message}")
        if self.last_state is not None:
            with writer.indented():
                writer.line("Last state:")
                with writer.indented():
                    writer.line()
                    self.last_state.print_to(writer)
        return writer

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"SolverError({self.message!r}, last_state={self.last_state!r})"


Outcome = Union[Result, ResultWithWarnings, SolverError]


def is_success(outcome) -> bool:
    """Whether an outcome is a Result (with or without warnings)."""
    return isinstance(outcome, Result)


def is_outcome(value) -> bool:
    """Whether ``value`` is one of the outcomes a solve may produce."""
    return isinstance(value, (Result, SolverError))
