"""
Solver interfaces.

GenericSolver holds the lazily computed outcome of a solve:

    Unsolved --minimum()--> Solved --reset()--> Unsolved

``minimum()`` runs ``solve()`` at most once per Unsolved period and returns
the cached outcome afterwards. ``solve()`` must leave exactly one of Result,
ResultWithWarnings or SolverError in the result slot (or return it).

Solver binds a GenericSolver to a Problem of the kinds the bridge declares:

    class MySolver(Solver):
        objective_kind = DifferentiableFunction
        constraint_kinds = (LinearFunction, DifferentiableFunction)

        def solve(self):
            ...
            return Result(x, value)

Constructing a Solver converts the given problem with Problem.from_problem(),
so a problem of stronger kinds is accepted and a weaker one raises
IncompatibleProblemError.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple, Type, Union
import logging

import numpy as np

from ..callbacks.base import CallbackManager, IterationCallback
from ..errors import SolverProtocolError
from ..functions.base import Function
from ..io import IndentingWriter, render
from ..problem import Problem
from ..result import NO_SOLUTION, NoSolution, Outcome, Result, SolverError, is_outcome
from ..state import ParameterMap, SolverState

logger = logging.getLogger(__name__)


class GenericSolver(ABC):
    """
    Lazily solved optimization outcome.

    Subclasses implement ``solve()``; users call ``minimum()``.
    """

    def __init__(self):
        self._result: Union[NoSolution, Outcome] = NO_SOLUTION

    @property
    def solved(self) -> bool:
        return not isinstance(self._result, NoSolution)

    @property
    def result(self) -> Union[NoSolution, Outcome]:
        """Raw result slot: NO_SOLUTION until solved."""
        return self._result

    @result.setter
    def result(self, outcome: Outcome):
        if not is_outcome(outcome):
            raise SolverProtocolError(
                f"{type(self).__name__} stored {outcome!r}; expected Result, "
                f"ResultWithWarnings or SolverError"
            )
        self._result = outcome

    @abstractmethod
    def solve(self) -> Optional[Outcome]:
        """
        Run the back-end and produce the outcome.

        Implementations either assign ``self.result`` or return the outcome.
        Numerical failures must be reported as SolverError, not raised.
        """
        pass

    def minimum(self) -> Outcome:
        """
        Solve if needed and return the cached outcome.

        Raises:
            SolverProtocolError: If solve() produced no outcome
        """
        if not self.solved:
            logger.info(f"Solving with {type(self).__name__}")
            outcome = self.solve()
            if not self.solved:
                if outcome is None:
                    raise SolverProtocolError(
                        f"{type(self).__name__}.solve() left no outcome"
                    )
                self.result = outcome
            self._log_outcome()
        return self._result

    def reset(self) -> None:
        """Discard the cached outcome."""
        self._result = NO_SOLUTION

    def _log_outcome(self) -> None:
        outcome = self._result
        if isinstance(outcome, SolverError):
            logger.error(f"{type(self).__name__} failed: {outcome.message}")
        elif getattr(outcome, "warnings", None):
            logger.warning(
                f"{type(self).__name__} finished with {len(outcome.warnings)} warning(s): "
                f"{'; '.join(outcome.warnings)}"
            )
        else:
            logger.info(f"{type(self).__name__} finished: value={outcome.value:g}")


class Solver(GenericSolver):
    """
    Solver bound to a problem of declared kinds.

    Class attributes:
        objective_kind: Weakest objective kind the bridge accepts
        constraint_kinds: Constraint kinds the bridge accepts
    """

    objective_kind: Type[Function] = Function
    constraint_kinds: Tuple[Type[Function], ...] = (Function,)

    def __init__(self, problem: Problem):
        super().__init__()
        self._problem = Problem.from_problem(problem, self.objective_kind, self.constraint_kinds)
        self._parameters = ParameterMap()
        self._callbacks = CallbackManager()
        self.initialize_parameters()
        logger.debug(
            f"Created {type(self).__name__} for a problem with "
            f"{self._problem.input_size} variables and "
            f"{len(self._problem.constraints)} constraints"
        )

    def initialize_parameters(self) -> None:
        """Hook for bridges to publish their default parameters."""
        pass

    @property
    def problem(self) -> Problem:
        """The bound problem (converted to this solver's kinds)."""
        return self._problem

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    @property
    def parameters(self) -> ParameterMap:
        return self._parameters

    def set_parameter(self, key: str, value, description: str = "") -> None:
        """
        Set a solver parameter.

        After the solver is solved the new value only takes effect once
        ``reset()`` is called.
        """
        if self.solved:
            logger.warning(
                f"Parameter '{key}' changed on a solved {type(self).__name__}; "
                f"call reset() for it to take effect"
            )
        if not description and key in self._parameters:
            description = self._parameters[key].description
        self._parameters.set_parameter(key, value, description)

    def get_parameter(self, key: str, expected_type: Optional[Type] = None) -> Any:
        return self._parameters.get_parameter(key, expected_type)

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def register_callback(self, callback: IterationCallback) -> None:
        self._callbacks.register(callback)

    def unregister_callback(self, callback: IterationCallback) -> None:
        self._callbacks.unregister(callback)

    @property
    def callbacks(self) -> CallbackManager:
        return self._callbacks

    def notify(self, state: SolverState) -> bool:
        """
        Publish a state to the registered callbacks.

        Returns:
            True if a callback requested early termination
        """
        return self._callbacks.emit(state)

    def initial_point(self) -> np.ndarray:
        """The problem's starting point, or zeros when none is set."""
        x0 = self._problem.starting_point
        if x0 is None:
            return np.zeros(self._problem.input_size)
        return x0

    def evaluate(self, x) -> Result:
        """Build a Result from the problem functions evaluated at ``x``."""
        value = self._problem.function(x)[0]
        values = [g(x) for g in self._problem.constraint_functions]
        constraints = _concatenate(values)
        return Result(x=x, value=value, constraints=constraints)

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        writer.write(f"Solver ({type(self).__name__}):")
        with writer.indented():
            writer.line()
            self._problem.print_to(writer)
            if self._parameters:
                writer.line()
                self._parameters.print_to(writer)
            writer.line()
            self._result.print_to(writer)
        return writer

    def __str__(self) -> str:
        return render(self)


def _concatenate(values) -> np.ndarray:
    if not values:
        return np.zeros(0)
    return np.concatenate(values)
