"""
Dummy solver bridges.

These never optimize anything. They are the smallest complete bridges and are
used to exercise the solver plumbing:
- dummy: accepts any problem, always fails
- dummy-td: same, for twice-differentiable problems
- dummy-laststate: publishes one state at the starting point, then fails with
  the starting point as last known state
"""

from typing import List

from ...functions.base import TwiceDifferentiableFunction
from ...result import SolverError
from ...state import SolverState
from ..base import Solver
from ..plugin import SolverPlugin

FAILURE_MESSAGE = "The dummy solver always fails."


class DummySolver(Solver):
    """Solver that always fails."""

    def initialize_parameters(self) -> None:
        self.set_parameter("dummy-parameter", 42.0, "dummy parameter")

    def solve(self):
        return SolverError(FAILURE_MESSAGE)


class DummyTwiceDifferentiableSolver(DummySolver):
    """Solver that always fails, for twice-differentiable problems."""

    objective_kind = TwiceDifferentiableFunction
    constraint_kinds = (TwiceDifferentiableFunction,)


class DummyLastStateSolver(Solver):
    """Solver that fails after one iteration, reporting its last state."""

    def solve(self):
        x = self.initial_point()
        state = SolverState(self.problem, x=x)
        last_state = self.evaluate(x)
        state.cost = last_state.value
        state.set_parameter("iteration", 0, "current iteration")
        self.notify(state)
        return SolverError(FAILURE_MESSAGE, last_state=last_state)


def get_solver_plugins() -> List[SolverPlugin]:
    return [
        SolverPlugin.from_solver_class(DummySolver, "dummy"),
        SolverPlugin.from_solver_class(DummyTwiceDifferentiableSolver, "dummy-td"),
        SolverPlugin.from_solver_class(DummyLastStateSolver, "dummy-laststate"),
    ]
