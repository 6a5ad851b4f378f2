"""
Shared fixtures: sample functions, problems and registry isolation.
"""

import logging

import numpy as np
import pytest

from optimodel.functions import (
    NumericLinearFunction,
    NumericQuadraticFunction,
    TwiceDifferentiableFunction,
    make_function,
)
from optimodel.problem import Problem
from optimodel.solvers.registry import SolverRegistry, get_registry


class Rosenbrock(TwiceDifferentiableFunction):
    """Rosenbrock function on R^2."""

    def __init__(self):
        super().__init__(2, 1, name="rosenbrock")

    def compute(self, x):
        return [(1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2]

    def compute_gradient(self, x, i):
        return [
            -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
            200 * (x[1] - x[0] ** 2),
        ]

    def compute_hessian(self, x, i):
        return [
            [2 - 400 * (x[1] - 3 * x[0] ** 2), -400 * x[0]],
            [-400 * x[0], 200.0],
        ]


@pytest.fixture
def linear_function():
    """A = [[1, 2], [3, 4]], b = [5, 6]."""
    return NumericLinearFunction([[1.0, 2.0], [3.0, 4.0]], [5.0, 6.0])


@pytest.fixture
def quadratic_function():
    """x0^2 + x1^2 - 2 x0 - 4 x1, minimum -5 at (1, 2)."""
    return NumericQuadraticFunction([[2.0, 0.0], [0.0, 2.0]], [-2.0, -4.0])


@pytest.fixture
def rosenbrock():
    return Rosenbrock()


@pytest.fixture
def circle_function():
    """g(x) = x0^2 + x1^2, twice differentiable from callables."""
    return make_function(
        2, 1,
        fun=lambda x: [x @ x],
        gradient=lambda x, i: 2 * x,
        hessian=lambda x, i: 2 * np.eye(2),
        name="circle",
    )


@pytest.fixture
def quadratic_problem(quadratic_function):
    problem = Problem(quadratic_function)
    problem.set_starting_point([0.0, 0.0])
    return problem


@pytest.fixture
def registry():
    """Fresh registry with the built-in solvers, isolated from the global one."""
    return SolverRegistry()


@pytest.fixture
def clean_global_registry():
    """Unregister solvers a test adds to the global registry."""
    global_registry = get_registry()
    before = set(global_registry.names())
    yield global_registry
    for name in set(global_registry.names()) - before:
        global_registry.unregister(name)


@pytest.fixture
def restore_optimodel_logger():
    """Undo enable_logging() so later caplog-based tests still see records."""
    yield
    package_logger = logging.getLogger("optimodel")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
