"""
Objective and derivative wrappers for back-end bridges.

Turn typed functions into the plain callables numerical libraries expect,
counting evaluations and tracking the best point seen. Shared by bridges so
the counting logic is not duplicated in each of them.
"""

from typing import Optional

import numpy as np
import scipy.sparse

from ..functions.base import DifferentiableFunction, Function, TwiceDifferentiableFunction


class ObjectiveWrapper:
    """
    Scalar view of a 1-output function with tracking.

    Provides:
    - Evaluation counting
    - Best solution tracking

    Usage:
        wrapper = ObjectiveWrapper(problem.function)
        minimize(wrapper, x0, ...)
        print(f"Evaluations: {wrapper.n_evals}, Best: {wrapper.best_f}")
    """

    def __init__(self, function: Function):
        self.function = function
        self.n_evals = 0
        self._best_f = float("inf")
        self._best_x: Optional[np.ndarray] = None

    def __call__(self, x: np.ndarray) -> float:
        self.n_evals += 1
        f = float(self.function(x)[0])
        if f < self._best_f:
            self._best_f = f
            self._best_x = np.array(x, dtype=float)
        return f

    @property
    def best_x(self) -> Optional[np.ndarray]:
        """Best point evaluated so far."""
        return self._best_x

    @property
    def best_f(self) -> float:
        """Best objective value evaluated so far."""
        return self._best_f


class GradientWrapper:
    """
    Gradient of one output with evaluation counting.

    Usage:
        grad_wrapper = GradientWrapper(problem.function)
        minimize(obj_fn, x0, jac=grad_wrapper, ...)
    """

    def __init__(self, function: DifferentiableFunction, index: int = 0):
        self.function = function
        self.index = index
        self.n_evals = 0

    def __call__(self, x: np.ndarray) -> np.ndarray:
        self.n_evals += 1
        return self.function.gradient(x, self.index)


class HessianWrapper:
    """Hessian of one output as a dense matrix, with evaluation counting."""

    def __init__(self, function: TwiceDifferentiableFunction, index: int = 0):
        self.function = function
        self.index = index
        self.n_evals = 0

    def __call__(self, x: np.ndarray, *args) -> np.ndarray:
        self.n_evals += 1
        return dense(self.function.hessian(x, self.index))


class LagrangianHessianWrapper:
    """
    ``sum_i v_i * hessian(x, i)`` of a vector function.

    Matches the ``hess(x, v)`` signature of scipy's NonlinearConstraint.
    """

    def __init__(self, function: TwiceDifferentiableFunction):
        self.function = function

    def __call__(self, x: np.ndarray, v: np.ndarray) -> np.ndarray:
        n = self.function.input_size
        total = np.zeros((n, n))
        for i, weight in enumerate(v):
            if weight:
                total += weight * dense(self.function.hessian(x, i))
        return total


def dense(matrix) -> np.ndarray:
    if scipy.sparse.issparse(matrix):
        return matrix.toarray()
    return np.asarray(matrix)
