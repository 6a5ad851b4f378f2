"""
Functions backed by user-provided callables.

This is the most common case: the user already has Python callables for the
value and, optionally, the derivatives. make_function() wraps them into the
strongest kind the supplied derivatives allow.

Callable signatures:
- fun(x) -> array of length m (a float is accepted when m == 1)
- gradient(x, i) -> array of length n
- jacobian(x) -> (m, n) array; used for gradients when gradient is absent
- hessian(x, i) -> (n, n) array

Example:
    f = make_function(
        2, 1,
        fun=lambda x: x @ x,
        gradient=lambda x, i: 2 * x,
        hessian=lambda x, i: 2 * np.eye(2),
        name="|x|^2",
    )
    isinstance(f, TwiceDifferentiableFunction)  # True
"""

from typing import Callable, Optional, Type
import logging

import numpy as np
import scipy.sparse

from ..errors import EvaluationError, InvalidArgumentError
from .base import (
    DifferentiableFunction,
    Function,
    LinearFunction,
    QuadraticFunction,
    TwiceDifferentiableFunction,
)

logger = logging.getLogger(__name__)


class _CallableMixin:
    """Dispatch the compute hooks to stored callables with error context."""

    _fun: Callable
    _gradient_fn: Optional[Callable] = None
    _jacobian_fn: Optional[Callable] = None
    _hessian_fn: Optional[Callable] = None

    def _invoke(self, label: str, fn: Callable, *args):
        try:
            return fn(*args)
        except Exception as e:
            raise EvaluationError(
                f"User {label} evaluation failed: {e}\n"
                f"Argument: {args[0]}\n"
                f"Function: {self._display_name()}"
            ) from e

    def compute(self, x: np.ndarray):
        return self._invoke("function", self._fun, x)

    def compute_gradient(self, x: np.ndarray, i: int):
        if self._gradient_fn is not None:
            return self._invoke("gradient", self._gradient_fn, x, i)
        jac = self._invoke("jacobian", self._jacobian_fn, x)
        if scipy.sparse.issparse(jac):
            jac = jac.toarray()
        jac = np.atleast_2d(np.asarray(jac, dtype=float))
        return jac[i]

    def compute_jacobian(self, x: np.ndarray):
        if self._jacobian_fn is not None:
            return self._invoke("jacobian", self._jacobian_fn, x)
        return super().compute_jacobian(x)

    def compute_hessian(self, x: np.ndarray, i: int):
        return self._invoke("hessian", self._hessian_fn, x, i)


class CallableFunction(_CallableMixin, Function):
    """Plain function evaluated through ``fun(x)``."""

    def __init__(self, input_size: int, output_size: int, fun: Callable, name: Optional[str] = None):
        super().__init__(input_size, output_size, name=name)
        self._fun = fun


class CallableDifferentiableFunction(_CallableMixin, DifferentiableFunction):
    def __init__(
        self,
        input_size: int,
        output_size: int,
        fun: Callable,
        gradient: Optional[Callable] = None,
        jacobian: Optional[Callable] = None,
        name: Optional[str] = None,
    ):
        if gradient is None and jacobian is None:
            raise InvalidArgumentError("A differentiable function needs a gradient or a jacobian")
        super().__init__(input_size, output_size, name=name)
        self._fun = fun
        self._gradient_fn = gradient
        self._jacobian_fn = jacobian


class CallableTwiceDifferentiableFunction(_CallableMixin, TwiceDifferentiableFunction):
    def __init__(
        self,
        input_size: int,
        output_size: int,
        fun: Callable,
        hessian: Callable,
        gradient: Optional[Callable] = None,
        jacobian: Optional[Callable] = None,
        name: Optional[str] = None,
    ):
        if gradient is None and jacobian is None:
            raise InvalidArgumentError("A differentiable function needs a gradient or a jacobian")
        super().__init__(input_size, output_size, name=name)
        self._fun = fun
        self._gradient_fn = gradient
        self._jacobian_fn = jacobian
        self._hessian_fn = hessian


class CallableQuadraticFunction(_CallableMixin, QuadraticFunction):
    """Quadratic function; ``hessian`` must not depend on x."""

    def __init__(
        self,
        input_size: int,
        output_size: int,
        fun: Callable,
        hessian: Callable,
        gradient: Optional[Callable] = None,
        jacobian: Optional[Callable] = None,
        name: Optional[str] = None,
    ):
        if gradient is None and jacobian is None:
            raise InvalidArgumentError("A differentiable function needs a gradient or a jacobian")
        super().__init__(input_size, output_size, name=name)
        self._fun = fun
        self._gradient_fn = gradient
        self._jacobian_fn = jacobian
        self._hessian_fn = hessian


class CallableLinearFunction(_CallableMixin, LinearFunction):
    """Linear function; the zero Hessian comes from LinearFunction."""

    def __init__(
        self,
        input_size: int,
        output_size: int,
        fun: Callable,
        gradient: Optional[Callable] = None,
        jacobian: Optional[Callable] = None,
        name: Optional[str] = None,
    ):
        if gradient is None and jacobian is None:
            raise InvalidArgumentError("A differentiable function needs a gradient or a jacobian")
        super().__init__(input_size, output_size, name=name)
        self._fun = fun
        self._gradient_fn = gradient
        self._jacobian_fn = jacobian

    def compute_hessian(self, x: np.ndarray, i: int):
        return LinearFunction.compute_hessian(self, x, i)


def make_function(
    input_size: int,
    output_size: int,
    fun: Callable,
    gradient: Optional[Callable] = None,
    hessian: Optional[Callable] = None,
    jacobian: Optional[Callable] = None,
    name: Optional[str] = None,
    kind: Optional[Type[Function]] = None,
) -> Function:
    """
    Wrap callables into a function of the appropriate kind.

    Args:
        input_size: n
        output_size: m
        fun: Value callable
        gradient: Optional gradient callable
        hessian: Optional hessian callable
        jacobian: Optional jacobian callable
        name: Optional name
        kind: Requested kind. Defaults to the strongest kind supported by the
            supplied derivatives (never Quadratic or Linear, which are design
            promises the caller must make explicitly).

    Returns:
        Function instance

    Raises:
        InvalidArgumentError: If the requested kind needs a derivative that
            was not supplied, or is not a function kind
    """
    has_first = gradient is not None or jacobian is not None
    if kind is None:
        if has_first and hessian is not None:
            kind = TwiceDifferentiableFunction
        elif has_first:
            kind = DifferentiableFunction
        else:
            kind = Function

    if kind is Function:
        result = CallableFunction(input_size, output_size, fun, name=name)
    elif kind is DifferentiableFunction:
        result = CallableDifferentiableFunction(
            input_size, output_size, fun, gradient=gradient, jacobian=jacobian, name=name
        )
    elif kind is LinearFunction:
        result = CallableLinearFunction(
            input_size, output_size, fun, gradient=gradient, jacobian=jacobian, name=name
        )
    elif kind in (TwiceDifferentiableFunction, QuadraticFunction):
        if hessian is None:
            raise InvalidArgumentError(f"{kind.__name__} requires a hessian callable")
        cls = (
            CallableQuadraticFunction
            if kind is QuadraticFunction
            else CallableTwiceDifferentiableFunction
        )
        result = cls(
            input_size, output_size, fun, hessian,
            gradient=gradient, jacobian=jacobian, name=name,
        )
    else:
        raise InvalidArgumentError(f"Unsupported function kind: {kind!r}")

    logger.debug(f"Wrapped user callables as {type(result).__name__} ({input_size} -> {output_size})")
    return result
