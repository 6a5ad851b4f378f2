"""
Mathematical function hierarchy.

Functions map R^n to R^m. Each kind declares how much information it can give
a solver:

    Function                      evaluation only
    DifferentiableFunction        + gradient / jacobian
    TwiceDifferentiableFunction   + hessian
    QuadraticFunction             hessian independent of x
    LinearFunction                hessian is zero (supplied by the base class)

A stronger kind is a subclass of every weaker kind, so a linear function can
be used wherever a differentiable one is expected. The reverse never holds.

To define a function, derive from the strongest kind you can support and
implement the hooks:

    class Square(TwiceDifferentiableFunction):
        def __init__(self):
            super().__init__(1, 1, name="x^2")

        def compute(self, x):
            return [x[0] ** 2]

        def compute_gradient(self, x, i):
            return [2 * x[0]]

        def compute_hessian(self, x, i):
            return [[2.0]]

The public methods (``f(x)``, ``gradient``, ``jacobian``, ``hessian``) check
sizes and indices, call the hooks, and always return freshly allocated
arrays.
"""

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Optional, Tuple, Type
import operator

import numpy as np
import scipy.sparse

from ..errors import DimensionMismatchError, InvalidArgumentError
from ..io import IndentingWriter, render


class Capability(IntEnum):
    """Totally ordered capability levels of the function hierarchy."""
    PLAIN = 0
    DIFFERENTIABLE = 1
    TWICE_DIFFERENTIABLE = 2
    QUADRATIC = 3
    LINEAR = 4


class Function(ABC):
    """
    Function f: R^n -> R^m that can be evaluated.

    Attributes:
        input_size: n
        output_size: m
        name: Optional human-readable name
    """

    capability = Capability.PLAIN
    kind_label = "Function"

    def __init__(self, input_size: int, output_size: int = 1, name: Optional[str] = None):
        input_size = operator.index(input_size)
        output_size = operator.index(output_size)
        if input_size < 0 or output_size < 0:
            raise InvalidArgumentError(
                f"Function sizes must be non-negative, got ({input_size}, {output_size})"
            )
        self._input_size = input_size
        self._output_size = output_size
        self._name = name

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def output_size(self) -> int:
        return self._output_size

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def is_sparse(self) -> bool:
        """Whether jacobian/hessian are returned as scipy.sparse CSR matrices."""
        return False

    @abstractmethod
    def compute(self, x: np.ndarray):
        """
        Evaluate the function.

        Args:
            x: Argument of length input_size (already validated)

        Returns:
            Array-like of length output_size
        """
        pass

    def __call__(self, x) -> np.ndarray:
        x = self._check_argument(x)
        result = _as_vector(self.compute(x))
        if result.shape[0] != self._output_size:
            raise DimensionMismatchError(
                f"{self._display_name()} returned {result.shape[0]} values, "
                f"expected {self._output_size}"
            )
        return result

    def _check_argument(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        if x.ndim != 1 or x.shape[0] != self._input_size:
            raise DimensionMismatchError(
                f"{self._display_name()} expects an argument of size "
                f"{self._input_size}, got shape {x.shape}"
            )
        return x

    def _check_index(self, i) -> int:
        try:
            i = operator.index(i)
        except TypeError as e:
            raise InvalidArgumentError(f"Output index must be an integer, got {i!r}") from e
        if not 0 <= i < self._output_size:
            raise InvalidArgumentError(
                f"Output index {i} out of range for {self._display_name()} "
                f"with {self._output_size} outputs"
            )
        return i

    def _display_name(self) -> str:
        return self._name or type(self).__name__

    def header(self) -> str:
        text = f"{self.kind_label} ({self._input_size} -> {self._output_size})"
        if self._name:
            text += f": {self._name}"
        return text

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        return writer.write(self.header())

    def __str__(self) -> str:
        return render(self)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"input_size={self._input_size}, "
            f"output_size={self._output_size}, "
            f"name={self._name!r})"
        )


class DifferentiableFunction(Function):
    """Function that also provides the gradient of each output."""

    capability = Capability.DIFFERENTIABLE
    kind_label = "Differentiable function"

    @abstractmethod
    def compute_gradient(self, x: np.ndarray, i: int):
        """
        Gradient of the i-th output.

        Args:
            x: Argument of length input_size (already validated)
            i: Output index in [0, output_size)

        Returns:
            Array-like of length input_size
        """
        pass

    def compute_jacobian(self, x: np.ndarray):
        """
        Jacobian as stacked gradients.

        Override only for efficiency: the stacked gradients are authoritative,
        and an override must agree with them up to floating-point equality.
        """
        n, m = self._input_size, self._output_size
        if m == 0:
            jac = np.zeros((0, n))
        else:
            jac = np.vstack([self.gradient(x, i) for i in range(m)])
        if self.is_sparse:
            return scipy.sparse.csr_matrix(jac)
        return jac

    def gradient(self, x, i: int = 0) -> np.ndarray:
        x = self._check_argument(x)
        i = self._check_index(i)
        grad = _as_vector(self.compute_gradient(x, i))
        if grad.shape[0] != self._input_size:
            raise DimensionMismatchError(
                f"Gradient of {self._display_name()} has size {grad.shape[0]}, "
                f"expected {self._input_size}"
            )
        return grad

    def jacobian(self, x):
        x = self._check_argument(x)
        jac = _as_matrix(self.compute_jacobian(x), self.is_sparse)
        expected = (self._output_size, self._input_size)
        if jac.shape != expected:
            raise DimensionMismatchError(
                f"Jacobian of {self._display_name()} has shape {jac.shape}, "
                f"expected {expected}"
            )
        return jac


class TwiceDifferentiableFunction(DifferentiableFunction):
    """Differentiable function that also provides symmetric Hessians."""

    capability = Capability.TWICE_DIFFERENTIABLE
    kind_label = "Twice differentiable function"

    @abstractmethod
    def compute_hessian(self, x: np.ndarray, i: int):
        """
        Hessian of the i-th output.

        Symmetry is part of the contract but is not checked.

        Returns:
            Array-like (or sparse matrix) of shape (input_size, input_size)
        """
        pass

    def hessian(self, x, i: int = 0):
        x = self._check_argument(x)
        i = self._check_index(i)
        hess = _as_matrix(self.compute_hessian(x, i), self.is_sparse)
        expected = (self._input_size, self._input_size)
        if hess.shape != expected:
            raise DimensionMismatchError(
                f"Hessian of {self._display_name()} has shape {hess.shape}, "
                f"expected {expected}"
            )
        return hess


class QuadraticFunction(TwiceDifferentiableFunction):
    """
    Twice differentiable function whose Hessian does not depend on x.

    Solvers may call ``hessian`` with any valid argument.
    """

    capability = Capability.QUADRATIC
    kind_label = "Quadratic function"


class LinearFunction(QuadraticFunction):
    """
    Quadratic function with a zero Hessian and a constant Jacobian.

    The Hessian is supplied here; subclasses must not make it nonzero.
    """

    capability = Capability.LINEAR
    kind_label = "Linear function"

    def compute_hessian(self, x: np.ndarray, i: int):
        n = self._input_size
        if self.is_sparse:
            return scipy.sparse.csr_matrix((n, n))
        return np.zeros((n, n))


# Strongest first, used to find the kind of an instance.
FUNCTION_KINDS: Tuple[Type[Function], ...] = (
    LinearFunction,
    QuadraticFunction,
    TwiceDifferentiableFunction,
    DifferentiableFunction,
    Function,
)


def kind_of(function: Function) -> Type[Function]:
    """Strongest abstract kind the function is an instance of."""
    for kind in FUNCTION_KINDS:
        if isinstance(function, kind):
            return kind
    raise InvalidArgumentError(f"{function!r} is not an optimodel Function")


def widens_to(source: Type[Function], target: Type[Function]) -> bool:
    """Whether functions of kind ``source`` are usable where ``target`` is expected."""
    return isinstance(source, type) and issubclass(source, target)


def _as_vector(value) -> np.ndarray:
    if scipy.sparse.issparse(value):
        value = value.toarray()
    return np.array(value, dtype=float).reshape(-1)


def _as_matrix(value, sparse: bool):
    if sparse:
        return scipy.sparse.csr_matrix(value, dtype=float, copy=True)
    if scipy.sparse.issparse(value):
        return value.toarray().astype(float)
    return np.atleast_2d(np.array(value, dtype=float))
