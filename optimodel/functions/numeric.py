"""
Concrete linear and quadratic functions built from stored coefficients.

Both accept dense numpy arrays or scipy.sparse matrices. With a sparse
coefficient matrix the function is sparse: ``jacobian`` and ``hessian``
return CSR matrices while values and gradients stay dense vectors.
"""

from typing import Optional

import numpy as np
import scipy.sparse

from ..errors import DimensionMismatchError
from ..io import IndentingWriter, format_matrix, format_scalar, format_vector
from .base import LinearFunction, QuadraticFunction


def _coefficient_matrix(a):
    if scipy.sparse.issparse(a):
        return scipy.sparse.csr_matrix(a, dtype=float, copy=True)
    a = np.array(a, dtype=float)
    if a.ndim != 2:
        raise DimensionMismatchError(f"Coefficient matrix must be 2-D, got shape {a.shape}")
    return a


def _coefficient_vector(b, size: int, label: str) -> np.ndarray:
    if b is None:
        return np.zeros(size)
    b = np.array(b, dtype=float).reshape(-1)
    if b.shape[0] != size:
        raise DimensionMismatchError(f"{label} must have size {size}, got {b.shape[0]}")
    return b


def _copy(matrix):
    return matrix.copy()


class NumericLinearFunction(LinearFunction):
    """
    Affine function ``x -> A x + b``.

    Args:
        a: Matrix of shape (m, n), dense or sparse
        b: Vector of length m (defaults to zeros)
        name: Optional name

    Example:
        f = NumericLinearFunction([[1, 2], [3, 4]], [5, 6])
        f([1, -1])  # array([4., 5.])
    """

    def __init__(self, a, b=None, name: Optional[str] = None):
        a = _coefficient_matrix(a)
        m, n = a.shape
        super().__init__(n, m, name=name or "A.x + b")
        self._a = a
        self._b = _coefficient_vector(b, m, "b")

    @property
    def is_sparse(self) -> bool:
        return scipy.sparse.issparse(self._a)

    @property
    def A(self):
        return _copy(self._a)

    @property
    def b(self) -> np.ndarray:
        return self._b.copy()

    def compute(self, x: np.ndarray):
        return np.asarray(self._a @ x).reshape(-1) + self._b

    def compute_gradient(self, x: np.ndarray, i: int):
        row = self._a[i]
        if scipy.sparse.issparse(row):
            return row.toarray().reshape(-1)
        return row.copy()

    def compute_jacobian(self, x: np.ndarray):
        return _copy(self._a)

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        super().print_to(writer)
        with writer.indented():
            writer.line(f"A = {format_matrix(self._a)}")
            writer.line(f"b = {format_vector(self._b)}")
        return writer


class NumericQuadraticFunction(QuadraticFunction):
    """
    Quadratic function ``x -> 1/2 x^T A x + b^T x + c``.

    ``A`` must be square; it is stored symmetrized as ``(A + A^T) / 2`` so the
    gradient is ``A x + b`` and the Hessian is ``A``.

    Args:
        a: Square matrix of shape (n, n), dense or sparse
        b: Vector of length n (defaults to zeros)
        c: Constant term
        name: Optional name
    """

    def __init__(self, a, b=None, c: float = 0.0, name: Optional[str] = None):
        a = _coefficient_matrix(a)
        if a.shape[0] != a.shape[1]:
            raise DimensionMismatchError(f"Quadratic term must be square, got shape {a.shape}")
        n = a.shape[0]
        super().__init__(n, 1, name=name or "1/2 x^T A x + b^T x + c")
        sym = (a + a.T) * 0.5
        self._a = scipy.sparse.csr_matrix(sym) if scipy.sparse.issparse(sym) else np.asarray(sym)
        self._b = _coefficient_vector(b, n, "b")
        self._c = float(c)

    @property
    def is_sparse(self) -> bool:
        return scipy.sparse.issparse(self._a)

    @property
    def A(self):
        return _copy(self._a)

    @property
    def b(self) -> np.ndarray:
        return self._b.copy()

    @property
    def c(self) -> float:
        return self._c

    def compute(self, x: np.ndarray):
        ax = np.asarray(self._a @ x).reshape(-1)
        return [0.5 * float(x @ ax) + float(self._b @ x) + self._c]

    def compute_gradient(self, x: np.ndarray, i: int):
        return np.asarray(self._a @ x).reshape(-1) + self._b

    def compute_hessian(self, x: np.ndarray, i: int):
        return _copy(self._a)

    def print_to(self, writer: IndentingWriter) -> IndentingWriter:
        super().print_to(writer)
        with writer.indented():
            writer.line(f"A = {format_matrix(self._a)}")
            writer.line(f"b = {format_vector(self._b)}")
            writer.line(f"c = {format_scalar(self._c)}")
        return writer
