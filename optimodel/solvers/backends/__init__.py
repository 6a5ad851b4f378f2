"""
Built-in solver bridges.

Each bridge wraps a back-end (or none, for the dummy bridges) and implements
the Solver interface.
"""

from typing import List

from ..plugin import SolverPlugin
from . import dummy, scipy_backend
from .dummy import DummyLastStateSolver, DummySolver, DummyTwiceDifferentiableSolver
from .scipy_backend import ScipySolver


def builtin_plugins() -> List[SolverPlugin]:
    """Descriptors of all built-in bridges."""
    return [*dummy.get_solver_plugins(), *scipy_backend.get_solver_plugins()]


__all__ = [
    "DummySolver",
    "DummyTwiceDifferentiableSolver",
    "DummyLastStateSolver",
    "ScipySolver",
    "builtin_plugins",
]
