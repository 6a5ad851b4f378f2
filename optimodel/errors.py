"""
Exception hierarchy for optimodel.

Every error raised by the modeling layer derives from OptimodelError and from
the closest builtin exception, so callers catching ValueError, KeyError or
TypeError keep working.

Numerical failures inside a solver are never raised: they are returned as a
SolverError outcome (see optimodel.result).
"""


class OptimodelError(Exception):
    """Base class for all optimodel errors."""


class DimensionMismatchError(OptimodelError, ValueError):
    """An argument size is inconsistent with the declared sizes."""


class InvalidArgumentError(OptimodelError, ValueError):
    """An argument is outside its admissible domain (e.g. output index)."""


class OutOfBoundsError(OptimodelError, ValueError):
    """A point lies outside the problem's argument bounds."""


class ParameterNotFoundError(OptimodelError, KeyError):
    """A solver parameter key is absent."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class ParameterTypeError(OptimodelError, TypeError):
    """A solver parameter holds a value of another type."""


class UnknownSolverError(OptimodelError, LookupError):
    """No solver is registered or discoverable under the requested name."""


class IncompatibleProblemError(OptimodelError, TypeError):
    """A problem cannot be converted to the kinds a solver requires."""


class PluginLoadError(OptimodelError, ImportError):
    """A solver plugin module could not be loaded or is malformed."""


class EvaluationError(OptimodelError, RuntimeError):
    """A user-supplied callable failed while evaluating a function."""


class SolverProtocolError(OptimodelError, RuntimeError):
    """A solver bridge did not honor the solve() contract."""
