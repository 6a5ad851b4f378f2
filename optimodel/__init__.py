"""
optimodel: numerical optimization modeling and solver dispatch.

Modules:
- functions: typed function hierarchy, numeric linear/quadratic functions, intervals
- problem: Problem container parameterized by objective and constraint kinds
- result: Result / ResultWithWarnings / SolverError outcomes
- state: SolverState and typed parameters
- solvers: Solver interface, plugin registry and SolverFactory
- callbacks: iteration callbacks (capture, JSON-lines log, rich console)

Usage:
    from optimodel import (
        DifferentiableFunction, NumericQuadraticFunction, Problem, SolverFactory,
        make_interval,
    )

    f = NumericQuadraticFunction([[2, 0], [0, 2]], [-2, -4])
    problem = Problem(f, constraint_kinds=DifferentiableFunction)
    problem.argument_bounds[0] = make_interval(0.0, 0.5)
    problem.set_starting_point([0.0, 0.0])

    with SolverFactory("scipy", problem) as factory:
        outcome = factory().minimum()
"""

__version__ = "0.1.0"

from optimodel.errors import (
    OptimodelError,
    DimensionMismatchError,
    InvalidArgumentError,
    OutOfBoundsError,
    ParameterNotFoundError,
    ParameterTypeError,
    UnknownSolverError,
    IncompatibleProblemError,
    PluginLoadError,
    EvaluationError,
    SolverProtocolError,
)
from optimodel.functions import (
    Capability,
    Function,
    DifferentiableFunction,
    TwiceDifferentiableFunction,
    QuadraticFunction,
    LinearFunction,
    NumericLinearFunction,
    NumericQuadraticFunction,
    make_function,
    kind_of,
    widens_to,
    Interval,
    make_interval,
    make_lower_interval,
    make_upper_interval,
    make_infinite_interval,
)
from optimodel.io import IndentingWriter
from optimodel.problem import Constraint, Problem
from optimodel.result import (
    NO_SOLUTION,
    NoSolution,
    Result,
    ResultWithWarnings,
    SolverError,
    SolverWarning,
    is_success,
)
from optimodel.state import ParameterMap, SolverState, StateParameter
from optimodel.solvers import (
    GenericSolver,
    Solver,
    SolverPlugin,
    SolverFactory,
    get_registry,
    register_solver,
)
from optimodel.logging import enable_logging

__all__ = [
    "__version__",
    # Errors
    "OptimodelError",
    "DimensionMismatchError",
    "InvalidArgumentError",
    "OutOfBoundsError",
    "ParameterNotFoundError",
    "ParameterTypeError",
    "UnknownSolverError",
    "IncompatibleProblemError",
    "PluginLoadError",
    "EvaluationError",
    "SolverProtocolError",
    # Functions
    "Capability",
    "Function",
    "DifferentiableFunction",
    "TwiceDifferentiableFunction",
    "QuadraticFunction",
    "LinearFunction",
    "NumericLinearFunction",
    "NumericQuadraticFunction",
    "make_function",
    "kind_of",
    "widens_to",
    "Interval",
    "make_interval",
    "make_lower_interval",
    "make_upper_interval",
    "make_infinite_interval",
    # Problem
    "IndentingWriter",
    "Constraint",
    "Problem",
    # Outcomes and state
    "NO_SOLUTION",
    "NoSolution",
    "Result",
    "ResultWithWarnings",
    "SolverError",
    "SolverWarning",
    "is_success",
    "ParameterMap",
    "SolverState",
    "StateParameter",
    # Solvers
    "GenericSolver",
    "Solver",
    "SolverPlugin",
    "SolverFactory",
    "get_registry",
    "register_solver",
    # Logging
    "enable_logging",
]
