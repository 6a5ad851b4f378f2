"""
Solvers for optimization problems.

- base.py: GenericSolver (lazy outcome) and Solver (bound to a typed problem)
- plugin.py: SolverPlugin descriptor
- registry.py: Process-wide registry, plugin discovery, module refcounts
- factory.py: SolverFactory
- wrapper.py: ObjectiveWrapper, GradientWrapper utilities for bridges
- backends/: Built-in bridges (dummy, scipy)

Usage:
    from optimodel.solvers import SolverFactory

    with SolverFactory("scipy", problem) as factory:
        outcome = factory().minimum()
"""

# Core abstractions
from optimodel.solvers.base import GenericSolver, Solver
from optimodel.solvers.plugin import ENTRY_SYMBOL, SolverPlugin

# Registry functions
from optimodel.solvers.registry import (
    ENTRY_POINT_GROUP,
    ModuleHandle,
    SolverRegistry,
    get_registry,
    list_solvers,
    register_solver,
    unregister_solver,
)
from optimodel.solvers.factory import SolverFactory

__all__ = [
    # Core abstractions
    "GenericSolver",
    "Solver",
    "SolverPlugin",
    "ENTRY_SYMBOL",
    # Registry
    "ENTRY_POINT_GROUP",
    "ModuleHandle",
    "SolverRegistry",
    "get_registry",
    "list_solvers",
    "register_solver",
    "unregister_solver",
    # Factory
    "SolverFactory",
]
