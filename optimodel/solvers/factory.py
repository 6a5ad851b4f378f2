"""
Solver factory.

SolverFactory resolves a solver by name and binds it to a problem. When the
solver comes from a plugin module, the factory holds a reference on that
module until it is closed; the solver must not be used after that.

Usage:
    with SolverFactory("scipy", problem) as factory:
        solver = factory()
        outcome = solver.minimum()
"""

from pathlib import Path
from typing import Optional, Sequence, Union
import logging

from ..config import get_settings
from ..problem import Problem
from .base import Solver
from .plugin import SolverPlugin
from .registry import ModuleHandle, SolverRegistry, get_registry

logger = logging.getLogger(__name__)


class SolverFactory:
    """
    Build a solver bound to a problem from its registry name.

    Args:
        name: Solver name (e.g. "scipy", "dummy-td")
        problem: Problem to solve
        search_path: Directories searched for plugin modules. Defaults to
            ``OPTIMODEL_PLUGIN_PATH`` followed by the install prefix directory.
        registry: Registry to resolve from (defaults to the global one)

    Raises:
        UnknownSolverError: If the name is neither registered nor discoverable
        PluginLoadError: If a plugin module is found but cannot be loaded
        IncompatibleProblemError: If the problem kinds do not widen to the
            solver's kinds
    """

    def __init__(
        self,
        name: str,
        problem: Problem,
        search_path: Optional[Sequence[Union[str, Path]]] = None,
        registry: Optional[SolverRegistry] = None,
    ):
        if search_path is None:
            search_path = get_settings().search_path()
        self._registry = registry or get_registry()
        self._name = name
        self._handle: Optional[ModuleHandle] = None

        plugin, handle = self._registry.resolve(name, search_path)
        self._plugin = plugin
        self._handle = handle
        try:
            self._solver = plugin.create(problem)
        except Exception:
            self.close()
            raise
        logger.debug(f"Created solver '{name}' ({type(self._solver).__name__})")

    @property
    def name(self) -> str:
        return self._name

    @property
    def plugin(self) -> SolverPlugin:
        return self._plugin

    @property
    def solver(self) -> Solver:
        """The solver bound to the problem."""
        return self._solver

    def __call__(self) -> Solver:
        return self._solver

    @property
    def closed(self) -> bool:
        return self._handle is not None and self._handle.released

    def close(self) -> None:
        """Release the plugin module reference held by this factory."""
        if self._handle is not None:
            self._handle.release()

    def __enter__(self) -> "SolverFactory":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SolverFactory({self._name!r})"
