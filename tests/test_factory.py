"""
Tests for solver plugins, the registry and SolverFactory.

Tests:
- SolverPlugin validation and compatibility checks
- Registration and lookup
- Plugin module discovery on the search path and via entry points
- Module reference counting and unloading
- SolverFactory lifecycle
"""

import sys
import textwrap

import pydantic
import pytest

from optimodel.config import PLUGIN_PATH_ENV
from optimodel.errors import (
    IncompatibleProblemError,
    InvalidArgumentError,
    PluginLoadError,
    UnknownSolverError,
)
from optimodel.functions import (
    DifferentiableFunction,
    Function,
    LinearFunction,
    TwiceDifferentiableFunction,
)
from optimodel.result import Result, SolverError
from optimodel.solvers import SolverFactory, SolverPlugin
from optimodel.solvers.backends.dummy import DummySolver, DummyTwiceDifferentiableSolver
from optimodel.solvers.registry import find_plugin_module, module_name_for

PLUGIN_TEMPLATE = '''
from optimodel.solvers import Solver, SolverPlugin


class StartingPointSolver(Solver):
    """Returns the starting point."""

    def solve(self):
        return self.evaluate(self.initial_point())


def get_solver_plugins():
    return [SolverPlugin.from_solver_class(StartingPointSolver, "{name}")]
'''


def write_plugin(directory, name, body=None, package=False):
    """Write a plugin module for ``name`` into ``directory``."""
    if body is None:
        body = PLUGIN_TEMPLATE.format(name=name)
    stem = module_name_for(name)
    if package:
        path = directory / stem / "__init__.py"
        path.parent.mkdir(parents=True)
    else:
        path = directory / f"{stem}.py"
    path.write_text(textwrap.dedent(body))
    return path


class FakeEntryPoint:
    def __init__(self, name, target):
        self.name = name
        self.value = f"tests:{name}"
        self._target = target

    def load(self):
        if isinstance(self._target, Exception):
            raise self._target
        return self._target


class TestSolverPlugin:
    """Test the plugin descriptor."""

    def test_from_solver_class(self):
        plugin = SolverPlugin.from_solver_class(DummyTwiceDifferentiableSolver, "td")
        assert plugin.name == "td"
        assert plugin.objective_kind is TwiceDifferentiableFunction
        assert plugin.constraint_kinds == (TwiceDifferentiableFunction,)
        assert plugin.constructor is DummyTwiceDifferentiableSolver
        assert plugin.description == "Solver that always fails, for twice-differentiable problems."

    def test_single_constraint_kind_is_normalized(self):
        plugin = SolverPlugin(name="x", constraint_kinds=LinearFunction, constructor=DummySolver)
        assert plugin.constraint_kinds == (LinearFunction,)

    def test_validation(self):
        with pytest.raises(pydantic.ValidationError):
            SolverPlugin(name="", constructor=DummySolver)
        with pytest.raises(pydantic.ValidationError):
            SolverPlugin(name="x", constraint_kinds=(), constructor=DummySolver)
        with pytest.raises(pydantic.ValidationError):
            SolverPlugin(name="x", objective_kind=int, constructor=DummySolver)

    def test_frozen(self):
        plugin = SolverPlugin.from_solver_class(DummySolver, "dummy")
        with pytest.raises(pydantic.ValidationError):
            plugin.name = "other"

    def test_compatibility(self, quadratic_function):
        from optimodel.problem import Problem

        problem = Problem(quadratic_function, constraint_kinds=LinearFunction)
        td = SolverPlugin.from_solver_class(DummyTwiceDifferentiableSolver, "td")
        assert td.accepts(problem)

        linear_only = SolverPlugin(
            name="lp", objective_kind=LinearFunction, constraint_kinds=LinearFunction,
            constructor=DummySolver,
        )
        assert "requires a LinearFunction objective" in linear_only.incompatibility(problem)
        with pytest.raises(IncompatibleProblemError):
            linear_only.create(problem)

    def test_plain_constraint_kinds_rejected(self, quadratic_problem):
        td = SolverPlugin.from_solver_class(DummyTwiceDifferentiableSolver, "td")
        assert "got Function" in td.incompatibility(quadratic_problem)

    def test_constraint_kind_compatibility(self, quadratic_function):
        from optimodel.problem import Problem

        problem = Problem(quadratic_function, constraint_kinds=(LinearFunction, DifferentiableFunction))
        td = SolverPlugin.from_solver_class(DummyTwiceDifferentiableSolver, "td")
        assert "got DifferentiableFunction" in td.incompatibility(problem)

    def test_info(self):
        info = SolverPlugin.from_solver_class(DummySolver, "dummy").info()
        assert info == {
            "name": "dummy",
            "objective_kind": "Function",
            "constraint_kinds": ["Function"],
            "description": "Solver that always fails.",
        }


class TestRegistry:
    """Test registration and lookup."""

    def test_builtins_are_registered(self, registry):
        for name in ("dummy", "dummy-td", "dummy-laststate", "scipy"):
            assert name in registry
        assert registry.names() == sorted(registry.names())

    def test_register_and_unregister(self, registry):
        plugin = SolverPlugin.from_solver_class(DummySolver, "custom")
        registry.register(plugin)
        assert registry.get("custom") is plugin
        assert registry.resolve("custom") == (plugin, None)
        assert registry.unregister("custom") is plugin
        assert registry.get("custom") is None

    def test_duplicate_name(self, registry):
        plugin = SolverPlugin.from_solver_class(DummySolver, "dummy")
        with pytest.raises(InvalidArgumentError, match="already registered"):
            registry.register(plugin)
        registry.register(plugin, replace=True)
        assert registry.get("dummy") is plugin

    def test_register_requires_plugin(self, registry):
        with pytest.raises(InvalidArgumentError):
            registry.register(DummySolver)

    def test_unregister_unknown(self, registry):
        with pytest.raises(UnknownSolverError):
            registry.unregister("no-such-solver")

    def test_list_all(self, registry):
        listing = registry.list_all()
        assert listing["dummy-td"]["objective_kind"] == "TwiceDifferentiableFunction"
        assert listing["dummy"]["module"] is None

    def test_global_registration(self, clean_global_registry, quadratic_problem):
        from optimodel.solvers import list_solvers, register_solver

        register_solver(SolverPlugin.from_solver_class(DummySolver, "global-dummy"))
        assert "global-dummy" in list_solvers()
        with SolverFactory("global-dummy", quadratic_problem, search_path=[]) as factory:
            assert isinstance(factory(), DummySolver)


class TestDiscovery:
    """Test plugin module discovery and loading."""

    def test_module_name(self):
        assert module_name_for("dummy-td") == "optimodel_plugin_dummy_td"

    def test_search_order(self, tmp_path):
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        expected = write_plugin(first, "ordered")
        write_plugin(second, "ordered")
        assert find_plugin_module("ordered", [tmp_path / "missing", first, second]) == expected

    def test_unknown_solver(self, registry, tmp_path, quadratic_problem):
        with pytest.raises(UnknownSolverError, match="no-such-solver"):
            SolverFactory("no-such-solver", quadratic_problem, search_path=[tmp_path], registry=registry)
        assert registry.loaded_modules() == {}
        assert module_name_for("no-such-solver") not in sys.modules

    def test_load_from_search_path(self, registry, tmp_path, quadratic_problem):
        write_plugin(tmp_path, "from-file")
        factory = SolverFactory("from-file", quadratic_problem, search_path=[tmp_path], registry=registry)

        outcome = factory().minimum()
        assert isinstance(outcome, Result)
        assert outcome.value == 0.0
        assert registry.list_all()["from-file"]["module"].endswith("optimodel_plugin_from_file.py")
        assert list(registry.loaded_modules().values()) == [1]
        assert "optimodel_plugin_from_file" in sys.modules

        factory.close()
        assert factory.closed
        assert registry.loaded_modules() == {}
        assert "from-file" not in registry
        assert "optimodel_plugin_from_file" not in sys.modules

    def test_load_package(self, registry, tmp_path, quadratic_problem):
        write_plugin(tmp_path, "packaged", package=True)
        with SolverFactory("packaged", quadratic_problem, search_path=[tmp_path], registry=registry) as factory:
            assert factory.plugin.name == "packaged"
        assert registry.loaded_modules() == {}

    def test_search_path_from_environment(self, registry, tmp_path, monkeypatch, quadratic_problem):
        write_plugin(tmp_path, "from-env")
        monkeypatch.setenv(PLUGIN_PATH_ENV, str(tmp_path))
        with SolverFactory("from-env", quadratic_problem, registry=registry) as factory:
            assert factory.name == "from-env"

    def test_module_is_shared_and_refcounted(self, registry, tmp_path, quadratic_problem):
        write_plugin(tmp_path, "shared")
        first = SolverFactory("shared", quadratic_problem, search_path=[tmp_path], registry=registry)
        second = SolverFactory("shared", quadratic_problem, search_path=[tmp_path], registry=registry)
        assert list(registry.loaded_modules().values()) == [2]

        first.close()
        first.close()
        assert list(registry.loaded_modules().values()) == [1]
        assert "shared" in registry

        second.close()
        assert registry.loaded_modules() == {}

    def test_module_without_entry_symbol(self, registry, tmp_path, quadratic_problem):
        write_plugin(tmp_path, "empty", body="VALUE = 1\n")
        with pytest.raises(PluginLoadError, match="does not define get_solver_plugins"):
            SolverFactory("empty", quadratic_problem, search_path=[tmp_path], registry=registry)
        assert "optimodel_plugin_empty" not in sys.modules

    def test_module_import_error(self, registry, tmp_path, quadratic_problem):
        write_plugin(tmp_path, "broken", body="import optimodel_no_such_dependency\n")
        with pytest.raises(PluginLoadError, match="Failed to import") as info:
            SolverFactory("broken", quadratic_problem, search_path=[tmp_path], registry=registry)
        assert isinstance(info.value.__cause__, ImportError)

    def test_entry_symbol_returns_wrong_type(self, registry, tmp_path, quadratic_problem):
        write_plugin(tmp_path, "wrong-type", body="def get_solver_plugins():\n    return [42]\n")
        with pytest.raises(PluginLoadError, match="expected SolverPlugin"):
            SolverFactory("wrong-type", quadratic_problem, search_path=[tmp_path], registry=registry)

    def test_module_without_requested_name(self, registry, tmp_path, quadratic_problem):
        body = PLUGIN_TEMPLATE.format(name="other-name")
        write_plugin(tmp_path, "misnamed", body=body)
        with pytest.raises(PluginLoadError, match="does not provide solver 'misnamed'"):
            SolverFactory("misnamed", quadratic_problem, search_path=[tmp_path], registry=registry)
        assert "other-name" not in registry
        assert registry.loaded_modules() == {}

    def test_incompatible_problem_releases_module(self, registry, tmp_path, quadratic_problem):
        body = PLUGIN_TEMPLATE.format(name="linear-only").replace(
            "class StartingPointSolver(Solver):",
            "from optimodel.functions import LinearFunction\n\n\n"
            "class StartingPointSolver(Solver):\n"
            "    objective_kind = LinearFunction\n"
            "    constraint_kinds = (LinearFunction,)\n",
        )
        write_plugin(tmp_path, "linear-only", body=body)
        with pytest.raises(IncompatibleProblemError):
            SolverFactory("linear-only", quadratic_problem, search_path=[tmp_path], registry=registry)
        assert registry.loaded_modules() == {}
        assert "linear-only" not in registry

    def test_registered_name_wins_over_module(self, registry, tmp_path, quadratic_problem):
        write_plugin(tmp_path, "dummy")
        with SolverFactory("dummy", quadratic_problem, search_path=[tmp_path], registry=registry) as factory:
            assert isinstance(factory(), DummySolver)
        assert registry.loaded_modules() == {}


class TestEntryPoints:
    """Test discovery through the optimodel.solvers entry point group."""

    def test_callable_entry_point(self, registry, monkeypatch, quadratic_problem):
        def get_solver_plugins():
            return SolverPlugin.from_solver_class(DummySolver, "from-entry-point")

        monkeypatch.setattr(
            "optimodel.solvers.registry._find_entry_point",
            lambda name: FakeEntryPoint(name, get_solver_plugins) if name == "from-entry-point" else None,
        )
        with SolverFactory("from-entry-point", quadratic_problem, search_path=[], registry=registry) as factory:
            assert isinstance(factory.solver, DummySolver)
            assert registry.loaded_modules() == {"optimodel.solvers:from-entry-point": 1}
        assert "from-entry-point" not in registry

    def test_module_entry_point(self, registry, monkeypatch, quadratic_problem):
        from optimodel.solvers.backends import dummy

        monkeypatch.setattr(
            "optimodel.solvers.registry._find_entry_point",
            lambda name: FakeEntryPoint(name, dummy),
        )
        with pytest.raises(PluginLoadError, match="does not provide solver 'elsewhere'"):
            SolverFactory("elsewhere", quadratic_problem, search_path=[], registry=registry)
        assert "dummy" in registry

    def test_failing_entry_point(self, registry, monkeypatch, quadratic_problem):
        monkeypatch.setattr(
            "optimodel.solvers.registry._find_entry_point",
            lambda name: FakeEntryPoint(name, ImportError("missing dependency")),
        )
        with pytest.raises(PluginLoadError, match="missing dependency"):
            SolverFactory("failing", quadratic_problem, search_path=[], registry=registry)


class TestFactory:
    """Test SolverFactory with the built-in bridges."""

    def test_scenario_dummy_td(self, registry, rosenbrock):
        from optimodel.problem import Problem

        problem = Problem(rosenbrock, constraint_kinds=TwiceDifferentiableFunction)
        problem.set_starting_point([-1.2, 1.0])

        with SolverFactory("dummy-td", problem, search_path=[], registry=registry) as factory:
            solver = factory()
            assert isinstance(solver, DummyTwiceDifferentiableSolver)
            outcome = solver.minimum()
            assert isinstance(outcome, SolverError)
            assert solver.minimum() is outcome

    def test_weaker_problem_rejected(self, registry):
        from optimodel.functions import make_function
        from optimodel.problem import Problem

        objective = make_function(1, 1, fun=lambda x: [x[0]])
        problem = Problem(objective, Function)
        with pytest.raises(IncompatibleProblemError):
            SolverFactory("dummy-td", problem, search_path=[], registry=registry)

    def test_builtin_has_no_module_handle(self, registry, quadratic_problem):
        factory = SolverFactory("dummy", quadratic_problem, search_path=[], registry=registry)
        factory.close()
        assert not factory.closed
        assert isinstance(factory.solver, DummySolver)
