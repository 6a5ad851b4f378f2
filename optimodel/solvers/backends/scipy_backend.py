"""
SciPy solver bridge.

Wraps scipy.optimize.minimize for differentiable problems:
- SLSQP: gradient + constraints + bounds (default)
- trust-constr: gradient + constraints + bounds, uses Hessians when the
  functions are twice differentiable
- L-BFGS-B: gradient + bounds (no constraints)

Parameters:
- "scipy.method": method name (str)
- "max-iterations": iteration limit (int)
- "tol": convergence and feasibility tolerance (float). trust-constr starts
  its barrier parameter at tol and stops once gradient, step and barrier
  parameter fall below tol / 100.

Each iteration publishes a SolverState with the current point, cost,
constraint violation and the parameters "iteration", "evaluations",
"gradient-evaluations", "hessian-evaluations" (when exact Hessians are used),
"best-cost" and "best-x". A callback requesting a stop interrupts the solve
with SolverError("interrupted").
"""

from typing import Any, Dict, List, Optional
import logging
import warnings

import numpy as np
from scipy.optimize import BFGS, Bounds, LinearConstraint, NonlinearConstraint, minimize

from ...functions.base import DifferentiableFunction, LinearFunction, TwiceDifferentiableFunction
from ...logging import format_array_for_logging
from ...problem import Constraint, Problem
from ...result import Result, ResultWithWarnings, SolverError
from ...state import SolverState
from ..base import Solver
from ..plugin import SolverPlugin
from ..wrapper import GradientWrapper, HessianWrapper, LagrangianHessianWrapper, ObjectiveWrapper, dense

logger = logging.getLogger(__name__)


class _Interrupted(Exception):
    """Raised from the iteration callback to leave scipy.optimize.minimize."""


def constraint_violation(problem: Problem, x: np.ndarray) -> float:
    """Largest distance of x (arguments and constraint outputs) to its bounds."""
    violation = 0.0
    for value, interval in zip(x, problem.argument_bounds):
        violation = max(violation, interval.lower - value, value - interval.upper)
    for entry in problem.constraints:
        for value, interval in zip(entry.function(x), entry.bounds):
            violation = max(violation, interval.lower - value, value - interval.upper)
    return float(violation)


class _IterationTracker:
    """scipy callback publishing one SolverState per iteration."""

    def __init__(
        self,
        solver: "ScipySolver",
        objective: ObjectiveWrapper,
        gradient: GradientWrapper,
        hessian: Optional[HessianWrapper] = None,
    ):
        self.solver = solver
        self.objective = objective
        self.gradient = gradient
        self.hessian = hessian
        self.iteration = 0
        self.last_result: Optional[Result] = None

    def publish(self, x: np.ndarray) -> None:
        problem = self.solver.problem
        x = np.array(x, dtype=float)
        self.last_result = self.solver.evaluate(x)

        state = SolverState(problem, x=x, iteration=self.iteration)
        state.cost = self.last_result.value
        state.constraint_violation = constraint_violation(problem, x)
        state.set_parameter("iteration", self.iteration, "current iteration")
        state.set_parameter("evaluations", self.objective.n_evals, "objective evaluations")
        state.set_parameter("gradient-evaluations", self.gradient.n_evals, "objective gradient evaluations")
        if self.hessian is not None:
            state.set_parameter("hessian-evaluations", self.hessian.n_evals, "objective Hessian evaluations")
        # nothing evaluated yet when publishing the starting point
        if self.objective.best_x is not None:
            state.set_parameter("best-cost", self.objective.best_f, "lowest objective value evaluated")
            state.set_parameter("best-x", self.objective.best_x, "point of the lowest objective value")
        logger.debug(
            f"Iteration {self.iteration}: cost={state.cost:g} "
            f"x={format_array_for_logging(x)}"
        )

        stop = self.solver.notify(state)
        self.iteration += 1
        if stop:
            raise _Interrupted()

    def __call__(self, xk, *args) -> None:
        # trust-constr passes (x, state), the other methods pass x only
        self.publish(xk)


class ScipySolver(Solver):
    """Bridge to scipy.optimize.minimize."""

    objective_kind = DifferentiableFunction
    constraint_kinds = (DifferentiableFunction,)

    # Method capabilities
    METHODS = {
        "SLSQP": {"constraints": True, "hessian": False},
        "trust-constr": {"constraints": True, "hessian": True},
        "L-BFGS-B": {"constraints": False, "hessian": False},
    }

    def initialize_parameters(self) -> None:
        self.set_parameter("scipy.method", "SLSQP", "scipy.optimize.minimize method")
        self.set_parameter("max-iterations", 100, "maximum number of iterations")
        self.set_parameter("tol", 1e-8, "convergence and feasibility tolerance")

    def solve(self):
        method = self.get_parameter("scipy.method", str)
        max_iterations = self.get_parameter("max-iterations", int)
        tol = self.get_parameter("tol", float)

        caps = self.METHODS.get(method)
        if caps is None:
            return SolverError(
                f"Unsupported scipy method '{method}'; expected one of {', '.join(self.METHODS)}"
            )
        problem = self.problem
        if problem.constraints and not caps["constraints"]:
            return SolverError(f"Method {method} does not support constraints")

        lower = np.array([b.lower for b in problem.argument_bounds])
        upper = np.array([b.upper for b in problem.argument_bounds])
        x0 = np.clip(self.initial_point(), lower, upper)

        objective = ObjectiveWrapper(problem.function)
        gradient = GradientWrapper(problem.function)
        hessian = None

        kwargs: Dict[str, Any] = {}
        if caps["hessian"]:
            if isinstance(problem.function, TwiceDifferentiableFunction):
                hessian = HessianWrapper(problem.function)
                kwargs["hess"] = hessian
            else:
                kwargs["hess"] = BFGS()
        tracker = _IterationTracker(self, objective, gradient, hessian)

        bounds = None
        if np.isfinite(lower).any() or np.isfinite(upper).any():
            bounds = Bounds(lower, upper)

        options: Dict[str, Any] = {"maxiter": max_iterations}
        if method == "trust-constr":
            constraints = [self._trust_constr_constraint(entry, x0) for entry in problem.constraints]
            # interior-point solutions are off by about the barrier parameter
            options.update(
                gtol=0.01 * tol,
                xtol=0.01 * tol,
                barrier_tol=0.01 * tol,
                initial_barrier_parameter=tol,
                initial_barrier_tolerance=tol,
            )
            method_tol = None
            rows = None
        else:
            constraints, rows = self._slsqp_all_constraints()
            method_tol = tol

        logger.info(
            f"Running scipy {method} on {problem.input_size} variables, "
            f"{len(problem.constraints)} constraints"
        )

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                tracker.publish(x0)
                raw = minimize(
                    fun=objective,
                    x0=x0,
                    method=method,
                    jac=gradient,
                    bounds=bounds,
                    constraints=constraints or (),
                    tol=method_tol,
                    options=options,
                    callback=tracker,
                    **kwargs,
                )
            except _Interrupted:
                logger.info(f"scipy {method} interrupted at iteration {tracker.iteration - 1}")
                return SolverError("interrupted", last_state=tracker.last_result)
            except Exception as e:
                logger.error(f"SciPy optimization failed: {e}")
                return SolverError(f"Optimization failed: {e}", last_state=tracker.last_result)

        x = np.array(raw.x, dtype=float)
        final = self.evaluate(x)
        final.iterations = int(getattr(raw, "nit", tracker.iteration))
        final.raw_result = raw
        multipliers = self._multipliers(raw, rows)

        if not raw.success:
            return SolverError(str(raw.message), last_state=final)

        messages = [
            str(w.message) for w in caught
            if not issubclass(w.category, (DeprecationWarning, PendingDeprecationWarning))
        ]
        violation = constraint_violation(problem, x)
        if violation > tol:
            messages.append(f"Constraint violation {violation:g} exceeds tolerance {tol:g}")

        fields = dict(
            x=final.x,
            value=final.value,
            constraints=final.constraints,
            multipliers=multipliers,
            iterations=final.iterations,
            raw_result=raw,
        )
        if messages:
            return ResultWithWarnings(warnings=messages, **fields)
        return Result(**fields)

    def _slsqp_all_constraints(self):
        """
        SLSQP constraint dicts for the whole problem.

        Returns:
            (constraints, rows) where rows[i] = (output index, sign) maps the
            i-th SLSQP multiplier back to a constraint output. SLSQP orders
            its multipliers equalities first, then inequalities.
        """
        constraints = []
        eq_rows = []
        ineq_rows = []
        offset = 0
        for entry in self.problem.constraints:
            for constraint, rows in self._slsqp_constraints(entry, offset):
                constraints.append(constraint)
                if constraint["type"] == "eq":
                    eq_rows.extend(rows)
                else:
                    ineq_rows.extend(rows)
            offset += entry.output_size
        return constraints, eq_rows + ineq_rows

    def _slsqp_constraints(self, entry: Constraint, offset: int = 0):
        """Equality and inequality dicts for one constraint, rows in output order."""
        function = entry.function
        lower = np.array([b.lower for b in entry.bounds])
        upper = np.array([b.upper for b in entry.bounds])
        eq = [j for j, b in enumerate(entry.bounds) if b.is_equality]
        lo = [j for j, b in enumerate(entry.bounds) if b.has_lower and not b.is_equality]
        hi = [j for j, b in enumerate(entry.bounds) if b.has_upper and not b.is_equality]

        result = []
        if eq:
            result.append((
                {
                    "type": "eq",
                    "fun": lambda x: function(x)[eq] - lower[eq],
                    "jac": lambda x: dense(function.jacobian(x))[eq],
                },
                [(offset + j, 1.0) for j in eq],
            ))
        if lo or hi:
            def fun(x):
                values = function(x)
                return np.concatenate([values[lo] - lower[lo], upper[hi] - values[hi]])

            def jac(x):
                jacobian = dense(function.jacobian(x))
                return np.vstack([jacobian[lo], -jacobian[hi]])

            rows = [(offset + j, 1.0) for j in lo] + [(offset + j, -1.0) for j in hi]
            result.append(({"type": "ineq", "fun": fun, "jac": jac}, rows))
        return result

    def _trust_constr_constraint(self, entry: Constraint, x0: np.ndarray):
        function = entry.function
        lower = np.array([b.lower for b in entry.bounds])
        upper = np.array([b.upper for b in entry.bounds])

        if isinstance(function, LinearFunction):
            # g(x) = A x + b with constant A
            offset = function(np.zeros(function.input_size))
            return LinearConstraint(function.jacobian(x0), lower - offset, upper - offset)

        hess = BFGS()
        if isinstance(function, TwiceDifferentiableFunction):
            hess = LagrangianHessianWrapper(function)
        return NonlinearConstraint(function, lower, upper, jac=function.jacobian, hess=hess)

    def _multipliers(self, raw, rows=None) -> Optional[np.ndarray]:
        """One multiplier per constraint output, in constraint order."""
        if rows is not None:
            return self._slsqp_multipliers(raw, rows)
        v = getattr(raw, "v", None)
        if v is None:
            return None
        # trust-constr appends the bound multipliers after the constraints'
        parts = [np.atleast_1d(np.asarray(part, dtype=float)) for part in v[:len(self.problem.constraints)]]
        if not parts:
            return None
        return np.concatenate(parts)

    def _slsqp_multipliers(self, raw, rows) -> Optional[np.ndarray]:
        # only recent scipy releases report SLSQP multipliers
        values = getattr(raw, "multipliers", None)
        if values is None or not rows:
            return None
        values = np.atleast_1d(np.asarray(values, dtype=float))
        if len(values) != len(rows):
            logger.warning(f"Expected {len(rows)} SLSQP multipliers, got {len(values)}")
            return None
        result = np.zeros(sum(entry.output_size for entry in self.problem.constraints))
        for (index, sign), value in zip(rows, values):
            result[index] += sign * value
        return result


def get_solver_plugins() -> List[SolverPlugin]:
    return [SolverPlugin.from_solver_class(ScipySolver, "scipy")]
