"""
Solver plugin descriptor.

A plugin module exports ``get_solver_plugins()`` returning one SolverPlugin
or a list of them:

    def get_solver_plugins():
        return SolverPlugin.from_solver_class(MySolver, name="my-solver")
"""

from typing import Callable, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import IncompatibleProblemError
from ..functions.base import Function, widens_to
from ..problem import Problem

ENTRY_SYMBOL = "get_solver_plugins"


class SolverPlugin(BaseModel):
    """
    Named solver factory with the problem kinds it requires.

    Attributes:
        name: Registry key (e.g. "scipy", "dummy-td")
        objective_kind: Weakest objective kind the solver accepts
        constraint_kinds: Constraint kinds the solver accepts
        constructor: Callable building a solver bound to a problem
        description: One-line description
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str = Field(..., min_length=1, description="Registry key")
    objective_kind: Type[Function] = Field(Function, description="Required objective kind")
    constraint_kinds: Tuple[Type[Function], ...] = Field(
        (Function,), description="Accepted constraint kinds"
    )
    constructor: Callable = Field(..., description="constructor(problem) -> Solver")
    description: str = Field("", description="One-line description")

    @field_validator("constraint_kinds", mode="before")
    @classmethod
    def normalize_kinds(cls, value):
        if isinstance(value, type):
            value = (value,)
        value = tuple(value)
        if not value:
            raise ValueError("At least one constraint kind is required")
        return value

    def incompatibility(self, problem: Problem) -> Optional[str]:
        """Reason ``problem`` cannot be handed to this solver, or None."""
        if not widens_to(problem.objective_kind, self.objective_kind):
            return (
                f"solver '{self.name}' requires a {self.objective_kind.__name__} objective, "
                f"got {problem.objective_kind.__name__}"
            )
        for kind in problem.constraint_kinds:
            if not any(widens_to(kind, target) for target in self.constraint_kinds):
                accepted = ", ".join(k.__name__ for k in self.constraint_kinds)
                return (
                    f"solver '{self.name}' accepts constraints of kinds ({accepted}), "
                    f"got {kind.__name__}"
                )
        return None

    def accepts(self, problem: Problem) -> bool:
        return self.incompatibility(problem) is None

    def create(self, problem: Problem):
        """
        Build a solver bound to ``problem``.

        Raises:
            IncompatibleProblemError: If the problem kinds do not widen to the
                solver's kinds
        """
        reason = self.incompatibility(problem)
        if reason is not None:
            raise IncompatibleProblemError(reason)
        return self.constructor(problem)

    @classmethod
    def from_solver_class(
        cls, solver_class, name: str, description: Optional[str] = None
    ) -> "SolverPlugin":
        """Describe a Solver subclass using its declared kinds."""
        if description is None:
            doc = (solver_class.__doc__ or "").strip()
            description = doc.splitlines()[0] if doc else ""
        return cls(
            name=name,
            objective_kind=solver_class.objective_kind,
            constraint_kinds=solver_class.constraint_kinds,
            constructor=solver_class,
            description=description,
        )

    def info(self) -> dict:
        return {
            "name": self.name,
            "objective_kind": self.objective_kind.__name__,
            "constraint_kinds": [k.__name__ for k in self.constraint_kinds],
            "description": self.description,
        }
