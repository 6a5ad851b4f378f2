"""
Rich console callback for terminal progress output.

Uses the rich library for a header panel and a table row per iteration.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..io import format_scalar
from ..logging import format_array_for_logging
from ..state import SolverState


class RichConsoleCallback:
    """
    Terminal output of solver progress using rich.

    Example:
        >>> solver.register_callback(RichConsoleCallback(title="scipy SLSQP"))
    """

    def __init__(self, title: str = "Optimization", every: int = 1,
                 show_x: bool = True, console: Optional[Console] = None):
        """
        Args:
            title: Panel title printed before the first state
            every: Render one state out of ``every``
            show_x: Include the current point in each row
            console: Console to print to (defaults to stdout)
        """
        if every < 1:
            raise ValueError(f"every must be >= 1, got {every}")
        self.console = console or Console()
        self.title = title
        self.every = every
        self.show_x = show_x
        self._started = False

    def __call__(self, state: SolverState) -> None:
        if not self._started:
            self.console.print(Panel(
                f"[bold cyan]{self.title}[/bold cyan]\n"
                f"Variables: {state.x.shape[0]}",
                border_style="cyan"
            ))
            self._started = True

        if state.iteration % self.every:
            return

        table = Table(show_header=state.iteration == 0, box=None)
        table.add_column("Iter", justify="right", style="bold")
        table.add_column("Cost", justify="right")
        table.add_column("Violation", justify="right")
        if self.show_x:
            table.add_column("x")

        row = [
            str(state.iteration),
            "-" if state.cost is None else format_scalar(state.cost),
            "-" if state.constraint_violation is None else format_scalar(state.constraint_violation),
        ]
        if self.show_x:
            row.append(format_array_for_logging(state.x))
        table.add_row(*row)
        self.console.print(table)

    def reset(self) -> None:
        """Print the header panel again on the next state."""
        self._started = False
