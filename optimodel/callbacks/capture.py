"""
State capture callback for testing.

Captures copies of all published states in memory for assertions.
"""

from typing import List, Optional

from ..state import SolverState


class StateCapture:
    """
    Callback that captures solver states.

    Optionally requests a stop once ``stop_after`` states were captured.

    Example:
        >>> capture = StateCapture()
        >>> solver.register_callback(capture)
        >>> solver.minimum()
        >>> assert capture.iterations == sorted(capture.iterations)
    """

    def __init__(self, stop_after: Optional[int] = None):
        self.states: List[SolverState] = []
        self.stop_after = stop_after

    def __call__(self, state: SolverState) -> bool:
        self.states.append(state.copy())
        return self.stop_after is not None and len(self.states) >= self.stop_after

    @property
    def iterations(self) -> List[int]:
        return [s.iteration for s in self.states]

    def get_last(self) -> Optional[SolverState]:
        return self.states[-1] if self.states else None

    def get_first(self) -> Optional[SolverState]:
        return self.states[0] if self.states else None

    def clear(self) -> None:
        self.states.clear()

    def __len__(self) -> int:
        return len(self.states)

    def __repr__(self) -> str:
        return f"StateCapture({len(self)} states)"

    def assert_count(self, expected: int) -> None:
        """
        Assert that the number of captured states matches expected.

        Raises:
            AssertionError: If count doesn't match
        """
        actual = len(self.states)
        assert actual == expected, f"Expected {expected} states, got {actual}"

    def assert_monotonic(self) -> None:
        """
        Assert that iterations are strictly increasing.

        Raises:
            AssertionError: If two states are out of order
        """
        iterations = self.iterations
        for previous, current in zip(iterations, iterations[1:]):
            assert current > previous, f"Iteration {current} published after {previous}"
