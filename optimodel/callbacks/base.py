"""
Iteration callback management.

Solver bridges publish a SolverState per iteration; callbacks receive it
synchronously on the solving thread, in registration order. A callback may
request early termination by returning a truthy value.

Callbacks must not mutate solver internals. A callback that raises is logged
and skipped: it never aborts the solve.
"""

from typing import Any, Callable, List
import logging

from ..state import SolverState

logger = logging.getLogger(__name__)

# A callback receives a state and may return True to request a stop.
IterationCallback = Callable[[SolverState], Any]


def _callback_name(callback) -> str:
    return getattr(callback, "__name__", None) or type(callback).__name__


class CallbackManager:
    """
    Manages iteration callbacks, handles errors.

    Example:
        >>> manager = CallbackManager()
        >>> manager.register(capture)
        >>> stop = manager.emit(state)
    """

    def __init__(self):
        self.callbacks: List[IterationCallback] = []

    def register(self, callback: IterationCallback) -> None:
        """
        Add callback to list.

        Raises:
            TypeError: If callback is not callable
        """
        if not callable(callback):
            raise TypeError(f"Callback must be callable, got {type(callback)}")
        self.callbacks.append(callback)
        logger.debug(f"Registered callback: {_callback_name(callback)}")

    def unregister(self, callback: IterationCallback) -> None:
        """Remove callback from list (no-op if absent)."""
        if callback in self.callbacks:
            self.callbacks.remove(callback)
            logger.debug(f"Unregistered callback: {_callback_name(callback)}")

    def emit(self, state: SolverState) -> bool:
        """
        Send a state to all registered callbacks.

        Every callback runs, even after one requested a stop.

        Args:
            state: Snapshot to publish

        Returns:
            True if any callback requested early termination
        """
        stop = False
        for callback in list(self.callbacks):
            try:
                if callback(state):
                    stop = True
            except Exception as e:
                logger.error(
                    f"Callback {_callback_name(callback)} failed with error: {e}",
                    exc_info=True,
                )
        if stop:
            logger.info(f"Stop requested by a callback at iteration {state.iteration}")
        return stop

    def clear(self) -> None:
        """Remove all callbacks."""
        self.callbacks.clear()
        logger.debug("Cleared all callbacks")

    def __len__(self) -> int:
        return len(self.callbacks)
