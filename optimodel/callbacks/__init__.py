"""
Iteration callbacks for solver progress.
"""

from .base import CallbackManager, IterationCallback
from .capture import StateCapture
from .file_logger import StateFileLogger
from .rich_console import RichConsoleCallback

__all__ = [
    # Core
    "CallbackManager",
    "IterationCallback",
    # Implementations
    "StateCapture",
    "StateFileLogger",
    "RichConsoleCallback",
]
