"""
File logger callback for saving solver states to a JSON-lines log.

Useful for debugging and post-analysis of a solve.
"""

from pathlib import Path
from typing import List, Union
import json
import logging

from ..state import SolverState, StateRecord

logger = logging.getLogger(__name__)


class StateFileLogger:
    """
    Log each published state as one JSON line.

    Example:
        >>> state_log = StateFileLogger("run.jsonl")
        >>> solver.register_callback(state_log)
        >>> records = StateFileLogger.load_from_file("run.jsonl")
    """

    def __init__(self, log_file: Union[str, Path], mode: str = "w"):
        """
        Initialize file logger.

        Args:
            log_file: Path to log file
            mode: File mode ('w' for overwrite, 'a' for append)
        """
        if mode not in ("w", "a"):
            raise ValueError(f"mode must be 'w' or 'a', got {mode!r}")
        self.log_file = Path(log_file)
        self.mode = mode
        self.records: List[StateRecord] = []

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        if mode == "w":
            self.log_file.write_text("")

        logger.info(f"StateFileLogger initialized: {self.log_file}")

    def __call__(self, state: SolverState) -> None:
        record = state.to_record()
        self.records.append(record)

        try:
            with open(self.log_file, "a") as f:
                f.write(record.model_dump_json() + "\n")
        except OSError as e:
            logger.error(f"Failed to write state to {self.log_file}: {e}")

    def get_records(self) -> List[StateRecord]:
        """Get all logged records from memory."""
        return self.records.copy()

    @classmethod
    def load_from_file(cls, log_file: Union[str, Path]) -> List[StateRecord]:
        """
        Load records from a JSON-lines state log.

        Raises:
            FileNotFoundError: If the log file does not exist
        """
        log_path = Path(log_file)
        if not log_path.exists():
            raise FileNotFoundError(f"Log file not found: {log_file}")

        records = []
        with open(log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(StateRecord(**json.loads(line)))
                except (ValueError, TypeError) as e:
                    logger.warning(f"Failed to parse state line: {e}")
        return records
