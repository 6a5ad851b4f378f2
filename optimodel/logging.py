"""Logging utilities for the optimodel package."""

import logging
import logging.config
import os
from datetime import datetime
from typing import Optional, Union

import numpy
from numpy.typing import NDArray

from .config import get_settings

logger = logging.getLogger(__name__)

FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s from %(name)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def enable_logging(
    console_level: Optional[Union[int, str]] = None,
    file_level: Union[int, str] = logging.DEBUG,
    directory: Optional[str] = None,
) -> Optional[str]:
    """
    Install console (and optionally file) handlers on the ``optimodel`` logger.

    Args:
        console_level: Level for the console handler (defaults to
            OPTIMODEL_LOG_LEVEL, see optimodel.config)
        file_level: Level for the file handler
        directory: If given, a timestamped log file is created in it

    Returns:
        Path of the log file, or None when only console logging is enabled
    """
    if console_level is None:
        console_level = get_settings().log_level
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": console_level,
        },
    }
    file = None
    if directory is not None:
        os.makedirs(directory, exist_ok=True)
        time = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        file = os.path.join(directory, f"{time}.log")
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": file,
            "mode": "w",
            "formatter": "default",
            "level": file_level,
        }

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": FORMAT, "datefmt": DATEFMT},
        },
        "handlers": handlers,
        "loggers": {
            "optimodel": {
                "handlers": list(handlers),
                "level": logging.DEBUG,
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(config)
    logger.debug(f"Logging enabled (console={console_level}, file={file})")
    return file


def format_array_for_logging(array: NDArray) -> str:
    return numpy.array2string(
        numpy.asarray(array),
        max_line_width=1000,
        formatter={"float_kind": lambda x: "% .3e" % x},
    ).replace("\n", "")
