"""
Tests for logging setup.
"""

import logging

import numpy as np
import pytest

from optimodel.config import LOG_LEVEL_ENV
from optimodel.logging import enable_logging, format_array_for_logging


@pytest.fixture(autouse=True)
def _restore(restore_optimodel_logger):
    yield


def test_console_only(monkeypatch):
    """Test console logging at the environment level."""
    monkeypatch.setenv(LOG_LEVEL_ENV, "info")
    assert enable_logging() is None

    package_logger = logging.getLogger("optimodel")
    assert not package_logger.propagate
    assert [type(h) for h in package_logger.handlers] == [logging.StreamHandler]
    assert package_logger.handlers[0].level == logging.INFO


def test_file_logging(tmp_path):
    """Test that a timestamped log file receives package records."""
    path = enable_logging(console_level="ERROR", directory=str(tmp_path / "logs"))
    assert path is not None
    assert path.endswith(".log")

    logging.getLogger("optimodel.tests").debug("recorded in file")
    for handler in logging.getLogger("optimodel").handlers:
        handler.flush()

    with open(path) as f:
        content = f.read()
    assert "DEBUG from optimodel.tests: recorded in file" in content


def test_format_array_for_logging():
    """Test compact, single-line array formatting."""
    text = format_array_for_logging(np.array([1.0, -0.5]))
    assert "\n" not in text
    assert "1.000e+00" in text
    assert "-5.000e-01" in text
