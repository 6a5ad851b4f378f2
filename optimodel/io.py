"""
Human-readable printing helpers.

Every core entity exposes ``print_to(writer)`` and renders itself through an
IndentingWriter. Nested structures are indented by two spaces per level.

Usage:
    writer = IndentingWriter()
    writer.write("Problem:")
    with writer.indented():
        writer.line("Argument bounds: [0, 1]")
    print(writer.getvalue())
"""

from contextlib import contextmanager
from typing import Iterator, Sequence
import io

import numpy as np
import scipy.sparse

INDENT = "  "


class IndentingWriter:
    """
    Text writer with explicit indentation state.

    ``write`` appends to the current line, ``line`` starts a new line at the
    current indentation level, ``indented`` raises the level for a block.
    """

    def __init__(self, indent: str = INDENT):
        self._buffer = io.StringIO()
        self._indent = indent
        self._level = 0

    @property
    def level(self) -> int:
        return self._level

    def write(self, text: str) -> "IndentingWriter":
        self._buffer.write(text)
        return self

    def line(self, text: str = "") -> "IndentingWriter":
        self._buffer.write("\n" + self._indent * self._level + text)
        return self

    @contextmanager
    def indented(self) -> Iterator["IndentingWriter"]:
        self._level += 1
        try:
            yield self
        finally:
            self._level -= 1

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def __str__(self) -> str:
        return self.getvalue()


def format_scalar(value: float) -> str:
    """Format a real number, using ``inf``/``-inf`` for infinities."""
    value = float(value)
    if np.isinf(value):
        return "inf" if value > 0 else "-inf"
    return f"{value:g}"


def format_vector(vector) -> str:
    """Format a vector as ``[a, b, c]``."""
    return "[" + ", ".join(format_scalar(v) for v in np.asarray(vector).ravel()) + "]"


def format_matrix(matrix) -> str:
    """Format a dense or sparse matrix as nested rows."""
    if scipy.sparse.issparse(matrix):
        matrix = matrix.toarray()
    rows = [format_vector(row) for row in np.atleast_2d(np.asarray(matrix))]
    return "[" + ", ".join(rows) + "]"


def format_sequence(values: Sequence) -> str:
    """Format a sequence of printable items (intervals, scales) on one line."""
    parts = []
    for value in values:
        if isinstance(value, (int, float, np.floating, np.integer)):
            parts.append(format_scalar(value))
        else:
            parts.append(str(value))
    return ", ".join(parts)


def render(entity) -> str:
    """Render any object exposing ``print_to(writer)`` to a string."""
    writer = IndentingWriter()
    entity.print_to(writer)
    return writer.getvalue()
