"""
Tests for the printing helpers.
"""

import math

import numpy as np
import scipy.sparse

from optimodel.io import (
    IndentingWriter,
    format_matrix,
    format_scalar,
    format_sequence,
    format_vector,
    render,
)


class TestIndentingWriter:
    """Test indentation state."""

    def test_nested_blocks(self):
        writer = IndentingWriter()
        writer.write("Outer:")
        with writer.indented():
            writer.line("first")
            with writer.indented():
                writer.line("nested")
            writer.line("second")
        writer.line("back")
        assert writer.getvalue() == "Outer:\n  first\n    nested\n  second\nback"

    def test_level_is_restored_on_error(self):
        writer = IndentingWriter()
        try:
            with writer.indented():
                assert writer.level == 1
                raise RuntimeError("interrupted")
        except RuntimeError:
            pass
        assert writer.level == 0

    def test_custom_indent(self):
        writer = IndentingWriter(indent="\t")
        with writer.indented():
            writer.line("x")
        assert str(writer) == "\n\tx"


class TestFormatting:
    """Test number, vector and matrix formatting."""

    def test_scalars(self):
        assert format_scalar(1.0) == "1"
        assert format_scalar(0.25) == "0.25"
        assert format_scalar(math.inf) == "inf"
        assert format_scalar(-math.inf) == "-inf"

    def test_vector(self):
        assert format_vector(np.array([1.0, -2.5])) == "[1, -2.5]"
        assert format_vector([]) == "[]"

    def test_matrix(self):
        assert format_matrix([[1.0, 0.0], [0.0, 1.0]]) == "[[1, 0], [0, 1]]"
        assert format_matrix(scipy.sparse.eye(2, format="csr")) == "[[1, 0], [0, 1]]"

    def test_sequence(self):
        assert format_sequence([1.0, 2, "x"]) == "1, 2, x"

    def test_render(self):
        class Entity:
            def print_to(self, writer):
                return writer.write("entity")

        assert render(Entity()) == "entity"
