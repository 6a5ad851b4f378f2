"""
Tests for SolverState and the typed parameter map.
"""

import numpy as np
import pytest

from optimodel.errors import ParameterNotFoundError, ParameterTypeError
from optimodel.state import ParameterMap, SolverState, StateParameter, StateRecord


class TestParameterMap:
    """Test strict typed lookup."""

    def test_round_trip_per_arm(self):
        params = ParameterMap()
        params.set_parameter("flag", True, "A flag")
        params.set_parameter("count", 3)
        params.set_parameter("tol", 1e-6)
        params.set_parameter("method", "SLSQP")
        params.set_parameter("weights", [1.0, 2.0])

        assert params.get_parameter("flag", bool) is True
        assert params.get_parameter("count", int) == 3
        assert params.get_parameter("tol", float) == 1e-6
        assert params.get_parameter("method", str) == "SLSQP"
        np.testing.assert_allclose(params.get_parameter("weights", np.ndarray), [1.0, 2.0])
        assert params["flag"].description == "A flag"

    def test_missing_key(self):
        with pytest.raises(ParameterNotFoundError, match="'absent'"):
            ParameterMap().get_parameter("absent", int)

    def test_missing_key_is_key_error(self):
        with pytest.raises(KeyError):
            ParameterMap()["absent"]

    def test_bool_is_not_int(self):
        params = ParameterMap({"flag": True})
        with pytest.raises(ParameterTypeError):
            params.get_parameter("flag", int)

    def test_int_is_not_float(self):
        params = ParameterMap({"count": 1})
        with pytest.raises(ParameterTypeError, match="holds a int, not a float"):
            params.get_parameter("count", float)

    def test_float_is_not_str(self):
        params = ParameterMap({"tol": 0.5})
        with pytest.raises(ParameterTypeError):
            params.get_parameter("tol", str)

    def test_numpy_scalars_are_normalized(self):
        params = ParameterMap()
        params.set_parameter("n", np.int64(4))
        params.set_parameter("x", np.float32(0.5))
        params.set_parameter("b", np.bool_(False))
        assert type(params.get_parameter("n")) is int
        assert params.get_parameter("x", float) == 0.5
        assert params.get_parameter("b", bool) is False
        assert params.get_parameter("n", np.int64) == 4

    def test_unsupported_value(self):
        with pytest.raises(ParameterTypeError, match="Unsupported"):
            ParameterMap().set_parameter("bad", {"a": 1})

    def test_unsupported_expected_type(self):
        params = ParameterMap({"count": 1})
        with pytest.raises(ParameterTypeError, match="not a parameter type"):
            params.get_parameter("count", dict)

    def test_vectors_are_copied(self):
        params = ParameterMap({"v": [1.0, 2.0]})
        v = params.get_parameter("v")
        v[0] = 100.0
        np.testing.assert_allclose(params.get_parameter("v"), [1.0, 2.0])

    def test_replace_and_remove(self):
        params = ParameterMap({"a": 1})
        params.set_parameter("a", "now a string")
        assert params.get_parameter("a", str) == "now a string"
        params.remove("a")
        assert "a" not in params
        with pytest.raises(ParameterNotFoundError):
            params.remove("a")

    def test_copy_is_independent(self):
        params = ParameterMap({"a": 1})
        copied = params.copy()
        copied.set_parameter("a", 2)
        assert params.get_parameter("a") == 1

    def test_to_dict(self):
        params = ParameterMap({"a": 1, "v": [1.0]})
        assert params.to_dict() == {"a": 1, "v": [1.0]}

    def test_parameter_arm(self):
        assert StateParameter(True).arm is bool
        assert StateParameter(2).arm is int
        assert StateParameter([1, 2]).arm is np.ndarray

    def test_print(self):
        params = ParameterMap()
        params.set_parameter("max-iterations", 10, "Maximum iterations")
        params.set_parameter("verbose", False)
        assert str(params) == (
            "Parameters:\n"
            "  max-iterations: 10 (Maximum iterations)\n"
            "  verbose: false"
        )


class TestSolverState:
    """Test solver state snapshots."""

    def test_scenario_iteration_parameter(self):
        state = SolverState(x=[0.0, 0.0])
        state.set_parameter("iteration", 7, "Current iteration")

        assert state.get_parameter("iteration", int) == 7
        with pytest.raises(ParameterTypeError):
            state.get_parameter("iteration", float)
        with pytest.raises(ParameterNotFoundError):
            state.get_parameter("missing", int)

    def test_defaults_from_problem(self, quadratic_problem):
        state = SolverState(quadratic_problem)
        np.testing.assert_array_equal(state.x, [0.0, 0.0])
        assert state.cost is None
        assert state.constraint_violation is None
        assert len(state.parameters) == 0

    def test_copy_is_independent(self):
        state = SolverState(x=[1.0], iteration=2)
        state.cost = 3.0
        state.set_parameter("a", 1)
        copied = state.copy()
        copied.x[0] = 9.0
        copied.set_parameter("a", 2)
        assert state.x[0] == 1.0
        assert state.get_parameter("a") == 1
        assert copied.cost == 3.0
        assert copied.iteration == 2

    def test_to_record(self):
        state = SolverState(x=[1.0, 2.0], iteration=4)
        state.cost = 0.5
        state.set_parameter("evaluations", 12)
        record = state.to_record()
        assert isinstance(record, StateRecord)
        assert record.iteration == 4
        assert record.x == [1.0, 2.0]
        assert record.cost == 0.5
        assert record.constraint_violation is None
        assert record.parameters == {"evaluations": 12}

        restored = StateRecord.model_validate_json(record.model_dump_json())
        assert restored.x == [1.0, 2.0]

    def test_print(self):
        state = SolverState(x=[1.0, 2.0], iteration=3)
        state.cost = 0.25
        state.set_parameter("evaluations", 5)
        text = str(state)
        assert text.startswith("Solver state:\n  Iteration: 3\n  x: [1, 2]\n  Cost: 0.25")
        assert "  Parameters:\n    evaluations: 5" in text
