"""Tests for configuration and plugin types."""

import dataclasses

import numpy as np
import pytest

from hybrid_dynamics import (
    CancellationToken,
    Excitation,
    IntegratorTolerances,
    InvalidArgument,
    ModelPlugin,
    SimulationOptions,
    create_index,
)
from hybrid_dynamics.types import as_state_vector


def test_default_options():
    options = SimulationOptions()

    assert options.t_in == 0.0
    assert options.t_max == np.inf
    assert options.tolerances.rtol == 1e-6
    assert options.tolerances.atol == 1e-12
    assert options.tolerances.max_step == 0.01
    assert options.tolerances.method == "RK45"


def test_options_are_immutable():
    options = SimulationOptions(t_max=1.0)

    with pytest.raises(dataclasses.FrozenInstanceError):
        options.t_max = 2.0


def test_options_can_be_overridden_by_copy():
    options = SimulationOptions(t_max=5.0)
    tighter = dataclasses.replace(
        options, tolerances=dataclasses.replace(options.tolerances, rtol=1e-9)
    )

    assert tighter.t_max == 5.0
    assert tighter.tolerances.rtol == 1e-9
    assert tighter.tolerances.atol == options.tolerances.atol


@pytest.mark.parametrize(
    "kwargs",
    [
        {"t_in": 1.0, "t_max": 1.0},
        {"t_in": 2.0, "t_max": 1.0},
        {"t_in": np.inf},
        {"t_max": np.nan},
    ],
)
def test_invalid_time_span(kwargs):
    with pytest.raises(InvalidArgument):
        SimulationOptions(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"rtol": 0.0},
        {"atol": -1e-9},
        {"max_step": 0.0},
        {"method": "Euler"},
        {"event_time_tol": -1.0},
    ],
)
def test_invalid_tolerances(kwargs):
    with pytest.raises(InvalidArgument):
        IntegratorTolerances(**kwargs)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        IntegratorTolerances(method="Euler")


def test_model_plugin_requires_callables():
    with pytest.raises(InvalidArgument, match="jump_map"):
        ModelPlugin(flow_map=lambda *a: None, jump_set=lambda *a: None, jump_map=None)


def test_excitation_passes_parameters():
    excitation = Excitation(func=lambda y, z, s: s * y[0], params=np.array([2.0, 3.0]))

    np.testing.assert_array_equal(excitation(np.array([2.0]), np.array([])), [4.0, 6.0])


def test_create_index():
    Y = create_index("ContState", ["x", "dx", "y", "dy"])

    assert Y.x == 0
    assert Y.dy == 3
    assert len(Y) == 4
    assert np.array([1.0, 2.0, 3.0, 4.0])[Y.y] == 3.0


def test_create_index_rejects_duplicates():
    with pytest.raises(InvalidArgument):
        create_index("Bad", ["x", "x"])


def test_as_state_vector_copies():
    original = np.array([1.0, 2.0])
    vector = as_state_vector(original, "y0")
    vector[0] = 5.0

    assert original[0] == 1.0
    assert as_state_vector(3.0, "y0").shape == (1,)
    with pytest.raises(InvalidArgument):
        as_state_vector(np.eye(2), "y0")


def test_as_state_vector_keeps_mixed_values():
    vector = as_state_vector(("flight", 0.25), "z0", dtype=None)

    assert vector.dtype == object
    assert vector[1] + 0.5 == 0.75
    assert as_state_vector([1, 2], "z0", dtype=None).dtype.kind == "i"


def test_cancellation_token():
    token = CancellationToken()
    assert not token.cancelled

    token.cancel("unphysical state")
    token.cancel("second reason is ignored")

    assert token.cancelled
    assert token.reason == "unphysical state"
    assert token.wait(10.0) is True

    token.reset()

    assert not token.cancelled
    assert token.reason is None
    assert token.wait(0.0) is False
