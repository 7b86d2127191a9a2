import numpy as np
import pytest

from hybrid_dynamics import ModelPlugin


def drop_flow_map(y, z, p, excitation, token):
    """Free fall of a point mass. y = [height, velocity]."""
    return np.array([y[1], -p[0]]), None


@pytest.fixture
def drop_model():
    """Point mass that stops when it reaches the ground."""
    return ModelPlugin(
        flow_map=drop_flow_map,
        jump_set=lambda y, z, p, excitation: np.array([-y[0]]),
        jump_map=lambda y, z, p, excitation, events: (y, z, True),
        name="drop",
    )


@pytest.fixture
def drop_state():
    return np.array([1.0, 0.0]), np.array([0.0]), np.array([9.8])
