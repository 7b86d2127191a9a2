"""1D Bouncing Ball Hybrid System.

States: [q, q_dot, time] - height, vertical velocity, elapsed time
Discrete states: [n_bounces]
Parameters: [e (coefficient of restitution), g (gravity), max_bounces]
"""

import numpy as np

from hybrid_dynamics import ModelPlugin, create_index

Y = create_index("BouncingBallState", ["q", "q_dot", "time"])
Z = create_index("BouncingBallDiscState", ["n_bounces"])
P = create_index("BouncingBallParam", ["e", "g", "max_bounces"])


def default_parameters(e: float = 0.8, g: float = 9.81, max_bounces: int = 3) -> np.ndarray:
    return np.array([e, g, float(max_bounces)])


def flow_map(y, z, p, excitation, token):
    # Free fall under gravity in every phase.
    dydt = np.zeros_like(y)
    dydt[Y.q] = y[Y.q_dot]
    dydt[Y.q_dot] = -p[P.g]
    dydt[Y.time] = 1.0
    return dydt, None


def jump_set(y, z, p, excitation):
    # Guard triggers when ball hits ground: q <= 0
    return np.array([-y[Y.q]])


def jump_map(y, z, p, excitation, event_indices):
    # Position stays the same, velocity reverses with energy loss
    y_plus = np.array(y, copy=True)
    y_plus[Y.q_dot] = -p[P.e] * y[Y.q_dot]
    z_plus = np.array(z, dtype=float, copy=True)
    z_plus[Z.n_bounces] += 1
    return y_plus, z_plus, z_plus[Z.n_bounces] >= p[P.max_bounces]


def hybrid_model() -> ModelPlugin:
    """
    Returns ModelPlugin: 1D bouncing ball, terminal after max_bounces bounces.
    """
    return ModelPlugin(
        flow_map=flow_map, jump_set=jump_set, jump_map=jump_map, name="bouncing_ball"
    )
