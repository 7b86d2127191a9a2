"""Falling Point Mass Hybrid System.

A point mass in free fall that stops when it reaches the ground.
States: [height, velocity, time]
Discrete states: none
Parameters: [g (gravity)]
Excitation (optional): [thrust acceleration]
"""

import numpy as np

from hybrid_dynamics import ModelPlugin, create_index

Y = create_index("FallingMassState", ["height", "velocity", "time"])
P = create_index("FallingMassParam", ["g"])


def default_parameters(g: float = 9.8) -> np.ndarray:
    return np.array([g])


def flow_map(y, z, p, excitation, token):
    dydt = np.zeros_like(y)
    dydt[Y.height] = y[Y.velocity]
    dydt[Y.velocity] = -p[P.g]
    if excitation is not None:
        dydt[Y.velocity] += excitation(y, z)[0]
    dydt[Y.time] = 1.0
    return dydt, None


def jump_set(y, z, p, excitation):
    # Ground contact: -height goes from negative to positive.
    return np.array([-y[Y.height]])


def jump_map(y, z, p, excitation, event_indices):
    return y, z, True


def hybrid_model() -> ModelPlugin:
    """
    Returns ModelPlugin: falling point mass, terminal at ground contact.
    """
    return ModelPlugin(flow_map=flow_map, jump_set=jump_set, jump_map=jump_map, name="falling_mass")
