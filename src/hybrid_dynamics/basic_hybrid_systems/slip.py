"""SLIP (Spring Loaded Inverted Pendulum) Hybrid System.

A point mass on a massless spring leg, simulated for one stride from apex to
apex on flat ground.
States: [x, dx, y, dy, time] - horizontal/vertical position and velocity, elapsed time
Discrete states: [phase, contact_x] - current phase and foot position during stance
Phases: FLIGHT (1) -> STANCE (2) -> FLIGHT_AFTER_LIFTOFF (3)
Parameters: [g, l_0 (rest length), m_0 (mass), k (spring stiffness),
             ang_att (angle of attack), init_ang_att, wr (leg retraction rate)]

The angle of attack rotates over time as ang_att = init_ang_att - wr * time
(swing leg retraction). The flow map recomputes it and returns the updated
parameter vector.
"""

from enum import IntEnum

import numpy as np

from hybrid_dynamics import ModelPlugin, create_index

Y = create_index("SlipContState", ["x", "dx", "y", "dy", "time"])
Z = create_index("SlipDiscState", ["phase", "contact_x"])
P = create_index("SlipParam", ["g", "l_0", "m_0", "k", "ang_att", "init_ang_att", "wr"])
E = create_index("SlipEvent", ["touchdown", "liftoff", "apex"])

# Largest foot penetration into the terrain tolerated at the start of a stride.
FOOT_PENETRATION_TOL = 0.0005


class Phase(IntEnum):
    FLIGHT = 1
    STANCE = 2
    FLIGHT_AFTER_LIFTOFF = 3


def ground_height(x: float) -> float:
    return 0.0


def default_parameters(
    g: float = 1.0,
    l_0: float = 1.0,
    m_0: float = 1.0,
    k: float = 20.0,
    ang_att: float = 0.3,
    wr: float = 0.0,
) -> np.ndarray:
    p = np.zeros(len(P))
    p[P.g] = g
    p[P.l_0] = l_0
    p[P.m_0] = m_0
    p[P.k] = k
    p[P.ang_att] = ang_att
    p[P.init_ang_att] = ang_att
    p[P.wr] = wr
    return p


def initial_states(x=0.0, dx=1.0, y=1.2, dy=0.0):
    """Continuous and discrete states at the start of a stride (flight, no contact)."""
    return np.array([x, dx, y, dy, 0.0]), np.array([float(Phase.FLIGHT), 0.0])


def foot_point(y, p):
    """Foot position of the swing leg held at the angle of attack."""
    foot_x = y[Y.x] + p[P.l_0] * np.sin(p[P.ang_att])
    foot_y = y[Y.y] - p[P.l_0] * np.cos(p[P.ang_att])
    return foot_x, foot_y


def leg_length_and_angle(y, z):
    ground = ground_height(z[Z.contact_x])
    l_leg = np.hypot(y[Y.x] - z[Z.contact_x], y[Y.y] - ground)
    gamma_leg = np.arctan2(z[Z.contact_x] - y[Y.x], y[Y.y] - ground)
    return l_leg, gamma_leg


def flow_map(y, z, p, excitation, token):
    p = np.array(p, copy=True)
    p[P.ang_att] = p[P.init_ang_att] - p[P.wr] * y[Y.time]

    dydt = np.zeros_like(y)
    dydt[Y.x] = y[Y.dx]
    dydt[Y.y] = y[Y.dy]
    dydt[Y.time] = 1.0

    phase = Phase(int(z[Z.phase]))
    if y[Y.y] < ground_height(y[Y.x]):
        token.cancel("body below ground, try another set of parameters")
    elif phase == Phase.FLIGHT and y[Y.time] == 0.0:
        # A foot that starts inside the terrain can never trigger touchdown.
        foot_x, foot_y = foot_point(y, p)
        if foot_y < ground_height(foot_x) - FOOT_PENETRATION_TOL:
            token.cancel("leg falls over, try another set of parameters")

    if phase == Phase.STANCE:
        l_leg, gamma_leg = leg_length_and_angle(y, z)
        f_spring = (p[P.l_0] - l_leg) * p[P.k]
        dydt[Y.dx] = f_spring * -np.sin(gamma_leg) / p[P.m_0]
        dydt[Y.dy] = f_spring * np.cos(gamma_leg) / p[P.m_0] - p[P.g]
    else:
        dydt[Y.dx] = 0.0
        dydt[Y.dy] = -p[P.g]
    return dydt, p


def jump_set(y, z, p, excitation):
    # Components that cannot fire in the current phase are held at -1.
    e = -np.ones(len(E))
    phase = Phase(int(z[Z.phase]))
    if phase == Phase.FLIGHT:
        foot_x, foot_y = foot_point(y, p)
        e[E.touchdown] = ground_height(foot_x) - foot_y
    elif phase == Phase.STANCE:
        l_leg, _ = leg_length_and_angle(y, z)
        e[E.liftoff] = l_leg - p[P.l_0]
    else:
        e[E.apex] = -y[Y.dy]
    return e


def jump_map(y, z, p, excitation, event_indices):
    y_plus = np.array(y, copy=True)
    z_plus = np.array(z, dtype=float, copy=True)
    is_terminal = False
    for event in event_indices:
        if event == E.touchdown:
            z_plus[Z.phase] = Phase.STANCE
            z_plus[Z.contact_x], _ = foot_point(y, p)
        elif event == E.liftoff:
            z_plus[Z.phase] = Phase.FLIGHT_AFTER_LIFTOFF
        elif event == E.apex:
            is_terminal = True
    return y_plus, z_plus, is_terminal


def hybrid_model() -> ModelPlugin:
    """
    Returns ModelPlugin: SLIP model running one stride, terminal at the apex after liftoff.
    """
    return ModelPlugin(flow_map=flow_map, jump_set=jump_set, jump_map=jump_map, name="slip")
