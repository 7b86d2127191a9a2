"""Basic Hybrid Systems.

This module provides ready-made model plugins that can be imported and used
in scripts and tests.

Available systems:
- falling_mass: point mass dropped onto the ground, terminal at contact
- bouncing_ball: 1D bouncing ball with a coefficient of restitution
- slip: Spring Loaded Inverted Pendulum hopping from apex to apex
"""

from hybrid_dynamics.basic_hybrid_systems.bouncing_ball import hybrid_model as bouncing_ball
from hybrid_dynamics.basic_hybrid_systems.falling_mass import hybrid_model as falling_mass
from hybrid_dynamics.basic_hybrid_systems.slip import hybrid_model as slip

__all__ = ["bouncing_ball", "falling_mass", "slip"]
