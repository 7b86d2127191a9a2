"""
Hybrid Dynamics - Simulation of Hybrid Dynamical Systems

This package simulates systems whose continuous state flows under an ODE and
jumps discontinuously whenever one of a set of event functions crosses zero,
such as legged locomotion models alternating between flight and stance.

References:
    Remy, C. D., Buffinton, K., & Siegwart, R. (2011).
    A MATLAB Framework for Efficient Gait Creation.
    IEEE/RSJ International Conference on Intelligent Robots and Systems.
"""

from .cancellation import CancellationToken
from .exceptions import (
    HybridDynamicsError,
    IntegrationFailure,
    InvalidArgument,
    PluginFailure,
)
from .hybrid_simulator import HybridSimulator, simulate
from .integrators import IntegrationResult, integrate
from .recorders import NullRecorder, OutputRecorder, TrajectoryRecorder
from .types import (
    TIMEOUT,
    Excitation,
    IntegratorTolerances,
    ModelPlugin,
    SimulationOptions,
    create_index,
)

__version__ = "0.1.0"
__all__ = [
    "HybridSimulator",
    "simulate",
    "integrate",
    "IntegrationResult",
    "ModelPlugin",
    "Excitation",
    "IntegratorTolerances",
    "SimulationOptions",
    "TIMEOUT",
    "create_index",
    "CancellationToken",
    "OutputRecorder",
    "NullRecorder",
    "TrajectoryRecorder",
    "HybridDynamicsError",
    "InvalidArgument",
    "PluginFailure",
    "IntegrationFailure",
]
