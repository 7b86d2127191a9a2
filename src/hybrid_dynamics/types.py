"""Type definitions for hybrid dynamical systems.

This module provides dataclass definitions for the model plugin (flow map,
jump set, jump map), the optional excitation, and the run configuration.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Optional, Type

import numpy as np

from .exceptions import InvalidArgument

# Returned as the final time when the time budget ran out before a terminal event.
TIMEOUT = -1.0

INTEGRATION_METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")


@dataclass
class ModelPlugin:
    """The three capabilities that define a hybrid model.

    Attributes:
        flow_map: f(y, z, p, excitation, token) -> (dydt, p_updated). Continuous
            dynamics. `p_updated` replaces the parameter vector for all later
            calls of the run; return None to leave it unchanged.
        jump_set: g(y, z, p, excitation) -> e. Event function vector; event i
            fires when e[i] crosses zero in positive direction.
        jump_map: r(y, z, p, excitation, event_indices) -> (y_plus, z_plus, is_terminal).
            Discrete transition applied at the events in `event_indices`.
        name: Optional label used in log messages.
    """

    flow_map: Callable
    jump_set: Callable
    jump_map: Callable
    name: str = "model"

    def __post_init__(self) -> None:
        """Validate that every capability is callable.

        Raises:
            InvalidArgument: If a capability is not callable.
        """
        for capability in ("flow_map", "jump_set", "jump_map"):
            if not callable(getattr(self, capability)):
                raise InvalidArgument(
                    f"ModelPlugin.{capability} must be callable, "
                    f"got {type(getattr(self, capability)).__name__}"
                )


@dataclass
class Excitation:
    """External input applied to an active system.

    Attributes:
        func: u(y, z, s) returning the excitation input vector.
        params: Excitation parameter vector 's'.
    """

    func: Callable
    params: Any = field(default_factory=lambda: np.array([]))

    def __post_init__(self) -> None:
        if not callable(self.func):
            raise InvalidArgument("Excitation.func must be callable")

    def __call__(self, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        return self.func(y, z, self.params)


@dataclass(frozen=True)
class IntegratorTolerances:
    """Settings handed to the adaptive integrator.

    Attributes:
        rtol: Relative error tolerance.
        atol: Absolute error tolerance.
        max_step: Largest step the integrator may take.
        method: scipy solver name, one of INTEGRATION_METHODS.
        event_time_tol: Two zero-crossings closer than event_time_tol * max(1, |t|)
            are reported as one simultaneous event.
    """

    rtol: float = 1e-6
    atol: float = 1e-12
    max_step: float = 0.01
    method: str = "RK45"
    event_time_tol: float = 1e-12

    def __post_init__(self) -> None:
        if self.rtol <= 0 or self.atol <= 0:
            raise InvalidArgument(
                f"Tolerances must be positive, got rtol={self.rtol}, atol={self.atol}"
            )
        if not self.max_step > 0:
            raise InvalidArgument(f"max_step must be positive, got {self.max_step}")
        if self.method not in INTEGRATION_METHODS:
            raise InvalidArgument(
                f"Unknown integration method '{self.method}'. "
                f"Available methods: {INTEGRATION_METHODS}"
            )
        if self.event_time_tol < 0:
            raise InvalidArgument(
                f"event_time_tol must be non-negative, got {self.event_time_tol}"
            )


@dataclass(frozen=True)
class SimulationOptions:
    """Configuration of a single simulation run.

    Attributes:
        t_in: Simulation start time.
        t_max: Time budget. When it is reached without a terminal event the
            run returns TIMEOUT as final time.
        tolerances: Integrator settings.
    """

    t_in: float = 0.0
    t_max: float = np.inf
    tolerances: IntegratorTolerances = field(default_factory=IntegratorTolerances)

    def __post_init__(self) -> None:
        if np.isnan(self.t_in) or np.isnan(self.t_max) or not np.isfinite(self.t_in):
            raise InvalidArgument(f"Invalid time span [{self.t_in}, {self.t_max}]")
        if self.t_max <= self.t_in:
            raise InvalidArgument(
                f"t_max ({self.t_max}) must be greater than t_in ({self.t_in})"
            )


def create_index(name: str, fields: list[str]) -> Type[IntEnum]:
    """Create named positions for a state or parameter vector.

    Lets model code write `y[Y.dx]` instead of `y[1]`. The enum is built once,
    at import time of the model, and never changes afterwards.

    Args:
        name: Name of the enum class.
        fields: Vector component names, in vector order.

    Returns:
        IntEnum mapping each field name to its position.

    Raises:
        InvalidArgument: If a field name is repeated.

    Example:
        >>> Y = create_index("ContState", ["x", "dx", "y", "dy", "time"])
        >>> Y.dy
        <ContState.dy: 3>
    """
    if len(set(fields)) != len(fields):
        raise InvalidArgument(f"Duplicate field names in index '{name}': {fields}")
    return IntEnum(name, [(f, i) for i, f in enumerate(fields)])


def as_state_vector(value: Any, label: str, dtype: Optional[type] = float) -> np.ndarray:
    """Copy `value` into a fresh 1-D numpy array.

    With dtype=None the dtype is inferred, except that values numpy would
    coerce to strings (e.g. ("flight", 0.25)) are kept as an object array.

    Raises:
        InvalidArgument: If the value is not one-dimensional.
    """
    try:
        array = np.array(value, dtype=dtype, copy=True)
        if dtype is None and array.dtype.kind in "US":
            array = np.array(value, dtype=object, copy=True)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{label} cannot be converted to a vector: {exc}") from exc
    if array.ndim == 0:
        array = array.reshape(1)
    if array.ndim != 1:
        raise InvalidArgument(f"{label} must be one-dimensional, got shape {array.shape}")
    return array
