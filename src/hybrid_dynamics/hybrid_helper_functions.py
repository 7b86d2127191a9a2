import inspect
import logging
import time
from typing import Any, Callable, Iterable, Optional, Tuple

import numpy as np

from .cancellation import CancellationToken
from .exceptions import HybridDynamicsError, InvalidArgument, PluginFailure
from .recorders import NullRecorder, OutputRecorder
from .types import Excitation, ModelPlugin, as_state_vector

logger = logging.getLogger(__name__)


def call_plugin(name: str, func: Callable, *args: Any) -> Any:
    """Call a plugin function, attributing any failure to the plugin.

    Errors raised by this package (e.g. a PluginFailure from a nested
    excitation call) pass through unchanged.

    Raises:
        PluginFailure: If the plugin raised anything else.
    """
    try:
        return func(*args)
    except HybridDynamicsError:
        raise
    except Exception as exc:
        raise PluginFailure(name, exc) from exc


def accepts_keyword(func: Callable, name: str) -> bool:
    """Check whether `func` can be called with the keyword argument `name`."""
    try:
        parameters = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    return any(
        (param.name == name and param.kind != inspect.Parameter.POSITIONAL_ONLY)
        or param.kind == inspect.Parameter.VAR_KEYWORD
        for param in parameters
    )


def freeze(array: np.ndarray) -> np.ndarray:
    """Mark an array read-only so that plugins cannot modify it in place."""
    array.flags.writeable = False
    return array


class RunContext:
    """State shared by the adapters of one simulation run.

    Holds the current parameter vector (which only the flow map may replace),
    the excitation, the cancellation token, and the event vector length that
    must stay fixed for the run.
    """

    def __init__(
        self,
        parameters: np.ndarray,
        excitation: Optional[Excitation],
        token: CancellationToken,
    ) -> None:
        self.parameters = freeze(as_state_vector(parameters, "p"))
        self.token = token
        self.n_events: Optional[int] = None
        self.excitation: Optional[Callable[[np.ndarray, np.ndarray], Any]] = None
        if excitation is not None:
            self.excitation = lambda y, z: call_plugin("excitation", excitation, y, z)

    def update_parameters(self, p_updated: Any) -> None:
        """Adopt the parameter vector returned by the flow map.

        Raises:
            InvalidArgument: If the vector changed size.
        """
        if p_updated is None or p_updated is self.parameters:
            return
        p_updated = as_state_vector(p_updated, "Parameter vector returned by flow_map")
        if p_updated.shape != self.parameters.shape:
            raise InvalidArgument(
                f"flow_map changed the parameter vector size from "
                f"{self.parameters.size} to {p_updated.size}"
            )
        self.parameters = freeze(p_updated)

    def check_event_count(self, n_events: int) -> None:
        if self.n_events is None:
            self.n_events = n_events
        elif n_events != self.n_events:
            raise InvalidArgument(
                f"jump_set changed the event vector size from {self.n_events} to {n_events}"
            )

    def excitation_input(self, y: np.ndarray, z: np.ndarray) -> Optional[np.ndarray]:
        if self.excitation is None:
            return None
        return np.asarray(self.excitation(y, z))


def flow_map_func(
    model: ModelPlugin, z: np.ndarray, context: RunContext
) -> Callable[[float, np.ndarray], np.ndarray]:
    """Create the right-hand side f(t, y) for the integrator.

    The discrete state `z` is fixed for the segment; the parameter vector is
    read from `context` on every call and replaced by whatever the flow map
    returns.

    Args:
        model: Model plugin.
        z: Discrete state during this flow segment.
        context: Run context.

    Returns:
        Function f(t, y) returning dy/dt.

    Raises:
        InvalidArgument: If the flow map does not return (dydt, p_updated) or
            dydt does not match the length of y.
    """

    def dynamics(t: float, y: np.ndarray) -> np.ndarray:
        result = call_plugin(
            "flow_map", model.flow_map, y, z, context.parameters, context.excitation, context.token
        )
        try:
            dydt, p_updated = result
        except (TypeError, ValueError) as exc:
            raise InvalidArgument("flow_map must return a (dydt, p_updated) pair") from exc
        context.update_parameters(p_updated)
        dydt = np.asarray(dydt, dtype=float).reshape(-1)
        if dydt.size != y.size:
            raise InvalidArgument(
                f"flow_map returned {dydt.size} derivatives for {y.size} states"
            )
        return dydt

    return dynamics


def jump_set_event_func(
    model: ModelPlugin, z: np.ndarray, context: RunContext
) -> Callable[[float, np.ndarray], Tuple[np.ndarray, np.ndarray, np.ndarray]]:
    """Create the event function for the integrator from the jump set.

    Every component is terminal for the integration segment and only fires on
    a negative-to-positive crossing.

    Args:
        model: Model plugin.
        z: Discrete state during this flow segment.
        context: Run context.

    Returns:
        Function g(t, y) returning (values, is_terminal, direction).
    """

    def events(t: float, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        values = call_plugin(
            "jump_set", model.jump_set, y, z, context.parameters, context.excitation
        )
        values = np.asarray(values, dtype=float).reshape(-1)
        context.check_event_count(values.size)
        is_terminal = np.ones(values.size, dtype=bool)
        direction = np.ones(values.size)
        return values, is_terminal, direction

    return events


def apply_jump_map(
    model: ModelPlugin,
    y_event: np.ndarray,
    z: np.ndarray,
    context: RunContext,
    event_indices: Tuple[int, ...],
) -> Tuple[np.ndarray, np.ndarray, bool]:
    """Apply the discrete transition for the events that fired together.

    Returns:
        Tuple of (y_plus, z_plus, is_terminal).

    Raises:
        InvalidArgument: If the jump map result is malformed or changes the
            length of the continuous state.
    """
    result = call_plugin(
        "jump_map",
        model.jump_map,
        y_event,
        z,
        context.parameters,
        context.excitation,
        event_indices,
    )
    try:
        y_plus, z_plus, is_terminal = result
    except (TypeError, ValueError) as exc:
        raise InvalidArgument("jump_map must return (y_plus, z_plus, is_terminal)") from exc
    y_plus = as_state_vector(y_plus, "y_plus")
    if y_plus.shape != y_event.shape:
        raise InvalidArgument(
            f"jump_map changed the continuous state size from {y_event.size} to {y_plus.size}"
        )
    return y_plus, freeze(as_state_vector(z_plus, "z_plus", dtype=None)), bool(is_terminal)


class OutputForwarder:
    """Forwards samples to the output recorder and paces real-time playback.

    Args:
        recorder: Output recorder; NullRecorder for headless runs.
        context: Run context, used for excitation inputs and the cancellable wait.
        t_in: Start time of the run. Playback time is measured from here.
    """

    def __init__(self, recorder: OutputRecorder, context: RunContext, t_in: float) -> None:
        self._context = context
        self._t_in = t_in
        self._headless = isinstance(recorder, NullRecorder)
        self._slow_down = getattr(recorder, "slow_down", 0.0) or 0.0
        self._clock_start = time.perf_counter()
        self._set_recorder(recorder)

    def __call__(self, t: float, y: np.ndarray, z: np.ndarray, is_event: bool = False) -> None:
        if self._headless:
            return
        u = self._context.excitation_input(y, z)
        args = (np.array(y, copy=True), z, t, u)
        if self._marks_events:
            updated = call_plugin("recorder", lambda: self.recorder.update(*args, is_event=is_event))
        else:
            updated = call_plugin("recorder", self.recorder.update, *args)
        if updated is not None and updated is not self.recorder:
            self._set_recorder(updated)
        if self._slow_down:
            self._wait_until(t)

    def _set_recorder(self, recorder: OutputRecorder) -> None:
        self.recorder = recorder
        self._marks_events = accepts_keyword(recorder.update, "is_event")

    def continuous_samples(self, z: np.ndarray) -> Optional[Callable[[float, np.ndarray], None]]:
        """Sample callback for the integrator during a flow segment with discrete state z."""
        if self._headless:
            return None
        return lambda t, y: self(t, y, z)

    def time_vector(self, t_in: float, t_max: float) -> Optional[Iterable[float]]:
        """Sample times requested by the recorder, or None for every step."""
        get_time_vector = getattr(self.recorder, "get_time_vector", None)
        if self._headless or get_time_vector is None:
            return None
        return get_time_vector(t_in, t_max)

    def _wait_until(self, t: float) -> None:
        remaining = (t - self._t_in) * self._slow_down - (time.perf_counter() - self._clock_start)
        if remaining > 0:
            self._context.token.wait(remaining)
