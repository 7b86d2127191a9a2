import logging
from typing import Any, Optional, Tuple, Union

import numpy as np

from .cancellation import CancellationToken
from .exceptions import InvalidArgument
from .hybrid_helper_functions import (
    OutputForwarder,
    RunContext,
    apply_jump_map,
    flow_map_func,
    freeze,
    jump_set_event_func,
)
from .integrators import integrate
from .recorders import NullRecorder, OutputRecorder
from .types import TIMEOUT, Excitation, ModelPlugin, SimulationOptions, as_state_vector

logger = logging.getLogger(__name__)

SimulationOutput = Union[
    Tuple[np.ndarray, np.ndarray, float],
    Tuple[np.ndarray, np.ndarray, float, OutputRecorder],
]


class HybridSimulator:
    """Simulator for hybrid dynamical systems with discrete state transitions.

    Integrates the flow map until the first positive zero-crossing of the jump
    set, applies the jump map, and repeats until the jump map reports a
    terminal event or the time budget runs out.
    """

    def __init__(
        self,
        model: ModelPlugin,
        excitation: Optional[Excitation] = None,
        recorder: Optional[OutputRecorder] = None,
        options: Optional[SimulationOptions] = None,
    ) -> None:
        """Initialize the hybrid system simulator.

        Args:
            model: Flow map, jump set and jump map of the system.
            excitation: External input for active systems. None for passive systems.
            recorder: Receives every sample of a run. None for headless runs.
            options: Start time, time budget and integrator settings.

        Raises:
            InvalidArgument: If model or options have the wrong type.
        """
        if not isinstance(model, ModelPlugin):
            raise InvalidArgument(f"model must be a ModelPlugin, got {type(model).__name__}")
        if options is None:
            options = SimulationOptions()
        elif not isinstance(options, SimulationOptions):
            raise InvalidArgument(
                f"options must be SimulationOptions, got {type(options).__name__}"
            )
        self._model = model
        self._excitation = excitation
        self._recorder = recorder
        self._options = options
        self._token = CancellationToken()
        self._n_events = 0
        self._last_run_cancelled = False

    def simulate(self, y0: Any, z0: Any, p0: Any, return_output: bool = False) -> SimulationOutput:
        """Simulate until the first terminal event or until the time budget is used up.

        Args:
            y0: Initial continuous state.
            z0: Initial discrete state.
            p0: Parameter vector.
            return_output: If True, also return the (possibly replaced) recorder.

        Returns:
            (y, z, t) or (y, z, t, recorder). `t` is the time of the terminal
            event, TIMEOUT if t_max was reached first, or the last time reached
            if the run was cancelled.

        Raises:
            InvalidArgument: If the recorder is requested but none was given,
                or a plugin returns vectors of inconsistent size.
            PluginFailure: If a plugin raised.
            IntegrationFailure: If the integrator could not complete a step.
        """
        if return_output and self._recorder is None:
            raise InvalidArgument(
                "Output recorder can only be returned if one was provided to the simulator"
            )
        options = self._options
        y = as_state_vector(y0, "y0")
        z = freeze(as_state_vector(z0, "z0", dtype=None))

        self._token.reset()
        self._n_events = 0
        context = RunContext(p0, self._excitation, self._token)
        recorder = NullRecorder() if self._recorder is None else self._recorder
        forwarder = OutputForwarder(recorder, context, options.t_in)

        t = options.t_in
        forwarder(t, y, z)
        is_terminal = False
        while not is_terminal and not self._token.cancelled:
            logger.debug("%s: integrating from t=%.6g with z=%s", self._model.name, t, z)
            sol = integrate(
                flow_map_func(self._model, z, context),
                (t, options.t_max),
                y,
                event_fun=jump_set_event_func(self._model, z, context),
                tolerances=options.tolerances,
                t_eval=forwarder.time_vector(t, options.t_max),
                sample_callback=forwarder.continuous_samples(z),
                stop_check=lambda: self._token.cancelled,
            )
            if sol.status == "finished":
                # Out of time: keep the discrete state and flag the timeout.
                y = sol.y
                t = TIMEOUT
                logger.info("%s: no terminal event before t_max=%g", self._model.name, options.t_max)
                break
            if sol.status == "cancelled":
                y, t = sol.y, sol.t
                break

            y, z, is_terminal = apply_jump_map(
                self._model, freeze(sol.y_event.copy()), z, context, sol.event_indices
            )
            t = sol.t_event
            self._n_events += 1
            logger.debug(
                "%s: events %s at t=%.6g -> z=%s, terminal=%s",
                self._model.name,
                sol.event_indices,
                t,
                z,
                is_terminal,
            )
            forwarder(t, y, z, is_event=True)

        self._last_run_cancelled = self._token.cancelled
        if self._last_run_cancelled:
            logger.info("%s: run cancelled at t=%.6g (%s)", self._model.name, t, self._token.reason)
        elif is_terminal:
            logger.info("%s: terminal event at t=%.6g", self._model.name, t)

        y_out = np.array(y, dtype=float, copy=True)
        z_out = np.array(z, copy=True)
        if return_output:
            return y_out, z_out, t, forwarder.recorder
        return y_out, z_out, t

    @property
    def token(self) -> CancellationToken:
        """Cancellation token handed to the flow map; reset at the start of every run."""
        return self._token

    @property
    def n_events(self) -> int:
        """Number of jumps applied during the last run."""
        return self._n_events

    @property
    def last_run_cancelled(self) -> bool:
        return self._last_run_cancelled

    @property
    def options(self) -> SimulationOptions:
        return self._options


def simulate(
    y0: Any,
    z0: Any,
    p0: Any,
    model: ModelPlugin,
    excitation: Optional[Excitation] = None,
    recorder: Optional[OutputRecorder] = None,
    options: Optional[SimulationOptions] = None,
    return_output: bool = False,
) -> SimulationOutput:
    """Run a single simulation; see HybridSimulator.simulate."""
    simulator = HybridSimulator(model, excitation=excitation, recorder=recorder, options=options)
    return simulator.simulate(y0, z0, p0, return_output=return_output)
