"""Adaptive integration with zero-crossing localization.

Drives one of scipy's step-wise ODE solvers, watches a vector-valued event
function between accepted steps, and locates crossings on the solver's dense
output with brentq. This mirrors what scipy.integrate.solve_ivp does with its
`events` argument, with three differences that the hybrid loop needs:

- the event function returns a whole vector together with per-component
  terminal and direction flags,
- a component sitting exactly on zero at the start of a segment does not
  fire when it leaves zero,
- all terminal components crossing at the same instant are reported
  together instead of only the first one.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

import numpy as np
from scipy.integrate import BDF, DOP853, LSODA, RK23, RK45, Radau
from scipy.optimize import brentq

from .exceptions import IntegrationFailure, InvalidArgument
from .types import IntegratorTolerances

logger = logging.getLogger(__name__)

EPS = np.finfo(float).eps

SOLVERS = {
    "RK45": RK45,
    "RK23": RK23,
    "DOP853": DOP853,
    "Radau": Radau,
    "BDF": BDF,
    "LSODA": LSODA,
}

EventFunction = Callable[[float, np.ndarray], Tuple[np.ndarray, np.ndarray, np.ndarray]]


@dataclass
class IntegrationResult:
    """Outcome of one call to `integrate`.

    Attributes:
        t: Time at which integration stopped.
        y: State at which integration stopped (pre-event state for status 'event').
        status: 'finished' (reached the end of the span), 'event' (terminal
            zero-crossing) or 'cancelled' (stop_check returned True).
        t_event: Time of the terminal crossing, or None.
        y_event: State at the terminal crossing, or None.
        event_indices: Indices of all terminal components that crossed at t_event.
        crossings: (time, index) of every crossing detected, terminal or not.
        n_steps: Number of accepted solver steps.
    """

    t: float
    y: np.ndarray
    status: str
    t_event: Optional[float] = None
    y_event: Optional[np.ndarray] = None
    event_indices: Tuple[int, ...] = ()
    crossings: List[Tuple[float, int]] = field(default_factory=list)
    n_steps: int = 0


def find_active_events(
    g_old: np.ndarray, g_new: np.ndarray, direction: np.ndarray
) -> np.ndarray:
    """Find components that crossed zero between two steps.

    A crossing must leave a strictly nonzero value, so a component that
    starts a step exactly on zero is not active.

    Args:
        g_old: Event values at the start of the step.
        g_new: Event values at the end of the step.
        direction: +1 for negative-to-positive crossings, -1 for
            positive-to-negative crossings, 0 for both.

    Returns:
        Indices of the active components.
    """
    up = (g_old < 0) & (g_new >= 0)
    down = (g_old > 0) & (g_new <= 0)
    either = up | down
    mask = (up & (direction > 0)) | (down & (direction < 0)) | (either & (direction == 0))
    return np.nonzero(mask)[0]


def locate_crossing(component: Callable[[float], float], t_old: float, t_new: float) -> float:
    """Locate the zero of a scalar event function on [t_old, t_new]."""
    g_a = component(t_old)
    g_b = component(t_new)
    if np.sign(g_a) == np.sign(g_b) and g_a != 0:
        # The interpolant disagrees with the step values at one end; the
        # step end is where the sign change was seen.
        return t_new
    return brentq(component, t_old, t_new, xtol=4 * EPS, rtol=4 * EPS)


def _sample_times(t_eval: Optional[Iterable[float]], t0: float) -> Optional[Iterator[float]]:
    if t_eval is None:
        return None
    return (t for t in t_eval if t > t0)


def integrate(
    fun: Callable[[float, np.ndarray], np.ndarray],
    t_span: Tuple[float, float],
    y0: np.ndarray,
    event_fun: Optional[EventFunction] = None,
    tolerances: Optional[IntegratorTolerances] = None,
    t_eval: Optional[Iterable[float]] = None,
    sample_callback: Optional[Callable[[float, np.ndarray], None]] = None,
    stop_check: Optional[Callable[[], bool]] = None,
) -> IntegrationResult:
    """Integrate y' = fun(t, y) until the end of the span or a terminal event.

    Args:
        fun: Right-hand side f(t, y).
        t_span: (t0, t_bound). t_bound may be np.inf.
        y0: Initial state.
        event_fun: Returns (values, is_terminal, direction) for a state.
        tolerances: Solver settings. Defaults to IntegratorTolerances().
        t_eval: Increasing sample times, possibly an infinite iterator. If
            None, every accepted step is sampled.
        sample_callback: Receives (t, y) for every sample after t0. The
            pre-event state is the last sample of a run that ends in an event.
        stop_check: Polled after every accepted step; integration stops when
            it returns True.

    Returns:
        IntegrationResult describing where and why integration stopped.

    Raises:
        IntegrationFailure: If the solver cannot complete a step.
    """
    if tolerances is None:
        tolerances = IntegratorTolerances()
    t0, t_bound = t_span
    if not t_bound >= t0:
        raise InvalidArgument(f"Integration span must be increasing, got {t_span}")

    solver = SOLVERS[tolerances.method](
        fun,
        t0,
        np.asarray(y0, dtype=float),
        t_bound,
        rtol=tolerances.rtol,
        atol=tolerances.atol,
        max_step=tolerances.max_step,
    )
    samples = _sample_times(t_eval, t0)
    next_sample = next(samples, None) if samples is not None else None
    last_sampled = t0

    def emit(t: float, y: np.ndarray) -> None:
        nonlocal last_sampled
        last_sampled = t
        if sample_callback is not None:
            sample_callback(t, y)

    if event_fun is not None:
        g_old = np.asarray(event_fun(t0, solver.y)[0], dtype=float)

    crossings: List[Tuple[float, int]] = []
    n_steps = 0
    while solver.status == "running":
        message = solver.step()
        if solver.status == "failed":
            raise IntegrationFailure(message, solver.t)
        n_steps += 1
        t_old, t_new = solver.t_old, solver.t
        y_new = solver.y.copy()
        interpolant = None

        t_stop = t_new
        fired: Tuple[int, ...] = ()
        if event_fun is not None:
            g_new, is_terminal, direction = (np.asarray(v) for v in event_fun(t_new, y_new))
            g_new = g_new.astype(float)
            active = find_active_events(g_old, g_new, direction)
            if active.size > 0:
                interpolant = solver.dense_output()
                roots = np.array(
                    [
                        locate_crossing(
                            lambda t, i=i: float(np.asarray(event_fun(t, interpolant(t))[0])[i]),
                            t_old,
                            t_new,
                        )
                        for i in active
                    ]
                )
                order = np.argsort(roots, kind="stable")
                active, roots = active[order], roots[order]
                terminal = np.asarray(is_terminal[active], dtype=bool)
                if terminal.any():
                    t_stop = roots[terminal][0]
                    window = tolerances.event_time_tol * max(1.0, abs(t_stop))
                    within = roots <= t_stop + window
                    fired = tuple(sorted(int(i) for i in active[within & terminal]))
                    active, roots = active[within], roots[within]
                crossings.extend((float(t), int(i)) for t, i in zip(roots, active))
            g_old = g_new

        while next_sample is not None and (next_sample < t_stop or (not fired and next_sample <= t_stop)):
            if interpolant is None:
                interpolant = solver.dense_output()
            emit(next_sample, interpolant(next_sample))
            next_sample = next(samples, None)

        if fired:
            y_event = interpolant(t_stop)
            emit(t_stop, y_event)
            logger.debug("Terminal event %s at t=%.6g after %d steps", fired, t_stop, n_steps)
            return IntegrationResult(
                t=t_stop,
                y=y_event,
                status="event",
                t_event=t_stop,
                y_event=y_event,
                event_indices=fired,
                crossings=crossings,
                n_steps=n_steps,
            )

        if samples is None:
            emit(t_new, y_new)
        elif solver.status == "finished" and last_sampled < t_new:
            emit(t_new, y_new)

        if stop_check is not None and stop_check():
            return IntegrationResult(
                t=t_new, y=y_new, status="cancelled", crossings=crossings, n_steps=n_steps
            )

    return IntegrationResult(
        t=solver.t, y=solver.y.copy(), status="finished", crossings=crossings, n_steps=n_steps
    )
