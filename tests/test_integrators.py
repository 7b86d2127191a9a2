"""Tests for the event-aware integrator."""

import itertools

import numpy as np
import pytest

from hybrid_dynamics import IntegrationFailure, IntegratorTolerances, integrate
from hybrid_dynamics import integrators
from hybrid_dynamics.integrators import find_active_events, locate_crossing


def clock(t, y):
    return np.array([1.0])


def terminal_events(*funcs):
    """Event function with all components terminal and positive-going."""

    def events(t, y):
        values = np.array([f(y) for f in funcs])
        return values, np.ones(len(funcs), dtype=bool), np.ones(len(funcs))

    return events


def test_exponential_decay_without_events():
    sol = integrate(lambda t, y: -y, (0.0, 1.0), np.array([1.0]))

    assert sol.status == "finished"
    assert sol.t == 1.0
    assert sol.y[0] == pytest.approx(np.exp(-1.0), rel=1e-5)
    assert sol.t_event is None
    assert sol.event_indices == ()


def test_every_step_is_sampled_without_t_eval():
    samples = []
    sol = integrate(
        lambda t, y: -y,
        (0.0, 0.5),
        np.array([1.0]),
        sample_callback=lambda t, y: samples.append((t, y[0])),
    )

    times = [t for t, _ in samples]
    assert len(samples) == sol.n_steps
    assert times[0] > 0.0
    assert times[-1] == 0.5
    assert np.all(np.diff(times) > 0)


def test_samples_at_requested_times():
    samples = []
    t_eval = np.linspace(0.0, 1.0, 11)
    integrate(
        lambda t, y: -y,
        (0.0, 1.0),
        np.array([1.0]),
        t_eval=t_eval,
        sample_callback=lambda t, y: samples.append((t, y[0])),
    )

    times = np.array([t for t, _ in samples])
    values = np.array([v for _, v in samples])
    # The start point is not re-delivered.
    np.testing.assert_allclose(times, t_eval[1:])
    np.testing.assert_allclose(values, np.exp(-times), rtol=1e-5)


def test_samples_from_infinite_iterator():
    samples = []
    grid = (0.25 * k for k in itertools.count())
    integrate(
        clock, (0.0, 1.1), np.array([0.0]), t_eval=grid, sample_callback=lambda t, y: samples.append(t)
    )

    np.testing.assert_allclose(samples, [0.25, 0.5, 0.75, 1.0, 1.1])


def test_terminal_event_stops_integration():
    samples = []
    sol = integrate(
        clock,
        (0.0, 2.0),
        np.array([0.0]),
        event_fun=terminal_events(lambda y: y[0] - 0.5),
        sample_callback=lambda t, y: samples.append(t),
    )

    assert sol.status == "event"
    assert sol.t_event == pytest.approx(0.5, abs=1e-12)
    assert sol.y_event[0] == pytest.approx(0.5, abs=1e-12)
    assert sol.event_indices == (0,)
    # The pre-event state is the last sample.
    assert samples[-1] == sol.t_event


def test_negative_crossing_is_ignored():
    sol = integrate(
        lambda t, y: np.array([-1.0]),
        (0.0, 2.0),
        np.array([1.0]),
        event_fun=terminal_events(lambda y: y[0]),
    )

    assert sol.status == "finished"
    assert sol.y[0] == pytest.approx(-1.0)


def test_negative_direction_can_be_requested():
    def falling_through_zero(t, y):
        return np.array([y[0]]), np.array([True]), np.array([-1.0])

    sol = integrate(
        lambda t, y: np.array([-1.0]), (0.0, 2.0), np.array([1.0]), event_fun=falling_through_zero
    )

    assert sol.status == "event"
    assert sol.t_event == pytest.approx(1.0, abs=1e-12)


def test_event_starting_on_zero_does_not_fire():
    sol = integrate(
        clock,
        (0.0, 1.0),
        np.array([0.0]),
        event_fun=terminal_events(lambda y: y[0]),
    )

    assert sol.status == "finished"


def test_simultaneous_events_are_reported_together():
    sol = integrate(
        clock,
        (0.0, 2.0),
        np.array([0.0]),
        event_fun=terminal_events(
            lambda y: 2.0 * y[0] - 1.0, lambda y: y[0] - 0.5, lambda y: y[0] - 1.5
        ),
    )

    assert sol.t_event == pytest.approx(0.5, abs=1e-12)
    assert sol.event_indices == (0, 1)


def test_non_terminal_crossings_are_recorded():
    def events(t, y):
        values = np.array([y[0] - 0.25, y[0] - 0.5, y[0] - 0.75])
        return values, np.array([False, True, True]), np.ones(3)

    sol = integrate(clock, (0.0, 2.0), np.array([0.0]), event_fun=events)

    assert sol.event_indices == (1,)
    assert [i for _, i in sol.crossings] == [0, 1]
    assert sol.crossings[0][0] == pytest.approx(0.25, abs=1e-12)


def test_stop_check_cancels_after_first_step():
    sol = integrate(clock, (0.0, 1.0), np.array([0.0]), stop_check=lambda: True)

    assert sol.status == "cancelled"
    assert sol.n_steps == 1
    assert 0.0 < sol.t <= IntegratorTolerances().max_step


def test_infinite_time_span_needs_an_event():
    sol = integrate(
        clock, (0.0, np.inf), np.array([0.0]), event_fun=terminal_events(lambda y: y[0] - 3.0)
    )

    assert sol.t_event == pytest.approx(3.0, abs=1e-10)


@pytest.mark.parametrize("method", ["RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA"])
def test_all_methods_locate_the_event(method):
    tolerances = IntegratorTolerances(rtol=1e-8, atol=1e-10, method=method)
    sol = integrate(
        lambda t, y: np.array([y[1], -9.8]),
        (0.0, 10.0),
        np.array([1.0, 0.0]),
        event_fun=terminal_events(lambda y: -y[0]),
        tolerances=tolerances,
    )

    assert sol.t_event == pytest.approx(np.sqrt(2.0 / 9.8), rel=1e-5)


def test_solver_failure_raises(monkeypatch):
    class FailingSolver:
        def __init__(self, fun, t0, y0, t_bound, **options):
            self.t = t0
            self.y = y0
            self.status = "running"

        def step(self):
            self.status = "failed"
            return "Required step size is less than spacing between numbers."

    monkeypatch.setitem(integrators.SOLVERS, "RK45", FailingSolver)

    with pytest.raises(IntegrationFailure, match="step size") as excinfo:
        integrate(clock, (0.0, 1.0), np.array([0.0]))
    assert excinfo.value.t == 0.0


def test_find_active_events():
    g_old = np.array([-1.0, -1.0, 1.0, 1.0, 0.0, -1.0])
    g_new = np.array([1.0, 0.0, -1.0, -1.0, 1.0, 1.0])
    direction = np.array([1.0, 1.0, 1.0, -1.0, 1.0, 0.0])

    np.testing.assert_array_equal(find_active_events(g_old, g_new, direction), [0, 1, 3, 5])


def test_locate_crossing():
    assert locate_crossing(lambda t: t - 0.3, 0.0, 1.0) == pytest.approx(0.3, abs=1e-14)
    assert locate_crossing(lambda t: t - 1.0, 0.0, 1.0) == 1.0
