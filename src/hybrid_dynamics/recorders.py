"""Output recorders receiving the samples of a simulation run."""

import itertools
from typing import Any, Iterator, List, Optional, Protocol

import numpy as np

from .exceptions import InvalidArgument


class OutputRecorder(Protocol):
    """Protocol for objects that record or display a simulation.

    If `update` accepts an `is_event` keyword it is passed True for the
    post-jump sample written after an event and False otherwise.

    Recorders may additionally define:
        get_time_vector(t_in, t_max): iterable of times at which continuous
            samples are wanted. Without it every integrator step is forwarded.
        slow_down: playback factor. When truthy the run is paced so that
            simulation time t is shown at wall-clock time (t - t_in) * slow_down.
    """

    def update(
        self, y: np.ndarray, z: np.ndarray, t: float, u: Optional[np.ndarray]
    ) -> Optional["OutputRecorder"]:
        """Receive one sample.

        Args:
            y: Continuous state (a copy; changing it has no effect on the run).
            z: Discrete state.
            t: Simulation time.
            u: Excitation input at this state, None for passive systems.

        Returns:
            The updated recorder, or None if the recorder was updated in place.
        """
        ...


class NullRecorder:
    """Recorder that discards every sample."""

    slow_down = 0.0

    def update(self, y, z, t, u, is_event=False):
        return None


class TrajectoryRecorder:
    """Keeps every sample of a run in memory.

    Args:
        sample_time: If given, continuous samples are requested on the grid
            t_in + k * sample_time instead of at every integrator step.
        slow_down: Real-time playback factor; 0 runs as fast as possible.
    """

    def __init__(self, sample_time: Optional[float] = None, slow_down: float = 0.0) -> None:
        if sample_time is not None and sample_time <= 0:
            raise InvalidArgument(f"sample_time must be positive, got {sample_time}")
        self.sample_time = sample_time
        self.slow_down = slow_down
        self._t: List[float] = []
        self._y: List[np.ndarray] = []
        self._z: List[np.ndarray] = []
        self._u: List[Any] = []
        self._is_event: List[bool] = []

    def update(self, y, z, t, u, is_event=False):
        self._t.append(float(t))
        self._y.append(np.array(y, copy=True))
        self._z.append(np.array(z, copy=True))
        self._u.append(None if u is None else np.array(u, copy=True))
        self._is_event.append(bool(is_event))
        return self

    def get_time_vector(self, t_in: float, t_max: float) -> Optional[Iterator[float]]:
        if self.sample_time is None:
            return None
        grid = (t_in + k * self.sample_time for k in itertools.count())
        return itertools.takewhile(lambda t: t <= t_max, grid)

    def clear(self) -> None:
        for samples in (self._t, self._y, self._z, self._u, self._is_event):
            samples.clear()

    def __len__(self) -> int:
        return len(self._t)

    @property
    def times(self) -> np.ndarray:
        return np.array(self._t)

    @property
    def states(self) -> np.ndarray:
        """Continuous states, one row per sample."""
        return np.array(self._y)

    @property
    def discrete_states(self) -> np.ndarray:
        return np.array(self._z)

    @property
    def inputs(self) -> List[Any]:
        return list(self._u)

    @property
    def is_event(self) -> np.ndarray:
        return np.array(self._is_event, dtype=bool)

    @property
    def event_times(self) -> np.ndarray:
        return self.times[self.is_event]
