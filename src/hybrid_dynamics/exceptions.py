"""Exceptions raised while simulating hybrid dynamical systems."""

from typing import Optional


class HybridDynamicsError(Exception):
    """Base class for all errors raised by this package."""


class InvalidArgument(HybridDynamicsError, ValueError):
    """Malformed call, bad configuration, or a plugin vector of the wrong size."""


class PluginFailure(HybridDynamicsError):
    """An exception was raised inside a model or excitation plugin.

    Attributes:
        plugin: Name of the failing plugin ('flow_map', 'jump_set', 'jump_map' or 'excitation').
    """

    def __init__(self, plugin: str, cause: BaseException) -> None:
        super().__init__(f"{plugin} raised {type(cause).__name__}: {cause}")
        self.plugin = plugin


class IntegrationFailure(HybridDynamicsError):
    """The numerical integrator could not satisfy the requested tolerances.

    Attributes:
        t: Time reached by the integrator before it failed.
    """

    def __init__(self, message: Optional[str], t: float) -> None:
        super().__init__(f"Integration failed at t={t}: {message}")
        self.t = t
