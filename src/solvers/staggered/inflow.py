"""Problem-specific inflow strategies.

Selected once at start-up via :func:`create_inflow_profile` and applied after
the domain and obstacle boundary conditions every step.
"""

from abc import ABC, abstractmethod
import logging

import numpy as np

from ..datastructures import ConcentrationInlet, InflowSettings, SolverFields
from ..errors import ConfigurationError

log = logging.getLogger(__name__)


class InflowProfile(ABC):
    """Strategy that overwrites ghost-layer values to model an inflow."""

    @abstractmethod
    def apply(self, fields: SolverFields, imax: int, jmax: int):
        pass


class NoInflow(InflowProfile):
    def apply(self, fields, imax, jmax):
        pass


class ParabolicInflow(InflowProfile):
    """Parabolic u on the left wall, zero at both corners and peak_velocity mid-height."""

    def __init__(self, peak_velocity: float = 1.0):
        self.peak_velocity = peak_velocity

    def profile(self, jmax: int) -> np.ndarray:
        s = (np.arange(1, jmax + 1) - 0.5) / jmax
        return self.peak_velocity * 4.0 * s * (1.0 - s)

    def apply(self, fields, imax, jmax):
        fields.u[0, 1 : jmax + 1] = self.profile(jmax)
        fields.v[0, 1 : jmax + 1] = 0.0


def inlet_slice(inlet: ConcentrationInlet, imax: int, jmax: int):
    """Ghost-layer index of a concentration inlet as (species, i, j) slices."""
    length = jmax if inlet.wall in ("left", "right") else imax
    lo = int(round(inlet.start * length)) + 1
    hi = int(round(inlet.stop * length))
    span = slice(lo, hi + 1)
    if inlet.wall == "left":
        return inlet.species, 0, span
    if inlet.wall == "right":
        return inlet.species, imax + 1, span
    if inlet.wall == "bottom":
        return inlet.species, span, 0
    if inlet.wall == "top":
        return inlet.species, span, jmax + 1
    raise ConfigurationError(f"Unknown inlet wall '{inlet.wall}'")


class MixingInflow(ParabolicInflow):
    """Parabolic inflow plus fixed concentrations on wall inlets."""

    def __init__(self, peak_velocity: float = 1.0, inlets=()):
        super().__init__(peak_velocity)
        self.inlets = tuple(inlets)

    def apply(self, fields, imax, jmax):
        super().apply(fields, imax, jmax)
        for inlet in self.inlets:
            fields.c[inlet_slice(inlet, imax, jmax)] = inlet.value


def create_inflow_profile(settings: InflowSettings) -> InflowProfile:
    """Factory for inflow strategies.

    Parameters
    ----------
    settings : InflowSettings
        ``profile`` is one of "none", "wire", "mixing".
    """
    profile = settings.profile.lower()
    if profile == "none":
        return NoInflow()
    if profile == "wire":
        return ParabolicInflow(settings.peak_velocity)
    if profile == "mixing":
        if not settings.inlets:
            log.warning("Mixing inflow configured without concentration inlets")
        return MixingInflow(settings.peak_velocity, settings.inlets)
    raise ConfigurationError(
        f"Unknown inflow profile: {settings.profile}. Use 'none', 'wire', or 'mixing'."
    )
