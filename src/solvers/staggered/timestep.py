"""Adaptive time-step selection under the stability constraints."""

from dataclasses import dataclass, asdict

import numpy as np

from .reaction import UNBOUNDED_DT

# Velocities and diffusivities below this magnitude impose no bound
NEGLIGIBLE = 1e-12


@dataclass(frozen=True)
class TimestepBounds:
    diffusive: float
    advective_x: float
    advective_y: float
    thermal: float
    species: float
    reaction: float

    def limiting(self):
        """Name and value of the tightest bound."""
        name, value = min(asdict(self).items(), key=lambda item: item[1])
        return name, value


def compute_timestep_bounds(u, v, re, pr, dx, dy, max_diffusivity, reaction_dt) -> TimestepBounds:
    """Each stability bound before the safety factor tau is applied.

    Velocity maxima are taken over the whole ghost-inclusive arrays.
    """
    inv_h2 = 1.0 / (dx * dx) + 1.0 / (dy * dy)
    umax = float(np.max(np.abs(u)))
    vmax = float(np.max(np.abs(v)))
    return TimestepBounds(
        diffusive=0.5 * re / inv_h2,
        advective_x=dx / umax if umax > NEGLIGIBLE else UNBOUNDED_DT,
        advective_y=dy / vmax if vmax > NEGLIGIBLE else UNBOUNDED_DT,
        thermal=0.5 * re * pr / inv_h2,
        species=(
            1.0 / (2.0 * max_diffusivity * inv_h2)
            if max_diffusivity > NEGLIGIBLE
            else UNBOUNDED_DT
        ),
        reaction=reaction_dt,
    )


def select_timestep(bounds: TimestepBounds, tau: float):
    """dt = tau * min(bounds); returns (dt, limiting bound name)."""
    name, value = bounds.limiting()
    return tau * value, name
