"""Convection-diffusion update shared by temperature and every species.

The update reads the live field and writes the scratch buffer, which starts
as a copy of the live field so that the ghost layer stays coherent after the
swap.
"""

import numpy as np
from numba import njit

from meshing.flags import EAST, FLUID, NORTH, SOUTH, WEST
from ..datastructures import BoundaryKind, SolverFields, WallCondition


@njit(cache=True)
def transport_scalar(u, v, x, out, flags, imax, jmax, dx, dy, dt, diffusivity, gamma,
                     dirichlet, value):
    """Advance scalar ``x`` by one explicit step into ``out``.

    ``diffusivity`` is the inverse of the diffusion-equivalent coefficient:
    1/(Re Pr) for temperature and lambda for a species.
    """
    inv_dx2 = 1.0 / (dx * dx)
    inv_dy2 = 1.0 / (dy * dy)
    half_inv_dx = 0.5 / dx
    half_inv_dy = 0.5 / dy

    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            code = flags[i, j]
            if code & FLUID:
                ue = u[i, j]
                uw = u[i - 1, j]
                duxdx = half_inv_dx * (
                    ue * (x[i, j] + x[i + 1, j])
                    - uw * (x[i - 1, j] + x[i, j])
                    + gamma * (abs(ue) * (x[i, j] - x[i + 1, j]) - abs(uw) * (x[i - 1, j] - x[i, j]))
                )
                vn = v[i, j]
                vs = v[i, j - 1]
                dvxdy = half_inv_dy * (
                    vn * (x[i, j] + x[i, j + 1])
                    - vs * (x[i, j - 1] + x[i, j])
                    + gamma * (abs(vn) * (x[i, j] - x[i, j + 1]) - abs(vs) * (x[i, j - 1] - x[i, j]))
                )
                lap = (x[i + 1, j] - 2.0 * x[i, j] + x[i - 1, j]) * inv_dx2 + (
                    x[i, j + 1] - 2.0 * x[i, j] + x[i, j - 1]
                ) * inv_dy2
                out[i, j] = x[i, j] + dt * (-duxdx - dvxdy + diffusivity * lap)
            elif code != 0:
                total = 0.0
                count = 0
                if code & SOUTH:
                    total += 2.0 * value - x[i, j - 1] if dirichlet else x[i, j - 1]
                    count += 1
                if code & NORTH:
                    total += 2.0 * value - x[i, j + 1] if dirichlet else x[i, j + 1]
                    count += 1
                if code & WEST:
                    total += 2.0 * value - x[i - 1, j] if dirichlet else x[i - 1, j]
                    count += 1
                if code & EAST:
                    total += 2.0 * value - x[i + 1, j] if dirichlet else x[i + 1, j]
                    count += 1
                out[i, j] = total / count
            else:
                out[i, j] = value


def _advance(u, v, live, scratch, flags, dx, dy, dt, diffusivity, gamma, obstacle: WallCondition):
    imax = live.shape[0] - 2
    jmax = live.shape[1] - 2
    np.copyto(scratch, live)
    transport_scalar(
        u, v, live, scratch, flags, imax, jmax, dx, dy, dt, diffusivity, gamma,
        obstacle.kind is BoundaryKind.DIRICHLET, obstacle.value,
    )


SPECIES_OBSTACLE = WallCondition(BoundaryKind.NEUMANN, 0.0)


def transport_species(fields: SolverFields, flags, diffusivities, dx, dy, dt, gamma):
    """Advance every concentration field, then swap live and scratch buffers."""
    if fields.n_species == 0:
        return
    for s in range(fields.n_species):
        _advance(
            fields.u, fields.v, fields.c[s], fields.c_scratch[s], flags,
            dx, dy, dt, float(diffusivities[s]), gamma, SPECIES_OBSTACLE,
        )
    fields.swap_concentrations()


def transport_temperature(fields: SolverFields, flags, re, pr, dx, dy, dt, gamma,
                          obstacle: WallCondition):
    """Advance temperature with diffusion coefficient 1/(Re Pr), then swap buffers."""
    _advance(
        fields.u, fields.v, fields.t, fields.t_scratch, flags,
        dx, dy, dt, 1.0 / (re * pr), gamma, obstacle,
    )
    fields.swap_temperature()
