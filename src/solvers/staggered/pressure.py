"""SOR solver for the pressure Poisson equation.

One call to :func:`sor_step` enforces the domain-edge conditions, performs a
single relaxation sweep, refreshes obstacle-boundary pressures, measures the
RMS residual over fluid cells and then re-applies the edge conditions. The
convergence loop is owned by the orchestrator.
"""

import numpy as np
from numba import njit

from meshing.flags import EAST, FLUID, NORTH, SOUTH, WEST
from ..datastructures import BoundaryKind, Walls
from ..errors import NumericalInvariantError


@njit(cache=True)
def sor_iteration(p, rs, flags, imax, jmax, dx, dy, omg):
    """Relax fluid cells in place and return (sum of squared residuals, fluid count)."""
    inv_dx2 = 1.0 / (dx * dx)
    inv_dy2 = 1.0 / (dy * dy)
    coeff = omg / (2.0 * (inv_dx2 + inv_dy2))

    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            if flags[i, j] & FLUID:
                p[i, j] = (1.0 - omg) * p[i, j] + coeff * (
                    (p[i + 1, j] + p[i - 1, j]) * inv_dx2
                    + (p[i, j + 1] + p[i, j - 1]) * inv_dy2
                    - rs[i, j]
                )

    # Obstacle-boundary cells take the mean of their fluid neighbours
    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            code = flags[i, j]
            if (code & FLUID) != 0 or code == 0:
                continue
            total = 0.0
            count = 0
            if code & SOUTH:
                total += p[i, j - 1]
                count += 1
            if code & NORTH:
                total += p[i, j + 1]
                count += 1
            if code & WEST:
                total += p[i - 1, j]
                count += 1
            if code & EAST:
                total += p[i + 1, j]
                count += 1
            p[i, j] = total / count

    res = 0.0
    n_fluid = 0
    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            if flags[i, j] & FLUID:
                r = (
                    (p[i + 1, j] - 2.0 * p[i, j] + p[i - 1, j]) * inv_dx2
                    + (p[i, j + 1] - 2.0 * p[i, j] + p[i, j - 1]) * inv_dy2
                    - rs[i, j]
                )
                res += r * r
                n_fluid += 1
    return res, n_fluid


def apply_pressure_edges(p, walls: Walls, imax: int, jmax: int):
    """PRESSURE walls mirror about their value, all other walls copy the interior."""
    js = slice(1, jmax + 1)
    is_ = slice(1, imax + 1)
    edges = (
        (walls.left, (0, js), (1, js)),
        (walls.right, (imax + 1, js), (imax, js)),
        (walls.bottom, (is_, 0), (is_, 1)),
        (walls.top, (is_, jmax + 1), (is_, jmax)),
    )
    for cond, ghost, adjacent in edges:
        if cond.kind is BoundaryKind.PRESSURE:
            p[ghost] = 2.0 * cond.value - p[adjacent]
        else:
            p[ghost] = p[adjacent]


def sor_step(p, rs, flags, walls: Walls, dx: float, dy: float, omg: float) -> float:
    """One SOR iteration; returns the RMS residual over fluid cells."""
    imax = p.shape[0] - 2
    jmax = p.shape[1] - 2
    # Ghost layer must match the walls before the residual is measured
    apply_pressure_edges(p, walls, imax, jmax)
    res, n_fluid = sor_iteration(p, rs, flags, imax, jmax, dx, dy, omg)
    if n_fluid == 0:
        raise NumericalInvariantError("Pressure residual requested on a grid without fluid cells")
    apply_pressure_edges(p, walls, imax, jmax)
    return float(np.sqrt(res / n_fluid))


def normalize_pressure(p, fluid: np.ndarray) -> float:
    """Subtract the fluid-cell mean from the whole field; returns the removed mean."""
    n_fluid = int(np.count_nonzero(fluid))
    if n_fluid == 0:
        raise NumericalInvariantError("Cannot normalize pressure without fluid cells")
    mean = float(p[fluid].sum() / n_fluid)
    p -= mean
    return mean
