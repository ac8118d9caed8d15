"""Velocity correction with the new pressure gradient."""

from numba import njit

from meshing.flags import FLUID


@njit(cache=True)
def compute_uv(u, v, f, g, p, flags, imax, jmax, dx, dy, dt):
    """Project F, G onto U, V on faces shared by two fluid cells."""
    for i in range(1, imax):
        for j in range(1, jmax + 1):
            if (flags[i, j] & FLUID) != 0 and (flags[i + 1, j] & FLUID) != 0:
                u[i, j] = f[i, j] - dt / dx * (p[i + 1, j] - p[i, j])
    for i in range(1, imax + 1):
        for j in range(1, jmax):
            if (flags[i, j] & FLUID) != 0 and (flags[i, j + 1] & FLUID) != 0:
                v[i, j] = g[i, j] - dt / dy * (p[i, j + 1] - p[i, j])
