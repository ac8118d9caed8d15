"""Momentum predictor F, G and the pressure right-hand side RS.

Convective terms use the donor-cell / central blend controlled by ``alpha``
(0 = central, 1 = full upwind). Buoyancy uses the Boussinesq term with the
temperature averaged onto the face.
"""

from numba import njit

from meshing.flags import FLUID


@njit(cache=True)
def compute_fg(u, v, t, f, g, flags, imax, jmax, dx, dy, dt, re, alpha, beta, gx, gy):
    """Predict F on east faces and G on north faces between fluid cells."""
    inv_dx = 1.0 / dx
    inv_dy = 1.0 / dy
    inv_dx2 = inv_dx * inv_dx
    inv_dy2 = inv_dy * inv_dy

    for i in range(1, imax):
        for j in range(1, jmax + 1):
            if (flags[i, j] & FLUID) == 0 or (flags[i + 1, j] & FLUID) == 0:
                continue
            lap = (u[i + 1, j] - 2.0 * u[i, j] + u[i - 1, j]) * inv_dx2 + (
                u[i, j + 1] - 2.0 * u[i, j] + u[i, j - 1]
            ) * inv_dy2

            ue = u[i, j] + u[i + 1, j]
            uw = u[i - 1, j] + u[i, j]
            du2dx = 0.25 * inv_dx * (
                ue * ue
                - uw * uw
                + alpha * (abs(ue) * (u[i, j] - u[i + 1, j]) - abs(uw) * (u[i - 1, j] - u[i, j]))
            )

            vn = v[i, j] + v[i + 1, j]
            vs = v[i, j - 1] + v[i + 1, j - 1]
            duvdy = 0.25 * inv_dy * (
                vn * (u[i, j] + u[i, j + 1])
                - vs * (u[i, j - 1] + u[i, j])
                + alpha * (abs(vn) * (u[i, j] - u[i, j + 1]) - abs(vs) * (u[i, j - 1] - u[i, j]))
            )

            buoyancy = -beta * gx * 0.5 * (t[i, j] + t[i + 1, j])
            f[i, j] = u[i, j] + dt * (lap / re - du2dx - duvdy + buoyancy)

    for i in range(1, imax + 1):
        for j in range(1, jmax):
            if (flags[i, j] & FLUID) == 0 or (flags[i, j + 1] & FLUID) == 0:
                continue
            lap = (v[i + 1, j] - 2.0 * v[i, j] + v[i - 1, j]) * inv_dx2 + (
                v[i, j + 1] - 2.0 * v[i, j] + v[i, j - 1]
            ) * inv_dy2

            ue = u[i, j] + u[i, j + 1]
            uw = u[i - 1, j] + u[i - 1, j + 1]
            duvdx = 0.25 * inv_dx * (
                ue * (v[i, j] + v[i + 1, j])
                - uw * (v[i - 1, j] + v[i, j])
                + alpha * (abs(ue) * (v[i, j] - v[i + 1, j]) - abs(uw) * (v[i - 1, j] - v[i, j]))
            )

            vn = v[i, j] + v[i, j + 1]
            vs = v[i, j - 1] + v[i, j]
            dv2dy = 0.25 * inv_dy * (
                vn * vn
                - vs * vs
                + alpha * (abs(vn) * (v[i, j] - v[i, j + 1]) - abs(vs) * (v[i, j - 1] - v[i, j]))
            )

            buoyancy = -beta * gy * 0.5 * (t[i, j] + t[i, j + 1])
            g[i, j] = v[i, j] + dt * (lap / re - duvdx - dv2dy + buoyancy)

    # Pass-through on the domain edges
    for j in range(1, jmax + 1):
        f[0, j] = u[0, j]
        f[imax, j] = u[imax, j]
    for i in range(1, imax + 1):
        g[i, 0] = v[i, 0]
        g[i, jmax] = v[i, jmax]


@njit(cache=True)
def compute_rhs(f, g, rs, flags, imax, jmax, dx, dy, dt):
    """Divergence of the predicted velocity over dt, on fluid cells."""
    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            if (flags[i, j] & FLUID) == 0:
                continue
            rs[i, j] = (
                (f[i, j] - f[i - 1, j]) / dx + (g[i, j] - g[i, j - 1]) / dy
            ) / dt
