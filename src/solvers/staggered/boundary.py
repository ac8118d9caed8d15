"""Domain-edge and obstacle-interface boundary conditions.

Domain walls are applied with numpy slices on the ghost layer. Obstacle
interfaces are applied cell by cell in a compiled kernel that dispatches on
the flag code of each obstacle-boundary cell.
"""

from numba import njit

from meshing.flags import EAST, FLUID, NORTH, SOUTH, WEST
from ..datastructures import BoundaryKind, Walls


# ============================================================================
# Domain walls
# ============================================================================


def apply_velocity_walls(u, v, walls: Walls, imax: int, jmax: int):
    """Set ghost and wall-normal velocities on the four domain edges.

    PRESSURE walls use the zero-gradient outflow treatment.
    """
    js = slice(1, jmax + 1)
    is_ = slice(1, imax + 1)

    kind = walls.left.kind
    if kind is BoundaryKind.NO_SLIP:
        u[0, js] = 0.0
        v[0, js] = -v[1, js]
    elif kind is BoundaryKind.FREE_SLIP:
        u[0, js] = 0.0
        v[0, js] = v[1, js]
    else:
        u[0, js] = u[1, js]
        v[0, js] = v[1, js]

    kind = walls.right.kind
    if kind is BoundaryKind.NO_SLIP:
        u[imax, js] = 0.0
        v[imax + 1, js] = -v[imax, js]
    elif kind is BoundaryKind.FREE_SLIP:
        u[imax, js] = 0.0
        v[imax + 1, js] = v[imax, js]
    else:
        u[imax, js] = u[imax - 1, js]
        v[imax + 1, js] = v[imax, js]

    kind = walls.bottom.kind
    if kind is BoundaryKind.NO_SLIP:
        v[is_, 0] = 0.0
        u[is_, 0] = -u[is_, 1]
    elif kind is BoundaryKind.FREE_SLIP:
        v[is_, 0] = 0.0
        u[is_, 0] = u[is_, 1]
    else:
        v[is_, 0] = v[is_, 1]
        u[is_, 0] = u[is_, 1]

    kind = walls.top.kind
    if kind is BoundaryKind.NO_SLIP:
        v[is_, jmax] = 0.0
        u[is_, jmax + 1] = -u[is_, jmax]
    elif kind is BoundaryKind.FREE_SLIP:
        v[is_, jmax] = 0.0
        u[is_, jmax + 1] = u[is_, jmax]
    else:
        v[is_, jmax] = v[is_, jmax - 1]
        u[is_, jmax + 1] = u[is_, jmax]


def apply_temperature_walls(t, walls: Walls, imax: int, jmax: int, dx: float, dy: float):
    """Dirichlet mirrors about the wall value, Neumann extrapolates the gradient."""
    js = slice(1, jmax + 1)
    is_ = slice(1, imax + 1)
    edges = (
        (walls.left, (0, js), (1, js), dx),
        (walls.right, (imax + 1, js), (imax, js), dx),
        (walls.bottom, (is_, 0), (is_, 1), dy),
        (walls.top, (is_, jmax + 1), (is_, jmax), dy),
    )
    for cond, ghost, adjacent, h in edges:
        if cond.kind is BoundaryKind.DIRICHLET:
            t[ghost] = 2.0 * cond.value - t[adjacent]
        else:
            t[ghost] = t[adjacent] - h * cond.value


def apply_concentration_walls(c, imax: int, jmax: int):
    """Zero-flux copy on every wall for every species."""
    js = slice(1, jmax + 1)
    is_ = slice(1, imax + 1)
    c[:, 0, js] = c[:, 1, js]
    c[:, imax + 1, js] = c[:, imax, js]
    c[:, is_, 0] = c[:, is_, 1]
    c[:, is_, jmax + 1] = c[:, is_, jmax]


# ============================================================================
# Obstacle interfaces
# ============================================================================


@njit(cache=True)
def apply_obstacle_boundaries(u, v, p, f, g, flags, imax, jmax):
    """No-slip velocities, F/G pass-through and pressure copy at obstacle faces."""
    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            code = flags[i, j]
            if (code & FLUID) != 0 or code == 0:
                continue

            if code == NORTH:
                v[i, j] = 0.0
                u[i - 1, j] = -u[i - 1, j + 1]
                u[i, j] = -u[i, j + 1]
                g[i, j] = v[i, j]
                p[i, j] = p[i, j + 1]
            elif code == SOUTH:
                v[i, j - 1] = 0.0
                u[i - 1, j] = -u[i - 1, j - 1]
                u[i, j] = -u[i, j - 1]
                g[i, j - 1] = v[i, j - 1]
                p[i, j] = p[i, j - 1]
            elif code == WEST:
                u[i - 1, j] = 0.0
                v[i, j - 1] = -v[i - 1, j - 1]
                v[i, j] = -v[i - 1, j]
                f[i - 1, j] = u[i - 1, j]
                p[i, j] = p[i - 1, j]
            elif code == EAST:
                u[i, j] = 0.0
                v[i, j - 1] = -v[i + 1, j - 1]
                v[i, j] = -v[i + 1, j]
                f[i, j] = u[i, j]
                p[i, j] = p[i + 1, j]
            elif code == NORTH | EAST:
                v[i, j] = 0.0
                u[i - 1, j] = -u[i - 1, j + 1]
                g[i, j] = v[i, j]
                u[i, j] = 0.0
                v[i, j - 1] = -v[i + 1, j - 1]
                f[i, j] = u[i, j]
                p[i, j] = 0.5 * (p[i, j + 1] + p[i + 1, j])
            elif code == NORTH | WEST:
                v[i, j] = 0.0
                u[i, j] = -u[i, j + 1]
                g[i, j] = v[i, j]
                u[i - 1, j] = 0.0
                v[i, j - 1] = -v[i - 1, j - 1]
                f[i - 1, j] = u[i - 1, j]
                p[i, j] = 0.5 * (p[i, j + 1] + p[i - 1, j])
            elif code == SOUTH | EAST:
                v[i, j - 1] = 0.0
                u[i - 1, j] = -u[i - 1, j - 1]
                g[i, j - 1] = v[i, j - 1]
                u[i, j] = 0.0
                v[i, j] = -v[i + 1, j]
                f[i, j] = u[i, j]
                p[i, j] = 0.5 * (p[i, j - 1] + p[i + 1, j])
            elif code == SOUTH | WEST:
                v[i, j - 1] = 0.0
                u[i, j] = -u[i, j - 1]
                g[i, j - 1] = v[i, j - 1]
                u[i - 1, j] = 0.0
                v[i, j] = -v[i - 1, j]
                f[i - 1, j] = u[i - 1, j]
                p[i, j] = 0.5 * (p[i, j - 1] + p[i - 1, j])
