"""Obstacle-aware cell classification for the staggered grid.

Every cell of the ghost-inclusive grid carries a 5-bit code: bit 4 marks a
fluid cell, bits 0-3 mark which of its north/south/west/east neighbours are
fluid. Ghost cells are always solid (code 0).
"""

from enum import Enum
import logging

import numpy as np

from solvers.errors import GeometryError

log = logging.getLogger(__name__)

NORTH = 1
SOUTH = 2
WEST = 4
EAST = 8
FLUID = 16

DEFAULT_THRESHOLD = 100


class CellKind(Enum):
    FLUID = "fluid"
    OBSTACLE_BOUNDARY = "obstacle_boundary"
    OBSTACLE_INTERIOR = "obstacle_interior"


class Orientation(Enum):
    """Fluid-facing sides of an obstacle-boundary cell (the only legal codes)."""

    NORTH = NORTH
    SOUTH = SOUTH
    WEST = WEST
    EAST = EAST
    NORTH_EAST = NORTH | EAST
    NORTH_WEST = NORTH | WEST
    SOUTH_EAST = SOUTH | EAST
    SOUTH_WEST = SOUTH | WEST


def is_forbidden_cell(code: int) -> bool:
    """Fluid cell with both axis neighbours solid, or solid cell with both fluid."""
    code = int(code)
    if code & FLUID:
        return (code & (NORTH | SOUTH)) == 0 or (code & (WEST | EAST)) == 0
    return (code & (NORTH | SOUTH)) == (NORTH | SOUTH) or (
        code & (WEST | EAST)
    ) == (WEST | EAST)


def classify_mask(mask: np.ndarray, threshold: int = DEFAULT_THRESHOLD) -> np.ndarray:
    """Compute the flag code of every interior cell of a bordered mask.

    Parameters
    ----------
    mask : np.ndarray
        Intensities indexed [i, j] with shape (imax+2, jmax+2). The outer ring
        is treated as solid regardless of its values.
    threshold : int
        Intensities strictly above the threshold are fluid.

    Returns
    -------
    np.ndarray
        Integer codes of the same shape; the ghost ring is 0.
    """
    mask = np.asarray(mask)
    if mask.ndim != 2 or mask.shape[0] < 3 or mask.shape[1] < 3:
        raise GeometryError(f"Mask must be 2-D with a one-cell border, got shape {mask.shape}")

    fluid = mask > threshold
    fluid[0, :] = False
    fluid[-1, :] = False
    fluid[:, 0] = False
    fluid[:, -1] = False

    codes = np.zeros(mask.shape, dtype=np.int64)
    codes[1:-1, 1:-1] = (
        FLUID * fluid[1:-1, 1:-1]
        + NORTH * fluid[1:-1, 2:]
        + SOUTH * fluid[1:-1, :-2]
        + WEST * fluid[:-2, 1:-1]
        + EAST * fluid[2:, 1:-1]
    )
    return codes


def _forbidden_mask(codes: np.ndarray) -> np.ndarray:
    ns = codes & (NORTH | SOUTH)
    we = codes & (WEST | EAST)
    is_fluid = (codes & FLUID) != 0
    bad_fluid = is_fluid & ((ns == 0) | (we == 0))
    bad_solid = ~is_fluid & ((ns == (NORTH | SOUTH)) | (we == (WEST | EAST)))
    return bad_fluid | bad_solid


class FlagField:
    """Validated, read-only cell classification of the whole grid.

    Build with :meth:`from_mask` or :meth:`all_fluid`; the codes array is
    passed unchanged to the compiled kernels.
    """

    def __init__(self, codes: np.ndarray):
        codes = np.ascontiguousarray(codes, dtype=np.int64)
        self.imax = codes.shape[0] - 2
        self.jmax = codes.shape[1] - 2
        if self.imax <= 0 or self.jmax <= 0:
            raise GeometryError(f"Flag field needs at least one interior cell, got {codes.shape}")

        interior = codes[1:-1, 1:-1]
        bad = np.argwhere(_forbidden_mask(interior))
        if len(bad):
            i, j = (int(k) + 1 for k in bad[0])
            raise GeometryError(
                f"Forbidden obstacle configuration at cell ({i}, {j}) with code {codes[i, j]}",
                cell=(i, j),
            )

        self.codes = codes
        self._fluid = np.zeros(codes.shape, dtype=bool)
        self._fluid[1:-1, 1:-1] = (interior & FLUID) != 0
        self._boundary = np.zeros(codes.shape, dtype=bool)
        self._boundary[1:-1, 1:-1] = ((interior & FLUID) == 0) & (interior != 0)
        self._interior = np.zeros(codes.shape, dtype=bool)
        self._interior[1:-1, 1:-1] = interior == 0

        log.debug(
            f"Flag field {self.imax}x{self.jmax}: {self.n_fluid} fluid, "
            f"{int(self._boundary.sum())} boundary, {int(self._interior.sum())} interior obstacle cells"
        )

    @classmethod
    def from_mask(cls, mask: np.ndarray, threshold: int = DEFAULT_THRESHOLD) -> "FlagField":
        return cls(classify_mask(mask, threshold))

    @classmethod
    def all_fluid(cls, imax: int, jmax: int) -> "FlagField":
        """Obstacle-free domain of imax x jmax fluid cells."""
        mask = np.zeros((imax + 2, jmax + 2), dtype=np.int64)
        mask[1:-1, 1:-1] = 255
        return cls.from_mask(mask)

    @property
    def shape(self):
        return self.codes.shape

    @property
    def fluid(self) -> np.ndarray:
        return self._fluid

    @property
    def obstacle_boundary(self) -> np.ndarray:
        return self._boundary

    @property
    def obstacle_interior(self) -> np.ndarray:
        return self._interior

    @property
    def n_fluid(self) -> int:
        return int(self._fluid.sum())

    def kind(self, i: int, j: int) -> CellKind:
        if not (1 <= i <= self.imax and 1 <= j <= self.jmax):
            raise IndexError(f"Cell ({i}, {j}) is not an interior cell")
        code = self.codes[i, j]
        if code & FLUID:
            return CellKind.FLUID
        if code:
            return CellKind.OBSTACLE_BOUNDARY
        return CellKind.OBSTACLE_INTERIOR

    def orientation(self, i: int, j: int) -> Orientation:
        """Fluid-facing sides of an obstacle-boundary cell."""
        if self.kind(i, j) is not CellKind.OBSTACLE_BOUNDARY:
            raise ValueError(f"Cell ({i}, {j}) is not an obstacle-boundary cell")
        return Orientation(int(self.codes[i, j]))
