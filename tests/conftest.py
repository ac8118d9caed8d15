"""Pytest configuration and fixtures for reactive flow solver tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def repo_root():
    return Path(__file__).parent.parent


@pytest.fixture
def make_mask():
    """Factory for fluid masks of imax x jmax interior cells with given solid cells."""

    def _make(imax, jmax, solid=()):
        mask = np.zeros((imax + 2, jmax + 2), dtype=np.int64)
        mask[1:-1, 1:-1] = 255
        for i, j in solid:
            mask[i, j] = 0
        return mask

    return _make


@pytest.fixture
def block_flags(make_mask):
    """6x6 domain with a 2x2 obstacle occupying cells (3..4, 3..4)."""
    from meshing.flags import FlagField

    solid = [(3, 3), (3, 4), (4, 3), (4, 4)]
    return FlagField.from_mask(make_mask(6, 6, solid))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def small_box_params():
    """Closed 4x4 box at rest with a fixed time step."""
    return {
        "problem": "box",
        "imax": 4,
        "jmax": 4,
        "xlength": 1.0,
        "ylength": 1.0,
        "Re": 10.0,
        "Pr": 1.0,
        "tau": 0.0,
        "dt": 0.01,
        "t_end": 1.0,
        "output_dt": 0.5,
        "eps": 1e-6,
        "itermax": 100,
    }


@pytest.fixture
def convection_params():
    """Differentially heated 8x8 cavity with an inert passive species."""
    from solvers.datastructures import BoundaryKind, WallCondition, Walls

    return {
        "problem": "convection",
        "imax": 8,
        "jmax": 8,
        "Re": 100.0,
        "Pr": 1.0,
        "beta": 1.0,
        "gy": -10.0,
        "tau": 0.5,
        "t_end": 100.0,
        "output_dt": 1.0,
        "eps": 1e-6,
        "itermax": 200,
        "temperature_walls": Walls(
            left=WallCondition(BoundaryKind.DIRICHLET, 1.0),
            right=WallCondition(BoundaryKind.DIRICHLET, 0.0),
            top=WallCondition(BoundaryKind.NEUMANN),
            bottom=WallCondition(BoundaryKind.NEUMANN),
        ),
    }
