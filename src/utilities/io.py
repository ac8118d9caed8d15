"""Reading PGM geometry masks and initial fields."""

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from solvers.errors import ConfigurationError

log = logging.getLogger(__name__)


def pgm_dimensions(path) -> tuple:
    """Return (xsize, ysize) of an image without decoding its pixels."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Image file not found: {path}")
    with Image.open(path) as img:
        return img.size


def read_pgm(path) -> np.ndarray:
    """Read a PGM image into an array indexed [i, j] with a one-cell zero border.

    Image rows are stored top to bottom, so they are flipped to make j = 1 the
    bottom row of the domain. The result has shape (xsize + 2, ysize + 2).
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Image file not found: {path}")
    try:
        with Image.open(path) as img:
            pixels = np.asarray(img, dtype=np.int64)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read image {path}: {exc}") from exc

    if pixels.ndim != 2:
        raise ConfigurationError(f"{path} is not a single-channel image")

    field = np.pad(pixels[::-1, :].T, 1, mode="constant", constant_values=0)
    log.debug(f"Read {path.name}: {pixels.shape[1]}x{pixels.shape[0]} pixels")
    return field


def load_field(path, coeff: float, imax: int, jmax: int) -> np.ndarray:
    """Load a cell-centred scalar field from an image, scaled by ``coeff``."""
    pic = read_pgm(path)
    if pic.shape != (imax + 2, jmax + 2):
        raise ConfigurationError(
            f"Field file {path} is {pic.shape[0] - 2}x{pic.shape[1] - 2}, "
            f"expected {imax}x{jmax} to match the grid"
        )
    return pic.astype(np.float64) * coeff
