"""Tests for PGM geometry and field loading."""

import numpy as np
import pytest

from solvers.errors import ConfigurationError
from utilities.io import load_field, pgm_dimensions, read_pgm


@pytest.fixture
def small_pgm(tmp_path):
    """3 x 2 plain PGM; first image row is the top of the domain."""
    path = tmp_path / "small.pgm"
    path.write_text("P2\n3 2\n255\n0 255 100\n10 20 30\n")
    return path


class TestReadPGM:
    def test_dimensions(self, small_pgm):
        assert pgm_dimensions(small_pgm) == (3, 2)

    def test_orientation_and_border(self, small_pgm):
        pic = read_pgm(small_pgm)

        assert pic.shape == (5, 4)
        # j = 1 is the bottom image row
        assert pic[1, 1] == 10
        assert pic[3, 1] == 30
        assert pic[1, 2] == 0
        assert pic[2, 2] == 255
        assert pic[3, 2] == 100
        assert np.all(pic[0, :] == 0)
        assert np.all(pic[:, -1] == 0)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            read_pgm(tmp_path / "missing.pgm")
        with pytest.raises(ConfigurationError):
            pgm_dimensions(tmp_path / "missing.pgm")

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "garbage.pgm"
        path.write_text("not an image")
        with pytest.raises(ConfigurationError):
            read_pgm(path)


class TestLoadField:
    def test_scaled(self, small_pgm):
        field = load_field(small_pgm, 0.5, 3, 2)

        assert field.dtype == np.float64
        assert field[2, 2] == pytest.approx(127.5)

    def test_shape_mismatch(self, small_pgm):
        with pytest.raises(ConfigurationError):
            load_field(small_pgm, 1.0, 4, 2)
