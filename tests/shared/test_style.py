"""Tests for plot styling helpers."""

import matplotlib.pyplot as plt

from shared.plotting.style import FIELD_CMAPS, SPECIES_CMAP, apply_style, field_cmap


def test_species_columns_share_colormap():
    assert field_cmap("C_fuel") == SPECIES_CMAP
    assert field_cmap("C_O2") == SPECIES_CMAP


def test_known_and_unknown_columns():
    assert field_cmap("T") == FIELD_CMAPS["T"]
    assert field_cmap("vorticity") == "viridis"


def test_apply_style_uses_mathtext_serif():
    apply_style()
    assert plt.rcParams["mathtext.fontset"] == "cm"
    assert plt.rcParams["text.usetex"] is False
