"""
Plot styling for solver output.

Serif fonts with mathtext (no LaTeX install required) on top of the seaborn
darkgrid theme, plus the colormap assigned to each plotted quantity.
"""

import matplotlib.pyplot as plt
import seaborn as sns

# Colormap per field column; species columns (C_*) share one
FIELD_CMAPS = {
    "p": "viridis",
    "T": "inferno",
    "speed": "mako",
}
SPECIES_CMAP = "crest"


def field_cmap(column: str) -> str:
    if column.startswith("C_"):
        return SPECIES_CMAP
    return FIELD_CMAPS.get(column, "viridis")


def apply_style():
    """Set rcParams and the seaborn theme; safe to call repeatedly."""
    sns.set_theme(style="darkgrid", rc={"font.family": "serif", "mathtext.fontset": "cm"})
    plt.rcParams.update(
        {
            "axes.titlesize": 12,
            "axes.labelsize": 11,
            "font.size": 10,
            "xtick.labelsize": 9,
            "ytick.labelsize": 9,
            "figure.dpi": 100,
        }
    )
