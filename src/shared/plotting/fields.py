"""
Field maps.

Cell-centred pressure, temperature, speed and every species on the grid, with
obstacle cells masked out.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .style import field_cmap

log = logging.getLogger(__name__)

TITLES = {"p": r"Pressure $p$", "T": r"Temperature $T$", "speed": r"Speed $|\mathbf{u}|$"}


def _grid(fields_df: pd.DataFrame, column: str):
    x = np.sort(fields_df["x"].unique())
    y = np.sort(fields_df["y"].unique())
    ordered = fields_df.sort_values(["y", "x"])
    values = ordered[column].to_numpy(dtype=float).reshape(len(y), len(x))
    fluid = ordered["fluid"].to_numpy(dtype=bool).reshape(len(y), len(x))
    return x, y, np.ma.masked_where(~fluid, values)


def plot_fields(fields_df: pd.DataFrame, problem: str, output_dir: Path) -> Path:
    """One stacked panel per scalar; returns the written PNG path."""
    sns.set_style("white")

    df = fields_df.assign(speed=np.hypot(fields_df["u"], fields_df["v"]))
    columns = ["p", "T", "speed"] + [c for c in df.columns if c.startswith("C_")]

    fig, axes = plt.subplots(len(columns), 1, figsize=(7, 2.8 * len(columns)), squeeze=False)
    for ax, column in zip(axes[:, 0], columns):
        x, y, values = _grid(df, column)
        mesh = ax.pcolormesh(x, y, values, cmap=field_cmap(column), shading="nearest")
        ax.set_title(TITLES.get(column, rf"Concentration {column[2:]}"))
        ax.set_xlabel(r"$x$")
        ax.set_ylabel(r"$y$")
        ax.set_aspect("equal")
        fig.colorbar(mesh, ax=ax)

    fig.suptitle(f"{problem}: final state")
    fig.tight_layout()

    output_path = Path(output_dir) / "fields.png"
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    log.info(f"Saved field plots to {output_path}")
    return output_path
