"""Plotting for solver results (matplotlib + seaborn)."""

import logging
from pathlib import Path

from .convergence import plot_convergence
from .fields import plot_fields
from .style import apply_style

log = logging.getLogger(__name__)


def generate_plots(fields_df, timeseries_df, problem: str, output_dir) -> list:
    """Generate all plots for a finished run; returns the written paths."""
    apply_style()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = [
        plot_convergence(timeseries_df, problem, output_dir),
        plot_fields(fields_df, problem, output_dir),
    ]
    return [p for p in paths if p is not None]


__all__ = [
    "apply_style",
    "generate_plots",
    "plot_convergence",
    "plot_fields",
]
