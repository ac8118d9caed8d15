"""
Time-step history plots.

Step size, SOR sweeps per step and final pressure residual against the step
counter, with the limiting stability bound marked when available.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

log = logging.getLogger(__name__)


def plot_convergence(timeseries_df: pd.DataFrame, problem: str, output_dir: Path) -> Path:
    """Three stacked panels sharing the step axis; returns the written PDF path."""
    if timeseries_df.empty:
        log.warning("No timeseries data available for convergence plot")
        return None

    sns.set_style("darkgrid")

    fig, (ax_dt, ax_sor, ax_res) = plt.subplots(3, 1, figsize=(7, 8), sharex=True)
    steps = timeseries_df["step"]

    if "limiting_bound" in timeseries_df:
        sns.scatterplot(
            data=timeseries_df, x="step", y="dt", hue="limiting_bound", s=12, ax=ax_dt
        )
        ax_dt.legend(title="limit", frameon=True, fontsize=8)
    else:
        ax_dt.plot(steps, timeseries_df["dt"])
    ax_dt.set_yscale("log")
    ax_dt.set_ylabel(r"$\Delta t$")

    ax_sor.plot(steps, timeseries_df["sor_iterations"])
    ax_sor.set_ylabel("SOR sweeps")

    # Residuals are exactly zero on trivially converged steps
    residual = timeseries_df["residual"].where(timeseries_df["residual"] > 0)
    ax_res.plot(steps, residual)
    ax_res.set_yscale("log")
    ax_res.set_ylabel("Residual")
    ax_res.set_xlabel("Step")

    ax_dt.set_title(f"Time-step history: {problem}")

    # Transparent figure, but keep darkgrid axes background
    fig.patch.set_alpha(0.0)

    output_path = Path(output_dir) / "convergence.pdf"
    fig.savefig(output_path, facecolor=(0, 0, 0, 0))
    plt.close(fig)

    return output_path
