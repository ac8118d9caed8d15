"""Abstract base solver for transient simulations."""

from abc import ABC, abstractmethod
import logging
import time
from pathlib import Path

import numpy as np
import pandas as pd
import mlflow

from shared.snapshots import Snapshot, SnapshotSink
from .datastructures import Fields, Metrics, SimulationParameters, StepReport, TimeSeries

log = logging.getLogger(__name__)


class TransientSolver(ABC):
    """Abstract base solver for time-marching problems.

    Handles:
    - Parameter management (input configuration)
    - Time loop up to t_end with periodic snapshots
    - Metrics and time series tracking (output results)
    - MLflow live logging and HDF5 export

    Subclasses must:
    - Implement step() - advance one macro step and return a StepReport
    - Implement _finalize_fields() - build the cell-centred Fields output
    - Provide ``arrays`` (SolverFields) and ``fluid`` (bool mask)
    """

    def __init__(self, params: SimulationParameters = None, sink: SnapshotSink = None, **kwargs):
        """Initialize solver with parameters.

        Parameters
        ----------
        params : SimulationParameters, optional
            Parameters object. If not provided, kwargs are used to create params.
        sink : SnapshotSink, optional
            Receives periodic snapshots. No snapshots are taken without one.
        **kwargs
            Configuration passed to SimulationParameters if params is None.
        """
        if params is None:
            params = SimulationParameters(**kwargs)

        self.params = params
        self.sink = sink
        self.metrics = Metrics()
        self.fields = None  # Populated after solve()
        self.time_series = None  # Populated after solve()

        self.time = 0.0
        self.step_count = 0
        self._next_output = 0.0

    @abstractmethod
    def step(self) -> StepReport:
        """Advance the solution by one macro step."""
        pass

    @abstractmethod
    def _finalize_fields(self) -> Fields:
        pass

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def _cell_velocity(self):
        u = self.arrays.u
        v = self.arrays.v
        uc = 0.5 * (u[:-2, 1:-1] + u[1:-1, 1:-1])
        vc = 0.5 * (v[1:-1, :-2] + v[1:-1, 1:-1])
        return uc, vc

    def _compute_energy(self) -> float:
        """Kinetic energy E = 0.5 * sum over fluid cells of (u^2 + v^2) dA."""
        uc, vc = self._cell_velocity()
        fluid = self.fluid[1:-1, 1:-1]
        dA = self.params.dx * self.params.dy
        return 0.5 * float(np.sum((uc * uc + vc * vc)[fluid]) * dA)

    def _compute_mean_temperature(self) -> float:
        return float(np.mean(self.arrays.t[self.fluid]))

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> Snapshot:
        return Snapshot.capture(
            self.step_count, self.time, self.params.dx, self.params.dy,
            self.arrays, self.params.species_names,
        )

    def _emit_snapshot(self):
        if self.sink is not None:
            self.sink.write(self.snapshot())

    # =========================================================================
    # Time loop
    # =========================================================================

    def _store_results(self, reports, energy_history, temperature_history, wall_time,
                       max_timeseries_points: int = 1000):
        """Store solve results in self.fields, self.time_series, and self.metrics."""
        self.fields = self._finalize_fields()

        def downsample(data):
            if data is None or len(data) <= max_timeseries_points:
                return data
            indices = np.linspace(0, len(data) - 1, max_timeseries_points, dtype=int)
            return [data[i] for i in indices]

        self.time_series = TimeSeries(
            step=downsample([r.step for r in reports]),
            time=downsample([r.time for r in reports]),
            dt=downsample([r.dt for r in reports]),
            sor_iterations=downsample([r.sor_iterations for r in reports]),
            residual=downsample([r.residual for r in reports]),
            kinetic_energy=downsample(energy_history),
            mean_temperature=downsample(temperature_history),
            limiting_bound=downsample([r.limiting_bound for r in reports]),
        )

        iterations = [r.sor_iterations for r in reports]
        nonconverged = sum(1 for r in reports if not r.converged)
        self.metrics = Metrics(
            steps=self.step_count,
            final_time=self.time,
            final_dt=reports[-1].dt if reports else 0.0,
            wall_time_seconds=wall_time,
            total_sor_iterations=int(sum(iterations)),
            max_sor_iterations=int(max(iterations)) if iterations else 0,
            nonconverged_steps=nonconverged,
            final_residual=reports[-1].residual if reports else float("inf"),
            converged=bool(reports) and nonconverged == 0,
            kinetic_energy=self._compute_energy(),
            mean_temperature=self._compute_mean_temperature(),
        )

    def solve(self, t_end: float = None, max_steps: int = None, log_interval: int = 50,
              max_timeseries_points: int = 1000):
        """March in time until t_end (or max_steps) is reached.

        Stores results in solver attributes:
        - self.fields : Fields dataclass with the cell-centred solution
        - self.time_series : TimeSeries dataclass with per-step history
        - self.metrics : Metrics dataclass with solver metrics

        Parameters
        ----------
        t_end : float, optional
            End time. If None, uses params.t_end.
        max_steps : int, optional
            Stop after this many steps even if t_end is not reached.
        log_interval : int
            Steps between progress logs and live MLflow metrics.
        max_timeseries_points : int
            Upper bound on the stored time series length (evenly downsampled).
        """
        if t_end is None:
            t_end = self.params.t_end

        reports = []
        energy_history = []
        temperature_history = []

        time_start = time.time()
        mlflow_time = 0.0  # Track time spent on MLflow logging

        while self.time < t_end:
            if max_steps is not None and self.step_count >= max_steps:
                log.info(f"Stopping after max_steps={max_steps} at t={self.time:.4f}")
                break

            if self.time >= self._next_output:
                self._emit_snapshot()
                self._next_output += self.params.output_dt

            report = self.step()
            reports.append(report)
            energy_history.append(self._compute_energy())
            temperature_history.append(self._compute_mean_temperature())

            if not report.converged:
                log.warning(
                    f"Step {report.step}: pressure not converged after "
                    f"{report.sor_iterations} iterations (residual={report.residual:.3e})"
                )

            if report.step % log_interval == 0:
                log.info(
                    f"Step {report.step}: t={report.time:.4f}, dt={report.dt:.3e} "
                    f"({report.limiting_bound}), sor={report.sor_iterations}, "
                    f"res={report.residual:.3e}"
                )

                # Live MLflow logging (timed separately)
                if mlflow.active_run():
                    t_log_start = time.time()
                    mlflow.log_metrics(
                        {
                            "dt": report.dt,
                            "sor_iterations": report.sor_iterations,
                            "residual": report.residual,
                            "kinetic_energy": energy_history[-1],
                            "mean_temperature": temperature_history[-1],
                        },
                        step=report.step,
                    )
                    mlflow_time += time.time() - t_log_start

        self._emit_snapshot()

        wall_time = time.time() - time_start - mlflow_time  # Exclude MLflow logging time
        log.info(
            f"Solver finished {self.step_count} steps at t={self.time:.4f} in "
            f"{wall_time:.2f} seconds (excl. {mlflow_time:.2f}s logging)."
        )

        self._store_results(
            reports, energy_history, temperature_history, wall_time, max_timeseries_points
        )

    def save(self, filepath):
        """Save complete solver state to HDF5 file.

        Saves params, metrics, time_series, and fields for later analysis.

        Parameters
        ----------
        filepath : str or Path
            Output file path (use .h5 extension).
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with pd.HDFStore(filepath, mode="w", complevel=5) as store:
            store["params"] = self.params.to_dataframe()
            store["metrics"] = self.metrics.to_dataframe()
            store["time_series"] = self.time_series.to_dataframe()
            store["fields"] = self.fields.to_dataframe()
