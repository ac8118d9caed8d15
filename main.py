"""
Reactive flow solver - Unified entry point for solving and plotting.

Usage:
    python main.py                                  # default problem (wire)
    python main.py problem=mixing
    python main.py problem=cavity problem.physics.Re=400 max_steps=200
    python main.py -m problem=wire,reaction
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.core.hydra_config import HydraConfig
from hydra.utils import get_original_cwd
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

from shared.snapshots import VTKSnapshotWriter  # noqa: E402
from solvers.errors import ConfigurationError, GeometryError  # noqa: E402
from solvers.staggered import StaggeredGridSolver  # noqa: E402
from utilities.config import load_geometry, load_parameters  # noqa: E402
from utilities.mlflow import log_time_series, setup_mlflow  # noqa: E402

log = logging.getLogger(__name__)


def build_solver(cfg: DictConfig, output_dir: Path) -> StaggeredGridSolver:
    """Load parameters and geometry, fail fast on configuration errors."""
    params = load_parameters(cfg.problem, base_dir=get_original_cwd())
    flags = load_geometry(params)

    sink = None
    if cfg.output.get("vtk", True):
        prefix = cfg.output.get("prefix") or params.problem
        sink = VTKSnapshotWriter(output_dir / "vtk", prefix=prefix)
    return StaggeredGridSolver(params, flags=flags, sink=sink)


def run_solver(cfg: DictConfig, solver: StaggeredGridSolver, output_dir: Path) -> str:
    """Run solver and log to MLflow. Returns run_id."""
    params = solver.params
    run_name = f"{params.problem}_{params.imax}x{params.jmax}"

    # Parent run tagging for sweeps
    parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
    tags = {"problem": params.problem}
    if parent_run_id:
        tags.update({"mlflow.parentRunId": parent_run_id, "parent_run_id": parent_run_id, "sweep": "child"})

    with mlflow.start_run(run_name=run_name, tags=tags, nested=bool(parent_run_id)) as run:
        mlflow.log_params(params.to_mlflow())
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        log.info(f"Solving: {params.problem} {params.imax}x{params.jmax} Re={params.Re} t_end={params.t_end}")
        solver.solve(max_steps=cfg.get("max_steps"), log_interval=cfg.get("log_interval", 50))

        mlflow.log_metrics(solver.metrics.to_mlflow())
        if solver.time_series:
            log_time_series(run.info.run_id, solver.time_series)

        if cfg.output.get("save_h5", True):
            h5_path = output_dir / "solution.h5"
            solver.save(h5_path)
            mlflow.log_artifact(str(h5_path))

        with tempfile.TemporaryDirectory() as tmpdir:
            vtk_path = Path(tmpdir) / "solution.vts"
            solver.snapshot().to_vtk().save(str(vtk_path))
            mlflow.log_artifact(str(vtk_path))

        if cfg.output.get("plots", True):
            generate_plots(solver, output_dir)

        log.info(
            f"Done: {solver.metrics.steps} steps, t={solver.metrics.final_time:.4f}, "
            f"non-converged steps={solver.metrics.nonconverged_steps}, "
            f"time={solver.metrics.wall_time_seconds:.2f}s"
        )
        return run.info.run_id


def generate_plots(solver: StaggeredGridSolver, output_dir: Path):
    """Generate plots for a completed run and upload them."""
    from shared.plotting import generate_plots as make_plots

    plot_dir = output_dir / "plots"
    paths = make_plots(
        solver.fields.to_dataframe(),
        solver.time_series.to_dataframe(),
        solver.params.problem,
        plot_dir,
    )
    for path in paths:
        mlflow.log_artifact(str(path), artifact_path="plots")


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    output_dir = Path(HydraConfig.get().runtime.output_dir)
    log.info(f"Problem: {cfg.problem.name}")

    try:
        solver = build_solver(cfg, output_dir)
    except (ConfigurationError, GeometryError) as exc:
        log.error(f"Cannot start simulation: {exc}")
        sys.exit(1)

    log.info(f"MLflow experiment: {setup_mlflow(cfg)}")
    run_solver(cfg, solver, output_dir)


if __name__ == "__main__":
    main()
