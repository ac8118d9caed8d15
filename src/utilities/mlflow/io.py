"""MLflow I/O utilities for experiment tracking."""

import logging
import os

import mlflow
from omegaconf import DictConfig

log = logging.getLogger(__name__)


def get_experiment_name(cfg: DictConfig) -> str:
    """Build full experiment name with optional prefix."""
    name = cfg.experiment_name
    prefix = cfg.mlflow.get("project_prefix", "")
    if prefix and not name.startswith("/"):
        return f"{prefix}/{name}"
    return name


def setup_mlflow(cfg: DictConfig) -> str:
    """Configure MLflow tracking and return the experiment name.

    ``mlflow.mode`` is "local" (file store at ``tracking_uri``) or
    "databricks" (credentials from the environment / .env).
    """
    mode = str(cfg.mlflow.get("mode", "local")).lower()
    if mode == "databricks":
        try:
            mlflow.login(backend="databricks", interactive=False)
            tracking_uri = "databricks"
        except Exception as e:
            raise RuntimeError(
                "MLflow Databricks setup failed. Ensure credentials are configured."
            ) from e
    else:
        tracking_uri = str(cfg.mlflow.get("tracking_uri", "./mlruns"))
    os.environ["MLFLOW_TRACKING_URI"] = tracking_uri
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = get_experiment_name(cfg)
    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        experiment_name = f"{experiment_name}-restored"
        log.warning(f"MLflow set_experiment failed ({exc}); using '{experiment_name}'")
        mlflow.set_experiment(experiment_name)

    return experiment_name


def log_time_series(run_id: str, time_series, chunk_size: int = 1000):
    """Upload a TimeSeries as step-indexed metrics in batches."""
    batch = time_series.to_mlflow_batch()
    client = mlflow.tracking.MlflowClient()
    for start in range(0, len(batch), chunk_size):
        client.log_batch(run_id, metrics=batch[start : start + chunk_size])
    log.debug(f"Logged {len(batch)} time-series points to run {run_id[:8]}")
