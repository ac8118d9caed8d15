"""MLflow utilities for experiment tracking and artifact management."""

from .io import get_experiment_name, log_time_series, setup_mlflow

__all__ = [
    "get_experiment_name",
    "log_time_series",
    "setup_mlflow",
]
