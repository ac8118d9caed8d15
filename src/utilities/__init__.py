"""Cross-project utilities (config loading, image IO, MLflow)."""

# Keep __init__ lightweight to avoid circular imports during Hydra start-up.
from utilities.io import load_field, pgm_dimensions, read_pgm  # noqa: F401

__all__ = [
    "load_field",
    "pgm_dimensions",
    "read_pgm",
]
