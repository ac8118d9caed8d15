"""Grid classification for obstacle geometries."""

from .flags import (
    CellKind,
    FlagField,
    Orientation,
    classify_mask,
    is_forbidden_cell,
)

__all__ = [
    "CellKind",
    "FlagField",
    "Orientation",
    "classify_mask",
    "is_forbidden_cell",
]
