"""Staggered-grid reactive flow solver framework.

Solver Hierarchy:
-----------------
TransientSolver (abstract base - time loop, metrics, output)
└── StaggeredGridSolver (MAC grid projection with heat and species transport)
"""

from .errors import (
    SimulationError,
    ConfigurationError,
    GeometryError,
    NumericalInvariantError,
)
from .datastructures import (
    BoundaryKind,
    WallCondition,
    Walls,
    InitialCondition,
    Species,
    ReactionTerm,
    Reaction,
    ConcentrationInlet,
    InflowSettings,
    SimulationParameters,
    Metrics,
    StepReport,
    Fields,
    TimeSeries,
    SolverFields,
)


__all__ = [
    # Errors
    "SimulationError",
    "ConfigurationError",
    "GeometryError",
    "NumericalInvariantError",
    # Parameters
    "BoundaryKind",
    "WallCondition",
    "Walls",
    "InitialCondition",
    "Species",
    "ReactionTerm",
    "Reaction",
    "ConcentrationInlet",
    "InflowSettings",
    "SimulationParameters",
    # Results
    "Metrics",
    "StepReport",
    "Fields",
    "TimeSeries",
    "SolverFields",
]
