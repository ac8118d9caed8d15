"""Exception hierarchy for the reactive flow solver.

All failures except pressure non-convergence are fatal and propagate to the
caller. Non-convergence is reported through ``StepReport`` instead.
"""


class SimulationError(Exception):
    """Base class for all solver errors."""


class ConfigurationError(SimulationError):
    """Missing or invalid parameter, unknown species name, bad field file."""


class GeometryError(SimulationError):
    """Obstacle mask contains a forbidden cell configuration."""

    def __init__(self, message: str, cell: tuple = None):
        super().__init__(message)
        self.cell = cell


class NumericalInvariantError(SimulationError):
    """An invariant of the discretization was violated during a run."""
