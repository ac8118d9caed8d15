"""Data structures for solver configuration and results.

This module defines the configuration and result data structures
for the staggered-grid reactive flow solver.

Structure:
- SimulationParameters: Input configuration (logged to MLflow at start)
- Metrics: Output results (logged to MLflow at end)
- Fields: Cell-centred solution data
- TimeSeries: Per-step history
- SolverFields: Internal ghost-inclusive arrays and scratch buffers
"""

import time
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import ConfigurationError


# ========================================================
# Boundary conditions
# ========================================================


class BoundaryKind(Enum):
    """Closed set of boundary condition kinds."""

    DIRICHLET = "dirichlet"
    NEUMANN = "neumann"
    NO_SLIP = "no_slip"
    FREE_SLIP = "free_slip"
    OUTFLOW = "outflow"
    PRESSURE = "pressure"

    @classmethod
    def parse(cls, name) -> "BoundaryKind":
        """Parse a kind from its configuration name (case and separator insensitive)."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace("-", "_").replace(" ", "_")
        if key == "noslip":
            key = "no_slip"
        elif key == "freeslip":
            key = "free_slip"
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ConfigurationError(
                f"Unknown boundary kind '{name}' (expected one of: {valid})"
            ) from None


VELOCITY_KINDS = (
    BoundaryKind.NO_SLIP,
    BoundaryKind.FREE_SLIP,
    BoundaryKind.OUTFLOW,
    BoundaryKind.PRESSURE,
)
SCALAR_KINDS = (BoundaryKind.DIRICHLET, BoundaryKind.NEUMANN)


@dataclass(frozen=True)
class WallCondition:
    """Kind and value of a single wall condition.

    For velocity walls the value is the edge pressure used by PRESSURE walls.
    """

    kind: BoundaryKind
    value: float = 0.0


@dataclass(frozen=True)
class Walls:
    """One condition per domain edge."""

    left: WallCondition
    right: WallCondition
    top: WallCondition
    bottom: WallCondition

    @classmethod
    def uniform(cls, kind: BoundaryKind, value: float = 0.0) -> "Walls":
        cond = WallCondition(kind, value)
        return cls(left=cond, right=cond, top=cond, bottom=cond)

    def items(self):
        return (
            ("left", self.left),
            ("right", self.right),
            ("top", self.top),
            ("bottom", self.bottom),
        )

    def has_kind(self, kind: BoundaryKind) -> bool:
        return any(cond.kind is kind for _, cond in self.items())


# ========================================================
# Species, reactions, initial conditions
# ========================================================


@dataclass(frozen=True)
class InitialCondition:
    """Constant initial value or a loaded cell-centred field (ghost layer included)."""

    value: float = 0.0
    source: Optional[str] = None
    data: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    def materialize(self, shape: Tuple[int, int]) -> np.ndarray:
        if self.data is None:
            return np.full(shape, self.value, dtype=np.float64)
        if self.data.shape != shape:
            raise ConfigurationError(
                f"Initial field from {self.source} has shape {self.data.shape}, expected {shape}"
            )
        return np.array(self.data, dtype=np.float64)

    def describe(self) -> str:
        return self.source if self.source is not None else str(self.value)


@dataclass(frozen=True)
class Species:
    name: str
    diffusivity: float
    formation_enthalpy: float = 0.0
    initial: InitialCondition = InitialCondition()


@dataclass(frozen=True)
class ReactionTerm:
    """A reagent or product: species index, stoichiometric coefficient, rate exponent."""

    species: int
    stoichiometric_coefficient: float = 1.0
    exponent: float = 1.0


@dataclass(frozen=True)
class Reaction:
    """Reversible Arrhenius reaction between indexed species."""

    reagents: Tuple[ReactionTerm, ...]
    products: Tuple[ReactionTerm, ...]
    activation_energy_forward: float = 0.0
    activation_energy_backward: float = 0.0
    frequency_factor_forward: float = 0.0
    frequency_factor_backward: float = 0.0


# ========================================================
# Inflow
# ========================================================


@dataclass(frozen=True)
class ConcentrationInlet:
    """Fixed concentration on a fraction [start, stop] of a wall's ghost layer."""

    species: int
    wall: str
    start: float
    stop: float
    value: float = 1.0


@dataclass(frozen=True)
class InflowSettings:
    profile: str = "none"
    peak_velocity: float = 1.0
    inlets: Tuple[ConcentrationInlet, ...] = ()


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass(frozen=True)
class SimulationParameters:
    """Immutable per-run configuration."""

    problem: str = "cavity"

    # Domain
    xlength: float = 1.0
    ylength: float = 1.0
    imax: int = 16
    jmax: int = 16
    geometry_file: Optional[str] = None
    geometry_threshold: int = 100

    # Physics
    Re: float = 100.0
    Pr: float = 1.0
    beta: float = 0.0
    vol_cp: float = 1.0
    gx: float = 0.0
    gy: float = 0.0
    t_inf: float = 273.15

    # Convection blending
    alpha: float = 0.9  # momentum
    gamma: float = 0.9  # scalars

    # Pressure solver
    omg: float = 1.7
    eps: float = 1e-3
    itermax: int = 100

    # Time stepping
    dt: float = 0.01
    t_end: float = 1.0
    tau: float = 0.5
    output_dt: float = 0.1

    # Initial state
    ui: float = 0.0
    vi: float = 0.0
    pi: float = 0.0
    initial_temperature: InitialCondition = InitialCondition()

    # Boundaries
    velocity_walls: Walls = field(default_factory=lambda: Walls.uniform(BoundaryKind.NO_SLIP))
    temperature_walls: Walls = field(default_factory=lambda: Walls.uniform(BoundaryKind.NEUMANN))
    obstacle_temperature: WallCondition = WallCondition(BoundaryKind.NEUMANN, 0.0)

    # Chemistry
    species: Tuple[Species, ...] = ()
    reactions: Tuple[Reaction, ...] = ()

    inflow: InflowSettings = InflowSettings()

    def __post_init__(self):
        if self.imax <= 0 or self.jmax <= 0:
            raise ConfigurationError(f"Grid must be positive, got imax={self.imax}, jmax={self.jmax}")
        if self.xlength <= 0 or self.ylength <= 0:
            raise ConfigurationError("Domain lengths must be positive")
        if self.Re <= 0 or self.Pr <= 0:
            raise ConfigurationError("Re and Pr must be positive")
        if self.vol_cp == 0:
            raise ConfigurationError("vol_cp must be non-zero")
        if self.itermax <= 0:
            raise ConfigurationError("itermax must be positive")
        if self.tau <= 0 and self.dt <= 0:
            raise ConfigurationError("A fixed time step (tau <= 0) requires dt > 0")
        if self.output_dt <= 0:
            raise ConfigurationError("output_dt must be positive")
        for _, cond in self.velocity_walls.items():
            if cond.kind not in VELOCITY_KINDS:
                raise ConfigurationError(f"{cond.kind.value} is not a velocity boundary kind")
        for _, cond in self.temperature_walls.items():
            if cond.kind not in SCALAR_KINDS:
                raise ConfigurationError(f"{cond.kind.value} is not a temperature boundary kind")
        if self.obstacle_temperature.kind not in SCALAR_KINDS:
            raise ConfigurationError("Obstacle temperature must be dirichlet or neumann")

        n_species = len(self.species)
        for r, reaction in enumerate(self.reactions):
            for term in reaction.reagents + reaction.products:
                if not 0 <= term.species < n_species:
                    raise ConfigurationError(
                        f"Reaction {r} references species index {term.species} "
                        f"but only {n_species} species are defined"
                    )
        for inlet in self.inflow.inlets:
            if not 0 <= inlet.species < n_species:
                raise ConfigurationError(f"Inlet references unknown species index {inlet.species}")

    @property
    def dx(self) -> float:
        return self.xlength / self.imax

    @property
    def dy(self) -> float:
        return self.ylength / self.jmax

    @property
    def species_names(self) -> List[str]:
        return [s.name for s in self.species]

    @property
    def pressure_anchored(self) -> bool:
        """True when a PRESSURE wall fixes the absolute pressure level."""
        return self.velocity_walls.has_kind(BoundaryKind.PRESSURE)

    def to_mlflow(self) -> Dict[str, object]:
        """Flatten to scalar parameters suitable for mlflow.log_params."""
        flat = {
            k: ("" if v is None else v)
            for k, v in asdict(self).items()
            if isinstance(v, (int, float, str)) or v is None
        }
        flat["initial_temperature"] = self.initial_temperature.describe()
        for name, cond in self.velocity_walls.items():
            flat[f"velocity_{name}"] = cond.kind.value
            if cond.kind is BoundaryKind.PRESSURE:
                flat[f"pressure_{name}"] = cond.value
        for name, cond in self.temperature_walls.items():
            flat[f"temperature_{name}"] = f"{cond.kind.value}:{cond.value}"
        flat["obstacle_temperature"] = (
            f"{self.obstacle_temperature.kind.value}:{self.obstacle_temperature.value}"
        )
        flat["species"] = ",".join(self.species_names)
        flat["n_reactions"] = len(self.reactions)
        flat["inflow"] = self.inflow.profile
        return flat

    def to_dataframe(self):
        return pd.DataFrame([self.to_mlflow()])


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    steps: int = 0
    final_time: float = 0.0
    final_dt: float = 0.0
    wall_time_seconds: float = 0.0
    total_sor_iterations: int = 0
    max_sor_iterations: int = 0
    nonconverged_steps: int = 0
    final_residual: float = float("inf")
    converged: bool = False
    kinetic_energy: float = 0.0
    mean_temperature: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> Dict[str, float]:
        return {k: float(v) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class StepReport:
    """Diagnostics for one macro step."""

    step: int
    time: float
    dt: float
    limiting_bound: str
    sor_iterations: int
    residual: float
    converged: bool


# ========================================================
# Fields (Cell-centred Solution Data)
# ========================================================


@dataclass
class Fields:
    """Cell-centred solution on the interior cells, one entry per cell."""

    x: np.ndarray
    y: np.ndarray
    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    T: np.ndarray
    fluid: np.ndarray
    concentrations: Dict[str, np.ndarray] = field(default_factory=dict)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per interior cell."""
        data = {k: v for k, v in asdict(self).items() if k != "concentrations"}
        data.update({f"C_{name}": values for name, values in self.concentrations.items()})
        return pd.DataFrame(data)


# ========================================================
# Time Series (Per-step History)
# ========================================================


@dataclass
class TimeSeries:
    """History of the time loop (one value per recorded step)."""

    step: List[int]
    time: List[float]
    dt: List[float]
    sor_iterations: List[int]
    residual: List[float]
    kinetic_energy: List[float]
    mean_temperature: List[float]
    limiting_bound: Optional[List[str]] = None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per step."""
        return pd.DataFrame({k: v for k, v in asdict(self).items() if v is not None})

    def to_mlflow_batch(self):
        """Numeric series as a list of mlflow Metric entities for log_batch."""
        from mlflow.entities import Metric

        timestamp = int(time.time() * 1000)
        batch = []
        numeric = ("time", "dt", "sor_iterations", "residual", "kinetic_energy", "mean_temperature")
        for key in numeric:
            for step, value in zip(self.step, getattr(self, key)):
                batch.append(Metric(key=key, value=float(value), timestamp=timestamp, step=int(step)))
        return batch


# =============================================================
# Internal solver arrays
# ============================================================


@dataclass
class SolverFields:
    """Ghost-inclusive arrays indexed [i, j] and their scratch buffers.

    U, V, P, T and each C[s] span 0..imax+1 x 0..jmax+1.
    F and G span 0..imax x 0..jmax; RS uses 1..imax x 1..jmax of the same shape.
    """

    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    t: np.ndarray
    c: np.ndarray  # (n_species, imax+2, jmax+2)

    f: np.ndarray
    g: np.ndarray
    rs: np.ndarray

    # Transport ping-pong buffers
    t_scratch: np.ndarray
    c_scratch: np.ndarray

    # Per-species rate work vector for reaction kernels
    rates: np.ndarray

    @classmethod
    def allocate(cls, imax: int, jmax: int, n_species: int = 0):
        """Allocate all arrays with proper sizes."""
        full = (imax + 2, jmax + 2)
        staggered = (imax + 1, jmax + 1)
        return cls(
            u=np.zeros(full),
            v=np.zeros(full),
            p=np.zeros(full),
            t=np.zeros(full),
            c=np.zeros((n_species,) + full),
            f=np.zeros(staggered),
            g=np.zeros(staggered),
            rs=np.zeros(staggered),
            t_scratch=np.zeros(full),
            c_scratch=np.zeros((n_species,) + full),
            rates=np.zeros(n_species),
        )

    @property
    def n_species(self) -> int:
        return self.c.shape[0]

    def swap_temperature(self):
        self.t, self.t_scratch = self.t_scratch, self.t

    def swap_concentrations(self):
        self.c, self.c_scratch = self.c_scratch, self.c
