"""Staggered-grid projection solver with heat and reactive species transport.

Per macro step: boundary conditions, time-step selection, reactions, scalar
transport (species, then temperature), momentum prediction, SOR pressure
solve, optional mean normalization and velocity projection.
"""

import logging

import numpy as np

from meshing.flags import FlagField
from ..base import TransientSolver
from ..datastructures import Fields, SimulationParameters, SolverFields, StepReport
from ..errors import ConfigurationError
from .boundary import (
    apply_concentration_walls,
    apply_obstacle_boundaries,
    apply_temperature_walls,
    apply_velocity_walls,
)
from .inflow import create_inflow_profile
from .momentum import compute_fg, compute_rhs
from .pressure import normalize_pressure, sor_step
from .projection import compute_uv
from .reaction import ReactionTable, compute_reaction, reaction_max_dt, UNBOUNDED_DT
from .timestep import compute_timestep_bounds, select_timestep
from .transport import transport_species, transport_temperature

log = logging.getLogger(__name__)


class StaggeredGridSolver(TransientSolver):
    """Explicit projection solver on a MAC grid with obstacle flags.

    Parameters
    ----------
    params : SimulationParameters
        Physics, grid, boundary conditions and chemistry.
    flags : FlagField, optional
        Cell classification. Defaults to an obstacle-free domain.
    sink : SnapshotSink, optional
        Receives snapshots every ``output_dt`` and after the final step.
    """

    def __init__(self, params: SimulationParameters = None, flags: FlagField = None, sink=None,
                 **kwargs):
        super().__init__(params, sink=sink, **kwargs)
        p = self.params

        if flags is None:
            flags = FlagField.all_fluid(p.imax, p.jmax)
        if (flags.imax, flags.jmax) != (p.imax, p.jmax):
            raise ConfigurationError(
                f"Geometry is {flags.imax}x{flags.jmax} but parameters specify {p.imax}x{p.jmax}"
            )
        self.flags = flags
        self.fluid = flags.fluid

        self.arrays = SolverFields.allocate(p.imax, p.jmax, len(p.species))
        self.reactions = ReactionTable.from_parameters(p)
        self.inflow = create_inflow_profile(p.inflow)
        self.diffusivities = np.array([s.diffusivity for s in p.species], dtype=np.float64)
        self.max_diffusivity = float(self.diffusivities.max()) if len(p.species) else 0.0

        self._init_fields()
        log.info(
            f"Initialized {p.problem}: {p.imax}x{p.jmax} grid, {flags.n_fluid} fluid cells, "
            f"{len(p.species)} species, {len(p.reactions)} reactions"
        )

    def _init_fields(self):
        p = self.params
        a = self.arrays
        shape = a.p.shape
        a.u.fill(p.ui)
        a.v.fill(p.vi)
        a.p.fill(p.pi)
        a.t[:] = p.initial_temperature.materialize(shape)
        for s, species in enumerate(p.species):
            a.c[s] = species.initial.materialize(shape)

    # =========================================================================
    # Step components
    # =========================================================================

    def apply_boundaries(self):
        """Domain walls, obstacle interfaces, then the inflow strategy."""
        p = self.params
        a = self.arrays
        apply_velocity_walls(a.u, a.v, p.velocity_walls, p.imax, p.jmax)
        apply_temperature_walls(a.t, p.temperature_walls, p.imax, p.jmax, p.dx, p.dy)
        if a.n_species:
            apply_concentration_walls(a.c, p.imax, p.jmax)
        apply_obstacle_boundaries(a.u, a.v, a.p, a.f, a.g, self.flags.codes, p.imax, p.jmax)
        self.inflow.apply(a, p.imax, p.jmax)

    def select_dt(self):
        """Return (dt, limiting bound name)."""
        p = self.params
        if p.tau <= 0:
            return p.dt, "fixed"
        a = self.arrays
        reaction_dt = UNBOUNDED_DT
        if self.reactions.n_reactions:
            reaction_dt = reaction_max_dt(
                a.c, a.t, self.flags.codes, self.reactions, a.rates, p.t_inf
            )
        bounds = compute_timestep_bounds(
            a.u, a.v, p.Re, p.Pr, p.dx, p.dy, self.max_diffusivity, reaction_dt
        )
        return select_timestep(bounds, p.tau)

    def solve_pressure(self):
        """Iterate SOR until residual <= eps or itermax; returns (iterations, residual)."""
        p = self.params
        a = self.arrays
        iterations = 0
        residual = float("inf")
        while iterations < p.itermax and residual > p.eps:
            residual = sor_step(a.p, a.rs, self.flags.codes, p.velocity_walls, p.dx, p.dy, p.omg)
            iterations += 1
        return iterations, residual

    def step(self) -> StepReport:
        p = self.params
        a = self.arrays
        codes = self.flags.codes

        self.apply_boundaries()
        dt, limiting = self.select_dt()

        compute_reaction(a.c, a.t, codes, self.reactions, a.rates, dt, p.t_inf, p.vol_cp)
        transport_species(a, codes, self.diffusivities, p.dx, p.dy, dt, p.gamma)
        transport_temperature(a, codes, p.Re, p.Pr, p.dx, p.dy, dt, p.gamma, p.obstacle_temperature)

        compute_fg(a.u, a.v, a.t, a.f, a.g, codes, p.imax, p.jmax, p.dx, p.dy, dt,
                   p.Re, p.alpha, p.beta, p.gx, p.gy)
        compute_rhs(a.f, a.g, a.rs, codes, p.imax, p.jmax, p.dx, p.dy, dt)

        iterations, residual = self.solve_pressure()
        if not p.pressure_anchored:
            normalize_pressure(a.p, self.fluid)

        compute_uv(a.u, a.v, a.f, a.g, a.p, codes, p.imax, p.jmax, p.dx, p.dy, dt)

        self.time += dt
        self.step_count += 1
        report = StepReport(
            step=self.step_count,
            time=self.time,
            dt=dt,
            limiting_bound=limiting,
            sor_iterations=iterations,
            residual=residual,
            converged=residual <= p.eps,
        )
        log.debug(f"{report}")
        return report

    # =========================================================================
    # Output
    # =========================================================================

    def _finalize_fields(self) -> Fields:
        p = self.params
        a = self.arrays
        interior = (slice(1, p.imax + 1), slice(1, p.jmax + 1))
        x = (np.arange(1, p.imax + 1) - 0.5) * p.dx
        y = (np.arange(1, p.jmax + 1) - 0.5) * p.dy
        X, Y = np.meshgrid(x, y, indexing="ij")
        uc, vc = self._cell_velocity()
        return Fields(
            x=X.ravel(),
            y=Y.ravel(),
            u=uc.ravel(),
            v=vc.ravel(),
            p=a.p[interior].ravel(),
            T=a.t[interior].ravel(),
            fluid=self.fluid[interior].ravel(),
            concentrations={
                name: a.c[s][interior].ravel() for s, name in enumerate(p.species_names)
            },
        )
