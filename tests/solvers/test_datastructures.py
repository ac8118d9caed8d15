"""Tests for parameter validation and result containers."""

import numpy as np
import pytest

from solvers.datastructures import (
    BoundaryKind,
    ConcentrationInlet,
    InflowSettings,
    InitialCondition,
    Reaction,
    ReactionTerm,
    SimulationParameters,
    SolverFields,
    Species,
    TimeSeries,
    WallCondition,
    Walls,
)
from solvers.errors import ConfigurationError


@pytest.mark.parametrize(
    "name,kind",
    [
        ("dirichlet", BoundaryKind.DIRICHLET),
        ("NoSlip", BoundaryKind.NO_SLIP),
        ("no-slip", BoundaryKind.NO_SLIP),
        ("free slip", BoundaryKind.FREE_SLIP),
        (" Outflow ", BoundaryKind.OUTFLOW),
        (BoundaryKind.PRESSURE, BoundaryKind.PRESSURE),
    ],
)
def test_boundary_kind_parse(name, kind):
    assert BoundaryKind.parse(name) is kind


def test_boundary_kind_unknown():
    with pytest.raises(ConfigurationError, match="Unknown boundary kind"):
        BoundaryKind.parse("periodic")


class TestSimulationParameters:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"imax": 0},
            {"ylength": -1.0},
            {"Re": 0.0},
            {"vol_cp": 0.0},
            {"itermax": 0},
            {"tau": 0.0, "dt": 0.0},
            {"output_dt": 0.0},
            {"velocity_walls": Walls.uniform(BoundaryKind.NEUMANN)},
            {"temperature_walls": Walls.uniform(BoundaryKind.NO_SLIP)},
            {"obstacle_temperature": WallCondition(BoundaryKind.OUTFLOW)},
        ],
    )
    def test_invalid(self, overrides):
        with pytest.raises(ConfigurationError):
            SimulationParameters(**overrides)

    def test_reaction_species_out_of_range(self):
        with pytest.raises(ConfigurationError, match="species index 1"):
            SimulationParameters(
                species=(Species("A", 0.1),),
                reactions=(Reaction(reagents=(ReactionTerm(0),), products=(ReactionTerm(1),)),),
            )

    def test_inlet_species_out_of_range(self):
        inlet = ConcentrationInlet(species=2, wall="left", start=0.0, stop=1.0)
        with pytest.raises(ConfigurationError):
            SimulationParameters(inflow=InflowSettings(profile="mixing", inlets=(inlet,)))

    def test_spacing(self):
        params = SimulationParameters(xlength=3.0, ylength=1.0, imax=60, jmax=20)
        assert params.dx == pytest.approx(0.05)
        assert params.dy == pytest.approx(0.05)

    def test_to_mlflow(self):
        params = SimulationParameters(
            species=(Species("A", 0.1), Species("B", 0.2)),
            velocity_walls=Walls(
                left=WallCondition(BoundaryKind.PRESSURE, 1.5),
                right=WallCondition(BoundaryKind.OUTFLOW),
                top=WallCondition(BoundaryKind.NO_SLIP),
                bottom=WallCondition(BoundaryKind.NO_SLIP),
            ),
        )
        flat = params.to_mlflow()

        assert flat["Re"] == 100.0
        assert flat["geometry_file"] == ""
        assert flat["velocity_left"] == "pressure"
        assert flat["pressure_left"] == 1.5
        assert "pressure_right" not in flat
        assert flat["species"] == "A,B"
        assert all(isinstance(v, (int, float, str)) for v in flat.values())
        assert len(params.to_dataframe()) == 1


class TestInitialCondition:
    def test_constant(self):
        field = InitialCondition(value=2.5).materialize((4, 3))
        assert field.shape == (4, 3)
        assert np.all(field == 2.5)

    def test_loaded_field_copied(self):
        data = np.ones((4, 3))
        field = InitialCondition(source="t0.pgm", data=data).materialize((4, 3))
        field[0, 0] = 7.0
        assert data[0, 0] == 1.0

    def test_shape_mismatch(self):
        with pytest.raises(ConfigurationError):
            InitialCondition(source="t0.pgm", data=np.ones((3, 3))).materialize((4, 3))


class TestContainers:
    def test_solver_fields_shapes(self):
        fields = SolverFields.allocate(5, 3, n_species=2)

        assert fields.u.shape == (7, 5)
        assert fields.f.shape == (6, 4)
        assert fields.rs.shape == (6, 4)
        assert fields.c.shape == (2, 7, 5)
        assert fields.rates.shape == (2,)
        assert fields.n_species == 2

    def test_swap(self):
        fields = SolverFields.allocate(3, 3)
        live, scratch = fields.t, fields.t_scratch
        fields.swap_temperature()
        assert fields.t is scratch
        assert fields.t_scratch is live

    def test_time_series_batch(self):
        ts = TimeSeries(
            step=[1, 2],
            time=[0.1, 0.2],
            dt=[0.1, 0.1],
            sor_iterations=[5, 4],
            residual=[1e-4, 1e-5],
            kinetic_energy=[0.0, 0.1],
            mean_temperature=[0.0, 0.0],
            limiting_bound=["diffusive", "advective_x"],
        )
        batch = ts.to_mlflow_batch()

        assert len(batch) == 12
        assert {m.key for m in batch} == {
            "time", "dt", "sor_iterations", "residual", "kinetic_energy", "mean_temperature",
        }
        assert list(ts.to_dataframe().columns)[-1] == "limiting_bound"
