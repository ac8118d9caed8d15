"""Tests for Arrhenius kinetics and the reaction time-step bound."""

import math

import numpy as np
import pytest

from meshing.flags import FlagField
from solvers.datastructures import Reaction, ReactionTerm, SimulationParameters, Species
from solvers.errors import NumericalInvariantError
from solvers.staggered.reaction import (
    UNBOUNDED_DT,
    ReactionTable,
    compute_reaction,
    rate_constant,
    reaction_max_dt,
)

T_INF = 273.15


def first_order(freq=2.0, energy=0.0, enthalpy=0.0, exponent=1.0):
    """A -> B on a 3x3 grid."""
    return SimulationParameters(
        imax=3,
        jmax=3,
        species=(Species("A", 0.0, formation_enthalpy=enthalpy), Species("B", 0.0)),
        reactions=(
            Reaction(
                reagents=(ReactionTerm(0, exponent=exponent),),
                products=(ReactionTerm(1),),
                activation_energy_forward=energy,
                frequency_factor_forward=freq,
            ),
        ),
    )


def second_order(freq=1.5):
    """A + B -> C on a 4x4 grid."""
    return SimulationParameters(
        imax=4,
        jmax=4,
        species=(Species("A", 0.0), Species("B", 0.0), Species("C", 0.0)),
        reactions=(
            Reaction(
                reagents=(ReactionTerm(0), ReactionTerm(1)),
                products=(ReactionTerm(2),),
                frequency_factor_forward=freq,
            ),
        ),
    )


def state(params, values):
    shape = (params.imax + 2, params.jmax + 2)
    c = np.zeros((len(params.species),) + shape)
    for s, value in enumerate(values):
        c[s] = value
    t = np.zeros(shape)
    flags = FlagField.all_fluid(params.imax, params.jmax)
    rates = np.zeros(len(params.species))
    return c, t, flags, rates


class TestRateConstant:
    def test_arrhenius(self):
        assert rate_constant(2.0, 0.0, 300.0) == pytest.approx(2.0)
        assert rate_constant(10.0, 600.0, 300.0) == pytest.approx(10.0 * math.exp(-2.0))

    def test_kernel_uses_absolute_temperature(self):
        params = first_order(freq=3.0, energy=500.0)
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0, 0.0])
        dt = 1e-3

        compute_reaction(c, t, flags.codes, table, rates, dt, T_INF, 1.0)

        k = rate_constant(3.0, 500.0, T_INF)
        assert c[0, 2, 2] == pytest.approx(1.0 - dt * k)


class TestReactionTable:
    def test_padding(self):
        params = SimulationParameters(
            species=(Species("A", 0.0), Species("B", 0.0), Species("C", 0.0)),
            reactions=(
                Reaction(reagents=(ReactionTerm(0), ReactionTerm(1)), products=(ReactionTerm(2),)),
                Reaction(reagents=(ReactionTerm(2),), products=(ReactionTerm(0, 2.0),)),
            ),
        )
        table = ReactionTable.from_parameters(params)

        assert table.n_reactions == 2
        assert table.reagent_species.shape == (2, 2)
        assert list(table.n_reagents) == [2, 1]
        assert list(table.n_products) == [1, 1]
        assert table.product_coeff[1, 0] == 2.0

    def test_no_reactions(self):
        table = ReactionTable.from_parameters(SimulationParameters())
        assert table.n_reactions == 0


class TestFirstOrderDecay:
    """A -> B with k = 2 from a uniform A = 1."""

    def test_mass_conserved_and_monotone(self):
        params = first_order()
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0, 0.0])
        dt = 1e-3
        fluid = flags.fluid

        previous = c[0][fluid].copy()
        for _ in range(50):
            compute_reaction(c, t, flags.codes, table, rates, dt, T_INF, 1.0)
            assert np.all(c[0][fluid] < previous)
            assert np.allclose(c[0][fluid] + c[1][fluid], 1.0, atol=1e-12)
            previous = c[0][fluid].copy()

        assert np.allclose(c[0][fluid], (1.0 - 2.0 * dt) ** 50)

    def test_ghost_cells_untouched(self):
        params = first_order()
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0, 0.0])

        compute_reaction(c, t, flags.codes, table, rates, 1e-2, T_INF, 1.0)

        assert np.all(c[0, 0, :] == 1.0)
        assert np.all(c[1, :, 0] == 0.0)

    def test_heat_release(self):
        params = first_order(enthalpy=1.0)
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0, 0.0])

        compute_reaction(c, t, flags.codes, table, rates, 1e-3, T_INF, 4.0)

        # -(H_A * rate_A) / vol_cp with rate_A = -k * A
        assert t[2, 2] == pytest.approx(2.0 / 4.0)
        assert t[0, 0] == 0.0


class TestReactionBound:
    def test_first_order_bound(self):
        params = first_order()
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0, 0.0])

        assert reaction_max_dt(c, t, flags.codes, table, rates, T_INF) == pytest.approx(0.5)

    def test_negative_concentrations_floored(self):
        params = first_order()
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0, 0.0])
        c[0, 1, 1] = -0.5
        c[1, 2, 2] = -1e-3

        bound = reaction_max_dt(c, t, flags.codes, table, rates, T_INF)

        assert bound == pytest.approx(0.5)
        assert c[0, 1, 1] == 0.0
        assert c[1, 2, 2] == 0.0

    def test_no_reactions_unbounded(self):
        params = SimulationParameters(imax=3, jmax=3, species=(Species("A", 0.1),))
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0])

        assert reaction_max_dt(c, t, flags.codes, table, rates, T_INF) == UNBOUNDED_DT

    def test_nothing_consumed_unbounded(self):
        params = first_order()
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [0.0, 1.0])

        assert reaction_max_dt(c, t, flags.codes, table, rates, T_INF) == UNBOUNDED_DT

    def test_step_at_bound_keeps_concentrations_non_negative(self, rng):
        params = second_order()
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [0.0, 0.0, 0.0])
        c[0] = rng.uniform(0.1, 1.0, c[0].shape)
        c[1] = rng.uniform(0.1, 1.0, c[1].shape)

        dt = reaction_max_dt(c, t, flags.codes, table, rates, T_INF)
        compute_reaction(c, t, flags.codes, table, rates, dt, T_INF, 1.0)

        assert np.all(c[:, flags.fluid] >= -1e-12)

    def test_zero_order_consumption_of_empty_species(self):
        """A zero-order reagent at zero concentration leaves no admissible dt."""
        params = first_order(exponent=0.0)
        table = ReactionTable.from_parameters(params)
        c, t, flags, rates = state(params, [1.0, 0.0])
        c[0, 2, 2] = 0.0

        with pytest.raises(NumericalInvariantError):
            reaction_max_dt(c, t, flags.codes, table, rates, T_INF)
