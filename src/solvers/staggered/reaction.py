"""Arrhenius reaction kinetics with an explicit update and a positivity bound.

Reactions are packed once into padded arrays (:class:`ReactionTable`) so the
compiled kernels only see numeric data.
"""

from dataclasses import dataclass
import math

import numpy as np
from numba import njit

from meshing.flags import FLUID
from ..datastructures import SimulationParameters
from ..errors import NumericalInvariantError

UNBOUNDED_DT = float(np.finfo(np.float64).max)


@dataclass
class ReactionTable:
    """Padded per-reaction arrays; unused term slots have count 0."""

    freq_forward: np.ndarray
    freq_backward: np.ndarray
    energy_forward: np.ndarray
    energy_backward: np.ndarray

    reagent_species: np.ndarray
    reagent_coeff: np.ndarray
    reagent_exponent: np.ndarray
    n_reagents: np.ndarray

    product_species: np.ndarray
    product_coeff: np.ndarray
    product_exponent: np.ndarray
    n_products: np.ndarray

    enthalpy: np.ndarray

    @classmethod
    def from_parameters(cls, params: SimulationParameters) -> "ReactionTable":
        reactions = params.reactions
        n_r = len(reactions)
        width = max([1] + [max(len(r.reagents), len(r.products)) for r in reactions])

        def pack(attr):
            species = np.zeros((n_r, width), dtype=np.int64)
            coeff = np.zeros((n_r, width))
            exponent = np.zeros((n_r, width))
            count = np.zeros(n_r, dtype=np.int64)
            for r, reaction in enumerate(reactions):
                terms = getattr(reaction, attr)
                count[r] = len(terms)
                for k, term in enumerate(terms):
                    species[r, k] = term.species
                    coeff[r, k] = term.stoichiometric_coefficient
                    exponent[r, k] = term.exponent
            return species, coeff, exponent, count

        reagent_species, reagent_coeff, reagent_exponent, n_reagents = pack("reagents")
        product_species, product_coeff, product_exponent, n_products = pack("products")

        return cls(
            freq_forward=np.array([r.frequency_factor_forward for r in reactions], dtype=np.float64),
            freq_backward=np.array([r.frequency_factor_backward for r in reactions], dtype=np.float64),
            energy_forward=np.array([r.activation_energy_forward for r in reactions], dtype=np.float64),
            energy_backward=np.array([r.activation_energy_backward for r in reactions], dtype=np.float64),
            reagent_species=reagent_species,
            reagent_coeff=reagent_coeff,
            reagent_exponent=reagent_exponent,
            n_reagents=n_reagents,
            product_species=product_species,
            product_coeff=product_coeff,
            product_exponent=product_exponent,
            n_products=n_products,
            enthalpy=np.array([s.formation_enthalpy for s in params.species], dtype=np.float64),
        )

    @property
    def n_reactions(self) -> int:
        return self.freq_forward.shape[0]

    def kernel_args(self):
        return (
            self.freq_forward, self.freq_backward, self.energy_forward, self.energy_backward,
            self.reagent_species, self.reagent_coeff, self.reagent_exponent, self.n_reagents,
            self.product_species, self.product_coeff, self.product_exponent, self.n_products,
        )


def rate_constant(frequency_factor: float, activation_energy: float, temperature: float) -> float:
    """Arrhenius law k(T) = A exp(-Ea / T)."""
    return frequency_factor * math.exp(-activation_energy / temperature)


@njit(cache=True)
def _rate_vector(c, i, j, temperature, rates,
                 freq_f, freq_b, energy_f, energy_b,
                 reag_s, reag_c, reag_e, n_reag,
                 prod_s, prod_c, prod_e, n_prod):
    for s in range(rates.shape[0]):
        rates[s] = 0.0
    for r in range(freq_f.shape[0]):
        forward = freq_f[r] * np.exp(-energy_f[r] / temperature)
        for k in range(n_reag[r]):
            forward *= c[reag_s[r, k], i, j] ** reag_e[r, k]
        backward = freq_b[r] * np.exp(-energy_b[r] / temperature)
        for k in range(n_prod[r]):
            backward *= c[prod_s[r, k], i, j] ** prod_e[r, k]
        rate = forward - backward
        for k in range(n_reag[r]):
            rates[reag_s[r, k]] -= rate * reag_c[r, k]
        for k in range(n_prod[r]):
            rates[prod_s[r, k]] += rate * prod_c[r, k]


@njit(cache=True)
def compute_reaction_kernel(c, t, flags, imax, jmax, dt, t_inf, vol_cp, enthalpy, rates,
                            freq_f, freq_b, energy_f, energy_b,
                            reag_s, reag_c, reag_e, n_reag,
                            prod_s, prod_c, prod_e, n_prod):
    n_species = rates.shape[0]
    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            if (flags[i, j] & FLUID) == 0:
                continue
            _rate_vector(c, i, j, t[i, j] + t_inf, rates,
                         freq_f, freq_b, energy_f, energy_b,
                         reag_s, reag_c, reag_e, n_reag,
                         prod_s, prod_c, prod_e, n_prod)
            heat = 0.0
            for s in range(n_species):
                c[s, i, j] += dt * rates[s]
                heat -= enthalpy[s] * rates[s]
            t[i, j] += heat / vol_cp


@njit(cache=True)
def reaction_max_dt_kernel(c, t, flags, imax, jmax, t_inf, rates, unbounded,
                           freq_f, freq_b, energy_f, energy_b,
                           reag_s, reag_c, reag_e, n_reag,
                           prod_s, prod_c, prod_e, n_prod):
    n_species = rates.shape[0]
    result = unbounded
    for i in range(1, imax + 1):
        for j in range(1, jmax + 1):
            if (flags[i, j] & FLUID) == 0:
                continue
            for s in range(n_species):
                c[s, i, j] = 0.5 * (c[s, i, j] + abs(c[s, i, j]))
            _rate_vector(c, i, j, t[i, j] + t_inf, rates,
                         freq_f, freq_b, energy_f, energy_b,
                         reag_s, reag_c, reag_e, n_reag,
                         prod_s, prod_c, prod_e, n_prod)
            for s in range(n_species):
                if rates[s] < 0.0:
                    bound = c[s, i, j] / (-rates[s])
                    if bound < result:
                        result = bound
    return result


def compute_reaction(c, t, flags, table: ReactionTable, rates, dt: float, t_inf: float,
                     vol_cp: float):
    """Explicit Euler update of concentrations and heat release on fluid cells."""
    if table.n_reactions == 0:
        return
    imax = t.shape[0] - 2
    jmax = t.shape[1] - 2
    compute_reaction_kernel(
        c, t, flags, imax, jmax, dt, t_inf, vol_cp, table.enthalpy, rates,
        *table.kernel_args(),
    )


def reaction_max_dt(c, t, flags, table: ReactionTable, rates, t_inf: float) -> float:
    """Largest dt keeping every consumed concentration non-negative.

    Negative concentrations on fluid cells are floored to zero in place first.
    Returns ``UNBOUNDED_DT`` when no species is consumed anywhere.
    """
    if table.n_reactions == 0:
        return UNBOUNDED_DT
    imax = t.shape[0] - 2
    jmax = t.shape[1] - 2
    result = reaction_max_dt_kernel(
        c, t, flags, imax, jmax, t_inf, rates, UNBOUNDED_DT, *table.kernel_args(),
    )
    if not result > 0.0:
        raise NumericalInvariantError(
            f"Reaction stability bound must be positive, got {result}"
        )
    return float(result)
