"""Build validated SimulationParameters from a Hydra/OmegaConf problem config.

Expected layout of a problem config (see ``conf/problem/*.yaml``)::

    name: wire
    domain: {xlength, ylength, imax, jmax, geometry, threshold}
    physics: {Re, Pr, beta, vol_cp, gx, gy, t_inf}
    scheme: {alpha, gamma}
    time: {dt, t_end, tau, output_dt}
    pressure: {omg, eps, itermax}
    initial: {u, v, p, temperature}
    walls: {velocity: {...}, temperature: {...}, obstacle_temperature: {...}}
    species: [{name, diffusivity, enthalpy, initial}]
    reactions: [{activation_energy, frequency_factor, reagents, products}]
    inflow: {profile, peak_velocity, inlets}

Initial values are either a number or ``{file: path, coeff: c}``.
"""

import logging
from pathlib import Path
from typing import Mapping

from omegaconf import DictConfig, ListConfig, OmegaConf

from meshing.flags import FlagField
from solvers.datastructures import (
    BoundaryKind,
    ConcentrationInlet,
    InflowSettings,
    InitialCondition,
    Reaction,
    ReactionTerm,
    SimulationParameters,
    Species,
    WallCondition,
    Walls,
)
from solvers.errors import ConfigurationError
from utilities.io import load_field, pgm_dimensions, read_pgm

log = logging.getLogger(__name__)

WALL_NAMES = ("left", "right", "top", "bottom")


def _to_container(cfg):
    if isinstance(cfg, (DictConfig, ListConfig)):
        return OmegaConf.to_container(cfg, resolve=True)
    return cfg


def _number(value, where: str, cast=float):
    if isinstance(value, bool):
        raise ConfigurationError(f"{where}: expected a number, got {value!r}")
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{where}: expected a number, got {value!r}") from None


def _section(cfg: Mapping, name: str) -> Mapping:
    value = cfg.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{name}' must be a mapping")
    return value


def _require(section: Mapping, key: str, where: str):
    if section.get(key) is None:
        raise ConfigurationError(f"Missing required parameter '{where}.{key}'")
    return section[key]


def _resolve_path(path, base_dir) -> Path:
    path = Path(path)
    if not path.is_absolute() and base_dir is not None:
        path = Path(base_dir) / path
    return path


def _initial_condition(value, where: str, imax: int, jmax: int, base_dir) -> InitialCondition:
    if value is None:
        return InitialCondition()
    if isinstance(value, Mapping):
        file = _require(value, "file", where)
        coeff = _number(value.get("coeff", 1.0), f"{where}.coeff")
        path = _resolve_path(file, base_dir)
        data = load_field(path, coeff, imax, jmax)
        return InitialCondition(value=0.0, source=str(file), data=data)
    return InitialCondition(value=_number(value, where))


def _wall(value, where: str, default: BoundaryKind) -> WallCondition:
    if value is None:
        return WallCondition(default)
    if isinstance(value, Mapping):
        kind = BoundaryKind.parse(value.get("kind", default.value))
        return WallCondition(kind, _number(value.get("value", 0.0), f"{where}.value"))
    return WallCondition(BoundaryKind.parse(value))


def _walls(section: Mapping, where: str, default: BoundaryKind) -> Walls:
    unknown = set(section) - set(WALL_NAMES)
    if unknown:
        raise ConfigurationError(f"{where}: unknown walls {sorted(unknown)}")
    return Walls(**{name: _wall(section.get(name), f"{where}.{name}", default) for name in WALL_NAMES})


def _grid_size(domain: Mapping, base_dir):
    geometry = domain.get("geometry")
    imax = domain.get("imax")
    jmax = domain.get("jmax")
    if geometry is None:
        if imax is None or jmax is None:
            raise ConfigurationError("domain.imax and domain.jmax are required without a geometry file")
        return _number(imax, "domain.imax", int), _number(jmax, "domain.jmax", int), None

    path = _resolve_path(geometry, base_dir)
    xsize, ysize = pgm_dimensions(path)
    if imax is not None and _number(imax, "domain.imax", int) != xsize:
        raise ConfigurationError(f"domain.imax={imax} does not match geometry width {xsize}")
    if jmax is not None and _number(jmax, "domain.jmax", int) != ysize:
        raise ConfigurationError(f"domain.jmax={jmax} does not match geometry height {ysize}")
    return xsize, ysize, str(path)


def _terms(entries, where: str, index: Mapping) -> tuple:
    terms = []
    for k, entry in enumerate(entries or []):
        if isinstance(entry, str):
            entry = {"species": entry}
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{where}[{k}] must be a species name or mapping")
        name = _require(entry, "species", f"{where}[{k}]")
        if name not in index:
            raise ConfigurationError(f"{where}[{k}] references unknown species '{name}'")
        terms.append(
            ReactionTerm(
                species=index[name],
                stoichiometric_coefficient=_number(entry.get("coefficient", 1.0), f"{where}[{k}].coefficient"),
                exponent=_number(entry.get("exponent", 1.0), f"{where}[{k}].exponent"),
            )
        )
    return tuple(terms)


def _pair(section: Mapping, key: str, where: str):
    value = section.get(key) or {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where}.{key} must have 'forward' and 'backward' entries")
    return (
        _number(value.get("forward", 0.0), f"{where}.{key}.forward"),
        _number(value.get("backward", 0.0), f"{where}.{key}.backward"),
    )


def load_parameters(cfg, base_dir=None) -> SimulationParameters:
    """Parse a problem config into SimulationParameters.

    Parameters
    ----------
    cfg : DictConfig or Mapping
        The problem section of the Hydra config.
    base_dir : str or Path, optional
        Directory relative geometry and field paths are resolved against.

    Raises
    ------
    ConfigurationError
        On missing or invalid values, unknown species names or mismatched
        field-file dimensions.
    """
    cfg = _to_container(cfg)
    if not isinstance(cfg, Mapping):
        raise ConfigurationError("Problem configuration must be a mapping")

    domain = _section(cfg, "domain")
    physics = _section(cfg, "physics")
    scheme = _section(cfg, "scheme")
    timing = _section(cfg, "time")
    pressure = _section(cfg, "pressure")
    initial = _section(cfg, "initial")
    walls = _section(cfg, "walls")
    inflow = _section(cfg, "inflow")

    imax, jmax, geometry = _grid_size(domain, base_dir)

    species = []
    index = {}
    for k, entry in enumerate(cfg.get("species") or []):
        where = f"species[{k}]"
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{where} must be a mapping")
        name = str(_require(entry, "name", where))
        if name in index:
            raise ConfigurationError(f"Duplicate species name '{name}'")
        index[name] = k
        species.append(
            Species(
                name=name,
                diffusivity=_number(_require(entry, "diffusivity", where), f"{where}.diffusivity"),
                formation_enthalpy=_number(entry.get("enthalpy", 0.0), f"{where}.enthalpy"),
                initial=_initial_condition(entry.get("initial"), f"{where}.initial", imax, jmax, base_dir),
            )
        )

    reactions = []
    for k, entry in enumerate(cfg.get("reactions") or []):
        where = f"reactions[{k}]"
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{where} must be a mapping")
        energy_f, energy_b = _pair(entry, "activation_energy", where)
        freq_f, freq_b = _pair(entry, "frequency_factor", where)
        reactions.append(
            Reaction(
                reagents=_terms(entry.get("reagents"), f"{where}.reagents", index),
                products=_terms(entry.get("products"), f"{where}.products", index),
                activation_energy_forward=energy_f,
                activation_energy_backward=energy_b,
                frequency_factor_forward=freq_f,
                frequency_factor_backward=freq_b,
            )
        )

    inlets = []
    for k, entry in enumerate(inflow.get("inlets") or []):
        where = f"inflow.inlets[{k}]"
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{where} must be a mapping")
        name = _require(entry, "species", where)
        if name not in index:
            raise ConfigurationError(f"{where} references unknown species '{name}'")
        wall = _require(entry, "wall", where)
        if wall not in WALL_NAMES:
            raise ConfigurationError(f"{where}.wall must be one of {WALL_NAMES}, got '{wall}'")
        start = _number(entry.get("start", 0.0), f"{where}.start")
        stop = _number(entry.get("stop", 1.0), f"{where}.stop")
        if not 0.0 <= start <= stop <= 1.0:
            raise ConfigurationError(f"{where}: need 0 <= start <= stop <= 1")
        inlets.append(
            ConcentrationInlet(
                species=index[name],
                wall=wall,
                start=start,
                stop=stop,
                value=_number(entry.get("value", 1.0), f"{where}.value"),
            )
        )

    defaults = SimulationParameters.__dataclass_fields__

    def get(section, key, where, cast=float, name=None):
        value = section.get(key)
        if value is None:
            return defaults[name or key].default
        return _number(value, f"{where}.{key}", cast)

    params = SimulationParameters(
        problem=str(cfg.get("name", "custom")),
        xlength=_number(_require(domain, "xlength", "domain"), "domain.xlength"),
        ylength=_number(_require(domain, "ylength", "domain"), "domain.ylength"),
        imax=imax,
        jmax=jmax,
        geometry_file=geometry,
        geometry_threshold=get(domain, "threshold", "domain", int, "geometry_threshold"),
        Re=_number(_require(physics, "Re", "physics"), "physics.Re"),
        Pr=get(physics, "Pr", "physics"),
        beta=get(physics, "beta", "physics"),
        vol_cp=get(physics, "vol_cp", "physics"),
        gx=get(physics, "gx", "physics"),
        gy=get(physics, "gy", "physics"),
        t_inf=get(physics, "t_inf", "physics"),
        alpha=get(scheme, "alpha", "scheme"),
        gamma=get(scheme, "gamma", "scheme"),
        omg=get(pressure, "omg", "pressure"),
        eps=get(pressure, "eps", "pressure"),
        itermax=get(pressure, "itermax", "pressure", int),
        dt=get(timing, "dt", "time"),
        t_end=_number(_require(timing, "t_end", "time"), "time.t_end"),
        tau=get(timing, "tau", "time"),
        output_dt=get(timing, "output_dt", "time"),
        ui=get(initial, "u", "initial", name="ui"),
        vi=get(initial, "v", "initial", name="vi"),
        pi=get(initial, "p", "initial", name="pi"),
        initial_temperature=_initial_condition(
            initial.get("temperature"), "initial.temperature", imax, jmax, base_dir
        ),
        velocity_walls=_walls(_section(walls, "velocity"), "walls.velocity", BoundaryKind.NO_SLIP),
        temperature_walls=_walls(
            _section(walls, "temperature"), "walls.temperature", BoundaryKind.NEUMANN
        ),
        obstacle_temperature=_wall(
            walls.get("obstacle_temperature"), "walls.obstacle_temperature", BoundaryKind.NEUMANN
        ),
        species=tuple(species),
        reactions=tuple(reactions),
        inflow=InflowSettings(
            profile=str(inflow.get("profile", "none")),
            peak_velocity=_number(inflow.get("peak_velocity", 1.0), "inflow.peak_velocity"),
            inlets=tuple(inlets),
        ),
    )
    log.info(
        f"Loaded problem '{params.problem}': {imax}x{jmax}, Re={params.Re}, "
        f"{len(species)} species, {len(reactions)} reactions"
    )
    return params


def load_geometry(params: SimulationParameters) -> FlagField:
    """Classify the configured geometry, or an obstacle-free domain without one."""
    if params.geometry_file is None:
        return FlagField.all_fluid(params.imax, params.jmax)
    mask = read_pgm(params.geometry_file)
    return FlagField.from_mask(mask, params.geometry_threshold)
