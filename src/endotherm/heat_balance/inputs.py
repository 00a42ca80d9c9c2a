"""Immutable input bundle for one heat-balance solve.

The bundle is split into small frozen dataclasses (environment, body,
physiology, effectors, initial conditions, solver settings) so every model
component receives exactly the pieces it reads. `build_inputs` fills the
defaults from `config.py`, resolves the derived defaults and normalises the
effectors once, at construction.
"""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple
import logging

from endotherm.heat_balance import config

logger = logging.getLogger(__name__)

# escalation priority, first entry is tried first
STAGES = ('posture', 'conductivity', 'core_temp', 'panting', 'sweating')


class InvalidConfigurationError(ValueError):
    """Raised when the bundle describes a physically impossible animal."""


@dataclass(frozen=True)
class Environment:
    air_temp: float = 20.0
    ref_air_temp: float = 20.0
    ground_temp: float = 20.0
    sky_temp: float = 20.0
    substrate_temp: float = 20.0
    bush_temp: float = 20.0
    wind_speed: float = 0.1
    rel_humidity: float = 5.0
    solar: float = 0.0
    zenith: float = 20.0
    elevation: float = 0.0
    pressure: float = -1.0
    substrate_absorptivity: float = 0.8
    fluid_type: int = 0
    o2_pct: float = 20.95
    n2_pct: float = 79.02
    co2_pct: float = 0.03
    diffuse_fraction: float = 0.15
    shade: float = 0.0


@dataclass(frozen=True)
class FurSide:
    """Hair or feather layer of one body side."""
    hair_diameter: float = 30e-06
    hair_length: float = 23.9e-03
    hair_density: float = 3000e+04
    depth: float = 2e-03
    reflectivity: float = 0.2


@dataclass(frozen=True)
class Body:
    mass: float = 1.0
    density: float = 1000.0
    subq_fat: bool = False
    fat_pct: float = 20.0
    shape: int = 4
    shape_b_ref: float = 3.0
    shape_c: float = 3.0
    max_pct_ventral: float = 0.5
    pct_cond: float = 0.0
    max_pct_cond: float = 0.0
    sa_mode: int = 0
    orient: int = 0
    dorsal: FurSide = field(default_factory=FurSide)
    ventral: FurSide = field(default_factory=FurSide)
    fur_k: float = 0.0
    fur_depth_compressed: float = 2e-03
    emissivity: float = 0.99
    f_object: float = 0.0
    f_bush: float = 0.0
    f_ground_ref: float = 0.5
    f_sky_ref: float = 0.5
    flying: bool = False
    night_shade: int = 0
    nest_type: int = 0
    nest_radius: float = 0.0

    @property
    def mean_fur_depth(self) -> float:
        """Area-weighted fur depth over the dorsal and ventral sides."""
        pven = self.max_pct_ventral
        return (1.0 - pven) * self.dorsal.depth + pven * self.ventral.depth


@dataclass(frozen=True)
class Physiology:
    """Physiological constants that the escalation policy never changes."""
    core_temp_ref: float = 37.0
    q_basal: float = 2.72
    fat_k: float = 0.230
    fur_wet: float = 0.0
    pct_bare_evap: float = 0.0
    pct_eyes: float = 0.0
    delta_breath: float = 0.0
    rel_exhaled: float = 100.0
    activity: float = 1.0
    rq: float = 0.80
    o2_extraction: float = 20.0
    q10: float = 1.0


@dataclass(frozen=True)
class Effector:
    """One thermoregulatory effector.

    A disabled effector (zero increment) has its ceiling equal to its initial
    value. Build instances with `make_effector`.
    """
    name: str
    initial: float
    increment: float
    ceiling: float

    @property
    def enabled(self) -> bool:
        return self.increment > 0.0

    def at_ceiling(self, value: float) -> bool:
        return value >= self.ceiling - 1e-12


def make_effector(name: str, initial: float, increment: float, ceiling: float,
                  upper: Optional[float] = None) -> Effector:
    """Normalise an effector: disabled -> ceiling collapses to initial."""
    initial = float(initial)
    increment = max(0.0, float(increment))
    ceiling = float(ceiling)
    if upper is not None:
        ceiling = min(ceiling, upper)
    if increment == 0.0:
        ceiling = initial
    elif ceiling < initial:
        logger.warning('%s: ceiling %.4g below initial value %.4g, raised to initial',
                       name, ceiling, initial)
        ceiling = initial
    return Effector(name=name, initial=initial, increment=increment, ceiling=ceiling)


@dataclass(frozen=True)
class Effectors:
    posture: Effector
    conductivity: Effector
    core_temp: Effector
    panting: Effector
    sweating: Effector

    def ordered(self) -> Tuple[Effector, ...]:
        return tuple(getattr(self, name) for name in STAGES)

    def get(self, name: str) -> Effector:
        return getattr(self, name)


@dataclass(frozen=True)
class InitialConditions:
    skin_temp: float = 34.0
    fur_air_temp: float = 20.0


@dataclass(frozen=True)
class SolverSettings:
    tolerance: float = 0.001
    energy_tolerance: float = 1e-3
    max_iterations: int = 100
    max_bracket_expansions: int = 20
    max_escalations: int = 5000
    write_input: bool = False
    input_dir: str = '.'


@dataclass(frozen=True)
class EndoInputs:
    environment: Environment
    body: Body
    physiology: Physiology
    effectors: Effectors
    initial: InitialConditions
    settings: SolverSettings


def default_parameters() -> Dict[str, Any]:
    """Return a flat copy of every default parameter."""
    params: Dict[str, Any] = {}
    for group in (config.ENVIRONMENT, config.BEHAVIOUR, config.MORPHOLOGY, config.FUR,
                  config.RADIATION, config.NEST, config.PHYSIOLOGY,
                  config.INITIAL_CONDITIONS, config.SOLVER):
        params.update(group)
    return params


def _resolve(p: Dict[str, Any]) -> None:
    """Fill the defaults that depend on other parameters, in place."""
    ta = p['air_temp']
    for key in ('ref_air_temp', 'ground_temp', 'sky_temp', 'bush_temp'):
        if p[key] is None:
            p[key] = ta
    if p['substrate_temp'] is None:
        p['substrate_temp'] = p['ground_temp']
    if p['shape_b'] is None:
        p['shape_b'] = p['shape_b_ref']
    if p['shape_b_max'] is None:
        p['shape_b_max'] = p['shape_b_ref']
    if p['shape_c'] is None:
        p['shape_c'] = p['shape_b']
    if p['fur_depth_compressed'] is None:
        p['fur_depth_compressed'] = p['fur_depth_ventral']
    if p['q_basal'] is None:
        # basal heat generation (W), McKechnie & Wolf (2004)
        p['q_basal'] = (70.0 * p['mass'] ** 0.75) * (4.185 / (24.0 * 3.6))
    if p['skin_temp'] is None:
        p['skin_temp'] = p['core_temp'] - 3.0
    if p['fur_air_temp'] is None:
        p['fur_air_temp'] = ta


def build_inputs(**overrides: Any) -> EndoInputs:
    """Build a validated `EndoInputs` bundle from defaults plus overrides.

    Keyword names are the keys of the dictionaries in `config.py`.
    """
    p = default_parameters()
    unknown = sorted(set(overrides) - set(p))
    if unknown:
        raise InvalidConfigurationError(f'unknown parameter(s): {", ".join(unknown)}')
    p.update(overrides)
    _resolve(p)

    environment = Environment(**{f.name: p[f.name] for f in fields(Environment)})
    body = Body(
        mass=p['mass'], density=p['density'], subq_fat=bool(p['subq_fat']),
        fat_pct=p['fat_pct'], shape=int(p['shape']), shape_b_ref=p['shape_b_ref'],
        shape_c=p['shape_c'], max_pct_ventral=p['max_pct_ventral'],
        pct_cond=p['pct_cond'], max_pct_cond=p['max_pct_cond'],
        sa_mode=int(p['sa_mode']), orient=int(p['orient']),
        dorsal=FurSide(p['hair_diameter_dorsal'], p['hair_length_dorsal'],
                       p['hair_density_dorsal'], p['fur_depth_dorsal'],
                       p['reflectivity_dorsal']),
        ventral=FurSide(p['hair_diameter_ventral'], p['hair_length_ventral'],
                        p['hair_density_ventral'], p['fur_depth_ventral'],
                        p['reflectivity_ventral']),
        fur_k=p['fur_k'], fur_depth_compressed=p['fur_depth_compressed'],
        emissivity=p['emissivity'], f_object=p['f_object'], f_bush=p['f_bush'],
        f_ground_ref=p['f_ground_ref'], f_sky_ref=p['f_sky_ref'],
        flying=bool(p['flying']), night_shade=int(p['night_shade']),
        nest_type=int(p['nest_type']), nest_radius=p['nest_radius'],
    )
    physiology = Physiology(
        core_temp_ref=p['core_temp'], q_basal=p['q_basal'], fat_k=p['fat_k'],
        fur_wet=p['fur_wet'], pct_bare_evap=p['pct_bare_evap'], pct_eyes=p['pct_eyes'],
        delta_breath=p['delta_breath'], rel_exhaled=p['rel_exhaled'],
        activity=p['activity'], rq=p['rq'], o2_extraction=p['o2_extraction'], q10=p['q10'],
    )
    effectors = Effectors(
        posture=make_effector('posture', p['shape_b'], p['uncurl'], p['shape_b_max']),
        conductivity=make_effector('conductivity', p['flesh_k'], p['flesh_k_increment'],
                                   p['flesh_k_max']),
        core_temp=make_effector('core_temp', p['core_temp'], p['raise_core'],
                                p['core_temp_max']),
        panting=make_effector('panting', p['pant'], p['panting'], p['pant_max']),
        sweating=make_effector('sweating', p['skin_wet'], p['sweat'], p['max_wet'], upper=100.0),
    )
    initial = InitialConditions(skin_temp=p['skin_temp'], fur_air_temp=p['fur_air_temp'])
    settings = SolverSettings(
        tolerance=p['tolerance'], energy_tolerance=p['energy_tolerance'],
        max_iterations=int(p['max_iterations']),
        max_bracket_expansions=int(p['max_bracket_expansions']),
        max_escalations=int(p['max_escalations']),
        write_input=bool(p['write_input']), input_dir=str(p['input_dir']),
    )
    inputs = EndoInputs(environment, body, physiology, effectors, initial, settings)
    validate_inputs(inputs)
    return inputs


def validate_inputs(inputs: EndoInputs) -> None:
    """Fail fast on impossible configurations; never touches the solver."""
    body = inputs.body
    env = inputs.environment
    if body.shape not in config.SHAPES:
        raise InvalidConfigurationError(f'shape must be one of {sorted(config.SHAPES)}, got {body.shape}')
    if body.mass <= 0.0 or body.density <= 0.0:
        raise InvalidConfigurationError('mass and density must be positive')
    if not 0.0 <= body.fat_pct <= 100.0:
        raise InvalidConfigurationError(f'fat_pct must lie in [0, 100], got {body.fat_pct}')
    if body.subq_fat:
        fat_volume = body.mass * body.fat_pct / 100.0 / config.PHYSICAL_CONSTANTS['fat_density']
        if fat_volume >= body.mass / body.density:
            raise InvalidConfigurationError(
                f'fat_pct={body.fat_pct} leaves no flesh volume at density {body.density}')
    if body.shape_b_ref <= 0.0 or body.shape_c <= 0.0 or inputs.effectors.posture.initial <= 0.0:
        raise InvalidConfigurationError('shape ratios must be positive')
    for side_name, side in (('dorsal', body.dorsal), ('ventral', body.ventral)):
        for f in fields(FurSide):
            if getattr(side, f.name) < 0.0:
                raise InvalidConfigurationError(f'{side_name} {f.name} must not be negative')
    if body.fur_depth_compressed < 0.0 or body.fur_k < 0.0:
        raise InvalidConfigurationError('compressed fur depth and fur_k must not be negative')
    fractions = {
        'max_pct_ventral': body.max_pct_ventral, 'pct_cond': body.pct_cond,
        'max_pct_cond': body.max_pct_cond, 'emissivity': body.emissivity,
        'f_object': body.f_object, 'f_bush': body.f_bush,
        'f_ground_ref': body.f_ground_ref, 'f_sky_ref': body.f_sky_ref,
        'diffuse_fraction': env.diffuse_fraction,
        'substrate_absorptivity': env.substrate_absorptivity,
    }
    for name, value in fractions.items():
        if not 0.0 <= value <= 1.0:
            raise InvalidConfigurationError(f'{name} must lie in [0, 1], got {value}')
    if body.f_object + body.f_bush > 1.0:
        raise InvalidConfigurationError('f_object + f_bush must not exceed 1')
    if env.wind_speed < 0.0 or env.solar < 0.0:
        raise InvalidConfigurationError('wind speed and solar radiation must not be negative')
    if inputs.physiology.o2_extraction <= 0.0 or env.o2_pct <= 0.0:
        raise InvalidConfigurationError('o2_extraction and o2_pct must be positive')
    if inputs.effectors.panting.initial < 1.0:
        raise InvalidConfigurationError('breathing multiplier must be at least 1')
    if env.fluid_type != 0:
        logger.warning('fluid_type=%s is not modelled; treating the medium as air', env.fluid_type)
    if body.nest_type != 0:
        logger.warning('nest_type=%s is not modelled; ignoring nest properties', body.nest_type)
