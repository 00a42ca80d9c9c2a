"""
exchange.py

Heat and mass exchange terms for one candidate physiological state.

Each body side (dorsal, ventral) is modelled as if it covered the whole
body; `SideModel` bundles the side's geometry, resistances, view factors and
absorbed solar load. The flux functions are pure: they take a side, the
environment and a surface or skin temperature and return Watts.

Sign convention: every loss term (infrared out, convection, conduction,
evaporation) is positive when heat leaves the animal.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple
import logging
import math

from endotherm.heat_balance import atmosphere
from endotherm.heat_balance.config import PHYSICAL_CONSTANTS
from endotherm.heat_balance.geometry import (BodyGeometry, compute_geometry, core_resistance,
                                             fur_resistance)
from endotherm.heat_balance.inputs import Body, EndoInputs, Environment, Physiology
from endotherm.heat_balance.insulation import Insulation

logger = logging.getLogger(__name__)

SIGMA = PHYSICAL_CONSTANTS['stefan_boltzmann']
KELVIN = PHYSICAL_CONSTANTS['kelvin']
GRAVITY = PHYSICAL_CONSTANTS['gravity']
MOLAR_VOLUME = PHYSICAL_CONSTANTS['molar_volume_stp']
M_AIR = PHYSICAL_CONSTANTS['molar_mass_air']
M_WATER = PHYSICAL_CONSTANTS['molar_mass_water']
CP_AIR = PHYSICAL_CONSTANTS['cp_air']

# contact layer used when the compressed fur depth is zero (m)
MIN_CONTACT_DEPTH = 1e-04


@dataclass(frozen=True)
class AirState:
    temp: float
    pressure: float
    vapour_pressure: float
    vapour_density: float


def air_state(env: Environment) -> AirState:
    pressure = atmosphere.barometric_pressure(env.pressure, env.elevation)
    return AirState(
        temp=env.air_temp,
        pressure=pressure,
        vapour_pressure=float(atmosphere.vapour_pressure(env.air_temp, env.rel_humidity)),
        vapour_density=float(atmosphere.vapour_density(env.air_temp, env.rel_humidity)),
    )


@dataclass
class SideModel:
    """Everything the equation solver needs for one body side."""
    name: str
    weight: float
    geom: BodyGeometry
    k_fur: float
    pcond: float
    r_core: float
    r_fur: float
    r_cond: float
    area_rad: float
    area_skin_wet: float
    area_free_wet: float
    fur_wet_frac: float
    f_sky: float
    f_ground: float
    f_object: float
    f_bush: float
    solar: Dict[str, float] = field(default_factory=dict)

    @property
    def q_solar(self) -> float:
        return self.solar.get('total', 0.0)

    @property
    def has_fur_path(self) -> bool:
        return self.r_fur > 0.0 and math.isfinite(self.r_fur)


# ───────────────────────────────────────────────────────────────────────────────
# convection
# ───────────────────────────────────────────────────────────────────────────────

def nusselt_forced(shape: int, re: float, pr: float) -> float:
    if re <= 0.0:
        return 2.0 if shape == 2 else (0.3 if shape == 1 else 0.0)
    if shape == 1:
        # Churchill & Bernstein (1977), cylinder in cross flow
        return 0.3 + (0.62 * re ** 0.5 * pr ** (1.0 / 3.0)
                      / (1.0 + (0.4 / pr) ** (2.0 / 3.0)) ** 0.25
                      * (1.0 + (re / 282000.0) ** 0.625) ** 0.8)
    if shape == 2:
        # Whitaker (1972), sphere
        return 2.0 + (0.4 * re ** 0.5 + 0.06 * re ** (2.0 / 3.0)) * pr ** 0.4
    if shape == 3:
        if re > 5.0e5:
            return 0.037 * re ** 0.8 * pr ** (1.0 / 3.0)
        return 0.664 * re ** 0.5 * pr ** (1.0 / 3.0)
    # Mitchell (1976), animal shapes
    return 0.35 * re ** 0.6


def nusselt_free(shape: int, ra: float, pr: float) -> float:
    ra = max(ra, 0.0)
    if shape == 1:
        # Churchill & Chu (1975), horizontal cylinder
        return (0.6 + 0.387 * ra ** (1.0 / 6.0)
                / (1.0 + (0.559 / pr) ** (9.0 / 16.0)) ** (8.0 / 27.0)) ** 2
    if shape == 3:
        return 0.54 * ra ** 0.25
    # Churchill (1983), sphere; also used for spheroids
    return 2.0 + 0.589 * ra ** 0.25 / (1.0 + (0.469 / pr) ** (9.0 / 16.0)) ** (4.0 / 9.0)


def convection_coefficients(env: Environment, air: AirState, geom: BodyGeometry,
                            surface_temp: float) -> Dict[str, float]:
    """Heat (W/m2K) and mass (m/s) transfer coefficients at the fur surface."""
    film = 0.5 * (surface_temp + air.temp)
    props = {k: float(v) for k, v in atmosphere.dry_air(film, air.pressure).items()}
    d = geom.char_dim
    nu_kin = props['kin_viscosity']
    pr = props['prandtl']
    re = env.wind_speed * d / nu_kin
    gr = GRAVITY * props['expansion'] * abs(surface_temp - air.temp) * d ** 3 / nu_kin ** 2
    nu_forced = nusselt_forced(geom.shape, re, pr)
    nu_free = nusselt_free(geom.shape, gr * pr, pr)
    nu = (nu_forced ** 3 + nu_free ** 3) ** (1.0 / 3.0)
    h = nu * props['conductivity'] / d
    sc = nu_kin / props['vapour_diffusivity']
    hd = h / (props['density'] * props['cp']) * (pr / sc) ** (2.0 / 3.0)
    return {'h': h, 'hd': hd, 're': re, 'gr': gr, 'nu': nu,
            'vapour_diffusivity': props['vapour_diffusivity']}


# ───────────────────────────────────────────────────────────────────────────────
# radiation
# ───────────────────────────────────────────────────────────────────────────────

def side_view_factors(geom: BodyGeometry, body: Body, side: str) -> Tuple[float, float]:
    """Sky and ground factors of one side; dorsal faces the sky, ventral the ground."""
    free = 1.0 - body.f_object - body.f_bush
    if side == 'dorsal':
        f_sky = min(free, 2.0 * geom.f_sky)
        return f_sky, free - f_sky
    f_ground = min(free, 2.0 * geom.f_ground)
    return free - f_ground, f_ground


def solar_absorbed(env: Environment, body: Body, geom: BodyGeometry, side: str,
                   f_sky: float, f_ground: float, pcond: float, weight: float) -> Dict[str, float]:
    """Absorbed solar radiation (W) of one side, scaled to a whole body."""
    fur = body.dorsal if side == 'dorsal' else body.ventral
    absorptivity = 1.0 - fur.reflectivity
    unshaded = 1.0 - env.shade / 100.0
    area = geom.area * (1.0 - pcond)
    cos_z = math.cos(math.radians(env.zenith))
    direct = 0.0
    # beam falls on the dorsal side, or on the ventral side when it covers the body
    takes_beam = side == 'dorsal' or weight >= 1.0
    if takes_beam and cos_z > 0.0 and weight > 0.0:
        beam_normal = env.solar * (1.0 - env.diffuse_fraction) / cos_z
        direct = absorptivity * beam_normal * geom.area_sil * unshaded / weight
    diffuse = absorptivity * env.solar * env.diffuse_fraction * unshaded * area * f_sky
    reflected = (absorptivity * env.solar * (1.0 - env.substrate_absorptivity)
                 * unshaded * area * f_ground)
    return {'direct': direct, 'diffuse': diffuse, 'reflected': reflected,
            'total': direct + diffuse + reflected}


def infrared(env: Environment, body: Body, side: SideModel, surface_temp: float) -> Tuple[float, float]:
    """(absorbed, emitted) long-wave radiation in W."""
    eps_area = body.emissivity * SIGMA * side.area_rad
    incoming = (side.f_sky * (env.sky_temp + KELVIN) ** 4
                + side.f_ground * (env.ground_temp + KELVIN) ** 4
                + side.f_object * (env.substrate_temp + KELVIN) ** 4
                + side.f_bush * (env.bush_temp + KELVIN) ** 4)
    return eps_area * incoming, eps_area * (surface_temp + KELVIN) ** 4


# ───────────────────────────────────────────────────────────────────────────────
# surface and skin fluxes
# ───────────────────────────────────────────────────────────────────────────────

def surface_fluxes(env: Environment, air: AirState, body: Body, side: SideModel,
                   surface_temp: float) -> Dict[str, float]:
    """Exchange terms at the outer (fur-air) surface at `surface_temp`."""
    coef = convection_coefficients(env, air, side.geom, surface_temp)
    qirin, qirout = infrared(env, body, side, surface_temp)
    qconv = coef['h'] * side.area_rad * (surface_temp - air.temp)
    q_fur_evap, m_fur_evap = 0.0, 0.0
    if side.fur_wet_frac > 0.0:
        rho_sat = float(atmosphere.vapour_density(surface_temp, 100.0))
        m_fur_evap = max(0.0, coef['hd'] * side.area_rad * side.fur_wet_frac
                         * (rho_sat - air.vapour_density))
        q_fur_evap = m_fur_evap * float(atmosphere.latent_heat(surface_temp))
    net_loss = qconv + qirout - qirin + q_fur_evap - side.q_solar
    return {'qconv': qconv, 'qirin': qirin, 'qirout': qirout, 'qevap_fur': q_fur_evap,
            'm_evap_fur': m_fur_evap, 'qsol': side.q_solar, 'net_loss': net_loss,
            'h': coef['h'], 'hd': coef['hd'], 'vapour_diffusivity': coef['vapour_diffusivity']}


def skin_evaporation(air: AirState, side: SideModel, skin_temp: float, hd: float,
                     vapour_diffusivity: float) -> Tuple[float, float]:
    """(heat W, water kg/s) lost from wet skin, eyes and bare patches."""
    rho_sat = float(atmosphere.vapour_density(skin_temp, 100.0))
    deficit = rho_sat - air.vapour_density
    if deficit <= 0.0 or hd <= 0.0:
        return 0.0, 0.0
    resistance = 1.0 / hd + side.geom.fur_depth / vapour_diffusivity
    mass = deficit * (side.area_skin_wet / resistance + side.area_free_wet * hd)
    return mass * float(atmosphere.latent_heat(skin_temp)), mass


def conduction(env: Environment, side: SideModel, skin_temp: float) -> float:
    if not math.isfinite(side.r_cond):
        return 0.0
    return (skin_temp - env.substrate_temp) / side.r_cond


# ───────────────────────────────────────────────────────────────────────────────
# respiration
# ───────────────────────────────────────────────────────────────────────────────

def respiration(env: Environment, air: AirState, physiology: Physiology, q_met: float,
                lung_temp: float, pant: float) -> Dict[str, float]:
    """Respiratory heat loss and gas exchange for metabolic rate `q_met` (W).

    Every term is proportional to `q_met`.
    """
    q_met = max(0.0, q_met)
    joules_per_litre_o2 = 1000.0 * (16.0 + 5.164 * physiology.rq)
    o2_consumed = q_met / joules_per_litre_o2 / MOLAR_VOLUME          # mol/s
    air_in = o2_consumed / (physiology.o2_extraction / 100.0) / (env.o2_pct / 100.0) * pant
    o2_in = air_in * env.o2_pct / 100.0
    n2_in = air_in * env.n2_pct / 100.0
    co2_in = air_in * env.co2_pct / 100.0
    o2_out = max(0.0, o2_in - o2_consumed)
    co2_out = co2_in + physiology.rq * o2_consumed
    air_out = o2_out + n2_in + co2_out

    exit_temp = min(air.temp + physiology.delta_breath, lung_temp)
    e_in = air.vapour_pressure
    e_out = physiology.rel_exhaled / 100.0 * float(atmosphere.saturation_vapour_pressure(exit_temp))
    water_in = air_in * e_in / (air.pressure - e_in)
    water_out = air_out * e_out / (air.pressure - e_out)
    water_evap = max(0.0, water_out - water_in)                         # mol/s
    latent = water_evap * M_WATER * float(atmosphere.latent_heat(exit_temp))
    sensible = air_out * M_AIR * CP_AIR * (exit_temp - air.temp)
    return {
        'q_resp': latent + sensible,
        'q_resp_latent': latent,
        'q_resp_sensible': sensible,
        'exit_temp': exit_temp,
        'air_flow': air_in * MOLAR_VOLUME * 3600.0,                    # L/h at STP
        'o2_flow': o2_consumed * MOLAR_VOLUME * 3600.0,                # L/h at STP
        'water_resp': water_evap * M_WATER * 3.6e6,                    # g/h
        'o2_mol_in': o2_in * 3600.0, 'o2_mol_out': o2_out * 3600.0,
        'n2_mol_in': n2_in * 3600.0, 'n2_mol_out': n2_in * 3600.0,
        'air_mol_in': air_in * 3600.0, 'air_mol_out': air_out * 3600.0,
    }


def respiratory_fraction(env: Environment, air: AirState, physiology: Physiology,
                         lung_temp: float, pant: float) -> float:
    """Respiratory heat loss per Watt of metabolism."""
    return respiration(env, air, physiology, 1.0, lung_temp, pant)['q_resp']


# ───────────────────────────────────────────────────────────────────────────────
# assembly
# ───────────────────────────────────────────────────────────────────────────────

def build_side(inputs: EndoInputs, side: str, shape_b: float, flesh_k: float,
               skin_wet: float, insulation: Insulation) -> SideModel:
    """Geometry, resistances and solar load of one side at the given effector values."""
    body = inputs.body
    env = inputs.environment
    phys = inputs.physiology
    pven = body.max_pct_ventral
    fur = body.dorsal if side == 'dorsal' else body.ventral
    weight = pven if side == 'ventral' else 1.0 - pven

    geom = compute_geometry(body, shape_b, fur.depth)
    pcond = 0.0
    if side == 'ventral' and pven > 0.0:
        pcond = min(1.0, geom.pct_cond / pven)

    k_fur = insulation.k_dorsal if side == 'dorsal' else insulation.k_ventral
    r_fur = fur_resistance(geom, k_fur)
    if r_fur > 0.0:
        r_fur = r_fur / (1.0 - pcond) if pcond < 1.0 else math.inf

    r_cond = math.inf
    if pcond > 0.0:
        depth = max(body.fur_depth_compressed, MIN_CONTACT_DEPTH)
        r_cond = depth / (insulation.k_compressed * geom.area_skin * pcond)

    f_sky, f_ground = side_view_factors(geom, body, side)
    solar = solar_absorbed(env, body, geom, side, f_sky, f_ground, pcond, weight)

    if body.flying:
        skin_wet = inputs.effectors.sweating.ceiling
    free_frac = min(1.0, (phys.pct_eyes + phys.pct_bare_evap) / 100.0)
    wet_frac = min(skin_wet / 100.0, 1.0 - free_frac)
    exposed = geom.area_skin * (1.0 - pcond)
    return SideModel(
        name=side,
        weight=weight,
        geom=geom,
        k_fur=k_fur,
        pcond=pcond,
        r_core=core_resistance(geom, flesh_k, phys.fat_k),
        r_fur=r_fur,
        r_cond=r_cond,
        area_rad=geom.area * (1.0 - pcond),
        area_skin_wet=exposed * wet_frac,
        area_free_wet=exposed * free_frac,
        fur_wet_frac=min(1.0, phys.fur_wet / 100.0),
        f_sky=f_sky,
        f_ground=f_ground,
        f_object=body.f_object,
        f_bush=body.f_bush,
        solar=solar,
    )
