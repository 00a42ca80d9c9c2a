"""Properties of dry and moist air.

Small numpy helpers used by the convection, evaporation, insulation and
respiration calculations. All temperatures are in deg C, pressures in Pa.
Functions accept scalars or arrays and return the same shape.
"""
from typing import Dict
import numpy as np

from endotherm.heat_balance.config import PHYSICAL_CONSTANTS

KELVIN = PHYSICAL_CONSTANTS['kelvin']
R_GAS = PHYSICAL_CONSTANTS['gas_constant']
M_AIR = PHYSICAL_CONSTANTS['molar_mass_air']
M_WATER = PHYSICAL_CONSTANTS['molar_mass_water']
CP_AIR = PHYSICAL_CONSTANTS['cp_air']
P_SEA = PHYSICAL_CONSTANTS['sea_level_pressure']


def pressure_from_elevation(elevation):
    """Standard-atmosphere barometric pressure (Pa) at `elevation` (m)."""
    elev = np.asarray(elevation, dtype=float)
    return P_SEA * (1.0 - 2.25577e-05 * elev) ** 5.25588


def barometric_pressure(pressure: float, elevation: float) -> float:
    """Use the given pressure unless it is negative, then derive it from elevation."""
    if pressure is not None and pressure > 0.0:
        return float(pressure)
    return float(pressure_from_elevation(elevation))


def dry_air(temp, pressure: float = P_SEA) -> Dict[str, np.ndarray]:
    """Thermophysical properties of dry air.

    Parameters
    ----------
    temp : float or array
        Air temperature (deg C).
    pressure : float
        Barometric pressure (Pa).

    Returns
    -------
    dict
        density (kg/m3), viscosity (kg/m/s, Sutherland), kin_viscosity (m2/s),
        conductivity (W/m/K), vapour_diffusivity (m2/s), expansion (1/K),
        prandtl (-), cp (J/kg/K).
    """
    t = np.asarray(temp, dtype=float)
    tk = t + KELVIN
    density = pressure * M_AIR / (R_GAS * tk)
    viscosity = 1.8325e-05 * ((296.16 + 120.0) / (tk + 120.0)) * (tk / 296.16) ** 1.5
    conductivity = 2.425e-02 + 7.038e-05 * t
    diffusivity = 2.26e-05 * (tk / KELVIN) ** 1.81 * (P_SEA / pressure)
    return {
        'density': density,
        'viscosity': viscosity,
        'kin_viscosity': viscosity / density,
        'conductivity': conductivity,
        'vapour_diffusivity': diffusivity,
        'expansion': 1.0 / tk,
        'prandtl': CP_AIR * viscosity / conductivity,
        'cp': np.full_like(t, CP_AIR),
    }


def saturation_vapour_pressure(temp):
    """Saturation vapour pressure (Pa), Buck (1981) over water above 0 C and over ice below."""
    t = np.asarray(temp, dtype=float)
    over_water = 611.21 * np.exp((18.678 - t / 234.5) * (t / (257.14 + t)))
    over_ice = 611.15 * np.exp((23.036 - t / 333.7) * (t / (279.82 + t)))
    return np.where(t >= 0.0, over_water, over_ice)


def vapour_pressure(temp, rel_humidity):
    """Partial pressure of water vapour (Pa) at `rel_humidity` (%)."""
    rh = np.clip(np.asarray(rel_humidity, dtype=float), 0.0, 100.0)
    return rh / 100.0 * saturation_vapour_pressure(temp)


def vapour_density(temp, rel_humidity):
    """Water vapour density (kg/m3) at `rel_humidity` (%)."""
    tk = np.asarray(temp, dtype=float) + KELVIN
    return vapour_pressure(temp, rel_humidity) * M_WATER / (R_GAS * tk)


def latent_heat(temp):
    """Latent heat of vaporisation of water (J/kg)."""
    return 2.5012e06 - 2.3787e03 * np.asarray(temp, dtype=float)
