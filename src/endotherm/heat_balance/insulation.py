"""
insulation.py

Effective thermal conductivity of a fur or feather layer.

The layer is treated as a mixture of still air and keratin fibres inclined
to the skin. Conduction follows a parallel/series mix weighted by the fibre
volume fraction and inclination; radiation through the layer is a diffusion
term governed by the fibre extinction coefficient (optically thick) or by
the layer depth when it holds no fibres (transparent gap).
"""
from dataclasses import dataclass, replace
import logging
import math

from endotherm.heat_balance.atmosphere import dry_air
from endotherm.heat_balance.config import PHYSICAL_CONSTANTS
from endotherm.heat_balance.inputs import Body, FurSide

logger = logging.getLogger(__name__)

SIGMA = PHYSICAL_CONSTANTS['stefan_boltzmann']
KELVIN = PHYSICAL_CONSTANTS['kelvin']
KERATIN_K = PHYSICAL_CONSTANTS['keratin_k']


@dataclass(frozen=True)
class Insulation:
    k_dorsal: float
    k_ventral: float
    k_combined: float
    k_compressed: float


def fur_conductivity(side: FurSide, temp: float) -> float:
    """Effective conductivity (W/mK) of one fur side at mean layer temperature `temp` (C)."""
    k_air = float(dry_air(temp)['conductivity'])
    tk = temp + KELVIN
    if side.depth <= 0.0:
        return k_air
    cos_t = min(1.0, side.depth / side.hair_length) if side.hair_length > 0.0 else 1.0
    cos_t = max(cos_t, 1e-3)

    # fibre volume fraction, hairs lie along the inclined path
    frac = min(0.9, side.hair_density * math.pi * side.hair_diameter ** 2 / 4.0 / cos_t)
    k_fibre = KERATIN_K * cos_t ** 2 + k_air * (1.0 - cos_t ** 2)
    k_cond = (1.0 - frac) * k_air + frac * k_fibre

    extinction = side.hair_density * side.hair_diameter / cos_t * (1.0 + side.reflectivity)
    if extinction > 0.0:
        k_rad = 16.0 * SIGMA * tk ** 3 / (3.0 * extinction)
        # optically thin layers cannot exceed the open-gap limit
        k_rad = min(k_rad, 4.0 * SIGMA * tk ** 3 * side.depth)
    else:
        k_rad = 4.0 * SIGMA * tk ** 3 * side.depth
    return k_cond + k_rad


def compute_insulation(body: Body, temp: float) -> Insulation:
    """Dorsal, ventral, combined and compressed fur conductivities.

    A non-zero `body.fur_k` replaces the hair-layer calculation for every
    value. The combined value is weighted by the ventral area fraction.
    """
    pven = body.max_pct_ventral
    if body.fur_k > 0.0:
        k = float(body.fur_k)
        return Insulation(k_dorsal=k, k_ventral=k, k_combined=k, k_compressed=k)
    k_d = fur_conductivity(body.dorsal, temp)
    k_v = fur_conductivity(body.ventral, temp)
    compressed = replace(body.ventral, depth=body.fur_depth_compressed)
    k_c = fur_conductivity(compressed, temp)
    return Insulation(
        k_dorsal=k_d,
        k_ventral=k_v,
        k_combined=(1.0 - pven) * k_d + pven * k_v,
        k_compressed=k_c,
    )
