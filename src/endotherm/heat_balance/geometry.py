"""
geometry.py

Body geometry for the four supported shape classes: 1 cylinder, 2 sphere,
3 plate, 4 ellipsoid (prolate or oblate spheroid).

The body is a flesh core, an optional subcutaneous fat shell and a fur layer
of uniform depth. `compute_geometry` returns every area, volume and linear
dimension the heat exchange model needs; `core_resistance` and
`fur_resistance` give the conduction resistances (K/W) through those layers
for the same shape.

Public functions:
- `compute_geometry(body, shape_b, fur_depth)` -> BodyGeometry
- `contact_fraction(body, shape_b)` -> float
- `spheroid_area(polar, equatorial)` -> float
- `core_resistance(geom, flesh_k, fat_k)` -> float
- `fur_resistance(geom, fur_k)` -> float
"""
from dataclasses import dataclass, field
from typing import Dict
import math

from scipy.optimize import brentq

from endotherm.heat_balance.config import PHYSICAL_CONSTANTS, SHAPES
from endotherm.heat_balance.inputs import Body, InvalidConfigurationError

FAT_DENSITY = PHYSICAL_CONSTANTS['fat_density']


@dataclass
class BodyGeometry:
    shape: int
    volume: float
    flesh_volume: float
    fat_mass: float
    fat_thickness: float
    length: float
    width: float
    height: float
    diam_flesh: float
    diam_fur: float
    area: float
    area_skin: float
    area_skin_evap: float
    area_conv: float
    area_cond: float
    area_sil: float
    area_sil_normal: float
    area_sil_parallel: float
    char_dim: float
    f_sky: float
    f_ground: float
    pct_cond: float
    fur_depth: float
    # shape specific conduction dimensions (m): flesh, skin and fur-surface extents
    dims: Dict[str, float] = field(default_factory=dict)


def spheroid_area(polar: float, equatorial: float) -> float:
    """Surface area of a spheroid with semi-axes (polar, equatorial, equatorial)."""
    a, b = float(polar), float(equatorial)
    if math.isclose(a, b, rel_tol=1e-9):
        return 4.0 * math.pi * b ** 2
    if a > b:
        e = math.sqrt(1.0 - (b / a) ** 2)
        return 2.0 * math.pi * b ** 2 * (1.0 + a / (b * e) * math.asin(e))
    e = math.sqrt(1.0 - (a / b) ** 2)
    return 2.0 * math.pi * b ** 2 * (1.0 + (1.0 - e ** 2) / e * math.atanh(e))


def contact_fraction(body: Body, shape_b: float) -> float:
    """Fraction of the surface touching the substrate at posture `shape_b`.

    Contact grows in proportion to uncurling, bounded by the larger of
    `max_pct_cond` and the starting fraction, and by the ventral fraction.
    """
    if body.pct_cond <= 0.0:
        return 0.0
    grown = body.pct_cond * shape_b / body.shape_b_ref
    cap = max(body.max_pct_cond, body.pct_cond)
    return max(0.0, min(grown, cap, body.max_pct_ventral))


def _cylinder(volume, flesh_volume, shape_b, z):
    r_s = (volume / (2.0 * math.pi * shape_b)) ** (1.0 / 3.0)
    length = 2.0 * r_s * shape_b
    r_f = math.sqrt(flesh_volume / (math.pi * length))
    r_o = r_s + z
    return {
        'area_skin': 2.0 * math.pi * r_s * length + 2.0 * math.pi * r_s ** 2,
        'area': 2.0 * math.pi * r_o * length + 2.0 * math.pi * r_o ** 2,
        'sil_normal': 2.0 * r_o * length,
        'sil_parallel': math.pi * r_o ** 2,
        'char_dim': 2.0 * r_o,
        'length': length, 'width': 2.0 * r_s, 'height': 2.0 * r_s,
        'diam_flesh': 2.0 * r_s, 'diam_fur': 2.0 * r_o,
        'fat_thickness': r_s - r_f,
        'dims': {'r_flesh': r_f, 'r_skin': r_s, 'r_fur': r_o, 'length': length},
    }


def _sphere(volume, flesh_volume, shape_b, z):
    r_s = (3.0 * volume / (4.0 * math.pi)) ** (1.0 / 3.0)
    r_f = (3.0 * flesh_volume / (4.0 * math.pi)) ** (1.0 / 3.0)
    r_o = r_s + z
    return {
        'area_skin': 4.0 * math.pi * r_s ** 2,
        'area': 4.0 * math.pi * r_o ** 2,
        'sil_normal': math.pi * r_o ** 2,
        'sil_parallel': math.pi * r_o ** 2,
        'char_dim': 2.0 * r_o,
        'length': 2.0 * r_s, 'width': 2.0 * r_s, 'height': 2.0 * r_s,
        'diam_flesh': 2.0 * r_s, 'diam_fur': 2.0 * r_o,
        'fat_thickness': r_s - r_f,
        'dims': {'r_flesh': r_f, 'r_skin': r_s, 'r_fur': r_o},
    }


def _plate(volume, flesh_volume, shape_b, shape_c, z):
    height = (volume / (shape_b * shape_c)) ** (1.0 / 3.0)
    width = shape_b * height
    length = shape_c * height
    fat_volume = volume - flesh_volume
    if fat_volume > 0.0:
        t = brentq(lambda x: (height - 2 * x) * (width - 2 * x) * (length - 2 * x) - flesh_volume,
                   0.0, 0.5 * min(height, width, length))
    else:
        t = 0.0
    h_o, w_o, l_o = height + 2 * z, width + 2 * z, length + 2 * z
    h_f, w_f, l_f = height - 2 * t, width - 2 * t, length - 2 * t
    return {
        'area_skin': 2.0 * (height * width + height * length + width * length),
        'area': 2.0 * (h_o * w_o + h_o * l_o + w_o * l_o),
        'sil_normal': l_o * w_o,
        'sil_parallel': h_o * w_o,
        'char_dim': l_o,
        'length': length, 'width': width, 'height': height,
        'diam_flesh': height, 'diam_fur': h_o,
        'fat_thickness': t,
        'dims': {'thickness_flesh': h_f,
                 'area_flesh': 2.0 * (h_f * w_f + h_f * l_f + w_f * l_f)},
    }


def _ellipsoid(volume, flesh_volume, shape_b, z):
    b_s = (3.0 * volume / (4.0 * math.pi * shape_b)) ** (1.0 / 3.0)
    a_s = shape_b * b_s
    b_f = (3.0 * flesh_volume / (4.0 * math.pi * shape_b)) ** (1.0 / 3.0)
    a_f = shape_b * b_f
    a_o, b_o = a_s + z, b_s + z
    return {
        'area_skin': spheroid_area(a_s, b_s),
        'area': spheroid_area(a_o, b_o),
        'sil_normal': math.pi * a_o * b_o,
        'sil_parallel': math.pi * b_o ** 2,
        'char_dim': (4.0 / 3.0 * math.pi * a_o * b_o ** 2) ** (1.0 / 3.0),
        'length': 2.0 * a_s, 'width': 2.0 * b_s, 'height': 2.0 * b_s,
        'diam_flesh': 2.0 * b_s, 'diam_fur': 2.0 * b_o,
        'fat_thickness': b_s - b_f,
        'dims': {'a_flesh': a_f, 'b_flesh': b_f, 'area_flesh': spheroid_area(a_f, b_f)},
    }


def _allometric_skin_area(body: Body) -> float:
    if body.sa_mode == 1:
        # bird skin, Walsberg & King (1978): cm2 from g
        return 10.0 * (body.mass * 1000.0) ** 0.667 / 1.0e4
    # mammal, Stahl (1967): m2 from kg
    return 0.11 * body.mass ** 0.65


def compute_geometry(body: Body, shape_b: float, fur_depth: float) -> BodyGeometry:
    """Derive areas, volumes and dimensions at posture `shape_b`.

    Raises InvalidConfigurationError for an unknown shape code or when the
    subcutaneous fat would leave no flesh.
    """
    if body.shape not in SHAPES:
        raise InvalidConfigurationError(f'shape must be one of {sorted(SHAPES)}, got {body.shape}')
    if body.mass <= 0.0 or body.density <= 0.0 or shape_b <= 0.0:
        raise InvalidConfigurationError('mass, density and shape ratio must be positive')
    if fur_depth < 0.0:
        raise InvalidConfigurationError('fur depth must not be negative')

    volume = body.mass / body.density
    fat_mass = body.mass * body.fat_pct / 100.0 if body.subq_fat else 0.0
    flesh_volume = volume - fat_mass / FAT_DENSITY
    if flesh_volume <= 0.0:
        raise InvalidConfigurationError(
            f'fat_pct={body.fat_pct} leaves no flesh volume ({flesh_volume:.3g} m3)')

    z = float(fur_depth)
    if body.shape == 1:
        g = _cylinder(volume, flesh_volume, shape_b, z)
    elif body.shape == 2:
        g = _sphere(volume, flesh_volume, shape_b, z)
    elif body.shape == 3:
        g = _plate(volume, flesh_volume, shape_b, body.shape_c, z)
    else:
        g = _ellipsoid(volume, flesh_volume, shape_b, z)

    area_skin_geom = g['area_skin']
    area = g['area']
    area_skin = area_skin_geom
    if body.sa_mode in (1, 2):
        area_skin = _allometric_skin_area(body)
        area = area * area_skin / area_skin_geom

    if body.orient == 1:
        area_sil = g['sil_normal']
    elif body.orient == 2:
        area_sil = g['sil_parallel']
    else:
        area_sil = 0.5 * (g['sil_normal'] + g['sil_parallel'])

    pcond = contact_fraction(body, shape_b)
    free = 1.0 - body.f_object - body.f_bush
    dims = dict(g['dims'])
    dims['area_skin'] = area_skin
    dims['area'] = area

    return BodyGeometry(
        shape=body.shape,
        volume=volume,
        flesh_volume=flesh_volume,
        fat_mass=fat_mass,
        fat_thickness=g['fat_thickness'],
        length=g['length'],
        width=g['width'],
        height=g['height'],
        diam_flesh=g['diam_flesh'],
        diam_fur=g['diam_fur'],
        area=area,
        area_skin=area_skin,
        area_skin_evap=area_skin * (1.0 - pcond),
        area_conv=area * (1.0 - pcond),
        area_cond=area * pcond,
        area_sil=area_sil,
        area_sil_normal=g['sil_normal'],
        area_sil_parallel=g['sil_parallel'],
        char_dim=g['char_dim'],
        f_sky=body.f_sky_ref * free,
        f_ground=body.f_ground_ref * free,
        pct_cond=pcond,
        fur_depth=z,
        dims=dims,
    )


def core_resistance(geom: BodyGeometry, flesh_k: float, fat_k: float) -> float:
    """Resistance (K/W) from the body centre to the skin.

    The flesh carries uniformly distributed heat generation, so the
    centre-to-flesh-surface drop is Q * R_gen; the fat shell adds plain
    conduction in series.
    """
    d = geom.dims
    t = geom.fat_thickness
    if geom.shape == 1:
        r_gen = 1.0 / (4.0 * math.pi * flesh_k * d['length'])
        r_fat = math.log(d['r_skin'] / d['r_flesh']) / (2.0 * math.pi * fat_k * d['length']) if t > 0 else 0.0
    elif geom.shape == 2:
        r_gen = 1.0 / (8.0 * math.pi * flesh_k * d['r_flesh'])
        r_fat = (1.0 / d['r_flesh'] - 1.0 / d['r_skin']) / (4.0 * math.pi * fat_k) if t > 0 else 0.0
    elif geom.shape == 3:
        r_gen = d['thickness_flesh'] / (4.0 * flesh_k * d['area_flesh'])
        r_fat = t / (fat_k * math.sqrt(d['area_flesh'] * d['area_skin'])) if t > 0 else 0.0
    else:
        a, b = d['a_flesh'], d['b_flesh']
        inv_sq = 1.0 / a ** 2 + 2.0 / b ** 2
        r_gen = 3.0 / (8.0 * math.pi * flesh_k * a * b * b * inv_sq)
        r_fat = t / (fat_k * math.sqrt(d['area_flesh'] * d['area_skin'])) if t > 0 else 0.0
    return r_gen + r_fat


def fur_resistance(geom: BodyGeometry, fur_k: float) -> float:
    """Conduction resistance (K/W) of the whole fur layer, zero for bare skin."""
    z = geom.fur_depth
    if z <= 0.0:
        return 0.0
    d = geom.dims
    if geom.shape == 1:
        return math.log(d['r_fur'] / d['r_skin']) / (2.0 * math.pi * fur_k * d['length'])
    if geom.shape == 2:
        return (1.0 / d['r_skin'] - 1.0 / d['r_fur']) / (4.0 * math.pi * fur_k)
    return z / (fur_k * math.sqrt(d['area_skin'] * d['area']))
