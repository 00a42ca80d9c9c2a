import math

import pytest

from endotherm.heat_balance.geometry import (compute_geometry, contact_fraction, core_resistance,
                                             fur_resistance, spheroid_area)
from endotherm.heat_balance.inputs import InvalidConfigurationError
from endotherm.heat_balance.tests.fixtures import make_body


@pytest.mark.parametrize('shape', [1, 2, 3, 4])
def test_volume_is_mass_over_density(shape):
    body = make_body(shape=shape, mass=2.5, density=950.0)
    geom = compute_geometry(body, 2.0, 0.0)
    assert geom.volume == pytest.approx(2.5 / 950.0)
    assert geom.flesh_volume == pytest.approx(geom.volume)


def test_sphere_closed_form():
    body = make_body(shape=2, mass=1.0)
    geom = compute_geometry(body, 1.0, 0.0)
    r = (3.0 * 1e-3 / (4.0 * math.pi)) ** (1.0 / 3.0)
    assert geom.area_skin == pytest.approx(4.0 * math.pi * r ** 2)
    assert geom.area == pytest.approx(geom.area_skin)
    assert geom.area_sil == pytest.approx(math.pi * r ** 2)
    assert geom.char_dim == pytest.approx(2.0 * r)


def test_cylinder_closed_form():
    body = make_body(shape=1, mass=1.0)
    geom = compute_geometry(body, 3.0, 0.0)
    r = (1e-3 / (2.0 * math.pi * 3.0)) ** (1.0 / 3.0)
    length = 6.0 * r
    assert math.pi * r ** 2 * length == pytest.approx(1e-3)
    assert geom.length == pytest.approx(length)
    assert geom.area_skin == pytest.approx(2 * math.pi * r * length + 2 * math.pi * r ** 2)


def test_plate_closed_form():
    body = make_body(shape=3, mass=1.0, shape_c=4.0)
    geom = compute_geometry(body, 2.0, 0.0)
    h = (1e-3 / (2.0 * 4.0)) ** (1.0 / 3.0)
    w, l = 2.0 * h, 4.0 * h
    assert geom.height * geom.width * geom.length == pytest.approx(1e-3)
    assert geom.area_skin == pytest.approx(2 * (h * w + h * l + w * l))


def test_ellipsoid_closed_form():
    body = make_body(shape=4, mass=1.0)
    geom = compute_geometry(body, 3.0, 0.0)
    b = (3.0 * 1e-3 / (4.0 * math.pi * 3.0)) ** (1.0 / 3.0)
    a = 3.0 * b
    e = math.sqrt(1.0 - (b / a) ** 2)
    expected = 2 * math.pi * b ** 2 * (1 + a / (b * e) * math.asin(e))
    assert geom.area_skin == pytest.approx(expected)
    assert 4.0 / 3.0 * math.pi * a * b * b == pytest.approx(geom.volume)


def test_spheroid_area_limits():
    assert spheroid_area(1.0, 1.0) == pytest.approx(4.0 * math.pi)
    assert spheroid_area(1.0001, 1.0) == pytest.approx(4.0 * math.pi, rel=1e-3)
    assert spheroid_area(0.9999, 1.0) == pytest.approx(4.0 * math.pi, rel=1e-3)
    # oblate spheroid, a = 0.5, b = 1
    assert spheroid_area(0.5, 1.0) == pytest.approx(8.672, rel=1e-3)


def test_fur_increases_outer_area():
    body = make_body(shape=4)
    bare = compute_geometry(body, 3.0, 0.0)
    furred = compute_geometry(body, 3.0, 0.01)
    assert furred.area > bare.area
    assert furred.area_skin == pytest.approx(bare.area_skin)
    assert furred.diam_fur == pytest.approx(furred.diam_flesh + 0.02)


def test_invalid_shape_rejected():
    body = make_body(shape=5)
    with pytest.raises(InvalidConfigurationError):
        compute_geometry(body, 3.0, 0.0)


def test_fat_leaving_no_flesh_rejected():
    body = make_body(shape=2, subq_fat=True, fat_pct=100.0)
    with pytest.raises(InvalidConfigurationError):
        compute_geometry(body, 1.0, 0.0)


def test_subcutaneous_fat_layer():
    body = make_body(shape=2, subq_fat=True, fat_pct=20.0)
    geom = compute_geometry(body, 1.0, 0.0)
    assert geom.fat_mass == pytest.approx(0.2)
    assert geom.flesh_volume == pytest.approx(1e-3 - 0.2 / 901.0)
    assert geom.fat_thickness > 0.0
    lean = compute_geometry(make_body(shape=2), 1.0, 0.0)
    assert core_resistance(geom, 0.9, 0.23) > core_resistance(lean, 0.9, 0.23)


def test_plate_fat_thickness_matches_flesh_volume():
    body = make_body(shape=3, subq_fat=True, fat_pct=10.0, shape_c=3.0)
    geom = compute_geometry(body, 2.0, 0.0)
    t = geom.fat_thickness
    flesh = (geom.height - 2 * t) * (geom.width - 2 * t) * (geom.length - 2 * t)
    assert flesh == pytest.approx(geom.flesh_volume, rel=1e-6)


def test_mammal_allometry():
    body = make_body(shape=4, mass=2.0, sa_mode=2)
    geom = compute_geometry(body, 3.0, 0.0)
    assert geom.area_skin == pytest.approx(0.11 * 2.0 ** 0.65)


def test_bird_allometry():
    body = make_body(shape=4, mass=0.1, sa_mode=1)
    geom = compute_geometry(body, 3.0, 0.0)
    assert geom.area_skin == pytest.approx(10.0 * 100.0 ** 0.667 / 1e4)


def test_silhouette_orientation():
    normal = compute_geometry(make_body(shape=1, orient=1), 3.0, 0.0)
    parallel = compute_geometry(make_body(shape=1, orient=2), 3.0, 0.0)
    average = compute_geometry(make_body(shape=1, orient=0), 3.0, 0.0)
    assert normal.area_sil > parallel.area_sil
    assert average.area_sil == pytest.approx(0.5 * (normal.area_sil + parallel.area_sil))


def test_contact_fraction_grows_with_posture_and_is_capped():
    body = make_body(pct_cond=0.1, max_pct_cond=0.3, max_pct_ventral=0.5, shape_b_ref=3.0)
    assert contact_fraction(body, 3.0) == pytest.approx(0.1)
    assert contact_fraction(body, 6.0) == pytest.approx(0.2)
    assert contact_fraction(body, 30.0) == pytest.approx(0.3)
    small_belly = make_body(pct_cond=0.1, max_pct_cond=0.3, max_pct_ventral=0.15)
    assert contact_fraction(small_belly, 30.0) == pytest.approx(0.15)
    assert contact_fraction(make_body(pct_cond=0.0), 6.0) == 0.0


def test_configuration_factors_scaled_by_objects():
    body = make_body(f_object=0.2, f_bush=0.1)
    geom = compute_geometry(body, 3.0, 0.0)
    assert geom.f_sky == pytest.approx(0.5 * 0.7)
    assert geom.f_ground == pytest.approx(0.5 * 0.7)


def test_sphere_resistances():
    geom = compute_geometry(make_body(shape=2), 1.0, 0.005)
    r = geom.dims['r_skin']
    assert core_resistance(geom, 0.9, 0.23) == pytest.approx(1.0 / (8.0 * math.pi * 0.9 * r))
    expected = (1.0 / r - 1.0 / (r + 0.005)) / (4.0 * math.pi * 0.05)
    assert fur_resistance(geom, 0.05) == pytest.approx(expected)
    assert fur_resistance(compute_geometry(make_body(shape=2), 1.0, 0.0), 0.05) == 0.0
