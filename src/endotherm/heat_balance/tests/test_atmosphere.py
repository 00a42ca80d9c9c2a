import numpy as np
import pytest

from endotherm.heat_balance import atmosphere


def test_pressure_from_elevation():
    assert float(atmosphere.pressure_from_elevation(0.0)) == pytest.approx(101325.0)
    p = atmosphere.pressure_from_elevation(np.array([0.0, 1000.0, 3000.0]))
    assert np.all(np.diff(p) < 0)
    assert p[1] == pytest.approx(89875.0, rel=1e-3)


def test_negative_pressure_means_derive_from_elevation():
    assert atmosphere.barometric_pressure(90000.0, 0.0) == 90000.0
    assert atmosphere.barometric_pressure(-1.0, 0.0) == pytest.approx(101325.0)


def test_saturation_vapour_pressure():
    assert float(atmosphere.saturation_vapour_pressure(0.0)) == pytest.approx(611.2, rel=1e-3)
    assert float(atmosphere.saturation_vapour_pressure(100.0)) == pytest.approx(101325.0, rel=1e-2)
    # over ice below freezing
    assert float(atmosphere.saturation_vapour_pressure(-10.0)) == pytest.approx(259.9, rel=1e-2)


def test_vapour_pressure_scales_with_humidity():
    full = float(atmosphere.vapour_pressure(25.0, 100.0))
    half = float(atmosphere.vapour_pressure(25.0, 50.0))
    assert half == pytest.approx(0.5 * full)
    assert float(atmosphere.vapour_density(25.0, 100.0)) == pytest.approx(0.023, rel=2e-2)


def test_dry_air_properties_at_20c():
    props = atmosphere.dry_air(20.0)
    assert float(props['density']) == pytest.approx(1.204, rel=1e-2)
    assert float(props['prandtl']) == pytest.approx(0.71, rel=3e-2)
    assert float(props['kin_viscosity']) == pytest.approx(1.51e-05, rel=3e-2)


def test_latent_heat():
    assert float(atmosphere.latent_heat(0.0)) == pytest.approx(2.5012e06)
    assert float(atmosphere.latent_heat(40.0)) < float(atmosphere.latent_heat(0.0))
