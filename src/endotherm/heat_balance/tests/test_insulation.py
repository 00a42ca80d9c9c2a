import pytest

from endotherm.heat_balance.atmosphere import dry_air
from endotherm.heat_balance.insulation import SIGMA, compute_insulation, fur_conductivity
from endotherm.heat_balance.inputs import Body, FurSide


def test_fixed_fur_conductivity_overrides_everything():
    body = Body(fur_k=0.05, dorsal=FurSide(depth=0.01), ventral=FurSide(depth=0.002))
    ins = compute_insulation(body, 30.0)
    assert ins.k_dorsal == ins.k_ventral == ins.k_combined == ins.k_compressed == 0.05


def test_default_fur_is_plausible():
    k = fur_conductivity(FurSide(), 30.0)
    k_air = float(dry_air(30.0)['conductivity'])
    assert k_air < k < 0.1


def test_bare_layer_returns_air_conductivity():
    k = fur_conductivity(FurSide(depth=0.0), 25.0)
    assert k == pytest.approx(float(dry_air(25.0)['conductivity']))


def test_layer_without_hairs_is_air_plus_open_gap_radiation():
    side = FurSide(hair_density=0.0, depth=0.01)
    k = fur_conductivity(side, 20.0)
    expected = float(dry_air(20.0)['conductivity']) + 4.0 * SIGMA * 293.15 ** 3 * 0.01
    assert k == pytest.approx(expected)


def test_reflective_fur_conducts_less():
    dull = fur_conductivity(FurSide(reflectivity=0.1), 30.0)
    shiny = fur_conductivity(FurSide(reflectivity=0.6), 30.0)
    assert shiny < dull


def test_combined_is_area_weighted():
    body = Body(max_pct_ventral=0.25, dorsal=FurSide(depth=0.01, hair_length=0.02),
                ventral=FurSide(depth=0.002))
    ins = compute_insulation(body, 30.0)
    assert ins.k_combined == pytest.approx(0.75 * ins.k_dorsal + 0.25 * ins.k_ventral)
    assert ins.k_dorsal != ins.k_ventral
