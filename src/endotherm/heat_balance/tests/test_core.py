import logging
from dataclasses import replace

import pandas as pd
import pytest

from endotherm.heat_balance import configure_logging, endo_r, solve_endotherm
from endotherm.heat_balance.core import apply_heat_stress, evaluate_state
from endotherm.heat_balance.escalation import BALANCED
from endotherm.heat_balance.inputs import InvalidConfigurationError, build_inputs
from endotherm.heat_balance.state import PhysiologicalState
from endotherm.heat_balance.tests.fixtures import make_inputs


def test_cold_air_balances_without_escalation():
    result = solve_endotherm(make_inputs(air_temp=0.0))
    assert result.status == BALANCED
    assert result.success
    assert result.escalations == 0
    assert result.treg.core_temp == 37.0
    assert result.enbal.qmet >= build_inputs().physiology.q_basal
    assert abs(result.enbal.enb) < 1e-2


def test_thermoneutral_does_not_pass_posture():
    """Mild still air below skin temperature, where the furred body sheds basal heat by posture alone."""
    result = solve_endotherm(make_inputs(air_temp=20.0, wind_speed=0.0, solar=0.0,
                                         shape_b_max=4.0))
    assert result.success
    assert all(step.advanced in (None, 'posture') for step in result.history)
    assert result.treg.flesh_k == 0.9


def _flux_sum(flux):
    return (flux.qsol + flux.qirin + flux.qmet - flux.qevap - flux.qirout
            - flux.qconv - flux.qcond)


def test_energy_is_conserved_on_success():
    for air_temp in (-10.0, 10.0, 25.0):
        result = solve_endotherm(make_inputs(air_temp=air_temp, wind_speed=2.0))
        assert result.success
        assert _flux_sum(result.enbal) == pytest.approx(result.enbal.enb)
        assert abs(result.enbal.enb) < 1e-2


@pytest.mark.parametrize('air_temp', [46.0, 55.0])
def test_hot_panting_success_conserves_energy(air_temp):
    result = endo_r(air_temp=air_temp, wind_speed=0.1, q10=2.0, pant_max=5.0, max_wet=50.0,
                    shape_b_max=4.0, uncurl=0.5, flesh_k_increment=0.5, raise_core=0.5,
                    panting=0.5, sweat=5.0)
    assert _flux_sum(result.enbal) == pytest.approx(result.enbal.enb)
    if result.success:
        assert abs(result.enbal.enb) < 1e-2


def test_respiratory_overdraw_is_not_balanced():
    inputs = make_inputs(air_temp=46.0, wind_speed=0.1, pant_max=5.0)
    state = PhysiologicalState.initial(inputs)
    for pant in (1.0, 3.0, 5.0):
        ev = evaluate_state(inputs, replace(state, pant=pant, core_temp=40.0))
        assert ev.q_met >= ev.q_basal
        if ev.converged:
            assert ev.surplus == pytest.approx(ev.enb, abs=1e-2)
        assert ev.balanced == (abs(ev.surplus) <= inputs.settings.energy_tolerance)
        if ev.surplus < -inputs.settings.energy_tolerance:
            assert not ev.balanced


def test_direct_beam_kept_when_belly_covers_body():
    qsol = {p: endo_r(air_temp=10.0, solar=800.0, zenith=0.0, max_pct_ventral=p).enbal.qsol
            for p in (0.99, 1.0)}
    assert qsol[1.0] == pytest.approx(qsol[0.99], rel=0.2)


def test_solar_load_is_absorbed():
    shaded = solve_endotherm(make_inputs(air_temp=10.0, solar=800.0, shade=100.0))
    sunny = solve_endotherm(make_inputs(air_temp=10.0, solar=800.0, zenith=30.0))
    assert shaded.enbal.qsol == pytest.approx(0.0)
    assert sunny.enbal.qsol > 0.0
    assert sunny.enbal.qmet < shaded.enbal.qmet


def test_extreme_heat_pins_core_at_ceiling():
    result = solve_endotherm(make_inputs(air_temp=50.0, q10=2.0, shape_b_max=5.0,
                                         core_temp_max=45.0))
    assert result.treg.core_temp == 45.0
    assert result.treg.q10_mult == pytest.approx(2.0 ** 0.8)
    assert result.treg.q10_mult != 1.0
    assert result.treg.shape_b == 5.0
    assert result.treg.flesh_k == 2.8


def test_sweating_disabled_keeps_initial_wetness():
    result = solve_endotherm(make_inputs(air_temp=50.0, sweat=0.0, skin_wet=0.5))
    assert result.treg.skin_wet == 0.5
    assert all(step.values['sweating'] == 0.5 for step in result.history)


def test_heat_load_escalates_monotonically():
    inputs = make_inputs(air_temp=40.0, rel_humidity=20.0, shape_b_max=5.0)
    result = solve_endotherm(inputs)
    assert result.escalations > 0
    frame = result.history_frame()
    for name in ('posture', 'conductivity', 'core_temp', 'panting', 'sweating'):
        values = frame[name].to_numpy()
        assert (values[1:] >= values[:-1]).all()
        assert values.max() <= inputs.effectors.get(name).ceiling + 1e-12


def test_identical_bundles_give_identical_results():
    inputs = make_inputs(air_temp=38.0)
    first = solve_endotherm(inputs).to_dict()
    second = solve_endotherm(inputs).to_dict()
    assert first == second


def test_heat_stress_precondition():
    inputs = make_inputs(air_temp=40.0, shape_b_max=5.0, core_temp_max=45.0)
    state, applied = apply_heat_stress(inputs, PhysiologicalState.initial(inputs))
    assert applied
    assert state.shape_b == 5.0
    assert state.flesh_k == inputs.effectors.conductivity.ceiling
    assert state.core_temp == 37.0

    hotter = make_inputs(air_temp=46.0, core_temp_max=45.0)
    state, applied = apply_heat_stress(hotter, PhysiologicalState.initial(hotter))
    assert applied
    assert state.core_temp == 45.0

    mild = make_inputs(air_temp=20.0)
    state, applied = apply_heat_stress(mild, PhysiologicalState.initial(mild))
    assert not applied
    assert state == PhysiologicalState.initial(mild)


def test_q10_scales_basal_heat():
    inputs = make_inputs(air_temp=20.0, q10=3.0)
    state = PhysiologicalState.initial(inputs)
    warm = evaluate_state(inputs, PhysiologicalState(**{**state.__dict__, 'core_temp': 47.0}))
    assert warm.q10_mult == pytest.approx(3.0)
    assert warm.q_basal == pytest.approx(3.0 * inputs.physiology.q_basal)


def test_flying_forces_wetness_ceiling():
    dry = solve_endotherm(make_inputs(air_temp=10.0, max_wet=50.0))
    flying = solve_endotherm(make_inputs(air_temp=10.0, max_wet=50.0, flying=1))
    assert flying.enbal.qevap_skin > dry.enbal.qevap_skin


def test_respiration_scales_with_metabolism():
    result = solve_endotherm(make_inputs(air_temp=0.0))
    mas = result.masbal
    assert mas.o2_flow > 0.0
    assert mas.air_flow > mas.o2_flow
    assert mas.o2_mol_out < mas.o2_mol_in
    assert mas.n2_mol_out == pytest.approx(mas.n2_mol_in)
    assert mas.h2o_total == pytest.approx(mas.h2o_resp + mas.h2o_cut + mas.h2o_fur)


def test_result_tables():
    result = endo_r(air_temp=5.0)
    series = result.to_series()
    assert isinstance(series, pd.Series)
    assert series['treg.core_temp'] == result.treg.core_temp
    assert series['status'] == result.status
    frame = result.history_frame()
    assert isinstance(frame, pd.DataFrame)
    assert len(frame) == len(result.history)
    assert {'posture', 'sweating', 'surplus', 'advanced'} <= set(frame.columns)


@pytest.mark.parametrize('overrides', [
    {'shape': 7},
    {'subq_fat': 1, 'fat_pct': 100.0},
    {'not_a_parameter': 1.0},
    {'mass': -1.0},
    {'f_object': 0.7, 'f_bush': 0.6},
])
def test_invalid_configuration_fails_fast(overrides):
    with pytest.raises(InvalidConfigurationError):
        endo_r(**overrides)


@pytest.mark.parametrize('shape', [1, 2, 3])
def test_other_shapes_solve(shape):
    result = solve_endotherm(make_inputs(air_temp=10.0, shape=shape, shape_b_ref=2.0))
    assert result.success
    assert result.morph.volume == pytest.approx(1e-3)


def test_configure_logging_is_idempotent():
    log = configure_logging(logging.DEBUG)
    n = len(log.handlers)
    configure_logging(logging.INFO)
    assert len(log.handlers) == n
    assert log.level == logging.INFO
