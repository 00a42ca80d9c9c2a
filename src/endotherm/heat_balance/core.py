"""
core.py

Entry points of the heat and mass balance model.

- `solve_endotherm(inputs)`: one steady-state solve for one environmental
  instant. Applies the heat-stress pre-condition, runs the escalation policy
  over `evaluate_state` and assembles the result records.
- `endo_r(**overrides)`: build the input bundle from keyword overrides of the
  defaults in `config.py` and solve it.
- `evaluate_state(inputs, state)`: geometry, insulation, exchange and the
  interface solve for a single effector state, plus the energy accounting
  that decides whether the state is balanced.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple
import logging
import sys

from endotherm.heat_balance.escalation import EscalationPolicy
from endotherm.heat_balance.exchange import (AirState, air_state, build_side, respiration,
                                             respiratory_fraction)
from endotherm.heat_balance.geometry import BodyGeometry, compute_geometry
from endotherm.heat_balance.inputs import EndoInputs, build_inputs
from endotherm.heat_balance.insulation import Insulation, compute_insulation
from endotherm.heat_balance.results import EndoResult, assemble_result
from endotherm.heat_balance.solver import SideSolution, solve_side
from endotherm.heat_balance.state import PhysiologicalState
from endotherm.io.input_writer import InputWriter

logger = logging.getLogger(__name__)

SIDES = ('dorsal', 'ventral')


def configure_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler (and optionally a delayed file handler) to the package logger."""
    log = logging.getLogger('endotherm')
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
        log.addHandler(h)
    if log_file is not None:
        fh = logging.FileHandler(log_file, delay=True)
        fh.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(message)s'))
        log.addHandler(fh)
    log.setLevel(level)
    for handler in log.handlers:
        handler.setLevel(level)
    return log


@dataclass
class Evaluation:
    """Everything computed for one effector state."""
    state: PhysiologicalState
    geometry: BodyGeometry
    insulation: Insulation
    sides: Dict[str, SideSolution]
    skin_temp: float
    skin_temp_dorsal: float
    skin_temp_ventral: float
    fur_air_temp: float
    fur_air_temp_dorsal: float
    fur_air_temp_ventral: float
    lung_temp: float
    q10_mult: float
    q_basal: float
    q_met: float
    losses: float
    surplus: float
    balanced: bool
    converged: bool
    iterations: int
    residual: float
    enb: float
    fluxes: Dict[str, float] = field(default_factory=dict)
    respiration: Dict[str, float] = field(default_factory=dict)
    water: Dict[str, float] = field(default_factory=dict)


def q10_multiplier(inputs: EndoInputs, core_temp: float) -> float:
    phys = inputs.physiology
    return phys.q10 ** ((core_temp - phys.core_temp_ref) / 10.0)


def evaluate_state(inputs: EndoInputs, state: PhysiologicalState,
                   air: Optional[AirState] = None) -> Evaluation:
    """Solve the interface temperatures at `state` and account the energy budget.

    Metabolism is the basal rate, raised to whatever the skin losses demand
    once the lungs have taken their share. The state is balanced when the
    remaining surplus (heat gained, or lost by the lungs beyond what any
    metabolism at or above basal can supply) is within `energy_tolerance`.
    """
    env = inputs.environment
    body = inputs.body
    phys = inputs.physiology
    if air is None:
        air = air_state(env)

    insulation = compute_insulation(body, 0.5 * (state.skin_temp + state.fur_air_temp))
    solved: Dict[str, SideSolution] = {}
    weights: Dict[str, float] = {}
    for name in SIDES:
        side = build_side(inputs, name, state.shape_b, state.flesh_k, state.skin_wet, insulation)
        if side.weight <= 0.0:
            continue
        solved[name] = solve_side(inputs, air, side, state.core_temp,
                                  state.skin_temp, state.fur_air_temp)
        weights[name] = side.weight

    def mean(attr: str) -> float:
        return sum(weights[n] * getattr(solved[n], attr) for n in solved)

    def surface_mean(key: str) -> float:
        return sum(weights[n] * solved[n].surface[key] for n in solved)

    def side_value(name: str, attr: str) -> float:
        sol = solved.get(name) or next(iter(solved.values()))
        return getattr(sol, attr)

    skin_temp = mean('skin_temp')
    fur_air_temp = mean('fur_air_temp')
    losses = mean('q_flesh')
    lung_temp = 0.5 * (state.core_temp + skin_temp)

    c_resp = respiratory_fraction(env, air, phys, lung_temp, state.pant)
    q10_mult = q10_multiplier(inputs, state.core_temp)
    q_basal = phys.q_basal * phys.activity * q10_mult
    q_met = q_basal
    if c_resp != 1.0:
        q_met = max(q_basal, losses / (1.0 - c_resp))
    surplus = q_met * (1.0 - c_resp) - losses
    balanced = abs(surplus) <= inputs.settings.energy_tolerance
    resp = respiration(env, air, phys, q_met, lung_temp, state.pant)

    fluxes = {
        'qsol': surface_mean('qsol'),
        'qirin': surface_mean('qirin'),
        'qirout': surface_mean('qirout'),
        'qconv': surface_mean('qconv'),
        'qevap_fur': surface_mean('qevap_fur'),
        'qevap_skin': mean('q_skin_evap'),
        'qcond': mean('q_cond'),
    }
    enb = (fluxes['qsol'] + fluxes['qirin'] + q_met
           - (fluxes['qevap_skin'] + fluxes['qevap_fur'] + resp['q_resp'])
           - fluxes['qirout'] - fluxes['qconv'] - fluxes['qcond'])
    water = {'skin': mean('m_skin_evap'), 'fur': surface_mean('m_evap_fur')}

    return Evaluation(
        state=state,
        geometry=compute_geometry(body, state.shape_b, body.mean_fur_depth),
        insulation=insulation,
        sides=solved,
        skin_temp=skin_temp,
        skin_temp_dorsal=side_value('dorsal', 'skin_temp'),
        skin_temp_ventral=side_value('ventral', 'skin_temp'),
        fur_air_temp=fur_air_temp,
        fur_air_temp_dorsal=side_value('dorsal', 'fur_air_temp'),
        fur_air_temp_ventral=side_value('ventral', 'fur_air_temp'),
        lung_temp=lung_temp,
        q10_mult=q10_mult,
        q_basal=q_basal,
        q_met=q_met,
        losses=losses,
        surplus=surplus,
        balanced=balanced,
        converged=all(s.converged for s in solved.values()),
        iterations=sum(s.iterations for s in solved.values()),
        residual=mean('residual'),
        enb=enb,
        fluxes=fluxes,
        respiration=resp,
        water=water,
    )


def apply_heat_stress(inputs: EndoInputs, state: PhysiologicalState) -> Tuple[PhysiologicalState, bool]:
    """Start from the fully heat-dissipating posture and conductivity when air is at or above core.

    If air is also above the core ceiling, core temperature starts at the
    ceiling; metabolism then follows the Q10 factor for that excursion.
    """
    eff = inputs.effectors
    ta = inputs.environment.air_temp
    if ta < eff.core_temp.initial:
        return state, False
    state = replace(state, shape_b=eff.posture.ceiling, flesh_k=eff.conductivity.ceiling)
    if ta > eff.core_temp.ceiling:
        state = replace(state, core_temp=eff.core_temp.ceiling)
    logger.info('air temperature %.2f C at or above core %.2f C: starting at shape_b=%.3g, '
                'flesh_k=%.3g, core=%.2f C', ta, eff.core_temp.initial, state.shape_b,
                state.flesh_k, state.core_temp)
    return state, True


def solve_endotherm(inputs: EndoInputs) -> EndoResult:
    """Solve the steady-state heat and mass balance for one input bundle."""
    if inputs.settings.write_input:
        InputWriter(inputs.settings.input_dir).write(inputs)

    air = air_state(inputs.environment)
    state, _ = apply_heat_stress(inputs, PhysiologicalState.initial(inputs))
    policy = EscalationPolicy(inputs.effectors, inputs.settings.max_escalations)
    outcome = policy.run(state, lambda s: evaluate_state(inputs, s, air))
    logger.debug('solve finished: %s after %d escalations', outcome.status, outcome.escalations)
    return assemble_result(outcome)


def endo_r(**overrides: Any) -> EndoResult:
    """Solve with the defaults of `config.py` updated by keyword `overrides`."""
    return solve_endotherm(build_inputs(**overrides))
