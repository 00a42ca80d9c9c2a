"""
results.py

Output records of one solve and their tabular views.

`assemble_result` is a pure projection of the final evaluation: nothing is
recomputed here.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List
import logging

import pandas as pd

from endotherm.heat_balance.escalation import BALANCED, EscalationOutcome, EscalationStep
from endotherm.heat_balance.utils import flatten

logger = logging.getLogger(__name__)


@dataclass
class ThermoregulationRecord:
    core_temp: float             # deg C
    lung_temp: float             # deg C
    skin_temp: float             # area-weighted mean, deg C
    skin_temp_dorsal: float
    skin_temp_ventral: float
    fur_air_temp: float          # area-weighted mean, deg C
    fur_air_temp_dorsal: float
    fur_air_temp_ventral: float
    shape_b: float               # posture, long:short axis ratio
    pant: float                  # breathing multiplier
    skin_wet: float              # %
    flesh_k: float               # W/mK
    fur_k: float                 # combined, W/mK
    fur_k_dorsal: float
    fur_k_ventral: float
    fur_k_compressed: float
    q10_mult: float


@dataclass
class MorphologyRecord:
    area: float                  # outer (fur) surface, m2
    area_skin: float
    area_skin_evap: float
    area_conv: float
    area_cond: float
    area_sil: float
    area_sil_normal: float
    area_sil_parallel: float
    volume: float                # m3
    flesh_volume: float
    char_dim: float              # m
    fat_mass: float              # kg
    fat_thickness: float         # m
    length: float
    width: float
    height: float
    diam_flesh: float
    diam_fur: float
    f_sky: float
    f_ground: float


@dataclass
class EnergyBalanceRecord:
    """Heat flows in W; losses are positive."""
    qsol: float
    qirin: float
    qmet: float
    qevap: float
    qevap_skin: float
    qevap_fur: float
    qevap_resp: float
    qirout: float
    qconv: float
    qcond: float
    enb: float
    ntry: int
    residual: float
    solver_converged: bool
    success: bool


@dataclass
class MassBalanceRecord:
    air_flow: float              # L/h at STP
    o2_flow: float               # L/h at STP
    h2o_resp: float              # g/h
    h2o_cut: float               # g/h, skin, eyes and bare patches
    h2o_fur: float               # g/h
    h2o_total: float             # g/h
    o2_mol_in: float             # mol/h
    o2_mol_out: float
    n2_mol_in: float
    n2_mol_out: float
    air_mol_in: float
    air_mol_out: float


@dataclass
class EndoResult:
    treg: ThermoregulationRecord
    morph: MorphologyRecord
    enbal: EnergyBalanceRecord
    masbal: MassBalanceRecord
    status: str
    escalations: int
    history: List[EscalationStep] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.enbal.success

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the four records to `group.field` keys."""
        out = flatten({'treg': self.treg, 'morph': self.morph,
                       'enbal': self.enbal, 'masbal': self.masbal})
        out['status'] = self.status
        out['escalations'] = self.escalations
        return out

    def to_series(self) -> pd.Series:
        return pd.Series(self.to_dict())

    def history_frame(self) -> pd.DataFrame:
        """One row per evaluation of the escalation loop."""
        rows = []
        for step in self.history:
            row = {'iteration': step.iteration, **step.values, 'surplus': step.surplus,
                   'balanced': step.balanced, 'solver_iterations': step.solver_iterations,
                   'advanced': step.advanced}
            rows.append(row)
        return pd.DataFrame(rows)


def assemble_result(outcome: EscalationOutcome) -> EndoResult:
    ev = outcome.evaluation
    state = ev.state
    geom = ev.geometry
    ins = ev.insulation
    flux = ev.fluxes
    resp = ev.respiration

    treg = ThermoregulationRecord(
        core_temp=state.core_temp,
        lung_temp=ev.lung_temp,
        skin_temp=ev.skin_temp,
        skin_temp_dorsal=ev.skin_temp_dorsal,
        skin_temp_ventral=ev.skin_temp_ventral,
        fur_air_temp=ev.fur_air_temp,
        fur_air_temp_dorsal=ev.fur_air_temp_dorsal,
        fur_air_temp_ventral=ev.fur_air_temp_ventral,
        shape_b=state.shape_b,
        pant=state.pant,
        skin_wet=state.skin_wet,
        flesh_k=state.flesh_k,
        fur_k=ins.k_combined,
        fur_k_dorsal=ins.k_dorsal,
        fur_k_ventral=ins.k_ventral,
        fur_k_compressed=ins.k_compressed,
        q10_mult=ev.q10_mult,
    )
    morph = MorphologyRecord(
        area=geom.area,
        area_skin=geom.area_skin,
        area_skin_evap=geom.area_skin_evap,
        area_conv=geom.area_conv,
        area_cond=geom.area_cond,
        area_sil=geom.area_sil,
        area_sil_normal=geom.area_sil_normal,
        area_sil_parallel=geom.area_sil_parallel,
        volume=geom.volume,
        flesh_volume=geom.flesh_volume,
        char_dim=geom.char_dim,
        fat_mass=geom.fat_mass,
        fat_thickness=geom.fat_thickness,
        length=geom.length,
        width=geom.width,
        height=geom.height,
        diam_flesh=geom.diam_flesh,
        diam_fur=geom.diam_fur,
        f_sky=geom.f_sky,
        f_ground=geom.f_ground,
    )
    success = outcome.status == BALANCED and ev.converged
    enbal = EnergyBalanceRecord(
        qsol=flux['qsol'],
        qirin=flux['qirin'],
        qmet=ev.q_met,
        qevap=flux['qevap_skin'] + flux['qevap_fur'] + resp['q_resp'],
        qevap_skin=flux['qevap_skin'],
        qevap_fur=flux['qevap_fur'],
        qevap_resp=resp['q_resp'],
        qirout=flux['qirout'],
        qconv=flux['qconv'],
        qcond=flux['qcond'],
        enb=ev.enb,
        ntry=ev.iterations,
        residual=ev.residual,
        solver_converged=ev.converged,
        success=success,
    )
    h2o_cut = ev.water['skin'] * 3.6e6
    h2o_fur = ev.water['fur'] * 3.6e6
    masbal = MassBalanceRecord(
        air_flow=resp['air_flow'],
        o2_flow=resp['o2_flow'],
        h2o_resp=resp['water_resp'],
        h2o_cut=h2o_cut,
        h2o_fur=h2o_fur,
        h2o_total=resp['water_resp'] + h2o_cut + h2o_fur,
        o2_mol_in=resp['o2_mol_in'],
        o2_mol_out=resp['o2_mol_out'],
        n2_mol_in=resp['n2_mol_in'],
        n2_mol_out=resp['n2_mol_out'],
        air_mol_in=resp['air_mol_in'],
        air_mol_out=resp['air_mol_out'],
    )
    if not success:
        logger.warning('heat balance not reached: status=%s, solver converged=%s, enb=%.4g W',
                       outcome.status, ev.converged, ev.enb)
    return EndoResult(treg=treg, morph=morph, enbal=enbal, masbal=masbal,
                      status=outcome.status, escalations=outcome.escalations,
                      history=list(outcome.history))
