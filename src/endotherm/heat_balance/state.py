"""Mutable physiological state carried through one solve."""
from dataclasses import dataclass, replace
from typing import Dict

from endotherm.heat_balance.inputs import STAGES, EndoInputs

# effector name -> PhysiologicalState attribute
EFFECTOR_FIELDS = {
    'posture': 'shape_b',
    'conductivity': 'flesh_k',
    'core_temp': 'core_temp',
    'panting': 'pant',
    'sweating': 'skin_wet',
}


@dataclass
class PhysiologicalState:
    """The five effector values plus the current interface temperature estimates."""
    shape_b: float
    flesh_k: float
    core_temp: float
    pant: float
    skin_wet: float
    skin_temp: float
    fur_air_temp: float

    @classmethod
    def initial(cls, inputs: EndoInputs) -> 'PhysiologicalState':
        eff = inputs.effectors
        return cls(
            shape_b=eff.posture.initial,
            flesh_k=eff.conductivity.initial,
            core_temp=eff.core_temp.initial,
            pant=eff.panting.initial,
            skin_wet=eff.sweating.initial,
            skin_temp=inputs.initial.skin_temp,
            fur_air_temp=inputs.initial.fur_air_temp,
        )

    def effector_value(self, name: str) -> float:
        return getattr(self, EFFECTOR_FIELDS[name])

    def with_effector(self, name: str, value: float) -> 'PhysiologicalState':
        return replace(self, **{EFFECTOR_FIELDS[name]: value})

    def effector_values(self) -> Dict[str, float]:
        return {name: self.effector_value(name) for name in STAGES}
