"""
escalation.py

Thermoregulatory escalation as a finite-state machine.

Stages, in the order they are tried:

    posture -> conductivity -> core_temp -> panting -> sweating

One transition rule: after an evaluation that is not balanced, advance the
first enabled effector that is still below its ceiling by one increment
(clamped to the ceiling) and evaluate again. Effectors never move down.

Terminal states:
- 'balanced'          the evaluation dissipates the basal heat load
- 'ceiling'           every effector is at its ceiling and heat remains
- 'escalation_limit'  `max_escalations` advances were made without balance

The policy knows nothing about heat transfer: it receives an `evaluate`
callable so it can be exercised with a stub.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional
import logging

from endotherm.heat_balance.inputs import Effectors
from endotherm.heat_balance.state import PhysiologicalState

logger = logging.getLogger(__name__)

BALANCED = 'balanced'
CEILING = 'ceiling'
ESCALATION_LIMIT = 'escalation_limit'


@dataclass
class EscalationStep:
    """Snapshot of one evaluation in the escalation loop."""
    iteration: int
    values: Dict[str, float]
    surplus: float
    balanced: bool
    solver_iterations: int
    advanced: Optional[str] = None


@dataclass
class EscalationOutcome:
    state: PhysiologicalState
    evaluation: Any
    status: str
    escalations: int
    history: List[EscalationStep] = field(default_factory=list)


class EscalationPolicy:
    """Advance effectors one increment at a time until heat balance is reached.

    `evaluate(state)` must return an object exposing `balanced`, `surplus`,
    `iterations`, `skin_temp` and `fur_air_temp`.
    """

    def __init__(self, effectors: Effectors, max_escalations: int = 5000):
        self.effectors = effectors
        self.max_escalations = int(max_escalations)

    def next_stage(self, state: PhysiologicalState) -> Optional[str]:
        """Name of the effector to advance next, or None when all are exhausted."""
        for eff in self.effectors.ordered():
            if eff.enabled and not eff.at_ceiling(state.effector_value(eff.name)):
                return eff.name
        return None

    def advance(self, state: PhysiologicalState, name: str) -> PhysiologicalState:
        eff = self.effectors.get(name)
        value = min(eff.ceiling, state.effector_value(name) + eff.increment)
        return state.with_effector(name, value)

    def run(self, state: PhysiologicalState,
            evaluate: Callable[[PhysiologicalState], Any]) -> EscalationOutcome:
        history: List[EscalationStep] = []
        escalations = 0
        while True:
            evaluation = evaluate(state)
            step = EscalationStep(
                iteration=len(history),
                values=state.effector_values(),
                surplus=float(evaluation.surplus),
                balanced=bool(evaluation.balanced),
                solver_iterations=int(evaluation.iterations),
            )
            history.append(step)
            # carry the solved temperatures forward as the next starting guess
            state = replace(state, skin_temp=evaluation.skin_temp,
                            fur_air_temp=evaluation.fur_air_temp)

            if evaluation.balanced:
                status = BALANCED
                break
            stage = self.next_stage(state)
            if stage is None:
                status = CEILING
                break
            if escalations >= self.max_escalations:
                status = ESCALATION_LIMIT
                break
            state = self.advance(state, stage)
            step.advanced = stage
            escalations += 1
            logger.debug('escalation %d: %s -> %.4g (surplus %.4g W, %d solver iterations)',
                         escalations, stage, state.effector_value(stage),
                         step.surplus, step.solver_iterations)

        return EscalationOutcome(state=state, evaluation=evaluation, status=status,
                                 escalations=escalations, history=history)
