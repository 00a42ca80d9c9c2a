"""Heat and mass balance solver with thermoregulatory escalation.

    from endotherm.heat_balance import endo_r

    result = endo_r(air_temp=30.0, wind_speed=1.0)
    result.treg.core_temp
"""
from endotherm.heat_balance.core import configure_logging, endo_r, evaluate_state, solve_endotherm
from endotherm.heat_balance.inputs import InvalidConfigurationError, build_inputs

__all__ = [
    'InvalidConfigurationError',
    'build_inputs',
    'configure_logging',
    'endo_r',
    'evaluate_state',
    'solve_endotherm',
]
