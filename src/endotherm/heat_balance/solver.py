"""
solver.py

Interface-temperature solver.

For a fixed core temperature the skin and fur-air temperatures of one body
side are found with two nested bracketed Brent root finds
(`scipy.optimize.brentq`):

- inner: fur-air temperature such that conduction through the fur equals
  the net loss at the outer surface (convection + infrared + wet-fur
  evaporation - absorbed solar);
- outer: skin temperature such that heat conducted out of the core through
  flesh and fat equals the heat leaving the skin (fur path + substrate
  conduction + skin evaporation).

Both residuals are strictly monotone in their unknown, so a bracket, once
found, contains the single root. Brackets are grown symmetrically around the
starting guess a bounded number of times; when no sign change is found the
best endpoint is returned with `converged=False` and the iteration count set
to the cap. Non-convergence is reported, never raised.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict
import logging
import math

from scipy.optimize import brentq

from endotherm.heat_balance.config import PHYSICAL_CONSTANTS
from endotherm.heat_balance.exchange import (AirState, SideModel, conduction, skin_evaporation,
                                             surface_fluxes)
from endotherm.heat_balance.inputs import EndoInputs, SolverSettings

logger = logging.getLogger(__name__)

T_LOWER = -PHYSICAL_CONSTANTS['kelvin'] + 1.0   # deg C
T_UPPER = 500.0                                 # deg C


@dataclass
class SolverReport:
    root: float
    converged: bool
    iterations: int
    residual: float


def find_root(func: Callable[[float], float], guess: float, tol: float, max_iterations: int,
              max_expansions: int, step: float = 2.0) -> SolverReport:
    """Bracket and solve func(x) = 0 starting from `guess`."""
    a, b = max(T_LOWER, guess - step), min(T_UPPER, guess + step)
    fa, fb = func(a), func(b)
    expansions = 0
    while fa * fb > 0.0 and expansions < max_expansions:
        if a <= T_LOWER and b >= T_UPPER:
            break
        step *= 2.0
        a, b = max(T_LOWER, guess - step), min(T_UPPER, guess + step)
        fa, fb = func(a), func(b)
        expansions += 1
    if fa == 0.0:
        return SolverReport(root=a, converged=True, iterations=0, residual=0.0)
    if fb == 0.0:
        return SolverReport(root=b, converged=True, iterations=0, residual=0.0)
    if not (math.isfinite(fa) and math.isfinite(fb)) or fa * fb > 0.0:
        best, fbest = (a, fa) if abs(fa) <= abs(fb) else (b, fb)
        logger.debug('no sign change in [%.4g, %.4g] after %d expansions', a, b, expansions)
        return SolverReport(root=best, converged=False, iterations=max_iterations, residual=fbest)
    root, r = brentq(func, a, b, xtol=tol, maxiter=max_iterations, full_output=True, disp=False)
    return SolverReport(root=root, converged=bool(r.converged), iterations=int(r.iterations),
                        residual=func(root))


@dataclass
class SideSolution:
    skin_temp: float
    fur_air_temp: float
    q_flesh: float
    q_fur: float
    q_cond: float
    q_skin_evap: float
    m_skin_evap: float
    converged: bool
    iterations: int
    residual: float
    surface: Dict[str, float] = field(default_factory=dict)


def solve_side(inputs: EndoInputs, air: AirState, side: SideModel, core_temp: float,
               skin_guess: float, fur_guess: float) -> SideSolution:
    """Solve the skin and fur-air temperatures of one side at `core_temp`."""
    env = inputs.environment
    body = inputs.body
    settings: SolverSettings = inputs.settings
    memo = {'fur_guess': fur_guess, 'last_inner_ok': True}

    def outer_surface(ts: float):
        if not side.has_fur_path:
            surf = surface_fluxes(env, air, body, side, ts)
            return ts, surf, surf['net_loss']

        def fur_balance(tfa: float) -> float:
            return (ts - tfa) / side.r_fur - surface_fluxes(env, air, body, side, tfa)['net_loss']

        rep = find_root(fur_balance, memo['fur_guess'], settings.tolerance * 0.1,
                        settings.max_iterations, settings.max_bracket_expansions)
        if rep.converged:
            memo['fur_guess'] = rep.root
        memo['last_inner_ok'] = rep.converged
        tfa = rep.root
        return tfa, surface_fluxes(env, air, body, side, tfa), (ts - tfa) / side.r_fur

    def skin_terms(ts: float):
        tfa, surf, q_fur = outer_surface(ts)
        q_cond = conduction(env, side, ts)
        q_evap, m_evap = skin_evaporation(air, side, ts, surf['hd'], surf['vapour_diffusivity'])
        return tfa, surf, q_fur, q_cond, q_evap, m_evap

    def skin_balance(ts: float) -> float:
        _, _, q_fur, q_cond, q_evap, _ = skin_terms(ts)
        return (core_temp - ts) / side.r_core - (q_fur + q_cond + q_evap)

    report = find_root(skin_balance, skin_guess, settings.tolerance, settings.max_iterations,
                       settings.max_bracket_expansions)
    ts = report.root
    memo['last_inner_ok'] = True
    tfa, surf, q_fur, q_cond, q_evap, m_evap = skin_terms(ts)
    converged = report.converged and memo['last_inner_ok']
    if not converged:
        logger.debug('%s side did not converge: skin %.3f C, residual %.3g W',
                     side.name, ts, report.residual)
    return SideSolution(
        skin_temp=ts,
        fur_air_temp=tfa,
        q_flesh=(core_temp - ts) / side.r_core,
        q_fur=q_fur,
        q_cond=q_cond,
        q_skin_evap=q_evap,
        m_skin_evap=m_evap,
        converged=converged,
        iterations=report.iterations,
        residual=report.residual,
        surface=surf,
    )
