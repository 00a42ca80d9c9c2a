from types import SimpleNamespace

from endotherm.heat_balance.inputs import Body, Effectors, FurSide, build_inputs, make_effector

# coarse effector steps keep full-model scenarios to a handful of evaluations
COARSE_STEPS = {
    'uncurl': 1.0,
    'flesh_k_increment': 1.0,
    'raise_core': 2.0,
    'panting': 3.0,
    'sweat': 25.0,
}


def make_inputs(**overrides):
    """Default bundle with coarse effector increments, updated by `overrides`."""
    params = dict(COARSE_STEPS)
    params.update(overrides)
    return build_inputs(**params)


def make_body(shape=2, fur_depth=0.0, **kwargs):
    """Body with the same fur on both sides."""
    fur = FurSide(depth=fur_depth)
    params = dict(shape=shape, dorsal=fur, ventral=fur, fur_depth_compressed=fur_depth)
    params.update(kwargs)
    return Body(**params)


def make_effectors(posture=(3.0, 1.0, 5.0), conductivity=(0.9, 0.5, 1.9),
                   core_temp=(37.0, 1.0, 39.0), panting=(1.0, 1.0, 3.0),
                   sweating=(0.5, 10.0, 20.5)):
    """Effectors from (initial, increment, ceiling) triples."""
    return Effectors(
        posture=make_effector('posture', *posture),
        conductivity=make_effector('conductivity', *conductivity),
        core_temp=make_effector('core_temp', *core_temp),
        panting=make_effector('panting', *panting),
        sweating=make_effector('sweating', *sweating),
    )


def stub_evaluator(is_balanced, calls=None):
    """Evaluator for the escalation policy that balances when `is_balanced(state)`."""
    def evaluate(state):
        if calls is not None:
            calls.append(state.effector_values())
        ok = bool(is_balanced(state))
        return SimpleNamespace(balanced=ok, surplus=0.0 if ok else 1.0, iterations=1,
                               skin_temp=state.skin_temp, fur_air_temp=state.fur_air_temp)
    return evaluate
