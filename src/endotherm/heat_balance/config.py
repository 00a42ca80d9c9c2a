# -*- coding: utf-8 -*-

"""
heat_balance/config.py

This module centralizes the default parameters of the endotherm heat and mass
balance model. By keeping environmental drivers, body properties and
physiological limits in one place, every caller (the solver, the input
builder, the test fixtures) starts from the same baseline scenario.

Contents:
---------
1. ENVIRONMENT:
   - Microclimate drivers for a single environmental instant (air, ground,
     sky and substrate temperatures, wind, humidity, solar load, pressure).
   - `None` means "defaults to air temperature" and is resolved in
     `inputs.build_inputs`.

2. BEHAVIOUR:
   - Effector increments. An increment of zero switches the effector off and
     pins it at its initial value for the whole solve.

3. MORPHOLOGY:
   - Mass, density, fat, shape class and posture ratios.
   - Shape codes: 1 cylinder, 2 sphere, 3 plate, 4 ellipsoid.

4. FUR:
   - Hair/feather geometry and optics, dorsal and ventral.

5. RADIATION:
   - Emissivity and configuration factors to sky, ground, objects and bush.

6. NEST:
   - Placeholders only, nest microclimates are not modelled.

7. PHYSIOLOGY:
   - Core temperature, flesh/fat conductivity, wetness, metabolism and
     respiration parameters and their ceilings.

8. INITIAL_CONDITIONS / SOLVER:
   - Starting guesses for the interface temperatures and solver controls.

Usage:
------
    from endotherm.heat_balance.config import ENVIRONMENT, PHYSIOLOGY

    ENVIRONMENT["air_temp"]   # 20.0 (deg C)
"""

# ───────────────────────────────────────────────────────────────────────────────
# 1) ENVIRONMENT
# ───────────────────────────────────────────────────────────────────────────────
ENVIRONMENT = {
    'air_temp': 20.0,               # air temperature at local height (deg C)
    'ref_air_temp': None,           # air temperature at reference height (deg C)
    'ground_temp': None,            # ground temperature (deg C)
    'sky_temp': None,               # sky temperature (deg C)
    'substrate_temp': None,         # surface temperature for conduction (deg C)
    'bush_temp': None,              # bush/vegetation temperature (deg C)
    'wind_speed': 0.1,              # wind speed (m/s)
    'rel_humidity': 5.0,            # relative humidity (%)
    'solar': 0.0,                   # solar radiation, horizontal plane (W/m2)
    'zenith': 20.0,                 # zenith angle of sun (degrees from overhead)
    'elevation': 0.0,               # elevation (m)
    'pressure': -1.0,               # barometric pressure (Pa), negative -> from elevation
    'substrate_absorptivity': 0.8,  # solar absorptivity of substrate (0-1)
    'fluid_type': 0,                # 0 air; water types are not modelled
    'o2_pct': 20.95,                # oxygen concentration of air (%)
    'n2_pct': 79.02,                # nitrogen concentration of air (%)
    'co2_pct': 0.03,                # carbon dioxide concentration of air (%)
    'diffuse_fraction': 0.15,       # proportion of solar radiation that is diffuse (0-1)
    'shade': 0.0,                   # shade level (%)
}

# ───────────────────────────────────────────────────────────────────────────────
# 2) BEHAVIOUR (effector increments per escalation iteration)
# ───────────────────────────────────────────────────────────────────────────────
BEHAVIOUR = {
    'night_shade': 0,               # behavioural shade seeking at night (placeholder flag)
    'flying': 0,                    # flight this hour, forces cutaneous wetness to its ceiling
    'uncurl': 1.0,                  # increment of shape_b per iteration (-)
    'raise_core': 1.0,              # increment of core temperature per iteration (deg C)
    'sweat': 0.25,                  # increment of skin wetness per iteration (%)
    'flesh_k_increment': 0.5,       # increment of flesh conductivity per iteration (W/mK)
    'panting': 0.1,                 # increment of breathing multiplier per iteration (-)
}

# ───────────────────────────────────────────────────────────────────────────────
# 3) MORPHOLOGY
# ───────────────────────────────────────────────────────────────────────────────
MORPHOLOGY = {
    'mass': 1.0,                    # body mass (kg)
    'density': 1000.0,              # body density (kg/m3)
    'subq_fat': 0,                  # subcutaneous fat present (0 no, 1 yes)
    'fat_pct': 20.0,                # body fat (%)
    'shape': 4,                     # 1 cylinder, 2 sphere, 3 plate, 4 ellipsoid
    'shape_b_ref': 3.0,             # reference ratio of long to short axis (-)
    'shape_b': None,                # current ratio, defaults to shape_b_ref
    'shape_b_max': None,            # maximum ratio, defaults to shape_b_ref
    'shape_c': None,                # plate length:height ratio, defaults to shape_b
    'max_pct_ventral': 0.5,         # fraction of surface area that is ventral (0-1)
    'pct_cond': 0.0,                # fraction of surface touching the substrate (0-1)
    'max_pct_cond': 0.0,            # maximum fraction touching the substrate (0-1)
    'sa_mode': 0,                   # 0 shape geometry, 1 bird allometry, 2 mammal allometry
    'orient': 0,                    # 1 normal to sun, 2 parallel to sun, 0 average
}

# ───────────────────────────────────────────────────────────────────────────────
# 4) FUR / FEATHERS
# ───────────────────────────────────────────────────────────────────────────────
FUR = {
    'fur_k': 0.0,                   # fixed fur conductivity (W/mK), not used if 0
    'hair_diameter_dorsal': 30e-06,     # (m)
    'hair_diameter_ventral': 30e-06,    # (m)
    'hair_length_dorsal': 23.9e-03,     # (m)
    'hair_length_ventral': 23.9e-03,    # (m)
    'fur_depth_dorsal': 2e-03,          # (m)
    'fur_depth_ventral': 2e-03,         # (m)
    'hair_density_dorsal': 3000e+04,    # hairs per m2
    'hair_density_ventral': 3000e+04,   # hairs per m2
    'reflectivity_dorsal': 0.2,         # fur solar reflectivity (0-1)
    'reflectivity_ventral': 0.2,        # fur solar reflectivity (0-1)
    'fur_depth_compressed': None,       # compressed depth for conduction (m), defaults to ventral depth
}

# ───────────────────────────────────────────────────────────────────────────────
# 5) RADIATION EXCHANGE
# ───────────────────────────────────────────────────────────────────────────────
RADIATION = {
    'emissivity': 0.99,             # animal emissivity (-)
    'f_object': 0.0,                # configuration factor to nearby object
    'f_bush': 0.0,                  # configuration factor to vegetation around the animal
    'f_ground_ref': 0.5,            # reference configuration factor to ground
    'f_sky_ref': 0.5,               # reference configuration factor to sky
}

# ───────────────────────────────────────────────────────────────────────────────
# 6) NEST (placeholders)
# ───────────────────────────────────────────────────────────────────────────────
NEST = {
    'nest_type': 0,
    'nest_radius': 0.0,
}

# ───────────────────────────────────────────────────────────────────────────────
# 7) PHYSIOLOGY
# ───────────────────────────────────────────────────────────────────────────────
PHYSIOLOGY = {
    'core_temp': 37.0,              # core temperature (deg C)
    'core_temp_max': 45.0,          # maximum core temperature (deg C)
    'flesh_k': 0.9,                 # flesh conductivity (W/mK), 0.412 - 2.8
    'flesh_k_max': 2.8,             # maximum flesh conductivity (W/mK)
    'fat_k': 0.230,                 # fat conductivity (W/mK)
    'q_basal': None,                # basal heat generation (W), allometric default
    'skin_wet': 0.5,                # skin surface that is wet (%)
    'max_wet': 100.0,               # maximum wettable skin surface (%)
    'fur_wet': 0.0,                 # fur/feather surface that is wet (%)
    'pct_bare_evap': 0.0,           # bare evaporative surface, e.g. licked paws (%)
    'pct_eyes': 0.0,                # eye surface (%)
    'delta_breath': 0.0,            # exhaled air temperature above air temperature (deg C)
    'rel_exhaled': 100.0,           # relative humidity of exhaled air (%)
    'activity': 1.0,                # multiplier on metabolic rate for activity (-)
    'rq': 0.80,                     # respiratory quotient (0-1)
    'o2_extraction': 20.0,          # O2 extraction efficiency (%)
    'pant': 1.0,                    # breathing rate multiplier (-)
    'pant_max': 10.0,               # maximum breathing rate multiplier (-)
    'q10': 1.0,                     # Q10 factor for metabolic rate vs core temperature
}

# ───────────────────────────────────────────────────────────────────────────────
# 8) INITIAL CONDITIONS AND SOLVER
# ───────────────────────────────────────────────────────────────────────────────
INITIAL_CONDITIONS = {
    'skin_temp': None,              # defaults to core_temp - 3 (deg C)
    'fur_air_temp': None,           # defaults to air_temp (deg C)
}

SOLVER = {
    'tolerance': 0.001,             # temperature tolerance of the interface solve (deg C)
    'energy_tolerance': 1e-3,       # allowed basal heat surplus before escalating (W)
    'max_iterations': 100,          # Brent iterations per interface solve
    'max_bracket_expansions': 20,   # bracket widenings before reporting failure
    'max_escalations': 5000,        # hard cap on escalation iterations
    'write_input': 0,               # 1 -> dump the input bundle to csv before solving
    'input_dir': '.',               # directory for the input dump
}

# ───────────────────────────────────────────────────────────────────────────────
# 9) PHYSICAL CONSTANTS (SI)
# ───────────────────────────────────────────────────────────────────────────────
PHYSICAL_CONSTANTS = {
    'stefan_boltzmann': 5.670367e-08,   # W/m2/K4
    'gravity': 9.80665,                 # m/s2
    'gas_constant': 8.314462,           # J/mol/K
    'molar_mass_air': 0.0289644,        # kg/mol
    'molar_mass_water': 0.01801528,     # kg/mol
    'molar_volume_stp': 22.414,         # L/mol at STP
    'cp_air': 1006.0,                   # J/kg/K
    'kelvin': 273.15,
    'sea_level_pressure': 101325.0,     # Pa
    'fat_density': 901.0,               # kg/m3
    'keratin_k': 0.209,                 # hair/feather keratin conductivity (W/mK)
}

SHAPES = {
    1: 'cylinder',
    2: 'sphere',
    3: 'plate',
    4: 'ellipsoid',
}
