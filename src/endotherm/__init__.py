"""Steady-state heat and mass balance of an endothermic animal."""
