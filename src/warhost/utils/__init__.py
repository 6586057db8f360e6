"""Utility functions for the Warhost rules engine."""

from warhost.utils.rng import ScriptedRoller, SeededRoller, generate_seed

__all__ = [
    "ScriptedRoller",
    "SeededRoller",
    "generate_seed",
]
