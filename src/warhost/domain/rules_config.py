"""Declarative rule configuration for the combat engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DiceRules:
    """Roll targets and natural results."""

    die_sides: int = 6
    natural_critical: int = 6
    natural_failure: int = 1
    best_threshold: int = 2
    worst_threshold: int = 6
    impossible_threshold: int = 7


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Attack and save adjustments."""

    blast_band_size: int = 5
    cover_save_bonus: int = 1
    cover_minimum_armour: int = 3  # 3+ or better ignores cover vs AP 0
    minimum_damage: int = 1
    hit_modifier_cap: int | None = None  # None: modifiers stack without a cap
    wound_modifier_cap: int | None = None


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    dice: DiceRules = DiceRules()
    combat: CombatRules = CombatRules()


DEFAULT_RULES = RulesConfig()
