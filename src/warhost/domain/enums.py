"""Enumerations shared by the rules engine."""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """Battle round phases, plus the ``any`` wildcard used by triggers."""

    COMMAND = "command"
    MOVEMENT = "movement"
    SHOOTING = "shooting"
    CHARGE = "charge"
    FIGHT = "fight"
    ANY = "any"


# short names used by some hosts
PHASE_ALIASES = {"move": Phase.MOVEMENT, "shoot": Phase.SHOOTING}


def parse_phase(name: str) -> Phase:
    """Map a host phase name to :class:`Phase` ("move" and "shoot" accepted)."""

    key = name.strip().lower()
    return PHASE_ALIASES.get(key) or Phase(key)


class TurnContext(StrEnum):
    """Whose turn an ability is relevant on."""

    OWN = "own"
    OPPONENT = "opponent"
    BOTH = "both"


class RuleScope(StrEnum):
    """Whether an ability transfers across a leader attachment."""

    MODEL = "model"
    UNIT = "unit"
    ARMY = "army"


class TriggerType(StrEnum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    REACTIVE = "reactive"


class UsageLimit(StrEnum):
    NONE = "none"
    ONCE_PER_TURN = "once-per-turn"
    ONCE_PER_BATTLE = "once-per-battle"


class RoundRestriction(StrEnum):
    """Battle rounds in which a stratagem may be used."""

    ANY = "any"
    FIRST_ROUND_ONLY = "first-turn-only"
    SECOND_ROUND_ONWARDS = "second-turn-onwards"


class CombatPhase(StrEnum):
    """Kind of attack being resolved."""

    SHOOTING = "shooting"
    MELEE = "melee"


class CombatRole(StrEnum):
    """Which side's rules a combat context is evaluating."""

    ATTACKER = "attacker"
    DEFENDER = "defender"


class WeaponType(StrEnum):
    RANGED = "ranged"
    MELEE = "melee"


class RollPhase(StrEnum):
    """Dice steps that can be re-rolled."""

    HIT = "hit"
    WOUND = "wound"
    DAMAGE = "damage"


class RerollKind(StrEnum):
    ONES = "ones"
    FAILED = "failed"
    ALL = "all"


class ThresholdKind(StrEnum):
    """Roll targets that an ability may override outright."""

    HIT = "hit"
    WOUND = "wound"
    CRITICAL_HIT = "criticalHit"
    CRITICAL_WOUND = "criticalWound"


class CombatStep(StrEnum):
    """Steps of the dice-resolution state machine, in order."""

    ATTACKS = "attacks"
    HITS = "hits"
    WOUNDS = "wounds"
    SAVES = "saves"
    FEEL_NO_PAIN = "feel_no_pain"
    SUMMARY = "summary"
    DONE = "done"
