"""Dataclasses describing the battlefield snapshot consumed by the engine.

The host application keeps armies, units, models and weapons in its own
replicated store.  At call time it hands the engine a read-only tree built
from these dataclasses; nothing in the engine writes back to them.

Rules are attached as :class:`RuleLink` entries whose ``rule_object`` is the
serialized JSON text stored alongside the unit, model or weapon.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NewType

# --- Strongly typed identifiers -------------------------------------------------

GameID = NewType("GameID", str)
ArmyID = NewType("ArmyID", str)
UnitID = NewType("UnitID", str)
ModelID = NewType("ModelID", str)
WeaponID = NewType("WeaponID", str)
PlayerID = NewType("PlayerID", str)

CHARACTER_CATEGORY = "character"


@dataclass(frozen=True, slots=True)
class RuleLink:
    """A named ability attached to a unit, model or weapon."""

    name: str
    rule_object: str | None = None


@dataclass(slots=True)
class Weapon:
    """Weapon profile carried by a model.

    ``attacks`` and ``damage`` are either literal integers ("2") or dice
    expressions ("D6+3").  ``range`` of 0 denotes a melee weapon.
    """

    id: WeaponID
    name: str
    range: int
    attacks: str
    skill: int
    strength: int
    ap: int
    damage: str
    keywords: list[str] = field(default_factory=list)
    weapon_rules: list[RuleLink] = field(default_factory=list)
    turns_fired: list[str] = field(default_factory=list)

    @property
    def is_melee(self) -> bool:
        return self.range == 0

    def has_fired(self, turn_key: str) -> bool:
        """Whether this weapon already fired or fought during ``turn_key``."""

        return turn_key in self.turns_fired


@dataclass(slots=True)
class Model:
    """A single miniature with its characteristics."""

    id: ModelID
    name: str
    movement: int = 6
    toughness: int = 4
    save: int = 4
    wounds: int = 1
    leadership: int = 7
    objective_control: int = 1
    invulnerable_save: int | None = None
    feel_no_pain: int | None = None
    model_rules: list[RuleLink] = field(default_factory=list)
    weapons: list[Weapon] = field(default_factory=list)


@dataclass(slots=True)
class Unit:
    """A unit on the battlefield.

    Exactly one side of a leader attachment is populated for the unit being
    evaluated: a bodyguard unit lists its attached ``leaders``, an attached
    leader lists the ``bodyguard_units`` it joined.
    """

    id: UnitID
    name: str
    army_id: ArmyID | None = None
    is_leader: bool | None = None
    categories: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    unit_rules: list[RuleLink] = field(default_factory=list)
    models: list[Model] = field(default_factory=list)
    leaders: list[Unit] = field(default_factory=list)
    bodyguard_units: list[Unit] = field(default_factory=list)

    @property
    def is_character(self) -> bool:
        return any(cat.lower() == CHARACTER_CATEGORY for cat in self.categories)

    @property
    def leads_unit(self) -> bool:
        """Explicit leader flag, falling back to the CHARACTER category."""

        return self.is_leader if self.is_leader is not None else self.is_character


@dataclass(frozen=True, slots=True)
class ArmyState:
    """A named army-wide flag (e.g. a declared faction ability).

    Choice rules record the picked option under the choice id as ``state``
    with the value in ``choice_value``.
    """

    army_id: ArmyID
    state: str
    activated_turn: int = 1
    expires_phase: str | None = None
    choice_value: str | None = None


@dataclass(slots=True)
class Army:
    """An army as handed over for reminder queries."""

    id: ArmyID
    name: str
    units: list[Unit] = field(default_factory=list)
    states: list[ArmyState] = field(default_factory=list)

    @property
    def active_states(self) -> frozenset[str]:
        return frozenset(state.state for state in self.states)


@dataclass(frozen=True, slots=True)
class GameSnapshot:
    """Read-only view of the externally owned turn/phase state."""

    id: GameID
    current_turn: int = 1
    current_phase: str = ""
    active_player_id: PlayerID | None = None
