"""Which melee weapons a unit can still fight with this turn.

A model fights with one melee weapon per turn.  Weapons with Extra Attacks
are used on top of that choice and only need to be unused themselves.
Usage is read from ``Weapon.turns_fired`` keyed by
:func:`warhost.domain.turns.turn_key`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from warhost.domain.keywords import parse_weapon_keywords
from warhost.domain.models import ModelID, Unit, Weapon


@dataclass(frozen=True, slots=True)
class MeleeWeaponSlot:
    """A melee weapon as carried by one particular model."""

    model_id: ModelID
    weapon: Weapon

    @property
    def extra_attacks(self) -> bool:
        return parse_weapon_keywords(self.weapon.keywords).extra_attacks


def unit_melee_weapons(unit: Unit) -> list[MeleeWeaponSlot]:
    return [
        MeleeWeaponSlot(model.id, weapon)
        for model in unit.models
        for weapon in model.weapons
        if weapon.is_melee
    ]


def melee_weapon_eligible(slot: MeleeWeaponSlot, slots: Sequence[MeleeWeaponSlot], turn_key: str) -> bool:
    """Can this model still fight with this weapon during ``turn_key``?"""

    if not slot.weapon.is_melee or slot.weapon.has_fired(turn_key):
        return False
    if slot.extra_attacks:
        return True
    # one main weapon per model
    return not any(
        other.model_id == slot.model_id
        and other.weapon.is_melee
        and not other.extra_attacks
        and other.weapon.has_fired(turn_key)
        for other in slots
    )


def melee_group_disabled(weapon_name: str, slots: Sequence[MeleeWeaponSlot], turn_key: str) -> bool:
    """True when no model can still fight with weapons named ``weapon_name``."""

    group = [slot for slot in slots if slot.weapon.name == weapon_name and slot.weapon.is_melee]
    return not any(melee_weapon_eligible(slot, slots, turn_key) for slot in group)


def has_remaining_melee_weapons(slots: Sequence[MeleeWeaponSlot], turn_key: str) -> bool:
    return any(melee_weapon_eligible(slot, slots, turn_key) for slot in slots)
