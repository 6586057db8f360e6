"""Immutable weapon/target profiles used during combat resolution."""

from __future__ import annotations

from dataclasses import dataclass, field

from warhost.domain.keywords import parse_unit_keywords
from warhost.domain.models import Unit, Weapon


@dataclass(frozen=True, slots=True)
class WeaponProfile:
    """Weapon characteristics as rolled, after any rule modifiers."""

    name: str
    range: int
    attacks: str
    skill: int
    strength: int
    ap: int
    damage: str
    keywords: tuple[str, ...] = ()

    @property
    def is_melee(self) -> bool:
        return self.range == 0


@dataclass(frozen=True, slots=True)
class TargetProfile:
    """Defensive characteristics of the target unit."""

    toughness: int
    save: int
    model_count: int = 1
    invulnerable_save: int | None = None
    feel_no_pain: int | None = None
    categories: tuple[str, ...] = field(default_factory=tuple)
    keywords: tuple[str, ...] = field(default_factory=tuple)

    def has_category(self, category: str) -> bool:
        wanted = category.lower()
        return any(cat.lower() == wanted for cat in (*self.categories, *self.keywords))


def weapon_profile(weapon: Weapon | WeaponProfile) -> WeaponProfile:
    """Snapshot a store weapon into an immutable profile."""

    if isinstance(weapon, WeaponProfile):
        return weapon
    return WeaponProfile(
        name=weapon.name,
        range=weapon.range,
        attacks=weapon.attacks,
        skill=weapon.skill,
        strength=weapon.strength,
        ap=weapon.ap,
        damage=weapon.damage,
        keywords=tuple(weapon.keywords),
    )


def target_profile(unit: Unit) -> TargetProfile:
    """Build the target profile from a unit, using its first model's stats.

    Invulnerable and Feel No Pain values missing from the model fall back to
    the unit's keywords ("Invulnerable Save 4+", "Feel No Pain 5+").
    """

    first = unit.models[0] if unit.models else None
    keyword_invuln, keyword_fnp = parse_unit_keywords(unit.keywords)
    invuln = first.invulnerable_save if first and first.invulnerable_save is not None else keyword_invuln
    fnp = first.feel_no_pain if first and first.feel_no_pain is not None else keyword_fnp
    return TargetProfile(
        toughness=first.toughness if first else 0,
        save=first.save if first else 7,
        model_count=len(unit.models),
        invulnerable_save=invuln,
        feel_no_pain=fnp,
        categories=tuple(unit.categories),
        keywords=tuple(unit.keywords),
    )
