"""Stratagem queries: which stratagems an army has and which are usable now.

Some stratagems change the dice of an attack.  Those are also offered as
army-scoped choice rules (:func:`combat_stratagems`) that the host adds to
the attacker's rule set once the player spends the command point.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from warhost.domain.enums import Phase, TurnContext, WeaponType
from warhost.domain.keywords import normalize_keyword
from warhost.domain.rules import ChoiceRule, validate_rules
from warhost.domain.stratagem_catalog import (
    CORE_STRATAGEMS,
    DEATH_GUARD_MORTARIONS_HAMMER,
    DETACHMENT_STRATAGEMS,
    ORKS_SPEED_FREEKS,
    Stratagem,
)


def _matches(value: str | None, *names: str) -> bool:
    key = normalize_keyword(value or "")
    return bool(key) and any(key == normalize_keyword(name) for name in names)


def detachment_stratagems(faction: str | None, detachment: str | None) -> list[Stratagem]:
    """Stratagems granted by ``detachment`` (empty for unknown detachments)."""

    faction_key = normalize_keyword(faction or "")
    found: list[Stratagem] = []
    for fragment, names, stratagems in DETACHMENT_STRATAGEMS:
        if normalize_keyword(fragment) in faction_key and _matches(detachment, *names):
            found.extend(stratagems)
    return found


def available_stratagems(faction: str | None = None, detachment: str | None = None) -> list[Stratagem]:
    """Core stratagems followed by the detachment's own."""

    return [*CORE_STRATAGEMS, *detachment_stratagems(faction, detachment)]


def stratagems_for_phase(stratagems: Iterable[Stratagem], phase: Phase | str) -> list[Stratagem]:
    return [stratagem for stratagem in stratagems if stratagem.matches_phase(phase)]


def stratagems_for_turn(
    stratagems: Iterable[Stratagem],
    turn_context: TurnContext | str,
    battle_round: int | None = None,
) -> list[Stratagem]:
    """Stratagems usable on ``turn_context``'s turn (and in ``battle_round``, if given)."""

    return [
        stratagem
        for stratagem in stratagems
        if stratagem.usable_on(turn_context)
        and (battle_round is None or stratagem.allowed_in_round(battle_round))
    ]


@dataclass(frozen=True, slots=True)
class DrawerEntry:
    stratagem: Stratagem
    available_now: bool


def _drawer_order(stratagem: Stratagem) -> tuple[bool, str]:
    # detachment stratagems first, then by name
    return (stratagem.detachment is None, stratagem.name.casefold())


def stratagems_for_drawer(stratagems: Iterable[Stratagem], turn_context: TurnContext | str) -> list[DrawerEntry]:
    """Every stratagem, those usable on this turn first, each group sorted."""

    usable: list[Stratagem] = []
    unusable: list[Stratagem] = []
    for stratagem in stratagems:
        (usable if stratagem.usable_on(turn_context) else unusable).append(stratagem)
    return [
        *(DrawerEntry(stratagem, True) for stratagem in sorted(usable, key=_drawer_order)),
        *(DrawerEntry(stratagem, False) for stratagem in sorted(unusable, key=_drawer_order)),
    ]


# --- Stratagems as combat rules -----------------------------------------------------


_RANGED_ATTACKER = {
    "t": "all",
    "xs": [
        {"t": "combatRole", "role": "attacker"},
        {"t": "weaponType", "any": ["ranged"]},
    ],
}


def _shooting_choice(rule_id: str, name: str, faction: str, description: str, choice: dict) -> ChoiceRule:
    (rule,) = validate_rules(
        {
            "id": rule_id,
            "name": name,
            "description": description,
            "faction": faction,
            "scope": "army",
            "trigger": {"t": "automatic", "phase": "shooting", "turn": "own"},
            "when": _RANGED_ATTACKER,
            "kind": "choice",
            "choice": choice,
        }
    )
    return rule  # type: ignore[return-value]


def _yes_no(choice_id: str, prompt: str, no: list[dict], yes: list[dict]) -> dict:
    return {
        "id": choice_id,
        "prompt": prompt,
        "lifetime": "roll",
        "options": [
            {"v": "no", "label": "No", "then": [{"t": "do", "fx": no}]},
            {"v": "yes", "label": "Yes", "then": [{"t": "do", "fx": yes}]},
        ],
    }


DAKKASTORM_RULE = _shooting_choice(
    "stratagem-dakkastorm",
    "Dakkastorm",
    "Orks",
    'Ranged weapons gain Sustained Hits; improved if the target is within 9".',
    _yes_no(
        "dakkastorm-target-within-9",
        'Dakkastorm: is the target within 9"?',
        [{"t": "addWeaponAbility", "ability": {"t": "sustainedHits", "x": 1}}],
        [{"t": "addWeaponAbility", "ability": {"t": "sustainedHits", "x": 2}}],
    ),
)

BLITZA_FIRE_RULE = _shooting_choice(
    "stratagem-blitza-fire",
    "Blitza Fire",
    "Orks",
    'Ranged weapons gain Lethal Hits; if the target is within 9", Critical Hits on 5+.',
    _yes_no(
        "blitza-fire-target-within-9",
        'Blitza Fire: is the target within 9"?',
        [{"t": "addWeaponAbility", "ability": {"t": "flag", "id": "lethalHits"}}],
        [
            {"t": "addWeaponAbility", "ability": {"t": "flag", "id": "lethalHits"}},
            {"t": "overrideThreshold", "which": "criticalHit", "n": 5},
        ],
    ),
)

DRAWN_TO_DESPAIR_RULE = _shooting_choice(
    "stratagem-drawn-to-despair",
    "Drawn to Despair",
    "Death Guard",
    "Re-roll the Hit roll against visible enemy units (excluding AIRCRAFT) in the opponent's deployment zone.",
    _yes_no(
        "drawn-to-despair-qualifies",
        "Drawn to Despair: is the target visible, not AIRCRAFT, and in your opponent's deployment zone?",
        [],
        [{"t": "reroll", "phase": "hit", "kind": "failed"}],
    ),
)

_RULE_BY_STRATAGEM = {
    "dakkastorm": DAKKASTORM_RULE,
    "blitza-fire": BLITZA_FIRE_RULE,
    "drawn-to-despair": DRAWN_TO_DESPAIR_RULE,
}


@dataclass(frozen=True, slots=True)
class CombatStratagem:
    """A stratagem that the dice engine can resolve, with its rule."""

    stratagem: Stratagem
    rule: ChoiceRule


def _has_fragment(values: Sequence[str], fragment: str) -> bool:
    wanted = normalize_keyword(fragment)
    return any(wanted in normalize_keyword(value) for value in values)


def combat_stratagems(
    faction: str | None,
    detachment: str | None,
    weapon_type: WeaponType | str,
    unit_keywords: Sequence[str] = (),
    unit_categories: Sequence[str] = (),
) -> list[CombatStratagem]:
    """Stratagems the attacking unit could spend on this shooting attack."""

    if WeaponType(weapon_type) == WeaponType.MELEE:
        return []

    offered: list[Stratagem] = []
    granted = {stratagem.id for stratagem in detachment_stratagems(faction, detachment)}
    if _has_fragment(unit_keywords, "speed freek"):
        offered += [s for s in ORKS_SPEED_FREEKS if s.id in _RULE_BY_STRATAGEM and s.id in granted]
    if _has_fragment(unit_categories, "vehicle"):
        offered += [s for s in DEATH_GUARD_MORTARIONS_HAMMER if s.id in _RULE_BY_STRATAGEM and s.id in granted]
    return [CombatStratagem(stratagem, _RULE_BY_STRATAGEM[stratagem.id]) for stratagem in offered]
