"""Attacker/defender modifier merge and effective combat profiles."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from warhost.domain.applier import (
    FNP_STAT,
    HIT_STAT,
    INVULN_STAT,
    REROLL_PREFIX,
    WOUND_STAT,
    added_keywords,
    apply_rules,
    threshold_stat,
)
from warhost.domain.context import CombatContext, CombatOptions, build_combat_context
from warhost.domain.dice import DiceExpression, parse_dice_expression
from warhost.domain.enums import CombatPhase, CombatRole, RerollKind, RollPhase, ThresholdKind
from warhost.domain.keywords import normalize_keyword, parse_weapon_keywords
from warhost.domain.models import ArmyState, GameSnapshot, Unit, Weapon
from warhost.domain.profiles import TargetProfile, WeaponProfile, target_profile, weapon_profile
from warhost.domain.rules import AnyRule
from warhost.errors import DiceExpressionError

logger = logging.getLogger(__name__)

WEAPON_STATS = ("A", "S", "AP", "D")
TARGET_STATS = ("T", "SV")

_REROLL_STRENGTH = {RerollKind.ONES: 1, RerollKind.FAILED: 2, RerollKind.ALL: 3}


@dataclass(frozen=True, slots=True)
class RuleRef:
    """A rule that fired for one side of an attack."""

    id: str
    name: str
    side: CombatRole


@dataclass(frozen=True, slots=True)
class CombatModifiers:
    """Everything the dice engine needs from the rules, with no rule data.

    ``hit`` and ``wound`` already include defensive modifiers from the
    target's rules.  Threshold fields are overrides; ``None`` means use the
    characteristic-derived value.
    """

    hit: int = 0
    wound: int = 0
    attacks: int = 0
    strength: int = 0
    ap: int = 0
    damage: int = 0
    toughness: int = 0
    save: int = 0
    invulnerable_save: int | None = None
    feel_no_pain: int | None = None
    hit_threshold: int | None = None
    wound_threshold: int | None = None
    critical_hit: int | None = None
    critical_wound: int | None = None
    rerolls: tuple[str, ...] = ()
    added_keywords: tuple[str, ...] = ()
    applied_rules: tuple[RuleRef, ...] = ()
    sources: dict[str, tuple[str, ...]] = field(default_factory=dict)
    diagnostics: tuple[str, ...] = ()

    def reroll_for(self, phase: RollPhase | str) -> RerollKind | None:
        """Strongest reroll granted for ``phase`` (all > failed > ones)."""

        phase = RollPhase(phase)
        granted = [
            RerollKind(entry.split(":", 1)[1]) for entry in self.rerolls if entry.split(":", 1)[0] == phase
        ]
        if not granted:
            return None
        return max(granted, key=_REROLL_STRENGTH.__getitem__)


@dataclass(frozen=True, slots=True)
class CombatState:
    """Merged modifiers plus the profiles they produce."""

    modifiers: CombatModifiers
    weapon: WeaponProfile
    target: TargetProfile


def _rerolls(ctx: CombatContext) -> tuple[str, ...]:
    found = []
    for stat in ctx.modifiers.stats():
        if stat.startswith(REROLL_PREFIX) and ctx.modifiers.has(stat):
            found.append(stat[len(REROLL_PREFIX) :])
    return tuple(sorted(set(found)))


def _override(*contexts: CombatContext, stat: str) -> int | None:
    """Last ``SET`` across contexts, later contexts winning."""

    value = None
    for ctx in contexts:
        candidate = ctx.modifiers.last_set(stat)
        if candidate is not None:
            value = candidate
    return value


def _sources(attacker_ctx: CombatContext, defender_ctx: CombatContext) -> dict[str, tuple[str, ...]]:
    sources: dict[str, tuple[str, ...]] = {}
    for stat in (HIT_STAT, WOUND_STAT):
        ids = [*attacker_ctx.modifiers.sources(stat), *defender_ctx.modifiers.sources(stat)]
        if ids:
            sources[stat] = tuple(dict.fromkeys(ids))
    for stat in WEAPON_STATS:
        if ids := attacker_ctx.modifiers.sources(stat):
            sources[stat] = tuple(ids)
    for stat in (*TARGET_STATS, INVULN_STAT, FNP_STAT):
        if ids := defender_ctx.modifiers.sources(stat):
            sources[stat] = tuple(ids)
    return sources


def calculate_combat_modifiers(
    attacker: Unit,
    defender: Unit,
    weapon: Weapon | WeaponProfile,
    game: GameSnapshot,
    *,
    combat_phase: CombatPhase | None = None,
    options: CombatOptions | None = None,
    attacker_rules: Sequence[AnyRule] = (),
    defender_rules: Sequence[AnyRule] = (),
    attacker_army_states: Iterable[ArmyState | str] = (),
    defender_army_states: Iterable[ArmyState | str] = (),
) -> CombatModifiers:
    """Evaluate both sides' rules and merge them for the attacker's rolls.

    Attacker rules run in an ``attacker`` context, defender rules in a
    ``defender`` context.  Defensive hit/wound modifiers are added to the
    attacker's roll modifiers here, before any dice are rolled.
    """

    options = options or CombatOptions()
    attacker_ctx = build_combat_context(
        attacker,
        defender,
        weapon,
        game,
        combat_phase=combat_phase,
        combat_role=CombatRole.ATTACKER,
        options=options,
        rules=attacker_rules,
        army_states=attacker_army_states,
    )
    defender_ctx = build_combat_context(
        attacker,
        defender,
        weapon,
        game,
        combat_phase=combat_phase,
        combat_role=CombatRole.DEFENDER,
        options=options,
        rules=defender_rules,
        army_states=defender_army_states,
    )

    applied = [RuleRef(rule.id, rule.name, CombatRole.ATTACKER) for rule in apply_rules(attacker_rules, attacker_ctx)]
    applied += [RuleRef(rule.id, rule.name, CombatRole.DEFENDER) for rule in apply_rules(defender_rules, defender_ctx)]

    modifiers = CombatModifiers(
        hit=attacker_ctx.modifiers.get(HIT_STAT) + defender_ctx.modifiers.get(HIT_STAT),
        wound=attacker_ctx.modifiers.get(WOUND_STAT) + defender_ctx.modifiers.get(WOUND_STAT),
        attacks=attacker_ctx.modifiers.get("A"),
        strength=attacker_ctx.modifiers.get("S"),
        ap=attacker_ctx.modifiers.get("AP"),
        damage=attacker_ctx.modifiers.get("D"),
        toughness=defender_ctx.modifiers.get("T"),
        save=defender_ctx.modifiers.get("SV"),
        invulnerable_save=defender_ctx.modifiers.last_set(INVULN_STAT),
        feel_no_pain=defender_ctx.modifiers.last_set(FNP_STAT),
        hit_threshold=_override(attacker_ctx, defender_ctx, stat=threshold_stat(ThresholdKind.HIT)),
        wound_threshold=_override(attacker_ctx, defender_ctx, stat=threshold_stat(ThresholdKind.WOUND)),
        critical_hit=_override(attacker_ctx, defender_ctx, stat=threshold_stat(ThresholdKind.CRITICAL_HIT)),
        critical_wound=_override(attacker_ctx, defender_ctx, stat=threshold_stat(ThresholdKind.CRITICAL_WOUND)),
        rerolls=_rerolls(attacker_ctx),
        added_keywords=tuple(added_keywords(attacker_ctx)),
        applied_rules=tuple(applied),
        sources=_sources(attacker_ctx, defender_ctx),
        diagnostics=(*attacker_ctx.diagnostics, *defender_ctx.diagnostics),
    )
    logger.debug(
        "Merged modifiers for %s -> %s: hit %+d, wound %+d, %d rules applied",
        attacker.name,
        defender.name,
        modifiers.hit,
        modifiers.wound,
        len(applied),
    )
    return modifiers


def _shift_expression(text: str, delta: int, *, floor: int) -> str:
    if delta == 0:
        return text
    try:
        expression = parse_dice_expression(text)
    except DiceExpressionError:
        # left as-is; the step that resolves it reports the error
        return text
    if expression.is_fixed:
        return str(max(floor, expression.bonus + delta))
    return str(DiceExpression(expression.count, expression.sides, expression.bonus + delta))


def _merge_keywords(base: Sequence[str], extra: Sequence[str]) -> tuple[str, ...]:
    seen = {normalize_keyword(keyword) for keyword in base}
    merged = list(base)
    for keyword in extra:
        if normalize_keyword(keyword) not in seen:
            seen.add(normalize_keyword(keyword))
            merged.append(keyword)
    return tuple(merged)


def effective_weapon(weapon: WeaponProfile, modifiers: CombatModifiers) -> WeaponProfile:
    """Bake weapon modifiers and granted keywords into a profile.

    Weapons with Extra Attacks ignore attack modifiers.
    """

    keywords = _merge_keywords(weapon.keywords, modifiers.added_keywords)
    attack_delta = 0 if parse_weapon_keywords(keywords).extra_attacks else modifiers.attacks
    return WeaponProfile(
        name=weapon.name,
        range=weapon.range,
        attacks=_shift_expression(weapon.attacks, attack_delta, floor=0),
        skill=weapon.skill,
        strength=max(1, weapon.strength + modifiers.strength),
        ap=weapon.ap + modifiers.ap,
        damage=_shift_expression(weapon.damage, modifiers.damage, floor=1),
        keywords=keywords,
    )


def _best(*values: int | None) -> int | None:
    present = [value for value in values if value is not None]
    return min(present) if present else None


def effective_target(target: TargetProfile, modifiers: CombatModifiers) -> TargetProfile:
    """Bake defensive modifiers into a target profile (lower saves are better)."""

    return TargetProfile(
        toughness=max(1, target.toughness + modifiers.toughness),
        save=target.save + modifiers.save,
        model_count=target.model_count,
        invulnerable_save=_best(target.invulnerable_save, modifiers.invulnerable_save),
        feel_no_pain=_best(target.feel_no_pain, modifiers.feel_no_pain),
        categories=target.categories,
        keywords=target.keywords,
    )


def build_combat_state(
    attacker: Unit,
    defender: Unit,
    weapon: Weapon | WeaponProfile,
    game: GameSnapshot,
    **kwargs: object,
) -> CombatState:
    """Merge modifiers and return them with the effective weapon and target.

    Keyword arguments are those of :func:`calculate_combat_modifiers`.
    """

    modifiers = calculate_combat_modifiers(attacker, defender, weapon, game, **kwargs)  # type: ignore[arg-type]
    return CombatState(
        modifiers=modifiers,
        weapon=effective_weapon(weapon_profile(weapon), modifiers),
        target=effective_target(target_profile(defender), modifiers),
    )
