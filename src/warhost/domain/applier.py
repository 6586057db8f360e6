"""Rule application: interpret effects into a context's modifier stack."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from warhost.domain.conditions import evaluate_when
from warhost.domain.context import CombatContext
from warhost.domain.enums import CombatRole
from warhost.domain.keywords import ability_key, format_ability
from warhost.domain.modifiers import Modifier, Operation
from warhost.domain.rules import (
    AddKeyword,
    AddUnitAbility,
    AddWeaponAbility,
    AnyRule,
    Block,
    ChoiceRule,
    DoBlock,
    Fx,
    GrantReroll,
    IfBlock,
    ModifyDefensiveStat,
    ModifyHit,
    ModifyHitAgainst,
    ModifyWeaponStat,
    ModifyWound,
    ModifyWoundAgainst,
    OverrideThreshold,
    PassiveRule,
    ReminderRule,
    SetFeelNoPain,
    SetInvulnerableSave,
)

logger = logging.getLogger(__name__)

HIT_STAT = "hit"
WOUND_STAT = "wound"
INVULN_STAT = "INV"
FNP_STAT = "FNP"
KEYWORD_PREFIX = "keyword:"
WEAPON_ABILITY_PREFIX = "weaponAbility:"
UNIT_ABILITY_PREFIX = "unitAbility:"
REROLL_PREFIX = "reroll:"
THRESHOLD_PREFIX = "threshold:"


def reroll_stat(phase: str, kind: str) -> str:
    return f"{REROLL_PREFIX}{phase}:{kind}"


def threshold_stat(which: str) -> str:
    return f"{THRESHOLD_PREFIX}{which}"


def _add(ctx: CombatContext, rule_id: str, stat: str, value: int) -> None:
    ctx.modifiers.add(Modifier(source=rule_id, stat=stat, value=value))


def _set(ctx: CombatContext, rule_id: str, stat: str, value: int) -> None:
    ctx.modifiers.add(Modifier(source=rule_id, stat=stat, value=value, operation=Operation.SET))


def apply_fx(fx: Fx, ctx: CombatContext, rule_id: str) -> None:
    """Apply a single effect to the context's modifier stack."""

    attacking = ctx.combat_role == CombatRole.ATTACKER
    match fx:
        case ModifyHit(add=delta):
            if attacking:
                _add(ctx, rule_id, HIT_STAT, delta)
        case ModifyWound(add=delta):
            if attacking:
                _add(ctx, rule_id, WOUND_STAT, delta)
        case ModifyHitAgainst(add=delta):
            if not attacking:
                _add(ctx, rule_id, HIT_STAT, delta)
        case ModifyWoundAgainst(add=delta):
            if not attacking:
                _add(ctx, rule_id, WOUND_STAT, delta)
        case ModifyWeaponStat(stat=stat, add=delta) | ModifyDefensiveStat(stat=stat, add=delta):
            _add(ctx, rule_id, stat, delta)
        case AddWeaponAbility(ability=ability):
            stat = f"{WEAPON_ABILITY_PREFIX}{ability_key(ability)}"
            _set(ctx, rule_id, stat, 1)
            ctx.ability_details[stat] = ability
        case AddUnitAbility(ability=ability):
            stat = f"{UNIT_ABILITY_PREFIX}{ability_key(ability)}"
            _set(ctx, rule_id, stat, 1)
            ctx.ability_details[stat] = ability
        case AddKeyword(keyword=keyword):
            stat = f"{KEYWORD_PREFIX}{keyword}"
            _set(ctx, rule_id, stat, 1)
            ctx.ability_details[stat] = keyword
        case SetInvulnerableSave(n=n):
            _set(ctx, rule_id, INVULN_STAT, n)
        case SetFeelNoPain(n=n):
            _set(ctx, rule_id, FNP_STAT, n)
        case GrantReroll(phase=phase, kind=kind):
            _set(ctx, rule_id, reroll_stat(phase, kind), 1)
        case OverrideThreshold(which=which, n=n):
            _set(ctx, rule_id, threshold_stat(which), n)
        case _:
            logger.warning("Ignoring unknown effect %r from rule %s", fx, rule_id)
            ctx.diagnostics.append(f"{rule_id}: unknown effect {getattr(fx, 't', fx)!r} ignored")


def evaluate_block(block: Block, ctx: CombatContext, rule_id: str) -> None:
    match block:
        case DoBlock(fx=effects):
            for fx in effects:
                apply_fx(fx, ctx, rule_id)
        case IfBlock(when=when, then=then):
            if evaluate_when(when, ctx):
                for nested in then:
                    evaluate_block(nested, ctx, rule_id)
        case _:
            logger.warning("Ignoring unknown block %r from rule %s", block, rule_id)
            ctx.diagnostics.append(f"{rule_id}: unknown block {getattr(block, 't', block)!r} ignored")


def apply_rule(rule: AnyRule, ctx: CombatContext) -> bool:
    """Apply ``rule`` to ``ctx``; return whether its condition held.

    Reminder rules carry no effects, so for them this only reports the
    condition.  A choice rule applies only the option the player picked in
    ``ctx.user_inputs``; with no valid pick it is not applied.
    """

    if not evaluate_when(rule.when, ctx):
        return False

    match rule:
        case ReminderRule():
            return True
        case PassiveRule(then=blocks):
            for block in blocks:
                evaluate_block(block, ctx, rule.id)
            return True
        case ChoiceRule(choice=choice):
            option = choice.option(ctx.user_inputs.get(choice.id))
            if option is None:
                return False
            for block in option.then:
                evaluate_block(block, ctx, rule.id)
            return True
        case _:
            logger.warning("Ignoring unknown rule kind %r (%s)", getattr(rule, "kind", None), rule.id)
            ctx.diagnostics.append(f"{rule.id}: unknown rule kind ignored")
            return False


def apply_rules(rules: Sequence[AnyRule], ctx: CombatContext) -> list[AnyRule]:
    """Apply rules in sequence order and return the ones that fired."""

    applied: list[AnyRule] = []
    for rule in rules:
        if apply_rule(rule, ctx):
            applied.append(rule)
    logger.debug(
        "%s context applied %d/%d rules: %s",
        ctx.combat_role,
        len(applied),
        len(rules),
        [rule.id for rule in applied],
    )
    return applied


def added_keywords(ctx: CombatContext) -> list[str]:
    """Keywords and abilities granted by applied rules, as display text."""

    keywords: list[str] = []
    for stat in ctx.modifiers.stats():
        if not stat.startswith((KEYWORD_PREFIX, WEAPON_ABILITY_PREFIX, UNIT_ABILITY_PREFIX)):
            continue
        if not ctx.modifiers.has(stat):
            continue
        detail = ctx.ability_details.get(stat)
        if isinstance(detail, str):
            keywords.append(detail)
        elif detail is not None:
            keywords.append(format_ability(detail))
    return keywords
