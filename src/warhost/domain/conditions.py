"""Condition (``When`` tree) evaluation."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from warhost.domain.context import CombatContext, CombatOptions
from warhost.domain.enums import WeaponType
from warhost.domain.keywords import ability_key, keywords_include, normalize_keyword
from warhost.domain.rules import (
    AllOf,
    Always,
    AnyOf,
    ArmyStateCondition,
    CombatRoleIs,
    FeelNoPainAbility,
    IsLeading,
    Never,
    Not,
    TargetCategory,
    UnitHasAbility,
    UnitStatus,
    UserInputEquals,
    WeaponHasAbility,
    WeaponTypeIs,
    When,
)

logger = logging.getLogger(__name__)


def _unit_status(status: str, options: CombatOptions) -> bool:
    match status:
        case "charged":
            return options.unit_has_charged
        case "moved":
            return not options.unit_remained_stationary
        case "stationary":
            return options.unit_remained_stationary
        case _:
            return False


def _input_matches(inputs: dict[str, object], key: str, expected: object) -> bool:
    if key not in inputs:
        return False
    value = inputs[key]
    # True == 1 in Python; a boolean input only matches a boolean
    if isinstance(value, bool) != isinstance(expected, bool):
        return False
    return value == expected


def _unit_has_ability(ctx: CombatContext, ability: object) -> bool:
    unit = ctx.evaluated
    if ctx.ability_details.get(f"unitAbility:{ability_key(ability)}") == ability:
        return True
    if isinstance(ability, FeelNoPainAbility) and unit.feel_no_pain == ability.threshold:
        return True
    return keywords_include((*unit.keywords, *unit.categories), ability)


def _weapon_has_ability(ctx: CombatContext, ability: object) -> bool:
    if ctx.ability_details.get(f"weaponAbility:{ability_key(ability)}") == ability:
        return True
    return keywords_include(ctx.weapon.keywords, ability)


def evaluate_when(when: When | None, ctx: CombatContext) -> bool:
    """Evaluate a condition tree against ``ctx``.

    ``None`` means the rule has no condition and always holds.  The tree is
    never modified, so repeated evaluation against the same context yields
    the same answer.
    """

    if when is None:
        return True

    match when:
        case Always():
            return True
        case Never():
            return False
        case AllOf(xs=xs):
            return all(evaluate_when(x, ctx) for x in xs)
        case AnyOf(xs=xs):
            return any(evaluate_when(x, ctx) for x in xs)
        case Not(x=x):
            return not evaluate_when(x, ctx)
        case WeaponTypeIs(types=types):
            weapon_type = WeaponType.MELEE if ctx.weapon.is_melee else WeaponType.RANGED
            return weapon_type in types
        case TargetCategory(categories=categories):
            defender = {normalize_keyword(cat) for cat in (*ctx.defender.categories, *ctx.defender.keywords)}
            return any(normalize_keyword(cat) in defender for cat in categories)
        case UnitStatus(has=statuses):
            return any(_unit_status(status, ctx.options) for status in statuses)
        case ArmyStateCondition(states=states):
            # no army-state data means the requirement is not met
            return any(state in ctx.army_states for state in states)
        case IsLeading():
            unit = ctx.evaluated
            return unit.is_leader or unit.leader_id is not None
        case CombatRoleIs(role=role):
            return ctx.combat_role == role
        case UserInputEquals(id=key, equals=expected):
            return _input_matches(ctx.user_inputs, key, expected)
        case WeaponHasAbility(ability=ability):
            return _weapon_has_ability(ctx, ability)
        case UnitHasAbility(ability=ability):
            return _unit_has_ability(ctx, ability)
        case _:
            logger.warning("Unknown condition %r treated as false", when)
            ctx.diagnostics.append(f"unknown condition: {getattr(when, 't', when)!r}")
            return False


def _army_state_nodes(when: When | None) -> Iterable[ArmyStateCondition]:
    """Yield every ``armyState`` leaf, walking the same shapes as the evaluator."""

    match when:
        case None:
            return
        case ArmyStateCondition():
            yield when
        case AllOf(xs=xs) | AnyOf(xs=xs):
            for x in xs:
                yield from _army_state_nodes(x)
        case Not(x=x):
            yield from _army_state_nodes(x)
        case _:
            return


def has_army_state_requirement(when: When | None) -> bool:
    """Whether the tree references any army state at all."""

    return any(True for _ in _army_state_nodes(when))


def required_army_states(when: When | None) -> frozenset[str]:
    return frozenset(state for node in _army_state_nodes(when) for state in node.states)


def _army_state_outcome(when: When | None, states: frozenset[str]) -> bool | None:
    """Three-valued walk: army-state leaves and constants are decided, the rest is unknown.

    Mirrors :func:`evaluate_when` branch for branch, so a tree that evaluates
    true for some combat context never comes back ``False`` here.
    """

    match when:
        case None | Always():
            return True
        case Never():
            return False
        case ArmyStateCondition(states=wanted):
            return any(state in states for state in wanted)
        case AllOf(xs=xs):
            outcomes = [_army_state_outcome(x, states) for x in xs]
            if False in outcomes:
                return False
            return True if all(outcomes) else None
        case AnyOf(xs=xs):
            outcomes = [_army_state_outcome(x, states) for x in xs]
            if True in outcomes:
                return True
            return False if all(outcome is False for outcome in outcomes) else None
        case Not(x=x):
            outcome = _army_state_outcome(x, states)
            return None if outcome is None else not outcome
        case _:
            return None


def army_state_requirement_met(when: When | None, army_states: Iterable[str] | None) -> bool:
    """Can ``when`` still hold given the active army states?

    Trees without army-state leaves always pass.  Otherwise army-state leaves
    are resolved against ``army_states`` (``None`` means no state is active)
    and every other leaf is assumed to be able to go either way; the rule is
    only ruled out when the tree is false regardless of those leaves.
    """

    if not has_army_state_requirement(when):
        return True
    states = frozenset(army_states or ())
    return _army_state_outcome(when, states) is not False
