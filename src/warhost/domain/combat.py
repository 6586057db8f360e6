"""Combat resolution as an explicit step machine.

One attack instance moves through ATTACKS -> HITS -> WOUNDS -> SAVES ->
FEEL_NO_PAIN -> SUMMARY, one step per call.  Each call returns a new
:class:`CombatResult`; phases already recorded on the input are never
touched.  A result carries the effective weapon and target profiles plus the
merged :class:`CombatModifiers`, so any later step can run on another client
from a serialized snapshot without the rules that produced it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, TypeVar

from pydantic import TypeAdapter

from warhost.domain.combat_state import CombatModifiers, CombatState
from warhost.domain.context import CombatOptions
from warhost.domain.dice import parse_dice_expression
from warhost.domain.enums import CombatStep, RerollKind, RollPhase
from warhost.domain.keywords import WeaponKeywords, parse_weapon_keywords
from warhost.domain.profiles import TargetProfile, WeaponProfile
from warhost.domain.rules_config import DEFAULT_RULES, DiceRules, RulesConfig
from warhost.errors import CombatStepError
from warhost.interfaces.dice import IDiceRoller

logger = logging.getLogger(__name__)


# --- Records -----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DieRoll:
    """One die as finally kept, with the value it replaced if re-rolled."""

    value: int
    success: bool = False
    critical: bool = False
    rerolled_from: int | None = None

    @property
    def rerolled(self) -> bool:
        return self.rerolled_from is not None


@dataclass(frozen=True, slots=True)
class AttacksPhase:
    expression: str
    rolls: tuple[int, ...]
    base_attacks: int
    rapid_fire_bonus: int
    blast_bonus: int
    total: int


@dataclass(frozen=True, slots=True)
class HitsPhase:
    threshold: int
    critical_threshold: int
    rolls: tuple[DieRoll, ...]
    auto_hits: int
    critical_hits: int
    sustained_hits: int
    lethal_hits: int
    hits: int

    @property
    def wound_rolls_needed(self) -> int:
        return self.hits - self.lethal_hits


@dataclass(frozen=True, slots=True)
class WoundsPhase:
    threshold: int
    critical_threshold: int
    rolls: tuple[DieRoll, ...]
    lethal_wounds: int
    critical_wounds: int
    devastating_wounds: int
    wounds: int

    @property
    def saveable_wounds(self) -> int:
        return self.wounds - self.devastating_wounds


@dataclass(frozen=True, slots=True)
class SavesPhase:
    threshold: int
    armour_threshold: int
    invulnerable_used: bool
    cover_applied: bool
    rolls: tuple[DieRoll, ...]
    saved: int
    failed: int


@dataclass(frozen=True, slots=True)
class FeelNoPainPhase:
    threshold: int | None
    penetrating: int
    rolls: tuple[DieRoll, ...]
    ignored: int

    @property
    def unprevented(self) -> int:
        return self.penetrating - self.ignored


@dataclass(frozen=True, slots=True)
class DamageInstance:
    value: int
    rolls: tuple[DieRoll, ...] = ()
    melta_bonus: int = 0


@dataclass(frozen=True, slots=True)
class CombatSummary:
    total_attacks: int
    total_hits: int
    total_wounds: int
    failed_saves: int
    devastating_wounds: int
    wounds_ignored: int
    damage: tuple[DamageInstance, ...]
    total_damage: int


@dataclass(frozen=True, slots=True)
class CombatResult:
    """Snapshot of one attack instance, pending or resolved."""

    weapon: WeaponProfile
    target: TargetProfile
    options: CombatOptions
    modifiers: CombatModifiers
    step: CombatStep = CombatStep.ATTACKS
    attacks: AttacksPhase | None = None
    hits: HitsPhase | None = None
    wounds: WoundsPhase | None = None
    saves: SavesPhase | None = None
    feel_no_pain: FeelNoPainPhase | None = None
    summary: CombatSummary | None = None

    @property
    def is_complete(self) -> bool:
        return self.step == CombatStep.DONE

    @property
    def keywords(self) -> WeaponKeywords:
        return parse_weapon_keywords(self.weapon.keywords)


# --- Threshold math ----------------------------------------------------------------


def _cap(modifier: int, cap: int | None) -> int:
    if cap is None:
        return modifier
    return max(-cap, min(cap, modifier))


def clamp_threshold(base: int, modifier: int, dice: DiceRules = DEFAULT_RULES.dice) -> int:
    """Roll target after a net modifier: never better than 2+ nor worse than 6+."""

    return max(dice.best_threshold, min(dice.worst_threshold, base - modifier))


def base_wound_threshold(strength: int, toughness: int) -> int:
    """Strength-versus-toughness wound table."""

    if strength >= 2 * toughness:
        return 2
    if strength > toughness:
        return 3
    if strength == toughness:
        return 4
    if 2 * strength <= toughness:
        return 6
    return 5


def save_thresholds(
    save: int,
    ap: int,
    invulnerable: int | None,
    *,
    cover: bool = False,
    rules: RulesConfig = DEFAULT_RULES,
) -> tuple[int, int, bool]:
    """Return ``(threshold, armour_threshold, invulnerable_used)``.

    ``ap`` is zero or negative.  The armour save worsens by the AP, improves
    by one in cover, and is never better than 2+.  A requirement beyond 6+
    becomes the impossible threshold.  The invulnerable save ignores AP and
    is used when it is better.
    """

    dice = rules.dice
    armour = save - ap
    if cover:
        armour -= rules.combat.cover_save_bonus
    armour = max(dice.best_threshold, armour)
    if armour > dice.worst_threshold:
        armour = dice.impossible_threshold
    if invulnerable is not None and invulnerable < armour:
        return invulnerable, armour, True
    return armour, armour, False


def _gets_cover(result: CombatResult, keywords: WeaponKeywords, rules: RulesConfig) -> bool:
    if not result.options.target_in_cover or keywords.ignores_cover:
        return False
    # good armour does not benefit from cover against AP 0
    return not (result.target.save <= rules.combat.cover_minimum_armour and result.weapon.ap == 0)


# --- Dice pools --------------------------------------------------------------------


def _should_reroll(die: DieRoll, kind: RerollKind | None, dice: DiceRules) -> bool:
    if kind is None or die.critical:
        return False
    if kind == RerollKind.ONES:
        return die.value == dice.natural_failure
    # "all" never gives up a success, so it re-rolls the same dice as "failed"
    return not die.success


def _roll_pool(
    roller: IDiceRoller,
    count: int,
    judge: Callable[[int], DieRoll],
    reroll: RerollKind | None,
    dice: DiceRules,
) -> tuple[DieRoll, ...]:
    pool = [judge(value) for value in roller.rolls(count, dice.die_sides)]
    for index, die in enumerate(pool):
        if _should_reroll(die, reroll, dice):
            replacement = judge(roller.roll(dice.die_sides))
            pool[index] = replace(replacement, rerolled_from=die.value)
    return tuple(pool)


def _strongest(*kinds: RerollKind | None) -> RerollKind | None:
    order = [RerollKind.ONES, RerollKind.FAILED, RerollKind.ALL]
    present = [kind for kind in kinds if kind is not None]
    return max(present, key=order.index) if present else None


# --- Steps -------------------------------------------------------------------------


_P = TypeVar("_P")

# phase records in the order the steps fill them
RECORDED_PHASES = ("attacks", "hits", "wounds", "saves", "feel_no_pain", "summary")


def _expect(result: CombatResult, step: CombatStep) -> None:
    if result.step != step:
        raise CombatStepError(f"cannot resolve {step} while combat is at {result.step}")


def _recorded(phase: _P | None, name: str, result: CombatResult) -> _P:
    if phase is None:
        raise CombatStepError(f"combat at {result.step} has no recorded {name} phase")
    return phase


def check_recorded_phases(result: CombatResult) -> None:
    """Every step before ``result.step`` is recorded and nothing after it is.

    Raises:
        CombatStepError: If the snapshot is inconsistent with its step
    """
    position = list(CombatStep).index(result.step)
    missing = [name for name in RECORDED_PHASES[:position] if getattr(result, name) is None]
    if missing:
        raise CombatStepError(f"combat at {result.step} is missing {', '.join(missing)}")
    ahead = [name for name in RECORDED_PHASES[position:] if getattr(result, name) is not None]
    if ahead:
        raise CombatStepError(f"combat at {result.step} already records {', '.join(ahead)}")


def start_combat(
    weapon: WeaponProfile,
    target: TargetProfile,
    options: CombatOptions | None = None,
    modifiers: CombatModifiers | None = None,
) -> CombatResult:
    """Create a pending result for one attack instance.

    ``weapon`` and ``target`` are the effective profiles, modifiers already
    baked in (see :func:`warhost.domain.combat_state.build_combat_state`).
    """

    options = options or CombatOptions()
    if options.models_firing < 0:
        raise ValueError(f"models_firing must be non-negative, got {options.models_firing}")
    return CombatResult(weapon=weapon, target=target, options=options, modifiers=modifiers or CombatModifiers())


def start_from_state(state: CombatState, options: CombatOptions | None = None) -> CombatResult:
    return start_combat(state.weapon, state.target, options, state.modifiers)


def resolve_attacks(result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES) -> CombatResult:
    """Attacks characteristic per firing model, plus Rapid Fire and Blast."""

    _expect(result, CombatStep.ATTACKS)
    expression = parse_dice_expression(result.weapon.attacks)
    keywords = result.keywords
    models = result.options.models_firing

    rolls: list[int] = []
    base = 0
    for _ in range(models):
        value, dice = expression.resolve(roller)
        base += max(0, value)
        rolls.extend(dice)

    rapid_fire = keywords.rapid_fire * models if result.options.within_half_range else 0
    blast = (result.target.model_count // rules.combat.blast_band_size) * models if keywords.blast else 0
    phase = AttacksPhase(
        expression=str(expression),
        rolls=tuple(rolls),
        base_attacks=base,
        rapid_fire_bonus=rapid_fire,
        blast_bonus=blast,
        total=base + rapid_fire + blast,
    )
    logger.debug("Attacks resolved for %s: %d", result.weapon.name, phase.total)
    return replace(result, attacks=phase, step=CombatStep.HITS)


def effective_hit_threshold(result: CombatResult, rules: RulesConfig = DEFAULT_RULES) -> int:
    modifier = result.modifiers.hit
    if result.keywords.heavy and result.options.unit_remained_stationary:
        modifier += 1
    threshold = clamp_threshold(result.weapon.skill, _cap(modifier, rules.combat.hit_modifier_cap), rules.dice)
    if result.modifiers.hit_threshold is not None:
        threshold = result.modifiers.hit_threshold
    return threshold


def resolve_hits(result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES) -> CombatResult:
    """Hit rolls.  Natural 6s are Critical Hits whatever the threshold."""

    _expect(result, CombatStep.HITS)
    attacks = _recorded(result.attacks, "attacks", result)
    dice = rules.dice
    keywords = result.keywords
    threshold = effective_hit_threshold(result, rules)
    critical = result.modifiers.critical_hit or dice.natural_critical

    if keywords.torrent:
        # automatic hits: no dice, so no Critical Hits
        total = attacks.total
        phase = HitsPhase(threshold, critical, (), total, 0, 0, 0, total)
        return replace(result, hits=phase, step=CombatStep.WOUNDS)

    def judge(value: int) -> DieRoll:
        is_critical = value == dice.natural_critical or value >= critical
        success = value != dice.natural_failure and (is_critical or value >= threshold)
        return DieRoll(value=value, success=success, critical=is_critical)

    rolls = _roll_pool(roller, attacks.total, judge, result.modifiers.reroll_for(RollPhase.HIT), dice)
    successes = sum(1 for die in rolls if die.success)
    criticals = sum(1 for die in rolls if die.critical)
    sustained = criticals * keywords.sustained_hits
    lethal = criticals if keywords.lethal_hits else 0
    phase = HitsPhase(
        threshold=threshold,
        critical_threshold=critical,
        rolls=rolls,
        auto_hits=0,
        critical_hits=criticals,
        sustained_hits=sustained,
        lethal_hits=lethal,
        hits=successes + sustained,
    )
    logger.debug("Hits on %d+: %d (%d critical, %d sustained)", threshold, phase.hits, criticals, sustained)
    return replace(result, hits=phase, step=CombatStep.WOUNDS)


def effective_wound_threshold(result: CombatResult, rules: RulesConfig = DEFAULT_RULES) -> int:
    modifier = result.modifiers.wound
    if result.keywords.lance and result.options.unit_has_charged:
        modifier += 1
    base = base_wound_threshold(result.weapon.strength, result.target.toughness)
    threshold = clamp_threshold(base, _cap(modifier, rules.combat.wound_modifier_cap), rules.dice)
    if result.modifiers.wound_threshold is not None:
        threshold = result.modifiers.wound_threshold
    return threshold


def resolve_wounds(result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES) -> CombatResult:
    """Wound rolls.  Lethal Hits wound automatically; Anti-X lowers the critical roll."""

    _expect(result, CombatStep.WOUNDS)
    hits = _recorded(result.hits, "hits", result)
    dice = rules.dice
    keywords = result.keywords
    threshold = effective_wound_threshold(result, rules)
    critical = result.modifiers.critical_wound or dice.natural_critical
    anti = keywords.anti_threshold((*result.target.categories, *result.target.keywords))
    if anti is not None:
        critical = min(critical, anti)

    def judge(value: int) -> DieRoll:
        is_critical = value != dice.natural_failure and (value == dice.natural_critical or value >= critical)
        success = value != dice.natural_failure and (is_critical or value >= threshold)
        return DieRoll(value=value, success=success, critical=is_critical)

    reroll = _strongest(
        result.modifiers.reroll_for(RollPhase.WOUND),
        RerollKind.FAILED if keywords.twin_linked else None,
    )
    rolls = _roll_pool(roller, hits.wound_rolls_needed, judge, reroll, dice)
    criticals = sum(1 for die in rolls if die.critical)
    lethal = hits.lethal_hits
    phase = WoundsPhase(
        threshold=threshold,
        critical_threshold=critical,
        rolls=rolls,
        lethal_wounds=lethal,
        critical_wounds=criticals,
        devastating_wounds=criticals if keywords.devastating_wounds else 0,
        wounds=lethal + sum(1 for die in rolls if die.success),
    )
    logger.debug("Wounds on %d+: %d (%d critical)", threshold, phase.wounds, criticals)
    return replace(result, wounds=phase, step=CombatStep.SAVES)


def resolve_saves(result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES) -> CombatResult:
    """Saving throws for every wound except Devastating Wounds."""

    _expect(result, CombatStep.SAVES)
    wounds = _recorded(result.wounds, "wounds", result)
    dice = rules.dice
    cover = _gets_cover(result, result.keywords, rules)
    threshold, armour, invulnerable = save_thresholds(
        result.target.save,
        result.weapon.ap,
        result.target.invulnerable_save,
        cover=cover,
        rules=rules,
    )

    def judge(value: int) -> DieRoll:
        return DieRoll(value=value, success=value != dice.natural_failure and value >= threshold)

    rolls = _roll_pool(roller, wounds.saveable_wounds, judge, None, dice)
    saved = sum(1 for die in rolls if die.success)
    phase = SavesPhase(
        threshold=threshold,
        armour_threshold=armour,
        invulnerable_used=invulnerable,
        cover_applied=cover,
        rolls=rolls,
        saved=saved,
        failed=len(rolls) - saved,
    )
    logger.debug("Saves on %d+: %d saved, %d failed", threshold, saved, phase.failed)
    return replace(result, saves=phase, step=CombatStep.FEEL_NO_PAIN)


def resolve_feel_no_pain(
    result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES
) -> CombatResult:
    """One Feel No Pain roll per wound that got through (failed save or devastating)."""

    _expect(result, CombatStep.FEEL_NO_PAIN)
    wounds = _recorded(result.wounds, "wounds", result)
    saves = _recorded(result.saves, "saves", result)
    dice = rules.dice
    penetrating = saves.failed + wounds.devastating_wounds
    threshold = result.target.feel_no_pain

    rolls: tuple[DieRoll, ...] = ()
    if threshold is not None:

        def judge(value: int) -> DieRoll:
            return DieRoll(value=value, success=value != dice.natural_failure and value >= threshold)

        rolls = _roll_pool(roller, penetrating, judge, None, dice)
    phase = FeelNoPainPhase(
        threshold=threshold,
        penetrating=penetrating,
        rolls=rolls,
        ignored=sum(1 for die in rolls if die.success),
    )
    return replace(result, feel_no_pain=phase, step=CombatStep.SUMMARY)


def resolve_summary(result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES) -> CombatResult:
    """Damage per unprevented wound.  Wound-pool bookkeeping is the caller's."""

    _expect(result, CombatStep.SUMMARY)
    attacks = _recorded(result.attacks, "attacks", result)
    hits = _recorded(result.hits, "hits", result)
    wounds = _recorded(result.wounds, "wounds", result)
    saves = _recorded(result.saves, "saves", result)
    feel_no_pain = _recorded(result.feel_no_pain, "feel_no_pain", result)
    dice = rules.dice
    expression = parse_dice_expression(result.weapon.damage)
    melta = result.keywords.melta if result.options.within_half_range else 0
    reroll_ones = result.modifiers.reroll_for(RollPhase.DAMAGE) is not None

    instances: list[DamageInstance] = []
    for _ in range(feel_no_pain.unprevented):
        kept: list[DieRoll] = []
        for value in roller.rolls(expression.count, expression.sides) if expression.count else []:
            if reroll_ones and value == dice.natural_failure:
                kept.append(DieRoll(value=roller.roll(expression.sides), rerolled_from=value))
            else:
                kept.append(DieRoll(value=value))
        amount = sum(die.value for die in kept) + expression.bonus + melta
        instances.append(
            DamageInstance(value=max(rules.combat.minimum_damage, amount), rolls=tuple(kept), melta_bonus=melta)
        )

    summary = CombatSummary(
        total_attacks=attacks.total,
        total_hits=hits.hits,
        total_wounds=wounds.wounds,
        failed_saves=saves.failed,
        devastating_wounds=wounds.devastating_wounds,
        wounds_ignored=feel_no_pain.ignored,
        damage=tuple(instances),
        total_damage=sum(instance.value for instance in instances),
    )
    logger.debug("Combat with %s resolved: %d damage", result.weapon.name, summary.total_damage)
    return replace(result, summary=summary, step=CombatStep.DONE)


StepFunction = Callable[[CombatResult, IDiceRoller, RulesConfig], CombatResult]

STEPS: dict[CombatStep, StepFunction] = {
    CombatStep.ATTACKS: resolve_attacks,
    CombatStep.HITS: resolve_hits,
    CombatStep.WOUNDS: resolve_wounds,
    CombatStep.SAVES: resolve_saves,
    CombatStep.FEEL_NO_PAIN: resolve_feel_no_pain,
    CombatStep.SUMMARY: resolve_summary,
}


def advance(result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES) -> CombatResult:
    """Run exactly the next pending step."""

    step = STEPS.get(result.step)
    if step is None:
        raise CombatStepError(f"combat already resolved (step {result.step})")
    return step(result, roller, rules)


def run_to_completion(
    result: CombatResult, roller: IDiceRoller, rules: RulesConfig = DEFAULT_RULES
) -> CombatResult:
    while not result.is_complete:
        result = advance(result, roller, rules)
    return result


# --- Serialization -----------------------------------------------------------------

COMBAT_RESULT_ADAPTER: TypeAdapter[CombatResult] = TypeAdapter(CombatResult)


def dump_combat_result(result: CombatResult) -> bytes:
    return COMBAT_RESULT_ADAPTER.dump_json(result)


def combat_result_payload(result: CombatResult) -> dict[str, Any]:
    """JSON-compatible dict for publish/subscribe transports."""

    return COMBAT_RESULT_ADAPTER.dump_python(result, mode="json")


def load_combat_result(data: str | bytes | dict[str, Any]) -> CombatResult:
    """Rebuild a transmitted result; resumable at its recorded step.

    Raises:
        pydantic.ValidationError: If the payload does not match the result shape
        CombatStepError: If the recorded phases disagree with the step
    """

    if isinstance(data, dict):
        result = COMBAT_RESULT_ADAPTER.validate_python(data)
    else:
        result = COMBAT_RESULT_ADAPTER.validate_json(data)
    check_recorded_phases(result)
    return result
