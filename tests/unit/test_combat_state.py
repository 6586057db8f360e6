"""Unit tests for merging attacker and defender modifiers."""

from __future__ import annotations

import json

from warhost.domain import models as dm
from warhost.domain.combat import effective_hit_threshold, effective_wound_threshold, start_from_state
from warhost.domain.combat_state import (
    CombatModifiers,
    build_combat_state,
    calculate_combat_modifiers,
    effective_target,
    effective_weapon,
)
from warhost.domain.context import CombatOptions
from warhost.domain.enums import CombatRole, RerollKind
from warhost.domain.profiles import TargetProfile, WeaponProfile
from warhost.domain.rules import validate_rules

GAME = dm.GameSnapshot(id=dm.GameID("g1"), current_turn=2, current_phase="shooting")


def _rule(rule_id: str, *fx: dict, when: dict | None = None):
    payload = {"id": rule_id, "name": rule_id.title(), "scope": "unit", "kind": "passive", "then": [{"t": "do", "fx": list(fx)}]}
    if when:
        payload["when"] = when
    (rule,) = validate_rules(payload)
    return rule


def _unit(name: str, **model_stats) -> dm.Unit:
    return dm.Unit(id=dm.UnitID(name), name=name, models=[dm.Model(id=dm.ModelID(f"{name}-1"), name=name, **model_stats)])


def _weapon(**overrides) -> dm.Weapon:
    values = dict(id=dm.WeaponID("w"), name="Slugga", range=12, attacks="1", skill=5, strength=4, ap=0, damage="1")
    values.update(overrides)
    return dm.Weapon(**values)


class TestCalculateCombatModifiers:
    """Both sides' rules merged for the attacker's rolls."""

    def test_defensive_wound_modifier_reaches_attacker_roll(self):
        modifiers = calculate_combat_modifiers(
            _unit("boyz"),
            _unit("terminators", toughness=5, save=2),
            _weapon(),
            GAME,
            attacker_rules=[_rule("dakka", {"t": "modWound", "add": 1})],
            defender_rules=[_rule("tough", {"t": "modWoundAgainst", "add": -1})],
        )
        assert modifiers.wound == 0
        assert modifiers.sources["wound"] == ("dakka", "tough")
        assert [(ref.id, ref.side) for ref in modifiers.applied_rules] == [
            ("dakka", CombatRole.ATTACKER),
            ("tough", CombatRole.DEFENDER),
        ]

    def test_offensive_rules_on_defender_do_not_apply(self):
        modifiers = calculate_combat_modifiers(
            _unit("boyz"),
            _unit("marines"),
            _weapon(),
            GAME,
            defender_rules=[_rule("oath", {"t": "modHit", "add": 1})],
        )
        assert modifiers.hit == 0

    def test_army_states_are_scoped_per_side(self):
        waaagh = _rule("waaagh", {"t": "modHit", "add": 1}, when={"t": "armyState", "is": ["waaagh"]})
        kwargs = dict(attacker_rules=[waaagh])
        assert calculate_combat_modifiers(
            _unit("boyz"), _unit("marines"), _weapon(), GAME, attacker_army_states=["waaagh"], **kwargs
        ).hit == 1
        assert calculate_combat_modifiers(
            _unit("boyz"), _unit("marines"), _weapon(), GAME, defender_army_states=["waaagh"], **kwargs
        ).hit == 0

    def test_stats_overrides_and_rerolls(self):
        modifiers = calculate_combat_modifiers(
            _unit("boyz"),
            _unit("marines"),
            _weapon(),
            GAME,
            attacker_rules=[
                _rule("a", {"t": "modWeaponStat", "stat": "S", "add": 1}),
                _rule("b", {"t": "reroll", "phase": "hit", "kind": "ones"}),
                _rule("c", {"t": "overrideThreshold", "which": "criticalHit", "n": 5}),
                _rule("d", {"t": "addKeyword", "keyword": "Lethal Hits"}),
            ],
            defender_rules=[
                _rule("e", {"t": "setInvuln", "n": 4}),
                _rule("f", {"t": "setFNP", "n": 6}),
                _rule("g", {"t": "modDefensiveStat", "stat": "T", "add": 1}),
                _rule("h", {"t": "overrideThreshold", "which": "criticalHit", "n": 6}),
            ],
        )
        assert modifiers.strength == 1
        assert modifiers.toughness == 1
        assert modifiers.invulnerable_save == 4
        assert modifiers.feel_no_pain == 6
        # defender's override is applied after the attacker's
        assert modifiers.critical_hit == 6
        assert modifiers.reroll_for("hit") == RerollKind.ONES
        assert modifiers.reroll_for("wound") is None
        assert modifiers.added_keywords == ("Lethal Hits",)


class TestEffectiveProfiles:
    def test_weapon_modifiers_are_baked_in(self):
        weapon = WeaponProfile("Choppa", 0, "D6", 3, 4, -1, "D3", ("Sustained Hits 1",))
        modifiers = CombatModifiers(attacks=1, strength=2, ap=-1, damage=1, added_keywords=("sustained hits 1", "Lance"))
        profile = effective_weapon(weapon, modifiers)
        assert profile.attacks == "D6+1"
        assert profile.strength == 6
        assert profile.ap == -2
        assert profile.damage == "D3+1"
        assert profile.keywords == ("Sustained Hits 1", "Lance")

    def test_extra_attacks_ignore_attack_modifiers(self):
        weapon = WeaponProfile("Attack squig", 0, "1", 4, 4, 0, "1", ("Extra Attacks",))
        assert effective_weapon(weapon, CombatModifiers(attacks=3)).attacks == "1"

    def test_fixed_values_have_floors(self):
        weapon = WeaponProfile("Grot blasta", 12, "1", 4, 3, 0, "1")
        profile = effective_weapon(weapon, CombatModifiers(attacks=-2, damage=-1, strength=-5))
        assert (profile.attacks, profile.damage, profile.strength) == ("0", "1", 1)

    def test_target_takes_best_invulnerable_and_fnp(self):
        target = TargetProfile(toughness=4, save=3, invulnerable_save=4, feel_no_pain=5)
        profile = effective_target(target, CombatModifiers(invulnerable_save=5, feel_no_pain=4, save=1, toughness=1))
        assert profile.invulnerable_save == 4
        assert profile.feel_no_pain == 4
        assert profile.save == 4
        assert profile.toughness == 5


def test_build_combat_state_feeds_the_engine():
    attacker = _unit("boyz")
    defender = _unit("guardsmen", toughness=3, save=5)
    defender.unit_rules = [
        dm.RuleLink(
            name="Take Cover",
            rule_object=json.dumps(
                {
                    "id": "take-cover",
                    "name": "Take Cover",
                    "scope": "unit",
                    "kind": "passive",
                    "then": [{"t": "do", "fx": [{"t": "modHitAgainst", "add": -1}]}],
                }
            ),
        )
    ]
    state = build_combat_state(
        attacker,
        defender,
        _weapon(),
        GAME,
        options=CombatOptions(models_firing=10),
        attacker_rules=[_rule("ere-we-go", {"t": "modWound", "add": 1})],
        defender_rules=validate_rules(json.loads(defender.unit_rules[0].rule_object)),
    )
    result = start_from_state(state, CombatOptions(models_firing=10))
    assert effective_hit_threshold(result) == 6
    assert effective_wound_threshold(result) == 2
    assert result.target.toughness == 3
