"""Unit tests for rule application into a context's modifier stack."""

from __future__ import annotations

from types import SimpleNamespace

from warhost.domain import models as dm
from warhost.domain.applier import (
    FNP_STAT,
    HIT_STAT,
    INVULN_STAT,
    WOUND_STAT,
    added_keywords,
    apply_fx,
    apply_rule,
    apply_rules,
    reroll_stat,
    threshold_stat,
)
from warhost.domain.context import CombatOptions, build_combat_context
from warhost.domain.enums import CombatRole
from warhost.domain.rules import validate_rules


def _unit(name: str) -> dm.Unit:
    return dm.Unit(id=dm.UnitID(name), name=name, models=[dm.Model(id=dm.ModelID(f"{name}-1"), name=name)])


def _ctx(role: CombatRole = CombatRole.ATTACKER, **options):
    weapon = dm.Weapon(
        id=dm.WeaponID("w"), name="Big Shoota", range=36, attacks="3", skill=5, strength=5, ap=0, damage="1"
    )
    return build_combat_context(
        _unit("lootas"),
        _unit("guardsmen"),
        weapon,
        dm.GameSnapshot(id=dm.GameID("g")),
        combat_role=role,
        options=CombatOptions(**options),
    )


def _passive(rule_id: str, *fx: dict, when: dict | None = None):
    payload = {"id": rule_id, "name": rule_id, "scope": "unit", "kind": "passive", "then": [{"t": "do", "fx": list(fx)}]}
    if when is not None:
        payload["when"] = when
    (rule,) = validate_rules(payload)
    return rule


class TestRoleGating:
    def test_offensive_modifiers_only_apply_when_attacking(self):
        rule = _passive("r", {"t": "modHit", "add": 1}, {"t": "modWound", "add": 1})
        attacking, defending = _ctx(), _ctx(CombatRole.DEFENDER)
        apply_rule(rule, attacking)
        apply_rule(rule, defending)
        assert attacking.modifiers.get(HIT_STAT) == 1
        assert attacking.modifiers.get(WOUND_STAT) == 1
        assert defending.modifiers.get(HIT_STAT) == 0

    def test_defensive_modifiers_only_apply_when_defending(self):
        rule = _passive("r", {"t": "modHitAgainst", "add": -1}, {"t": "modWoundAgainst", "add": -1})
        attacking, defending = _ctx(), _ctx(CombatRole.DEFENDER)
        apply_rule(rule, attacking)
        apply_rule(rule, defending)
        assert attacking.modifiers.get(WOUND_STAT) == 0
        assert defending.modifiers.get(HIT_STAT) == -1
        assert defending.modifiers.get(WOUND_STAT) == -1

    def test_stat_modifiers_stack(self):
        ctx = _ctx()
        apply_rules(
            [
                _passive("a", {"t": "modWeaponStat", "stat": "A", "add": 1}),
                _passive("b", {"t": "modWeaponStat", "stat": "A", "add": 2}),
                _passive("c", {"t": "modDefensiveStat", "stat": "T", "add": 1}),
            ],
            ctx,
        )
        assert ctx.modifiers.get("A") == 3
        assert ctx.modifiers.get("T") == 1
        assert ctx.modifiers.sources("A") == ["a", "b"]


class TestOverrides:
    def test_last_set_wins(self):
        ctx = _ctx()
        apply_rules(
            [
                _passive("first", {"t": "setInvuln", "n": 5}, {"t": "overrideThreshold", "which": "hit", "n": 4}),
                _passive("second", {"t": "setInvuln", "n": 4}, {"t": "overrideThreshold", "which": "hit", "n": 2}),
            ],
            ctx,
        )
        assert ctx.modifiers.last_set(INVULN_STAT) == 4
        assert ctx.modifiers.last_set(threshold_stat("hit")) == 2

    def test_fnp_and_rerolls(self):
        ctx = _ctx()
        apply_rule(
            _passive("r", {"t": "setFNP", "n": 5}, {"t": "reroll", "phase": "hit", "kind": "ones"}),
            ctx,
        )
        assert ctx.modifiers.last_set(FNP_STAT) == 5
        assert ctx.modifiers.has(reroll_stat("hit", "ones"))
        assert not ctx.modifiers.has(reroll_stat("wound", "ones"))


class TestRuleKinds:
    def test_condition_gates_application(self):
        rule = _passive("r", {"t": "modHit", "add": 1}, when={"t": "unitStatus", "has": ["charged"]})
        ctx = _ctx()
        assert not apply_rule(rule, ctx)
        assert ctx.modifiers.stats() == []
        charged = _ctx(unit_has_charged=True)
        assert apply_rule(rule, charged)
        assert charged.modifiers.get(HIT_STAT) == 1

    def test_nested_if_block(self):
        (rule,) = validate_rules(
            {
                "id": "r",
                "name": "Tank Hunters",
                "scope": "unit",
                "kind": "passive",
                "then": [
                    {
                        "t": "if",
                        "when": {"t": "targetCategory", "any": ["Vehicle"]},
                        "then": [{"t": "do", "fx": [{"t": "modWound", "add": 1}]}],
                    }
                ],
            }
        )
        ctx = _ctx()
        # the rule fires even though the inner block does not
        assert apply_rule(rule, ctx)
        assert ctx.modifiers.get(WOUND_STAT) == 0

    def test_reminder_reports_condition_only(self):
        (rule,) = validate_rules({"id": "m", "name": "Reminder", "scope": "unit", "kind": "reminder"})
        ctx = _ctx()
        assert apply_rule(rule, ctx)
        assert ctx.modifiers.stats() == []

    def test_choice_applies_selected_option(self):
        (rule,) = validate_rules(
            {
                "id": "kult",
                "name": "Kult",
                "scope": "unit",
                "kind": "choice",
                "choice": {
                    "id": "pick",
                    "prompt": "Pick",
                    "options": [
                        {"v": "hit", "label": "+1 hit", "then": [{"t": "do", "fx": [{"t": "modHit", "add": 1}]}]},
                        {"v": "wound", "label": "+1 wound", "then": [{"t": "do", "fx": [{"t": "modWound", "add": 1}]}]},
                    ],
                },
            }
        )
        unpicked = _ctx()
        assert not apply_rule(rule, unpicked)

        picked = _ctx(user_inputs={"pick": "wound"})
        assert apply_rule(rule, picked)
        assert picked.modifiers.get(WOUND_STAT) == 1
        assert picked.modifiers.get(HIT_STAT) == 0

    def test_apply_rules_returns_fired_rules(self):
        fires = _passive("fires", {"t": "modHit", "add": 1})
        skipped = _passive("skipped", {"t": "modHit", "add": 1}, when={"t": "false"})
        assert [rule.id for rule in apply_rules([fires, skipped], _ctx())] == ["fires"]


def test_added_keywords_are_formatted():
    ctx = _ctx()
    apply_rule(
        _passive(
            "r",
            {"t": "addKeyword", "keyword": "Lance"},
            {"t": "addWeaponAbility", "ability": {"t": "sustainedHits", "x": 1}},
            {"t": "addWeaponAbility", "ability": {"t": "flag", "id": "lethalHits"}},
            {"t": "addUnitAbility", "ability": {"t": "feelNoPain", "threshold": 6}},
        ),
        ctx,
    )
    assert added_keywords(ctx) == ["Lance", "Sustained Hits 1", "Lethal Hits", "Feel No Pain 6"]


def test_unknown_effect_is_recorded_not_raised():
    ctx = _ctx()
    apply_fx(SimpleNamespace(t="explode"), ctx, "mystery")  # type: ignore[arg-type]
    assert ctx.modifiers.stats() == []
    assert ctx.diagnostics == ["mystery: unknown effect 'explode' ignored"]
