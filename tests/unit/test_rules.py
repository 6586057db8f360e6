"""Unit tests for the rule schema and payload parsing."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from warhost.domain.enums import Phase, RuleScope, TriggerType, TurnContext
from warhost.domain.rules import (
    AllOf,
    ArmyStateCondition,
    ChoiceRule,
    ModifyHit,
    PassiveRule,
    ReminderRule,
    TargetCategory,
    Trigger,
    dump_rule,
    parse_rule_payload,
    validate_rules,
)
from warhost.errors import RuleValidationError

WAAAGH = {
    "id": "waaagh-hit",
    "name": "Waaagh!",
    "scope": "army",
    "kind": "passive",
    "when": {"t": "armyState", "is": ["waaagh-active"]},
    "then": [{"t": "do", "fx": [{"t": "modHit", "add": 1}]}],
}


def test_single_object_payload_is_wrapped():
    rules = parse_rule_payload(json.dumps(WAAAGH))
    assert len(rules) == 1
    rule = rules[0]
    assert isinstance(rule, PassiveRule)
    assert rule.scope == RuleScope.ARMY
    assert isinstance(rule.when, ArmyStateCondition)
    assert rule.when.states == ("waaagh-active",)
    assert rule.then[0].fx == (ModifyHit(add=1),)


def test_list_payload_keeps_order():
    second = {**WAAAGH, "id": "waaagh-2", "kind": "reminder"}
    second.pop("then")
    rules = parse_rule_payload(json.dumps([WAAAGH, second]))
    assert [rule.id for rule in rules] == ["waaagh-hit", "waaagh-2"]
    assert isinstance(rules[1], ReminderRule)


def test_nested_conditions_parse():
    payload = {
        **WAAAGH,
        "when": {
            "t": "all",
            "xs": [
                {"t": "targetCategory", "any": ["Vehicle"]},
                {"t": "not", "x": {"t": "weaponType", "any": ["melee"]}},
            ],
        },
    }
    (rule,) = validate_rules(payload)
    assert isinstance(rule.when, AllOf)
    assert isinstance(rule.when.xs[0], TargetCategory)
    assert rule.when.xs[0].categories == ("Vehicle",)


def test_choice_rule_parses_options():
    payload = {
        "id": "kult",
        "name": "Kult of Speed",
        "scope": "unit",
        "kind": "choice",
        "choice": {
            "id": "kult-choice",
            "prompt": "Pick one",
            "options": [
                {"v": "hit", "label": "+1 to hit", "then": [{"t": "do", "fx": [{"t": "modHit", "add": 1}]}]},
                {"v": "wound", "label": "+1 to wound", "then": [{"t": "do", "fx": [{"t": "modWound", "add": 1}]}]},
            ],
        },
    }
    (rule,) = validate_rules(payload)
    assert isinstance(rule, ChoiceRule)
    assert rule.choice.lifetime == "roll"
    assert rule.choice.option("wound").label == "+1 to wound"
    assert rule.choice.option("missing") is None


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "[]",
        json.dumps({**WAAAGH, "scope": "galaxy"}),
        json.dumps({**WAAAGH, "kind": "mystery"}),
        json.dumps({**WAAAGH, "then": [{"t": "do", "fx": [{"t": "explode"}]}]}),
        json.dumps({**WAAAGH, "unexpected": True}),
        json.dumps({key: value for key, value in WAAAGH.items() if key != "id"}),
    ],
)
def test_malformed_payloads_are_rejected(payload):
    with pytest.raises(RuleValidationError):
        parse_rule_payload(payload)


def test_rule_validation_error_is_value_error():
    with pytest.raises(ValueError):
        parse_rule_payload("{}")


def test_rules_are_immutable():
    (rule,) = validate_rules(WAAAGH)
    with pytest.raises(ValidationError):
        rule.name = "changed"  # type: ignore[misc]


def test_dump_rule_uses_json_aliases():
    (rule,) = validate_rules(WAAAGH)
    dumped = json.loads(dump_rule(rule))
    assert dumped["when"] == {"t": "armyState", "is": ["waaagh-active"]}
    assert parse_rule_payload(dump_rule(rule)) == [rule]


class TestTrigger:
    """Trigger phase/turn matching."""

    def test_any_phase_matches_everything(self):
        trigger = Trigger()
        assert trigger.matches_phase(Phase.SHOOTING)
        assert trigger.matches_phase("fight")

    def test_phase_list(self):
        trigger = Trigger(phase=(Phase.SHOOTING, Phase.FIGHT))
        assert trigger.matches_phase("fight")
        assert not trigger.matches_phase("charge")

    def test_short_phase_names(self):
        trigger = Trigger.model_validate({"phase": ["shoot", "Fight"]})
        assert trigger.phases == (Phase.SHOOTING, Phase.FIGHT)
        assert trigger.matches_phase("shoot")
        assert trigger.matches_phase("shooting")
        assert not trigger.matches_phase("move")
        assert Trigger.model_validate({"phase": "move"}).phase == Phase.MOVEMENT

    def test_unknown_phase_rejected(self):
        with pytest.raises(ValidationError):
            Trigger.model_validate({"phase": "deployment"})
        with pytest.raises(ValueError):
            Trigger(phase=Phase.FIGHT).matches_phase("deployment")

    def test_turn_matching(self):
        assert Trigger(turn=TurnContext.BOTH).matches_turn("opponent")
        assert Trigger(turn=TurnContext.OWN).matches_turn("both")
        assert Trigger(turn=TurnContext.OWN).matches_turn("own")
        assert not Trigger(turn=TurnContext.OWN).matches_turn("opponent")

    def test_reactive_capability(self):
        payload = {
            **WAAAGH,
            "trigger": {"t": "reactive", "phase": ["shooting"], "turn": "opponent"},
        }
        (rule,) = validate_rules(payload)
        assert rule.trigger.t == TriggerType.REACTIVE
        assert rule.is_reactive
        assert rule.is_reactive_for("shooting")
        assert not rule.is_reactive_for("fight")

    def test_non_reactive_rule(self):
        (rule,) = validate_rules(WAAAGH)
        assert not rule.is_reactive
        assert not rule.is_reactive_for("shooting")
