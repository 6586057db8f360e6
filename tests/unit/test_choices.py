"""Unit tests for choice-rule queries."""

from __future__ import annotations

import pytest

from warhost.domain import models as dm
from warhost.domain.choices import (
    is_start_of_battle_choice,
    pending_command_choices,
    pending_start_of_battle_choices,
    rules_with_input,
    stored_choice_inputs,
)
from warhost.domain.rules import validate_rules

ORKS = dm.ArmyID("orks")


def _choice(rule_id="kultur", *, scope="army", phase="command", limit="none", lifetime="turn", trigger=True):
    payload = {
        "id": rule_id,
        "name": rule_id.title(),
        "scope": scope,
        "kind": "choice",
        "choice": {
            "id": rule_id,
            "prompt": "Pick one",
            "lifetime": lifetime,
            "options": [
                {"v": "a", "label": "A", "then": [{"t": "do", "fx": [{"t": "modHit", "add": 1}]}]},
                {"v": "b", "label": "B", "then": [{"t": "do", "fx": [{"t": "modWound", "add": 1}]}]},
            ],
        },
    }
    if trigger:
        payload["trigger"] = {"t": "manual", "phase": phase, "turn": "own", "limit": limit}
    (rule,) = validate_rules(payload)
    return rule


def _picked(state, value="a", turn=1):
    return dm.ArmyState(army_id=ORKS, state=state, activated_turn=turn, choice_value=value)


def _ids(rules):
    return [rule.id for rule in rules]


class TestPendingCommandChoices:
    """Choices the Command phase still has to ask for."""

    def test_unpicked_choice_is_pending(self):
        assert _ids(pending_command_choices([_choice()], [], 2)) == ["kultur"]

    def test_picked_this_turn_is_done(self):
        assert pending_command_choices([_choice()], [_picked("kultur", turn=2)], 2) == []

    def test_pick_from_earlier_turn_is_asked_again(self):
        assert _ids(pending_command_choices([_choice()], [_picked("kultur", turn=1)], 2)) == ["kultur"]

    def test_state_without_value_is_not_a_pick(self):
        stale = dm.ArmyState(army_id=ORKS, state="kultur", activated_turn=2)
        assert _ids(pending_command_choices([_choice()], [stale], 2)) == ["kultur"]

    def test_once_per_battle_only_in_first_turn(self):
        rule = _choice(limit="once-per-battle")
        assert _ids(pending_command_choices([rule], [], 1)) == ["kultur"]
        assert pending_command_choices([rule], [], 2) == []
        assert pending_command_choices([rule], [_picked("kultur")], 1) == []

    def test_game_long_pick_is_kept(self):
        rule = _choice(lifetime="game")
        assert pending_command_choices([rule], [_picked("kultur", turn=1)], 3) == []

    @pytest.mark.parametrize(
        "rule",
        [
            _choice(scope="unit"),
            _choice(phase="shooting"),
            _choice(phase="any"),
            _choice(trigger=False),
            _choice(limit="once-per-battle", lifetime="game"),
        ],
    )
    def test_not_command_choices(self, rule):
        assert pending_command_choices([rule], [], 1) == []

    def test_phase_list_including_command(self):
        assert _ids(pending_command_choices([_choice(phase=["command", "fight"])], [], 1)) == ["kultur"]


class TestStartOfBattleChoices:
    def test_detection(self):
        assert is_start_of_battle_choice(_choice(limit="once-per-battle", lifetime="game"))
        assert not is_start_of_battle_choice(_choice(limit="once-per-battle"))
        assert not is_start_of_battle_choice(_choice(lifetime="game", trigger=False))

    def test_shown_until_picked(self):
        plague = _choice("plague", limit="once-per-battle", lifetime="game")
        assert _ids(pending_start_of_battle_choices([plague, _choice()], [])) == ["plague"]
        assert pending_start_of_battle_choices([plague], [_picked("plague", "ague")]) == []


def test_rules_with_input_keeps_choice_rules():
    (passive,) = validate_rules(
        {"id": "p", "name": "P", "scope": "unit", "kind": "passive", "then": [{"t": "do", "fx": []}]}
    )
    (reminder,) = validate_rules({"id": "r", "name": "R", "scope": "unit", "kind": "reminder"})
    choice = _choice(scope="unit")
    assert rules_with_input([passive, choice, reminder]) == [choice]


class TestStoredChoiceInputs:
    """Stored picks turned back into user inputs."""

    def test_game_pick_always_applies(self):
        rule = _choice("plague", lifetime="game")
        assert stored_choice_inputs([rule], [_picked("plague", "ague", turn=1)], 4) == {"plague": "ague"}

    def test_turn_pick_only_in_its_turn(self):
        rule = _choice(lifetime="turn")
        states = [_picked("kultur", "b", turn=2)]
        assert stored_choice_inputs([rule], states, 2) == {"kultur": "b"}
        assert stored_choice_inputs([rule], states, 3) == {}

    def test_roll_picks_are_never_stored(self):
        rule = _choice(lifetime="roll")
        assert stored_choice_inputs([rule], [_picked("kultur")], 1) == {}
