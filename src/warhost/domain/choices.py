"""Queries over choice rules: which ones still need the player's input.

A pick that outlives one roll (``lifetime`` of ``turn`` or ``game``) is
stored by the host as an :class:`~warhost.domain.models.ArmyState` named
after the choice id, with the picked value in ``choice_value``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from warhost.domain.enums import Phase, RuleScope, UsageLimit
from warhost.domain.models import ArmyState
from warhost.domain.rules import AnyRule, ChoiceRule


def _selection(rule: ChoiceRule, army_states: Iterable[ArmyState]) -> ArmyState | None:
    for state in army_states:
        if state.state == rule.choice.id and state.choice_value:
            return state
    return None


def _army_choices(rules: Iterable[AnyRule]) -> list[ChoiceRule]:
    return [rule for rule in rules if isinstance(rule, ChoiceRule) and rule.scope == RuleScope.ARMY]


def is_start_of_battle_choice(rule: ChoiceRule) -> bool:
    """Once-per-battle picks that last the whole game are made before round 1."""

    trigger = rule.trigger
    return (
        trigger is not None
        and trigger.limit == UsageLimit.ONCE_PER_BATTLE
        and rule.choice.lifetime == "game"
    )


def pending_command_choices(
    army_rules: Sequence[AnyRule],
    army_states: Sequence[ArmyState],
    current_turn: int,
) -> list[ChoiceRule]:
    """Army choices the player still has to make in this Command phase.

    Per-turn choices come back each new turn; once-per-battle choices are
    only offered in turn 1 and only until picked.
    """

    pending: list[ChoiceRule] = []
    for rule in _army_choices(army_rules):
        if rule.trigger is None or Phase.COMMAND not in rule.trigger.phases:
            continue
        if is_start_of_battle_choice(rule):
            continue
        selected = _selection(rule, army_states)
        if rule.trigger.limit == UsageLimit.ONCE_PER_BATTLE:
            if current_turn == 1 and selected is None:
                pending.append(rule)
        elif selected is None or (rule.choice.lifetime != "game" and selected.activated_turn < current_turn):
            pending.append(rule)
    return pending


def pending_start_of_battle_choices(
    army_rules: Sequence[AnyRule],
    army_states: Sequence[ArmyState],
) -> list[ChoiceRule]:
    return [
        rule
        for rule in _army_choices(army_rules)
        if is_start_of_battle_choice(rule) and _selection(rule, army_states) is None
    ]


def rules_with_input(active_rules: Iterable[AnyRule]) -> list[ChoiceRule]:
    """Choice rules whose option the dice screen must ask for."""

    return [rule for rule in active_rules if isinstance(rule, ChoiceRule)]


def stored_choice_inputs(
    rules: Iterable[AnyRule],
    army_states: Sequence[ArmyState],
    current_turn: int,
) -> dict[str, str]:
    """User inputs recovered from picks the host has stored.

    ``game`` picks always apply; ``turn`` picks only in the turn they were
    made; ``roll`` picks are never stored.
    """

    inputs: dict[str, str] = {}
    for rule in rules_with_input(rules):
        lifetime = rule.choice.lifetime
        if lifetime == "roll":
            continue
        selected = _selection(rule, army_states)
        if selected is None or selected.choice_value is None:
            continue
        if lifetime == "turn" and selected.activated_turn != current_turn:
            continue
        inputs[rule.choice.id] = selected.choice_value
    return inputs
