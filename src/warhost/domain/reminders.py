"""Ability reminders: which rules are live for a unit right now."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from warhost.domain.aggregator import get_all_unit_rules
from warhost.domain.conditions import army_state_requirement_met
from warhost.domain.enums import Phase, TurnContext, parse_phase
from warhost.domain.models import Army, ArmyState, Unit
from warhost.domain.rules import AnyRule


@dataclass(frozen=True, slots=True)
class UnitReminder:
    """A unit with live abilities, tagged with its army."""

    unit: Unit
    army_id: str
    army_name: str


def _state_names(army_states: Iterable[ArmyState | str] | None) -> frozenset[str] | None:
    if army_states is None:
        return None
    return frozenset(state.state if isinstance(state, ArmyState) else state for state in army_states)


def _is_live(rule: AnyRule, phase: Phase, turn_context: TurnContext, states: frozenset[str] | None) -> bool:
    trigger = rule.trigger
    if trigger is not None:
        if not trigger.matches_phase(phase):
            return False
        if not trigger.matches_turn(turn_context):
            return False
    return army_state_requirement_met(rule.when, states)


def filter_reminders(
    rules: Sequence[AnyRule],
    phase: Phase | str,
    turn_context: TurnContext | str,
    army_states: Iterable[ArmyState | str] | None = None,
) -> list[AnyRule]:
    """Keep rules whose trigger matches ``phase``/``turn_context``.

    Rules without a trigger are always shown.  Rules whose condition cannot
    hold under the given army states are dropped.  Ids are
    deduplicated, first occurrence kept.
    """

    phase = parse_phase(phase)
    turn_context = TurnContext(turn_context)
    states = _state_names(army_states)
    seen: set[str] = set()
    live: list[AnyRule] = []
    for rule in rules:
        if rule.id in seen or not _is_live(rule, phase, turn_context, states):
            continue
        seen.add(rule.id)
        live.append(rule)
    return live


def get_unit_reminders(
    unit: Unit,
    phase: Phase | str,
    turn_context: TurnContext | str,
    army_states: Iterable[ArmyState | str] | None = None,
) -> list[AnyRule]:
    return filter_reminders(get_all_unit_rules(unit), phase, turn_context, army_states)


def has_reminders(
    unit: Unit,
    phase: Phase | str,
    turn_context: TurnContext | str,
    army_states: Iterable[ArmyState | str] | None = None,
) -> bool:
    return bool(get_unit_reminders(unit, phase, turn_context, army_states))


def get_units_with_reminders(
    armies: Iterable[Army],
    phase: Phase | str,
    turn_context: TurnContext | str,
) -> list[UnitReminder]:
    """Units across ``armies`` with at least one live reminder.

    Each army's own states gate its units' army-state rules.
    """

    found: list[UnitReminder] = []
    for army in armies:
        for unit in army.units:
            if has_reminders(unit, phase, turn_context, army.states):
                found.append(UnitReminder(unit=unit, army_id=army.id, army_name=army.name))
    return found


def get_reactive_units(armies: Iterable[Army], phase: Phase | str) -> list[UnitReminder]:
    """Whole units holding a reactive ability usable in ``phase``."""

    found: list[UnitReminder] = []
    for army in armies:
        for unit in army.units:
            if any(rule.is_reactive_for(phase) for rule in get_all_unit_rules(unit)):
                found.append(UnitReminder(unit=unit, army_id=army.id, army_name=army.name))
    return found
