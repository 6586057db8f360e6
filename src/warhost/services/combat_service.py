"""Combat Service for Warhost.

This module orchestrates one attack instance end to end: it aggregates both
sides' rules, merges them into combat modifiers, drives the combat step
machine and mirrors results to the opposing client.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from typing import Any

from warhost.domain.aggregator import get_all_unit_rules
from warhost.domain.choices import stored_choice_inputs
from warhost.domain.combat import (
    CombatResult,
    advance,
    combat_result_payload,
    load_combat_result,
    run_to_completion,
    start_from_state,
)
from warhost.domain.combat_state import build_combat_state
from warhost.domain.context import CombatOptions
from warhost.domain.enums import CombatPhase
from warhost.domain.models import ArmyState, GameSnapshot, Unit, Weapon
from warhost.domain.rules import AnyRule
from warhost.domain.rules_config import DEFAULT_RULES, RulesConfig
from warhost.interfaces.broadcast import ICombatBroadcaster
from warhost.interfaces.dice import IDiceRoller
from warhost.utils.rng import generate_seed

logger = logging.getLogger(__name__)

DEFAULT_RESULT_TOPIC = "combat-result"


class CombatService:
    """Service for resolving attacks between two units."""

    def __init__(
        self,
        roller_factory: Callable[[str], IDiceRoller],
        broadcaster: ICombatBroadcaster,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        topic: str = DEFAULT_RESULT_TOPIC,
        seed_prefix: str = "",
    ):
        self.roller_factory = roller_factory
        self.broadcaster = broadcaster
        self.rules = rules
        self.topic = topic
        self.seed_prefix = seed_prefix

    def roller_for(self, game: GameSnapshot, context: str) -> IDiceRoller:
        """Create a deterministic roller for a roll made in ``game`` right now.

        Args:
            game: Current game snapshot (turn and phase are mixed into the seed)
            context: What the roll is for, e.g. ``"unit-3:bolt-rifle"``

        Returns:
            Roller seeded from the game position and context
        """
        seed = generate_seed(
            game.id,
            game.current_turn,
            game.current_phase or "any",
            context,
            prefix=self.seed_prefix,
        )
        return self.roller_factory(seed)

    def start(
        self,
        attacker: Unit,
        defender: Unit,
        weapon: Weapon,
        game: GameSnapshot,
        *,
        options: CombatOptions | None = None,
        combat_phase: CombatPhase | None = None,
        attacker_army_states: Iterable[ArmyState | str] = (),
        defender_army_states: Iterable[ArmyState | str] = (),
        extra_attacker_rules: Sequence[AnyRule] = (),
    ) -> CombatResult:
        """Evaluate both sides' rules and return a pending combat result.

        ``extra_attacker_rules`` carries rules that are not on the unit, such
        as a stratagem the attacker spent on this attack.  Choice picks the
        host stored in ``attacker_army_states`` fill in user inputs the
        options do not set.

        Raises:
            RuleValidationError: If a rule payload on either unit is malformed
            AttachmentConflictError: If either unit has an inconsistent attachment
        """
        options = options or CombatOptions()
        attacker_army_states = list(attacker_army_states)
        attacker_rules = [*get_all_unit_rules(attacker), *extra_attacker_rules]
        stored = stored_choice_inputs(
            attacker_rules,
            [state for state in attacker_army_states if isinstance(state, ArmyState)],
            game.current_turn,
        )
        if stored:
            options = replace(options, user_inputs={**stored, **options.user_inputs})
        state = build_combat_state(
            attacker,
            defender,
            weapon,
            game,
            combat_phase=combat_phase,
            options=options,
            attacker_rules=attacker_rules,
            defender_rules=get_all_unit_rules(defender),
            attacker_army_states=attacker_army_states,
            defender_army_states=defender_army_states,
        )
        for note in state.modifiers.diagnostics:
            logger.warning("Combat %s -> %s: %s", attacker.name, defender.name, note)
        logger.info(
            "Combat started: %s (%s) -> %s, %d rules applied",
            attacker.name,
            weapon.name,
            defender.name,
            len(state.modifiers.applied_rules),
        )
        return start_from_state(state, options)

    def advance(self, result: CombatResult, roller: IDiceRoller) -> CombatResult:
        """Run the next pending step of ``result``."""
        return advance(result, roller, self.rules)

    def resolve(self, result: CombatResult, roller: IDiceRoller) -> CombatResult:
        """Run every remaining step of ``result``."""
        return run_to_completion(result, roller, self.rules)

    def resume(self, snapshot: str | bytes | dict[str, Any]) -> CombatResult:
        """Rebuild a result received from the other client."""
        result = load_combat_result(snapshot)
        logger.debug("Resumed combat with %s at step %s", result.weapon.name, result.step)
        return result

    def publish(self, game_id: str, result: CombatResult) -> dict[str, Any]:
        """Mirror ``result`` to subscribers of the game's result topic.

        Returns:
            The payload that was published
        """
        payload = combat_result_payload(result)
        self.broadcaster.publish(game_id, self.topic, payload)
        logger.debug("Published combat result for game %s at step %s", game_id, result.step)
        return payload
